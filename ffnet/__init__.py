from .Model import Model
from .layers import Activation, DenseLayer, Layer, Trainable
from .loss import CrossEntropyLoss, MeanSquaredErrorLoss
from .optimizer import GDOptimizer
from .helpers.errors import (
    FFNetError,
    AliasingError,
    InvalidStateError,
    ShapeMismatchError,
    GraphCycleError,
)

__version__ = "0.1.0"

__all__ = [
    "Model",
    "Activation",
    "DenseLayer",
    "Layer",
    "Trainable",
    "CrossEntropyLoss",
    "MeanSquaredErrorLoss",
    "GDOptimizer",
    "FFNetError",
    "AliasingError",
    "InvalidStateError",
    "ShapeMismatchError",
    "GraphCycleError",
]
