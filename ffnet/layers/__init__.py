from .Layer import Layer, Trainable, is_trainable, param_count
from .Activation import Activation
from .DenseLayer import DenseLayer

__all__ = [
    "Layer",
    "Trainable",
    "is_trainable",
    "param_count",
    "Activation",
    "DenseLayer",
]
