from .LossLayer import LossLayer
from .CrossEntropyLoss import CrossEntropyLoss
from .MeanSquaredErrorLoss import MeanSquaredErrorLoss

__all__ = [
    "LossLayer",
    "CrossEntropyLoss",
    "MeanSquaredErrorLoss",
]
