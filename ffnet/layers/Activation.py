from enum import Enum


class Activation(Enum):
    # Tag carried by DenseLayer; selects forward nonlinearity and derivative
    RELU = "relu"
    SOFTMAX = "softmax"
    LINEAR = "linear"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Unknown activation: {value}. Available: {[a.value for a in cls]}"
            ) from None
