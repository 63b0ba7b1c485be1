from .LossLayer import LossLayer
from ..helpers import dlmath


class CrossEntropyLoss(LossLayer):
    """
    Categorical cross-entropy against a one-hot target.
    Expects probabilities (e.g. a Softmax DenseLayer) as input; predictions
    are clamped to machine epsilon before the log.
    """
    def _loss(self, target, prediction):
        return dlmath.cross_entropy_vec(target, prediction, self.input_size)

    def _loss_1(self, dst, target, prediction, norm):
        dlmath.cross_entropy_1_vec(dst, target, prediction, norm, self.input_size)
