from .LossLayer import LossLayer
from ..helpers import dlmath


class MeanSquaredErrorLoss(LossLayer):
    # loss = mean((y_hat - y)^2), gradient = 2 norm (y_hat - y)
    def _loss(self, target, prediction):
        return dlmath.mean_squared_error(target, prediction, self.input_size)

    def _loss_1(self, dst, target, prediction, norm):
        dlmath.mean_squared_error_1(dst, target, prediction, norm, self.input_size)
