from ..layers.Layer import Layer
from ..helpers import dlmath
from ..helpers.Backend import backend
from ..helpers.errors import InvalidStateError


class LossLayer(Layer):
    """
    Parameterless output node that scores predictions against a target and
    starts the reverse pass.

    Gradients are scaled by 1 / batch_size so that accumulating a whole
    batch before an optimizer step averages it.
    """
    def __init__(self, model, name, input_size, batch_size=1):
        super().__init__(model, name)
        self.input_size = int(input_size)
        self.batch_size = int(batch_size)
        if self.batch_size <= 0:
            raise ValueError(f"{self.name}: batch_size must be positive")

        self._target = None
        self._prediction = None
        self._input_gradients = backend.zeros(self.input_size)
        self.reset_score()

    def set_target(self, target):
        self._target = backend.vector(target, self.input_size,
                                      what=f"{self.name} target", copy=True)

    def forward(self, inputs):
        if self._target is None:
            raise InvalidStateError(f"{self.name}: set_target() must be called before forward()")
        self._prediction = backend.vector(inputs, self.input_size,
                                          what=f"{self.name} inputs", copy=True)

        self.loss = self._loss(self._target, self._prediction)
        self.cumulative_loss += self.loss
        self.samples += 1
        if (dlmath.argmax(self._prediction, self.input_size)
                == dlmath.argmax(self._target, self.input_size)):
            self.correct += 1

        self._forward_subsequents(self._prediction)

    def reverse(self, gradients=None):
        # a loss node starts the reverse pass, upstream gradients are not used
        if self._prediction is None:
            raise InvalidStateError(f"{self.name}: must call forward() before reverse()")
        self._loss_1(self._input_gradients, self._target, self._prediction,
                     1.0 / self.batch_size)
        self._reverse_antecedents(self._input_gradients)

    def reset_score(self):
        self.loss = 0.0
        self.cumulative_loss = 0.0
        self.samples = 0
        self.correct = 0

    @property
    def mean_loss(self):
        return self.cumulative_loss / self.samples if self.samples else 0.0

    @property
    def accuracy(self):
        return self.correct / self.samples if self.samples else 0.0

    @property
    def input_gradients(self):
        return self._input_gradients

    # Subclasses override
    def _loss(self, target, prediction):
        raise NotImplementedError

    def _loss_1(self, dst, target, prediction, norm):
        raise NotImplementedError
