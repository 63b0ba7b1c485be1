from ..helpers.errors import InvalidStateError


class Layer:
    """
    Node of a model graph.

    A layer registers itself with its model on construction. Edges live in
    the model as handle lists; forward() feeds every subsequent layer and
    reverse() feeds every antecedent layer, synchronously and in edge order.
    """
    def __init__(self, model, name):
        self._model = model
        self._name = str(name)
        self._initialized = False
        self.handle = model.add_layer(self)

    @property
    def name(self):
        return self._name

    @property
    def model(self):
        return self._model

    @property
    def antecedents(self):
        return self._model.antecedents(self.handle)

    @property
    def subsequents(self):
        return self._model.subsequents(self.handle)

    # Subclasses override as needed
    def init(self, rng):
        self._initialized = True

    def forward(self, inputs):
        raise NotImplementedError

    def reverse(self, gradients):
        # gradients: dJ/dg(z) w.r.t. this layer's outputs
        raise NotImplementedError

    def _forward_subsequents(self, outputs):
        for layer in self.subsequents:
            layer.forward(outputs)

    def _reverse_antecedents(self, input_gradients):
        for layer in self.antecedents:
            layer.reverse(input_gradients)

    def _require_init(self):
        if not self._initialized:
            raise InvalidStateError(f"{self._name}: init() must run before forward()")

    def __repr__(self):
        return f"{type(self).__name__}({self._name!r}, handle={self.handle})"


class Trainable:
    """
    Capability of layers with tunable parameters.

    Parameters and gradients share one flat index space built from
    params()/grads(): the first array's entries in row-major order, then
    the next array's, and so on. param(i) and gradient(i) return writable
    0-d views into the layer's own storage.
    """
    def params(self):
        # Return list of parameter ndarrays (e.g., [W, b])
        return []

    def grads(self):
        # Return list of gradient ndarrays matching params()
        return []

    def param_count(self):
        return sum(p.size for p in self.params())

    def param(self, index):
        return self._flat_entry(self.params(), index)

    def gradient(self, index):
        return self._flat_entry(self.grads(), index)

    def _flat_entry(self, arrays, index):
        index = int(index)
        if index < 0:
            raise IndexError(f"parameter index {index} out of range")
        for arr in arrays:
            if index < arr.size:
                # reshape(-1) is a view for the contiguous buffers layers own
                return arr.reshape(-1)[index, ...]
            index -= arr.size
        raise IndexError(f"parameter index out of range for {self.param_count()} parameters")


def is_trainable(layer):
    return isinstance(layer, Trainable)


def param_count(layer):
    return layer.param_count() if is_trainable(layer) else 0
