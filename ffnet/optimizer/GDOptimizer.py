from ..layers.Layer import is_trainable


class GDOptimizer:
    def __init__(self, eta=1e-2):
        if not eta > 0.0:
            raise ValueError(f"learning rate must be positive, got {eta}")
        self.eta = float(eta)

    def train(self, layer):
        # parameterless layers have nothing to update
        if not is_trainable(layer):
            return
        for i in range(layer.param_count()):
            p = layer.param(i)
            g = layer.gradient(i)
            p -= self.eta * g
            # reset so the next step accumulates from zero
            g[...] = 0.0

    def step(self, layers):
        for layer in layers:
            self.train(layer)
