import time
from collections import deque

import numpy as np

from .helpers import dlmath
from .helpers.Backend import backend
from .helpers.errors import GraphCycleError, InvalidStateError, ShapeMismatchError
from .loss.LossLayer import LossLayer


class Model:
    """
    Owns the layers of a network and the edges between them.

    Layers are stored in an arena and addressed by integer handles; the
    antecedent and subsequent edges are handle lists kept here, not on the
    layers themselves.
    """
    def __init__(self, name="model", seed=None):
        self.name = name
        self.seed = seed
        self.rng = None
        self._layers = []
        self._antecedents = []
        self._subsequents = []
        self._initialized = False

    # ================== topology ==================
    def add_layer(self, layer):
        if layer.model is not self:
            raise ValueError(f"{layer.name} belongs to another model")
        self._layers.append(layer)
        self._antecedents.append([])
        self._subsequents.append([])
        return len(self._layers) - 1

    def layer(self, handle):
        return self._layers[handle]

    @property
    def layers(self):
        return list(self._layers)

    def antecedents(self, handle):
        return [self._layers[h] for h in self._antecedents[handle]]

    def subsequents(self, handle):
        return [self._layers[h] for h in self._subsequents[handle]]

    def connect(self, src, dst):
        for layer in (src, dst):
            if layer.model is not self:
                raise ValueError(f"{layer.name} belongs to another model")
        if src is dst:
            raise ValueError(f"{src.name} cannot feed itself")

        out_size = getattr(src, "output_size", None)
        in_size = getattr(dst, "input_size", None)
        if out_size is not None and in_size is not None and out_size != in_size:
            raise ShapeMismatchError(
                f"{src.name} outputs {out_size} values but {dst.name} expects {in_size}"
            )

        self._subsequents[src.handle].append(dst.handle)
        self._antecedents[dst.handle].append(src.handle)

    def input_layers(self):
        return [L for L in self._layers if not self._antecedents[L.handle]]

    def output_layers(self):
        return [L for L in self._layers if not self._subsequents[L.handle]]

    def loss_layers(self):
        return [L for L in self._layers if isinstance(L, LossLayer)]

    def topological_order(self):
        # Kahn's algorithm over handles
        in_degree = [len(edges) for edges in self._antecedents]
        ready = deque(h for h, d in enumerate(in_degree) if d == 0)
        order = []
        while ready:
            h = ready.popleft()
            order.append(self._layers[h])
            for s in self._subsequents[h]:
                in_degree[s] -= 1
                if in_degree[s] == 0:
                    ready.append(s)
        if len(order) != len(self._layers):
            stuck = [self._layers[h].name for h, d in enumerate(in_degree) if d > 0]
            raise GraphCycleError(f"layer wiring contains a cycle through {stuck}")
        return order

    # ================== lifecycle ==================
    def init(self, seed=None):
        if self._initialized:
            raise InvalidStateError(f"{self.name}: init() can only run once")
        order = self.topological_order()
        if seed is not None:
            self.seed = seed
        self.rng = dlmath.make_rng(self.seed)
        for layer in order:
            layer.init(self.rng)
        self._initialized = True

    def forward(self, inputs):
        self._require_init()
        for layer in self.input_layers():
            layer.forward(inputs)

    def reverse(self, gradients=None):
        self._require_init()
        for layer in self.output_layers():
            layer.reverse(gradients)

    def train(self, optimizer):
        for layer in self._layers:
            optimizer.train(layer)

    def predict(self, inputs, output):
        """Forward one sample and return a copy of output's activations."""
        self.forward(inputs)
        return np.array(output.activations, copy=True)

    # ================== training loop ==================
    def fit(
        self,
        samples,
        labels,
        optimizer,
        loss=None,
        epochs=10,
        batch_size=1,
        shuffle=True,
        verbose=1,
        logger=None,
    ):
        """
        Train on (samples, labels) one sample at a time.

        Gradients accumulate over batch_size samples and the optimizer steps
        once per batch and once more for a trailing partial batch. The loss
        layer scales each sample's gradient by 1 / batch_size for the run, so
        a full batch reaches the optimizer as its mean. loss defaults to the
        model's only loss layer.
        """
        self._require_init()
        loss = self._resolve_loss(loss)
        samples, labels = self._check_samples(samples, labels)
        batch_size = int(batch_size)
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")

        loss_batch_size = loss.batch_size
        loss.batch_size = batch_size
        try:
            return self._fit_epochs(samples, labels, optimizer, loss, epochs,
                                    batch_size, shuffle, verbose, logger)
        finally:
            loss.batch_size = loss_batch_size

    def _fit_epochs(self, samples, labels, optimizer, loss, epochs,
                    batch_size, shuffle, verbose, logger):
        history = {"loss": [], "acc": []}
        N = samples.shape[0]

        if verbose > 0:
            print(f"Starting training for {epochs} epochs...")
        for ep in range(1, epochs + 1):
            t0 = time.time()
            idx = np.arange(N)
            if shuffle:
                self.rng.shuffle(idx)

            loss.reset_score()
            pending = 0
            for i in idx:
                loss.set_target(labels[i])
                self.forward(samples[i])
                self.reverse()
                pending += 1
                if pending == batch_size:
                    self.train(optimizer)
                    pending = 0
            if pending:
                self.train(optimizer)

            train_loss, train_acc = loss.mean_loss, loss.accuracy
            history["loss"].append(train_loss)
            history["acc"].append(train_acc)

            if verbose > 0:
                log_interval = max(1, epochs // 10)
                if ep % log_interval == 0 or ep == 1 or ep == epochs:
                    print(f"Epoch {ep}/{epochs} - loss: {train_loss:.4f} - acc: {train_acc:.4f}")

            if logger is not None:
                logger.log_epoch(ep, time_s=time.time() - t0, loss=train_loss, acc=train_acc)

        if logger is not None:
            logger.save_json()
        return history

    def evaluate(self, samples, labels, loss=None):
        """Mean loss and accuracy without touching any gradient."""
        self._require_init()
        loss = self._resolve_loss(loss)
        samples, labels = self._check_samples(samples, labels)
        loss.reset_score()
        for x, y in zip(samples, labels):
            loss.set_target(y)
            self.forward(x)
        return loss.mean_loss, loss.accuracy

    # ================== helpers ==================
    def _check_samples(self, samples, labels):
        samples = backend.astype_default(samples)
        labels = backend.astype_default(labels)
        if samples.shape[0] != labels.shape[0]:
            raise ShapeMismatchError(
                f"{samples.shape[0]} samples but {labels.shape[0]} labels"
            )
        return samples, labels

    def _resolve_loss(self, loss):
        if loss is not None:
            return loss
        candidates = self.loss_layers()
        if len(candidates) != 1:
            raise ValueError(
                f"{self.name}: pass loss= explicitly, found {len(candidates)} loss layers"
            )
        return candidates[0]

    def _require_init(self):
        if not self._initialized:
            raise InvalidStateError(f"{self.name}: init() must run before training")

    def __len__(self):
        return len(self._layers)
