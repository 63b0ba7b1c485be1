"""
conftest.py
~~~~~~~~~~~

Shared fixtures for the ffnet test suite.
"""

import numpy as np
import pytest

from ffnet import Activation, DenseLayer, Model
from ffnet.layers import Layer


class Probe(Layer):
    """Parameterless pass-through layer that records what it sees."""

    def __init__(self, model, name="probe"):
        super().__init__(model, name)
        self.seen_inputs = []
        self.seen_gradients = []

    def forward(self, inputs):
        self.seen_inputs.append(np.array(inputs, copy=True))
        self._forward_subsequents(inputs)

    def reverse(self, gradients):
        self.seen_gradients.append(np.array(gradients, copy=True))
        self._reverse_antecedents(gradients)


@pytest.fixture
def make_probe():
    """Factory for recording pass-through layers."""
    def factory(model, name="probe"):
        return Probe(model, name)
    return factory


@pytest.fixture
def model():
    return Model(name="test", seed=7)


@pytest.fixture
def dense_2x2(model):
    """Initialized 2 -> 2 linear layer with weights [[1, 2], [3, 4]] and zero bias."""
    layer = DenseLayer(model, "dense", Activation.LINEAR, output_size=2, input_size=2)
    model.init()
    layer.weights[...] = [[1.0, 2.0], [3.0, 4.0]]
    layer.biases[...] = 0.0
    return layer
