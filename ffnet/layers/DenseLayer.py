import numpy as np

from .Layer import Layer, Trainable
from .Activation import Activation
from ..helpers import dlmath
from ..helpers import Backend as _backend_module
from ..helpers.Backend import backend
from ..helpers.errors import InvalidStateError

BIAS_INIT = 0.01


class DenseLayer(Trainable, Layer):
    def __init__(self, model, name, activation, output_size, input_size):
        # validate before registering with the model
        activation = Activation.parse(activation)
        if int(output_size) <= 0 or int(input_size) <= 0:
            raise ValueError(
                f"{name}: sizes must be positive, got {input_size} -> {output_size}"
            )
        super().__init__(model, name)
        self.activation = activation
        self.output_size = int(output_size)
        self.input_size = int(input_size)
        if _backend_module.VERBOSE:
            print(f"{self.name}: {self.input_size} -> {self.output_size}")

        # weights: (output_size, input_size), weights[i][j] connects input j to output i
        # biases: (output_size,)
        self._weights = backend.zeros((self.output_size, self.input_size))
        self._biases = backend.zeros(self.output_size)

        # post-activation outputs, fed to subsequent layers
        self._activations = backend.zeros(self.output_size)
        self._activation_gradients = backend.zeros(self.output_size)

        self._weight_gradients = backend.zeros_like(self._weights)
        self._bias_gradients = backend.zeros_like(self._biases)
        self._input_gradients = backend.zeros(self.input_size)

        # cache for reverse, owned copy taken in forward()
        self._last_input = None

    def init(self, rng):
        if self.activation is Activation.RELU:
            # He initialization
            sigma = np.sqrt(2.0 / self.input_size)
        else:
            # Xavier initialization
            sigma = np.sqrt(1.0 / self.input_size)

        dist = dlmath.normal_pdf(0.0, sigma)
        flat = self._weights.reshape(-1)
        for i in range(flat.size):
            flat[i] = dist(rng)
        # small constant so every unit fires at the start
        self._biases.fill(BIAS_INIT)
        super().init(rng)

    def forward(self, inputs):
        self._require_init()
        x = backend.vector(inputs, self.input_size, what=f"{self.name} inputs", copy=True)
        self._last_input = x

        # z = W x + b
        dlmath.matarr_mul(self._activations, self._weights, x,
                          self.output_size, self.input_size)
        dlmath.arr_sum(self._activations, self._activations, self._biases,
                       self.output_size)

        if self.activation is Activation.RELU:
            dlmath.relu_vec(self._activations, self._activations, self.output_size)
        elif self.activation is Activation.SOFTMAX:
            dlmath.softmax(self._activations, self._activations, self.output_size)

        self._forward_subsequents(self._activations)

    def reverse(self, gradients):
        if self._last_input is None:
            raise InvalidStateError(f"{self.name}: must call forward() before reverse()")
        grad_out = backend.vector(gradients, self.output_size, what=f"{self.name} gradients")

        # dg(z)/dz
        if self.activation is Activation.RELU:
            # ReLU(z) > 0 exactly where z > 0, so the activations stand in for z
            dlmath.relu_1(self._activation_gradients, self._activations, self.output_size)
        elif self.activation is Activation.SOFTMAX:
            dlmath.softmax_1_opt(self._activation_gradients, self._activations,
                                 self.output_size)
        else:
            self._activation_gradients.fill(1.0)

        # dJ/dz = dJ/dg(z) * dg(z)/dz
        dlmath.arr_mul(self._activation_gradients, self._activation_gradients,
                       grad_out, self.output_size)

        # dJ/db = dJ/dz
        dlmath.arr_sum(self._bias_gradients, self._bias_gradients,
                       self._activation_gradients, self.output_size)

        # dJ/dw_ij = dJ/dz_i * x_j
        self._weight_gradients += np.outer(self._activation_gradients, self._last_input)

        # dJ/dx = W^T dJ/dz, not accumulated
        self._input_gradients[...] = self._weights.T @ self._activation_gradients

        self._reverse_antecedents(self._input_gradients)

    def params(self):
        return [self._weights, self._biases]

    def grads(self):
        return [self._weight_gradients, self._bias_gradients]

    def param_count(self):
        return self._weights.size + self._biases.size

    @property
    def weights(self):
        return self._weights

    @property
    def biases(self):
        return self._biases

    @property
    def activations(self):
        return self._activations

    @property
    def weight_gradients(self):
        return self._weight_gradients

    @property
    def bias_gradients(self):
        return self._bias_gradients

    @property
    def input_gradients(self):
        return self._input_gradients

    def dump(self):
        print(self.name)
        print(f"Weights ({self.output_size} x {self.input_size})")
        for i in range(self.output_size):
            offset = i * self.input_size
            print("".join(
                f"\t[{offset + j}]{self._weights[i, j]:f}" for j in range(self.input_size)
            ))
        print(f"Biases ({self.output_size} x 1)")
        for b in self._biases:
            print(f"\t{b:f}")
        print()
