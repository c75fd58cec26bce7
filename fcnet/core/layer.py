"""A single fully-connected layer."""

from __future__ import annotations

from typing import Callable, Tuple

import numpy as np

from .activations import ActivationFunction
from .types import Array

# Draws an array of the requested shape, e.g. ``rng.standard_normal``.
Generator = Callable[[Tuple[int, ...]], Array]


def _read_only(array: Array) -> Array:
    view = array.view()
    view.flags.writeable = False
    return view


class Layer:
    """Weights, biases and activation of one layer of neurons.

    ``weight`` has shape ``(size, previous_size)`` so that row ``i`` holds the
    incoming connections of neuron ``i``. A layer is created uninitialised and
    must be given parameters through :meth:`initialize` (random draws) or
    :meth:`initialize_from` (restored values) before use.
    """

    def __init__(self, size: int, activation: ActivationFunction) -> None:
        if int(size) <= 0:
            raise ValueError(f"Layer size must be positive, got {size}")
        self._size = int(size)
        self.activation = activation
        self._bias: Array | None = None
        self._weight: Array | None = None

    # ------------------------------------------------------------------
    # Initialisation

    def initialize(self, previous_size: int, generator: Generator) -> None:
        """Draw bias then weight from ``generator``; scale weight by ``1/sqrt(previous_size)``."""

        previous_size = int(previous_size)
        if previous_size <= 0:
            raise ValueError(f"Previous layer size must be positive, got {previous_size}")
        bias = np.asarray(generator((self._size,)), dtype=np.float64)
        weight = np.asarray(generator((self._size, previous_size)), dtype=np.float64)
        self._bias = bias.reshape(self._size)
        self._weight = weight.reshape(self._size, previous_size) / np.sqrt(previous_size)

    def initialize_from(self, bias: Array, weight: Array) -> None:
        bias = np.array(bias, dtype=np.float64).reshape(-1)
        weight = np.array(weight, dtype=np.float64)
        if bias.shape != (self._size,):
            raise ValueError(
                f"Bias length {bias.shape[0]} does not match layer size {self._size}"
            )
        if weight.ndim != 2 or weight.shape[0] != self._size:
            raise ValueError(
                f"Weight shape {weight.shape} does not match layer size {self._size}"
            )
        self._bias = bias
        self._weight = weight

    @property
    def is_initialized(self) -> bool:
        return self._bias is not None and self._weight is not None

    def _require_initialized(self) -> None:
        if not self.is_initialized:
            raise RuntimeError("Layer must be initialized before use")

    # ------------------------------------------------------------------
    # Accessors

    @property
    def size(self) -> int:
        return self._size

    @property
    def previous_size(self) -> int:
        self._require_initialized()
        return int(self._weight.shape[1])

    @property
    def bias(self) -> Array:
        self._require_initialized()
        return _read_only(self._bias)

    @property
    def weight(self) -> Array:
        self._require_initialized()
        return _read_only(self._weight)

    def get_parameters(self) -> tuple[Array, Array, ActivationFunction]:
        """Return copies of bias and weight along with the shared activation."""

        self._require_initialized()
        return self._bias.copy(), self._weight.copy(), self.activation

    def copy(self) -> "Layer":
        clone = Layer(self._size, self.activation)
        if self.is_initialized:
            clone._bias = self._bias.copy()
            clone._weight = self._weight.copy()
        return clone

    # ------------------------------------------------------------------
    # Propagation

    def weighted_input(self, x: Array) -> Array:
        self._require_initialized()
        return self._weight @ x + self._bias

    def feed_forward(self, x: Array) -> Array:
        return self.activation.calculate(self.weighted_input(x))

    def feed_forward_with_z(self, x: Array) -> tuple[Array, Array]:
        """Return the activation together with the pre-activation ``z``."""

        z = self.weighted_input(x)
        return self.activation.calculate(z), z

    def feed_backward(
        self, a_prev: Array, z: Array, delta_next: Array
    ) -> tuple[Array, Array, Array]:
        """Return ``(nabla_b, nabla_w, delta_out)`` for this layer.

        ``delta_next`` is the error arriving at this layer's output, ``z`` the
        layer's own weighted input and ``a_prev`` the activation feeding it.
        """

        self._require_initialized()
        delta = delta_next * self.activation.calculate_derivative(z)
        nabla_w = np.outer(delta, a_prev)
        nabla_b = delta
        delta_out = self._weight.T @ delta
        return nabla_b, nabla_w, delta_out

    def update_bias_weight(
        self,
        nabla_b: Array,
        nabla_w: Array,
        learning_rate_ratio: float,
        regularization_ratio: float,
    ) -> None:
        """Additive update; both ratios arrive already negated.

        L2 regularization applies to the weights only.
        """

        self._require_initialized()
        if np.shape(nabla_b) != self._bias.shape or np.shape(nabla_w) != self._weight.shape:
            raise ValueError(
                f"Gradient shapes {np.shape(nabla_b)}, {np.shape(nabla_w)} do not match "
                f"layer parameters {self._bias.shape}, {self._weight.shape}"
            )
        self._bias += learning_rate_ratio * nabla_b
        self._weight += learning_rate_ratio * nabla_w + regularization_ratio * self._weight

    def __repr__(self) -> str:
        return f"Layer(size={self._size}, activation={self.activation.name!r})"


__all__ = ["Generator", "Layer"]
