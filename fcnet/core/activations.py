"""Activation function strategies and their factory."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable

import numpy as np

from .types import Array


class ActivationFunction:
    """Stateless elementwise (or joint) transform of a weighted input ``z``."""

    name: str = ""

    def calculate(self, z: Array) -> Array:
        raise NotImplementedError

    def calculate_derivative(self, z: Array) -> Array:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Logistic(ActivationFunction):
    """Logistic (sigmoid) activation ``1 / (1 + exp(-z))``."""

    name = "logistic"

    def calculate(self, z: Array) -> Array:
        return 1.0 / (1.0 + np.exp(-np.asarray(z, dtype=np.float64)))

    def calculate_derivative(self, z: Array) -> Array:
        f = self.calculate(z)
        return f * (1.0 - f)


class Softmax(ActivationFunction):
    """Softmax normalised by the plain sum of exponentials.

    No max-shift is applied, so large magnitude inputs overflow to ``nan``.
    """

    name = "softmax"

    def calculate(self, z: Array) -> Array:
        z_exp = np.exp(np.asarray(z, dtype=np.float64))
        return z_exp / np.sum(z_exp)

    def calculate_derivative(self, z: Array) -> Array:
        # The true derivative is a Jacobian matrix.
        raise NotImplementedError("Softmax.calculate_derivative is not implemented")


class ActivationFunctions(Enum):
    LOGISTIC = Logistic.name
    SOFTMAX = Softmax.name


_REGISTRY: Dict[ActivationFunctions, ActivationFunction] = {
    ActivationFunctions.LOGISTIC: Logistic(),
    ActivationFunctions.SOFTMAX: Softmax(),
}


def names() -> Iterable[str]:
    return sorted(member.value for member in ActivationFunctions)


def from_name(name: str) -> ActivationFunctions:
    """Return the enum member whose persisted name is ``name``."""

    try:
        return ActivationFunctions(name)
    except ValueError as exc:
        available = ", ".join(names())
        raise KeyError(
            f"Unknown activation function: {name!r}. Available: {available}"
        ) from exc


def create(kind: ActivationFunctions | str) -> ActivationFunction:
    """Return the shared strategy instance for ``kind`` (enum or name)."""

    if isinstance(kind, str):
        kind = from_name(kind)
    try:
        return _REGISTRY[kind]
    except KeyError as exc:
        raise KeyError(f"Unknown activation function: {kind!r}") from exc


__all__ = [
    "ActivationFunction",
    "ActivationFunctions",
    "Logistic",
    "Softmax",
    "create",
    "from_name",
    "names",
]
