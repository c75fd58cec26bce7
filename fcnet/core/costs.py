"""Cost function strategies and their factory."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable

import numpy as np

from .types import Array


class CostFunction:
    """Stateless cost of an ``actual`` output against a ``target`` vector."""

    name: str = ""

    def calculate(self, actual: Array, target: Array) -> float:
        raise NotImplementedError

    def calculate_derivative(self, actual: Array, target: Array) -> Array:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class QuadraticCost(CostFunction):
    """``0.5 * ||target - actual||^2``."""

    name = "quadratic"

    def calculate(self, actual: Array, target: Array) -> float:
        diff = np.asarray(target, dtype=np.float64) - np.asarray(actual, dtype=np.float64)
        return float(0.5 * np.linalg.norm(diff) ** 2)

    def calculate_derivative(self, actual: Array, target: Array) -> Array:
        return np.asarray(actual, dtype=np.float64) - np.asarray(target, dtype=np.float64)


class CrossEntropy(CostFunction):
    """Binary cross entropy summed over the output components.

    Non-finite per-element terms (``ln(0)``) are zeroed before summation.
    """

    name = "crossentropy"

    def calculate(self, actual: Array, target: Array) -> float:
        x = np.asarray(actual, dtype=np.float64)
        t = np.asarray(target, dtype=np.float64)
        with np.errstate(divide="ignore", invalid="ignore"):
            terms = -t * np.log(x) - (1.0 - t) * np.log(1.0 - x)
        terms = np.where(np.isfinite(terms), terms, 0.0)
        return float(np.sum(terms))

    def calculate_derivative(self, actual: Array, target: Array) -> Array:
        x = np.asarray(actual, dtype=np.float64)
        t = np.asarray(target, dtype=np.float64)
        return (x - t) / (x * (1.0 - x))


class CostFunctions(Enum):
    QUADRATIC = QuadraticCost.name
    CROSSENTROPY = CrossEntropy.name


_REGISTRY: Dict[CostFunctions, CostFunction] = {
    CostFunctions.QUADRATIC: QuadraticCost(),
    CostFunctions.CROSSENTROPY: CrossEntropy(),
}


def names() -> Iterable[str]:
    return sorted(member.value for member in CostFunctions)


def from_name(name: str) -> CostFunctions:
    try:
        return CostFunctions(name)
    except ValueError as exc:
        available = ", ".join(names())
        raise KeyError(f"Unknown cost function: {name!r}. Available: {available}") from exc


def create(kind: CostFunctions | str) -> CostFunction:
    """Return the shared cost strategy for ``kind`` (enum or name)."""

    if isinstance(kind, str):
        kind = from_name(kind)
    try:
        return _REGISTRY[kind]
    except KeyError as exc:
        raise KeyError(f"Unknown cost function: {kind!r}") from exc


__all__ = [
    "CostFunction",
    "CostFunctions",
    "CrossEntropy",
    "QuadraticCost",
    "create",
    "from_name",
    "names",
]
