"""Optimizers driving the batching policy of ``Network.train``."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Iterable, Type

import numpy as np

from ..core.types import DataLabelSet

UpdateFn = Callable[[DataLabelSet, float, float], None]


class Optimizer:
    """Base optimizer.

    The owning network binds its RNG and parameter update routine through
    :meth:`initialize`; the optimizer only decides which examples go into
    which batch.
    """

    name: str = ""

    def __init__(self) -> None:
        self.rng: np.random.Generator | None = None
        self.update_network: UpdateFn | None = None

    def initialize(self, rng: np.random.Generator, update_network: UpdateFn) -> None:
        self.rng = rng
        self.update_network = update_network

    def _require_initialized(self) -> None:
        if self.rng is None or self.update_network is None:
            raise RuntimeError(f"{type(self).__name__} must be initialized before optimize()")

    def optimize(
        self,
        training: DataLabelSet,
        n_batches: int,
        batch_size: int,
        learning_rate_ratio: float,
        regularization_ratio: float,
    ) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class StochasticGradientDescent(Optimizer):
    """Shuffle once per epoch, then update on contiguous batches."""

    name = "stochastic"

    def optimize(
        self,
        training: DataLabelSet,
        n_batches: int,
        batch_size: int,
        learning_rate_ratio: float,
        regularization_ratio: float,
    ) -> None:
        self._require_initialized()
        if n_batches * batch_size > len(training):
            raise ValueError(
                f"{n_batches} batches of {batch_size} exceed the {len(training)} training examples"
            )
        # In-place Fisher-Yates shuffle of the caller's list.
        self.rng.shuffle(training)
        for start in range(0, n_batches * batch_size, batch_size):
            # Slicing a list copies references only, never the example arrays.
            batch = training[start : start + batch_size]
            self.update_network(batch, learning_rate_ratio, regularization_ratio)


class Optimizers(Enum):
    SGD = StochasticGradientDescent.name


_REGISTRY: Dict[Optimizers, Type[Optimizer]] = {
    Optimizers.SGD: StochasticGradientDescent,
}


def names() -> Iterable[str]:
    return sorted(member.value for member in Optimizers)


def from_name(name: str) -> Optimizers:
    try:
        return Optimizers(name)
    except ValueError as exc:
        available = ", ".join(names())
        raise KeyError(f"Unknown optimizer: {name!r}. Available: {available}") from exc


def create(kind: Optimizers | str) -> Optimizer:
    """Return a fresh optimizer for ``kind``; each network needs its own."""

    if isinstance(kind, str):
        kind = from_name(kind)
    try:
        return _REGISTRY[kind]()
    except KeyError as exc:
        raise KeyError(f"Unknown optimizer: {kind!r}") from exc


__all__ = [
    "Optimizer",
    "Optimizers",
    "StochasticGradientDescent",
    "UpdateFn",
    "create",
    "from_name",
    "names",
]
