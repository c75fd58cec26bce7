"""Core typing contracts for fcnet."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple

import numpy as np

Array = np.ndarray

# (feature vector, label vector)
DataLabelPair = Tuple[Array, Array]
DataLabelSet = List[DataLabelPair]


class NetworkState(Enum):
    """Training lifecycle of a :class:`~fcnet.core.network.Network`."""

    UNTRAINED = "untrained"
    ASSEMBLED = "assembled"
    TRAINED = "trained"


@dataclass
class TrainingHistory:
    """Per-epoch metrics accumulated by ``Network.train``, in epoch order."""

    training_cost: List[float] = field(default_factory=list)
    training_accuracy: List[float] = field(default_factory=list)
    evaluation_cost: List[float] = field(default_factory=list)
    evaluation_accuracy: List[float] = field(default_factory=list)

    def append(
        self,
        training_cost: float,
        training_accuracy: float,
        evaluation_cost: float,
        evaluation_accuracy: float,
    ) -> None:
        self.training_cost.append(float(training_cost))
        self.training_accuracy.append(float(training_accuracy))
        self.evaluation_cost.append(float(evaluation_cost))
        self.evaluation_accuracy.append(float(evaluation_accuracy))

    def __len__(self) -> int:
        return len(self.training_cost)


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`fcnet.training.pipelines.run_pipeline`."""

    epochs: int
    metrics_path: str
    manifest_path: str
    network_path: str = ""
    test_correct: int = 0
    test_total: int = 0


def as_vector(values) -> Array:
    """Return ``values`` as a flat ``float64`` vector."""

    return np.asarray(values, dtype=np.float64).reshape(-1)


__all__ = [
    "Array",
    "DataLabelPair",
    "DataLabelSet",
    "NetworkState",
    "RunResult",
    "TrainingHistory",
    "as_vector",
]
