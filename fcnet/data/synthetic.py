"""Pure in-memory synthetic classification data."""

from __future__ import annotations

import numpy as np

from ..core.types import DataLabelSet
from .registry import DatasetSpec, register_dataset


def make_blobs(
    n_samples: int,
    n_features: int,
    n_classes: int,
    *,
    spread: float = 0.1,
    seed: int = 0,
) -> DataLabelSet:
    """Return Gaussian clusters in ``[0, 1]^n_features`` with one-hot labels."""

    rng = np.random.default_rng(seed)
    centers = rng.uniform(0.2, 0.8, size=(n_classes, n_features))
    labels = rng.integers(0, n_classes, size=n_samples)
    features = centers[labels] + spread * rng.standard_normal((n_samples, n_features))
    features = np.clip(features, 0.0, 1.0)
    one_hot = np.eye(n_classes, dtype=np.float64)[labels]
    return [(features[idx], one_hot[idx]) for idx in range(n_samples)]


@register_dataset("synthetic")
def load_synthetic(
    *,
    n_features: int = 4,
    n_classes: int = 3,
    n_training: int = 120,
    n_validation: int = 30,
    n_testing: int = 30,
    spread: float = 0.1,
    seed: int = 0,
) -> DatasetSpec:
    """Gaussian blobs split into training, validation and testing sets."""

    total = n_training + n_validation + n_testing
    data = make_blobs(total, n_features, n_classes, spread=spread, seed=seed)
    provenance = {
        "type": "synthetic",
        "n_features": n_features,
        "n_classes": n_classes,
        "spread": spread,
        "seed": seed,
    }
    return DatasetSpec(
        name="synthetic",
        training=data[:n_training],
        validation=data[n_training : n_training + n_validation],
        testing=data[n_training + n_validation :],
        input_size=n_features,
        output_size=n_classes,
        provenance=provenance,
    )


__all__ = ["make_blobs", "load_synthetic"]
