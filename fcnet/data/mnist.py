"""MNIST style CSV reader.

Each row holds ``split_index`` pixel values followed by the label column(s),
with no header. Pixels are divided by ``normalize_factor`` on the way in.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

from ..core.types import DataLabelSet
from .registry import DatasetSpec, register_dataset

IMAGE_SIZE = 28 * 28
NORMALIZE_FACTOR = 255.0

TRAINING_FILE = "Training.csv"
VALIDATION_FILE = "Validation.csv"
TESTING_FILE = "Testing.csv"


def read_csv_mnist(
    path: str | Path,
    split_index: int = IMAGE_SIZE,
    *,
    normalize_factor: float = NORMALIZE_FACTOR,
    num_classes: int | None = None,
) -> DataLabelSet:
    """Read ``path`` into ``(features, label)`` pairs.

    When ``num_classes`` is given, a single label column is expanded into a
    one-hot vector of that length.
    """

    path = Path(path)
    frame = pd.read_csv(path, header=None, skipinitialspace=True)
    if frame.shape[1] <= split_index:
        raise ValueError(
            f"{path}: rows have {frame.shape[1]} columns, expected more than {split_index}"
        )
    values = frame.to_numpy(dtype=np.float64)
    features = values[:, :split_index] / normalize_factor
    labels = values[:, split_index:]
    if num_classes is not None and labels.shape[1] == 1:
        labels = _one_hot(labels[:, 0], num_classes, path)
    return [(features[row].copy(), labels[row].copy()) for row in range(values.shape[0])]


def _one_hot(labels: np.ndarray, num_classes: int, path: Path) -> np.ndarray:
    invalid = (labels != np.round(labels)) | (labels < 0) | (labels >= num_classes)
    if invalid.any():
        row = int(np.flatnonzero(invalid)[0])
        raise ValueError(
            f"{path}: row {row} has label {float(labels[row])}, expected an integer in "
            f"[0, {num_classes})"
        )
    return np.eye(num_classes, dtype=np.float64)[labels.astype(int)]


@register_dataset("mnist_csv")
def load_mnist_csv(
    *,
    folder: str | Path = "data/MNIST",
    split_index: int = IMAGE_SIZE,
    normalize_factor: float = NORMALIZE_FACTOR,
    num_classes: int | None = 10,
) -> DatasetSpec:
    """Load ``Training.csv``, ``Validation.csv`` and ``Testing.csv`` from ``folder``."""

    folder = Path(folder)
    splits = {}
    for key, filename in (
        ("training", TRAINING_FILE),
        ("validation", VALIDATION_FILE),
        ("testing", TESTING_FILE),
    ):
        splits[key] = read_csv_mnist(
            folder / filename,
            split_index,
            normalize_factor=normalize_factor,
            num_classes=num_classes,
        )

    provenance = {
        "type": "mnist_csv",
        "folder": str(folder),
        "split_index": split_index,
        "normalize_factor": normalize_factor,
        "num_classes": num_classes,
    }
    return DatasetSpec(
        name="mnist_csv",
        training=splits["training"],
        validation=splits["validation"],
        testing=splits["testing"],
        input_size=split_index,
        output_size=int(splits["training"][0][1].size) if splits["training"] else 0,
        provenance=provenance,
    )


__all__ = ["read_csv_mnist", "load_mnist_csv"]
