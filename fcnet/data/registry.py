"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, MutableMapping

from ..core.types import DataLabelSet


@dataclass(frozen=True)
class DatasetSpec:
    """Training, validation and testing splits of one dataset.

    Attributes
    ----------
    name:
        Registry identifier of the dataset.
    training, validation, testing:
        Ordered ``(features, label)`` pairs. Features are already normalised;
        the network never rescales them.
    input_size:
        Length of every feature vector.
    output_size:
        Length of the training label vectors.
    provenance:
        Free-form description of where the data came from, recorded in the
        run manifest.
    """

    name: str
    training: DataLabelSet
    validation: DataLabelSet
    testing: DataLabelSet
    input_size: int
    output_size: int
    provenance: Dict[str, Any] = field(default_factory=dict)

    @property
    def splits(self) -> Dict[str, int]:
        return {
            "training": len(self.training),
            "validation": len(self.validation),
            "testing": len(self.testing),
        }


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(name: str) -> Callable[[DatasetFactory], DatasetFactory]:
    """Decorator registering a dataset factory under ``name``."""

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[name] = func
        return func

    return _decorator


def get_dataset(name: str, **options: Any) -> DatasetSpec:
    """Return the :class:`DatasetSpec` produced by the factory for ``name``."""

    if name not in _REGISTRY:
        available = ", ".join(available_datasets())
        raise KeyError(f"Unknown dataset: {name!r}. Available: {available}")
    spec = _REGISTRY[name](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    if not spec.training:
        raise ValueError(f"Dataset {spec.name!r} has an empty training split")
    for x, y in spec.training:
        if x.size != spec.input_size:
            raise ValueError(
                f"Dataset {spec.name!r} declares input size {spec.input_size} "
                f"but holds a feature vector of length {x.size}"
            )
        if y.size != spec.output_size:
            raise ValueError(
                f"Dataset {spec.name!r} declares output size {spec.output_size} "
                f"but holds a label vector of length {y.size}"
            )


__all__ = [
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
