"""fcnet public API."""

from .core import activations, costs, types  # noqa: F401
from .core.activations import ActivationFunctions
from .core.builder import NetworkBuilder
from .core.costs import CostFunctions
from .core.layer import Layer
from .core.network import Network
from .training import optimizers
from .training.optimizers import Optimizers

__version__ = "0.1.0"

__all__ = [
    "ActivationFunctions",
    "CostFunctions",
    "Layer",
    "Network",
    "NetworkBuilder",
    "Optimizers",
    "activations",
    "costs",
    "optimizers",
    "types",
]
