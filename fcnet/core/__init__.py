"""Core numerical primitives for fcnet."""

from . import activations, costs, types
from .builder import NetworkBuilder
from .layer import Layer
from .network import Network

__all__ = ["activations", "costs", "types", "Layer", "Network", "NetworkBuilder"]
