"""Fluent network construction and parameter (de)serialization.

Parameter files are plain text. The first line is ``input_size,cost_name``;
every following group of three lines describes one layer, in order:

1. the bias vector as comma separated values,
2. the weight matrix flattened row by row (one row per neuron),
3. the activation function name.

Values are written with ``repr`` so they read back bit-identical.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Sequence

import numpy as np

from ..training import optimizers
from . import activations, costs
from .activations import ActivationFunctions
from .costs import CostFunctions
from .layer import Layer
from .network import Network
from .types import Array

_LINES_PER_LAYER = 3


class NetworkBuilder:
    """Accumulate network configuration and build :class:`Network` objects."""

    def __init__(self) -> None:
        self.input_size: int | None = None
        self.cost_function: CostFunctions | None = None
        self.optimizer: optimizers.Optimizers = optimizers.Optimizers.SGD
        self.is_true_random: bool = False

    def set_input_size(self, input_size: int) -> "NetworkBuilder":
        self.input_size = int(input_size)
        return self

    def set_cost_function(self, cost: CostFunctions | str) -> "NetworkBuilder":
        self.cost_function = costs.from_name(cost) if isinstance(cost, str) else cost
        return self

    def set_optimizer(self, optimizer: optimizers.Optimizers | str) -> "NetworkBuilder":
        self.optimizer = (
            optimizers.from_name(optimizer) if isinstance(optimizer, str) else optimizer
        )
        return self

    def set_is_true_random(self, is_true_random: bool) -> "NetworkBuilder":
        self.is_true_random = bool(is_true_random)
        return self

    def build(self, prediction_type: Callable[[float], object] = int) -> Network:
        """Return an empty network (no layers) for the current configuration."""

        if self.input_size is None:
            raise RuntimeError("NetworkBuilder.build requires an input size")
        if self.cost_function is None:
            raise RuntimeError("NetworkBuilder.build requires a cost function")
        return Network(
            self.input_size,
            costs.create(self.cost_function),
            optimizers.create(self.optimizer),
            self.is_true_random,
            prediction_type=prediction_type,
        )

    @staticmethod
    def create_layer(size: int, activation: ActivationFunctions | str) -> Layer:
        """Return an uninitialised layer of ``size`` neurons."""

        return Layer(size, activations.create(activation))

    # ------------------------------------------------------------------
    # Persistence

    @staticmethod
    def save(network: Network, path: str | Path) -> str:
        """Write the parameters of ``network`` to ``path``."""

        path = Path(path)
        text = format_network(network)
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise OSError(
                f"Unable to open file {path} for writing network parameters: {exc}"
            ) from exc
        return str(path)

    def load(
        self, path: str | Path, prediction_type: Callable[[float], object] = int
    ) -> Network:
        """Build a network from the parameters saved at ``path``.

        The input size and cost function of this builder are replaced by the
        values stored in the file; the optimizer and randomness settings are
        kept.
        """

        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise OSError(
                f"Unable to open file {path} for loading network parameters: {exc}"
            ) from exc

        input_size, cost_name, layers = parse_network(text, source=str(path))
        self.set_input_size(input_size)
        self.set_cost_function(cost_name)
        network = self.build(prediction_type)
        for layer in layers:
            network.add_layer(layer, initialize=False)
        return network


def _format_values(values: Array) -> str:
    return ",".join(repr(float(value)) for value in np.asarray(values).reshape(-1))


def format_network(network: Network) -> str:
    lines = [f"{network.input_size},{network.cost_function.name}"]
    for layer in network.layers:
        bias, weight, activation = layer.get_parameters()
        lines.append(_format_values(bias))
        # Row-major flattening: all incoming weights of neuron 0, then neuron 1, ...
        lines.append(_format_values(weight))
        lines.append(activation.name)
    return "\n".join(lines) + "\n"


def _parse_values(line: str, line_no: int, source: str) -> Array:
    cells = [cell.strip() for cell in line.split(",")]
    if not line.strip() or any(cell == "" for cell in cells):
        raise ValueError(f"{source}:{line_no}: expected comma separated values")
    try:
        return np.array([float(cell) for cell in cells], dtype=np.float64)
    except ValueError as exc:
        raise ValueError(f"{source}:{line_no}: {exc}") from exc


def parse_network(text: str, source: str = "<string>") -> tuple[int, str, List[Layer]]:
    """Parse saved parameters into ``(input_size, cost_name, layers)``.

    Every returned layer carries its saved bias and weight.
    """

    lines = text.splitlines()
    while lines and not lines[-1].strip():
        lines.pop()
    if not lines:
        raise ValueError(f"{source}: parameter file is empty")

    header = [cell.strip() for cell in lines[0].split(",")]
    if len(header) < 2 or not header[1]:
        raise ValueError(f"{source}:1: expected 'input_size,cost_function' header")
    try:
        input_size = int(header[0])
    except ValueError as exc:
        raise ValueError(f"{source}:1: invalid input size {header[0]!r}") from exc
    cost_name = header[1]

    body: Sequence[str] = lines[1:]
    if len(body) % _LINES_PER_LAYER:
        raise ValueError(
            f"{source}: incomplete layer description, expected groups of "
            f"{_LINES_PER_LAYER} lines (bias, weight, activation) but found "
            f"{len(body)} parameter lines"
        )

    layers: List[Layer] = []
    for start in range(0, len(body), _LINES_PER_LAYER):
        line_no = start + 2
        bias = _parse_values(body[start], line_no, source)
        values = _parse_values(body[start + 1], line_no + 1, source)
        activation_name = body[start + 2].split(",")[0].strip()
        if values.size % bias.size:
            raise ValueError(
                f"{source}:{line_no + 1}: {values.size} weight values cannot be "
                f"arranged into {bias.size} rows"
            )
        # Column-major reshape to (previous_size, size), transposed to (size, previous_size).
        weight = values.reshape((values.size // bias.size, bias.size), order="F").T
        layer = NetworkBuilder.create_layer(bias.size, activation_name)
        layer.initialize_from(bias, weight)
        layers.append(layer)
    return input_size, cost_name, layers


__all__ = ["NetworkBuilder", "format_network", "parse_network"]
