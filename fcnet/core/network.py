"""Fully-connected feedforward network trained with backpropagation."""

from __future__ import annotations

from typing import Callable, List, Mapping, MutableSequence, Sequence, Tuple

import numpy as np

from ..training.optimizers import Optimizer
from .costs import CostFunction
from .layer import Layer
from .types import (
    Array,
    DataLabelSet,
    NetworkState,
    TrainingHistory,
    as_vector,
)

DEFAULT_SEED = 17111993


class Network:
    """Ordered stack of :class:`Layer` objects with a cost and an optimizer.

    ``layers[0]`` is the layer nearest the input; its weight matrix has
    ``input_size`` columns and every later layer has as many columns as its
    predecessor has neurons. The size of the last layer defines the output
    dimensionality.

    A single ``numpy.random.Generator`` is shared with the optimizer, so
    layer initialisation draws and per-epoch shuffles consume the same stream
    in a fixed order. It is seeded with :data:`DEFAULT_SEED` unless
    ``is_true_random`` is set.
    """

    def __init__(
        self,
        input_size: int,
        cost_function: CostFunction,
        optimizer: Optimizer,
        is_true_random: bool = False,
        *,
        prediction_type: Callable[[float], object] = int,
    ) -> None:
        if int(input_size) <= 0:
            raise ValueError(f"Input size must be positive, got {input_size}")
        self._input_size = int(input_size)
        self._layers: List[Layer] = []
        self.cost_function = cost_function
        self.optimizer = optimizer
        self.prediction_type = prediction_type
        self.is_true_random = bool(is_true_random)
        self.rng = np.random.default_rng(None if is_true_random else DEFAULT_SEED)
        self.history = TrainingHistory()
        self.optimizer.initialize(self.rng, self.update_parameters)

    # ------------------------------------------------------------------
    # Structure

    @property
    def input_size(self) -> int:
        return self._input_size

    @property
    def layers(self) -> Tuple[Layer, ...]:
        return tuple(self._layers)

    @property
    def number_of_layers(self) -> int:
        return len(self._layers)

    @property
    def output_size(self) -> int:
        if not self._layers:
            raise ValueError("Network has no layers")
        return self._layers[-1].size

    @property
    def state(self) -> NetworkState:
        if not self._layers:
            return NetworkState.UNTRAINED
        if len(self.history) == 0:
            return NetworkState.ASSEMBLED
        return NetworkState.TRAINED

    def _generate(self, shape: Tuple[int, ...]) -> Array:
        return self.rng.standard_normal(shape)

    def add_layer(self, layer: Layer, initialize: bool = True) -> "Network":
        """Append a copy of ``layer``, drawing its parameters when ``initialize`` is set.

        Returns the network so calls can be chained.
        """

        previous_size = self._layers[-1].size if self._layers else self._input_size
        layer = layer.copy()
        if initialize:
            layer.initialize(previous_size, self._generate)
        else:
            if not layer.is_initialized:
                raise RuntimeError("A layer added without initialization must carry parameters")
            if layer.previous_size != previous_size:
                raise ValueError(
                    f"Layer {len(self._layers)} expects {layer.previous_size} inputs but the "
                    f"previous layer provides {previous_size}"
                )
        self._layers.append(layer)
        return self

    def describe(self) -> str:
        """Return a printable summary of the layer sizes."""

        if not self._layers:
            return "The neural network is empty."
        lines = [f"The neural network has {self.number_of_layers} layers:"]
        lines.append(f"    Input : {self._input_size} neurons")
        for idx, layer in enumerate(self._layers[:-1]):
            lines.append(f"\t{idx} : {layer.size} neurons ({layer.activation.name})")
        last = self._layers[-1]
        lines.append(f"   Output : {last.size} neurons ({last.activation.name})")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Inference

    def feed_forward(self, x: Array) -> Array:
        a = as_vector(x)
        for layer in self._layers:
            a = layer.feed_forward(a)
        return a

    def predict(self, x: Array):
        return self.output_to_prediction(self.feed_forward(x))

    def output_to_prediction(self, output: Array):
        """Argmax for vector outputs, the cast value for scalar outputs."""

        output = as_vector(output)
        if output.size > 1:
            return int(np.argmax(output))
        return self.prediction_type(output[0])

    def prediction_to_output(self, target: Array) -> Array:
        """Vector targets are used as-is; scalar labels become one-hot vectors."""

        target = as_vector(target)
        if target.size > 1 or self.output_size == 1:
            return target
        label = int(target[0])
        if not 0 <= label < self.output_size:
            raise ValueError(f"Label {label} is outside the {self.output_size} network outputs")
        output = np.zeros(self.output_size)
        output[label] = 1.0
        return output

    def calc_accuracy_and_cost(
        self, data: Sequence[Tuple[Array, Array]], lmbda: float = 0.0
    ) -> Tuple[int, float]:
        """Return the number of correct predictions and the total (unnormalised) cost.

        The cost includes the L2 term ``lmbda / 2 * sum(||W||_F ** 2)``.
        """

        correct = 0
        cost = 0.0
        for x, target in data:
            predicted_output = self.feed_forward(x)
            if self.output_to_prediction(predicted_output) == self.output_to_prediction(target):
                correct += 1
            cost += self.cost_function.calculate(
                predicted_output, self.prediction_to_output(target)
            )
        regularization = sum(float(np.sum(layer.weight**2)) for layer in self._layers)
        cost += (lmbda / 2.0) * regularization
        return correct, cost

    # ------------------------------------------------------------------
    # Training

    def train(
        self,
        training: MutableSequence[Tuple[Array, Array]],
        evaluation: Sequence[Tuple[Array, Array]],
        epochs: int,
        batch_size: int,
        eta: float,
        lmbda: float,
        callbacks: Sequence[object] | None = None,
    ) -> TrainingHistory:
        """Run ``epochs`` epochs of mini-batch training.

        ``training`` is shuffled in place. Examples beyond the last full batch
        are left out of that epoch's updates. After each epoch the cost and
        accuracy on both sets are appended to :attr:`history` and reported to
        every callback's ``on_epoch(epoch, metrics)``.
        """

        if not self._layers:
            raise ValueError("Cannot train a network without layers")
        if len(training) == 0:
            raise ValueError("Training set is empty")
        if int(batch_size) <= 0:
            raise ValueError(f"Batch size must be positive, got {batch_size}")

        first_x, first_y = training[0]
        n_features = as_vector(first_x).size
        n_labels = as_vector(first_y).size
        if n_features != self._input_size:
            raise ValueError(
                f"Input layer size ({self._input_size}) is inconsistent with training "
                f"input data size ({n_features})"
            )
        if n_labels != self.output_size:
            raise ValueError(
                f"Output layer size ({self.output_size}) is inconsistent with training "
                f"output data size ({n_labels})"
            )

        n_training = len(training)
        n_evaluation = len(evaluation)
        batch_size = int(batch_size)
        n_batches = n_training // batch_size
        learning_rate_ratio = -eta / batch_size
        regularization_ratio = -eta * lmbda / n_training
        callbacks = list(callbacks or [])

        for epoch in range(int(epochs)):
            self.optimizer.optimize(
                training, n_batches, batch_size, learning_rate_ratio, regularization_ratio
            )
            training_correct, training_cost = self.calc_accuracy_and_cost(training)
            evaluation_correct, evaluation_cost = self.calc_accuracy_and_cost(evaluation)
            metrics = {
                "training_cost": training_cost / n_training,
                "training_accuracy": training_correct / n_training,
                "evaluation_cost": _ratio(evaluation_cost, n_evaluation),
                "evaluation_accuracy": _ratio(evaluation_correct, n_evaluation),
            }
            self.history.append(**metrics)
            metrics.update(
                training_correct=training_correct,
                training_total=n_training,
                evaluation_correct=evaluation_correct,
                evaluation_total=n_evaluation,
            )
            _emit_epoch(callbacks, epoch, metrics)
        return self.history

    def update_parameters(
        self,
        batch: DataLabelSet,
        learning_rate_ratio: float,
        regularization_ratio: float,
    ) -> None:
        """Sum the per-example gradients of ``batch`` and apply one update per layer."""

        nabla_b = [np.zeros_like(layer.bias) for layer in self._layers]
        nabla_w = [np.zeros_like(layer.weight) for layer in self._layers]
        for x, y in batch:
            delta_nabla_b, delta_nabla_w = self.back_propagate(x, y)
            for idx in range(len(self._layers)):
                nabla_b[idx] += delta_nabla_b[idx]
                nabla_w[idx] += delta_nabla_w[idx]
        for layer, nb, nw in zip(self._layers, nabla_b, nabla_w):
            layer.update_bias_weight(nb, nw, learning_rate_ratio, regularization_ratio)

    def back_propagate(self, x: Array, y: Array) -> Tuple[List[Array], List[Array]]:
        """Return the per-layer bias and weight gradients for a single example."""

        activations = [as_vector(x)]
        zs: List[Array] = []
        for layer in self._layers:
            a, z = layer.feed_forward_with_z(activations[-1])
            zs.append(z)
            activations.append(a)

        delta = self.cost_function.calculate_derivative(activations[-1], as_vector(y))
        n_layers = len(self._layers)
        delta_nabla_b: List[Array] = [None] * n_layers  # type: ignore[list-item]
        delta_nabla_w: List[Array] = [None] * n_layers  # type: ignore[list-item]
        for idx in reversed(range(n_layers)):
            delta_nabla_b[idx], delta_nabla_w[idx], delta = self._layers[idx].feed_backward(
                activations[idx], zs[idx], delta
            )
        return delta_nabla_b, delta_nabla_w

    def __repr__(self) -> str:
        sizes = [layer.size for layer in self._layers]
        return (
            f"Network(input_size={self._input_size}, layers={sizes}, "
            f"cost={self.cost_function.name!r}, optimizer={self.optimizer.name!r})"
        )


def _ratio(value: float, count: int) -> float:
    return value / count if count else float("nan")


def _emit_epoch(callbacks: Sequence[object], epoch: int, metrics: Mapping[str, float]) -> None:
    for callback in callbacks:
        if hasattr(callback, "on_epoch"):
            callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
        elif callable(callback):
            callback(epoch, metrics)


__all__ = ["DEFAULT_SEED", "Network"]
