import numpy as np
import pytest

from fcnet.core.builder import NetworkBuilder
from fcnet.core.types import NetworkState


def _network(cost="quadratic", sizes=(3, 2), input_size=4, **kwargs):
    network = NetworkBuilder().set_input_size(input_size).set_cost_function(cost).build(**kwargs)
    for size in sizes:
        network.add_layer(NetworkBuilder.create_layer(size, "logistic"))
    return network


def _parameters(network):
    return [(layer.bias.copy(), layer.weight.copy()) for layer in network.layers]


def _example(x, label_index, n_classes=2):
    return np.asarray(x, dtype=float), np.eye(n_classes)[label_index]


def test_add_layer_chains_and_respects_shape_invariant():
    network = NetworkBuilder().set_input_size(4).set_cost_function("quadratic").build()
    returned = network.add_layer(NetworkBuilder.create_layer(3, "logistic")).add_layer(
        NetworkBuilder.create_layer(2, "softmax")
    )
    assert returned is network
    assert network.number_of_layers == 2
    assert network.layers[0].weight.shape == (3, 4)
    assert network.layers[1].weight.shape == (2, 3)
    assert network.output_size == 2


def test_add_layer_copies_the_given_layer():
    network = NetworkBuilder().set_input_size(4).set_cost_function("quadratic").build()
    layer = NetworkBuilder.create_layer(3, "logistic")
    network.add_layer(layer)
    assert not layer.is_initialized
    assert network.layers[0] is not layer


def test_add_preinitialized_layer_checks_columns():
    network = NetworkBuilder().set_input_size(4).set_cost_function("quadratic").build()
    layer = NetworkBuilder.create_layer(2, "logistic")
    layer.initialize_from(np.zeros(2), np.zeros((2, 5)))
    with pytest.raises(ValueError, match="expects 5 inputs"):
        network.add_layer(layer, initialize=False)
    with pytest.raises(RuntimeError):
        network.add_layer(NetworkBuilder.create_layer(2, "logistic"), initialize=False)


def test_state_machine():
    network = NetworkBuilder().set_input_size(2).set_cost_function("quadratic").build()
    assert network.state is NetworkState.UNTRAINED
    network.add_layer(NetworkBuilder.create_layer(2, "logistic"))
    assert network.state is NetworkState.ASSEMBLED
    data = [_example([0.1, 0.9], 1), _example([0.9, 0.1], 0)]
    network.train(data, data, epochs=1, batch_size=1, eta=0.5, lmbda=0.0)
    assert network.state is NetworkState.TRAINED


def test_predict_argmax_and_scalar_cast():
    network = _network()
    x = np.array([0.1, 0.2, 0.3, 0.4])
    output = network.feed_forward(x)
    assert network.predict(x) == int(np.argmax(output))

    scalar = _network(sizes=(3, 1), prediction_type=float)
    prediction = scalar.predict(x)
    assert isinstance(prediction, float)
    assert 0.0 < prediction < 1.0


def test_prediction_to_output_expands_scalar_labels():
    network = _network(sizes=(3,))
    assert np.array_equal(network.prediction_to_output(np.array([2.0])), [0.0, 0.0, 1.0])
    vector = np.array([0.0, 1.0, 0.0])
    assert np.array_equal(network.prediction_to_output(vector), vector)
    with pytest.raises(ValueError):
        network.prediction_to_output(np.array([3.0]))


def test_calc_accuracy_and_cost_scalar_and_vector_targets_agree():
    network = _network(cost="crossentropy")
    x = np.array([0.5, 0.1, 0.9, 0.3])
    label = network.predict(x)
    vector_data = [(x, np.eye(2)[label])]
    scalar_data = [(x, np.array([float(label)]))]
    assert network.calc_accuracy_and_cost(vector_data) == network.calc_accuracy_and_cost(
        scalar_data
    )
    correct, _ = network.calc_accuracy_and_cost(vector_data)
    assert correct == 1


def test_calc_accuracy_and_cost_adds_l2_term():
    network = _network()
    data = [_example([0.1, 0.2, 0.3, 0.4], 0)]
    _, base = network.calc_accuracy_and_cost(data)
    _, regularized = network.calc_accuracy_and_cost(data, lmbda=2.0)
    frobenius = sum(np.linalg.norm(layer.weight) ** 2 for layer in network.layers)
    assert regularized - base == pytest.approx(frobenius)


def test_single_example_epoch_changes_every_parameter():
    network = _network(cost="quadratic")
    before = _parameters(network)
    data = [_example([0.1, 0.2, 0.3, 0.4], 1)]
    network.train(data, data, epochs=1, batch_size=1, eta=0.5, lmbda=0.0)
    after = _parameters(network)
    for (b0, w0), (b1, w1) in zip(before, after):
        assert np.all(b0 != b1)
        assert np.all(w0 != w1)


@pytest.mark.parametrize(
    "example,match",
    [
        ((np.zeros(5), np.eye(2)[0]), "Input layer size"),
        ((np.zeros(4), np.zeros(3)), "Output layer size"),
    ],
)
def test_train_rejects_shape_mismatch_before_updating(example, match):
    network = _network()
    before = _parameters(network)
    with pytest.raises(ValueError, match=match):
        network.train([example], [example], epochs=1, batch_size=1, eta=0.5, lmbda=0.0)
    for (b0, w0), (b1, w1) in zip(before, _parameters(network)):
        assert np.array_equal(b0, b1)
        assert np.array_equal(w0, w1)
    assert len(network.history) == 0


def test_train_argument_validation():
    empty = NetworkBuilder().set_input_size(4).set_cost_function("quadratic").build()
    data = [_example([0.1, 0.2, 0.3, 0.4], 0)]
    with pytest.raises(ValueError, match="without layers"):
        empty.train(data, data, 1, 1, 0.1, 0.0)
    network = _network()
    with pytest.raises(ValueError, match="empty"):
        network.train([], data, 1, 1, 0.1, 0.0)
    with pytest.raises(ValueError, match="Batch size"):
        network.train(data, data, 1, 0, 0.1, 0.0)


def test_train_passes_scaled_ratios_to_optimizer(monkeypatch):
    network = _network()
    calls = []
    monkeypatch.setattr(
        network.optimizer, "optimize", lambda *args: calls.append(args[1:])
    )
    data = [_example([0.1, 0.2, 0.3, 0.4], i % 2) for i in range(5)]
    network.train(data, data, epochs=2, batch_size=2, eta=0.5, lmbda=2.0)
    assert len(calls) == 2
    n_batches, batch_size, learning_rate_ratio, regularization_ratio = calls[0]
    assert n_batches == 2
    assert batch_size == 2
    assert learning_rate_ratio == pytest.approx(-0.25)
    assert regularization_ratio == pytest.approx(-0.5 * 2.0 / 5)


def test_history_and_callbacks_are_recorded_per_epoch():
    network = _network(cost="crossentropy")
    rng = np.random.default_rng(3)
    training = [_example(rng.uniform(size=4), i % 2) for i in range(12)]
    evaluation = [_example(rng.uniform(size=4), i % 2) for i in range(6)]
    seen = []
    network.train(
        training,
        evaluation,
        epochs=3,
        batch_size=4,
        eta=0.3,
        lmbda=0.1,
        callbacks=[lambda epoch, metrics: seen.append((epoch, dict(metrics)))],
    )
    history = network.history
    assert len(history) == 3
    assert len(history.evaluation_accuracy) == 3
    assert all(0.0 <= acc <= 1.0 for acc in history.training_accuracy)
    assert [epoch for epoch, _ in seen] == [0, 1, 2]
    assert seen[-1][1]["evaluation_total"] == 6
    assert seen[-1][1]["training_cost"] == pytest.approx(history.training_cost[-1])


def test_empty_evaluation_set_reports_nan():
    network = _network()
    data = [_example([0.1, 0.2, 0.3, 0.4], 0)]
    network.train(data, [], epochs=1, batch_size=1, eta=0.1, lmbda=0.0)
    assert np.isnan(network.history.evaluation_cost[0])
    assert np.isnan(network.history.evaluation_accuracy[0])


def test_describe_lists_layers():
    empty = NetworkBuilder().set_input_size(2).set_cost_function("quadratic").build()
    assert "empty" in empty.describe()
    text = _network().describe()
    assert "Input : 4 neurons" in text
    assert "0 : 3 neurons" in text
    assert "Output : 2 neurons" in text
