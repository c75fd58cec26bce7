import numpy as np
import pytest

from fcnet.core.builder import NetworkBuilder, format_network
from fcnet.data.synthetic import make_blobs


def _network(cost="quadratic", activations=("logistic", "logistic"), true_random=False):
    network = (
        NetworkBuilder()
        .set_input_size(4)
        .set_cost_function(cost)
        .set_is_true_random(true_random)
        .build()
    )
    for size, activation in zip((5, 3), activations):
        network.add_layer(NetworkBuilder.create_layer(size, activation))
    return network


def _parameters(network):
    return [(layer.bias.copy(), layer.weight.copy()) for layer in network.layers]


@pytest.mark.parametrize(
    "cost,activations",
    [
        ("quadratic", ("logistic", "logistic")),
        ("crossentropy", ("logistic", "logistic")),
        ("crossentropy", ("logistic", "softmax")),
    ],
)
def test_save_load_is_bit_identical(tmp_path, cost, activations):
    network = _network(cost, activations)
    if activations[-1] == "logistic":
        network.train(make_blobs(20, 4, 3, seed=1), [], 2, 5, 0.5, 0.0)
    path = tmp_path / "network.net"
    NetworkBuilder.save(network, path)
    loaded = NetworkBuilder().load(path)

    assert loaded.input_size == network.input_size
    assert loaded.cost_function is network.cost_function
    for (b1, w1), (b2, w2) in zip(_parameters(network), _parameters(loaded)):
        assert np.array_equal(b1, b2)
        assert np.array_equal(w1, w2)
    assert [layer.activation.name for layer in loaded.layers] == list(activations)
    assert format_network(loaded) == path.read_text()

    x = np.array([0.1, 0.5, 0.9, 0.3])
    assert np.array_equal(network.feed_forward(x), loaded.feed_forward(x))


def test_batch_update_equals_sum_of_example_gradients():
    network = _network("crossentropy")
    batch = make_blobs(4, 4, 3, seed=3)
    before = _parameters(network)

    summed_b = [np.zeros_like(b) for b, _ in before]
    summed_w = [np.zeros_like(w) for _, w in before]
    for x, y in batch:
        nabla_b, nabla_w = network.back_propagate(x, y)
        for idx in range(len(before)):
            summed_b[idx] += nabla_b[idx]
            summed_w[idx] += nabla_w[idx]

    network.update_parameters(batch, 1.0, 0.0)
    for idx, (bias, weight) in enumerate(before):
        assert np.allclose(network.layers[idx].bias, bias + summed_b[idx])
        assert np.allclose(network.layers[idx].weight, weight + summed_w[idx])


def test_fixed_seed_runs_are_reproducible():
    histories = []
    parameters = []
    for _ in range(2):
        network = _network("crossentropy")
        history = network.train(
            make_blobs(30, 4, 3, seed=2), make_blobs(10, 4, 3, seed=9), 3, 4, 0.5, 0.1
        )
        histories.append(history)
        parameters.append(_parameters(network))

    assert histories[0] == histories[1]
    for (b1, w1), (b2, w2) in zip(*parameters):
        assert np.array_equal(b1, b2)
        assert np.array_equal(w1, w2)


def test_true_random_networks_differ():
    first = _network(true_random=True)
    second = _network(true_random=True)
    assert not np.array_equal(first.layers[0].weight, second.layers[0].weight)


def test_training_improves_separable_data():
    training = make_blobs(90, 4, 3, spread=0.05, seed=4)
    network = _network("crossentropy")
    baseline, _ = network.calc_accuracy_and_cost(training)
    network.train(training, [], 20, 10, 1.0, 0.0)
    correct, _ = network.calc_accuracy_and_cost(training)
    assert correct > baseline or correct == len(training)
