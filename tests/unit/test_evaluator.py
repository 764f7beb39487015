import numpy as np
import pytest

from scgnet.core.activations import SIGMOID, TANH, sigmoid
from scgnet.core.errors import IndexRangeError, InvalidArgumentError, NullArgumentError
from scgnet.core.evaluator import Evaluator
from scgnet.core.init import ConstValueInitializer, random_range
from scgnet.core.network import NetworkModel
from scgnet.core.params import ParameterVector
from scgnet.training.losses import error


@pytest.mark.parametrize(
    "structure",
    [(1, [1], 1), (3, [2, 3], 1), (4, [5, 2, 3], 2)],
)
def test_zero_network_outputs_half_everywhere(structure):
    net = NetworkModel(*structure)
    rng = np.random.default_rng(0)
    response = Evaluator().forward(net, None, rng.normal(size=structure[0]) * 10)
    for layer, size in enumerate(list(structure[1]) + [structure[2]]):
        for neuron in range(size):
            assert response.input_sum(layer, neuron) == 0.0
            assert response.output(layer, neuron) == pytest.approx(0.5)


def test_forward_matches_manual_computation():
    net = NetworkModel(2, [2], 1, ConstValueInitializer(0.5, 0.1))
    net.set_weight(0, 1, 0, -1.0)
    x = np.array([0.2, 0.8])
    response = Evaluator().forward(net, None, x)
    z0 = 0.1 + 0.5 * 0.2 - 1.0 * 0.8
    z1 = 0.1 + 0.5 * 0.2 + 0.5 * 0.8
    assert response.input_sum(0, 0) == pytest.approx(z0)
    assert response.input_sum(0, 1) == pytest.approx(z1)
    h = sigmoid(np.array([z0, z1]))
    z_out = 0.1 + 0.5 * h.sum()
    assert response.input_sum(1, 0) == pytest.approx(z_out)
    assert response.result[0] == pytest.approx(float(sigmoid(np.array(z_out))))


def test_forward_uses_given_parameters_instead_of_model_values():
    net = NetworkModel(2, [2], 1)
    params = net.parameters().set_all(1.0)
    evaluator = Evaluator()
    own = evaluator.forward(net, None, [1.0, 1.0])
    other = evaluator.forward(net, params, [1.0, 1.0])
    assert own.result[0] == pytest.approx(0.5)
    assert other.result[0] > 0.9
    assert net.get_weight(0, 0, 0) == 0.0


def test_response_is_read_only():
    response = Evaluator().forward(NetworkModel(2, [2], 1), None, [0.0, 1.0])
    with pytest.raises(ValueError):
        response.outputs[0][0] = 1.0
    with pytest.raises(IndexRangeError):
        response.output(2, 0)
    with pytest.raises(IndexRangeError):
        response.input_sum(0, 2)


def test_forward_argument_checks():
    net = NetworkModel(2, [2], 1)
    evaluator = Evaluator()
    with pytest.raises(InvalidArgumentError):
        evaluator.forward(net, None, [1.0, 2.0, 3.0])
    with pytest.raises(NullArgumentError):
        evaluator.forward(net, None, None)
    with pytest.raises(NullArgumentError):
        evaluator.forward(None, None, [1.0, 2.0])
    with pytest.raises(InvalidArgumentError):
        evaluator.forward(net, ParameterVector.of(2, [3], 1), [1.0, 2.0])


def test_backward_argument_checks():
    net = NetworkModel(2, [2], 1)
    evaluator = Evaluator()
    response = evaluator.forward(net, None, [1.0, 0.0])
    with pytest.raises(InvalidArgumentError):
        evaluator.backward(net, None, [1.0, 0.0], [1.0, 0.0], response)
    with pytest.raises(NullArgumentError):
        evaluator.backward(net, None, [1.0, 0.0], None, response)
    with pytest.raises(NullArgumentError):
        evaluator.backward(net, None, [1.0, 0.0], [1.0], None)
    other = evaluator.forward(NetworkModel(2, [2, 2], 1), None, [1.0, 0.0])
    with pytest.raises(InvalidArgumentError):
        evaluator.backward(net, None, [1.0, 0.0], [1.0], other)


def test_output_delta_is_output_minus_target():
    net = NetworkModel(2, [3], 1, random_range(-1, 1, -1, 1, seed=4))
    evaluator = Evaluator()
    x, t = np.array([0.3, 0.9]), np.array([0.25])
    response = evaluator.forward(net, None, x)
    grad = evaluator.backward(net, None, x, t, response)
    delta = response.result[0] - t[0]
    assert grad.get_bias(1, 0) == pytest.approx(delta)
    for j in range(3):
        assert grad.get_weight(1, j, 0) == pytest.approx(delta * response.output(0, j))


def _loss(net, params, x, t):
    return error(Evaluator().forward(net, params, x).result, t)


def test_sigmoid_gradient_matches_finite_differences():
    net = NetworkModel(3, [4, 2], 1, random_range(-1, 1, -1, 1, seed=7), SIGMOID)
    x, t = np.array([0.1, 0.7, 0.4]), np.array([0.8])
    evaluator = Evaluator()
    params = net.parameters()
    grad = evaluator.backward(net, params, x, t, evaluator.forward(net, params, x))

    h = 1e-6
    numeric = []
    for layer in range(net.num_layers):
        for to in range(net.layer_size(layer)):
            for frm in range(net.layer_size(layer - 1)):
                plus, minus = params.copy(), params.copy()
                plus.set_weight(layer, frm, to, params.get_weight(layer, frm, to) + h)
                minus.set_weight(layer, frm, to, params.get_weight(layer, frm, to) - h)
                numeric.append(((layer, frm, to), (_loss(net, plus, x, t) - _loss(net, minus, x, t)) / (2 * h)))
    for (layer, frm, to), value in numeric:
        assert grad.get_weight(layer, frm, to) == pytest.approx(value, rel=1e-4, abs=1e-8)

    for layer in range(net.num_layers):
        for neuron in range(net.layer_size(layer)):
            plus, minus = params.copy(), params.copy()
            plus.set_bias(layer, neuron, params.get_bias(layer, neuron) + h)
            minus.set_bias(layer, neuron, params.get_bias(layer, neuron) - h)
            value = (_loss(net, plus, x, t) - _loss(net, minus, x, t)) / (2 * h)
            assert grad.get_bias(layer, neuron) == pytest.approx(value, rel=1e-4, abs=1e-8)


def test_tanh_network_uses_tanh_derivative_in_hidden_layers():
    net = NetworkModel(1, [1], 1, ConstValueInitializer(0.5, 0.0), TANH)
    evaluator = Evaluator()
    x, t = np.array([1.0]), np.array([0.0])
    response = evaluator.forward(net, None, x)
    grad = evaluator.backward(net, None, x, t, response)
    out_delta = response.result[0] - t[0]
    hidden_delta = (1 - np.tanh(0.5) ** 2) * 0.5 * out_delta
    assert grad.get_bias(0, 0) == pytest.approx(hidden_delta)
    assert grad.get_weight(0, 0, 0) == pytest.approx(hidden_delta * 1.0)


def test_output_returns_copy_of_result():
    net = NetworkModel(2, [2], 3)
    out = Evaluator().output(net, [0.0, 0.0])
    out[0] = 7.0
    np.testing.assert_allclose(Evaluator().output(net, [0.0, 0.0]), [0.5, 0.5, 0.5])
