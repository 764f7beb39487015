"""Forward evaluation and backpropagation for a single sample."""

from __future__ import annotations

from typing import List

import numpy as np

from .errors import InvalidArgumentError, NullArgumentError
from .network import NetworkModel
from .params import ParameterVector
from .types import Array, Response


def _vector(values, size: int, what: str) -> Array:
    if values is None:
        raise NullArgumentError(f"{what} cannot be None")
    arr = np.asarray(values, dtype=np.float64)
    if arr.ndim != 1 or arr.shape[0] != size:
        raise InvalidArgumentError(
            f"{what} must hold {size} values, got shape {arr.shape}"
        )
    return arr


class Evaluator:
    """Stateless forward/backward engine.

    ``parameters`` may be ``None`` to evaluate the model with its own values;
    otherwise it must have exactly the model's shape. The optimizer passes
    candidate parameters this way without writing them into the model.
    """

    @staticmethod
    def _resolve(model: NetworkModel, parameters: ParameterVector | None) -> ParameterVector:
        if model is None:
            raise NullArgumentError("model cannot be None")
        if parameters is None:
            return model.parameters()
        if parameters.shape != model.shape:
            raise InvalidArgumentError(
                f"parameters {parameters.shape.signature} do not fit network {model.signature}"
            )
        return parameters

    def forward(
        self,
        model: NetworkModel,
        parameters: ParameterVector | None,
        input: Array,
    ) -> Response:
        params = self._resolve(model, parameters)
        x = _vector(input, model.num_inputs, "input")
        act = model.activation
        sums: List[Array] = []
        outputs: List[Array] = []
        prev = x
        for weights, biases in zip(params.weights, params.biases):
            z = biases + weights @ prev
            prev = act.value(z)
            sums.append(z)
            outputs.append(prev)
        return Response(tuple(sums), tuple(outputs))

    def backward(
        self,
        model: NetworkModel,
        parameters: ParameterVector | None,
        input: Array,
        targets: Array,
        response: Response,
    ) -> ParameterVector:
        """Gradient of the cross-entropy error for one sample.

        The output delta is taken as ``output - target``. That is the exact
        derivative only for a sigmoid output layer paired with cross-entropy;
        with tanh the result is a heuristic direction, not the true gradient.
        """

        params = self._resolve(model, parameters)
        x = _vector(input, model.num_inputs, "input")
        t = _vector(targets, model.num_outputs, "targets")
        if response is None:
            raise NullArgumentError("response cannot be None")
        if len(response.outputs) != model.num_layers:
            raise InvalidArgumentError(
                f"response covers {len(response.outputs)} layers, network has {model.num_layers}"
            )

        grad = ParameterVector(model.shape)
        grad_w = grad.weights
        grad_b = grad.biases
        act = model.activation

        delta = response.outputs[-1] - t
        for layer in range(model.num_layers - 1, -1, -1):
            prev = x if layer == 0 else response.outputs[layer - 1]
            grad_w[layer][...] = np.outer(delta, prev)
            grad_b[layer][...] = delta
            if layer > 0:
                back = params.weights[layer].T @ delta
                delta = act.derivative(response.input_sums[layer - 1]) * back
        return grad

    def output(self, model: NetworkModel, input: Array) -> Array:
        """Output-layer activations using the model's own parameters."""

        return np.array(self.forward(model, None, input).result)


__all__ = ["Evaluator"]
