"""Feed-forward network model: fixed structure, mutable parameter values."""

from __future__ import annotations

from functools import cached_property
from pathlib import Path
from typing import Mapping, Sequence, Tuple

import numpy as np

from . import activations as _activations
from .activations import SIGMOID, Activation
from .errors import IndexRangeError, InvalidArgumentError, require
from .init import ZERO, Initializer
from .params import ParameterVector
from .types import Array, NetworkShape


class NetworkModel:
    """Fully-connected network with one input, >=1 hidden and one output layer.

    Layers are numbered from the first hidden layer (``0``) to the output
    layer (``num_hidden_layers``). Weight ``(layer, from_neuron, to_neuron)``
    connects neuron ``from_neuron`` of layer ``layer - 1`` (the input layer
    when ``layer == 0``) to neuron ``to_neuron`` of ``layer``.
    """

    def __init__(
        self,
        num_inputs: int,
        hidden_layer_sizes: Sequence[int],
        num_outputs: int,
        initializer: Initializer = ZERO,
        activation: Activation = SIGMOID,
        *,
        name: str | None = None,
    ) -> None:
        require(hidden_layer_sizes, "hidden_layer_sizes")
        require(initializer, "initializer")
        self._shape = NetworkShape(num_inputs, tuple(hidden_layer_sizes), num_outputs)
        self.activation = activation
        self.name = name
        self._params = ParameterVector(self._shape)
        self._initialise(initializer)

    def _initialise(self, initializer: Initializer) -> None:
        params = self._params
        for layer in range(self._shape.num_layers):
            for to_neuron in range(self._shape.layer_size(layer)):
                for from_neuron in range(self._shape.layer_size(layer - 1)):
                    params.set_weight(
                        layer,
                        from_neuron,
                        to_neuron,
                        initializer.supply_weight(layer, from_neuron, to_neuron),
                    )
                params.set_bias(layer, to_neuron, initializer.supply_bias(layer, to_neuron))

    def copy(self) -> "NetworkModel":
        """Deep copy of the parameter tables; the activation is shared."""

        clone = object.__new__(NetworkModel)
        clone._shape = self._shape
        clone._activation = self._activation
        clone._name = self._name
        clone._params = self._params.copy()
        return clone

    __copy__ = copy

    def __deepcopy__(self, memo) -> "NetworkModel":
        return self.copy()

    # ------------------------------------------------------------------
    # Structure

    @property
    def shape(self) -> NetworkShape:
        return self._shape

    @property
    def num_inputs(self) -> int:
        return self._shape.num_inputs

    @property
    def hidden_layer_sizes(self) -> Tuple[int, ...]:
        return self._shape.hidden_layer_sizes

    @property
    def num_hidden_layers(self) -> int:
        return self._shape.num_hidden_layers

    def hidden_layer_size(self, index: int) -> int:
        if index < 0 or index >= self.num_hidden_layers:
            raise IndexRangeError(f"hidden layer index {index} is out of range")
        return self._shape.hidden_layer_sizes[index]

    @property
    def num_outputs(self) -> int:
        return self._shape.num_outputs

    @property
    def num_layers(self) -> int:
        return self._shape.num_layers

    def layer_size(self, layer: int) -> int:
        return self._shape.layer_size(layer)

    @property
    def parameter_count(self) -> int:
        return self._shape.parameter_count

    @cached_property
    def signature(self) -> str:
        return self._shape.signature

    # ------------------------------------------------------------------
    # Mutable attributes

    @property
    def activation(self) -> Activation:
        return self._activation

    @activation.setter
    def activation(self, value: Activation) -> None:
        self._activation = require(value, "activation")

    @property
    def name(self) -> str | None:
        return self._name

    @name.setter
    def name(self, value: str | None) -> None:
        self._name = None if value is None else str(value)

    def get_weight(self, layer: int, from_neuron: int, to_neuron: int) -> float:
        return self._params.get_weight(layer, from_neuron, to_neuron)

    def set_weight(self, layer: int, from_neuron: int, to_neuron: int, value: float) -> None:
        self._params.set_weight(layer, from_neuron, to_neuron, value)

    def set_weights(self, value: float) -> None:
        for table in self._params.weights:
            table.fill(float(value))

    def get_bias(self, layer: int, neuron: int) -> float:
        return self._params.get_bias(layer, neuron)

    def set_bias(self, layer: int, neuron: int, value: float) -> None:
        self._params.set_bias(layer, neuron, value)

    def set_biases(self, value: float) -> None:
        for table in self._params.biases:
            table.fill(float(value))

    def parameters(self) -> ParameterVector:
        """Detached copy of the current weights and biases."""

        return self._params.copy()

    def load_parameters(self, params: ParameterVector) -> None:
        require(params, "params")
        if params.shape != self._shape:
            raise InvalidArgumentError(
                f"parameters of shape {params.shape.signature} do not fit network {self.signature}"
            )
        self._params = params.copy()

    # ------------------------------------------------------------------
    # Persistence

    def state_dict(self) -> Mapping[str, Array]:
        state: dict[str, Array] = {
            "structure": np.asarray(self._shape.layer_sizes, dtype=np.int64),
            "activation": np.asarray(self._activation.name),
            "name": np.asarray(self._name if self._name is not None else ""),
            "has_name": np.asarray(self._name is not None),
        }
        for idx, (weights, biases) in enumerate(zip(self._params.weights, self._params.biases)):
            state[f"W{idx}"] = weights.copy()
            state[f"b{idx}"] = biases.copy()
        return state

    def load_state_dict(self, state: Mapping[str, Array]) -> None:
        structure = tuple(int(size) for size in np.asarray(state["structure"]).ravel())
        if structure != self._shape.layer_sizes:
            raise InvalidArgumentError(
                f"state for structure {structure} does not fit network {self.signature}"
            )
        weights, biases = [], []
        for idx in range(self.num_layers):
            for key in (f"W{idx}", f"b{idx}"):
                if key not in state:
                    raise KeyError(f"Missing parameter {key} in state dict")
            weights.append(state[f"W{idx}"])
            biases.append(state[f"b{idx}"])
        self._params = ParameterVector(self._shape, weights, biases)
        if "activation" in state:
            self.activation = _activations.resolve(str(np.asarray(state["activation"])))
        if "has_name" in state:
            self.name = str(np.asarray(state["name"])) if bool(state["has_name"]) else None

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as handle:
            np.savez_compressed(handle, **self.state_dict())
        return path

    @classmethod
    def load(cls, path: str | Path) -> "NetworkModel":
        with np.load(Path(path)) as data:
            state = {key: data[key] for key in data.files}
        sizes = [int(size) for size in state["structure"]]
        network = cls(sizes[0], sizes[1:-1], sizes[-1])
        network.load_state_dict(state)
        return network

    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NetworkModel):
            return NotImplemented
        return (
            self._shape == other._shape
            and self._activation == other._activation
            and self._params == other._params
        )

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        if self._name is None:
            return self.signature
        return f"{self._name} {self.signature}"

    def __repr__(self) -> str:
        return f"NetworkModel({self}, activation={self._activation.name!r})"


__all__ = ["NetworkModel"]
