"""Core typing contracts for scgnet."""

from __future__ import annotations

import operator
from dataclasses import dataclass, field
from typing import Sequence, Tuple

import numpy as np

from .errors import IndexRangeError, InvalidArgumentError, NullArgumentError

Array = np.ndarray


def _positive(value, what: str) -> int:
    try:
        size = operator.index(value)
    except TypeError as exc:
        raise InvalidArgumentError(f"{what} must be an integer, got {value!r}") from exc
    if size <= 0:
        raise InvalidArgumentError(f"{what} must be positive, got {size}")
    return size


@dataclass(frozen=True)
class NetworkShape:
    """Structural attributes shared by networks and parameter vectors."""

    num_inputs: int
    hidden_layer_sizes: Tuple[int, ...]
    num_outputs: int

    def __post_init__(self) -> None:
        if self.hidden_layer_sizes is None:
            raise NullArgumentError("hidden_layer_sizes cannot be None")
        hidden = tuple(
            _positive(size, f"hidden layer {idx} size")
            for idx, size in enumerate(self.hidden_layer_sizes)
        )
        if not hidden:
            raise InvalidArgumentError("at least one hidden layer is required")
        object.__setattr__(self, "num_inputs", _positive(self.num_inputs, "num_inputs"))
        object.__setattr__(self, "num_outputs", _positive(self.num_outputs, "num_outputs"))
        object.__setattr__(self, "hidden_layer_sizes", hidden)

    @property
    def num_hidden_layers(self) -> int:
        return len(self.hidden_layer_sizes)

    @property
    def num_layers(self) -> int:
        """Number of weighted layers (hidden layers plus the output layer)."""

        return len(self.hidden_layer_sizes) + 1

    @property
    def layer_sizes(self) -> Tuple[int, ...]:
        """Neuron counts from the input layer to the output layer."""

        return (self.num_inputs, *self.hidden_layer_sizes, self.num_outputs)

    def layer_size(self, layer: int) -> int:
        """Neuron count of weighted layer ``layer``; ``-1`` is the input layer."""

        if layer < -1 or layer >= self.num_layers:
            raise IndexRangeError(f"layer index {layer} is out of range")
        return self.layer_sizes[layer + 1]

    @property
    def parameter_count(self) -> int:
        sizes = self.layer_sizes
        return sum(sizes[i] * sizes[i + 1] + sizes[i + 1] for i in range(len(sizes) - 1))

    @property
    def signature(self) -> str:
        return "(" + ", ".join(str(size) for size in self.layer_sizes) + ")"

    def check_weight_index(self, layer: int, from_neuron: int, to_neuron: int) -> None:
        if layer < 0 or layer >= self.num_layers:
            raise IndexRangeError(f"layer index {layer} is out of range")
        if from_neuron < 0 or from_neuron >= self.layer_size(layer - 1):
            raise IndexRangeError(f"from-neuron index {from_neuron} is out of range")
        if to_neuron < 0 or to_neuron >= self.layer_size(layer):
            raise IndexRangeError(f"to-neuron index {to_neuron} is out of range")

    def check_bias_index(self, layer: int, neuron: int) -> None:
        if layer < 0 or layer >= self.num_layers:
            raise IndexRangeError(f"layer index {layer} is out of range")
        if neuron < 0 or neuron >= self.layer_size(layer):
            raise IndexRangeError(f"neuron index {neuron} is out of range")


def _frozen(arrays: Sequence[Array]) -> Tuple[Array, ...]:
    out = []
    for arr in arrays:
        arr = np.array(arr, dtype=np.float64)
        arr.setflags(write=False)
        out.append(arr)
    return tuple(out)


@dataclass(frozen=True)
class Response:
    """Pre-activation sums and activations of every layer for one input."""

    input_sums: Tuple[Array, ...]
    outputs: Tuple[Array, ...]

    def __post_init__(self) -> None:
        if self.input_sums is None or self.outputs is None:
            raise NullArgumentError("input sums and outputs cannot be None")
        if len(self.input_sums) != len(self.outputs):
            raise InvalidArgumentError("input sums and outputs must cover the same layers")
        object.__setattr__(self, "input_sums", _frozen(self.input_sums))
        object.__setattr__(self, "outputs", _frozen(self.outputs))

    def input_sum(self, layer: int, neuron: int) -> float:
        return float(self._lookup(self.input_sums, layer, neuron))

    def output(self, layer: int, neuron: int) -> float:
        return float(self._lookup(self.outputs, layer, neuron))

    @property
    def result(self) -> Array:
        """Activations of the output layer."""

        return self.outputs[-1]

    @staticmethod
    def _lookup(table: Tuple[Array, ...], layer: int, neuron: int):
        if layer < 0 or layer >= len(table):
            raise IndexRangeError(f"layer index {layer} is out of range")
        if neuron < 0 or neuron >= table[layer].shape[0]:
            raise IndexRangeError(f"neuron index {neuron} is out of range")
        return table[layer][neuron]


@dataclass(frozen=True)
class TrainerEvent:
    """Training progress at a point in time."""

    epoch: int
    performance: float = field(default=float("nan"))

    def __post_init__(self) -> None:
        if self.epoch < 0:
            raise InvalidArgumentError("epoch cannot be negative")
        object.__setattr__(self, "epoch", int(self.epoch))
        object.__setattr__(self, "performance", float(self.performance))


__all__ = ["Array", "NetworkShape", "Response", "TrainerEvent"]
