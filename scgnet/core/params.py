"""Layered parameter vectors used as optimizer state and gradients."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, List, Sequence

import numpy as np

from .errors import InvalidArgumentError, require
from .types import Array, NetworkShape

if TYPE_CHECKING:  # pragma: no cover
    from .network import NetworkModel


class ParameterVector:
    """Weights and biases with the layout of a network, detached from it.

    ``weights[l]`` has shape ``(layer_size(l), layer_size(l - 1))`` and is
    indexed ``[to, from]``; ``biases[l]`` has ``layer_size(l)`` entries.
    Arithmetic is in place over the flattened weight-and-bias space and
    returns ``self`` so calls can be chained.
    """

    __slots__ = ("_shape", "_weights", "_biases")

    def __init__(
        self,
        shape: NetworkShape,
        weights: Sequence[Array] | None = None,
        biases: Sequence[Array] | None = None,
    ) -> None:
        self._shape = require(shape, "shape")
        sizes = shape.layer_sizes
        if weights is None:
            self._weights = [np.zeros((sizes[i + 1], sizes[i])) for i in range(shape.num_layers)]
        else:
            self._weights = self._checked(weights, [(sizes[i + 1], sizes[i]) for i in range(shape.num_layers)], "weights")
        if biases is None:
            self._biases = [np.zeros(sizes[i + 1]) for i in range(shape.num_layers)]
        else:
            self._biases = self._checked(biases, [(sizes[i + 1],) for i in range(shape.num_layers)], "biases")

    @staticmethod
    def _checked(tables: Sequence[Array], shapes: List[tuple], what: str) -> List[Array]:
        if len(tables) != len(shapes):
            raise InvalidArgumentError(f"expected {len(shapes)} {what} tables, got {len(tables)}")
        out = []
        for idx, (table, expected) in enumerate(zip(tables, shapes)):
            arr = np.array(table, dtype=np.float64)
            if arr.shape != expected:
                raise InvalidArgumentError(
                    f"{what} table {idx} has shape {arr.shape}, expected {expected}"
                )
            out.append(arr)
        return out

    # ------------------------------------------------------------------
    # Construction

    @classmethod
    def zeros(cls, shape: NetworkShape) -> "ParameterVector":
        return cls(shape)

    @classmethod
    def of(cls, num_inputs: int, hidden_layer_sizes: Sequence[int], num_outputs: int) -> "ParameterVector":
        return cls(NetworkShape(num_inputs, hidden_layer_sizes, num_outputs))

    @classmethod
    def from_network(cls, network: "NetworkModel") -> "ParameterVector":
        """Snapshot the current values of ``network``."""

        require(network, "network")
        return network.parameters()

    def copy(self) -> "ParameterVector":
        return ParameterVector(self._shape, self._weights, self._biases)

    def apply_to(self, network: "NetworkModel") -> None:
        """Write these values into ``network``; its shape must match."""

        require(network, "network")
        network.load_parameters(self)

    # ------------------------------------------------------------------
    # Structure and element access

    @property
    def shape(self) -> NetworkShape:
        return self._shape

    @property
    def weights(self) -> tuple:
        return tuple(self._weights)

    @property
    def biases(self) -> tuple:
        return tuple(self._biases)

    def compatible(self, other: "ParameterVector") -> bool:
        return self._shape == other.shape

    def get_weight(self, layer: int, from_neuron: int, to_neuron: int) -> float:
        self._shape.check_weight_index(layer, from_neuron, to_neuron)
        return float(self._weights[layer][to_neuron, from_neuron])

    def set_weight(self, layer: int, from_neuron: int, to_neuron: int, value: float) -> None:
        self._shape.check_weight_index(layer, from_neuron, to_neuron)
        self._weights[layer][to_neuron, from_neuron] = value

    def get_bias(self, layer: int, neuron: int) -> float:
        self._shape.check_bias_index(layer, neuron)
        return float(self._biases[layer][neuron])

    def set_bias(self, layer: int, neuron: int, value: float) -> None:
        self._shape.check_bias_index(layer, neuron)
        self._biases[layer][neuron] = value

    def flatten(self) -> Array:
        """All weights then all biases as one 1-D array (a copy)."""

        return np.concatenate([w.ravel() for w in self._weights] + list(self._biases))

    # ------------------------------------------------------------------
    # Algebra

    def _operand(self, other: "ParameterVector", op: str) -> "ParameterVector":
        require(other, "operand")
        if not isinstance(other, ParameterVector):
            raise InvalidArgumentError(f"cannot {op} {type(other).__name__}")
        if not self.compatible(other):
            raise InvalidArgumentError(
                f"cannot {op} parameters of shape {other.shape.signature} "
                f"and {self._shape.signature}"
            )
        return other

    def add(self, other: "ParameterVector") -> "ParameterVector":
        other = self._operand(other, "add")
        for mine, theirs in zip(self._weights + self._biases, other._weights + other._biases):
            mine += theirs
        return self

    def subtract(self, other: "ParameterVector") -> "ParameterVector":
        other = self._operand(other, "subtract")
        for mine, theirs in zip(self._weights + self._biases, other._weights + other._biases):
            mine -= theirs
        return self

    def multiply(self, factor: float) -> "ParameterVector":
        factor = float(require(factor, "factor"))
        for table in self._weights + self._biases:
            table *= factor
        return self

    def dot(self, other: "ParameterVector") -> float:
        other = self._operand(other, "dot")
        total = 0.0
        for mine, theirs in zip(self._weights + self._biases, other._weights + other._biases):
            total += float(np.vdot(mine, theirs))
        return total

    def norm(self) -> float:
        return math.sqrt(self.dot(self))

    def set_all(self, value: float) -> "ParameterVector":
        value = float(require(value, "value"))
        for table in self._weights + self._biases:
            table.fill(value)
        return self

    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterVector):
            return NotImplemented
        if not self.compatible(other):
            return False
        return all(
            np.array_equal(mine, theirs)
            for mine, theirs in zip(self._weights + self._biases, other._weights + other._biases)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ParameterVector{self._shape.signature}"


__all__ = ["ParameterVector"]
