"""Parameter initialisers consulted once per weight and bias at construction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Protocol

import numpy as np

from .errors import InvalidArgumentError, require

WeightSupplier = Callable[[int, int, int], float]
BiasSupplier = Callable[[int, int], float]


class Initializer(Protocol):
    """Protocol implemented by parameter initialisers."""

    def supply_weight(self, layer: int, from_neuron: int, to_neuron: int) -> float:
        """Return the initial weight between ``from_neuron`` and ``to_neuron``."""

    def supply_bias(self, layer: int, neuron: int) -> float:
        """Return the initial bias of ``neuron`` in ``layer``."""


@dataclass(frozen=True)
class ConstValueInitializer:
    """Every weight gets ``weight`` and every bias gets ``bias``."""

    weight: float = 0.0
    bias: float = 0.0

    def supply_weight(self, layer: int, from_neuron: int, to_neuron: int) -> float:
        return float(self.weight)

    def supply_bias(self, layer: int, neuron: int) -> float:
        return float(self.bias)


@dataclass
class RandomRangeInitializer:
    """Uniform draws from ``[min, max)`` for weights and biases."""

    min_weight: float = 0.0
    max_weight: float = 1.0
    min_bias: float = 0.0
    max_bias: float = 1.0
    seed: int | None = None
    rng: np.random.Generator = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.min_weight >= self.max_weight or self.min_bias >= self.max_bias:
            raise InvalidArgumentError("Min values must be less than max values")
        self.rng = np.random.default_rng(self.seed)

    def supply_weight(self, layer: int, from_neuron: int, to_neuron: int) -> float:
        return float(self.rng.uniform(self.min_weight, self.max_weight))

    def supply_bias(self, layer: int, neuron: int) -> float:
        return float(self.rng.uniform(self.min_bias, self.max_bias))


@dataclass(frozen=True)
class DelegatingInitializer:
    """Forward every request to caller-provided supplier callables."""

    weight_supplier: WeightSupplier
    bias_supplier: BiasSupplier

    def __post_init__(self) -> None:
        require(self.weight_supplier, "weight_supplier")
        require(self.bias_supplier, "bias_supplier")

    def supply_weight(self, layer: int, from_neuron: int, to_neuron: int) -> float:
        return float(self.weight_supplier(layer, from_neuron, to_neuron))

    def supply_bias(self, layer: int, neuron: int) -> float:
        return float(self.bias_supplier(layer, neuron))


ZERO = ConstValueInitializer(0.0, 0.0)


def constant(weight: float, bias: float) -> ConstValueInitializer:
    return ConstValueInitializer(weight, bias)


def random_range(
    min_weight: float,
    max_weight: float,
    min_bias: float,
    max_bias: float,
    *,
    seed: int | None = None,
) -> RandomRangeInitializer:
    return RandomRangeInitializer(min_weight, max_weight, min_bias, max_bias, seed=seed)


def standard_random(seed: int | None = None) -> RandomRangeInitializer:
    """Weights and biases drawn from ``[0, 1)``."""

    return RandomRangeInitializer(seed=seed)


def delegating(weight_supplier: WeightSupplier, bias_supplier: BiasSupplier) -> DelegatingInitializer:
    return DelegatingInitializer(weight_supplier, bias_supplier)


__all__ = [
    "Initializer",
    "ConstValueInitializer",
    "RandomRangeInitializer",
    "DelegatingInitializer",
    "ZERO",
    "constant",
    "random_range",
    "standard_random",
    "delegating",
]
