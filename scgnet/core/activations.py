"""Activation functions shared by every neuron of a network."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from .errors import InvalidArgumentError
from .types import Array

ArrayFn = Callable[[Array], Array]


def sigmoid(x: Array) -> Array:
    """Return the logistic sigmoid, computed without overflow."""

    return np.exp(-np.logaddexp(0.0, -np.asarray(x, dtype=np.float64)))


def sigmoid_deriv(x: Array) -> Array:
    s = sigmoid(x)
    return s * (1.0 - s)


def tanh(x: Array) -> Array:
    return np.tanh(np.asarray(x, dtype=np.float64))


def tanh_deriv(x: Array) -> Array:
    return 1.0 - np.tanh(np.asarray(x, dtype=np.float64)) ** 2


@dataclass(frozen=True)
class Activation:
    """Immutable activation variant with its value and derivative."""

    name: str
    fn: ArrayFn
    deriv: ArrayFn

    def value(self, x: Array) -> Array:
        return self.fn(x)

    def derivative(self, x: Array) -> Array:
        return self.deriv(x)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Activation):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"Activation({self.name!r})"


SIGMOID = Activation("sigmoid", sigmoid, sigmoid_deriv)
"""Values in ``[0, 1]``; the only output activation the gradient is exact for."""

TANH = Activation("tanh", tanh, tanh_deriv)
"""Values in ``[-1, 1]``."""

_REGISTRY: Dict[str, Activation] = {act.name: act for act in (SIGMOID, TANH)}
# Alias for parity with the older naming
_REGISTRY["tan"] = TANH


def resolve(name: str) -> Activation:
    """Return the registered activation called ``name``."""

    try:
        return _REGISTRY[name.lower()]
    except KeyError as exc:
        available = ", ".join(names())
        raise InvalidArgumentError(
            f"Unknown activation {name!r}. Available activations: {available}"
        ) from exc


def names() -> Iterable[str]:
    return sorted({act.name for act in _REGISTRY.values()})


__all__ = ["Activation", "SIGMOID", "TANH", "resolve", "names", "sigmoid", "tanh"]
