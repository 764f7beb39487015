"""Core numerical primitives for scgnet."""

from . import activations, errors, init, types
from .evaluator import Evaluator
from .network import NetworkModel
from .params import ParameterVector

__all__ = [
    "activations",
    "errors",
    "init",
    "types",
    "Evaluator",
    "NetworkModel",
    "ParameterVector",
]
