"""scgnet public API."""

from .core import activations  # noqa: F401
from .core.errors import (
    IndexRangeError,
    InvalidArgumentError,
    NotFittedError,
    NullArgumentError,
    TrainingFailedError,
)
from .core.evaluator import Evaluator
from .core.init import ConstValueInitializer, DelegatingInitializer, RandomRangeInitializer
from .core.network import NetworkModel
from .core.params import ParameterVector
from .core.types import Response, TrainerEvent
from .data import MinMaxNormalizer, RandomSampler, SymmetricNormalizer
from .training import (
    ScgOptimizer,
    TrainerConfig,
    TrainingCoordinator,
    TrainingTask,
    error,
    load_preset,
    presets,
)

__all__ = [
    "activations",
    "IndexRangeError",
    "InvalidArgumentError",
    "NotFittedError",
    "NullArgumentError",
    "TrainingFailedError",
    "Evaluator",
    "ConstValueInitializer",
    "DelegatingInitializer",
    "RandomRangeInitializer",
    "NetworkModel",
    "ParameterVector",
    "Response",
    "TrainerEvent",
    "MinMaxNormalizer",
    "RandomSampler",
    "SymmetricNormalizer",
    "ScgOptimizer",
    "TrainerConfig",
    "TrainingCoordinator",
    "TrainingTask",
    "error",
    "load_preset",
    "presets",
]
