"""SCG optimisation, task harness and coordinator."""

from .config import TrainerConfig, load_config, load_preset, presets
from .coordinator import TrainingCoordinator
from .listeners import Listener, ListenerGroup
from .losses import error, mean_error, network_error
from .scg import ScgOptimizer
from .task import CancellationToken, TaskOutcome, TrainingTask

__all__ = [
    "TrainerConfig",
    "load_config",
    "load_preset",
    "presets",
    "TrainingCoordinator",
    "Listener",
    "ListenerGroup",
    "error",
    "mean_error",
    "network_error",
    "ScgOptimizer",
    "CancellationToken",
    "TaskOutcome",
    "TrainingTask",
]
