"""Public controller running at most one training task at a time."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable

import numpy as np

from ..core.errors import InvalidArgumentError, require
from ..core.network import NetworkModel
from ..core.types import Array
from ..data.normalize import MinMaxNormalizer
from ..data.sampling import Sampler
from .config import TrainerConfig
from .listeners import Listener, ListenerGroup
from .task import TrainingTask

logger = logging.getLogger(__name__)

NormalizerFactory = Callable[[], object]


def _as_table(values, what: str) -> Array:
    require(values, what)
    arr = values if isinstance(values, np.ndarray) else np.asarray(values, dtype=np.float64)
    if arr.ndim != 2:
        raise InvalidArgumentError(f"{what} must be a 2-D array, got shape {arr.shape}")
    return arr


class TrainingCoordinator:
    """Trains networks on a single background worker.

    ``start_train`` validates and normalises the samples on the caller's
    thread, cancels any run still in flight and queues a new
    :class:`TrainingTask`. Listeners are called on the worker thread in
    registration order. The caller's network is never mutated.

    ``normalizer_factory`` builds a fresh normaliser for inputs and one for
    targets on every run; pass ``None`` when samples are already in range.
    """

    def __init__(
        self,
        config: TrainerConfig | None = None,
        *,
        executor: Executor | None = None,
        normalizer_factory: NormalizerFactory | None = MinMaxNormalizer,
        sampler: Sampler | None = None,
    ) -> None:
        self._config = config if config is not None else TrainerConfig()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="scgnet-trainer"
        )
        self._normalizer_factory = normalizer_factory
        self._sampler = sampler
        self._listeners = ListenerGroup()
        self._lock = threading.Lock()
        self._task: TrainingTask | None = None
        self._closed = False
        self._input_normalizer = None
        self._target_normalizer = None

    # ------------------------------------------------------------------
    # Configuration

    @property
    def config(self) -> TrainerConfig:
        return self._config

    @property
    def max_epoch(self) -> int:
        return self._config.max_epoch

    @property
    def performance_goal(self) -> float:
        return self._config.performance_goal

    @property
    def train_samples_ratio(self) -> int:
        return self._config.train_ratio

    @property
    def validation_samples_ratio(self) -> int:
        return self._config.validation_ratio

    @property
    def test_samples_ratio(self) -> int:
        return self._config.test_ratio

    @property
    def input_normalizer(self):
        """Normaliser fitted on the inputs of the last run."""

        return self._input_normalizer

    @property
    def target_normalizer(self):
        return self._target_normalizer

    @property
    def current_task(self) -> TrainingTask | None:
        with self._lock:
            return self._task

    # ------------------------------------------------------------------
    # Listeners

    def register_listener(self, listener: Listener) -> None:
        self._listeners.add(listener)

    def remove_listener(self, listener: Listener) -> bool:
        return self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Training

    def start_train(self, network: NetworkModel, inputs: Array, targets: Array) -> TrainingTask:
        """Queue training of a copy of ``network``; returns without waiting.

        Floating-point ``ndarray`` samples are normalised in place.
        """

        if self._closed:
            raise RuntimeError("cannot start training after shutdown")
        require(network, "network")
        inputs = _as_table(inputs, "inputs")
        targets = _as_table(targets, "targets")
        n = inputs.shape[0]
        if n == 0 or targets.shape[0] == 0:
            raise InvalidArgumentError("inputs and targets cannot be empty")
        if n != targets.shape[0]:
            raise InvalidArgumentError(
                f"got {n} input samples but {targets.shape[0]} target samples"
            )
        if inputs.shape[1] != network.num_inputs:
            raise InvalidArgumentError(
                f"inputs hold {inputs.shape[1]} values, network {network.signature} expects {network.num_inputs}"
            )
        if targets.shape[1] != network.num_outputs:
            raise InvalidArgumentError(
                f"targets hold {targets.shape[1]} values, network {network.signature} expects {network.num_outputs}"
            )
        if int(self._config.train_ratio * n / 100) == 0:
            raise InvalidArgumentError(
                f"{self._config.train_ratio}% of {n} samples leaves no training samples"
            )

        input_normalizer = target_normalizer = None
        if self._normalizer_factory is not None:
            input_normalizer = self._normalizer_factory()
            target_normalizer = self._normalizer_factory()
            inputs = input_normalizer.normalize(inputs)
            targets = target_normalizer.normalize(targets)

        task = TrainingTask(
            network,
            inputs,
            targets,
            self._config,
            sampler=self._sampler,
            listener=self._listeners,
        )
        with self._lock:
            # a rejected submit leaves the previous run and normalisers in place
            self._executor.submit(task.run)
            previous = self._task
            if previous is not None and not previous.done():
                logger.info("cancelling running training of %s", previous.signature)
                previous.cancel()
            self._task = task
            self._input_normalizer = input_normalizer
            self._target_normalizer = target_normalizer
        return task

    def stop_training(self) -> None:
        """Signal the current run to stop at its next checkpoint."""

        task = self.current_task
        if task is not None:
            task.cancel()

    def training_finished(self) -> bool:
        task = self.current_task
        return task is None or task.done()

    def get_trained_network(self, timeout: float | None = None) -> NetworkModel | None:
        """Block until the current run is terminal and return a copy of its network.

        Returns ``None`` if training was never started.
        """

        task = self.current_task
        if task is None:
            return None
        return task.result(timeout)

    # ------------------------------------------------------------------

    def shutdown(self, wait: bool = True) -> None:
        """Cancel the current run and release the worker.

        Runs queued behind it were already cancelled by ``start_train`` and
        finish at their first checkpoint, so no task handle is left pending.
        An executor passed in by the caller is left running.
        """

        self._closed = True
        self.stop_training()
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> "TrainingCoordinator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()


__all__ = ["TrainingCoordinator"]
