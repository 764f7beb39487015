"""One cancellable SCG run, executed on a worker thread."""

from __future__ import annotations

import enum
import logging
import threading

import numpy as np

from ..core.errors import InvalidArgumentError, TrainingFailedError, require
from ..core.network import NetworkModel
from ..core.types import Array, TrainerEvent
from ..data.sampling import RandomSampler, SampleSplit, Sampler
from .config import TrainerConfig
from .listeners import Listener
from .scg import ScgOptimizer

logger = logging.getLogger(__name__)


class CancellationToken:
    """Thread-safe flag polled by the optimizer at its checkpoints."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class TaskOutcome(enum.Enum):
    COMPLETED = "complete"
    CANCELED = "canceled"
    FAILED = "failed"


def _sample_table(values, width: int, what: str) -> Array:
    arr = np.array(require(values, what), dtype=np.float64)
    if arr.ndim != 2:
        raise InvalidArgumentError(f"{what} must be a 2-D array, got shape {arr.shape}")
    if arr.shape[0] == 0:
        raise InvalidArgumentError(f"{what} cannot be empty")
    if arr.shape[1] != width:
        raise InvalidArgumentError(f"every {what[:-1]} must hold {width} values, got {arr.shape[1]}")
    return arr


class TrainingTask:
    """Wrap a single :class:`ScgOptimizer` run.

    Everything that can fail validation happens in the constructor on the
    caller's thread: the network and samples are copied, the samples are
    split and the optimizer is built from the training subset. :meth:`run`
    is then safe to hand to an executor; it never raises and fires exactly
    one terminal listener callback after all epoch callbacks.
    """

    def __init__(
        self,
        network: NetworkModel,
        inputs: Array,
        targets: Array,
        config: TrainerConfig,
        *,
        sampler: Sampler | None = None,
        listener: Listener | None = None,
        token: CancellationToken | None = None,
    ) -> None:
        require(network, "network")
        require(config, "config")
        inputs = _sample_table(inputs, network.num_inputs, "inputs")
        targets = _sample_table(targets, network.num_outputs, "targets")
        if inputs.shape[0] != targets.shape[0]:
            raise InvalidArgumentError(
                f"got {inputs.shape[0]} input samples but {targets.shape[0]} target samples"
            )
        sampler = sampler if sampler is not None else RandomSampler(config.seed)
        self.split: SampleSplit = sampler.split(
            inputs.shape[0], config.train_ratio, config.validation_ratio, config.test_ratio
        )
        if self.split.train.size == 0:
            raise InvalidArgumentError(
                f"{config.train_ratio}% of {inputs.shape[0]} samples leaves no training samples"
            )
        self.config = config
        self.signature = network.signature
        self._listener = listener
        self._token = token if token is not None else CancellationToken()
        self._optimizer = ScgOptimizer(
            network,
            inputs[self.split.train],
            targets[self.split.train],
            max_epoch=config.max_epoch,
            performance_goal=config.performance_goal,
            token=self._token,
            listener=listener,
        )
        self._run_lock = threading.Lock()
        self._started = False
        self._done = threading.Event()
        self._outcome: TaskOutcome | None = None
        self._event: TrainerEvent | None = None
        self._error: BaseException | None = None
        self._result: NetworkModel | None = None

    # ------------------------------------------------------------------

    def run(self) -> None:
        with self._run_lock:
            if self._started:
                raise RuntimeError("a training task can only run once")
            self._started = True

        logger.info("training %s on %d samples", self.signature, self.split.train.size)
        try:
            event = self._optimizer.run()
        except Exception as exc:
            logger.exception("training %s failed", self.signature)
            self._error = exc
            self._outcome = TaskOutcome.FAILED
            event = self._optimizer.last_event
        else:
            self._outcome = TaskOutcome.CANCELED if self._optimizer.canceled else TaskOutcome.COMPLETED
        self._event = event
        self._result = self._optimizer.network()
        logger.info(
            "training %s %s after %d epochs (performance=%.6g)",
            self.signature,
            self._outcome.value,
            event.epoch,
            event.performance,
        )
        try:
            self._notify_terminal(event)
        finally:
            self._done.set()

    def _notify_terminal(self, event: TrainerEvent) -> None:
        if self._listener is None:
            return
        try:
            if self._outcome is TaskOutcome.COMPLETED:
                self._listener.on_training_complete(event)
            else:
                self._listener.on_training_canceled(event)
        except Exception:
            logger.exception("terminal listener callback failed for %s", self.signature)

    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Request cooperative cancellation; returns immediately."""

        self._token.cancel()

    @property
    def cancel_requested(self) -> bool:
        return self._token.cancelled

    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._done.wait(timeout)

    @property
    def outcome(self) -> TaskOutcome | None:
        return self._outcome

    @property
    def event(self) -> TrainerEvent | None:
        """Terminal event, or ``None`` while the task is still running."""

        return self._event

    @property
    def error(self) -> BaseException | None:
        return self._error

    def network(self) -> NetworkModel:
        """Copy of the best network available now, never ``None``."""

        if self._result is not None:
            return self._result.copy()
        return self._optimizer.network()

    def result(self, timeout: float | None = None) -> NetworkModel:
        """Block until terminal and return a copy of the trained network.

        Canceled runs return the partially trained network. Failed runs raise
        :class:`TrainingFailedError` chained to the optimizer's exception.
        """

        if not self._done.wait(timeout):
            raise TimeoutError(f"training {self.signature} did not finish within {timeout}s")
        if self._outcome is TaskOutcome.FAILED:
            raise TrainingFailedError(
                f"training {self.signature} failed: {self._error}", network=self.network()
            ) from self._error
        return self.network()


__all__ = ["CancellationToken", "TaskOutcome", "TrainingTask"]
