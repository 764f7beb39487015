"""Scaled Conjugate Gradient training loop (Møller, 1993)."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Tuple

import numpy as np

from ..core.errors import InvalidArgumentError, NullArgumentError
from ..core.evaluator import Evaluator
from ..core.network import NetworkModel
from ..core.params import ParameterVector
from ..core.types import Array, TrainerEvent
from .losses import error

if TYPE_CHECKING:  # pragma: no cover
    from .listeners import Listener
    from .task import CancellationToken

logger = logging.getLogger(__name__)

MIN_GRADIENT = 1e-7
LAMBDA_INIT = 1e-7
SIGMA = 1e-5


def _samples(values, width: int, what: str) -> Array:
    if values is None:
        raise NullArgumentError(f"{what} cannot be None")
    arr = np.array(values, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != width:
        raise InvalidArgumentError(f"{what} must have shape (n, {width}), got {arr.shape}")
    if arr.shape[0] == 0:
        raise InvalidArgumentError(f"{what} cannot be empty")
    return arr


def _comparison(delta: float, perf: float, perf_next: float, mu: float) -> float:
    """Ratio of actual to predicted error reduction for a step along ``p``.

    When ``mu * mu`` is zero (``p`` orthogonal to the antigradient, or so
    close that the square underflows) the ratio is taken as 0. The step is
    then accepted with a negligible length, leaving ``w`` in place, and the
    direction restarts on the fresh antigradient.
    """

    denominator = mu * mu
    if denominator == 0.0:
        return 0.0
    return 2.0 * delta * (perf - perf_next) / denominator


class ScgOptimizer:
    """Train a private copy of ``network`` on ``inputs``/``targets`` with SCG.

    The optimizer owns its copy of the network and of the samples. Mean
    gradient and mean cross-entropy are taken over all given samples, one
    sample at a time. ``token`` is polled at every gradient evaluation;
    ``listener`` receives one event per completed epoch.

    Whatever way :meth:`run` exits, the last committed parameters are
    written back into the optimizer's network, so :meth:`network` always
    reflects the accepted state.
    """

    def __init__(
        self,
        network: NetworkModel,
        inputs: Array,
        targets: Array,
        *,
        max_epoch: int,
        performance_goal: float,
        token: "CancellationToken | None" = None,
        listener: "Listener | None" = None,
        evaluator: Evaluator | None = None,
    ) -> None:
        if network is None:
            raise NullArgumentError("network cannot be None")
        if max_epoch <= 0:
            raise InvalidArgumentError("max_epoch must be positive")
        if performance_goal <= 0:
            raise InvalidArgumentError("performance_goal must be positive")
        self._network = network.copy()
        self._inputs = _samples(inputs, network.num_inputs, "inputs")
        self._targets = _samples(targets, network.num_outputs, "targets")
        if self._inputs.shape[0] != self._targets.shape[0]:
            raise InvalidArgumentError("inputs and targets must hold the same number of samples")
        self.max_epoch = int(max_epoch)
        self.performance_goal = float(performance_goal)
        self._token = token
        self._listener = listener
        self._evaluator = evaluator or Evaluator()
        self._weights = self._network.parameters()
        self._epoch = 0
        self._performance = float("nan")
        self._canceled = False

    # ------------------------------------------------------------------

    @property
    def canceled(self) -> bool:
        return self._canceled

    @property
    def num_samples(self) -> int:
        return int(self._inputs.shape[0])

    @property
    def last_event(self) -> TrainerEvent:
        """Epochs completed so far and the performance at the committed weights."""

        return TrainerEvent(self._epoch, self._performance)

    def network(self) -> NetworkModel:
        return self._network.copy()

    # ------------------------------------------------------------------

    def _interrupted(self) -> bool:
        if self._token is not None and self._token.cancelled:
            self._canceled = True
            logger.debug("cancellation observed after %d epochs", self._epoch)
            return True
        return False

    def _gradient(self, weights: ParameterVector) -> Tuple[ParameterVector, float]:
        """Mean gradient and mean error over the samples at ``weights``."""

        evaluator = self._evaluator
        net = self._network
        total = ParameterVector(net.shape)
        perf = 0.0
        for x, t in zip(self._inputs, self._targets):
            response = evaluator.forward(net, weights, x)
            perf += error(response.result, t)
            total.add(evaluator.backward(net, weights, x, t, response))
        n = self.num_samples
        return total.multiply(1.0 / n), perf / n

    def _performance_at(self, weights: ParameterVector) -> float:
        evaluator = self._evaluator
        net = self._network
        perf = 0.0
        for x, t in zip(self._inputs, self._targets):
            perf += error(evaluator.forward(net, weights, x).result, t)
        return perf / self.num_samples

    def _emit(self) -> None:
        if self._listener is not None:
            self._listener.on_training_epoch_complete(self.last_event)

    # ------------------------------------------------------------------

    def run(self) -> TrainerEvent:
        """Iterate until a stopping criterion or cancellation; return the final event."""

        self._canceled = False
        self._epoch = 0
        self._weights = self._network.parameters()
        try:
            self._train()
        finally:
            self._network.load_parameters(self._weights)
        return self.last_event

    def _train(self) -> None:
        w = self._weights
        grad, self._performance = self._gradient(w)
        if self._interrupted():
            return

        r = grad.multiply(-1.0)
        p = r.copy()
        if r.norm() <= MIN_GRADIENT:
            logger.debug("initial gradient below %g, nothing to do", MIN_GRADIENT)
            return

        lam = LAMBDA_INIT
        lam_bar = 0.0
        success = True
        delta = 0.0
        restart_every = self._network.parameter_count

        for k in range(self.max_epoch):
            p_norm2 = p.dot(p)
            if success:
                sigma_k = SIGMA / math.sqrt(p_norm2)
                grad, _ = self._gradient(w)
                if self._interrupted():
                    return
                probe = p.copy().multiply(sigma_k).add(w)
                grad_probe, _ = self._gradient(probe)
                if self._interrupted():
                    return
                s = grad_probe.subtract(grad).multiply(1.0 / sigma_k)
                delta = p.dot(s)

            delta += (lam - lam_bar) * p_norm2
            if delta <= 0:
                lam_bar = 2.0 * (lam - delta / p_norm2)
                delta = -delta + lam * p_norm2
                lam = lam_bar

            mu = p.dot(r)
            alpha = mu / delta
            candidate = p.copy().multiply(alpha).add(w)
            perf = self._performance_at(w)
            perf_next = self._performance_at(candidate)
            self._performance = perf
            comparison = _comparison(delta, perf, perf_next, mu)

            if comparison >= 0:
                w = candidate
                self._weights = w
                grad, self._performance = self._gradient(w)
                if self._interrupted():
                    return
                r_next = grad.multiply(-1.0)
                lam_bar = 0.0
                success = True
                if (k + 1) % restart_every == 0 or mu * mu == 0.0:
                    logger.debug("epoch %d: restarting conjugate direction", k + 1)
                    p = r_next.copy()
                else:
                    beta = (r_next.dot(r_next) - r.dot(r_next)) / mu
                    p.multiply(beta).add(r_next)
                r = r_next
                if comparison >= 0.75:
                    lam /= 4.0
            else:
                success = False
                lam_bar = lam

            if comparison < 0.25:
                lam += delta * (1.0 - comparison) / p_norm2

            self._epoch = k + 1
            logger.debug(
                "epoch %d: performance=%.6g lambda=%.3g comparison=%.3g",
                self._epoch,
                self._performance,
                lam,
                comparison,
            )
            self._emit()

            if r.norm() <= MIN_GRADIENT:
                logger.debug("gradient below %g after %d epochs", MIN_GRADIENT, self._epoch)
                return
            if self._performance < self.performance_goal:
                return


__all__ = ["ScgOptimizer", "MIN_GRADIENT", "LAMBDA_INIT", "SIGMA"]
