"""Cross-entropy error, the only loss the optimizer trains against."""

from __future__ import annotations

import numpy as np

from ..core.errors import InvalidArgumentError, NullArgumentError
from ..core.evaluator import Evaluator
from ..core.network import NetworkModel
from ..core.types import Array

EPSILON = 1e-15


def error(outputs: Array, targets: Array) -> float:
    """Mean binary cross-entropy between ``outputs`` and ``targets``.

    ``mean(-t*ln(eps + a) - (1 - t)*ln(eps + 1 - a))`` with ``eps = 1e-15``.
    Values are assumed to lie in ``[0, 1]``.
    """

    if outputs is None or targets is None:
        raise NullArgumentError("outputs and targets cannot be None")
    a = np.asarray(outputs, dtype=np.float64).ravel()
    t = np.asarray(targets, dtype=np.float64).ravel()
    if a.shape != t.shape:
        raise InvalidArgumentError(
            f"outputs ({a.size}) and targets ({t.size}) differ in length"
        )
    if a.size == 0:
        raise InvalidArgumentError("outputs cannot be empty")
    return float(np.mean(-t * np.log(EPSILON + a) - (1.0 - t) * np.log(EPSILON + 1.0 - a)))


def network_error(
    network: NetworkModel,
    input: Array,
    target: Array,
    *,
    evaluator: Evaluator | None = None,
) -> float:
    """Error of ``network`` on a single sample."""

    evaluator = evaluator or Evaluator()
    return error(evaluator.output(network, input), target)


def mean_error(
    network: NetworkModel,
    inputs: Array,
    targets: Array,
    *,
    evaluator: Evaluator | None = None,
) -> float:
    """Average :func:`network_error` over paired rows of ``inputs``/``targets``."""

    if inputs is None or targets is None:
        raise NullArgumentError("inputs and targets cannot be None")
    if len(inputs) != len(targets):
        raise InvalidArgumentError("inputs and targets must hold the same number of samples")
    if len(inputs) == 0:
        raise InvalidArgumentError("at least one sample is required")
    evaluator = evaluator or Evaluator()
    total = sum(
        network_error(network, x, t, evaluator=evaluator) for x, t in zip(inputs, targets)
    )
    return total / len(inputs)


__all__ = ["EPSILON", "error", "network_error", "mean_error"]
