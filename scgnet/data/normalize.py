"""Min/max range normalisers for network inputs and targets."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ..core.errors import InvalidArgumentError, NotFittedError, NullArgumentError
from ..core.types import Array


class _RangeNormalizer:
    """Map every column from its observed ``[min, max]`` onto a fixed range.

    A normaliser is fitted either explicitly (``min_values``/``max_values``),
    from samples via :meth:`from_samples`, or lazily on the first 2-D call to
    :meth:`normalize`. Columns whose min equals max are left unchanged.
    """

    def __init__(
        self,
        min_values: Sequence[float] | None = None,
        max_values: Sequence[float] | None = None,
    ) -> None:
        self._min: Array | None = None
        self._max: Array | None = None
        if min_values is None and max_values is None:
            return
        if min_values is None or max_values is None:
            raise NullArgumentError("min_values and max_values must be given together")
        lo = np.asarray(min_values, dtype=np.float64).ravel()
        hi = np.asarray(max_values, dtype=np.float64).ravel()
        if lo.size == 0 or hi.size == 0:
            raise InvalidArgumentError("min and max values cannot be empty")
        if lo.shape != hi.shape:
            raise InvalidArgumentError("there must be as many min values as max values")
        if np.any(lo > hi):
            raise InvalidArgumentError("max values must be greater than or equal to min values")
        self._min, self._max = lo, hi

    @classmethod
    def from_samples(cls, samples) -> "_RangeNormalizer":
        normalizer = cls()
        normalizer.fit(samples)
        return normalizer

    @property
    def fitted(self) -> bool:
        return self._min is not None

    @property
    def min_values(self) -> Array | None:
        return None if self._min is None else self._min.copy()

    @property
    def max_values(self) -> Array | None:
        return None if self._max is None else self._max.copy()

    def fit(self, samples) -> None:
        data = self._samples(samples)
        self._min = data.min(axis=0)
        self._max = data.max(axis=0)

    def normalize(self, samples) -> Array:
        """Normalise ``samples`` (2-D batch or 1-D single sample).

        Floating ``ndarray`` arguments are mutated in place; anything else is
        converted to a new float64 array first. The result is returned either
        way.
        """

        if samples is None:
            raise NullArgumentError("samples cannot be None")
        data = samples if _is_mutable_float(samples) else np.array(samples, dtype=np.float64)
        if data.ndim == 1:
            if data.size == 0:
                raise InvalidArgumentError("sample cannot be empty")
            if not self.fitted:
                raise NotFittedError("normaliser has not been fitted")
            self._check_width(data.shape[0])
        else:
            data = self._samples(data)
            if self.fitted:
                self._check_width(data.shape[1])
            else:
                self.fit(data)
        span = self._max - self._min
        cols = span != 0
        data[..., cols] = self._map(data[..., cols], self._min[cols], span[cols])
        return data

    def _check_width(self, width: int) -> None:
        if width != self._min.shape[0]:
            raise InvalidArgumentError(
                f"samples hold {width} values, normaliser was fitted on {self._min.shape[0]}"
            )

    @staticmethod
    def _samples(samples) -> Array:
        if samples is None:
            raise NullArgumentError("samples cannot be None")
        data = samples if isinstance(samples, np.ndarray) else np.asarray(samples, dtype=np.float64)
        if data.ndim != 2:
            raise InvalidArgumentError(f"samples must be a 2-D array, got shape {data.shape}")
        if data.shape[0] == 0 or data.shape[1] == 0:
            raise InvalidArgumentError("samples cannot be empty")
        return data

    def _map(self, values: Array, lo: Array, span: Array) -> Array:
        raise NotImplementedError

    def __repr__(self) -> str:
        state = "fitted" if self.fitted else "unfitted"
        return f"{type(self).__name__}({state})"


class MinMaxNormalizer(_RangeNormalizer):
    """Maps each column onto ``[0, 1]``."""

    def _map(self, values: Array, lo: Array, span: Array) -> Array:
        return (values - lo) / span


class SymmetricNormalizer(_RangeNormalizer):
    """Maps each column onto ``[-1, 1]``."""

    def _map(self, values: Array, lo: Array, span: Array) -> Array:
        return 2.0 * (values - lo) / span - 1.0


def _is_mutable_float(samples) -> bool:
    return (
        isinstance(samples, np.ndarray)
        and np.issubdtype(samples.dtype, np.floating)
        and samples.flags.writeable
    )


__all__ = ["MinMaxNormalizer", "SymmetricNormalizer"]
