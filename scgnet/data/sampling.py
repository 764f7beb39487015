"""Random train/validation/test splits by percentage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Protocol

import numpy as np

from ..core.errors import InvalidArgumentError


@dataclass(frozen=True)
class SampleSplit:
    """Disjoint index arrays that together cover ``0..n-1``."""

    train: np.ndarray
    validation: np.ndarray
    test: np.ndarray

    @property
    def sizes(self) -> Mapping[str, int]:
        return {
            "train": int(self.train.size),
            "validation": int(self.validation.size),
            "test": int(self.test.size),
        }


class Sampler(Protocol):
    def split(
        self,
        n_samples: int,
        train_ratio: int,
        validation_ratio: int,
        test_ratio: int,
    ) -> SampleSplit:
        ...


def check_ratios(train_ratio: int, validation_ratio: int, test_ratio: int) -> None:
    for name, ratio in (
        ("train", train_ratio),
        ("validation", validation_ratio),
        ("test", test_ratio),
    ):
        if not 0 <= ratio <= 100:
            raise InvalidArgumentError(f"{name} ratio must be in [0, 100], got {ratio}")
    if train_ratio + validation_ratio + test_ratio != 100:
        raise InvalidArgumentError(
            "train, validation and test ratios must sum to 100, got "
            f"{train_ratio + validation_ratio + test_ratio}"
        )


def split_indices(
    n_samples: int,
    train_ratio: int,
    validation_ratio: int,
    test_ratio: int,
    *,
    rng: np.random.Generator | None = None,
) -> SampleSplit:
    """Shuffle ``0..n_samples-1`` and cut it by percentage.

    Train and validation get ``int(ratio * n / 100)`` indices each; the test
    subset takes whatever remains.
    """

    if n_samples < 0:
        raise InvalidArgumentError("n_samples cannot be negative")
    check_ratios(train_ratio, validation_ratio, test_ratio)
    rng = rng if rng is not None else np.random.default_rng()
    order = rng.permutation(n_samples)
    n_train = int(train_ratio * n_samples / 100)
    n_val = int(validation_ratio * n_samples / 100)
    return SampleSplit(
        train=order[:n_train],
        validation=order[n_train : n_train + n_val],
        test=order[n_train + n_val :],
    )


class RandomSampler:
    """Seedable :class:`Sampler` built on :func:`split_indices`."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = np.random.default_rng(seed)

    def split(
        self,
        n_samples: int,
        train_ratio: int,
        validation_ratio: int,
        test_ratio: int,
    ) -> SampleSplit:
        return split_indices(
            n_samples, train_ratio, validation_ratio, test_ratio, rng=self._rng
        )


__all__ = ["SampleSplit", "Sampler", "RandomSampler", "split_indices", "check_ratios"]
