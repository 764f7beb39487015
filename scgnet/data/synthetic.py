"""Small in-memory datasets for smoke runs and the CLI."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Tuple

import numpy as np

from ..core.errors import InvalidArgumentError

Dataset = Tuple[np.ndarray, np.ndarray]


def xor(repeats: int = 1) -> Dataset:
    """The four XOR patterns, optionally tiled ``repeats`` times."""

    inputs = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]])
    targets = np.array([[0.0], [1.0], [1.0], [0.0]])
    return np.tile(inputs, (repeats, 1)), np.tile(targets, (repeats, 1))


def sine(n_points: int = 64, freq: int = 1, seed: int = 0) -> Dataset:
    rng = np.random.default_rng(seed)
    x = np.linspace(-1.0, 1.0, n_points).reshape(-1, 1)
    y = np.sin(freq * np.pi * x) + 0.05 * rng.standard_normal(size=x.shape)
    return x, y


_DATASETS: Dict[str, Callable[..., Dataset]] = {"xor": xor, "sine": sine}


def load(name: str, **kwargs) -> Dataset:
    try:
        factory = _DATASETS[name]
    except KeyError as exc:
        available = ", ".join(names())
        raise InvalidArgumentError(
            f"Unknown dataset {name!r}. Available datasets: {available}"
        ) from exc
    return factory(**kwargs)


def names() -> Iterable[str]:
    return sorted(_DATASETS)


__all__ = ["xor", "sine", "load", "names"]
