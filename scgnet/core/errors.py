"""Exception types raised across scgnet."""

from __future__ import annotations


class NullArgumentError(TypeError):
    """A required argument was ``None``."""


class InvalidArgumentError(ValueError):
    """An argument has the right type but an unusable value or shape."""


class IndexRangeError(IndexError):
    """A layer or neuron index lies outside the network's structure."""


class NotFittedError(RuntimeError):
    """A normaliser was asked to map a single sample before being fitted."""


class TrainingFailedError(RuntimeError):
    """The optimizer raised while training.

    ``network`` holds the parameters committed before the failure.
    """

    def __init__(self, message: str, network=None) -> None:
        super().__init__(message)
        self.network = network


def require(value, name: str):
    """Return ``value`` or raise :class:`NullArgumentError` when it is ``None``."""

    if value is None:
        raise NullArgumentError(f"{name} cannot be None")
    return value


__all__ = [
    "NullArgumentError",
    "InvalidArgumentError",
    "IndexRangeError",
    "NotFittedError",
    "TrainingFailedError",
    "require",
]
