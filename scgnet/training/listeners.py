"""Training lifecycle listeners and their thread-safe fan-out."""

from __future__ import annotations

import logging
import threading
from typing import Protocol, Tuple

from ..core.errors import require
from ..core.types import TrainerEvent

logger = logging.getLogger(__name__)


class Listener(Protocol):
    """Receives training progress on the worker thread.

    For each run, epoch callbacks arrive first and exactly one of
    :meth:`on_training_complete` / :meth:`on_training_canceled` arrives last.
    Implementations must not block for long: they run on the training worker.
    """

    def on_training_epoch_complete(self, event: TrainerEvent) -> None:
        ...

    def on_training_complete(self, event: TrainerEvent) -> None:
        ...

    def on_training_canceled(self, event: TrainerEvent) -> None:
        ...


class ListenerGroup:
    """Ordered set of listeners dispatched from an immutable snapshot.

    Registration and removal may happen on any thread while a dispatch is in
    progress; the dispatch keeps iterating the tuple it captured. A listener
    that raises is logged and skipped so the remaining listeners and the
    training worker are unaffected.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: Tuple[Listener, ...] = ()

    def add(self, listener: Listener) -> None:
        require(listener, "listener")
        with self._lock:
            if listener not in self._listeners:
                self._listeners = self._listeners + (listener,)

    def remove(self, listener: Listener) -> bool:
        require(listener, "listener")
        with self._lock:
            if listener not in self._listeners:
                return False
            items = list(self._listeners)
            items.remove(listener)
            self._listeners = tuple(items)
            return True

    def snapshot(self) -> Tuple[Listener, ...]:
        with self._lock:
            return self._listeners

    def __len__(self) -> int:
        return len(self.snapshot())

    def on_training_epoch_complete(self, event: TrainerEvent) -> None:
        self._dispatch("on_training_epoch_complete", event)

    def on_training_complete(self, event: TrainerEvent) -> None:
        self._dispatch("on_training_complete", event)

    def on_training_canceled(self, event: TrainerEvent) -> None:
        self._dispatch("on_training_canceled", event)

    def _dispatch(self, method: str, event: TrainerEvent) -> None:
        for listener in self.snapshot():
            try:
                getattr(listener, method)(event)
            except Exception:
                logger.exception("listener %r failed in %s", listener, method)


__all__ = ["Listener", "ListenerGroup"]
