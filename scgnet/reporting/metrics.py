"""Listeners that persist training progress."""

from __future__ import annotations

import csv
import json
import math
from pathlib import Path
from typing import Dict

from ..core.types import TrainerEvent
from .artifacts import git_sha


def _record(event: TrainerEvent, status: str) -> Dict[str, object]:
    performance = event.performance
    return {
        "epoch": int(event.epoch),
        "performance": None if math.isnan(performance) else float(performance),
        "status": status,
    }


class JsonlSink:
    """Append-only JSONL writer: one line per epoch plus a final status line."""

    def __init__(
        self,
        path: str | Path,
        *,
        seed: int | None = None,
        sha: str | None = None,
    ) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.seed = seed
        self.sha = sha or git_sha()

    def _write(self, event: TrainerEvent, status: str) -> None:
        record = _record(event, status)
        record.update({"seed": self.seed, "sha": self.sha})
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")

    def on_training_epoch_complete(self, event: TrainerEvent) -> None:
        self._write(event, "epoch")

    def on_training_complete(self, event: TrainerEvent) -> None:
        self._write(event, "complete")

    def on_training_canceled(self, event: TrainerEvent) -> None:
        self._write(event, "canceled")


class CsvSink:
    """Write the same records as :class:`JsonlSink` to CSV."""

    fieldnames = ("epoch", "performance", "status")

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")

    def _write(self, event: TrainerEvent, status: str) -> None:
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=self.fieldnames)
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(_record(event, status))

    def on_training_epoch_complete(self, event: TrainerEvent) -> None:
        self._write(event, "epoch")

    def on_training_complete(self, event: TrainerEvent) -> None:
        self._write(event, "complete")

    def on_training_canceled(self, event: TrainerEvent) -> None:
        self._write(event, "canceled")


__all__ = ["JsonlSink", "CsvSink"]
