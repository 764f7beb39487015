"""Headless-safe plotting adapters."""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

from ..core.types import TrainerEvent


class PlotAdapter:
    """Collect the performance curve and optionally write ``performance.png``."""

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self._history: List[Tuple[int, float]] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    @property
    def history(self) -> List[Tuple[int, float]]:
        return list(self._history)

    def on_training_epoch_complete(self, event: TrainerEvent) -> None:
        self._history.append((event.epoch, event.performance))

    def on_training_complete(self, event: TrainerEvent) -> None:
        pass

    def on_training_canceled(self, event: TrainerEvent) -> None:
        pass

    def close(self) -> Path | None:
        if not self.enable_plots or not self._history:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        epochs, performance = zip(*self._history)
        fig, ax = plt.subplots()
        ax.plot(epochs, performance)
        ax.set_xlabel("Epoch")
        ax.set_ylabel("Cross-entropy")
        ax.set_yscale("log")
        ax.set_title("Training Performance")
        plot_path = self.run_dir / "performance.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path
