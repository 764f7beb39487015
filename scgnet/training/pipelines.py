"""End-to-end run assembly used by the command line."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Tuple

import numpy as np

from ..core import activations, init
from ..core.errors import InvalidArgumentError
from ..core.network import NetworkModel
from ..data import synthetic
from ..data.sampling import RandomSampler
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from .config import TrainerConfig
from .coordinator import TrainingCoordinator
from .losses import mean_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    epochs: int
    performance: float
    status: str
    initial_error: float
    final_error: float
    metrics_path: str
    manifest_path: str
    network_path: str


def _load_data(data_cfg: Mapping[str, object]) -> Tuple[np.ndarray, np.ndarray]:
    name = str(data_cfg.get("name", ""))
    options = dict(data_cfg.get("options", {}) or {})
    if name == "csv":
        try:
            inputs_path = Path(options["inputs"])
            targets_path = Path(options["targets"])
        except KeyError as exc:
            raise InvalidArgumentError("csv data needs 'inputs' and 'targets' paths") from exc
        inputs = np.loadtxt(inputs_path, delimiter=",", ndmin=2, dtype=np.float64)
        targets = np.loadtxt(targets_path, delimiter=",", ndmin=2, dtype=np.float64)
        return inputs, targets
    return synthetic.load(name, **options)


def _initializer(model_cfg: Mapping[str, object]) -> init.Initializer:
    kind = str(model_cfg.get("init", "zero"))
    seed = model_cfg.get("seed")
    if kind == "zero":
        return init.ZERO
    if kind == "random":
        return init.random_range(-1.0, 1.0, -1.0, 1.0, seed=None if seed is None else int(seed))
    raise InvalidArgumentError(f"Unknown initializer {kind!r}; expected 'zero' or 'random'")


def build_network(model_cfg: Mapping[str, object], n_inputs: int, n_outputs: int) -> NetworkModel:
    hidden = [int(h) for h in model_cfg.get("hidden", [4])]  # type: ignore[union-attr]
    return NetworkModel(
        n_inputs,
        hidden,
        n_outputs,
        _initializer(model_cfg),
        activations.resolve(str(model_cfg.get("activation", "sigmoid"))),
        name=model_cfg.get("name"),  # type: ignore[arg-type]
    )


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Train one network synchronously and write its artifacts to ``run_dir``."""

    data_cfg = dict(config.get("data", {}))  # type: ignore[arg-type]
    model_cfg = dict(config.get("model", {}))  # type: ignore[arg-type]
    train_cfg = dict(config.get("train", {}))  # type: ignore[arg-type]

    trainer_config = TrainerConfig.from_mapping(train_cfg)
    run_dir = Path(str(train_cfg.get("run_dir", "runs/default")))
    run_dir.mkdir(parents=True, exist_ok=True)

    inputs, targets = _load_data(data_cfg)
    network = build_network(model_cfg, inputs.shape[1], targets.shape[1])

    jsonl = JsonlSink(run_dir / "metrics.jsonl", seed=trainer_config.seed)
    csv_sink = CsvSink(run_dir / "metrics.csv")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))

    with TrainingCoordinator(
        trainer_config, sampler=RandomSampler(trainer_config.seed)
    ) as coordinator:
        for listener in (jsonl, csv_sink, plots):
            coordinator.register_listener(listener)
        task = coordinator.start_train(network, inputs, targets)
        # inputs/targets are normalised in place by start_train
        initial_error = mean_error(network, inputs, targets)
        trained = coordinator.get_trained_network()
        final_error = mean_error(trained, inputs, targets)

    plots.close()
    network_path = trained.save(run_dir / "network.npz")
    manifest_path = write_manifest(
        run_dir / "manifest.json",
        config=json.loads(json.dumps(config)),
        network=trained,
        extra={"splits": dict(task.split.sizes)},
    )
    event = task.event
    logger.info(
        "run finished: %s after %d epochs, error %.6g -> %.6g",
        task.outcome.value,
        event.epoch,
        initial_error,
        final_error,
    )
    return RunResult(
        epochs=event.epoch,
        performance=event.performance,
        status=task.outcome.value,
        initial_error=initial_error,
        final_error=final_error,
        metrics_path=str(jsonl.path),
        manifest_path=manifest_path,
        network_path=str(network_path),
    )


__all__ = ["RunResult", "build_network", "run_pipeline"]
