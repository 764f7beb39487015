"""Trainer configuration, named run presets and config-file loading."""

from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import asdict, dataclass, fields, replace as _replace
from pathlib import Path
from typing import Any, Dict, Mapping

from ..core.errors import InvalidArgumentError
from ..data.sampling import check_ratios


@dataclass(frozen=True)
class TrainerConfig:
    """Stopping criteria and sample split used by every training run.

    Ratios are integer percentages. ``seed`` only drives the default random
    sampler; ``None`` draws fresh entropy per coordinator.
    """

    max_epoch: int = 1
    performance_goal: float = 1e-2
    train_ratio: int = 100
    validation_ratio: int = 0
    test_ratio: int = 0
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.max_epoch <= 0:
            raise InvalidArgumentError("max_epoch must be positive")
        if not self.performance_goal > 0:
            raise InvalidArgumentError("performance_goal must be positive")
        if not 1 <= self.train_ratio <= 100:
            raise InvalidArgumentError("train_ratio must be in [1, 100]")
        check_ratios(self.train_ratio, self.validation_ratio, self.test_ratio)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> "TrainerConfig":
        """Build a config from ``mapping``, ignoring keys that are not fields."""

        mapping = mapping or {}
        known = {f.name for f in fields(cls)}
        kwargs = {key: value for key, value in mapping.items() if key in known}
        for key in ("max_epoch", "train_ratio", "validation_ratio", "test_ratio"):
            if key in kwargs:
                kwargs[key] = int(kwargs[key])
        if "performance_goal" in kwargs:
            kwargs["performance_goal"] = float(kwargs["performance_goal"])
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def replace(self, **changes: Any) -> "TrainerConfig":
        return _replace(self, **changes)


_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor": {
        "data": {"name": "xor", "options": {"repeats": 1}},
        "model": {"hidden": [4], "activation": "sigmoid", "init": "random", "seed": 3},
        "train": {
            "max_epoch": 200,
            "performance_goal": 1e-2,
            "train_ratio": 100,
            "validation_ratio": 0,
            "test_ratio": 0,
            "seed": 0,
            "run_dir": "runs/xor",
            "enable_plots": False,
        },
    },
    "sine-min": {
        "data": {"name": "sine", "options": {"n_points": 32, "seed": 0}},
        "model": {"hidden": [6], "activation": "sigmoid", "init": "random", "seed": 1},
        "train": {
            "max_epoch": 20,
            "performance_goal": 1e-3,
            "train_ratio": 80,
            "validation_ratio": 10,
            "test_ratio": 10,
            "seed": 0,
            "run_dir": "runs/sine-min",
            "enable_plots": False,
        },
    },
}

_REQUIRED_SECTIONS = {"data", "model", "train"}


def read_config_file(path: Path) -> Mapping[str, object]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load config files in YAML format") from exc
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise InvalidArgumentError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise InvalidArgumentError(f"Config {path.name} must decode to a mapping")
    return data


def load_config(path: str | Path) -> Dict[str, object]:
    """Read a run config (``data``/``model``/``train`` sections) from JSON or YAML."""

    path = Path(path)
    data = read_config_file(path)
    missing = _REQUIRED_SECTIONS - set(data)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise InvalidArgumentError(f"Config {path.name} is missing required sections: {missing_str}")
    # Validate the trainer section eagerly
    TrainerConfig.from_mapping(data["train"])  # type: ignore[arg-type]
    return json.loads(json.dumps(data))


def presets() -> Mapping[str, Mapping[str, object]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> Dict[str, object]:
    try:
        return deepcopy(_PRESETS[name])  # type: ignore[return-value]
    except KeyError as exc:
        available = ", ".join(sorted(_PRESETS))
        raise KeyError(f"Unknown preset {name!r}. Available presets: {available}") from exc


__all__ = ["TrainerConfig", "presets", "load_preset", "load_config", "read_config_file"]
