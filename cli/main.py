"""Command line entry point for scgnet training runs."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Iterable

from scgnet.core import activations
from scgnet.data import synthetic
from scgnet.training import config as config_mod
from scgnet.training import pipelines


def _format_result(result) -> str:
    payload = asdict(result)
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(config_mod.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="xor",
        help="Preset configuration to execute",
    )
    parser.add_argument(
        "--config", type=Path, help="Optional JSON/YAML config override"
    )
    parser.add_argument(
        "--dataset",
        choices=list(synthetic.names()),
        help="Override the dataset used by the run",
    )
    parser.add_argument("--inputs", type=Path, help="CSV file with one input sample per row")
    parser.add_argument("--targets", type=Path, help="CSV file with one target sample per row")
    parser.add_argument(
        "--hidden",
        type=int,
        nargs="+",
        help="Hidden layer sizes, e.g. --hidden 4 3",
    )
    parser.add_argument(
        "--activation", choices=list(activations.names()), help="Shared activation function"
    )
    parser.add_argument(
        "--init", choices=["zero", "random"], help="Parameter initialisation"
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed used for the sample split and random initialisation",
    )
    parser.add_argument("--max-epoch", type=int, help="Maximum number of SCG epochs")
    parser.add_argument("--run-dir", type=Path, help="Directory receiving run artifacts")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Enable plotting adapters"
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


def resolve_config(args: argparse.Namespace) -> dict:
    config = json.loads(json.dumps(config_mod.load_preset(args.preset)))

    if args.config:
        override = config_mod.read_config_file(args.config)
        if {"data", "model", "train"} <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = _merge(config, dict(override))

    if (args.inputs is None) != (args.targets is None):
        raise SystemExit("--inputs and --targets must be given together")
    if args.inputs is not None:
        config["data"] = {
            "name": "csv",
            "options": {"inputs": str(args.inputs), "targets": str(args.targets)},
        }
    elif args.dataset:
        config["data"] = {"name": args.dataset, "options": {}}

    model = config.setdefault("model", {})
    if args.hidden:
        model["hidden"] = list(args.hidden)
    if args.activation:
        model["activation"] = args.activation
    if args.init:
        model["init"] = args.init

    train = config.setdefault("train", {})
    if args.seed is not None:
        model["seed"] = int(args.seed)
        train["seed"] = int(args.seed)
    if args.max_epoch is not None:
        train["max_epoch"] = int(args.max_epoch)
    if args.run_dir is not None:
        train["run_dir"] = str(args.run_dir)
    if args.enable_plots:
        train["enable_plots"] = True
    return config


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_presets:
        for name in sorted(config_mod.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = resolve_config(args)

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)
    print(_format_result(result))


if __name__ == "__main__":
    main()
