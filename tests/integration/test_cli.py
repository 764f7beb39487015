import json
from pathlib import Path

import pytest

from cli.main import main


def test_cli_basic_preset(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    main(["--preset", "xor", "--max-epoch", "20"])
    run_dir = Path("runs/xor")
    assert (run_dir / "metrics.jsonl").exists()
    assert (run_dir / "manifest.json").exists()
    assert (run_dir / "network.npz").exists()
    summary = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert summary["status"] in {"complete", "canceled"}
    assert summary["epochs"] <= 20


def test_cli_overrides_and_dump_config(tmp_path, capsys):
    dump = tmp_path / "resolved.json"
    main(
        [
            "--dataset",
            "sine",
            "--hidden",
            "3",
            "2",
            "--activation",
            "tanh",
            "--init",
            "zero",
            "--seed",
            "5",
            "--max-epoch",
            "2",
            "--run-dir",
            str(tmp_path / "run"),
            "--dump-config",
            str(dump),
        ]
    )
    config = json.loads(dump.read_text())
    assert config["data"]["name"] == "sine"
    assert config["model"] == {"hidden": [3, 2], "activation": "tanh", "init": "zero", "seed": 5}
    assert config["train"]["max_epoch"] == 2
    assert config["train"]["seed"] == 5
    manifest = json.loads((tmp_path / "run" / "manifest.json").read_text())
    assert manifest["network"]["signature"] == "(1, 3, 2, 1)"
    assert manifest["network"]["activation"] == "tanh"


def test_cli_list_presets(capsys):
    with pytest.raises(SystemExit) as info:
        main(["--list-presets"])
    assert info.value.code == 0
    assert capsys.readouterr().out.split() == ["sine-min", "xor"]


def test_cli_config_file(tmp_path):
    config_path = tmp_path / "run.json"
    config_path.write_text(
        json.dumps(
            {
                "data": {"name": "xor"},
                "model": {"hidden": [2], "init": "random", "seed": 1},
                "train": {"max_epoch": 2, "run_dir": str(tmp_path / "from-file")},
            }
        )
    )
    main(["--config", str(config_path)])
    assert (tmp_path / "from-file" / "network.npz").exists()


def test_cli_requires_inputs_and_targets_together(tmp_path):
    with pytest.raises(SystemExit):
        main(["--inputs", str(tmp_path / "x.csv"), "--run-dir", str(tmp_path)])
