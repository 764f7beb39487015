"""Run artifact helpers."""

from __future__ import annotations

import json
import platform
import subprocess
import time
from pathlib import Path
from typing import Mapping

from ..core.network import NetworkModel


def git_sha() -> str:
    try:
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
        return out.decode().strip()
    except Exception:  # pragma: no cover - git may be unavailable in tests
        return "unknown"


def write_manifest(
    path: str | Path,
    *,
    config: Mapping[str, object],
    network: NetworkModel | None = None,
    extra: Mapping[str, object] | None = None,
) -> str:
    """Write a manifest JSON file capturing reproducibility metadata."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    manifest = {
        "git_sha": git_sha(),
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": dict(config),
        "network": None
        if network is None
        else {
            "signature": network.signature,
            "activation": network.activation.name,
            "parameters": network.parameter_count,
            "name": network.name,
        },
        "environment": {"python": platform.python_version()},
    }
    if extra:
        manifest.update(dict(extra))
    path.write_text(json.dumps(manifest, indent=2))
    return str(path)


__all__ = ["write_manifest", "git_sha"]
