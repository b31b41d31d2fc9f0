from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
import hashlib
import json
import os
from pathlib import Path
import platform
import socket
import subprocess
from typing import Any
import uuid


@dataclass(frozen=True)
class HardwareInfo:
    hostname: str
    os_name: str
    os_version: str
    machine: str
    python_version: str
    cpu_count: int | None
    toolchain: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RunMetadata:
    run_id: str
    created_at_utc: str
    config_path: str | None
    config_hash_sha256: str | None
    hardware: HardwareInfo
    notes: dict[str, Any] = field(default_factory=dict)


def generate_run_id(prefix: str = "bench") -> str:
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return f"{prefix}-{timestamp}-{uuid.uuid4().hex[:8]}"


def compute_file_sha256(config_path: str | Path) -> str:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _tool_version(command: list[str]) -> str | None:
    try:
        result = subprocess.run(
            command,
            check=True,
            capture_output=True,
            text=True,
            timeout=30,
        )
    except (OSError, subprocess.CalledProcessError, subprocess.TimeoutExpired):
        return None
    version = result.stdout.strip().splitlines()
    return version[0] if version else None


def _collect_toolchain_info() -> dict[str, str]:
    versions: dict[str, str] = {}
    for name, command in (
        ("rustc", ["rustc", "--version"]),
        ("cargo", ["cargo", "--version"]),
        ("dx", ["dx", "--version"]),
    ):
        version = _tool_version(command)
        if version:
            versions[name] = version
    return versions


def collect_hardware_info() -> HardwareInfo:
    return HardwareInfo(
        hostname=socket.gethostname(),
        os_name=platform.system(),
        os_version=platform.version(),
        machine=platform.machine(),
        python_version=platform.python_version(),
        cpu_count=os.cpu_count(),
        toolchain=_collect_toolchain_info(),
    )


def create_run_metadata(
    config_path: str | Path | None = None,
    run_id: str | None = None,
    notes: dict[str, Any] | None = None,
) -> RunMetadata:
    resolved_config_path: Path | None = None
    config_hash: str | None = None
    if config_path is not None:
        resolved_config_path = Path(config_path).resolve()
        config_hash = compute_file_sha256(resolved_config_path)

    return RunMetadata(
        run_id=run_id or generate_run_id(),
        created_at_utc=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        config_path=str(resolved_config_path) if resolved_config_path else None,
        config_hash_sha256=config_hash,
        hardware=collect_hardware_info(),
        notes=notes or {},
    )


def run_metadata_to_dict(metadata: RunMetadata) -> dict[str, Any]:
    return asdict(metadata)


def write_run_metadata(metadata: RunMetadata, output_root: str | Path) -> Path:
    root = Path(output_root)
    run_dir = root / metadata.run_id
    run_dir.mkdir(parents=True, exist_ok=True)

    output_path = run_dir / "run_metadata.json"
    output_path.write_text(
        json.dumps(run_metadata_to_dict(metadata), indent=2, sort_keys=True),
        encoding="utf-8",
    )
    return output_path
