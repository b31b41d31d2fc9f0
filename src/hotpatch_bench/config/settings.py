"""Benchmark configuration: YAML file values, then CLI overrides.

Example ``bench.yaml``::

    build:
      command: cargo build
    hotpatch:
      enabled: true
      command: [dx, serve, --hot-patch, --features, bevy/hotpatching]
      ready_timeout_s: 180
      patch_timeout_s: 180
      poll_interval_ms: 200
      exit_grace_s: 5
    payload:
      framework_version: "0.17.2"
      linker_path: rust-lld
      cache_wrapper: sccache
    workspace:
      parent: /tmp/hotpatch-bench
      keep: false
    output_root: outputs/runs
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from pathlib import Path
import shlex
from typing import Any

from hotpatch_bench.config.io import load_simple_yaml
from hotpatch_bench.hotpatch.process import DEFAULT_DEV_SERVER_COMMAND
from hotpatch_bench.hotpatch.session import HotPatchSettings
from hotpatch_bench.runners.build import DEFAULT_BUILD_COMMAND
from hotpatch_bench.workspace.codegen import (
    DEFAULT_CACHE_WRAPPER,
    DEFAULT_FRAMEWORK_VERSION,
    DEFAULT_LINKER_PATH,
    CodegenOptions,
)


@dataclass(frozen=True)
class BenchConfig:
    build_command: tuple[str, ...] = DEFAULT_BUILD_COMMAND
    dev_server_command: tuple[str, ...] = DEFAULT_DEV_SERVER_COMMAND
    include_hotpatch: bool = True
    ready_timeout_s: float = 180.0
    patch_timeout_s: float = 180.0
    poll_interval_ms: int = 200
    exit_grace_s: float = 5.0
    framework_version: str = DEFAULT_FRAMEWORK_VERSION
    linker_path: str = DEFAULT_LINKER_PATH
    cache_wrapper: str = DEFAULT_CACHE_WRAPPER
    workspace_parent: str | None = None
    keep_workspaces: bool = False
    output_root: str = "outputs/runs"
    config_path: str | None = None

    def __post_init__(self) -> None:
        if not self.build_command:
            raise ValueError("build command must not be empty.")
        if not self.dev_server_command:
            raise ValueError("dev server command must not be empty.")
        for name in ("ready_timeout_s", "patch_timeout_s"):
            if getattr(self, name) <= 0:
                raise ValueError(f"'{name}' must be positive.")
        if self.poll_interval_ms <= 0:
            raise ValueError("'poll_interval_ms' must be positive.")
        if self.exit_grace_s < 0:
            raise ValueError("'exit_grace_s' must not be negative.")

    def codegen_options(self) -> CodegenOptions:
        return CodegenOptions(
            framework_version=self.framework_version,
            linker_path=self.linker_path,
            cache_wrapper=self.cache_wrapper,
        )

    def hotpatch_settings(self) -> HotPatchSettings:
        return HotPatchSettings(
            command=self.dev_server_command,
            ready_timeout_s=self.ready_timeout_s,
            patch_timeout_s=self.patch_timeout_s,
            poll_interval_s=self.poll_interval_ms / 1000.0,
            exit_grace_s=self.exit_grace_s,
        )

    def with_overrides(self, **overrides: Any) -> "BenchConfig":
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["build_command"] = list(self.build_command)
        payload["dev_server_command"] = list(self.dev_server_command)
        return payload


def _safe_float(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def _safe_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped and (stripped.isdigit() or (stripped.startswith("-") and stripped[1:].isdigit())):
            return int(stripped)
    if isinstance(value, float):
        return int(value)
    return default


def _safe_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return default


def _safe_str(value: Any, default: str) -> str:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped:
            return stripped
    return default


def _safe_optional_str(value: Any) -> str | None:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped:
            return stripped
    return None


def _as_mapping(value: Any, key_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"Expected '{key_name}' to be a mapping.")
    return value


def parse_command(value: Any, default: tuple[str, ...], key_name: str) -> tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str):
        parts = shlex.split(value)
    elif isinstance(value, list) and all(isinstance(item, (str, int, float)) for item in value):
        parts = [str(item) for item in value]
    else:
        raise ValueError(f"Expected '{key_name}' to be a string or a list of strings.")
    if not parts:
        raise ValueError(f"'{key_name}' must not be empty.")
    return tuple(parts)


def config_from_mapping(payload: dict[str, Any], config_path: str | None = None) -> BenchConfig:
    defaults = BenchConfig()
    build = _as_mapping(payload.get("build"), "build")
    hotpatch = _as_mapping(payload.get("hotpatch"), "hotpatch")
    code = _as_mapping(payload.get("payload"), "payload")
    workspace = _as_mapping(payload.get("workspace"), "workspace")

    return BenchConfig(
        build_command=parse_command(build.get("command"), defaults.build_command, "build.command"),
        dev_server_command=parse_command(
            hotpatch.get("command"), defaults.dev_server_command, "hotpatch.command"
        ),
        include_hotpatch=_safe_bool(hotpatch.get("enabled"), defaults.include_hotpatch),
        ready_timeout_s=_safe_float(hotpatch.get("ready_timeout_s"), defaults.ready_timeout_s),
        patch_timeout_s=_safe_float(hotpatch.get("patch_timeout_s"), defaults.patch_timeout_s),
        poll_interval_ms=_safe_int(hotpatch.get("poll_interval_ms"), defaults.poll_interval_ms),
        exit_grace_s=_safe_float(hotpatch.get("exit_grace_s"), defaults.exit_grace_s),
        framework_version=_safe_str(code.get("framework_version"), defaults.framework_version),
        linker_path=_safe_str(code.get("linker_path"), defaults.linker_path),
        cache_wrapper=_safe_str(code.get("cache_wrapper"), defaults.cache_wrapper),
        workspace_parent=_safe_optional_str(workspace.get("parent")),
        keep_workspaces=_safe_bool(workspace.get("keep"), defaults.keep_workspaces),
        output_root=_safe_str(payload.get("output_root"), defaults.output_root),
        config_path=config_path,
    )


def load_bench_config(path: str | Path | None = None) -> BenchConfig:
    if path is None:
        return BenchConfig()
    resolved = Path(path).resolve()
    return config_from_mapping(load_simple_yaml(resolved), config_path=str(resolved))
