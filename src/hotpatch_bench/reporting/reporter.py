from __future__ import annotations

import json
from pathlib import Path
from typing import Any

SUMMARY_FILENAME = "bench_summary.json"


def resolve_run_dir(target: str, runs_root: str | Path = "outputs/runs") -> Path:
    root = Path(runs_root)
    if target == "latest":
        run_dirs = sorted(
            path for path in root.glob("bench-*") if path.is_dir() and (path / SUMMARY_FILENAME).exists()
        )
        if not run_dirs:
            raise FileNotFoundError(f"No benchmark runs found under {root}.")
        return run_dirs[-1]

    candidate = Path(target)
    if candidate.is_dir():
        return candidate

    run_dir = root / target
    if run_dir.is_dir():
        return run_dir

    raise FileNotFoundError(f"Unable to resolve run directory from target: {target}")


def build_run_markdown_report(payload: dict[str, Any], summary_path: str | Path) -> str:
    run_id = _fmt_text(payload.get("run_id"))
    scenarios = _as_list_of_dicts(payload.get("scenarios"))
    config = _as_dict(payload.get("config"))
    metadata = _as_dict(payload.get("run_metadata"))
    hardware = _as_dict(metadata.get("hardware"))
    toolchain = _as_dict(hardware.get("toolchain"))

    lines = [
        f"# Build Benchmark: {run_id}",
        "",
        f"- Started (UTC): `{_fmt_text(payload.get('started_at_utc'))}`",
        f"- Finished (UTC): `{_fmt_text(payload.get('finished_at_utc'))}`",
        f"- Wall time (s): `{_fmt_seconds(payload.get('wall_time_s'))}`",
        f"- Scenarios: `{len(scenarios)}`",
        f"- Build command: `{_fmt_command(config.get('build_command'))}`",
        f"- Dev server command: `{_fmt_command(config.get('dev_server_command'))}`",
        f"- Framework version: `{_fmt_text(config.get('framework_version'))}`",
        f"- Host: `{_fmt_text(hardware.get('hostname'))}` ({_fmt_text(hardware.get('os_name'))}, "
        f"{_fmt_text(hardware.get('machine'))})",
        f"- rustc: `{_fmt_text(toolchain.get('rustc'))}`",
        "",
        "## Timings",
        "",
        "| Scenario | Linker | Cache | Codegen | Hotpatch | Clean (s) | Second (s) | Hotpatch (s) |",
        "| :---- | :---- | :---- | :---- | :---- | :---- | :---- | :---- |",
    ]
    for scenario in scenarios:
        timings = _as_dict(scenario.get("timings_s"))
        lines.append(
            "| "
            f"{_fmt_text(scenario.get('slug'))} | "
            f"{_fmt_text(scenario.get('linker'))} | "
            f"{_fmt_text(scenario.get('cache'))} | "
            f"{_fmt_text(scenario.get('codegen'))} | "
            f"{_fmt_text(scenario.get('hotpatch'))} | "
            f"{_fmt_seconds(timings.get('first'))} | "
            f"{_fmt_seconds(timings.get('second'))} | "
            f"{_fmt_seconds(timings.get('hotpatch'))} |"
        )

    lines.extend(
        [
            "",
            "## Files",
            "",
            f"- Summary JSON: `{Path(summary_path).resolve()}`",
        ]
    )
    return "\n".join(lines) + "\n"


def generate_run_report(
    run_target: str,
    *,
    runs_root: str | Path = "outputs/runs",
    reports_root: str | Path = "outputs/reports",
) -> Path:
    run_dir = resolve_run_dir(run_target, runs_root=runs_root)
    summary_path = run_dir / SUMMARY_FILENAME
    if not summary_path.exists():
        raise FileNotFoundError(f"No {SUMMARY_FILENAME} found under {run_dir}")
    payload = json.loads(summary_path.read_text(encoding="utf-8"))
    report_text = build_run_markdown_report(payload, summary_path)

    run_id = str(payload.get("run_id", run_dir.name))
    output_dir = Path(reports_root)
    output_dir.mkdir(parents=True, exist_ok=True)
    report_path = output_dir / f"{run_id}.md"
    report_path.write_text(report_text, encoding="utf-8")
    return report_path.resolve()


def _as_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    return {}


def _as_list_of_dicts(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _fmt_seconds(value: Any) -> str:
    if isinstance(value, bool):
        return "n/a"
    if isinstance(value, (int, float)):
        return f"{float(value):.3f}"
    return "n/a"


def _fmt_text(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return "n/a"


def _fmt_command(value: Any) -> str:
    if isinstance(value, list) and value:
        return " ".join(str(part) for part in value)
    return "n/a"
