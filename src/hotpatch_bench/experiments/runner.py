from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
import json
from time import perf_counter
from typing import Any, Callable, Sequence

from loguru import logger

from hotpatch_bench.config.schema import create_run_metadata, run_metadata_to_dict, write_run_metadata
from hotpatch_bench.config.settings import BenchConfig
from hotpatch_bench.errors import ScenarioFailed
from hotpatch_bench.hotpatch.session import HotPatchSession
from hotpatch_bench.reporting.reporter import SUMMARY_FILENAME
from hotpatch_bench.runners.build import run_build
from hotpatch_bench.scenarios.matrix import (
    PreparedScenario,
    enumerate_scenarios,
    filter_by_slug,
    prepare_scenarios,
)
from hotpatch_bench.workspace.provisioner import Workspace

BuildFn = Callable[..., float]
SessionFactory = Callable[..., HotPatchSession]


@dataclass(frozen=True)
class ScenarioTimings:
    first: float | None = None
    second: float | None = None
    hotpatch: float | None = None


@dataclass(frozen=True)
class ScenarioResult:
    slug: str
    description: str
    timings: ScenarioTimings


@dataclass(frozen=True)
class BenchRunResult:
    run_id: str | None
    results: list[ScenarioResult]
    run_dir: str | None = None
    metadata_path: str | None = None
    summary_path: str | None = None


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def format_duration(value: float | None) -> str:
    if value is None:
        return "n/a"
    return f"{value:.3f}s"


def report_timings(result: ScenarioResult) -> None:
    timings = result.timings
    print(
        f"[bench] Results for {result.slug} -> "
        f"clean={format_duration(timings.first)}, "
        f"second={format_duration(timings.second)}, "
        f"hotpatch={format_duration(timings.hotpatch)}",
        flush=True,
    )


def plan_scenarios(config: BenchConfig, filters: Sequence[str] | None = None) -> list[PreparedScenario]:
    scenarios = enumerate_scenarios(include_hotpatch=config.include_hotpatch)
    prepared = prepare_scenarios(scenarios, config.codegen_options())
    return filter_by_slug(prepared, filters)


class ScenarioRunner:
    """Drive provision -> clean build -> second build -> hot-patch per scenario.

    Scenarios run strictly one after another; the first failure aborts the
    rest of the matrix.
    """

    def __init__(
        self,
        config: BenchConfig,
        *,
        build: BuildFn = run_build,
        session_factory: SessionFactory = HotPatchSession,
    ) -> None:
        self._config = config
        self._build = build
        self._session_factory = session_factory

    def run_scenario(self, prepared: PreparedScenario) -> ScenarioResult:
        config = self._config
        with Workspace.create(
            prepared,
            parent=config.workspace_parent,
            keep=config.keep_workspaces,
        ) as workspace:
            first = self._build(workspace, "clean", config.build_command)
            second = self._build(workspace, "second", config.build_command)
            hotpatch: float | None = None
            if prepared.scenario.wants_hotpatch:
                session = self._session_factory(workspace, prepared, config.hotpatch_settings())
                hotpatch = session.run()

        return ScenarioResult(
            slug=prepared.slug,
            description=prepared.scenario.describe(),
            timings=ScenarioTimings(first=first, second=second, hotpatch=hotpatch),
        )

    def run_all(self, prepared: Sequence[PreparedScenario]) -> list[ScenarioResult]:
        print(f"Benchmarking {len(prepared)} scenario(s)...", flush=True)
        results: list[ScenarioResult] = []
        for item in prepared:
            print(f"\n=== Scenario: {item.slug} ===", flush=True)
            print(item.scenario.describe(), flush=True)
            try:
                result = self.run_scenario(item)
            except Exception as exc:
                logger.debug("Aborting matrix after failure in {}", item.slug)
                raise ScenarioFailed(item.slug, exc) from exc
            report_timings(result)
            results.append(result)
        print("\nAll scenarios completed.", flush=True)
        return results


def build_summary_payload(
    *,
    run_id: str,
    config: BenchConfig,
    prepared: Sequence[PreparedScenario],
    results: Sequence[ScenarioResult],
    started_at: str,
    finished_at: str,
    wall_time_s: float,
) -> dict[str, Any]:
    by_slug = {item.slug: item for item in prepared}
    scenarios: list[dict[str, Any]] = []
    for result in results:
        item = by_slug.get(result.slug)
        scenario = item.scenario if item is not None else None
        scenarios.append(
            {
                "slug": result.slug,
                "description": result.description,
                "linker": scenario.linker_label() if scenario else None,
                "cache": scenario.cache_label() if scenario else None,
                "codegen": scenario.codegen_label() if scenario else None,
                "hotpatch": scenario.hotpatch_label() if scenario else None,
                "ready_marker": item.ready_marker if item else None,
                "timings_s": asdict(result.timings),
            }
        )
    return {
        "run_id": run_id,
        "started_at_utc": started_at,
        "finished_at_utc": finished_at,
        "wall_time_s": wall_time_s,
        "scenario_count": len(scenarios),
        "config": config.to_dict(),
        "scenarios": scenarios,
    }


def run_benchmarks(
    config: BenchConfig,
    *,
    filters: Sequence[str] | None = None,
    run_id: str | None = None,
    write_artifacts: bool = True,
    runner: ScenarioRunner | None = None,
) -> BenchRunResult:
    prepared = plan_scenarios(config, filters)
    if not prepared:
        raise ValueError("No scenarios selected; check the --filter patterns.")

    started_at = _utc_now()
    wall_start = perf_counter()
    results = (runner or ScenarioRunner(config)).run_all(prepared)
    wall_time_s = perf_counter() - wall_start

    if not write_artifacts:
        return BenchRunResult(run_id=run_id, results=results)

    metadata = create_run_metadata(
        config_path=config.config_path,
        run_id=run_id,
        notes={"filters": list(filters or []), "scenario_count": len(prepared)},
    )
    metadata_path = write_run_metadata(metadata, config.output_root)
    run_dir = metadata_path.parent

    payload = build_summary_payload(
        run_id=metadata.run_id,
        config=config,
        prepared=prepared,
        results=results,
        started_at=started_at,
        finished_at=_utc_now(),
        wall_time_s=wall_time_s,
    )
    payload["run_metadata"] = run_metadata_to_dict(metadata)
    summary_path = run_dir / SUMMARY_FILENAME
    summary_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    logger.info("Wrote benchmark summary to {}", summary_path)

    return BenchRunResult(
        run_id=metadata.run_id,
        results=results,
        run_dir=str(run_dir.resolve()),
        metadata_path=str(metadata_path.resolve()),
        summary_path=str(summary_path.resolve()),
    )
