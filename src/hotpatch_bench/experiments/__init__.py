from hotpatch_bench.experiments.runner import (
    BenchRunResult,
    ScenarioResult,
    ScenarioRunner,
    ScenarioTimings,
    format_duration,
    plan_scenarios,
    report_timings,
    run_benchmarks,
)

__all__ = [
    "BenchRunResult",
    "ScenarioResult",
    "ScenarioRunner",
    "ScenarioTimings",
    "format_duration",
    "plan_scenarios",
    "report_timings",
    "run_benchmarks",
]
