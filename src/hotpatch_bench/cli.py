from __future__ import annotations

import argparse
import json
import sys

from loguru import logger

from hotpatch_bench.common.logging import configure_logging
from hotpatch_bench.config.io import dump_simple_yaml
from hotpatch_bench.config.settings import BenchConfig, load_bench_config
from hotpatch_bench.experiments.runner import plan_scenarios, run_benchmarks
from hotpatch_bench.reporting.reporter import generate_run_report


def _load_config(args: argparse.Namespace) -> BenchConfig:
    config = load_bench_config(getattr(args, "config", None))
    include_hotpatch = False if getattr(args, "no_hotpatch", False) else None
    keep_workspaces = True if getattr(args, "keep_workspaces", False) else None
    return config.with_overrides(
        include_hotpatch=include_hotpatch,
        ready_timeout_s=getattr(args, "ready_timeout", None),
        patch_timeout_s=getattr(args, "patch_timeout", None),
        keep_workspaces=keep_workspaces,
        workspace_parent=getattr(args, "workspace_parent", None),
        output_root=getattr(args, "output_root", None),
    )


def cmd_list_scenarios(args: argparse.Namespace) -> int:
    config = _load_config(args)
    prepared = plan_scenarios(config, args.filter)
    for item in prepared:
        print(f"{item.slug}\t{item.scenario.describe()}")
    print(f"{len(prepared)} scenario(s)", file=sys.stderr)
    return 0


def cmd_show_config(args: argparse.Namespace) -> int:
    config = _load_config(args)
    print(dump_simple_yaml(config.to_dict()), end="")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    config = _load_config(args)
    if args.dry_run:
        prepared = plan_scenarios(config, args.filter)
        print("Planned scenarios:")
        for item in prepared:
            print(f"  {item.slug} ({item.scenario.describe()})")
        print(json.dumps(config.to_dict(), indent=2, sort_keys=True))
        return 0

    result = run_benchmarks(
        config,
        filters=args.filter,
        run_id=args.run_id,
        write_artifacts=not args.no_artifacts,
    )
    if result.summary_path:
        print(
            json.dumps(
                {
                    "run_id": result.run_id,
                    "run_dir": result.run_dir,
                    "metadata_path": result.metadata_path,
                    "summary_path": result.summary_path,
                    "scenario_count": len(result.results),
                },
                indent=2,
                sort_keys=True,
            )
        )
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    report_path = generate_run_report(
        args.run_target,
        runs_root=args.runs_root,
        reports_root=args.reports_root,
    )
    print(report_path)
    return 0


def _add_matrix_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a benchmark YAML config; built-in defaults are used when omitted.",
    )
    parser.add_argument(
        "--filter",
        action="append",
        default=[],
        help="Only keep scenarios whose slug contains this text (repeatable, all must match).",
    )
    parser.add_argument(
        "--no-hotpatch",
        action="store_true",
        help="Skip the dx hot-patch variants of each scenario.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hotpatch-bench",
        description="Benchmark clean, incremental and hot-patch build latency across toolchain setups.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser(
        "list-scenarios",
        help="Print the slug and description of every planned scenario.",
    )
    _add_matrix_arguments(list_parser)
    list_parser.set_defaults(func=cmd_list_scenarios)

    show_parser = subparsers.add_parser(
        "show-config",
        help="Print the effective configuration as YAML.",
    )
    _add_matrix_arguments(show_parser)
    show_parser.set_defaults(func=cmd_show_config)

    run_parser = subparsers.add_parser(
        "run",
        help="Run the scenario matrix and write run artifacts.",
    )
    _add_matrix_arguments(run_parser)
    run_parser.add_argument(
        "--ready-timeout",
        type=float,
        default=None,
        help="Seconds to wait for the dev server's ready marker.",
    )
    run_parser.add_argument(
        "--patch-timeout",
        type=float,
        default=None,
        help="Seconds to wait for the patched payload value after the source edit.",
    )
    run_parser.add_argument(
        "--workspace-parent",
        default=None,
        help="Directory to create scenario workspaces in (system temp dir by default).",
    )
    run_parser.add_argument(
        "--keep-workspaces",
        action="store_true",
        help="Leave generated workspaces on disk for inspection.",
    )
    run_parser.add_argument(
        "--output-root",
        default=None,
        help="Directory where <run_id>/ artifacts will be written.",
    )
    run_parser.add_argument(
        "--run-id",
        default=None,
        help="Optional explicit run_id; autogenerated when omitted.",
    )
    run_parser.add_argument(
        "--no-artifacts",
        action="store_true",
        help="Do not write run metadata and summary JSON.",
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the planned scenarios and effective config without building.",
    )
    run_parser.set_defaults(func=cmd_run)

    report_parser = subparsers.add_parser(
        "report",
        help="Render a markdown report for a finished run.",
    )
    report_parser.add_argument(
        "run_target",
        nargs="?",
        default="latest",
        help="Run ID, run directory path, or 'latest'.",
    )
    report_parser.add_argument(
        "--runs-root",
        default="outputs/runs",
        help="Root directory containing bench-* run folders.",
    )
    report_parser.add_argument(
        "--reports-root",
        default="outputs/reports",
        help="Output directory for markdown report files.",
    )
    report_parser.set_defaults(func=cmd_report)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose)
    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("error: interrupted", file=sys.stderr)
        return 130
    except Exception as exc:
        logger.opt(exception=exc).debug("Command failed")
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
