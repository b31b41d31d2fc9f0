from hotpatch_bench.reporting.reporter import (
    build_run_markdown_report,
    generate_run_report,
    resolve_run_dir,
)

__all__ = [
    "build_run_markdown_report",
    "generate_run_report",
    "resolve_run_dir",
]
