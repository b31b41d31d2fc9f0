from hotpatch_bench.runners.build import DEFAULT_BUILD_COMMAND, run_build

__all__ = ["DEFAULT_BUILD_COMMAND", "run_build"]
