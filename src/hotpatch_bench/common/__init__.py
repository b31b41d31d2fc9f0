from hotpatch_bench.common.logging import configure_logging

__all__ = ["configure_logging"]
