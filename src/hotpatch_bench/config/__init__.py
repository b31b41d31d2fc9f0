from hotpatch_bench.config.io import dump_simple_yaml, load_simple_yaml
from hotpatch_bench.config.schema import (
    HardwareInfo,
    RunMetadata,
    collect_hardware_info,
    create_run_metadata,
    generate_run_id,
    write_run_metadata,
)
from hotpatch_bench.config.settings import BenchConfig, config_from_mapping, load_bench_config

__all__ = [
    "BenchConfig",
    "HardwareInfo",
    "RunMetadata",
    "collect_hardware_info",
    "config_from_mapping",
    "create_run_metadata",
    "dump_simple_yaml",
    "generate_run_id",
    "load_bench_config",
    "load_simple_yaml",
    "write_run_metadata",
]
