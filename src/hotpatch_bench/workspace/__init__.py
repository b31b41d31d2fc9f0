from hotpatch_bench.workspace.codegen import (
    CodeBundle,
    CodegenOptions,
    build_cargo_config,
    build_cargo_toml,
    build_code_bundle,
    build_payload_main,
    default_toolchain,
)
from hotpatch_bench.workspace.provisioner import Workspace, write_workspace_files

__all__ = [
    "CodeBundle",
    "CodegenOptions",
    "Workspace",
    "build_cargo_config",
    "build_cargo_toml",
    "build_code_bundle",
    "build_payload_main",
    "default_toolchain",
    "write_workspace_files",
]
