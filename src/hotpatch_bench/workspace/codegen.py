from __future__ import annotations

from dataclasses import dataclass
import os

from hotpatch_bench.scenarios.model import Cache, Codegen, Hotpatch, Linker, Scenario

DEFAULT_FRAMEWORK_VERSION = "0.17.2"
DEFAULT_CACHE_WRAPPER = "sccache"
DEFAULT_LINKER_PATH = "rust-lld.exe" if os.name == "nt" else "rust-lld"
HEARTBEAT_EVERY_TICKS = 600

_TOOLCHAIN_TOML = """[toolchain]
channel = "nightly"
components = ["llvm-tools-preview"]
profile = "default"
"""



def _toml_str(value: str) -> str:
    escaped = value.replace('\\', '\\\\').replace('"', '\\"')
    return f'"{escaped}"'


@dataclass(frozen=True)
class CodegenOptions:
    framework_version: str = DEFAULT_FRAMEWORK_VERSION
    linker_path: str = DEFAULT_LINKER_PATH
    cache_wrapper: str = DEFAULT_CACHE_WRAPPER


@dataclass(frozen=True)
class CodeBundle:
    cargo_config_toml: str
    src_main_rs: str
    cargo_toml: str
    rust_toolchain_toml: str


def build_code_bundle(
    scenario: Scenario,
    slug: str,
    ready_marker: str,
    payload_value: int,
    options: CodegenOptions | None = None,
) -> CodeBundle:
    opts = options or CodegenOptions()
    return CodeBundle(
        cargo_config_toml=build_cargo_config(scenario, slug, opts),
        src_main_rs=build_payload_main(ready_marker, payload_value),
        cargo_toml=build_cargo_toml(scenario, slug, opts),
        rust_toolchain_toml=default_toolchain(),
    )


def build_payload_main(ready_marker: str, payload_value: int) -> str:
    return f"""use bevy::prelude::*;

const READY_MARKER: &str = "{ready_marker}";
const PAYLOAD_RANDOM_VALUE: u64 = {payload_value};

fn main() {{
    App::new()
        .add_plugins(DefaultPlugins)
        .add_systems(Startup, announce_ready)
        .add_systems(Update, heartbeat)
        .run();
}}

fn announce_ready() {{
    println!("{{}}", READY_MARKER);
    println!("PAYLOAD_RANDOM_VALUE={{}}", PAYLOAD_RANDOM_VALUE);
}}

fn heartbeat(mut ticks: Local<u32>) {{
    *ticks += 1;
    if *ticks % {HEARTBEAT_EVERY_TICKS} == 0 {{
        println!("PAYLOAD_HEARTBEAT::{{}}::{{}}", READY_MARKER, *ticks);
    }}
}}
"""


def build_cargo_config(scenario: Scenario, slug: str, options: CodegenOptions | None = None) -> str:
    opts = options or CodegenOptions()
    lines = ["[build]", f"target-dir = {_toml_str(f'target/{slug}')}"]

    env_lines: list[tuple[str, str]] = []
    if scenario.cache is Cache.DISABLE_INCREMENTAL:
        env_lines.append(("CARGO_INCREMENTAL", "0"))
    elif scenario.cache is Cache.SCCACHE:
        env_lines.append(("RUSTC_WRAPPER", opts.cache_wrapper))
    if scenario.codegen is Codegen.SHARE_GENERICS:
        env_lines.append(("RUSTFLAGS", "-Zshare-generics=y"))

    if env_lines:
        lines.extend(["", "[env]"])
        lines.extend(f"{key} = {_toml_str(value)}" for key, value in env_lines)

    if scenario.linker is Linker.RUST_LLD:
        lines.extend(["", "[target.'cfg(all())']", f"linker = {_toml_str(opts.linker_path)}"])

    return "\n".join(lines) + "\n"


def build_cargo_toml(scenario: Scenario, slug: str, options: CodegenOptions | None = None) -> str:
    opts = options or CodegenOptions()
    features: list[str] = []
    if scenario.codegen is Codegen.DYNAMIC_LINKING:
        features.append("dynamic_linking")
    if scenario.hotpatch is Hotpatch.DX:
        features.append("hotpatching")

    features_clause = ""
    if features:
        feature_list = ", ".join(f'"{feature}"' for feature in features)
        features_clause = f", features = [{feature_list}]"

    return f"""[package]
name = {_toml_str(f'bench-payload-{slug}')}
version = "0.1.0"
edition = "2024"

[dependencies]
bevy = {{ version = {_toml_str(opts.framework_version)}{features_clause} }}

[profile.dev]
opt-level = 1

[profile.dev.package."*"]
opt-level = 3
"""


def default_toolchain() -> str:
    return _TOOLCHAIN_TOML
