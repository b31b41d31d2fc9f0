import pytest

from hotpatch_bench.scenarios.model import Cache, Codegen, Hotpatch, Linker, Scenario
from hotpatch_bench.workspace.codegen import (
    CodegenOptions,
    build_cargo_config,
    build_cargo_toml,
    build_code_bundle,
    build_payload_main,
    default_toolchain,
)


def test_default_cargo_config_only_sets_target_dir():
    text = build_cargo_config(Scenario(), "my-slug")
    assert text == '[build]\ntarget-dir = "target/my-slug"\n'


@pytest.mark.parametrize(
    ("cache", "expected"),
    [
        (Cache.DISABLE_INCREMENTAL, 'CARGO_INCREMENTAL = "0"'),
        (Cache.SCCACHE, 'RUSTC_WRAPPER = "sccache"'),
    ],
)
def test_cache_strategy_sets_env(cache, expected):
    text = build_cargo_config(Scenario(cache=cache), "slug")
    assert "[env]" in text
    assert expected in text


def test_share_generics_sets_rustflags():
    text = build_cargo_config(Scenario(codegen=Codegen.SHARE_GENERICS), "slug")
    assert 'RUSTFLAGS = "-Zshare-generics=y"' in text
    assert "CARGO_INCREMENTAL" not in text


def test_linker_section_uses_configured_path():
    options = CodegenOptions(linker_path="/opt/llvm/bin/rust-lld")
    text = build_cargo_config(Scenario(linker=Linker.RUST_LLD), "slug", options)
    assert "[target.'cfg(all())']" in text
    assert 'linker = "/opt/llvm/bin/rust-lld"' in text


def test_custom_cache_wrapper():
    options = CodegenOptions(cache_wrapper="/usr/local/bin/sccache")
    text = build_cargo_config(Scenario(cache=Cache.SCCACHE), "slug", options)
    assert 'RUSTC_WRAPPER = "/usr/local/bin/sccache"' in text


def test_cargo_toml_without_features():
    text = build_cargo_toml(Scenario(), "slug")
    assert 'name = "bench-payload-slug"' in text
    assert 'bevy = { version = "0.17.2" }' in text
    assert "features" not in text


def test_cargo_toml_features_follow_scenario():
    scenario = Scenario(codegen=Codegen.DYNAMIC_LINKING, hotpatch=Hotpatch.DX)
    text = build_cargo_toml(scenario, "slug", CodegenOptions(framework_version="0.18.0"))
    assert 'bevy = { version = "0.18.0", features = ["dynamic_linking", "hotpatching"] }' in text


def test_payload_main_embeds_marker_and_value():
    text = build_payload_main("MARKER", 987654321)
    assert 'const READY_MARKER: &str = "MARKER";' in text
    assert "const PAYLOAD_RANDOM_VALUE: u64 = 987654321;" in text
    assert 'println!("PAYLOAD_RANDOM_VALUE={}", PAYLOAD_RANDOM_VALUE);' in text
    assert "% 600 == 0" in text


def test_payload_main_changes_only_with_value():
    assert build_payload_main("MARKER", 1) == build_payload_main("MARKER", 1)
    assert build_payload_main("MARKER", 1) != build_payload_main("MARKER", 2)


def test_bundle_is_deterministic():
    scenario = Scenario(linker=Linker.RUST_LLD, cache=Cache.SCCACHE)
    first = build_code_bundle(scenario, "slug", "MARKER", 7)
    second = build_code_bundle(scenario, "slug", "MARKER", 7)
    assert first == second
    assert first.rust_toolchain_toml == default_toolchain()
    assert 'channel = "nightly"' in first.rust_toolchain_toml


def test_windows_paths_produce_valid_toml():
    tomllib = pytest.importorskip("tomllib")
    options = CodegenOptions(
        linker_path=r"C:\Users\dev\.cargo\bin\rust-lld.exe",
        cache_wrapper=r"C:\tools\sccache.exe",
    )
    scenario = Scenario(linker=Linker.RUST_LLD, cache=Cache.SCCACHE)

    config = tomllib.loads(build_cargo_config(scenario, "slug", options))

    assert config["target"]["cfg(all())"]["linker"] == r"C:\Users\dev\.cargo\bin\rust-lld.exe"
    assert config["env"]["RUSTC_WRAPPER"] == r"C:\tools\sccache.exe"
    assert config["build"]["target-dir"] == "target/slug"


def test_quoted_framework_version_produces_valid_toml():
    tomllib = pytest.importorskip("tomllib")
    options = CodegenOptions(framework_version='0.17"2')
    manifest = tomllib.loads(build_cargo_toml(Scenario(hotpatch=Hotpatch.DX), "slug", options))
    assert manifest["dependencies"]["bevy"] == {"version": '0.17"2', "features": ["hotpatching"]}
    assert manifest["package"]["name"] == "bench-payload-slug"
