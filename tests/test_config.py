import pytest

from hotpatch_bench.config.io import dump_simple_yaml, load_simple_yaml
from hotpatch_bench.config.settings import BenchConfig, config_from_mapping, load_bench_config, parse_command
from hotpatch_bench.hotpatch.process import DEFAULT_DEV_SERVER_COMMAND

SAMPLE = """
build:
  command: cargo build --timings
hotpatch:
  enabled: "no"
  command: [dx, serve, --hot-patch]
  ready_timeout_s: 90
  patch_timeout_s: "45.5"
  poll_interval_ms: 100
payload:
  framework_version: "0.18.0"
  linker_path: /opt/llvm/bin/rust-lld
workspace:
  parent: /tmp/bench-ws
  keep: true
output_root: results/runs
"""


def test_defaults_match_documented_values():
    config = load_bench_config()
    assert config.build_command == ("cargo", "build")
    assert config.dev_server_command == DEFAULT_DEV_SERVER_COMMAND
    assert config.include_hotpatch is True
    assert config.ready_timeout_s == 180.0
    assert config.hotpatch_settings().poll_interval_s == pytest.approx(0.2)
    assert config.codegen_options().framework_version == "0.17.2"


def test_load_yaml_sections(tmp_path):
    path = tmp_path / "bench.yaml"
    path.write_text(SAMPLE, encoding="utf-8")

    config = load_bench_config(path)

    assert config.build_command == ("cargo", "build", "--timings")
    assert config.dev_server_command == ("dx", "serve", "--hot-patch")
    assert config.include_hotpatch is False
    assert config.ready_timeout_s == 90.0
    assert config.patch_timeout_s == 45.5
    assert config.hotpatch_settings().poll_interval_s == pytest.approx(0.1)
    assert config.framework_version == "0.18.0"
    assert config.codegen_options().linker_path == "/opt/llvm/bin/rust-lld"
    assert config.cache_wrapper == "sccache"
    assert config.workspace_parent == "/tmp/bench-ws"
    assert config.keep_workspaces is True
    assert config.output_root == "results/runs"
    assert config.config_path == str(path.resolve())


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_bench_config(path).build_command == BenchConfig().build_command


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_simple_yaml(tmp_path / "missing.yaml")


def test_non_mapping_document_is_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_simple_yaml(path)


def test_section_must_be_mapping():
    with pytest.raises(ValueError, match="'hotpatch'"):
        config_from_mapping({"hotpatch": ["dx"]})


@pytest.mark.parametrize("value", ["", [], {"cmd": "cargo"}])
def test_parse_command_rejects_bad_values(value):
    with pytest.raises(ValueError):
        parse_command(value, ("cargo", "build"), "build.command")


def test_parse_command_keeps_default_when_unset():
    assert parse_command(None, ("cargo", "build"), "build.command") == ("cargo", "build")


@pytest.mark.parametrize(
    "overrides",
    [
        {"ready_timeout_s": 0},
        {"patch_timeout_s": -1.0},
        {"poll_interval_ms": 0},
        {"exit_grace_s": -0.5},
        {"build_command": ()},
    ],
)
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ValueError):
        BenchConfig(**overrides)


def test_with_overrides_ignores_none():
    config = BenchConfig()
    assert config.with_overrides(ready_timeout_s=None) is config
    assert config.with_overrides(ready_timeout_s=5.0).ready_timeout_s == 5.0


def test_to_dict_dumps_commands_as_lists():
    text = dump_simple_yaml(BenchConfig().to_dict())
    assert "build_command:\n- cargo\n- build\n" in text
