import sys

import pytest

from hotpatch_bench.errors import BuildFailed
from hotpatch_bench.runners.build import run_build
from hotpatch_bench.scenarios.matrix import prepare_scenario
from hotpatch_bench.scenarios.model import Scenario
from hotpatch_bench.workspace.provisioner import Workspace


@pytest.fixture
def workspace(tmp_path):
    with Workspace.create(prepare_scenario(Scenario()), parent=tmp_path) as ws:
        yield ws


def test_successful_build_returns_elapsed_seconds(workspace, capsys):
    elapsed = run_build(workspace, "clean", [sys.executable, "-c", "pass"])
    assert isinstance(elapsed, float)
    assert elapsed >= 0
    assert f"[bench] Running clean build in {workspace.root}" in capsys.readouterr().out


def test_build_runs_inside_workspace(workspace):
    script = "import pathlib; pathlib.Path('built.txt').write_text('ok')"
    run_build(workspace, "clean", [sys.executable, "-c", script])
    assert (workspace.root / "built.txt").read_text() == "ok"


def test_nonzero_exit_raises_build_failed(workspace):
    with pytest.raises(BuildFailed) as excinfo:
        run_build(workspace, "second", [sys.executable, "-c", "import sys; sys.exit(3)"])
    assert excinfo.value.label == "second"
    assert excinfo.value.status == 3


def test_missing_binary_raises_build_failed_without_status(workspace):
    with pytest.raises(BuildFailed) as excinfo:
        run_build(workspace, "clean", ["definitely-not-a-real-build-tool-xyz"])
    assert excinfo.value.status is None
    assert isinstance(excinfo.value.__cause__, OSError)
