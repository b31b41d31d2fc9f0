from __future__ import annotations

import subprocess
from time import perf_counter
from typing import Sequence

from hotpatch_bench.errors import BuildFailed
from hotpatch_bench.workspace.provisioner import Workspace

DEFAULT_BUILD_COMMAND: tuple[str, ...] = ("cargo", "build")


def run_build(
    workspace: Workspace,
    label: str,
    command: Sequence[str] = DEFAULT_BUILD_COMMAND,
) -> float:
    """Run the build command in the workspace and return elapsed seconds.

    Output is inherited so compiler diagnostics stream to the operator.
    """
    print(f"[bench] Running {label} build in {workspace.root}", flush=True)
    started = perf_counter()
    try:
        completed = subprocess.run(list(command), cwd=str(workspace.root), check=False)
    except OSError as exc:
        raise BuildFailed(label, None) from exc
    elapsed = perf_counter() - started

    if completed.returncode != 0:
        raise BuildFailed(label, completed.returncode)
    return elapsed
