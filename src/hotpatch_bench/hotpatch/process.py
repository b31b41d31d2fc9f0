from __future__ import annotations

from pathlib import Path
import subprocess
from typing import IO, Callable, Protocol, Sequence, runtime_checkable

from loguru import logger

from hotpatch_bench.errors import SpawnFailure

DEFAULT_DEV_SERVER_COMMAND: tuple[str, ...] = (
    "dx",
    "serve",
    "--hot-patch",
    "--features",
    "bevy/hotpatching",
)


@runtime_checkable
class ManagedProcess(Protocol):
    """The slice of ``subprocess.Popen`` the hot-patch session relies on."""

    stdout: IO[str] | None
    stderr: IO[str] | None

    def poll(self) -> int | None:
        ...

    def kill(self) -> None:
        ...

    def wait(self, timeout: float | None = None) -> int:
        ...


ProcessLauncher = Callable[[Sequence[str], Path], ManagedProcess]


def launch_piped(command: Sequence[str], cwd: Path) -> ManagedProcess:
    argv = list(command)
    if not argv:
        raise SpawnFailure(argv, "empty command")
    logger.debug("Spawning {} in {}", argv, cwd)
    try:
        return subprocess.Popen(
            argv,
            cwd=str(cwd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
        )
    except OSError as exc:
        raise SpawnFailure(argv, str(exc)) from exc


def shutdown_process(process: ManagedProcess) -> int:
    """Kill the process if it is still running, then reap it."""
    if process.poll() is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    return process.wait()


def wait_for_exit(process: ManagedProcess, timeout: float) -> int | None:
    status = process.poll()
    if status is not None or timeout <= 0:
        return status
    try:
        return process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        return None
