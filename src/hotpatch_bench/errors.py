from __future__ import annotations

from pathlib import Path
from typing import Sequence


class BenchError(RuntimeError):
    """Base class for every fatal benchmarking error."""


class IOFailure(BenchError):
    def __init__(self, path: str | Path, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"{message}: {self.path}")


class SpawnFailure(BenchError):
    def __init__(self, command: Sequence[str], reason: str) -> None:
        self.command = list(command)
        self.reason = reason
        super().__init__(f"failed to spawn {' '.join(self.command)!r}: {reason}")


class BuildFailed(BenchError):
    def __init__(self, label: str, status: int | None) -> None:
        self.label = label
        self.status = status
        if status is None:
            message = f"build ({label}) could not be started"
        else:
            message = f"build ({label}) failed with status {status}"
        super().__init__(message)


class Timeout(BenchError):
    def __init__(self, awaiting: str, marker: str, timeout_s: float) -> None:
        self.awaiting = awaiting
        self.marker = marker
        self.timeout_s = timeout_s
        super().__init__(f"timeout after {timeout_s:.1f}s waiting for {awaiting} {marker!r}")


class UnexpectedExit(BenchError):
    def __init__(self, stream: str, status: int) -> None:
        self.stream = stream
        self.status = status
        super().__init__(f"dev server exited early ({stream} closed) with status {status}")


class ChannelLost(BenchError):
    def __init__(self, status: int | None = None) -> None:
        self.status = status
        super().__init__(
            "dev server output closed unexpectedly while the process is still running"
            if status is None
            else f"dev server output closed unexpectedly (status {status})"
        )


class ScenarioFailed(BenchError):
    def __init__(self, slug: str, cause: BaseException) -> None:
        self.slug = slug
        self.cause = cause
        super().__init__(f"benchmark failed for {slug}: {cause}")
