from hotpatch_bench.hotpatch.events import ClosedEvent, LineEvent, StreamEvent, StreamTag, echo_line
from hotpatch_bench.hotpatch.process import (
    DEFAULT_DEV_SERVER_COMMAND,
    ManagedProcess,
    ProcessLauncher,
    launch_piped,
)
from hotpatch_bench.hotpatch.session import HotPatchSession, HotPatchSettings, run_hotpatch_session
from hotpatch_bench.hotpatch.state import Phase, SessionState, advance

__all__ = [
    "ClosedEvent",
    "DEFAULT_DEV_SERVER_COMMAND",
    "HotPatchSession",
    "HotPatchSettings",
    "LineEvent",
    "ManagedProcess",
    "Phase",
    "ProcessLauncher",
    "SessionState",
    "StreamEvent",
    "StreamTag",
    "advance",
    "echo_line",
    "launch_piped",
    "run_hotpatch_session",
]
