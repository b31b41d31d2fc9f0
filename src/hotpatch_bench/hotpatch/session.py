from __future__ import annotations

from dataclasses import dataclass
from queue import Empty, Queue
from time import perf_counter
from typing import Callable

from loguru import logger

from hotpatch_bench.errors import SpawnFailure
from hotpatch_bench.hotpatch.events import (
    ClosedEvent,
    LineEvent,
    StreamEvent,
    StreamTag,
    echo_line,
    spawn_stream_reader,
)
from hotpatch_bench.hotpatch.process import (
    DEFAULT_DEV_SERVER_COMMAND,
    ManagedProcess,
    ProcessLauncher,
    launch_piped,
    shutdown_process,
    wait_for_exit,
)
from hotpatch_bench.hotpatch.state import (
    ALL_STREAMS,
    ERROR_PHASES,
    Observation,
    Phase,
    SessionState,
    StreamEnded,
    Tick,
    advance,
    begin_patch_wait,
    error_for,
    process_started,
    start_session,
)
from hotpatch_bench.scenarios.derive import next_payload_value, payload_line
from hotpatch_bench.scenarios.matrix import PreparedScenario
from hotpatch_bench.workspace.codegen import build_payload_main
from hotpatch_bench.workspace.provisioner import Workspace


@dataclass(frozen=True)
class HotPatchSettings:
    command: tuple[str, ...] = DEFAULT_DEV_SERVER_COMMAND
    ready_timeout_s: float = 180.0
    patch_timeout_s: float = 180.0
    poll_interval_s: float = 0.2
    # How long to wait for an exit status once both pipes have closed.
    exit_grace_s: float = 5.0


class HotPatchSession:
    """Measure how long a running dev server takes to pick up a source edit.

    The dev server is started in the workspace, both of its output streams
    are fanned into one queue, and the loop waits for the scenario's ready
    marker. It then rewrites ``src/main.rs`` with a new payload constant and
    waits for ``PAYLOAD_RANDOM_VALUE=<new>`` to show up. The process is
    always shut down before ``run`` returns or raises.
    """

    def __init__(
        self,
        workspace: Workspace,
        prepared: PreparedScenario,
        settings: HotPatchSettings | None = None,
        *,
        launcher: ProcessLauncher = launch_piped,
        echo: Callable[[LineEvent], None] = echo_line,
        clock: Callable[[], float] = perf_counter,
    ) -> None:
        self._workspace = workspace
        self._prepared = prepared
        self._settings = settings or HotPatchSettings()
        self._launcher = launcher
        self._echo = echo
        self._clock = clock

    def run(self) -> float:
        print("[bench] Starting dev server hotpatch session...", flush=True)
        state = start_session(self._prepared.ready_marker, self._clock(), self._settings.ready_timeout_s)
        process = self._launcher(self._settings.command, self._workspace.root)
        try:
            events = self._attach_readers(process)
            state = process_started(state)
            while True:
                observation = self._next_observation(events, process, state)
                state = advance(state, observation, self._clock())
                if state.phase is Phase.MUTATE:
                    state = self._mutate(state)
                elif state.phase is Phase.DONE:
                    print("[bench] Hotpatch payload observed.", flush=True)
                    assert state.latency_s is not None
                    return state.latency_s
                elif state.phase in ERROR_PHASES:
                    logger.debug("Hotpatch session for {} ended in {}", self._prepared.slug, state.phase.value)
                    raise error_for(state)
        finally:
            status = shutdown_process(process)
            logger.debug("Dev server for {} exited with status {}", self._prepared.slug, status)

    def _attach_readers(self, process: ManagedProcess) -> "Queue[StreamEvent]":
        if process.stdout is None or process.stderr is None:
            raise SpawnFailure(self._settings.command, "stdout/stderr pipe missing")
        events: Queue[StreamEvent] = Queue()
        spawn_stream_reader(process.stdout, StreamTag.STDOUT, events)
        spawn_stream_reader(process.stderr, StreamTag.STDERR, events)
        return events

    def _next_observation(
        self,
        events: "Queue[StreamEvent]",
        process: ManagedProcess,
        state: SessionState,
    ) -> Observation:
        try:
            event = events.get(timeout=self._settings.poll_interval_s)
        except Empty:
            return Tick()

        if isinstance(event, LineEvent):
            self._echo(event)
            return event

        assert isinstance(event, ClosedEvent)
        status = process.poll()
        if status is None and state.closed | {event.tag} == ALL_STREAMS:
            status = wait_for_exit(process, self._settings.exit_grace_s)
        return StreamEnded(event.tag, status)

    def _mutate(self, state: SessionState) -> SessionState:
        prepared = self._prepared
        print(f"[bench] Ready marker {prepared.ready_marker} observed.", flush=True)
        new_value = next_payload_value(prepared.payload_value)
        self._workspace.rewrite_source(build_payload_main(prepared.ready_marker, new_value))
        expected = payload_line(new_value)
        print(f"[bench] Hotpatch triggered, waiting for {expected}.", flush=True)
        return begin_patch_wait(state, expected, self._clock(), self._settings.patch_timeout_s)


def run_hotpatch_session(
    workspace: Workspace,
    prepared: PreparedScenario,
    settings: HotPatchSettings | None = None,
    **kwargs,
) -> float:
    return HotPatchSession(workspace, prepared, settings, **kwargs).run()
