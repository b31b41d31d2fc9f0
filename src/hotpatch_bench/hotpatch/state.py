"""Explicit state machine for the hot-patch timing protocol.

``advance`` is a pure function of ``(state, observation, now)``. The session
loop in ``hotpatch.session`` owns all side effects: echoing lines, rewriting
the source file on ``MUTATE`` and shutting the process down on a terminal
phase.

    SPAWNING -> WAIT_READY -> MUTATE -> WAIT_PATCH -> DONE
                    |                       |
                    +-> TIMEOUT / PROCESS_DIED / CHANNEL_LOST
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Union

from hotpatch_bench.errors import BenchError, ChannelLost, Timeout, UnexpectedExit
from hotpatch_bench.hotpatch.events import LineEvent, StreamTag


class Phase(str, Enum):
    SPAWNING = "spawning"
    WAIT_READY = "wait_ready"
    MUTATE = "mutate"
    WAIT_PATCH = "wait_patch"
    DONE = "done"
    TIMEOUT = "timeout"
    PROCESS_DIED = "process_died"
    CHANNEL_LOST = "channel_lost"


WAITING_PHASES = frozenset({Phase.WAIT_READY, Phase.WAIT_PATCH})
ERROR_PHASES = frozenset({Phase.TIMEOUT, Phase.PROCESS_DIED, Phase.CHANNEL_LOST})
ALL_STREAMS = frozenset(StreamTag)


@dataclass(frozen=True)
class StreamEnded:
    """A reader reported end of stream; ``exit_status`` is what polling saw."""

    tag: StreamTag
    exit_status: int | None


@dataclass(frozen=True)
class Tick:
    """No event arrived within one poll interval."""


Observation = Union[LineEvent, StreamEnded, Tick]


@dataclass(frozen=True)
class SessionState:
    phase: Phase
    ready_marker: str
    deadline: float
    timeout_s: float
    expected_line: str | None = None
    mutated_at: float | None = None
    latency_s: float | None = None
    closed: frozenset[StreamTag] = frozenset()
    exit_status: int | None = None
    failed_stream: StreamTag | None = None

    @property
    def needle(self) -> str | None:
        if self.phase is Phase.WAIT_READY:
            return self.ready_marker
        if self.phase is Phase.WAIT_PATCH:
            return self.expected_line
        return None

    @property
    def is_terminal(self) -> bool:
        return self.phase is Phase.DONE or self.phase in ERROR_PHASES


def start_session(ready_marker: str, now: float, ready_timeout_s: float) -> SessionState:
    return SessionState(
        phase=Phase.SPAWNING,
        ready_marker=ready_marker,
        deadline=now + ready_timeout_s,
        timeout_s=ready_timeout_s,
    )


def process_started(state: SessionState) -> SessionState:
    _require_phase(state, Phase.SPAWNING)
    return replace(state, phase=Phase.WAIT_READY)


def begin_patch_wait(
    state: SessionState,
    expected_line: str,
    now: float,
    patch_timeout_s: float,
) -> SessionState:
    _require_phase(state, Phase.MUTATE)
    return replace(
        state,
        phase=Phase.WAIT_PATCH,
        expected_line=expected_line,
        mutated_at=now,
        deadline=now + patch_timeout_s,
        timeout_s=patch_timeout_s,
    )


def advance(state: SessionState, observation: Observation, now: float) -> SessionState:
    if state.phase not in WAITING_PHASES:
        raise ValueError(f"cannot advance session in phase {state.phase.value}")

    if now >= state.deadline:
        return replace(state, phase=Phase.TIMEOUT)

    if isinstance(observation, LineEvent):
        needle = state.needle
        if needle is None or needle not in observation.text:
            return state
        if state.phase is Phase.WAIT_READY:
            return replace(state, phase=Phase.MUTATE)
        assert state.mutated_at is not None
        return replace(state, phase=Phase.DONE, latency_s=now - state.mutated_at)

    if isinstance(observation, StreamEnded):
        closed = state.closed | {observation.tag}
        if observation.exit_status is not None:
            return replace(
                state,
                phase=Phase.PROCESS_DIED,
                closed=closed,
                exit_status=observation.exit_status,
                failed_stream=observation.tag,
            )
        if closed == ALL_STREAMS:
            return replace(state, phase=Phase.CHANNEL_LOST, closed=closed)
        return replace(state, closed=closed)

    return state


def error_for(state: SessionState) -> BenchError:
    if state.phase is Phase.TIMEOUT:
        if state.mutated_at is None:
            return Timeout("ready marker", state.ready_marker, state.timeout_s)
        return Timeout("hotpatch payload", state.expected_line or "", state.timeout_s)
    if state.phase is Phase.PROCESS_DIED:
        assert state.failed_stream is not None and state.exit_status is not None
        return UnexpectedExit(state.failed_stream.value, state.exit_status)
    if state.phase is Phase.CHANNEL_LOST:
        return ChannelLost(state.exit_status)
    raise ValueError(f"phase {state.phase.value} is not an error state")


def _require_phase(state: SessionState, expected: Phase) -> None:
    if state.phase is not expected:
        raise ValueError(f"expected phase {expected.value}, got {state.phase.value}")
