import pytest

from hotpatch_bench.errors import ChannelLost, Timeout, UnexpectedExit
from hotpatch_bench.hotpatch.events import LineEvent, StreamTag
from hotpatch_bench.hotpatch.state import (
    Phase,
    StreamEnded,
    Tick,
    advance,
    begin_patch_wait,
    error_for,
    process_started,
    start_session,
)

MARKER = "PAYLOAD_SYSTEM_IS_READY__slug__0000000000000001"
EXPECTED = "PAYLOAD_RANDOM_VALUE=42"


def waiting_for_ready(now=0.0, timeout=10.0):
    return process_started(start_session(MARKER, now, timeout))


def waiting_for_patch(mutated_at=5.0, timeout=10.0):
    state = advance(waiting_for_ready(), LineEvent(StreamTag.STDOUT, MARKER), 4.0)
    assert state.phase is Phase.MUTATE
    return begin_patch_wait(state, EXPECTED, mutated_at, timeout)


def test_session_starts_spawning_then_waits_for_ready():
    state = start_session(MARKER, 1.0, 10.0)
    assert state.phase is Phase.SPAWNING
    assert state.deadline == 11.0
    assert process_started(state).phase is Phase.WAIT_READY


def test_unrelated_lines_and_ticks_keep_state():
    state = waiting_for_ready()
    assert advance(state, LineEvent(StreamTag.STDOUT, "Compiling bevy"), 1.0) == state
    assert advance(state, Tick(), 1.0) == state


@pytest.mark.parametrize("tag", list(StreamTag))
def test_marker_on_either_stream_moves_to_mutate(tag):
    line = LineEvent(tag, f"INFO app: {MARKER} trailing")
    assert advance(waiting_for_ready(), line, 1.0).phase is Phase.MUTATE


def test_begin_patch_wait_resets_deadline_from_mutation_time():
    state = waiting_for_patch(mutated_at=5.0, timeout=3.0)
    assert state.phase is Phase.WAIT_PATCH
    assert state.needle == EXPECTED
    assert state.deadline == 8.0


def test_ready_marker_is_ignored_while_waiting_for_patch():
    state = waiting_for_patch()
    assert advance(state, LineEvent(StreamTag.STDOUT, MARKER), 6.0).phase is Phase.WAIT_PATCH


def test_stale_payload_line_does_not_finish():
    state = waiting_for_patch()
    stale = LineEvent(StreamTag.STDOUT, "PAYLOAD_RANDOM_VALUE=7")
    assert advance(state, stale, 6.0).phase is Phase.WAIT_PATCH


def test_expected_line_finishes_with_latency():
    state = advance(waiting_for_patch(mutated_at=5.0), LineEvent(StreamTag.STDOUT, EXPECTED), 6.5)
    assert state.phase is Phase.DONE
    assert state.latency_s == pytest.approx(1.5)
    assert state.is_terminal


def test_deadline_wins_over_matching_line():
    state = waiting_for_ready(now=0.0, timeout=2.0)
    assert advance(state, LineEvent(StreamTag.STDOUT, MARKER), 2.0).phase is Phase.TIMEOUT


def test_ready_timeout_error():
    state = advance(waiting_for_ready(timeout=2.0), Tick(), 3.0)
    error = error_for(state)
    assert isinstance(error, Timeout)
    assert error.awaiting == "ready marker"
    assert error.marker == MARKER


def test_patch_timeout_error_names_expected_line():
    state = advance(waiting_for_patch(mutated_at=5.0, timeout=1.0), Tick(), 6.0)
    error = error_for(state)
    assert isinstance(error, Timeout)
    assert error.awaiting == "hotpatch payload"
    assert error.marker == EXPECTED


def test_stream_end_with_exit_status_is_process_death():
    state = advance(waiting_for_ready(), StreamEnded(StreamTag.STDERR, 101), 1.0)
    assert state.phase is Phase.PROCESS_DIED
    error = error_for(state)
    assert isinstance(error, UnexpectedExit)
    assert error.stream == "stderr"
    assert error.status == 101


def test_single_stream_end_while_running_keeps_waiting():
    state = advance(waiting_for_ready(), StreamEnded(StreamTag.STDOUT, None), 1.0)
    assert state.phase is Phase.WAIT_READY
    assert state.closed == frozenset({StreamTag.STDOUT})


def test_both_streams_closed_while_running_is_channel_lost():
    state = advance(waiting_for_ready(), StreamEnded(StreamTag.STDOUT, None), 1.0)
    state = advance(state, StreamEnded(StreamTag.STDERR, None), 1.1)
    assert state.phase is Phase.CHANNEL_LOST
    assert isinstance(error_for(state), ChannelLost)


def test_advance_rejects_non_waiting_phase():
    done = advance(waiting_for_patch(), LineEvent(StreamTag.STDOUT, EXPECTED), 6.0)
    with pytest.raises(ValueError):
        advance(done, Tick(), 7.0)
    with pytest.raises(ValueError):
        error_for(done)
