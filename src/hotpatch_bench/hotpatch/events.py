from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from queue import Queue
import sys
from threading import Thread
from typing import IO, Union

from loguru import logger


class StreamTag(str, Enum):
    STDOUT = "stdout"
    STDERR = "stderr"


@dataclass(frozen=True)
class LineEvent:
    tag: StreamTag
    text: str


@dataclass(frozen=True)
class ClosedEvent:
    tag: StreamTag


StreamEvent = Union[LineEvent, ClosedEvent]

STDERR_PREFIX = "[dev-server][stderr] "


def _read_lines(stream: IO[str], tag: StreamTag, events: "Queue[StreamEvent]") -> None:
    try:
        for raw_line in iter(stream.readline, ""):
            events.put(LineEvent(tag, raw_line.rstrip("\r\n")))
    except (OSError, ValueError) as exc:
        # A read error ends the stream just like EOF does.
        logger.debug("{} reader stopped on read error: {}", tag.value, exc)
    finally:
        try:
            stream.close()
        except OSError as exc:
            logger.debug("{} reader failed to close stream: {}", tag.value, exc)
        events.put(ClosedEvent(tag))


def spawn_stream_reader(stream: IO[str], tag: StreamTag, events: "Queue[StreamEvent]") -> Thread:
    worker = Thread(
        target=_read_lines,
        args=(stream, tag, events),
        name=f"dev-server-{tag.value}-reader",
        daemon=True,
    )
    worker.start()
    return worker


def echo_line(event: LineEvent) -> None:
    if event.tag is StreamTag.STDERR:
        print(f"{STDERR_PREFIX}{event.text}", file=sys.stderr, flush=True)
    else:
        print(event.text, flush=True)
