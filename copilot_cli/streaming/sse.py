"""Incremental Server-Sent Events decoder.

Only the subset needed for the Copilot ``chatOverStream`` endpoint is handled:
``data``, ``event`` and ``id`` fields, ``:`` comments and blank-line frame
terminators. Unknown fields are ignored.
"""

from __future__ import annotations

import codecs
import threading
from typing import Iterable, Iterator, List, Optional, Union

from copilot_cli.domain.models import SseEvent


Chunk = Union[bytes, str]


class SseDecoder:
    """Push parser: ``feed`` raw chunks, get back the frames they completed."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""
        self._data: List[str] = []
        self._event: Optional[str] = None
        self._id: Optional[str] = None
        self._pending = False
        self._started = False

    def feed(self, chunk: Chunk) -> List[SseEvent]:
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        if not chunk:
            return []
        if not self._started:
            # a single leading byte order mark is dropped
            self._started = True
            if chunk.startswith("\ufeff"):
                chunk = chunk[1:]
        self._buffer += chunk
        events: List[SseEvent] = []
        while True:
            newline_idx = self._buffer.find("\n")
            if newline_idx == -1:
                break
            line = self._buffer[:newline_idx]
            self._buffer = self._buffer[newline_idx + 1:]
            event = self._process_line(line)
            if event is not None:
                events.append(event)
        return events

    def flush(self) -> List[SseEvent]:
        """Finish the stream: process a trailing partial line and emit the pending frame."""

        tail = self._decoder.decode(b"", final=True)
        events = self.feed(tail) if tail else []
        if self._buffer:
            line, self._buffer = self._buffer, ""
            event = self._process_line(line)
            if event is not None:
                events.append(event)
        event = self._dispatch()
        if event is not None:
            events.append(event)
        return events

    def _process_line(self, line: str) -> Optional[SseEvent]:
        if line.endswith("\r"):
            line = line[:-1]
        if line == "":
            return self._dispatch()
        if line.startswith(":"):
            return None

        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]
        if name == "data":
            self._data.append(value)
        elif name == "event":
            self._event = value
        elif name == "id":
            # a NUL in the id is invalid per the SSE format; drop the line
            if "\0" in value:
                return None
            self._id = value
        else:
            return None
        self._pending = True
        return None

    def _dispatch(self) -> Optional[SseEvent]:
        if not self._pending:
            return None
        event = SseEvent(data="\n".join(self._data), event=self._event, id=self._id)
        self._data = []
        self._event = None
        self._id = None
        self._pending = False
        return event


def iter_sse_events(
    chunks: Iterable[Chunk],
    cancel_event: Optional[threading.Event] = None,
) -> Iterator[SseEvent]:
    """Lazily decode ``chunks`` into events, yielding each one as soon as it completes.

    ``cancel_event`` is checked between frames; once set, decoding stops and the
    underlying iterator is closed. I/O errors raised by ``chunks`` propagate.
    """

    decoder = SseDecoder()
    iterator = iter(chunks)
    try:
        for chunk in iterator:
            for event in decoder.feed(chunk):
                if _cancelled(cancel_event):
                    return
                yield event
            if _cancelled(cancel_event):
                return
        for event in decoder.flush():
            if _cancelled(cancel_event):
                return
            yield event
    finally:
        close = getattr(iterator, "close", None)
        if close is not None:
            close()


def _cancelled(cancel_event: Optional[threading.Event]) -> bool:
    return cancel_event is not None and cancel_event.is_set()
