"""Line-delimited JSON codec for custom transfer events.

Git LFS talks to a custom transfer agent by writing one JSON object per line
to its stdin, and reads the agent's replies one line at a time from its
stdout. The reply to ``init`` is special: it is an empty object rather than a
tagged event.
"""
import json
import logging
from collections.abc import Iterable, Iterator
from typing import IO

import marshmallow

from courier.exc import DecodeError
from courier.schema import event_schemas
from courier.types import AcknowledgeInit, Event

_log = logging.getLogger(__name__)

_schemas_by_type = {
    event_type: (tag, schema)
    for tag, (event_type, schema) in event_schemas.items()
}


def decode_event(line: str) -> Event:
    """Decode a single line of JSON into an event.

    >>> decode_event('{"event": "terminate"}')
    Terminate()

    >>> decode_event('{}')
    AcknowledgeInit()
    """
    try:
        data = json.loads(line)
    except ValueError as e:
        raise DecodeError(f"Could not parse JSON: {e}", line=line) from e

    if not isinstance(data, dict):
        raise DecodeError("Expecting a JSON object", line=line)

    if not data:
        return AcknowledgeInit()

    tag = data.pop("event", None)
    if not isinstance(tag, str) or tag not in event_schemas:
        raise DecodeError(f"Unknown event type: {tag!r}", line=line)

    _, schema = event_schemas[tag]
    try:
        event: Event = schema.load(data)
    except marshmallow.ValidationError as e:
        raise DecodeError(
            f"Invalid {tag} event: {e.messages}", line=line
        ) from e
    return event


def encode_event(event: Event) -> str:
    """Encode an event as a single line of compact JSON (no newline).

    >>> encode_event(AcknowledgeInit())
    '{}'
    """
    if isinstance(event, AcknowledgeInit):
        return "{}"

    try:
        tag, schema = _schemas_by_type[type(event)]
    except KeyError:
        raise TypeError(f"Not an event: {event!r}") from None

    payload = {"event": tag, **schema.dump(event)}
    return json.dumps(payload, separators=(",", ":"))


def read_events(
    stream: Iterable[str],
) -> Iterator[Event | DecodeError]:
    """Lazily decode events from a line-oriented text stream.

    Blank lines are skipped. A line that fails to decode produces a
    ``DecodeError`` instance in its place, and reading carries on with the
    next line; it is up to the consumer to decide whether that is fatal.
    A stream that is not valid UTF-8 cannot be read any further, so its
    ``DecodeError`` is the last item.
    """
    lines = iter(stream)
    lineno = 0
    while True:
        lineno += 1
        try:
            line = next(lines)
        except StopIteration:
            return
        except UnicodeDecodeError as e:
            _log.debug("Failed to read line %d: %s", lineno, e)
            yield DecodeError(f"Invalid UTF-8 input: {e}", lineno=lineno)
            return

        line = line.strip()
        if not line:
            continue

        try:
            event = decode_event(line)
        except DecodeError as e:
            e.lineno = lineno
            _log.debug("Failed to decode line %d: %s", lineno, e)
            yield e
            continue

        yield event


def write_event(stream: IO[str], event: Event) -> None:
    """Write an event as one line to ``stream`` and flush it."""
    line = encode_event(event)
    _log.debug("Emitting event: %s", line)
    stream.write(line + "\n")
    stream.flush()
