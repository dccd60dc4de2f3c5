"""Recording of events about objects under reconciliation."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from typing import Any, Protocol

EVENT_TYPE_NORMAL = "Normal"
EVENT_TYPE_WARNING = "Warning"

_VERB = re.compile(r"%(?:%|[-+# 0]*\d*(?:\.\d+)?([a-zA-Z]))")
_TYPE_NAMES = {str: "string", int: "int", bool: "bool", float: "float64"}


def _format_value(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(_format_value(v) for v in value) + "]"
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "map[" + " ".join(f"{_format_value(k)}:{_format_value(v)}" for k, v in items) + "]"
    return str(value)


def _type_name(value: Any) -> str:
    return _TYPE_NAMES.get(type(value), type(value).__name__)


def _format_verb(verb: str, value: Any) -> str:
    if verb == "d":
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return f"%!d({_type_name(value)}={_format_value(value)})"
    if verb == "q":
        text = _format_value(value).replace("\\", "\\\\").replace('"', '\\"')
        return f'"{text}"'
    return _format_value(value)


def _sprintf(template: str, *args: Any) -> str:
    """Format ``template`` with printf-style verbs such as %s, %v and %d."""
    remaining = list(args)
    used = 0

    def substitute(match: re.Match) -> str:
        nonlocal used
        verb = match.group(1)
        if verb is None:
            return "%"
        if used >= len(remaining):
            return f"%!{verb}(MISSING)"
        value = remaining[used]
        used += 1
        return _format_verb(verb, value)

    text = _VERB.sub(substitute, template)
    extra = remaining[used:]
    if extra:
        text += "%!(EXTRA " + ", ".join(f"{_type_name(v)}={_format_value(v)}" for v in extra) + ")"
    return text


def _title(reason: str) -> str:
    return re.sub(r"\S+", lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), reason)


class Recorder(Protocol):
    def event(self, obj: Any, event_type: str, reason: str, message: str) -> None: ...

    def eventf(self, obj: Any, event_type: str, reason: str, message: str, *args: Any) -> None: ...


@dataclass(frozen=True)
class Event:
    """A recorded event."""

    obj: Any
    event_type: str
    reason: str
    message: str

    def __str__(self) -> str:
        return f"{self.event_type} {self.reason} {self.message}"


@dataclass
class FakeRecorder:
    """A recorder that keeps the events it receives in memory."""

    events: list[Event] = field(default_factory=list)

    def event(self, obj: Any, event_type: str, reason: str, message: str) -> None:
        self.events.append(Event(obj, event_type, reason, message))

    def eventf(self, obj: Any, event_type: str, reason: str, message: str, *args: Any) -> None:
        self.event(obj, event_type, reason, _sprintf(message, *args))


_lock = threading.Lock()
_initialized = False
_default: Recorder = FakeRecorder()


def default_recorder() -> Recorder:
    """Return the recorder that receives events."""
    return _default


def init_from_recorder(recorder: Recorder) -> None:
    """Install the global recorder; only the first call has any effect."""
    global _initialized, _default
    with _lock:
        if _initialized:
            return
        _default = recorder
        _initialized = True


def event(obj: Any, reason: str, message: str) -> None:
    """Record a normal event."""
    _default.event(obj, EVENT_TYPE_NORMAL, _title(reason), message)


def eventf(obj: Any, reason: str, message: str, *args: Any) -> None:
    """Record a normal event with a formatted message."""
    _default.eventf(obj, EVENT_TYPE_NORMAL, _title(reason), message, *args)


def warn(obj: Any, reason: str, message: str) -> None:
    """Record a warning event."""
    _default.event(obj, EVENT_TYPE_WARNING, _title(reason), message)


def warnf(obj: Any, reason: str, message: str, *args: Any) -> None:
    """Record a warning event with a formatted message."""
    _default.eventf(obj, EVENT_TYPE_WARNING, _title(reason), message, *args)