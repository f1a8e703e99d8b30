"""Event container and the field-access interface the filter depends on."""

from __future__ import annotations

import copy
import json
import logging
import re
from collections.abc import Mapping, MutableMapping
from datetime import datetime
from typing import Any, Protocol

from .timestamps import TimestampParseError, coerce_timestamp, now

logger = logging.getLogger(__name__)

TIMESTAMP = "@timestamp"
TAGS = "tags"
TIMESTAMP_FAILURE_TAG = "_timestampparsefailure"
TIMESTAMP_FAILURE_FIELD = "_@timestamp"

_FIELD_REF_RE = re.compile(r"^(?:\[[^\[\]]+\])+$")
_FIELD_PART_RE = re.compile(r"\[([^\[\]]+)\]")
_SPRINTF_RE = re.compile(r"%\{([^{}]+)\}")


class EventLike(Protocol):
    """Minimal field access the filter needs from a host event."""

    timestamp: datetime

    def get(self, name: str) -> Any | None:
        ...

    def set(self, name: str, value: Any) -> None:
        ...

    def remove(self, name: str) -> Any | None:
        ...

    def tag(self, name: str) -> None:
        ...


def field_path(name: str) -> tuple[str, ...]:
    """Split a field reference (``message`` or ``[doc][cef]``) into its path."""
    if _FIELD_REF_RE.match(name):
        return tuple(_FIELD_PART_RE.findall(name))
    if not name:
        raise ValueError("field name must not be empty")
    return (name,)


def _render(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (Mapping, list)):
        return json.dumps(value, default=str)
    return str(value)


def sprintf(event: EventLike, template: str) -> str:
    """Expand ``%{field}`` references in ``template`` from the event.

    References to missing fields are left as written.
    """

    def _sub(m: re.Match[str]) -> str:
        value = event.get(m.group(1))
        if value is None:
            return m.group(0)
        return _render(value)

    return _SPRINTF_RE.sub(_sub, template)


class Event:
    """Dict-backed event record with a UTC ``@timestamp``."""

    __slots__ = ("_data", "timestamp")

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        fields = copy.deepcopy(dict(data)) if data else {}
        raw_ts = fields.pop(TIMESTAMP, None)
        self._data: dict[str, Any] = fields
        self.timestamp: datetime = now()

        if raw_ts is None:
            return
        try:
            self.timestamp = coerce_timestamp(raw_ts)
        except TimestampParseError:
            logger.warning(
                "Unrecognized %s value, using current time; original in %s: %r",
                TIMESTAMP,
                TIMESTAMP_FAILURE_FIELD,
                raw_ts,
            )
            self.tag(TIMESTAMP_FAILURE_TAG)
            self._data[TIMESTAMP_FAILURE_FIELD] = str(raw_ts)

    def get(self, name: str) -> Any | None:
        path = field_path(name)
        if path == (TIMESTAMP,):
            return self.timestamp

        node: Any = self._data
        for part in path:
            if not isinstance(node, Mapping) or part not in node:
                return None
            node = node[part]
        return node

    def set(self, name: str, value: Any) -> None:
        path = field_path(name)
        if path == (TIMESTAMP,):
            self.timestamp = coerce_timestamp(value)
            return

        node: MutableMapping[str, Any] = self._data
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, MutableMapping):
                child = {}
                node[part] = child
            node = child
        node[path[-1]] = value

    def remove(self, name: str) -> Any | None:
        path = field_path(name)
        node: Any = self._data
        for part in path[:-1]:
            if not isinstance(node, MutableMapping) or part not in node:
                return None
            node = node[part]
        if not isinstance(node, MutableMapping):
            return None
        return node.pop(path[-1], None)

    def includes(self, name: str) -> bool:
        return self.get(name) is not None

    def tag(self, name: str) -> None:
        tags = self._data.get(TAGS)
        if not isinstance(tags, list):
            tags = [] if tags is None else [tags]
            self._data[TAGS] = tags
        if name not in tags:
            tags.append(name)

    @property
    def tags(self) -> list[str]:
        tags = self._data.get(TAGS)
        return list(tags) if isinstance(tags, list) else []

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable copy of the event."""
        out = copy.deepcopy(self._data)
        out[TIMESTAMP] = self.timestamp.isoformat()
        return out

    def __repr__(self) -> str:
        return f"Event({self.to_dict()!r})"
