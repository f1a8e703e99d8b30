"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from contextlib import aclosing
from typing import Any

from cef_filter.core.applier import CefFilter
from cef_filter.core.config import DEFAULT_TAG_ON_FAILURE, CefFilterConfig
from cef_filter.core.decoder import decode_cef
from cef_filter.core.event import Event
from cef_filter.core.filter_service import FilteredEvent, InputFormat, iter_events
from cef_filter.core.models import ApplyState

DEFAULT_LIMIT = 200
HARD_LIMIT = 5000


def _build_config(
    *,
    source: str,
    target: str | None,
    tag_on_failure: Sequence[str] | None,
) -> CefFilterConfig:
    tags = list(tag_on_failure) if tag_on_failure is not None else [DEFAULT_TAG_ON_FAILURE]
    return CefFilterConfig(source=source, target=target, tag_on_failure=tags)


def _filtered_to_dict(filtered: FilteredEvent) -> dict[str, Any]:
    d: dict[str, Any] = {
        "line_no": filtered.line_no,
        "state": filtered.outcome.state.value,
        "event": filtered.event.to_dict(),
    }
    if filtered.outcome.failure is not None:
        d["error"] = filtered.outcome.failure.message
    return d


def decode_cef_impl(*, line: str) -> dict[str, Any]:
    """Implementation for the `decode_cef` MCP tool."""
    result = decode_cef(line)
    if not result.ok:
        return {
            "ok": False,
            "record": None,
            "error": {"kind": result.failure.kind.value, "message": result.failure.message},
        }
    return {"ok": True, "record": result.record.as_dict(), "error": None}


def filter_event_impl(
    *,
    event: Mapping[str, Any],
    source: str = "message",
    target: str | None = None,
    tag_on_failure: Sequence[str] | None = None,
) -> dict[str, Any]:
    """Implementation for the `filter_event` MCP tool."""
    cfg = _build_config(source=source, target=target, tag_on_failure=tag_on_failure)
    ev = Event(event)
    outcome = CefFilter(cfg).filter(ev)
    return {
        "state": outcome.state.value,
        "matched": outcome.matched,
        "event": ev.to_dict(),
    }


async def filter_file_impl(
    *,
    log_path: str,
    source: str = "message",
    target: str | None = None,
    tag_on_failure: Sequence[str] | None = None,
    input_format: InputFormat = "text",
    limit: int | None = None,
) -> dict[str, Any]:
    """Implementation for the `filter_log_file` MCP tool.

    Notes
    -----
    - text input puts each line in the `message` field; json input expects
      one event object per line.
    - limit caps the number of returned events (hard-capped at HARD_LIMIT).
    """
    if limit is None:
        limit = DEFAULT_LIMIT
    if limit <= 0:
        raise ValueError("limit must be > 0")
    if limit > HARD_LIMIT:
        limit = HARD_LIMIT

    cfg = _build_config(source=source, target=target, tag_on_failure=tag_on_failure)

    events: list[dict[str, Any]] = []
    matched = 0
    failed = 0
    async with aclosing(iter_events(log_path, config=cfg, input_format=input_format)) as stream:
        async for filtered in stream:
            if filtered.outcome.matched:
                matched += 1
            elif filtered.outcome.state is not ApplyState.SKIPPED:
                failed += 1
            events.append(_filtered_to_dict(filtered))
            if len(events) >= limit:
                break

    return {
        "count": len(events),
        "matched": matched,
        "failed": failed,
        "events": events,
    }
