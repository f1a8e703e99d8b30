"""Apply decoded CEF records to events.

The filter reads a CEF line from ``config.source`` and either stores the
decoded structure at ``config.target`` or, with no target, merges it into the
event root. Failures never raise: the event gets the configured failure tags
and a warning is logged.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .config import CefFilterConfig
from .decoder import decode_cef
from .event import (
    TIMESTAMP,
    TIMESTAMP_FAILURE_FIELD,
    TIMESTAMP_FAILURE_TAG,
    EventLike,
    field_path,
    sprintf,
)
from .models import ApplyState, DecodeFailure, ErrorKind, FilterOutcome
from .timestamps import TimestampParseError, coerce_timestamp, now

logger = logging.getLogger(__name__)


def set_timestamp(event: EventLike, value: Any) -> None:
    """Set the event timestamp, falling back to now when ``value`` is unparsable."""
    try:
        event.timestamp = coerce_timestamp(value)
    except TimestampParseError:
        logger.warning(
            "Unrecognized %s value, setting current time; original in %s field: %r",
            TIMESTAMP,
            TIMESTAMP_FAILURE_FIELD,
            value,
        )
        event.timestamp = now()
        event.tag(TIMESTAMP_FAILURE_TAG)
        event.set(TIMESTAMP_FAILURE_FIELD, str(value))


def apply_to_root(event: EventLike, parsed: Any) -> FilterOutcome:
    """Merge a decoded mapping into the event root.

    A ``@timestamp`` key is taken out first and becomes the event timestamp;
    an unparsable one falls back to the current time and is kept as text in
    the timestamp failure field. The event is untouched when ``parsed`` is
    not a mapping.
    """
    if not isinstance(parsed, Mapping):
        return FilterOutcome(
            state=ApplyState.TARGET_MISMATCH,
            failure=DecodeFailure(
                kind=ErrorKind.TARGET_TYPE_MISMATCH,
                message=f"decoded {type(parsed).__name__} requires a target field",
            ),
        )

    fields = dict(parsed)
    parsed_timestamp = fields.pop(TIMESTAMP, None)

    for key, value in fields.items():
        event.set(key, value)

    if parsed_timestamp is not None:
        set_timestamp(event, parsed_timestamp)

    return FilterOutcome(state=ApplyState.APPLIED)


class CefFilter:
    """Decode the CEF line in one event field and apply it to the event.

    Holds only its configuration, so a single instance can serve many
    threads at once.
    """

    __slots__ = ("config",)

    def __init__(self, config: CefFilterConfig) -> None:
        self.config = config

    def filter(self, event: EventLike) -> FilterOutcome:
        cfg = self.config
        logger.debug("Running CEF filter on %r", event)

        source = event.get(cfg.source)
        if source is None:
            return FilterOutcome(state=ApplyState.SKIPPED)

        result = decode_cef(str(source))
        if not result.ok:
            self._tag_failure(event)
            logger.warning(
                "Error parsing CEF: source=%s raw=%r error=%s",
                cfg.source,
                source,
                result.failure.message,
            )
            return FilterOutcome(state=ApplyState.DECODE_FAILED, failure=result.failure)

        parsed = result.record.as_dict()
        if cfg.target:
            event.set(cfg.target, parsed)
            outcome = FilterOutcome(state=ApplyState.APPLIED)
        else:
            outcome = apply_to_root(event, parsed)

        if not outcome.matched:
            self._tag_failure(event)
            logger.warning(
                "Parsed CEF object requires a target configuration option: source=%s raw=%r",
                cfg.source,
                source,
            )
            return outcome

        self._filter_matched(event)
        logger.debug("Event after CEF filter: %r", event)
        return outcome

    def _tag_failure(self, event: EventLike) -> None:
        for tag in self.config.tag_on_failure:
            event.tag(tag)

    def _filter_matched(self, event: EventLike) -> None:
        """Apply the common add/remove options once a record was applied.

        Field names, field values and tags may reference event fields as
        ``%{field}``.
        """
        cfg = self.config
        for name, value in cfg.add_field.items():
            name = sprintf(event, name)
            if not name:
                continue
            value = sprintf(event, value)
            if field_path(name) == (TIMESTAMP,):
                set_timestamp(event, value)
            else:
                event.set(name, value)
        for tag in cfg.add_tag:
            event.tag(sprintf(event, tag))
        for name in cfg.remove_field:
            name = sprintf(event, name)
            if name:
                event.remove(name)
        if cfg.remove_tag:
            tags = event.get("tags")
            if isinstance(tags, list):
                event.set("tags", [t for t in tags if t not in cfg.remove_tag])
