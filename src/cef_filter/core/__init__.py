"""CEF decoding and event filtering.

Contains the decoder, the event container and the filter that applies decoded
records to events.
"""

from __future__ import annotations

from .applier import CefFilter, apply_to_root, set_timestamp
from .config import CefFilterConfig, load_filter_config
from .decoder import (
    CefDecodeError,
    MalformedHeaderError,
    decode_cef,
    parse_cef,
    parse_extensions,
    split_header,
    split_syslog_version,
)
from .event import Event, EventLike, sprintf
from .models import ApplyState, CefRecord, DecodeFailure, DecodeResult, ErrorKind, FilterOutcome
from .timestamps import TimestampParseError, coerce_timestamp

__all__ = [
    "ApplyState",
    "CefDecodeError",
    "CefFilter",
    "CefFilterConfig",
    "CefRecord",
    "DecodeFailure",
    "DecodeResult",
    "ErrorKind",
    "Event",
    "EventLike",
    "FilterOutcome",
    "MalformedHeaderError",
    "TimestampParseError",
    "apply_to_root",
    "coerce_timestamp",
    "decode_cef",
    "load_filter_config",
    "parse_cef",
    "parse_extensions",
    "set_timestamp",
    "split_header",
    "split_syslog_version",
    "sprintf",
]
