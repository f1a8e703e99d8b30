"""CEF (Common Event Format) decoder.

Turns a single CEF line into a :class:`CefRecord`:

    CEF: 0|Vendor|Product|1.0.0|Firewall|Something Bad Happened|Informative|foo=bar baz=ah Hellz Nah

The header is seven pipe-delimited tokens (a backslash-escaped pipe is not a
delimiter and is kept verbatim); everything after the seventh pipe is the
extension block of space-separated ``key=value`` pairs whose values may
contain spaces and ``=``.

All functions here are pure: no logging, no shared state.
"""

from __future__ import annotations

import re

from .models import CefRecord, DecodeFailure, DecodeResult, ErrorKind

_CEF_PREFIX = "CEF:"
_HEADER_FIELDS = 7

_HEADER_SPLIT_RE = re.compile(r"(?<!\\)\|")
# A new extension key starts at " key=" where key is ASCII word characters and dots.
_EXT_KEY_RE = re.compile(r" ([\w.]+)=", re.ASCII)


class CefDecodeError(ValueError):
    """Base error for CEF decoding problems."""

    kind: ErrorKind = ErrorKind.MALFORMED_HEADER


class MalformedHeaderError(CefDecodeError):
    """Raised when the line has fewer than seven header tokens."""

    kind = ErrorKind.MALFORMED_HEADER


def _strip_quotes(line: str) -> str:
    # Flex connectors wrap the whole line in quotes; the last character goes
    # with the first one whether or not it is a quote.
    if line.startswith('"'):
        return line[1:-1]
    return line


def split_header(line: str) -> tuple[list[str], str | None]:
    """Split a line into the seven raw header tokens and the extension remainder."""
    data = _strip_quotes(line)
    parts = _HEADER_SPLIT_RE.split(data, maxsplit=_HEADER_FIELDS)
    if len(parts) < _HEADER_FIELDS:
        raise MalformedHeaderError(
            f"expected {_HEADER_FIELDS} pipe-delimited header fields, found {len(parts)}"
        )

    header = parts[:_HEADER_FIELDS]
    remainder = parts[_HEADER_FIELDS] if len(parts) > _HEADER_FIELDS else None
    return header, remainder


def split_syslog_version(raw_version: str) -> tuple[str | None, str]:
    """Return ``(syslog_prefix, version)`` for the raw version header token."""
    syslog_prefix: str | None = None
    version = raw_version
    if " " in raw_version:
        syslog_prefix, _, version = raw_version.rpartition(" ")
    return syslog_prefix, version.removeprefix(_CEF_PREFIX)


def parse_extensions(remainder: str | None) -> dict[str, str] | None:
    """Parse the extension block into an ordered key -> value mapping.

    Returns None when there is no remainder or it holds no ``=`` at all.
    """
    if remainder is None or "=" not in remainder:
        return None

    message = remainder.strip()

    # A trailing "key=" would otherwise lose its key when splitting.
    padded = message.endswith("=")
    if padded:
        message += " "

    parts = _EXT_KEY_RE.split(message)
    first = parts[0]

    # Leading text with no "=" becomes a key with an empty value.
    key, _, value = first.partition("=")
    pairs = [(key, value)]
    pairs.extend(zip(parts[1::2], parts[2::2]))

    if padded:
        key, value = pairs[-1]
        pairs[-1] = (key, value[:-1])

    extensions: dict[str, str] = {}
    for key, value in pairs:
        extensions[key] = value
    return extensions


def parse_cef(line: str) -> CefRecord:
    """Decode a CEF line, raising :class:`CefDecodeError` when it is malformed."""
    header, remainder = split_header(line)
    raw_version, vendor, product, device_version, signature_id, name, severity = header
    syslog_prefix, version = split_syslog_version(raw_version)

    return CefRecord(
        version=version,
        vendor=vendor,
        product=product,
        device_version=device_version,
        signature_id=signature_id,
        name=name,
        severity=severity,
        syslog_prefix=syslog_prefix,
        extensions=parse_extensions(remainder),
    )


def decode_cef(line: str) -> DecodeResult:
    """Decode a CEF line into a :class:`DecodeResult` instead of raising."""
    try:
        record = parse_cef(line)
    except CefDecodeError as e:
        return DecodeResult(failure=DecodeFailure(kind=e.kind, message=str(e)))
    return DecodeResult(record=record)
