"""MCP server entrypoint (stdio transport).

Exposes the CEF decoder and filter as MCP tools.

Run locally (stdio):
    python -m cef_filter.server.cef_server
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from typing import Any, Literal

from mcp.server.fastmcp import FastMCP

from cef_filter.tools.cef import decode_cef_impl, filter_event_impl, filter_file_impl

LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; stdout must remain clean for stdio transport.
    """
    level_name = os.getenv("CEF_FILTER_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


mcp = FastMCP("cef-filter", json_response=True)


@mcp.tool()
def decode_cef(line: str) -> dict[str, Any]:
    """Decode one CEF line into its header fields and extensions.

    Returns
    -------
    dict:
        {"ok": bool, "record": dict | None, "error": {"kind", "message"} | None}
    """
    return decode_cef_impl(line=line)


@mcp.tool()
def filter_event(
    event: dict[str, Any],
    source: str = "message",
    target: str | None = None,
    tag_on_failure: Sequence[str] | None = None,
) -> dict[str, Any]:
    """Run the CEF filter against a single event.

    Parameters
    ----------
    event:
        Event fields; an optional "@timestamp" is parsed as ISO-8601.
    source:
        Field holding the CEF line.
    target:
        Field receiving the decoded record. When omitted, the record is merged
        into the event root.
    tag_on_failure:
        Tags added when the line cannot be applied (default: ["_cefparsefailure"]).
    """
    return filter_event_impl(
        event=event,
        source=source,
        target=target,
        tag_on_failure=tag_on_failure,
    )


@mcp.tool()
async def filter_log_file(
    log_path: str,
    source: str = "message",
    target: str | None = None,
    tag_on_failure: Sequence[str] | None = None,
    input_format: Literal["text", "json"] = "text",
    limit: int | None = None,
) -> dict[str, Any]:
    """Run the CEF filter over every line of a local log file (plain or .gz).

    input_format "text" stores each line in the `message` field; "json"
    reads one event object per line.

    Returns
    -------
    dict:
        {"count": int, "matched": int, "failed": int, "events": list[dict]}
    """
    return await filter_file_impl(
        log_path=log_path,
        source=source,
        target=target,
        tag_on_failure=tag_on_failure,
        input_format=input_format,
        limit=limit,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
