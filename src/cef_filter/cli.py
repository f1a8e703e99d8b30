from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from cef_filter.core.config import CefFilterConfig, load_filter_config
from cef_filter.core.filter_service import iter_events


def _parse_tags(s: str) -> list[str]:
    return [part.strip() for part in s.split(",") if part.strip()]


def _resolve_config(args: argparse.Namespace) -> CefFilterConfig:
    """Merge a config file (if any) with explicit command-line options."""
    base: dict = {}
    if args.config:
        base = load_filter_config(args.config).model_dump()

    if args.source is not None:
        base["source"] = args.source
    if args.target is not None:
        base["target"] = args.target
    if args.tag_on_failure is not None:
        base["tag_on_failure"] = args.tag_on_failure
    base.setdefault("source", "message")
    return CefFilterConfig.model_validate(base)


async def _run(args: argparse.Namespace, config: CefFilterConfig) -> tuple[int, int, int]:
    total = matched = failed = 0
    async for filtered in iter_events(
        args.log_path,
        config=config,
        input_format=args.input_format,
        max_workers=args.workers,
    ):
        total += 1
        if filtered.outcome.matched:
            matched += 1
        elif filtered.outcome.failure is not None:
            failed += 1

        if args.only_failed and filtered.outcome.failure is None:
            continue
        print(json.dumps(filtered.event.to_dict(), default=str))
    return total, matched, failed


def main() -> None:
    p = argparse.ArgumentParser(description="Decode CEF lines from a log file into JSON events.")
    p.add_argument("log_path")
    p.add_argument("--source", default=None, help="Field holding the CEF line (default: message)")
    p.add_argument("--target", default=None, help="Field receiving the decoded record (default: event root)")
    p.add_argument(
        "--tag-on-failure",
        type=_parse_tags,
        default=None,
        help="Comma-separated tags added on failure (default: _cefparsefailure)",
    )
    p.add_argument("--config", default=None, help="JSON file with filter options")
    p.add_argument("--input-format", choices=["text", "json"], default="text")
    p.add_argument("--workers", type=int, default=None, help="Worker threads (default: CPU count)")
    p.add_argument("--only-failed", action="store_true", help="Print only events that failed to decode")
    p.add_argument("--verbose", "-v", action="store_true")

    args = p.parse_args()
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _resolve_config(args)
        total, matched, failed = asyncio.run(_run(args, config))
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    print(f"\nProcessed {total} events: {matched} matched, {failed} failed.", file=sys.stderr)


if __name__ == "__main__":
    main()
