"""Run the CEF filter over every line of a log file.

Lines are read asynchronously and filtered in fixed-size batches on a thread
pool. Batches are awaited in submission order, so events come back in file
order.
"""

from __future__ import annotations

import asyncio
import gzip
import json
import logging
from collections import deque
from collections.abc import AsyncIterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import aiofiles
from aiofiles.threadpool import wrap

from .applier import CefFilter
from .config import CefFilterConfig, resolve_max_workers
from .event import Event
from .models import FilterOutcome

logger = logging.getLogger(__name__)

InputFormat = Literal["text", "json"]
TEXT_FIELD = "message"
DEFAULT_BATCH_SIZE = 256


@dataclass(frozen=True, slots=True)
class FilteredEvent:
    """An event after the filter ran, with its source line number."""

    line_no: int
    event: Event
    outcome: FilterOutcome


async def _read_lines(
    path: Path, *, encoding: str, decode_errors: str
) -> AsyncIterator[tuple[int, str]]:
    """Yield ``(line_no, line)`` for each non-blank line of a plain or gzip file."""
    if path.suffix.lower() == ".gz":
        f = wrap(gzip.open(path, mode="rt", encoding=encoding, errors=decode_errors))
    else:
        f = await aiofiles.open(path, encoding=encoding, errors=decode_errors)

    line_no = 0
    try:
        async for raw in f:
            line_no += 1
            line = raw.rstrip("\r\n")
            if line.strip():
                yield line_no, line
    finally:
        await f.close()


async def _batched(
    lines: AsyncIterator[tuple[int, str]], size: int
) -> AsyncIterator[list[tuple[int, str]]]:
    batch: list[tuple[int, str]] = []
    async for item in lines:
        batch.append(item)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


def _line_to_event(line_no: int, line: str, input_format: InputFormat) -> Event:
    if input_format == "text":
        return Event({TEXT_FIELD: line})

    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise ValueError(f"line {line_no}: invalid JSON event ({e.msg})") from e
    if not isinstance(data, dict):
        raise ValueError(f"line {line_no}: JSON event must be an object")
    return Event(data)


async def iter_events(
    log_path: str | Path,
    *,
    config: CefFilterConfig,
    input_format: InputFormat = "text",
    encoding: str = "utf-8",
    decode_errors: str = "replace",
    max_workers: int | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> AsyncIterator[FilteredEvent]:
    """Yield one filtered event per non-blank line, in file order."""
    path = Path(log_path)
    if not path.is_file():
        raise FileNotFoundError(f"Log file not found: {path}")
    if input_format not in ("text", "json"):
        raise ValueError("input_format must be 'text' or 'json'")
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")

    cef_filter = CefFilter(config)
    worker_count = resolve_max_workers(max_workers)

    def process_batch(batch: Sequence[tuple[int, str]]) -> list[FilteredEvent]:
        out: list[FilteredEvent] = []
        for line_no, line in batch:
            event = _line_to_event(line_no, line, input_format)
            outcome = cef_filter.filter(event)
            out.append(FilteredEvent(line_no=line_no, event=event, outcome=outcome))
        return out

    lines = _read_lines(path, encoding=encoding, decode_errors=decode_errors)

    if worker_count == 1:
        try:
            async for batch in _batched(lines, batch_size):
                for filtered in process_batch(batch):
                    yield filtered
        finally:
            await lines.aclose()
        return

    logger.debug("Filtering %s with %d workers, batch size %d", path, worker_count, batch_size)
    loop = asyncio.get_running_loop()
    # Bounded so a fast reader cannot queue the whole file in memory.
    max_in_flight = worker_count * 2
    in_flight: deque[asyncio.Future[list[FilteredEvent]]] = deque()

    with ThreadPoolExecutor(max_workers=worker_count) as executor:
        try:
            async for batch in _batched(lines, batch_size):
                in_flight.append(loop.run_in_executor(executor, process_batch, batch))
                if len(in_flight) >= max_in_flight:
                    for filtered in await in_flight.popleft():
                        yield filtered
            while in_flight:
                for filtered in await in_flight.popleft():
                    yield filtered
        finally:
            for fut in in_flight:
                fut.cancel()
            await lines.aclose()


async def filter_file(
    log_path: str | Path,
    **iter_kwargs,
) -> list[FilteredEvent]:
    """Collect iter_events into a list."""
    return [filtered async for filtered in iter_events(log_path, **iter_kwargs)]
