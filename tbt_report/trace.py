"""Trace ingestion: load Chrome trace-event JSON into a flat event list."""

import json
from collections import Counter
from pathlib import Path
from typing import Any


class TraceError(Exception):
    """Base class for trace ingestion failures."""


class TraceNotFoundError(TraceError):
    pass


class TraceParseError(TraceError):
    pass


class TraceFormatError(TraceError):
    pass


def extract_events(data: Any) -> list:
    """
    Resolve a parsed trace into its event list.

    Accepts either a bare array of events or an object carrying a
    ``traceEvents`` array.
    """
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("traceEvents"), list):
        return data["traceEvents"]
    raise TraceFormatError("Invalid trace file format: missing traceEvents array")


def _reject_constant(name: str) -> None:
    raise ValueError(f"Invalid JSON constant: {name}")


def load_trace_events(trace_path: str | Path) -> list:
    """
    Read a trace file and return its events.

    Args:
        trace_path: Path to a Chrome trace JSON file

    Returns:
        List of raw event mappings, in file order

    Raises:
        TraceNotFoundError: the file does not exist
        TraceParseError: the file is not valid JSON
        TraceFormatError: the JSON has no event array
    """
    path = Path(trace_path)
    if not path.exists():
        raise TraceNotFoundError(f"Input file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        content = f.read()

    try:
        data = json.loads(content, parse_constant=_reject_constant)
    except ValueError as exc:
        raise TraceParseError(f"Failed to parse JSON: {exc}") from exc

    return extract_events(data)


def collect_trace_metadata(events: list) -> tuple[Counter, Counter]:
    """Count category tokens and event names across all events."""
    categories: Counter = Counter()
    task_types: Counter = Counter()
    for event in events:
        if not isinstance(event, dict):
            continue
        cat = event.get("cat")
        if isinstance(cat, str) and cat:
            for token in cat.split(","):
                categories[token.strip()] += 1
        name = event.get("name")
        if isinstance(name, str) and name:
            task_types[name] += 1
    return categories, task_types
