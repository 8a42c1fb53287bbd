"""Core analysis logic: classify trace events and aggregate TBT tasks."""

import math
from dataclasses import dataclass


DEFAULT_LONG_TASK_MS = 50
MAIN_THREAD_TID = 1
UNKNOWN_TASK_NAME = "Unknown Task"
UNKNOWN_CATEGORY = "unknown"

TBT_CATEGORIES = [
    "devtools.timeline",
    "loading",
    "scripting",
    "rendering",
    "painting",
    "v8",
    "v8.execute",
    "blink",
    "benchmark",
    "disabled-by-default-devtools.timeline"
]

TBT_TASK_TYPES = [
    # Script execution
    "Script",
    "EvaluateScript",
    "V8.CompileScript",
    "V8.CompileCode",
    "V8.CompileIgnition",
    "V8.CompileEval",
    "FunctionCall",
    "v8.callFunction",
    "TimerFire",
    "EventDispatch",
    "RunTask",
    # Layout & style
    "Layout",
    "UpdateLayoutTree",
    "RecalculateStyles",
    "ParseHTML",
    "ParseAuthorStyleSheet",
    "StyleRecalculation",
    "UpdateLayer",
    "Layerize",
    # Paint & composite
    "Paint",
    "CompositeLayers",
    "UpdateLayerTree",
    "PrePaint",
    # Resource handling
    "XHRReadyStateChange",
    "ResourceSendRequest",
    "ResourceReceiveResponse",
    "ResourceFinish"
]


@dataclass
class Task:
    """Per-run aggregate for one (name, url) pair."""

    name: str
    url: str
    category: str
    blocking_time: float = 0.0
    total_duration: float = 0.0
    occurrences: int = 0

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.url)

    @property
    def has_long_tasks(self) -> bool:
        return self.blocking_time > 0


def _contains_any(value: str | None, patterns: list[str]) -> bool:
    if not value:
        return False
    lower_value = value.lower()
    return any(pattern.lower() in lower_value for pattern in patterns)


def _str_field(event: dict, field: str) -> str | None:
    value = event.get(field)
    return value if isinstance(value, str) else None


def _duration_us(event: dict) -> float | None:
    dur = event.get("dur")
    if isinstance(dur, bool) or not isinstance(dur, (int, float)):
        return None
    if isinstance(dur, float) and not math.isfinite(dur):
        return None
    return dur


def is_main_thread_event(event: dict) -> bool:
    """
    Best-effort main thread check: reserved tid, MainThread in the name,
    or a devtools timeline category.
    """
    tid = event.get("tid")
    if not isinstance(tid, bool) and tid == MAIN_THREAD_TID:
        return True
    name = _str_field(event, "name")
    if name and "MainThread" in name:
        return True
    cat = _str_field(event, "cat")
    return bool(cat) and "devtools.timeline" in cat


def has_tbt_category(cat: str | None) -> bool:
    if not cat:
        return False
    return any(_contains_any(token.strip(), TBT_CATEGORIES) for token in cat.split(","))


def is_potential_tbt_task(event: dict) -> bool:
    """
    Decide whether a trace event could contribute to Total Blocking Time.

    Matching is substring based and case-insensitive since event taxonomies
    drift between browser versions.
    """
    if not isinstance(event, dict):
        return False
    if event.get("ph") != "X":
        return False
    if not _duration_us(event):
        return False
    if not is_main_thread_event(event):
        return False
    return (
        has_tbt_category(_str_field(event, "cat"))
        or _contains_any(_str_field(event, "name"), TBT_TASK_TYPES)
    )


def calculate_blocking_time(event: dict, long_task_ms: float = DEFAULT_LONG_TASK_MS) -> float:
    """Return the part of the event's duration (ms) beyond the long task threshold."""
    duration_ms = (_duration_us(event) or 0) / 1000
    return max(0.0, duration_ms - long_task_ms)


def get_event_name(event: dict) -> str:
    return _str_field(event, "name") or UNKNOWN_TASK_NAME


def get_event_url(event: dict) -> str:
    args = event.get("args")
    if not isinstance(args, dict):
        return ""
    data = args.get("data")
    if not isinstance(data, dict):
        return ""
    url = data.get("url")
    return url if isinstance(url, str) else ""


def aggregate_tasks(events: list, long_task_ms: float = DEFAULT_LONG_TASK_MS) -> list[Task]:
    """
    Fold qualifying events into one Task per (name, url).

    Args:
        events: Raw trace events
        long_task_ms: Threshold above which duration counts as blocking

    Returns:
        Tasks in first-seen order
    """
    tasks: dict[tuple[str, str], Task] = {}
    for event in events:
        if not is_potential_tbt_task(event):
            continue

        name = get_event_name(event)
        url = get_event_url(event)
        task = tasks.get((name, url))
        if task is None:
            # Later events with the same key keep the first category
            task = Task(
                name=name,
                url=url,
                category=_str_field(event, "cat") or UNKNOWN_CATEGORY
            )
            tasks[task.key] = task

        task.blocking_time += calculate_blocking_time(event, long_task_ms)
        task.total_duration += _duration_us(event) / 1000
        task.occurrences += 1

    return list(tasks.values())
