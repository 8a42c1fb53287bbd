"""Tab-separated persistence for reports."""

import math
import re
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path

from tbt_report.report.merge import (
    FIXED_COLUMNS,
    RUN_COLUMN_SUFFIXES,
    Report,
    ReportRow,
    RunMetrics
)


ABSENT = "-1"
YES = "Yes"
NO = "No"
DECIMAL_CELL = re.compile(r"-?\d+\.\d{2}", re.ASCII)
COUNT_CELL = re.compile(r"\d+", re.ASCII)
CENTS = Decimal("0.01")


class ReportFormatError(ValueError):
    """Raised when an existing report cannot be read back without misaligning rows."""


def _format_ms(value: float) -> str:
    """Two fraction digits, exact halves rounded away from zero."""
    if not math.isfinite(value):
        raise ValueError(f"Cannot store non-finite metric: {value}")
    return str(Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP))


def _format_run(metrics: RunMetrics | None) -> list[str]:
    if metrics is None:
        return [ABSENT, ABSENT, ABSENT]
    return [
        _format_ms(metrics.blocking_time),
        _format_ms(metrics.total_duration),
        str(metrics.occurrences)
    ]


def _parse_run(cells: list[str], line_number: int) -> RunMetrics | None:
    if all(cell == ABSENT for cell in cells):
        return None
    if ABSENT in cells:
        raise ReportFormatError(f"Line {line_number}: run mixes {ABSENT} with values: {cells}")
    blocking, duration, occurrences = cells
    for cell, pattern in [(blocking, DECIMAL_CELL), (duration, DECIMAL_CELL), (occurrences, COUNT_CELL)]:
        if not pattern.fullmatch(cell):
            raise ReportFormatError(f"Line {line_number}: invalid metric cell: {cell!r}")
    return RunMetrics(
        blocking_time=float(blocking),
        total_duration=float(duration),
        occurrences=int(occurrences)
    )


def _parse_header(header: list[str]) -> int:
    fixed_count = len(FIXED_COLUMNS)
    if len(header) < fixed_count:
        raise ReportFormatError(
            f"Header has {len(header)} columns, expected at least {fixed_count}"
        )
    if tuple(header[:fixed_count]) != FIXED_COLUMNS:
        raise ReportFormatError(f"Unexpected fixed header columns: {header[:fixed_count]}")
    run_columns = len(header) - fixed_count
    if run_columns % len(RUN_COLUMN_SUFFIXES):
        raise ReportFormatError(
            f"Header has {run_columns} run columns, expected a multiple of "
            f"{len(RUN_COLUMN_SUFFIXES)}"
        )
    return run_columns // len(RUN_COLUMN_SUFFIXES)


def parse_report(content: str) -> Report:
    """
    Parse report text into a Report.

    Raises:
        ReportFormatError: the header, a row length, a flag, a metric cell or
            a duplicated (name, url) pair would break row alignment
    """
    if not content.strip():
        return Report()

    lines = [line.rstrip("\r").split("\t") for line in content.strip().split("\n")]
    header = lines[0]
    run_count = _parse_header(header)
    width = len(RUN_COLUMN_SUFFIXES)
    fixed_count = len(FIXED_COLUMNS)

    rows = []
    seen: set[tuple[str, str]] = set()
    for line_number, cells in enumerate(lines[1:], start=2):
        if len(cells) != len(header):
            raise ReportFormatError(
                f"Line {line_number}: expected {len(header)} cells, found {len(cells)}"
            )
        name, url, category, flag = cells[:fixed_count]
        if flag not in (YES, NO):
            raise ReportFormatError(f"Line {line_number}: invalid Has Long Tasks value: {flag!r}")
        if (name, url) in seen:
            raise ReportFormatError(f"Line {line_number}: duplicate task {name}|{url}")
        seen.add((name, url))

        runs = tuple(
            _parse_run(cells[start:start + width], line_number)
            for start in range(fixed_count, len(cells), width)
        )
        rows.append(
            ReportRow(
                name=name,
                url=url,
                category=category,
                has_long_tasks=flag == YES,
                runs=runs
            )
        )

    return Report(run_count=run_count, rows=tuple(rows))


def serialize_report(report: Report) -> str:
    """Render a report as tab-separated text without a trailing newline."""
    lines = ["\t".join(report.header())]
    for row in report.rows:
        cells = [row.name, row.url, row.category, YES if row.has_long_tasks else NO]
        for metrics in row.runs:
            cells.extend(_format_run(metrics))
        lines.append("\t".join(cells))
    return "\n".join(lines)


def read_report(report_path: str | Path) -> Report:
    """Load a report, or an empty one when the file does not exist yet."""
    path = Path(report_path)
    if not path.exists():
        return Report()
    with open(path, "r", encoding="utf-8") as f:
        return parse_report(f.read())


def write_report(report_path: str | Path, report: Report) -> bool:
    """
    Write the report if its text differs from what is on disk.

    Returns:
        True if the file was written, False if it was already up to date
    """
    path = Path(report_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    content = serialize_report(report)
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            if f.read() == content:
                return False

    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    return True
