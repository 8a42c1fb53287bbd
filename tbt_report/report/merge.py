"""Report model and the multi-run merge."""

from dataclasses import dataclass, replace

from tbt_report.analyzer import Task


FIXED_COLUMNS = ("Task Name", "URL", "Category", "Has Long Tasks")
RUN_COLUMN_SUFFIXES = ("Blocking Time", "Total Duration", "Occurrences")


@dataclass(frozen=True)
class RunMetrics:
    blocking_time: float
    total_duration: float
    occurrences: int

    @classmethod
    def from_task(cls, task: Task) -> "RunMetrics":
        return cls(
            blocking_time=task.blocking_time,
            total_duration=task.total_duration,
            occurrences=task.occurrences
        )


@dataclass(frozen=True)
class ReportRow:
    """
    One task's history. ``runs`` holds one entry per run, None where the task
    did not occur in that run.
    """

    name: str
    url: str
    category: str
    has_long_tasks: bool
    runs: tuple[RunMetrics | None, ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.url)


@dataclass(frozen=True)
class Report:
    run_count: int = 0
    rows: tuple[ReportRow, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.run_count == 0 and not self.rows

    def header(self) -> list[str]:
        header = list(FIXED_COLUMNS)
        for run_number in range(1, self.run_count + 1):
            header.extend(f"Run {run_number} ({suffix})" for suffix in RUN_COLUMN_SUFFIXES)
        return header


def merge_report(report: Report, tasks: list[Task]) -> Report:
    """
    Append one run's tasks to a report and return the new report.

    Args:
        report: Existing report; an empty Report starts a new one
        tasks: Aggregated tasks of the new run, unique by (name, url)

    Returns:
        Report with run_count + 1 runs. Rows keep their order; tasks not seen
        before are appended after them.
    """
    prior_runs = report.run_count
    new_metrics: dict[tuple[str, str], Task] = {}
    for task in tasks:
        if task.key in new_metrics:
            raise ValueError(f"Duplicate task in run: {task.name}|{task.url}")
        new_metrics[task.key] = task

    rows = []
    for row in report.rows:
        task = new_metrics.pop(row.key, None)
        if task is None:
            rows.append(replace(row, runs=row.runs + (None,)))
            continue
        rows.append(
            replace(
                row,
                has_long_tasks=row.has_long_tasks or task.has_long_tasks,
                runs=row.runs + (RunMetrics.from_task(task),)
            )
        )

    # Remaining entries are first seen in this run
    for task in new_metrics.values():
        rows.append(
            ReportRow(
                name=task.name,
                url=task.url,
                category=task.category,
                has_long_tasks=task.has_long_tasks,
                runs=(None,) * prior_runs + (RunMetrics.from_task(task),)
            )
        )

    return Report(run_count=prior_runs + 1, rows=tuple(rows))
