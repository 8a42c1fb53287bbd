"""Multi-run TBT report: model, merge and tab-separated storage."""

from tbt_report.report.merge import Report, ReportRow, RunMetrics, merge_report
from tbt_report.report.store import (
    ReportFormatError,
    parse_report,
    read_report,
    serialize_report,
    write_report
)

__all__ = [
    "Report",
    "ReportFormatError",
    "ReportRow",
    "RunMetrics",
    "merge_report",
    "parse_report",
    "read_report",
    "serialize_report",
    "write_report"
]
