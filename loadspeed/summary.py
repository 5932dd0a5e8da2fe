"""
Tabular resource summary written to the log after the report is emitted.
"""

from tabulate import tabulate

from loadspeed.core import setup_logger
from loadspeed.models import Report

logger = setup_logger("loadspeed.summary")

HEADERS = ['ID', 'Method', 'Status', 'Duration (ms)', 'Error', 'Timeout', 'URL']


def summary_rows(report: Report):
    rows = []
    for entry in report.resources:
        rows.append([
            entry.resource_id,
            entry.method,
            entry.response_status if entry.response_status is not None else "-",
            entry.duration if entry.duration is not None else "-",
            entry.error_code if entry.error_code is not None else "",
            "yes" if entry.timed_out else "",
            entry.url,
        ])
    return rows


def format_summary(report: Report) -> str:
    rows = summary_rows(report)
    status = report.status.value if report.status else "unfinished"
    header = f"LOAD SUMMARY: status={status} duration={report.duration} resources={len(rows)}"
    if report.page_load_errors:
        header += f" page_errors={len(report.page_load_errors)}"
    if not rows:
        return header
    return header + "\n" + tabulate(rows, headers=HEADERS, tablefmt='simple')


def log_summary(report: Report):
    logger.info(format_summary(report))
