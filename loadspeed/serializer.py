"""
Report Serializer: writes the finished report as a framed, tab-indented JSON block.
"""

import json
import sys
from datetime import datetime, timezone

from loadspeed.models import Report

BEGIN_MARKER = "BEGIN-JSON"
END_MARKER = "END-JSON"


def format_timestamp(dt: datetime) -> str:
    """YYYY-MM-DD HH:MM:SS.sss in UTC, without a zone marker."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%d %H:%M:%S") + f".{dt.microsecond // 1000:03d}"


class ReportEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, datetime):
            return format_timestamp(o)
        return super().default(o)


def render(report: Report) -> str:
    return json.dumps(report.to_dict(), indent="\t", cls=ReportEncoder)


def emit(report: Report, stream=None):
    stream = stream or sys.stdout
    stream.write(BEGIN_MARKER + "\n")
    stream.write(render(report) + "\n")
    stream.write(END_MARKER + "\n")
    stream.flush()
