# File: seo_scout/report/csv_report.py
"""seo_scout.report.csv_report: one-row CSV export of an audit record."""

from __future__ import annotations

import csv
import io
import json
from typing import Any, Mapping


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def render_csv(data: Mapping[str, Any]) -> str:
    """Header row of field names plus one value row; every cell is quoted.

    Nested values (lists, dicts) are embedded as JSON text.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(list(data.keys()))
    writer.writerow([_cell(v) for v in data.values()])
    return buffer.getvalue()
