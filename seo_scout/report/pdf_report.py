# File: seo_scout/report/pdf_report.py
"""seo_scout.report.pdf_report: paginated PDF export of an audit record via reportlab."""

from __future__ import annotations

import io
import json
from typing import Any, Mapping
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer


def _line(key: str, value: Any) -> str:
    if isinstance(value, (dict, list, tuple)):
        value = json.dumps(value, ensure_ascii=False, default=str)
    return f"<b>{escape(str(key))}</b>: {escape('' if value is None else str(value))}"


def render_pdf(data: Mapping[str, Any], template: str = "default") -> bytes:
    """Render *data* as a PDF document and return its bytes.

    One ``key: value`` paragraph per field under the title
    ``SEO Audit Report (<template>)``; reportlab paginates long records.
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=letter,
        topMargin=0.75 * inch,
        bottomMargin=0.75 * inch,
        leftMargin=0.75 * inch,
        rightMargin=0.75 * inch,
        title=f"SEO Audit Report ({template})",
    )

    styles = getSampleStyleSheet()
    field_style = ParagraphStyle(
        name="AuditField",
        parent=styles["BodyText"],
        fontSize=9,
        spaceAfter=4,
        wordWrap="CJK",
    )
    title_style = ParagraphStyle(
        name="AuditTitle",
        parent=styles["Title"],
        textColor=colors.HexColor("#1a3a5c"),
    )

    elements: list = [
        Paragraph(escape(f"SEO Audit Report ({template})"), title_style),
        Spacer(1, 12),
    ]
    for key, value in data.items():
        elements.append(Paragraph(_line(key, value), field_style))

    doc.build(elements)
    return buffer.getvalue()
