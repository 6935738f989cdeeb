# File: seo_scout/report/__init__.py
"""seo_scout.report: audit exporters (JSON, CSV, PDF, HTML) used by the CLI and the HTTP API."""

from __future__ import annotations

from seo_scout.report.csv_report import render_csv
from seo_scout.report.html_report import render_html
from seo_scout.report.json_report import export_filename, render_json, write_report
from seo_scout.report.pdf_report import render_pdf

__all__ = ["render_json", "render_csv", "render_pdf", "render_html", "export_filename", "write_report"]
