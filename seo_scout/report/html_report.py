# File: seo_scout/report/html_report.py
"""seo_scout.report.html_report: HTML audit report rendered with Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional, Union

from jinja2 import BaseLoader, Environment, FileSystemLoader, PackageLoader, select_autoescape

TEMPLATE_NAME = "report.html.j2"


def _loader(template_dir: Optional[Union[Path, str]]) -> BaseLoader:
    if template_dir is None:
        return PackageLoader("seo_scout.report", "templates")
    return FileSystemLoader(str(template_dir))


def render_html(
    data: Mapping[str, Any],
    template_dir: Optional[Union[Path, str]] = None,
) -> str:
    """Render an audit record through ``report.html.j2``.

    Args:
        data: the audit record.
        template_dir: directory holding ``report.html.j2``; the packaged
            template is used when omitted.

    Returns:
        The HTML document as text.

    Example:
    ```python
    from seo_scout.report.html_report import render_html
    html = render_html(record)
    ```
    """
    env = Environment(
        loader=_loader(template_dir),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template(TEMPLATE_NAME)

    scalars = {k: v for k, v in data.items() if not isinstance(v, (dict, list))}
    context: dict[str, Any] = {
        "record": data,
        "url": data.get("url", ""),
        "scalars": scalars,
        "headings": {f"h{n}": data.get(f"h{n}_tags") or [] for n in range(1, 7)},
        "link_analysis": data.get("link_analysis") or {},
        "pages": data.get("site_structure") or [],
        "issues": data.get("crawl_issues") or [],
    }
    return template.render(**context)
