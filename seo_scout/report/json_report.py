# seo_scout/report/json_report.py

"""
JSON export of an audit record, plus the file helpers shared by every exporter.
"""
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import urlsplit


def render_json(data: Any, pretty: bool = False) -> str:
    """
    Serialize an audit record (or a crawl result dict) to JSON text.

    :param data: JSON-compatible structure
    :param pretty: indent by 2 spaces
    :return: the JSON document

    Example:
    ```python
    from seo_scout.report.json_report import render_json
    text = render_json(record, pretty=True)
    ```
    """
    return json.dumps(data, ensure_ascii=False, indent=2 if pretty else None, default=str)


def export_filename(url: str, ext: str, now: Optional[datetime] = None) -> str:
    """``https://www.example.com/x`` -> ``www_example_com_20240101_120000.<ext>``."""
    host = urlsplit(url).hostname or "audit"
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return f"{host.replace('.', '_')}_{stamp}.{ext}"


def write_report(content: Union[str, bytes], output_path: Union[Path, str]) -> Path:
    """Write rendered report content, creating parent directories."""
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        output.write_bytes(content)
    else:
        output.write_text(content, encoding="utf-8")
    return output
