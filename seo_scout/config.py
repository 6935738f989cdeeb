# === FILE: seo_scout/config.py ===
"""
Loading and validation of the SEO Scout configuration.
The schema is a Pydantic model; values come from YAML/JSON plus a few
environment variable overrides.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class AuditConfig(BaseModel):
    """Settings shared by the crawler, the audit engine and the HTTP API."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    user_agent: str = Field("SeoScoutBot/1.0", min_length=1, description="User-Agent header.")
    timeout: float = Field(10.0, gt=0, description="Timeout of a single network call (seconds).")
    crawl_timeout: float = Field(120.0, gt=0, description="Overall crawl deadline (seconds).")
    max_pages: int = Field(200, ge=1, description="Hard limit on pages visited by one crawl.")
    default_depth: int = Field(1, ge=0, description="Crawl depth used when a request omits it.")

    cache_ttl: float = Field(3600.0, ge=0, description="Freshness window of cached audits (seconds).")
    cache_max_entries: int = Field(512, ge=1, description="Distinct URLs kept in the audit cache.")
    history_max_entries: int = Field(100, ge=1, description="History entries kept per URL.")

    pagespeed_api_key: Optional[str] = Field(None, description="PageSpeed Insights API key.")
    database_url: Optional[str] = Field(None, description="SQLAlchemy URL of the audit store.")

    host: str = Field("127.0.0.1", min_length=1)
    port: int = Field(8080, ge=1, le=65535)
    template_dir: Optional[Path] = Field(None, description="Directory with Jinja2 report templates.")

    @field_validator("pagespeed_api_key", "database_url", mode="before")
    def _blank_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


_DEFAULT_CFG = Path("configs/default.yaml")

# env var -> config field
_ENV_OVERRIDES = {
    "CACHE_DURATION_SECONDS": "cache_ttl",
    "PAGESPEED_API_KEY": "pagespeed_api_key",
    "DATABASE_URL": "database_url",
}


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Malformed YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Malformed JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for env_name, field_name in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is not None and value != "":
            overrides[field_name] = value
    return overrides


def load_config(path: Union[str, Path, None] = None) -> AuditConfig:
    """
    Read YAML or JSON and return a validated AuditConfig.

    An explicit path that does not exist raises FileNotFoundError. Without a
    path, ``configs/default.yaml`` is used when present, plain defaults
    otherwise. Environment overrides are applied last.
    """
    data: dict[str, Any] = {}
    if path is None:
        if _DEFAULT_CFG.is_file():
            data = _read_yaml(_DEFAULT_CFG)
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

        suffix = path_obj.suffix.lower()
        if suffix in (".yaml", ".yml"):
            data = _read_yaml(path_obj)
        elif suffix == ".json":
            data = _read_json(path_obj)
        else:
            raise ValueError(f"Unsupported config format: {suffix}")

    data.update(_env_overrides())
    return AuditConfig(**data)


__all__ = ["AuditConfig", "load_config", "ValidationError"]
