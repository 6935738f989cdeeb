# === FILE: seo_scout/logger.py ===
"""Logging setup shared by the CLI, the HTTP API and the audit pipeline.

Highlights
----------
* Every module logs through one named logger, imported as::

      from seo_scout.logger import logger
      logger.info("Auditing %s", url)
* Console records go to **stderr**: ``seo-scout audit`` prints the audit
  record on stdout and that stream must stay valid JSON.
* ``--log-file`` adds a rotating file next to the console handler.
* Chatty third-party loggers (python-whois, aiohttp access log) are held at
  WARNING unless the project logger itself runs at DEBUG.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Tuple, Union

# --------------------------------------------------------------------------- #
# Constants                                                                   #
# --------------------------------------------------------------------------- #

_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOGGER_NAME: Final[str] = "SeoScout"

_LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
_LOG_FILE_BACKUPS: Final[int] = 3

_THIRD_PARTY: Final[Tuple[str, ...]] = ("whois", "whois.whois", "aiohttp.access")

_LevelT = Union[int, str]


# --------------------------------------------------------------------------- #
# Handlers                                                                    #
# --------------------------------------------------------------------------- #


def _console_handler(fmt: str) -> logging.StreamHandler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _rotating_handler(file: Path | str, fmt: str) -> RotatingFileHandler:
    path = Path(file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=_LOG_FILE_MAX_BYTES,
        backupCount=_LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _tune_third_party(project_level: int) -> None:
    level = logging.DEBUG if project_level <= logging.DEBUG else logging.WARNING
    for name in _THIRD_PARTY:
        logging.getLogger(name).setLevel(level)


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Attach handlers to the ``SeoScout`` logger and set its level.

    Parameters
    ----------
    level
        ``"DEBUG"``, ``"INFO"``, ... or the numeric equivalent.
    log_file
        Rotating log file (5 MiB, 3 backups); console only when *None*.
    log_format
        :class:`logging.Formatter` pattern used by every handler.
    replace_handlers
        Close and drop the handlers of a previous call first. With *False*
        the new handlers are added on top.
    """
    lg = logging.getLogger(_LOGGER_NAME)
    lg.setLevel(level)

    if replace_handlers:
        for handler in list(lg.handlers):
            lg.removeHandler(handler)
            handler.close()

    lg.addHandler(_console_handler(log_format))
    if log_file is not None:
        lg.addHandler(_rotating_handler(log_file, log_format))

    lg.propagate = False
    _tune_third_party(lg.level)
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    """Fresh configuration from the CLI options (``--log-level`` and friends)."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging"]
