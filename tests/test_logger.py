# File: tests/test_logger.py
import logging
import sys

import pytest

from seo_scout.logger import configure, init_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    init_logging()


def test_console_goes_to_stderr():
    lg = configure(level="INFO")
    assert len(lg.handlers) == 1
    assert lg.handlers[0].stream is sys.stderr
    assert lg.propagate is False


def test_log_file_is_created_with_parents(tmp_path):
    log_file = tmp_path / "logs" / "seo.log"
    lg = configure(level="DEBUG", log_file=log_file, log_format="%(levelname)s %(message)s")

    lg.debug("crawl of %s", "https://example.com/")
    for handler in lg.handlers:
        handler.flush()

    assert log_file.read_text(encoding="utf-8").strip() == "DEBUG crawl of https://example.com/"


def test_replace_handlers_false_appends(tmp_path):
    configure(level="INFO")
    lg = configure(level="INFO", replace_handlers=False)
    assert len(lg.handlers) == 2


def test_third_party_loggers_follow_debug():
    configure(level="INFO")
    assert logging.getLogger("whois.whois").level == logging.WARNING
    configure(level="DEBUG")
    assert logging.getLogger("whois.whois").level == logging.DEBUG
