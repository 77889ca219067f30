# tests/test_logging.py: Unit tests for console and rotating file log setup.

import logging
from logging.handlers import RotatingFileHandler

import pytest

from packages.core import logging_


@pytest.fixture
def bare_root(tmp_path, monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(logging_, "log_path", lambda: tmp_path / "restart-monitor.log")
    monkeypatch.setattr(logging_, "ensure_app_dirs", lambda: None)
    monkeypatch.setattr(root, "level", root.level)
    yield root
    for handler in root.handlers:
        handler.close()


def test_setup_logging_uses_plain_line_format(bare_root, monkeypatch):
    monkeypatch.setenv(logging_.LOG_LEVEL_ENV, "debug")
    # pytest's logging plugin attaches its capture handlers after fixture setup
    monkeypatch.setattr(bare_root, "handlers", [])

    logging_.setup_logging()

    assert bare_root.level == logging.DEBUG
    files = [h for h in bare_root.handlers if isinstance(h, RotatingFileHandler)]
    assert len(files) == 1
    assert files[0].formatter._fmt == "%(asctime)s %(levelname)s %(name)s - %(message)s"


def test_unknown_level_name_falls_back_to_info(bare_root, monkeypatch):
    monkeypatch.setenv(logging_.LOG_LEVEL_ENV, "chatty")

    logging_.setup_logging()

    assert bare_root.level == logging.INFO
