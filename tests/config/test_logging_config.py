import logging
import os

import pytest

from structmd.config import ConfigManager
from structmd.logging_config import setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    names = ("structmd.core.services", "structmd.core.invariants", "structmd.core.editor")
    saved = {}
    for name in names:
        logger = logging.getLogger(name)
        saved[name] = (logger.level, list(logger.handlers), logger.propagate)
    yield
    added = {handler for handler in root.handlers if handler not in saved_handlers}
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
    for name, (level, handlers, propagate) in saved.items():
        logger = logging.getLogger(name)
        added.update(handler for handler in logger.handlers if handler not in handlers)
        logger.setLevel(level)
        logger.handlers[:] = handlers
        logger.propagate = propagate
    for handler in added:
        handler.close()


def test_file_handler_writes_into_the_log_dir(tmp_path, monkeypatch, restore_logging):
    log_dir = tmp_path / "logs"
    monkeypatch.setenv("STRUCTMD_LOG_DIR", str(log_dir))
    setup_logging()
    assert (log_dir).is_dir()
    handler_files = [
        getattr(handler, "baseFilename", None) for handler in logging.getLogger().handlers
    ]
    assert os.path.join(str(log_dir), "structmd.log") in handler_files


def test_minimal_fallback_without_logging_config(monkeypatch, restore_logging):
    monkeypatch.setattr(ConfigManager, "get_logging_config", lambda self: {})
    setup_logging()
    assert logging.getLogger("structmd.core.services").level == logging.INFO


def test_debug_overrides(tmp_path, monkeypatch, restore_logging):
    monkeypatch.setenv("STRUCTMD_LOG_DIR", str(tmp_path))
    monkeypatch.setenv("STRUCTMD_DEBUG_EDITS", "yes")
    monkeypatch.setenv("STRUCTMD_DEBUG_MODULES", "structmd.core.editor, ")
    setup_logging()
    assert logging.getLogger("structmd.core.services").level == logging.DEBUG
    assert logging.getLogger("structmd.core.invariants").level == logging.DEBUG
    assert logging.getLogger("structmd.core.editor").level == logging.DEBUG
