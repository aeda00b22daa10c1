"""
Tests for shared logging configuration.
"""

import logging

import pytest

from src.logging_config import LOG_FILE, configure_logging


@pytest.fixture
def root_logger():
    """Root logger; handlers added by the test are closed and removed afterwards."""
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in saved_handlers and type(handler) in (
            logging.StreamHandler, logging.FileHandler, logging.NullHandler
        ):
            handler.close()
            root.removeHandler(handler)
    root.setLevel(saved_level)


def _detach_handlers(root):
    # pytest attaches its capture handler per phase, so clear right before use
    root.handlers = []


class TestConfigureLogging:

    def test_adds_console_and_file_handlers(self, tmp_path, root_logger):
        log_dir = tmp_path / "logs"
        _detach_handlers(root_logger)

        configure_logging(logging.DEBUG, log_dir=str(log_dir))

        kinds = {type(h) for h in root_logger.handlers}
        assert logging.FileHandler in kinds
        assert logging.StreamHandler in kinds
        assert root_logger.level == logging.DEBUG
        assert (log_dir / LOG_FILE).exists()

    def test_idempotent(self, tmp_path, root_logger):
        _detach_handlers(root_logger)
        configure_logging(log_dir=str(tmp_path / "logs"))
        count = len(root_logger.handlers)

        configure_logging(log_dir=str(tmp_path / "logs"))

        assert len(root_logger.handlers) == count

    def test_existing_handlers_left_alone(self, tmp_path, root_logger):
        marker = logging.NullHandler()
        root_logger.handlers = [marker]

        configure_logging(log_dir=str(tmp_path / "logs"))

        assert root_logger.handlers == [marker]
        assert not (tmp_path / "logs").exists()

    def test_unwritable_log_dir_keeps_console(self, tmp_path, root_logger):
        blocker = tmp_path / "logs"
        blocker.write_text("not a directory")
        _detach_handlers(root_logger)

        configure_logging(log_dir=str(blocker))

        assert [type(h) for h in root_logger.handlers] == [logging.StreamHandler]
