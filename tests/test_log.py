from __future__ import annotations

import logging

import pytest

from utils.log import LOG_FORMAT, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_logging_installs_single_handler(restore_root_logger) -> None:
    configure_logging("debug")

    assert restore_root_logger.level == logging.DEBUG
    assert len(restore_root_logger.handlers) == 1
    assert restore_root_logger.handlers[0].formatter._fmt == LOG_FORMAT


def test_configure_logging_rejects_unknown_level(restore_root_logger) -> None:
    with pytest.raises(ValueError):
        configure_logging("chatty")
