"""Tests for logging setup."""

import logging

import pytest

from backend.banner_canvas.logging_config import setup_logging


@pytest.fixture
def clean_logger():
    logger = logging.getLogger("bannercanvas")
    saved_handlers, saved_level = list(logger.handlers), logger.level
    logger.handlers.clear()
    yield logger
    logger.handlers[:] = saved_handlers
    logger.setLevel(saved_level)


class TestSetupLogging:
    def test_configures_named_logger(self, clean_logger):
        logger = setup_logging("debug")
        assert logger is clean_logger
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_repeated_calls_keep_one_handler(self, clean_logger):
        setup_logging()
        setup_logging("WARNING")
        assert len(clean_logger.handlers) == 1
        assert clean_logger.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, clean_logger):
        assert setup_logging("chatty").level == logging.INFO
