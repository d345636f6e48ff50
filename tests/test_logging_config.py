"""Tests for logging setup."""

import logging

import pytest


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_level_and_single_handler(self):
        from pathtracer.logging_config import setup_logging

        logger = setup_logging("DEBUG")
        setup_logging("WARNING")
        assert logger.name == "pathtracer"
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1

    def test_log_file(self, tmp_path):
        from pathtracer.logging_config import setup_logging

        log_file = tmp_path / "logs" / "render.log"
        logger = setup_logging("INFO", log_file)
        logging.getLogger("pathtracer.scene").info("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in log_file.read_text()
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    def test_unknown_level(self):
        from pathtracer.logging_config import setup_logging

        with pytest.raises(ValueError):
            setup_logging("LOUD")
