"""
Tests for package logging setup and the debug trail left by ignored calls.
"""

import logging

import pytest

from thermal_network import Simulation, SolarPanel
from thermal_network.logging_config import setup_logging


class TestSetupLogging:

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(logging.INFO)
        logger = setup_logging(logging.DEBUG)

        assert logger.name == "thermal_network"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_log_file_handler(self, tmp_path):
        log_file = tmp_path / "sim.log"
        logger = setup_logging(logging.INFO, log_file=str(log_file))
        logger.info("hello")

        for handler in logger.handlers:
            handler.flush()
        assert "hello" in log_file.read_text(encoding="utf-8")

        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


class TestIgnoredCallsAreLogged:

    def test_invalid_connection_logged_at_debug(self, caplog):
        sim = Simulation()
        sim.add_node(1.0, 20.0, 0.5, 10.0)

        with caplog.at_level(logging.DEBUG, logger="thermal_network"):
            sim.connect_node(0, 3, 1.0)
            sim.attach_solar_panel(3, SolarPanel())

        assert sim.connections() == []
        messages = [r.getMessage() for r in caplog.records]
        assert any("0 -> 3" in m for m in messages)
        assert any("unknown node 3" in m for m in messages)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
