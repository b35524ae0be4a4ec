"""Unit tests for InjectionLogger."""

import logging

from bindwire.application.aop import AspectBinder
from bindwire.domain import IInjectionLogger
from bindwire.infrastructure.injection_logger import InjectionLogger


class Repository:
    pass


class Service:
    pass


class TestInjectionLogger:
    """Test cases for InjectionLogger."""

    def test_implements_interface(self):
        """Test that InjectionLogger implements IInjectionLogger."""
        assert isinstance(InjectionLogger(), IInjectionLogger)

    def test_default_logger_name(self):
        """Test the default logger."""
        assert InjectionLogger().logger.name == "bindwire.injection"

    def test_logs_construction(self, caplog):
        """Test that a construction is written as one record."""
        injection_logger = InjectionLogger()

        with caplog.at_level(logging.DEBUG, logger="bindwire.injection"):
            injection_logger.log(
                Service,
                {"repo": Repository(), "retries": 3},
                {"set_clock": {}},
                Service(),
                AspectBinder(),
            )

        assert len(caplog.records) == 1
        message = caplog.records[0].getMessage()
        assert message.startswith("Service(repo=<Repository 0x")
        assert "retries=3" in message
        assert "setters=['set_clock']" in message

    def test_disabled_level_writes_nothing(self, caplog):
        """Test that nothing is logged below the logger's level."""
        injection_logger = InjectionLogger()

        with caplog.at_level(logging.INFO, logger="bindwire.injection"):
            injection_logger.log(Service, {}, {}, Service(), AspectBinder())

        assert caplog.records == []

    def test_custom_logger_and_level(self, caplog):
        """Test logging to a custom logger at a custom level."""
        injection_logger = InjectionLogger(logging.getLogger("app.di"), level=logging.INFO)

        with caplog.at_level(logging.INFO, logger="app.di"):
            injection_logger.log(Service, {}, {}, Service(), AspectBinder())

        assert caplog.records[0].levelno == logging.INFO
        assert caplog.records[0].name == "app.di"
