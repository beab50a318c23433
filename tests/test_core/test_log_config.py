"""Tests for logging configuration."""

from logging import DEBUG, INFO, getLogger

import pytest
import structlog
from structlog.stdlib import BoundLogger
from structlog.testing import LogCapture
from structlog.types import BindableLogger

from post_oracle.core.logging import (
    configure_logging,
    get_logger,
    get_submission_logger,
)


@pytest.fixture(autouse=True)
def restore_logging():
    """Return to the test logging setup afterwards."""
    yield
    structlog.reset_defaults()
    configure_logging(testing=True)


def test_configure_logging_uses_json_renderer() -> None:
    configure_logging(json_logs=True)

    processors = structlog.get_config()["processors"]
    assert any(p.__class__.__name__ == "JSONRenderer" for p in processors)


def test_configure_logging_uses_key_value_renderer_in_tests() -> None:
    configure_logging(testing=True)

    processors = structlog.get_config()["processors"]
    assert any(p.__class__.__name__ == "KeyValueRenderer" for p in processors)
    assert not any(p.__class__.__name__ == "JSONRenderer" for p in processors)


def test_configure_logging_sets_level() -> None:
    configure_logging(level="debug")
    assert getLogger("post_oracle").level == DEBUG

    configure_logging(level="nonsense")
    assert getLogger("post_oracle").level == INFO


def test_get_logger_returns_bound_logger() -> None:
    logger = get_logger(__name__)
    assert isinstance(logger, BoundLogger | BindableLogger)
    logger.info("test_message", test_key="test_value")


def test_get_submission_logger_binds_submission_id() -> None:
    capture = LogCapture()
    structlog.configure(
        processors=[capture],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    get_submission_logger("42", __name__).info("similarity_check_started")

    assert capture.entries[0]["submission_id"] == "42"
    assert capture.entries[0]["event"] == "similarity_check_started"
