"""Test configuration."""

import os

from pytest import Config

from post_oracle.core.logging import configure_logging

os.environ.setdefault("TESTING", "true")

pytest_plugins: list[str] = [
    "tests.fixtures.ledger",
    "tests.fixtures.services",
    "tests.fixtures.api",
]


def pytest_configure(config: Config) -> None:
    """Configure pytest.

    Args:
        config: Pytest configuration object
    """
    # Configure logging for test environment
    configure_logging(testing=True)
