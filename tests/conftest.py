"""Pytest configuration and shared fixtures."""

import logging

import pytest  # type: ignore[import-not-found]


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest."""
    config.addinivalue_line("markers", "integration: Integration tests")


@pytest.fixture(autouse=True)
def reset_logging() -> None:
    """Drop handlers installed by CLI invocations."""
    yield
    logger = logging.getLogger("time_tracking")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
