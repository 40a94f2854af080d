"""Shared fixtures for unit tests."""

import logging

import pytest

from tests.utils.host import FakeHost


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Ensure logs propagate to root so caplog can catch them."""
    logger = logging.getLogger("embedhttp")
    old_propagate = logger.propagate
    logger.propagate = True
    yield
    logger.propagate = old_propagate


@pytest.fixture(name="fake_host")
def fake_host_fixture():
    """Provide a recording host capability."""
    return FakeHost()
