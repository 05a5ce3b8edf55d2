"""pytest fixtures for WebValve.

Loaded automatically through the ``pytest11`` entry point. Nothing is
intercepted unless a test asks for one of the fixtures below.
"""

from collections.abc import Generator
from typing import Any

import pytest

import webvalve
from webvalve.manager import Manager


@pytest.fixture
def webvalve_setup() -> Generator[Manager, None, None]:
    """Set up the process-wide manager for one test and tear it down after."""
    manager = webvalve.get_manager()
    manager.setup()
    yield manager
    manager.teardown()


@pytest.fixture
def webvalve_manager() -> Generator[Manager, None, None]:
    """An isolated manager with an empty registry, reset after the test."""
    manager = Manager()
    yield manager
    manager.reset()


def pytest_configure(config: Any) -> None:
    config.addinivalue_line(
        "markers", "webvalve: test relies on WebValve fake services being set up"
    )
