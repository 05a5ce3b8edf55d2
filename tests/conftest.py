"""Global pytest configuration and fixtures."""

import logging
from collections.abc import Generator

import pytest

from tests.fixtures.env_helpers import (
    clean_service_env,
    empty_env,
    env_accessor,
    service_env,
)
from tests.fixtures.fake_services import fake_dummy_cls, fake_twitter_cls
from webvalve.instrumentation import Instrumenter, RequestEvent
from webvalve.interception.binder import RespxBinder
from webvalve.manager import Manager
from webvalve.registry import Registry
from webvalve.utils.env import EnvAccessor


@pytest.fixture
def captured_events() -> list[RequestEvent]:
    """Events published by the ``recording_instrumenter`` fixture."""
    return []


@pytest.fixture
def recording_instrumenter(captured_events: list[RequestEvent]) -> Instrumenter:
    """Instrumenter that records events instead of logging them."""
    instrumenter = Instrumenter()
    instrumenter.subscribe(captured_events.append)
    return instrumenter


@pytest.fixture
def registry(env_accessor: EnvAccessor) -> Registry:
    """Registry without a binder, reading the injected test environment."""
    return Registry(env=env_accessor)


@pytest.fixture
def binder(recording_instrumenter: Instrumenter) -> Generator[RespxBinder, None, None]:
    """Respx binder that is always stopped after the test."""
    binder = RespxBinder(instrumenter=recording_instrumenter)
    yield binder
    binder.reset()


@pytest.fixture
def manager(
    env_accessor: EnvAccessor, binder: RespxBinder
) -> Generator[Manager, None, None]:
    """Isolated manager bound to the test binder and environment."""
    manager = Manager(env=env_accessor, binder=binder)
    yield manager
    manager.reset()


@pytest.fixture
def debug_logging(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """Capture WebValve logs at DEBUG level."""
    caplog.set_level(logging.DEBUG, logger="webvalve")
    return caplog
