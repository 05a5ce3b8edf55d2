"""
WebValve: switch external HTTP services between fakes and the real network.

Services are registered once at startup and resolved against the
environment each time they are queried::

    import webvalve

    webvalve.register(FakeTwitter, url="http://twitter.dev")
    webvalve.register("myapp.fakes.FakeBank")  # URL from BANK_API_URL
    webvalve.allow_url("https://status.example.com")
    webvalve.setup()

Per service, ``<NAME>_ENABLED`` (1/t/true or 0/f/false) forces the fake on
or off, and ``<NAME>_API_URL`` supplies the URL when none was registered.
"""

from typing import Any

from webvalve.errors import (
    ConfigurationError,
    DuplicateRegistrationError,
    RouteNotDefinedError,
    ValidationError,
    WebValveError,
)
from webvalve.fake_service import FakeService, delete, get, patch, post, put, route
from webvalve.fake_service_config import EnabledState, ServiceConfig, service_name_for
from webvalve.instrumentation import LogSubscriber, RequestEvent, instrumenter
from webvalve.interception import Interception, InterceptionBinder, RespxBinder
from webvalve.manager import Manager
from webvalve.registry import GlobalMode, Registry
from webvalve.utils.env import EnvAccessor, load_env

__version__ = "1.0.0"

_manager = Manager(instrumenter=instrumenter)


def get_manager() -> Manager:
    """Return the process-wide manager."""
    return _manager


def register(
    service: str | type[FakeService],
    url: str | None = None,
    request_matcher: Any | None = None,
    *,
    service_name: str | None = None,
) -> ServiceConfig:
    return _manager.register(
        service, url=url, request_matcher=request_matcher, service_name=service_name
    )


def allow_url(url: str) -> None:
    _manager.allow_url(url)


def set_global_mode(mode: GlobalMode | str) -> None:
    _manager.set_global_mode(mode)


def enabled() -> bool:
    return _manager.enabled()


def setup() -> None:
    _manager.setup()


def teardown() -> None:
    _manager.teardown()


def reset() -> None:
    _manager.reset()


__all__ = [
    # Process-wide API
    "register",
    "allow_url",
    "set_global_mode",
    "enabled",
    "setup",
    "teardown",
    "reset",
    "get_manager",
    # Building blocks
    "Manager",
    "Registry",
    "GlobalMode",
    "ServiceConfig",
    "EnabledState",
    "service_name_for",
    "EnvAccessor",
    "load_env",
    "FakeService",
    "route",
    "get",
    "post",
    "put",
    "patch",
    "delete",
    "InterceptionBinder",
    "RespxBinder",
    "Interception",
    "LogSubscriber",
    "RequestEvent",
    "instrumenter",
    # Errors
    "WebValveError",
    "ValidationError",
    "ConfigurationError",
    "DuplicateRegistrationError",
    "RouteNotDefinedError",
]
