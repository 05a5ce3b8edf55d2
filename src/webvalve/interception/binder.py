"""Interception binders that route outbound HTTP requests to fake services."""

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import httpx
import respx
from respx.patterns import Pattern

from webvalve.config import LOCAL_HOSTS
from webvalve.errors import ConfigurationError
from webvalve.fake_service import FakeService
from webvalve.fake_service_config import parse_url, strip_credentials
from webvalve.instrumentation import Instrumenter, instrumenter as default_instrumenter
from webvalve.interception.models import Interception, PassThrough

ROUTE_PREFIX = "webvalve"


class InterceptionBinder(ABC):
    """Applies the registry's routing decisions to outbound HTTP traffic."""

    @abstractmethod
    def sync(
        self,
        interceptions: Sequence[Interception],
        pass_throughs: Sequence[PassThrough] = (),
        block_unmatched: bool = True,
    ) -> None:
        """Replace the installed rules with the given ones.

        Calling sync repeatedly with the same arguments must leave the same
        rules in place.
        """
        pass

    @abstractmethod
    def start(self) -> None:
        """Start intercepting requests."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop intercepting requests and drop all rules."""
        pass

    @property
    @abstractmethod
    def is_active(self) -> bool:
        pass


class RespxBinder(InterceptionBinder):
    """Binder backed by a respx router patching httpx transports."""

    def __init__(
        self,
        instrumenter: Instrumenter | None = None,
        router: respx.MockRouter | None = None,
        allow_localhost: bool = True,
    ):
        self.logger = logging.getLogger(__name__)
        self.instrumenter = instrumenter or default_instrumenter
        self.router = router or respx.MockRouter(
            assert_all_called=False, assert_all_mocked=True
        )
        self.allow_localhost = allow_localhost
        self._fakes: dict[str, FakeService] = {}
        self._intercepted: dict[str, Interception] = {}
        self._passed_through: list[str] = []
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def intercepted_services(self) -> dict[str, Interception]:
        return dict(self._intercepted)

    @property
    def passed_through_urls(self) -> list[str]:
        return list(self._passed_through)

    def start(self) -> None:
        if self._active:
            return
        self.router.start()
        self._active = True
        self.logger.debug("respx interception started")

    def stop(self) -> None:
        """Stop intercepting; fake services start fresh on the next sync."""
        if not self._active:
            return
        self.router.stop()
        self.router.clear()
        self._intercepted.clear()
        self._passed_through.clear()
        self._fakes.clear()
        self._active = False
        self.logger.debug("respx interception stopped")

    def reset(self) -> None:
        """Stop intercepting and forget fake service instances, even if stopped."""
        self.stop()
        self._fakes.clear()

    def sync(
        self,
        interceptions: Sequence[Interception],
        pass_throughs: Sequence[PassThrough] = (),
        block_unmatched: bool = True,
    ) -> None:
        # Build every route before touching the router so a bad matcher
        # leaves the previous rules in place
        fake_routes = [
            (
                interception,
                self._patterns_for(interception),
                self._dispatcher(interception),
            )
            for interception in interceptions
        ]
        pass_through_routes = [
            (pass_through, url_lookups(pass_through.url, pass_through.reason))
            for pass_through in pass_throughs
        ]

        self.router.clear()
        self._intercepted.clear()
        self._passed_through.clear()

        for interception, (patterns, lookups), dispatch in fake_routes:
            name = f"{ROUTE_PREFIX}:{interception.service_class_name}"
            self.router.route(*patterns, name=name, **lookups).mock(
                side_effect=dispatch
            )
            self._intercepted[interception.service_class_name] = interception

        for pass_through, lookups in pass_through_routes:
            url = strip_credentials(parse_url(pass_through.url, pass_through.reason))
            name = f"{ROUTE_PREFIX}:{pass_through.reason}:{url}"
            self.router.route(name=name, **lookups).pass_through()
            self._passed_through.append(pass_through.url)

        if self.allow_localhost:
            for host in LOCAL_HOSTS:
                self.router.route(
                    name=f"{ROUTE_PREFIX}:localhost:{host}", host=host
                ).pass_through()

        if not block_unmatched:
            self.router.route(name=f"{ROUTE_PREFIX}:unmatched").pass_through()

        self.logger.debug(
            f"Synced {len(self._intercepted)} fake service(s), "
            f"{len(self._passed_through)} pass-through URL(s), "
            f"unmatched requests {'blocked' if block_unmatched else 'allowed'}"
        )

    def _patterns_for(
        self, interception: Interception
    ) -> tuple[list[Pattern], dict[str, Any]]:
        lookups = url_lookups(
            interception.full_url,
            interception.service_class_name,
            interception.path_prefix,
        )

        patterns: list[Pattern] = []
        matcher = interception.request_matcher
        if isinstance(matcher, Mapping):
            lookups.update(matcher)
        elif isinstance(matcher, Pattern):
            patterns.append(matcher)
        elif matcher is not None:
            raise ConfigurationError(
                f"Unsupported request_matcher for {interception.service_class_name}: "
                f"expected a mapping of respx lookups or a respx pattern, "
                f"got {type(matcher).__name__}"
            )
        return patterns, lookups

    def _fake_for(self, interception: Interception) -> FakeService:
        if interception.fake_service is None:
            raise ConfigurationError(
                f"No fake service class bound for {interception.service_class_name}"
            )
        fake = self._fakes.get(interception.service_class_name)
        if fake is None or type(fake) is not interception.fake_service:
            fake = interception.fake_service()
            self._fakes[interception.service_class_name] = fake
        return fake

    def _dispatcher(
        self, interception: Interception
    ) -> Callable[[httpx.Request], httpx.Response]:
        fake = self._fake_for(interception)

        def dispatch(request: httpx.Request) -> httpx.Response:
            path = relative_path(request.url.path, interception.path_prefix)
            with self.instrumenter.instrument(
                request, interception.service_class_name
            ) as captured:
                captured.response = fake.handle(request, path)
            return captured.response

        return dispatch


def url_lookups(url: str, owner: str, path_prefix: str | None = None) -> dict[str, Any]:
    """respx lookups matching requests under ``url``.

    Credentials in the URL never take part in matching. The host must match
    exactly and the path must equal the prefix or continue it with ``/``.

    Raises:
        ConfigurationError: If ``url`` is not an absolute URL
    """
    parts = parse_url(url, owner)
    lookups: dict[str, Any] = {"scheme": parts.scheme, "host": parts.hostname}
    if parts.port is not None:
        lookups["port"] = parts.port

    prefix = (parts.path if path_prefix is None else path_prefix).rstrip("/")
    if prefix:
        lookups["path__regex"] = rf"^{re.escape(prefix)}(?:/|$)"
    return lookups


def relative_path(path: str, path_prefix: str) -> str:
    """Strip the service path prefix so fakes see paths relative to their root."""
    if path_prefix == "/" or not path.startswith(path_prefix):
        return path or "/"
    remainder = path[len(path_prefix) :]
    if not remainder.startswith("/"):
        remainder = f"/{remainder}"
    return remainder
