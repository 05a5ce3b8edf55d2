"""Base class for fake services that stand in for external HTTP APIs.

A fake declares its endpoints with the ``route`` decorator (or the ``get`` /
``post`` / ``put`` / ``patch`` / ``delete`` shortcuts). Handlers receive the
intercepted ``httpx.Request`` plus any ``{param}`` values from the path and
return an ``httpx.Response``::

    class FakeTwitter(FakeService):
        @get("/users/{user_id}")
        def show_user(self, request, user_id):
            return self.json({"id": user_id})

Paths are matched relative to the service URL, so a service registered at
``http://twitter.dev/api`` sees ``/users/1`` for ``http://twitter.dev/api/users/1``.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, ClassVar

import httpx

from webvalve.errors import RouteNotDefinedError

Handler = Callable[..., httpx.Response]

_PARAM = re.compile(r"\{(\w+)\}")
_ROUTES_ATTR = "_webvalve_routes"


@dataclass(frozen=True)
class Route:
    """A method and path pattern bound to a handler method name."""

    method: str
    pattern: str
    handler_name: str
    regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        parts = []
        position = 0
        for match in _PARAM.finditer(self.pattern):
            parts.append(re.escape(self.pattern[position : match.start()]))
            parts.append(f"(?P<{match.group(1)}>[^/]+)")
            position = match.end()
        parts.append(re.escape(self.pattern[position:].rstrip("/")))
        object.__setattr__(self, "regex", re.compile("".join(parts) + "/?"))

    def match(self, method: str, path: str) -> dict[str, str] | None:
        """Return path parameters if the route matches, otherwise None."""
        if method.upper() != self.method:
            return None
        found = self.regex.fullmatch(path)
        return found.groupdict() if found else None


def route(method: str, path: str) -> Callable[[Handler], Handler]:
    """Mark a FakeService method as the handler for ``method`` and ``path``."""

    def decorator(func: Handler) -> Handler:
        existing = getattr(func, _ROUTES_ATTR, [])
        setattr(func, _ROUTES_ATTR, [*existing, (method.upper(), path)])
        return func

    return decorator


def get(path: str) -> Callable[[Handler], Handler]:
    return route("GET", path)


def post(path: str) -> Callable[[Handler], Handler]:
    return route("POST", path)


def put(path: str) -> Callable[[Handler], Handler]:
    return route("PUT", path)


def patch(path: str) -> Callable[[Handler], Handler]:
    return route("PATCH", path)


def delete(path: str) -> Callable[[Handler], Handler]:
    return route("DELETE", path)


class FakeService:
    """Base class for fake HTTP services.

    Subclasses inherit their parents' routes; routes declared later in a
    class body are tried after earlier ones.
    """

    routes: ClassVar[tuple[Route, ...]] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        declared = [
            Route(method, path, name)
            for name, attr in vars(cls).items()
            for method, path in getattr(attr, _ROUTES_ATTR, ())
        ]
        cls.routes = (*cls.routes, *declared)

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)

    def handle(self, request: httpx.Request, path: str | None = None) -> httpx.Response:
        """Dispatch ``request`` to the matching route.

        Args:
            request: The intercepted request
            path: Path to match, defaults to the request's own path

        Raises:
            RouteNotDefinedError: If no route matches
        """
        path = (request.url.path if path is None else path) or "/"
        for candidate in self.routes:
            params = candidate.match(request.method, path)
            if params is not None:
                self.logger.debug(
                    f"{type(self).__name__} handling {request.method} {path} "
                    f"with {candidate.handler_name}"
                )
                handler = getattr(self, candidate.handler_name)
                return handler(request, **params)

        raise RouteNotDefinedError(request.method, path, type(self).__name__)

    @staticmethod
    def json(
        data: Any, status_code: int = 200, headers: dict[str, str] | None = None
    ) -> httpx.Response:
        return httpx.Response(status_code, json=data, headers=headers)

    @staticmethod
    def text(
        body: str, status_code: int = 200, headers: dict[str, str] | None = None
    ) -> httpx.Response:
        return httpx.Response(status_code, text=body, headers=headers)
