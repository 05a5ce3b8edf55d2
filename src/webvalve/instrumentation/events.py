"""Timing and publishing of captured-request events."""

import logging
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager

import httpx
from pydantic import BaseModel, Field

Subscriber = Callable[["RequestEvent"], None]


class RequestEvent(BaseModel):
    """A request answered by a fake service."""

    status: int
    method: str
    url: str
    host: str
    duration: float = Field(..., ge=0, description="Handling time in milliseconds")
    service_class_name: str | None = None


class CapturedRequest:
    """Holder the caller fills in with the response while being timed."""

    def __init__(self, request: httpx.Request):
        self.request = request
        self.response: httpx.Response | None = None


class Instrumenter:
    """Publishes a RequestEvent to every subscriber for each captured request."""

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> Subscriber:
        self._subscribers.append(subscriber)
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    @property
    def subscribers(self) -> list[Subscriber]:
        return list(self._subscribers)

    @contextmanager
    def instrument(
        self, request: httpx.Request, service_class_name: str | None = None
    ) -> Generator[CapturedRequest, None, None]:
        """Time the block and publish an event once it sets ``response``.

        Nothing is published if the block raises or leaves ``response`` unset.
        """
        captured = CapturedRequest(request)
        started = time.perf_counter()
        yield captured
        duration = (time.perf_counter() - started) * 1000

        if captured.response is None:
            return

        self.publish(
            RequestEvent(
                status=captured.response.status_code,
                method=request.method.upper(),
                url=str(request.url),
                host=request.url.host,
                duration=duration,
                service_class_name=service_class_name,
            )
        )

    def publish(self, event: RequestEvent) -> None:
        for subscriber in list(self._subscribers):
            subscriber(event)
