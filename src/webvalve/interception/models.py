"""Routing decisions handed from the registry to an interception binder."""

from typing import Any

from pydantic import BaseModel, ConfigDict

from webvalve.fake_service import FakeService


class Interception(BaseModel):
    """An enabled fake service: where it lives and which requests it answers."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    service_class_name: str
    full_url: str
    path_prefix: str
    request_matcher: Any | None = None
    fake_service: type[FakeService] | None = None


class PassThrough(BaseModel):
    """A URL whose requests always reach the real network."""

    model_config = ConfigDict(frozen=True)

    url: str
    reason: str = "allowed"
