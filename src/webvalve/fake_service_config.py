"""Per-service configuration resolved from registration input and the environment."""

import importlib
import logging
import re
from enum import Enum
from typing import Any
from urllib.parse import SplitResult, urlsplit, urlunsplit

from webvalve.config import (
    API_URL_SUFFIX,
    ENABLED_SUFFIX,
    FALSEY_VALUES,
    REGISTER_EXAMPLE_URL,
    TRUTHY_VALUES,
)
from webvalve.errors import ConfigurationError, ValidationError
from webvalve.fake_service import FakeService
from webvalve.utils.env import EnvAccessor

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_NON_IDENTIFIER = re.compile(r"[^A-Za-z0-9_]+")


class EnabledState(Enum):
    """Per-service override read from ``<SERVICE_NAME>_ENABLED``."""

    ENABLED = "enabled"
    DISABLED = "disabled"
    UNSET = "unset"

    @classmethod
    def from_value(cls, value: str | None) -> "EnabledState":
        """Map a raw environment value to a state.

        Only the exact tokens in TRUTHY_VALUES and FALSEY_VALUES count;
        anything else, including an empty string, is UNSET.
        """
        if value in TRUTHY_VALUES:
            return cls.ENABLED
        if value in FALSEY_VALUES:
            return cls.DISABLED
        return cls.UNSET


def service_name_for(identifier: str) -> str:
    """Derive the environment variable stem for a fake service identifier.

    ``FakeDummy`` -> ``DUMMY``, ``myapp.fakes:FakeTwitterApi`` -> ``TWITTER_API``.
    """
    name = re.split(r"[.:]", identifier.strip())[-1]
    if name.startswith("Fake"):
        name = name[len("Fake") :]
    name = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    name = _CAMEL_BOUNDARY.sub(r"\1_\2", name)
    return normalize_service_name(name)


def normalize_service_name(name: str) -> str:
    """Upper-case ``name`` with runs of non-identifier characters as one ``_``."""
    name = _NON_IDENTIFIER.sub("_", name)
    return re.sub(r"_+", "_", name).strip("_").upper()


def strip_credentials(parts: SplitResult) -> str:
    """Rebuild a URL without the user:pass component of its authority."""
    netloc = parts.netloc.rpartition("@")[2]
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def parse_url(url: str, service_class_name: str) -> SplitResult:
    """Split ``url`` and check it is absolute, raising ConfigurationError if not."""
    try:
        parts = urlsplit(url)
        # Accessing port validates it
        _ = parts.port
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid URL {url!r} for {service_class_name}: {e}"
        ) from e

    if not parts.scheme or not parts.hostname:
        raise ConfigurationError(
            f"Invalid URL {url!r} for {service_class_name}: "
            "expected an absolute URL with scheme and host"
        )
    return parts


class ServiceConfig:
    """Configuration for one registered fake service.

    Enabled state and the environment URL are read through ``env`` on every
    call; nothing resolved from the environment is cached.
    """

    def __init__(
        self,
        service_class_name: str,
        url: str | None = None,
        request_matcher: Any | None = None,
        *,
        service_name: str | None = None,
        fake_service: type[FakeService] | None = None,
        env: EnvAccessor | None = None,
    ):
        if not service_class_name or not service_class_name.strip():
            raise ValidationError("service_class_name must be a non-empty string")

        self.logger = logging.getLogger(__name__)
        self._service_class_name = service_class_name.strip()
        self._service_name = (
            normalize_service_name(service_name)
            if service_name is not None
            else service_name_for(self._service_class_name)
        )
        if not self._service_name:
            raise ValidationError(
                f"Could not derive a service name from {self._service_class_name!r}; "
                "pass service_name explicitly"
            )

        self.explicit_url = url
        self.request_matcher = request_matcher
        self.fake_service = fake_service
        self.env = env or EnvAccessor()

    @property
    def service_class_name(self) -> str:
        return self._service_class_name

    @property
    def service_name(self) -> str:
        return self._service_name

    @property
    def enabled_env_var(self) -> str:
        return f"{self._service_name}{ENABLED_SUFFIX}"

    @property
    def url_env_var(self) -> str:
        return f"{self._service_name}{API_URL_SUFFIX}"

    def enabled_state(self) -> EnabledState:
        """Read the per-service override from the environment."""
        return EnabledState.from_value(self.env.get(self.enabled_env_var))

    def explicitly_enabled(self) -> bool:
        return self.enabled_state() is EnabledState.ENABLED

    def explicitly_disabled(self) -> bool:
        return self.enabled_state() is EnabledState.DISABLED

    def service_url(self) -> str:
        """Return the URL from ``<SERVICE_NAME>_API_URL`` without credentials.

        Raises:
            ConfigurationError: If the variable is unset or empty
        """
        url = self.env.get(self.url_env_var)
        if not url:
            self.logger.warning(
                f"No URL configured for {self._service_class_name} ({self.url_env_var} unset)"
            )
            raise ConfigurationError(self._missing_url_message())
        return strip_credentials(parse_url(url, self._service_class_name))

    def full_url(self) -> str:
        """Return the explicit URL as given, or the environment URL."""
        if self.explicit_url:
            return self.explicit_url
        return self.service_url()

    def path_prefix(self) -> str:
        """Return the path of the service URL, used to scope interception.

        ``http://host`` and ``http://host//`` give ``/``; a single trailing
        slash is dropped from any other path.
        """
        path = parse_url(self.full_url(), self._service_class_name).path
        if not path.strip("/"):
            return "/"
        if path.endswith("/"):
            path = path[:-1]
        return path

    def fake_service_class(self) -> type[FakeService]:
        """Return the fake service class, importing it from a dotted path if needed.

        Raises:
            ConfigurationError: If the class cannot be imported or is not a FakeService
        """
        if self.fake_service is not None:
            return self.fake_service

        module_name, _, attr = self._service_class_name.replace(":", ".").rpartition(
            "."
        )
        if not module_name:
            raise ConfigurationError(
                f"Cannot locate fake service {self._service_class_name}; register the "
                "class itself or its dotted path (package.module.FakeName)"
            )

        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise ConfigurationError(
                f"Cannot import {module_name} for {self._service_class_name}: {e}"
            ) from e

        fake = getattr(module, attr, None)
        if not (isinstance(fake, type) and issubclass(fake, FakeService)):
            raise ConfigurationError(
                f"{self._service_class_name} is not a FakeService subclass"
            )

        self.fake_service = fake
        return fake

    def _missing_url_message(self) -> str:
        return (
            f"There is no URL defined for {self._service_class_name}.\n"
            f'Configure one by setting the ENV variable "{self.url_env_var}"\n'
            f'or by using WebValve.register "{self._service_class_name}", '
            f'url: "{REGISTER_EXAMPLE_URL}"\n'
        )

    def __repr__(self) -> str:
        return (
            f"ServiceConfig(service_class_name={self._service_class_name!r}, "
            f"service_name={self._service_name!r}, url={self.explicit_url!r})"
        )
