"""Registry of fake service configurations and the global toggle."""

import logging
from enum import Enum
from typing import Any

from webvalve.config import (
    ACTIVE_APP_ENVS,
    APP_ENV,
    DEFAULT_APP_ENV,
    WEBVALVE_ENV,
    WEBVALVE_SERVICE_ENABLED_DEFAULT,
)
from webvalve.errors import DuplicateRegistrationError, ValidationError
from webvalve.fake_service import FakeService
from webvalve.fake_service_config import EnabledState, ServiceConfig, parse_url
from webvalve.interception.binder import InterceptionBinder
from webvalve.interception.models import Interception, PassThrough
from webvalve.utils.env import EnvAccessor


class GlobalMode(Enum):
    """Default applied to services without a per-service override."""

    ENABLED = "enabled"
    DISABLED = "disabled"
    AUTO = "auto"


def app_env(env: EnvAccessor) -> str:
    """Name of the application environment, from WEBVALVE_ENV or APP_ENV."""
    return env.get(WEBVALVE_ENV) or env.get(APP_ENV) or DEFAULT_APP_ENV


def _coerce_mode(mode: GlobalMode | str) -> GlobalMode:
    try:
        return GlobalMode(mode)
    except ValueError as e:
        valid = ", ".join(m.value for m in GlobalMode)
        raise ValidationError(
            f"Unknown global mode {mode!r}, expected one of: {valid}"
        ) from e


class Registry:
    """Maps service class names to their ServiceConfig.

    Precedence for a service's enabled state, highest first:
    explicit ``<NAME>_ENABLED`` disable, explicit enable, then ``global_mode``.

    When a binder is attached, registration changes, allow-list changes and
    global mode changes are pushed to it with ``sync()``.
    """

    def __init__(
        self,
        env: EnvAccessor | None = None,
        binder: InterceptionBinder | None = None,
        global_mode: GlobalMode | str = GlobalMode.AUTO,
    ):
        self.logger = logging.getLogger(__name__)
        self.env = env or EnvAccessor()
        self.binder = binder
        self._global_mode = _coerce_mode(global_mode)
        self._configs: dict[str, ServiceConfig] = {}
        self._allowed_urls: list[str] = []

    @property
    def global_mode(self) -> GlobalMode:
        return self._global_mode

    def set_global_mode(self, mode: GlobalMode | str) -> None:
        previous, self._global_mode = self._global_mode, _coerce_mode(mode)
        try:
            self.sync()
        except Exception:
            self._global_mode = previous
            raise
        self.logger.info(f"Global mode set to {self._global_mode.value}")

    def register(
        self,
        service: str | type[FakeService],
        url: str | None = None,
        request_matcher: Any | None = None,
        *,
        service_name: str | None = None,
    ) -> ServiceConfig:
        """Register a fake service.

        Args:
            service: FakeService subclass, or a dotted path to one
            url: Service URL, takes precedence over ``<NAME>_API_URL``
            request_matcher: Opaque rule the binder uses to select requests
            service_name: Override for the derived environment variable stem

        Raises:
            ValidationError: If the service identifier is empty or unusable
            DuplicateRegistrationError: If the service is already registered
        """
        fake_service = None
        if isinstance(service, type):
            if not issubclass(service, FakeService):
                raise ValidationError(
                    f"{service.__name__} must subclass FakeService to be registered"
                )
            fake_service = service
            service_class_name = service.__name__
        elif isinstance(service, str):
            service_class_name = service
        else:
            raise ValidationError(
                f"Expected a FakeService subclass or its dotted path, "
                f"got {type(service).__name__}"
            )

        config = ServiceConfig(
            service_class_name,
            url=url,
            request_matcher=request_matcher,
            service_name=service_name,
            fake_service=fake_service,
            env=self.env,
        )
        if config.service_class_name in self._configs:
            raise DuplicateRegistrationError(config.service_class_name)

        self._configs[config.service_class_name] = config
        try:
            self.sync()
        except Exception:
            del self._configs[config.service_class_name]
            raise
        self.logger.debug(f"Registered {config!r}")
        return config

    def lookup(self, service_class_name: str) -> ServiceConfig | None:
        return self._configs.get(service_class_name)

    def all(self) -> list[ServiceConfig]:
        return list(self._configs.values())

    def __len__(self) -> int:
        return len(self._configs)

    def __contains__(self, service_class_name: object) -> bool:
        return service_class_name in self._configs

    def reset(self) -> None:
        """Remove every registration and allow-listed URL."""
        self._configs.clear()
        self._allowed_urls.clear()
        self.logger.debug("Registry reset")
        self.sync()

    def allow_url(self, url: str) -> None:
        """Let requests to ``url`` reach the real network.

        Raises:
            ValidationError: If ``url`` is empty
            ConfigurationError: If ``url`` is not an absolute URL
        """
        if not url:
            raise ValidationError("allow_url requires a non-empty URL")
        parse_url(url, "allow_url")
        if url in self._allowed_urls:
            return
        self._allowed_urls.append(url)
        try:
            self.sync()
        except Exception:
            self._allowed_urls.remove(url)
            raise

    def allowed_urls(self) -> list[str]:
        return list(self._allowed_urls)

    def default_enabled(self) -> bool:
        """Enabled state used in AUTO mode when a service has no override.

        ``WEBVALVE_SERVICE_ENABLED_DEFAULT`` decides when it holds a
        recognized token; otherwise fakes are on in the development and
        test app environments and off everywhere else.
        """
        state = EnabledState.from_value(self.env.get(WEBVALVE_SERVICE_ENABLED_DEFAULT))
        if state is not EnabledState.UNSET:
            return state is EnabledState.ENABLED
        return app_env(self.env) in ACTIVE_APP_ENVS

    def mode_enabled(self) -> bool:
        """Enabled state for services that have no per-service override."""
        if self._global_mode is GlobalMode.ENABLED:
            return True
        if self._global_mode is GlobalMode.DISABLED:
            return False
        return self.default_enabled()

    def enabled_for(self, service_class_name: str) -> bool:
        """Whether requests to the service should be routed to its fake."""
        config = self._configs.get(service_class_name)
        if config is None:
            return False

        state = config.enabled_state()
        if state is EnabledState.DISABLED:
            return False
        if state is EnabledState.ENABLED:
            return True
        return self.mode_enabled()

    def interceptions(self) -> list[Interception]:
        """Routing rules for every enabled service.

        Raises:
            ConfigurationError: If an enabled service has no usable URL or fake
        """
        return [
            Interception(
                service_class_name=config.service_class_name,
                full_url=config.full_url(),
                path_prefix=config.path_prefix(),
                request_matcher=config.request_matcher,
                fake_service=config.fake_service_class(),
            )
            for config in self._configs.values()
            if self.enabled_for(config.service_class_name)
        ]

    def pass_throughs(self) -> list[PassThrough]:
        """Allow-listed URLs, then URLs of disabled services that have one."""
        rules = [PassThrough(url=url) for url in self._allowed_urls]
        for config in self._configs.values():
            if self.enabled_for(config.service_class_name):
                continue
            if config.explicit_url or config.env.get(config.url_env_var):
                rules.append(PassThrough(url=config.full_url(), reason="disabled"))
        return rules

    def sync(self) -> None:
        """Push current routing decisions to the attached binder, if active."""
        if self.binder is None or not self.binder.is_active:
            return
        interceptions = self.interceptions()
        pass_throughs = self.pass_throughs()
        self.binder.sync(
            interceptions,
            pass_throughs=pass_throughs,
            block_unmatched=self.mode_enabled(),
        )
