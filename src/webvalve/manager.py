"""Process-level lifecycle for WebValve: activation, setup, teardown and reset."""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from webvalve.config import ACTIVE_APP_ENVS, WEBVALVE_ENABLED
from webvalve.fake_service import FakeService
from webvalve.fake_service_config import EnabledState, ServiceConfig
from webvalve.instrumentation import Instrumenter
from webvalve.interception.binder import InterceptionBinder, RespxBinder
from webvalve.registry import GlobalMode, Registry, app_env
from webvalve.utils.env import EnvAccessor


class Manager:
    """Owns the registry and the binder that applies its decisions.

    Registrations can happen at any time. Interception only starts with
    ``setup()``, and only when WebValve is enabled for the current
    environment (see ``enabled()``).
    """

    def __init__(
        self,
        env: EnvAccessor | None = None,
        binder: InterceptionBinder | None = None,
        instrumenter: Instrumenter | None = None,
        global_mode: GlobalMode | str = GlobalMode.AUTO,
    ):
        self.logger = logging.getLogger(__name__)
        self.env = env or EnvAccessor()
        self.binder = binder or RespxBinder(instrumenter=instrumenter)
        self.registry = Registry(env=self.env, binder=self.binder, global_mode=global_mode)

    def enabled(self) -> bool:
        """Whether WebValve should intercept anything at all.

        ``WEBVALVE_ENABLED`` decides when it holds a recognized token;
        otherwise WebValve is on in the development and test app environments.
        """
        state = EnabledState.from_value(self.env.get(WEBVALVE_ENABLED))
        if state is not EnabledState.UNSET:
            return state is EnabledState.ENABLED
        return app_env(self.env) in ACTIVE_APP_ENVS

    def register(
        self,
        service: str | type[FakeService],
        url: str | None = None,
        request_matcher: Any | None = None,
        *,
        service_name: str | None = None,
    ) -> ServiceConfig:
        return self.registry.register(
            service, url=url, request_matcher=request_matcher, service_name=service_name
        )

    def allow_url(self, url: str) -> None:
        self.registry.allow_url(url)

    def set_global_mode(self, mode: GlobalMode | str) -> None:
        self.registry.set_global_mode(mode)

    @property
    def active(self) -> bool:
        return self.binder.is_active

    def setup(self) -> None:
        """Start intercepting according to the current registrations.

        Does nothing when WebValve is disabled for this environment.

        Raises:
            ConfigurationError: If an enabled service cannot be resolved. The
                binder is not started in that case.
        """
        if not self.enabled():
            self.logger.info(
                f"WebValve disabled for app env {app_env(self.env)!r}; "
                "all requests use the real network"
            )
            return

        # Resolve everything up front so a misconfigured service fails
        # before interception starts
        self.registry.interceptions()
        self.registry.pass_throughs()

        self.binder.start()
        try:
            self.registry.sync()
        except Exception:
            self.binder.stop()
            raise

        faked = [
            config.service_class_name
            for config in self.registry.all()
            if self.registry.enabled_for(config.service_class_name)
        ]
        self.logger.info(
            f"WebValve set up in {self.registry.global_mode.value} mode, "
            f"faking: {', '.join(faked) or 'nothing'}"
        )

    def teardown(self) -> None:
        """Stop intercepting; registrations are kept."""
        self.binder.stop()

    def reset(self) -> None:
        """Stop intercepting and drop all registrations and allowed URLs."""
        self.teardown()
        self.registry.reset()
        if isinstance(self.binder, RespxBinder):
            self.binder.reset()

    @contextmanager
    def intercepting(self) -> Generator["Manager", None, None]:
        """Run ``setup()`` for the duration of a with-block."""
        self.setup()
        try:
            yield self
        finally:
            self.teardown()
