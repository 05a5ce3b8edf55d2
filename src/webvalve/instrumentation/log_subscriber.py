"""Debug log output for requests captured by WebValve."""

import logging

from webvalve.instrumentation.events import RequestEvent


class LogSubscriber:
    """Logs captured requests when the logger is enabled for DEBUG."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("webvalve")

    def __call__(self, event: RequestEvent) -> None:
        self.request(event)

    def request(self, event: RequestEvent) -> None:
        if not self.logger.isEnabledFor(logging.DEBUG):
            return
        self.logger.debug(self.format(event), extra={"webvalve": event.model_dump()})

    @staticmethod
    def format(event: RequestEvent) -> str:
        name = f"WebValve Request Captured ({event.duration:.1f}ms)"
        details = f"{event.host} {event.method.upper()} {event.url} [{event.status}]"
        return f"  {name}  {details}"
