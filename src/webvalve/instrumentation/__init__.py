"""Request instrumentation for traffic served by fake services."""

from webvalve.instrumentation.events import Instrumenter, RequestEvent
from webvalve.instrumentation.log_subscriber import LogSubscriber

# Default instrumenter used by the process-wide manager
instrumenter = Instrumenter()
instrumenter.subscribe(LogSubscriber())

__all__ = ["Instrumenter", "LogSubscriber", "RequestEvent", "instrumenter"]
