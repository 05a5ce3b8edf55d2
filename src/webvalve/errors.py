"""Exceptions raised while resolving and binding fake service configuration."""


class WebValveError(Exception):
    """Base class for all WebValve errors."""


class ValidationError(WebValveError, ValueError):
    """Raised when a service is registered with unusable input."""


class ConfigurationError(WebValveError, ValueError):
    """Raised when a service URL cannot be resolved or parsed."""


class DuplicateRegistrationError(ValidationError):
    """Raised when the same service is registered twice."""

    def __init__(self, service_class_name: str):
        self.service_class_name = service_class_name
        super().__init__(f"{service_class_name} is already registered")


class RouteNotDefinedError(WebValveError):
    """Raised by a fake service that has no route for an intercepted request."""

    def __init__(self, method: str, path: str, fake_service_name: str):
        self.method = method
        self.path = path
        self.fake_service_name = fake_service_name
        super().__init__(
            f"route not defined for {method} {path} in {fake_service_name}"
        )
