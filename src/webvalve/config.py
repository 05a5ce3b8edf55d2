"""
Configuration constants for WebValve.

Names of the environment variables WebValve reads and the defaults applied
when they are absent. Per-service variables are built from the service name
with the suffixes below (``DUMMY`` -> ``DUMMY_ENABLED``, ``DUMMY_API_URL``).
"""

ENABLED_SUFFIX = "_ENABLED"
API_URL_SUFFIX = "_API_URL"

WEBVALVE_ENABLED = "WEBVALVE_ENABLED"
WEBVALVE_SERVICE_ENABLED_DEFAULT = "WEBVALVE_SERVICE_ENABLED_DEFAULT"
WEBVALVE_ENV = "WEBVALVE_ENV"
APP_ENV = "APP_ENV"

TRUTHY_VALUES = frozenset({"1", "t", "true"})
FALSEY_VALUES = frozenset({"0", "f", "false"})

# App environment assumed when neither WEBVALVE_ENV nor APP_ENV is set
DEFAULT_APP_ENV = "development"
# App environments where WebValve and its fakes are on unless told otherwise
ACTIVE_APP_ENVS = frozenset({"development", "test"})

# Hosts that are never blocked while intercepting
LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")

REGISTER_EXAMPLE_URL = "http://something.dev"
