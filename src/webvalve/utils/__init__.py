"""Shared helpers."""

from webvalve.utils.env import EnvAccessor, load_env

__all__ = ["EnvAccessor", "load_env"]
