"""Interception layer that applies routing decisions to outbound HTTP traffic."""

from webvalve.interception.binder import InterceptionBinder, RespxBinder
from webvalve.interception.models import Interception, PassThrough

__all__ = [
    "InterceptionBinder",
    "RespxBinder",
    "Interception",
    "PassThrough",
]
