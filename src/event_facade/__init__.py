"""Normalized, read-only views over loosely structured analytics messages."""

from .accessors import field, multi, one, proxy
from .config import Config
from .facade import Facade
from .integrations import (
    EnablementDecision,
    IntegrationOptionsResolver,
    normalize_integration_name,
)
from .logging import JSONFormatter, setup_logging
from .messages import Alias, Group, Identify, Page, Screen, Track, facade_for
from .paths import MISSING, resolve
from .temporal import Clock, FixedClock, SystemClock, to_datetime

__all__ = [
    "MISSING",
    "Alias",
    "Clock",
    "Config",
    "EnablementDecision",
    "Facade",
    "FixedClock",
    "Group",
    "Identify",
    "IntegrationOptionsResolver",
    "JSONFormatter",
    "Page",
    "Screen",
    "SystemClock",
    "Track",
    "facade_for",
    "field",
    "multi",
    "normalize_integration_name",
    "one",
    "proxy",
    "resolve",
    "setup_logging",
    "to_datetime",
]
