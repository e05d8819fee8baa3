"""Integration enablement and settings across historical schema layers.

Payloads in the wild mix several generations of the same idea:

- top-level ``options.<Name>`` (oldest, raw key match only)
- ``context.providers.<Name>`` / ``context.providers.all``
- ``context.<Name>`` / ``context.all``
- ``integrations.<Name>`` / ``integrations.all`` (current)

``PRECEDENCE`` lists them lowest first, tagged with the concerns each one
answers. The providers map shows up twice: for enablement it is re-checked
above ``context``, for settings it sits below it.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from .paths import MISSING, resolve

logger = logging.getLogger(__name__)

Concern = Literal["settings", "enablement"]
SourceName = Literal["options", "providers", "context", "integrations"]
DecisionSource = Literal[
    "options",
    "providers",
    "context",
    "integrations",
    "default",
    "disabled_by_default",
]

GLOBAL_FLAG = "all"
DEFAULT_DISABLED_INTEGRATIONS: tuple[str, ...] = ("Salesforce",)

_RESERVED_KEYS = frozenset({GLOBAL_FLAG, "providers"})
_SEPARATORS = re.compile(r"[\W_]+")


def normalize_integration_name(name: str) -> str:
    """``"Customer.io"``, ``"customer_io"`` and ``"CustomerIo"`` share one form."""
    if not isinstance(name, str):
        raise TypeError(f"integration name must be a string, got {type(name).__name__}")
    return _SEPARATORS.sub("", name.casefold())


class NormalizedIndex:
    """Name lookup over one source map, raw key first, then normalized."""

    def __init__(self, mapping: Any, *, exact_only: bool = False) -> None:
        self._mapping: Mapping[str, Any] = mapping if isinstance(mapping, Mapping) else {}
        self._exact_only = exact_only
        self._keys: dict[str, str] = {}
        if not exact_only:
            for key in self._mapping:
                if isinstance(key, str) and key not in _RESERVED_KEYS:
                    self._keys.setdefault(normalize_integration_name(key), key)

    def lookup(self, name: str) -> Any:
        if name in self._mapping and name not in _RESERVED_KEYS:
            return self._mapping[name]
        if self._exact_only:
            return MISSING
        key = self._keys.get(normalize_integration_name(name))
        if key is None:
            return MISSING
        return self._mapping[key]

    def flag(self) -> bool | None:
        value = self._mapping.get(GLOBAL_FLAG)
        return value if isinstance(value, bool) else None


def context_map(tree: Mapping[str, Any]) -> Mapping[str, Any]:
    """``context``, falling back to the legacy top-level ``options``."""
    for key in ("context", "options"):
        value = tree.get(key)
        if isinstance(value, Mapping):
            return value
    return {}


@dataclass(frozen=True)
class IntegrationSource:
    name: SourceName
    extract: Callable[[Mapping[str, Any]], Any]
    exact_only: bool = False


LEGACY_OPTIONS = IntegrationSource("options", lambda tree: tree.get("options"), exact_only=True)
PROVIDERS = IntegrationSource("providers", lambda tree: resolve(context_map(tree), "providers"))
CONTEXT = IntegrationSource("context", context_map)
INTEGRATIONS = IntegrationSource("integrations", lambda tree: tree.get("integrations"))

_BOTH: frozenset[Concern] = frozenset({"settings", "enablement"})
_ENABLEMENT: frozenset[Concern] = frozenset({"enablement"})

PRECEDENCE: tuple[tuple[IntegrationSource, frozenset[Concern]], ...] = (
    (LEGACY_OPTIONS, _BOTH),
    (PROVIDERS, _BOTH),
    (CONTEXT, _BOTH),
    (PROVIDERS, _ENABLEMENT),
    (INTEGRATIONS, _BOTH),
)

# Where a global ``all`` flag is read from, first match wins.
GLOBAL_FLAG_PRECEDENCE: tuple[IntegrationSource, ...] = (
    INTEGRATIONS,
    CONTEXT,
    PROVIDERS,
    LEGACY_OPTIONS,
)


@dataclass(frozen=True)
class EnablementDecision:
    enabled: bool
    explicit: bool
    source: DecisionSource


class IntegrationOptionsResolver:
    """Answers "is integration X enabled, and with what settings" for one tree."""

    def __init__(
        self,
        tree: Mapping[str, Any],
        *,
        disabled_by_default: Iterable[str] = DEFAULT_DISABLED_INTEGRATIONS,
    ) -> None:
        if not isinstance(tree, Mapping):
            raise TypeError(f"payload tree must be a mapping, got {type(tree).__name__}")
        self._indexes: dict[SourceName, NormalizedIndex] = {}
        for source, _ in PRECEDENCE:
            if source.name not in self._indexes:
                self._indexes[source.name] = NormalizedIndex(
                    source.extract(tree), exact_only=source.exact_only
                )
        self._disabled_by_default = frozenset(
            normalize_integration_name(name) for name in disabled_by_default
        )

    def layers(self, concern: Concern) -> list[tuple[SourceName, NormalizedIndex]]:
        """Sources consulted for ``concern``, highest precedence first."""
        ordered: list[tuple[SourceName, NormalizedIndex]] = []
        seen: set[SourceName] = set()
        for source, concerns in reversed(PRECEDENCE):
            if concern not in concerns or source.name in seen:
                continue
            seen.add(source.name)
            ordered.append((source.name, self._indexes[source.name]))
        return ordered

    def options_for(self, name: str) -> Mapping[str, Any]:
        """The highest-precedence settings object for ``name``, else ``{}``."""
        normalize_integration_name(name)
        for _, index in self.layers("settings"):
            value = index.lookup(name)
            if isinstance(value, Mapping):
                return value
        return {}

    def global_flag(self) -> tuple[bool, DecisionSource]:
        for source in GLOBAL_FLAG_PRECEDENCE:
            flag = self._indexes[source.name].flag()
            if flag is not None:
                return flag, source.name
        return True, "default"

    def explicit_entry(self, name: str) -> tuple[bool, SourceName] | None:
        for source_name, index in self.layers("enablement"):
            value = index.lookup(name)
            if value is MISSING or value is None:
                continue
            if isinstance(value, Mapping):
                return True, source_name
            return bool(value), source_name
        return None

    def decide(self, name: str) -> EnablementDecision:
        normalized = normalize_integration_name(name)
        explicit = self.explicit_entry(name)
        if explicit is not None:
            enabled, source = explicit
            decision = EnablementDecision(enabled=enabled, explicit=True, source=source)
        else:
            flag, flag_source = self.global_flag()
            if flag and normalized in self._disabled_by_default:
                decision = EnablementDecision(
                    enabled=False, explicit=False, source="disabled_by_default"
                )
            else:
                decision = EnablementDecision(enabled=flag, explicit=False, source=flag_source)

        logger.debug(
            "Integration %s enabled=%s via %s",
            name,
            decision.enabled,
            decision.source,
            extra={"facade_integration": name, "facade_source": decision.source},
        )
        return decision

    def enabled(self, name: str) -> bool:
        return self.decide(name).enabled
