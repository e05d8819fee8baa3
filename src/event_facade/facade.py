"""Read-only, normalized view over one raw message tree.

The facade never copies or mutates the tree it wraps (``json()`` returns a
copy). Every accessor is recomputed on each call; only ``timestamp()`` with
no stored timestamp depends on anything besides the tree (the clock).
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from typing import Any

from . import accessors
from .address import AddressMixin
from .config import Config
from .integrations import EnablementDecision, IntegrationOptionsResolver, context_map
from .models import LibraryInfo
from .paths import MISSING, child, path_segments, resolve
from .temporal import Clock, SystemClock, coerce_for_path

# Members that take arguments are never reached through path dispatch.
_ARGUMENT_MEMBERS = frozenset({"proxy", "field", "enabled", "enablement"})

_DEVICE_TYPE_BY_LIBRARY_MARKER: tuple[tuple[str, str], ...] = (
    ("ios", "ios"),
    ("android", "android"),
)


def infer_device_type(library_name: Any) -> str | None:
    if not isinstance(library_name, str):
        return None
    lowered = library_name.strip().lower()
    for marker, device_type in _DEVICE_TYPE_BY_LIBRARY_MARKER:
        if marker in lowered:
            return device_type
    return None


class Facade(AddressMixin):
    message_type: str | None = None
    # trait key -> accessor consulted before the raw trait when aliasing
    derived_traits: Mapping[str, str] = {}

    def __init__(
        self,
        obj: Mapping[str, Any],
        *,
        clock: Clock | None = None,
        config: Config | None = None,
    ) -> None:
        if not isinstance(obj, Mapping):
            raise TypeError(f"{type(self).__name__} wraps a mapping, got {type(obj).__name__}")
        self.obj = obj
        self.clock = clock or SystemClock()
        self.config = config or Config()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.obj!r})"

    # -- path access -------------------------------------------------------

    def field(self, path: str | Sequence[str], default: Any = None) -> Any:
        """Read ``path`` from the raw tree only."""
        segments = path_segments(path)
        value = resolve(self.obj, segments, MISSING)
        if value is MISSING:
            return default
        return coerce_for_path(segments, value)

    def proxy(self, path: str | Sequence[str], default: Any = None) -> Any:
        """Read ``path``; the first segment may name one of this facade's accessors."""
        segments = path_segments(path)
        value = resolve(self, segments, MISSING)
        if value is MISSING:
            return default
        return coerce_for_path(segments, value)

    # -- integrations ------------------------------------------------------

    def integration_resolver(self) -> IntegrationOptionsResolver:
        return IntegrationOptionsResolver(
            self.obj, disabled_by_default=self.config.disabled_by_default
        )

    def context(self, integration: str | None = None) -> Any:
        """Raw context without a name; the integration's settings (or None) with one."""
        if integration is None:
            return context_map(self.obj)
        resolver = self.integration_resolver()
        if not resolver.enabled(integration):
            return None
        return resolver.options_for(integration)

    options = context

    def integrations(self) -> Mapping[str, Any]:
        value = self.obj.get("integrations")
        return value if isinstance(value, Mapping) else {}

    def enabled(self, integration: str) -> bool:
        return self.integration_resolver().enabled(integration)

    def enablement(self, integration: str) -> EnablementDecision:
        return self.integration_resolver().decide(integration)

    # -- identity ----------------------------------------------------------

    user_id = accessors.field("userId")
    channel = accessors.field("channel")
    group_id = accessors.proxy("options.groupId")
    timezone = accessors.proxy("context.timezone")
    user_agent = accessors.proxy("context.userAgent")
    ip = accessors.proxy("context.ip")

    def anonymous_id(self) -> Any:
        value = self.field("anonymousId")
        if value is None:
            value = self.field("sessionId")
        return value

    session_id = anonymous_id

    def active(self) -> Any:
        active = self.proxy("options.active")
        return True if active is None else active

    def type(self) -> str | None:
        return self.message_type or self.field("type")

    # -- traits ------------------------------------------------------------

    def _raw_traits(self) -> Mapping[str, Any]:
        value = self.proxy("options.traits")
        return value if isinstance(value, Mapping) else {}

    def _alias_value(self, source: Mapping[str, Any], alias: str, derived: Mapping[str, str]) -> Any:
        method_name = derived.get(alias)
        if method_name is not None:
            value = getattr(self, method_name)()
            if value is not None:
                return value
        return resolve(source, alias, None)

    def _apply_aliases(
        self,
        source: Mapping[str, Any],
        aliases: Mapping[str, str],
        derived: Mapping[str, str],
    ) -> dict[str, Any]:
        renamed: dict[str, tuple[str, Any]] = {}
        for alias, target in aliases.items():
            value = self._alias_value(source, alias, derived)
            if value is not None:
                renamed[alias] = (target, value)

        result = {key: value for key, value in source.items() if key not in renamed}
        for target, value in renamed.values():
            result[target] = value
        return result

    def traits(self, aliases: Mapping[str, str] | None = None) -> dict[str, Any]:
        """Traits with ``userId`` mixed in as ``id``.

        ``aliases`` maps trait names to the keys they should be emitted under;
        unmapped traits pass through unchanged.
        """
        ret = dict(self._raw_traits())
        user_id = self.user_id()
        if user_id is not None:
            ret["id"] = user_id
        if aliases:
            ret = self._apply_aliases(ret, aliases, self.derived_traits)
        return ret

    # -- client ------------------------------------------------------------

    def library(self) -> dict[str, Any]:
        return LibraryInfo.from_raw(self.proxy("options.library")).as_dict()

    def device(self) -> dict[str, Any]:
        raw = self.proxy("context.device")
        device = dict(raw) if isinstance(raw, Mapping) else {}
        if device.get("type"):
            return device
        inferred = infer_device_type(self.library()["name"])
        if inferred is not None:
            device["type"] = inferred
        return device

    # -- time and serialization --------------------------------------------

    def timestamp(self) -> Any:
        value = self.field("timestamp")
        if value is None:
            return self.clock.now()
        return value

    def json(self) -> dict[str, Any]:
        ret = copy.deepcopy(dict(self.obj))
        message_type = self.type()
        if message_type:
            ret["type"] = message_type
        return ret


@child.register(Facade)
def _facade_child(node: Facade, key: str) -> Any:
    if not key.startswith("_") and key not in _ARGUMENT_MEMBERS:
        member = getattr(node, key, None)
        if callable(member):
            return member
    return child(node.obj, key)
