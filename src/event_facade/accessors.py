"""Reusable accessor factories.

Each factory returns a plain function taking the facade, so it binds like a
method when assigned as a class attribute::

    class Band(Facade):
        members = field("members")
        website = one("traits.website")
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from .paths import MISSING

if TYPE_CHECKING:
    from .facade import Facade

Accessor = Callable[["Facade"], Any]


def _named(accessor: Accessor, kind: str, path: str) -> Accessor:
    accessor.__name__ = f"{kind}_{path.replace('.', '_')}"
    accessor.__doc__ = f"{kind}({path!r})"
    return accessor


def field(path: str) -> Accessor:
    """Read ``path`` from the raw tree."""

    def accessor(facade: Facade) -> Any:
        return facade.field(path)

    return _named(accessor, "field", path)


def proxy(path: str) -> Accessor:
    """Read ``path`` with the first segment dispatched to facade accessors."""

    def accessor(facade: Facade) -> Any:
        return facade.proxy(path)

    return _named(accessor, "proxy", path)


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return list(value)
    return [value]


def multi(path: str) -> Accessor:
    """Normalize ``path`` / ``path + "s"`` into a list; the singular wins."""

    def accessor(facade: Facade) -> list[Any]:
        single = facade.proxy(path, MISSING)
        if single is not MISSING and single is not None:
            return [single]
        plural = facade.proxy(path + "s", MISSING)
        if plural is MISSING or plural is None:
            return []
        return _as_list(plural)

    return _named(accessor, "multi", path)


def one(path: str) -> Accessor:
    """First value of ``multi(path)``, or ``None``."""

    def accessor(facade: Facade) -> Any:
        single = facade.proxy(path, MISSING)
        if single is not MISSING and single is not None:
            return single
        plural = facade.proxy(path + "s", MISSING)
        if plural is MISSING or plural is None:
            return None
        values = _as_list(plural)
        return values[0] if values else None

    return _named(accessor, "one", path)
