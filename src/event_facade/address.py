"""Location accessors shared by every facade.

Each field is looked up under ``<section>.address.<key>`` then
``<section>.<key>`` for every section in ``address_sections`` (``traits``
for all messages, ``properties`` as well for tracks). Sections resolve
through the facade's own accessors, so a variant's ``traits()`` is honored.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .paths import MISSING


def _lookup(facade: Any, keys: tuple[str, ...]) -> Any:
    for section in facade.address_sections:
        for key in keys:
            for path in (f"{section}.address.{key}", f"{section}.{key}"):
                value = facade.proxy(path, MISSING)
                if value is not MISSING and value is not None:
                    return value
    return None


def _address_field(*keys: str) -> Callable[[Any], Any]:
    def accessor(self: Any) -> Any:
        return _lookup(self, keys)

    accessor.__name__ = keys[0]
    return accessor


class AddressMixin:
    address_sections: tuple[str, ...] = ("traits",)

    city = _address_field("city")
    country = _address_field("country")
    state = _address_field("state")
    region = _address_field("region")
    street = _address_field("street")
    zip = _address_field("zip", "postalCode")
