"""Message variants: track, identify, page, screen, group, alias."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from .accessors import field, multi, one, proxy
from .facade import Facade
from .temporal import to_datetime

logger = logging.getLogger(__name__)

_EMAIL = re.compile(r".+@.+\..+")
_COMPLETED_ORDER = re.compile(
    r"^[ _]?completed[ _]?order[ _]?|^[ _]?order[ _]?completed[ _]?$", re.IGNORECASE
)


def is_email(value: Any) -> bool:
    return isinstance(value, str) and bool(_EMAIL.fullmatch(value.strip()))


def parse_amount(value: Any) -> float | int | None:
    """Read ``12``, ``"12.5"`` or ``"$1,234.50"`` as a number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        cleaned = value.replace("$", "").replace(",", "").strip()
        try:
            amount = float(cleaned)
        except ValueError:
            return None
        return amount if math.isfinite(amount) else None
    return None


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


class Track(Facade):
    message_type = "track"
    address_sections = ("traits", "properties")
    derived_properties: Mapping[str, str] = {
        "revenue": "revenue",
        "total": "total",
        "subtotal": "subtotal",
        "price": "price",
    }

    event = field("event")
    value = proxy("properties.value")
    category = proxy("properties.category")
    id = proxy("properties.id")
    sku = proxy("properties.sku")
    name = proxy("properties.name")
    description = proxy("properties.description")
    plan = proxy("properties.plan")
    coupon = proxy("properties.coupon")
    query = proxy("properties.query")

    def properties(self, aliases: Mapping[str, str] | None = None) -> dict[str, Any]:
        raw = self.field("properties")
        ret = dict(raw) if isinstance(raw, Mapping) else {}
        if aliases:
            ret = self._apply_aliases(ret, aliases, self.derived_properties)
        return ret

    def product_id(self) -> Any:
        return _first_present(
            self.proxy("properties.product_id"), self.proxy("properties.productId")
        )

    def promotion_id(self) -> Any:
        return _first_present(
            self.proxy("properties.promotion_id"), self.proxy("properties.promotionId")
        )

    def cart_id(self) -> Any:
        return _first_present(self.proxy("properties.cart_id"), self.proxy("properties.cartId"))

    def quantity(self) -> Any:
        quantity = self.proxy("properties.quantity")
        return 1 if quantity is None else quantity

    def currency(self) -> str:
        currency = self.proxy("properties.currency")
        return currency if isinstance(currency, str) and currency else "USD"

    def _amount(self, key: str) -> float | int | None:
        return parse_amount(self.proxy(f"properties.{key}"))

    def price(self) -> float | int | None:
        return self._amount("price")

    def total(self) -> float | int | None:
        return self._amount("total")

    def subtotal(self) -> float | int | None:
        return self._amount("subtotal")

    def tax(self) -> float | int | None:
        return self._amount("tax")

    def shipping(self) -> float | int | None:
        return self._amount("shipping")

    def discount(self) -> float | int | None:
        return self._amount("discount")

    def revenue(self) -> float | int | None:
        revenue = self._amount("revenue")
        event = self.event()
        if revenue is None and isinstance(event, str) and _COMPLETED_ORDER.search(event):
            revenue = self.total()
        return revenue

    def cents(self) -> int | None:
        revenue = self.revenue()
        if revenue is None:
            return None
        cents = revenue * 100
        if isinstance(cents, float) and not math.isfinite(cents):
            return None
        return int(round(cents))

    def email(self) -> Any:
        email = _first_present(self.proxy("traits.email"), self.proxy("properties.email"))
        if email is not None:
            return email
        user_id = self.user_id()
        return user_id if is_email(user_id) else None

    def username(self) -> Any:
        return _first_present(
            self.proxy("traits.username"),
            self.proxy("properties.username"),
            self.user_id(),
            self.session_id(),
        )

    def referrer(self) -> Any:
        return _first_present(
            self.proxy("context.referrer.url"),
            self.proxy("context.page.referrer"),
            self.proxy("properties.referrer"),
        )

    def identify(self) -> Identify:
        """An identify message carrying this track's user and traits."""
        raw: dict[str, Any] = {
            "userId": self.user_id(),
            "anonymousId": self.anonymous_id(),
            "traits": self.traits(),
            "timestamp": self.timestamp(),
            "context": self.context(),
        }
        if "integrations" in self.obj:
            raw["integrations"] = self.obj["integrations"]
        return Identify(
            {key: value for key, value in raw.items() if value is not None},
            clock=self.clock,
            config=self.config,
        )


class Identify(Facade):
    message_type = "identify"
    derived_traits: Mapping[str, str] = {
        "email": "email",
        "name": "name",
        "firstName": "first_name",
        "lastName": "last_name",
        "created": "created",
        "description": "description",
        "avatar": "avatar",
        "position": "position",
        "age": "age",
    }

    username = proxy("traits.username")
    website = one("traits.website")
    websites = multi("traits.website")
    phone = one("traits.phone")
    phones = multi("traits.phone")
    address = proxy("traits.address")
    gender = proxy("traits.gender")

    def _raw_traits(self) -> Mapping[str, Any]:
        value = self.field("traits")
        return value if isinstance(value, Mapping) else {}

    def email(self) -> Any:
        email = self.proxy("traits.email")
        if email is not None:
            return email
        user_id = self.user_id()
        return user_id if is_email(user_id) else None

    def created(self) -> Any:
        created = _first_present(self.proxy("traits.created"), self.proxy("traits.createdAt"))
        return None if created is None else to_datetime(created)

    def company_created(self) -> Any:
        created = _first_present(
            self.proxy("traits.company.created"), self.proxy("traits.company.createdAt")
        )
        return None if created is None else to_datetime(created)

    def name(self) -> Any:
        name = self.proxy("traits.name")
        if isinstance(name, str):
            return name.strip()
        first_name = self.first_name()
        last_name = self.last_name()
        if first_name and last_name:
            return f"{first_name} {last_name}".strip()
        return name

    def first_name(self) -> Any:
        first_name = self.proxy("traits.firstName")
        if isinstance(first_name, str):
            return first_name.strip()
        name = self.proxy("traits.name")
        if isinstance(name, str) and name.strip():
            return name.strip().split(" ")[0]
        return first_name

    def last_name(self) -> Any:
        last_name = self.proxy("traits.lastName")
        if isinstance(last_name, str):
            return last_name.strip()
        name = self.proxy("traits.name")
        if not isinstance(name, str):
            return last_name
        _, _, rest = name.strip().partition(" ")
        return rest.strip() or None

    def uid(self) -> Any:
        return _first_present(self.user_id(), self.username(), self.email())

    def description(self) -> Any:
        return _first_present(self.proxy("traits.description"), self.proxy("traits.background"))

    def birthday(self) -> Any:
        birthday = self.proxy("traits.birthday")
        return None if birthday is None else to_datetime(birthday)

    def age(self) -> Any:
        age = self.proxy("traits.age")
        if age is not None:
            return age
        birthday = self.birthday()
        if not isinstance(birthday, date):
            return None
        born = birthday.date() if isinstance(birthday, datetime) else birthday
        today = self.clock.now().date()
        return today.year - born.year - ((today.month, today.day) < (born.month, born.day))

    def avatar(self) -> Any:
        return _first_present(
            self.proxy("traits.avatar"),
            self.proxy("traits.photoUrl"),
            self.proxy("traits.avatarUrl"),
        )

    def position(self) -> Any:
        return _first_present(self.proxy("traits.position"), self.proxy("traits.jobTitle"))


class Page(Facade):
    message_type = "page"
    noun = "Page"

    category = field("category")
    name = field("name")
    title = proxy("properties.title")
    path = proxy("properties.path")
    url = proxy("properties.url")

    def referrer(self) -> Any:
        return _first_present(
            self.proxy("context.referrer.url"),
            self.proxy("context.page.referrer"),
            self.proxy("properties.referrer"),
        )

    def properties(self, aliases: Mapping[str, str] | None = None) -> dict[str, Any]:
        raw = self.field("properties")
        ret = dict(raw) if isinstance(raw, Mapping) else {}
        for key in ("category", "name"):
            value = self.field(key)
            if value is not None:
                ret[key] = value
        if aliases:
            ret = self._apply_aliases(ret, aliases, {})
        return ret

    def full_name(self) -> Any:
        category = self.category()
        name = self.name()
        if category and name:
            return f"{category} {name}"
        return name

    def event(self, name: str | None = None) -> str:
        if name:
            return f"Viewed {name} {self.noun}"
        return f"Loaded a {self.noun}"

    def track(self, name: str | None = None) -> Track:
        """A track message describing this view."""
        name = name or self.full_name()
        raw = self.json()
        raw.pop("type", None)
        raw["event"] = self.event(name)
        raw["properties"] = self.properties()
        raw["timestamp"] = self.timestamp()
        return Track(raw, clock=self.clock, config=self.config)


class Screen(Page):
    message_type = "screen"
    noun = "Screen"


class Group(Facade):
    message_type = "group"

    group_id = field("groupId")
    name = proxy("traits.name")
    industry = proxy("traits.industry")
    employees = proxy("traits.employees")

    def properties(self) -> dict[str, Any]:
        for key in ("traits", "properties"):
            value = self.field(key)
            if isinstance(value, Mapping):
                return dict(value)
        return {}

    def traits(self, aliases: Mapping[str, str] | None = None) -> dict[str, Any]:
        ret = self.properties()
        group_id = self.group_id()
        if group_id is not None:
            ret["id"] = group_id
        if aliases:
            ret = self._apply_aliases(ret, aliases, self.derived_traits)
        return ret

    def created(self) -> Any:
        created = _first_present(self.proxy("traits.created"), self.proxy("traits.createdAt"))
        return None if created is None else to_datetime(created)

    def email(self) -> Any:
        email = self.proxy("traits.email")
        if email is not None:
            return email
        group_id = self.group_id()
        return group_id if is_email(group_id) else None


class Alias(Facade):
    message_type = "alias"

    def previous_id(self) -> Any:
        return _first_present(self.field("previousId"), self.field("from"))

    def user_id(self) -> Any:
        return _first_present(self.field("userId"), self.field("to"))

    from_ = previous_id
    to = user_id


MESSAGE_TYPES: dict[str, type[Facade]] = {
    cls.message_type: cls for cls in (Track, Identify, Page, Screen, Group, Alias)
}


def facade_for(obj: Mapping[str, Any], **kwargs: Any) -> Facade:
    """Wrap ``obj`` in the variant named by its ``type``, or a plain ``Facade``."""
    if not isinstance(obj, Mapping):
        raise TypeError(f"message must be a mapping, got {type(obj).__name__}")
    raw_type = obj.get("type")
    message_type = raw_type.strip().lower() if isinstance(raw_type, str) else None
    cls = MESSAGE_TYPES.get(message_type or "")
    if cls is None:
        logger.debug(
            "No variant for message type %r, using the base facade",
            raw_type,
            extra={"facade_message_type": raw_type},
        )
        cls = Facade
    return cls(obj, **kwargs)
