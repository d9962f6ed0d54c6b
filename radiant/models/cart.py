"""Cart models.

A Cart is an ordered sequence of bookable line items. Totals are never stored:
``total_amount`` and ``total_items`` are recomputed from the items on every
read (see ``cart_total`` / ``item_count``), so repeated add/remove cycles
cannot drift.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation


ZERO = Decimal("0")


def to_money(value) -> Decimal:
    """Coerce a price to Decimal. Missing prices are 0, negatives are rejected."""
    if value is None or value == "":
        return ZERO
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid price: {value!r}")
    if amount < 0:
        raise ValueError(f"Price cannot be negative: {value!r}")
    return amount


@dataclass(frozen=True)
class AddOn:
    """Extra treatment booked together with a service."""

    name: str
    price: Decimal = ZERO
    duration_minutes: int = 0
    service_id: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "AddOn":
        return cls(
            name=data.get("name", ""),
            price=to_money(data.get("price")),
            duration_minutes=int(data.get("duration") or data.get("duration_minutes") or 0),
            service_id=str(data.get("serviceId") or data.get("service_id") or ""),
        )

    def to_dict(self) -> dict:
        return {
            "serviceId": self.service_id,
            "name": self.name,
            "price": str(self.price),
            "duration": self.duration_minutes,
        }


@dataclass(frozen=True)
class CartItem:
    """
    A bookable line item.

    Immutable: updates go through CartAggregator.update(), which replaces the
    item with a copy that keeps the same ``id``.
    """

    id: str
    service_id: str
    service_name: str = ""
    date: str = ""
    time: str = ""
    duration_minutes: int = 0
    unit_price: Decimal = ZERO
    add_ons: tuple[AddOn, ...] = ()
    notes: str = ""
    added_at: datetime | None = None

    def __post_init__(self):
        if self.unit_price < 0:
            raise ValueError("unit_price must be >= 0")

    def with_changes(self, **changes) -> "CartItem":
        """Copy with ``changes`` applied; ``id`` is always preserved."""
        changes.pop("id", None)
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "serviceId": self.service_id,
            "serviceName": self.service_name,
            "date": self.date,
            "time": self.time,
            "duration": self.duration_minutes,
            "totalPrice": str(self.unit_price),
            "addOns": [a.to_dict() for a in self.add_ons],
            "notes": self.notes,
            "addedAt": self.added_at.isoformat() if self.added_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        added_at = data.get("addedAt")
        return cls(
            id=data["id"],
            service_id=str(data.get("serviceId", "")),
            service_name=data.get("serviceName", ""),
            date=data.get("date", ""),
            time=data.get("time", ""),
            duration_minutes=int(data.get("duration") or 0),
            unit_price=to_money(data.get("totalPrice")),
            add_ons=tuple(AddOn.from_dict(a) for a in data.get("addOns") or []),
            notes=data.get("notes") or "",
            added_at=datetime.fromisoformat(added_at) if added_at else None,
        )


def cart_total(items) -> Decimal:
    """Sum of unit prices."""
    return sum((item.unit_price for item in items), ZERO)


def item_count(items) -> int:
    return len(items)


@dataclass
class Cart:
    """Ordered collection of CartItems with derived totals."""

    items: list[CartItem] = field(default_factory=list)

    @property
    def total_amount(self) -> Decimal:
        return cart_total(self.items)

    @property
    def total_items(self) -> int:
        return item_count(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def __str__(self):
        return f"Cart: {self.total_items} items | {self.total_amount}"
