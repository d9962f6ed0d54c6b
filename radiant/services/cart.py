"""Cart service: ordered bookable items with derived totals.

Totals are recomputed from the item sequence on every read. Mutations are
synchronous but refused while the cart is frozen by an in-flight checkout.
"""

import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal

from django.utils import timezone

from radiant.exceptions import CartFrozen
from radiant.models.cart import ZERO, AddOn, Cart, CartItem, to_money
from radiant.models.reward import UserReward
from radiant.signals import cart_cleared

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# Fields callers may patch through update()
_UPDATABLE_FIELDS = {
    "service_id",
    "service_name",
    "date",
    "time",
    "duration_minutes",
    "unit_price",
    "add_ons",
    "notes",
}


def _coerce_add_ons(add_ons) -> tuple[AddOn, ...]:
    return tuple(a if isinstance(a, AddOn) else AddOn.from_dict(a) for a in add_ons or ())


class CartAggregator:
    """
    Owns one session's Cart.

    Usage:
        cart = CartAggregator()
        item = cart.add("svc-1", "50.00", service_name="Facial", date="2026-11-02")
        cart.total_amount   # Decimal("50.00")
        cart.remove(item.id)
    """

    def __init__(self, cart: Cart | None = None):
        self.cart = cart if cart is not None else Cart()
        self._frozen = False

    # ======================================================================
    # Derived values
    # ======================================================================

    @property
    def items(self) -> tuple[CartItem, ...]:
        return tuple(self.cart.items)

    @property
    def total_amount(self) -> Decimal:
        return self.cart.total_amount

    @property
    def total_items(self) -> int:
        return self.cart.total_items

    @property
    def is_empty(self) -> bool:
        return self.cart.is_empty

    def get(self, item_id: str) -> CartItem | None:
        for item in self.cart.items:
            if item.id == item_id:
                return item
        return None

    # ======================================================================
    # Freezing (checkout in flight)
    # ======================================================================

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def unfreeze(self) -> None:
        self._frozen = False

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise CartFrozen(items=self.total_items)

    # ======================================================================
    # Mutations
    # ======================================================================

    def add(
        self,
        service_id: str,
        unit_price=None,
        *,
        service_name: str = "",
        date: str = "",
        time: str = "",
        duration_minutes: int = 0,
        add_ons=(),
        notes: str = "",
    ) -> CartItem:
        """
        Append a new item with a freshly generated id.

        A missing price counts as 0.

        Raises:
            CartFrozen: If a checkout for this cart is in flight
            ValueError: If the price is negative or not a number
        """
        self._ensure_mutable()
        item = CartItem(
            id=uuid.uuid4().hex,
            service_id=str(service_id),
            service_name=service_name,
            date=date,
            time=time,
            duration_minutes=int(duration_minutes or 0),
            unit_price=to_money(unit_price),
            add_ons=_coerce_add_ons(add_ons),
            notes=notes or "",
            added_at=timezone.now(),
        )
        self.cart.items.append(item)
        logger.debug("Cart item added: %s (%s)", item.id, item.service_id)
        return item

    def add_payload(self, payload: dict) -> CartItem:
        """Add an item from the booking screen payload (camelCase keys)."""
        return self.add(
            payload.get("serviceId", ""),
            payload.get("totalPrice", payload.get("price")),
            service_name=payload.get("serviceName", ""),
            date=payload.get("date", ""),
            time=payload.get("time", ""),
            duration_minutes=payload.get("duration") or 0,
            add_ons=payload.get("addOns") or (),
            notes=payload.get("notes") or "",
        )

    def remove(self, item_id: str) -> None:
        """Remove the item with ``item_id``. No-op if absent."""
        self._ensure_mutable()
        for index, item in enumerate(self.cart.items):
            if item.id == item_id:
                del self.cart.items[index]
                return

    def update(self, item_id: str, **patch) -> CartItem | None:
        """
        Merge ``patch`` into the item, keeping its id and position.

        Returns:
            The updated item, or None if no item has ``item_id``

        Raises:
            CartFrozen: If a checkout for this cart is in flight
            TypeError: If ``patch`` names a field that cannot be updated
        """
        self._ensure_mutable()
        unknown = set(patch) - _UPDATABLE_FIELDS
        if unknown:
            raise TypeError(f"Cannot update cart item fields: {', '.join(sorted(unknown))}")

        if "unit_price" in patch:
            patch["unit_price"] = to_money(patch["unit_price"])
        if "add_ons" in patch:
            patch["add_ons"] = _coerce_add_ons(patch["add_ons"])

        for index, item in enumerate(self.cart.items):
            if item.id == item_id:
                updated = item.with_changes(**patch)
                self.cart.items[index] = updated
                return updated
        return None

    def clear(self, reason: str = "user") -> None:
        """
        Empty the cart.

        ``reason`` is "user", "checkout" or "logout". A user clear is refused
        while frozen; checkout confirmation and logout always clear and lift
        the freeze.
        """
        if reason == "user":
            self._ensure_mutable()
        else:
            self._frozen = False

        count = self.total_items
        self.cart.items.clear()
        logger.debug("Cart cleared (%s): %d items dropped", reason, count)
        cart_cleared.send(sender=self.__class__, cart=self, reason=reason)

    # ======================================================================
    # Rewards applied at checkout
    # ======================================================================

    def discount_for(self, reward: UserReward | None) -> Decimal:
        """
        Discount a claimed reward gives on the current cart.

        - credit / referral: the credit value, capped at the cart total
        - discount / combo: percentage of applicable items, capped at max_value
        - service: price of the most expensive applicable item
        """
        if reward is None or self.is_empty:
            return ZERO

        total = self.total_amount

        if reward.is_credit:
            return min(reward.value, total)

        if reward.is_percentage:
            if reward.service_ids:
                base = sum(
                    (i.unit_price for i in self.cart.items if i.service_id in reward.service_ids),
                    ZERO,
                )
            else:
                base = total
            discount = (base * reward.value / 100).quantize(CENT, rounding=ROUND_HALF_UP)
            if reward.max_value and discount > reward.max_value:
                discount = reward.max_value
            return discount

        if reward.is_free_service:
            applicable = [i.unit_price for i in self.cart.items if i.service_id in reward.service_ids]
            return max(applicable) if applicable else ZERO

        return ZERO

    def total_with_discount(self, reward: UserReward | None) -> Decimal:
        return max(ZERO, self.total_amount - self.discount_for(reward))

    # ======================================================================
    # Persistence
    # ======================================================================

    def dump(self) -> dict:
        """JSON-safe representation for a session store."""
        return {"items": [item.to_dict() for item in self.cart.items]}

    @classmethod
    def load(cls, data: dict | None) -> "CartAggregator":
        """Rebuild from dump(). Unreadable items are skipped."""
        items = []
        for raw in (data or {}).get("items", []):
            try:
                items.append(CartItem.from_dict(raw))
            except (KeyError, TypeError, ValueError):
                logger.warning("Dropping unreadable cart item: %r", raw)
        return cls(Cart(items=items))
