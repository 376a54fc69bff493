"""Cart aggregate: a user's staging area before checkout.

A user has at most one open cart. Lines are addressed by their position in
the cart, the way clients render them, and every mutation recomputes the
total from the line subtotals instead of adjusting it incrementally.
"""

from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer

from marketplace.cart.events import (
    CartCheckedOut,
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartItemUpdated,
)
from marketplace.domain import marketplace
from marketplace.exceptions import InvalidStateError, NotFoundError


@marketplace.entity(part_of="Cart")
class CartItem:
    food_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)  # snapshot at add time
    subtotal = Float(required=True, min_value=0.0)
    position = Integer(required=True, min_value=0)


@marketplace.aggregate
class Cart:
    user_id = Identifier(required=True)
    items = HasMany(CartItem)
    total_amount = Float(default=0.0, min_value=0.0)
    checked_out = Boolean(default=False)
    checked_out_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_match_line_subtotals(self):
        expected = sum(item.subtotal for item in self.items)
        if abs((self.total_amount or 0.0) - expected) > 0.005:
            raise ValidationError({"total_amount": ["Cart total must equal the sum of its line subtotals"]})

    @invariant.post
    def checked_out_cart_must_have_items(self):
        if self.checked_out and not self.items:
            raise ValidationError({"cart": ["Cannot check out an empty cart"]})

    @classmethod
    def create(cls, user_id):
        now = datetime.now(UTC)
        return cls(
            user_id=user_id,
            total_amount=0.0,
            checked_out=False,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------
    def lines(self):
        """Cart lines in the order they were added."""
        return sorted(self.items, key=lambda item: item.position)

    @property
    def item_count(self):
        return len(self.items)

    @property
    def is_empty(self):
        return not self.items

    @property
    def shop_ids(self):
        """Distinct shops in the cart, in order of first appearance."""
        seen = []
        for item in self.lines():
            if str(item.shop_id) not in seen:
                seen.append(str(item.shop_id))
        return seen

    def _line_at(self, item_index):
        lines = self.lines()
        if item_index is None or item_index < 0 or item_index >= len(lines):
            raise NotFoundError({"item_index": ["Item not found in cart"]})
        return lines[item_index]

    def _ensure_open(self):
        if self.checked_out:
            raise InvalidStateError({"cart": ["Cart has already been checked out"]})

    def _recompute_total(self):
        self.total_amount = sum(item.subtotal for item in self.items)
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_item(self, food_id, shop_id, price, quantity=1):
        """Add ``quantity`` of a food, merging into an existing line for the same food and shop."""
        self._ensure_open()
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        existing = next(
            (i for i in self.items if str(i.food_id) == str(food_id) and str(i.shop_id) == str(shop_id)),
            None,
        )

        with atomic_change(self):
            if existing:
                existing.quantity += quantity
                existing.price = price
                existing.subtotal = existing.quantity * price
            else:
                next_position = max((i.position for i in self.items), default=-1) + 1
                self.add_items(
                    CartItem(
                        food_id=food_id,
                        shop_id=shop_id,
                        quantity=quantity,
                        price=price,
                        subtotal=price * quantity,
                        position=next_position,
                    )
                )
            self._recompute_total()

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                user_id=str(self.user_id),
                food_id=str(food_id),
                shop_id=str(shop_id),
                quantity=quantity,
                total_amount=self.total_amount,
            )
        )

    def update_item(self, item_index, quantity):
        self._ensure_open()
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        line = self._line_at(item_index)
        previous_quantity = line.quantity

        with atomic_change(self):
            line.quantity = quantity
            line.subtotal = line.price * quantity
            self._recompute_total()

        self.raise_(
            CartItemUpdated(
                cart_id=str(self.id),
                item_index=item_index,
                previous_quantity=previous_quantity,
                new_quantity=quantity,
                total_amount=self.total_amount,
            )
        )

    def remove_item(self, item_index):
        self._ensure_open()
        line = self._line_at(item_index)

        with atomic_change(self):
            self.remove_items(line)
            self._recompute_total()

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                item_index=item_index,
                food_id=str(line.food_id),
                total_amount=self.total_amount,
            )
        )

    def clear(self):
        """Drop every line. Clearing an empty cart changes nothing."""
        self._ensure_open()
        if self.is_empty:
            return

        with atomic_change(self):
            for line in list(self.items):
                self.remove_items(line)
            self._recompute_total()

        self.raise_(CartCleared(cart_id=str(self.id), user_id=str(self.user_id)))

    def check_out(self):
        if self.checked_out:
            raise InvalidStateError({"cart": ["Cart has already been checked out"]})
        if self.is_empty:
            raise InvalidStateError({"cart": ["Cart is empty"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self.checked_out = True
            self.checked_out_at = now
            self.updated_at = now

        self.raise_(
            CartCheckedOut(
                cart_id=str(self.id),
                user_id=str(self.user_id),
                total_amount=self.total_amount,
                checked_out_at=now,
            )
        )
