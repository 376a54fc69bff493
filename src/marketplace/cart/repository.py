"""Repository for the Cart aggregate."""

from marketplace.cart.cart import Cart
from marketplace.domain import marketplace


@marketplace.repository(part_of=Cart)
class CartRepository:
    def open_cart_for(self, user_id) -> Cart | None:
        """The user's cart that has not been checked out yet, if any."""
        carts = self._dao.query.filter(user_id=str(user_id), checked_out=False).all().items
        return carts[0] if carts else None
