"""Repository for the Order aggregate."""

from marketplace.domain import marketplace
from marketplace.order.order import ACTIVE_STATES, Order
from marketplace.utils.lookup import SCAN_LIMIT


@marketplace.repository(part_of=Order)
class OrderRepository:
    def find_by_number(self, order_number: str) -> Order | None:
        orders = self._dao.query.filter(order_number=order_number).all().items
        return orders[0] if orders else None

    def orders_of_user(self, user_id) -> list[Order]:
        """The user's orders, newest first."""
        orders = self._dao.query.filter(user_id=str(user_id)).limit(SCAN_LIMIT).all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def orders_of_shop(self, shop_id) -> list[Order]:
        orders = self._dao.query.filter(shop_id=str(shop_id)).limit(SCAN_LIMIT).all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def has_active_orders(self, shop_id) -> bool:
        active = {state.value for state in ACTIVE_STATES}
        return any(order.status in active for order in self.orders_of_shop(shop_id))
