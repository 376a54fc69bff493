"""Marketplace bounded context: Shops, Food, Carts, Orders and Reviews.

Handles the catalogue (shops and their menus), the per-user shopping cart,
checkout into immutable orders with simulated payment settlement, shop
reviews feeding the rating aggregate, and the discovery/ranking read side.
"""

import structlog
from protean.domain import Domain

marketplace = Domain(name="marketplace")

logger = structlog.get_logger(__name__)
