"""Human-shareable order numbers: ``ORD`` + epoch milliseconds + 3 random digits."""

import random
import time

import structlog
from protean.utils.globals import current_domain

from marketplace.config import settings
from marketplace.exceptions import ConflictError
from marketplace.order.order import Order

logger = structlog.get_logger(__name__)


def generate_order_number(now_ms: int | None = None) -> str:
    timestamp = int(time.time() * 1000) if now_ms is None else now_ms
    return f"ORD{timestamp}{random.randint(0, 999):03d}"


def allocate_order_number(attempts: int | None = None) -> str:
    """An order number no persisted order carries yet.

    Regenerates on collision, giving up after ``attempts`` tries.
    """
    repo = current_domain.repository_for(Order)
    attempts = attempts or settings.ORDER_NUMBER_ATTEMPTS
    for attempt in range(1, attempts + 1):
        candidate = generate_order_number()
        if repo.find_by_number(candidate) is None:
            return candidate
        logger.warning("Order number collision", order_number=candidate, attempt=attempt)

    raise ConflictError({"order_number": ["Could not allocate a unique order number"]})
