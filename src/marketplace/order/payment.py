"""Simulated payment settlement.

No gateway is called. Cash on delivery and wallet payments stay pending
until collected; card and UPI payments are treated as captured on the spot.
Each method gets a reference stamped with the settlement time.
"""

import time
from dataclasses import dataclass

from marketplace.order.order import PaymentMethod, PaymentStatus

_REFERENCE_PREFIX = {
    PaymentMethod.COD: "COD",
    PaymentMethod.CARD: "PAY",
    PaymentMethod.UPI: "PAY",
    PaymentMethod.WALLET: "WAL",
}

_SETTLED_STATUS = {
    PaymentMethod.COD: PaymentStatus.PENDING,
    PaymentMethod.CARD: PaymentStatus.COMPLETED,
    PaymentMethod.UPI: PaymentStatus.COMPLETED,
    PaymentMethod.WALLET: PaymentStatus.PENDING,
}


@dataclass(frozen=True)
class Settlement:
    payment_status: str
    payment_reference: str


def settle(payment_method: str, now_ms: int | None = None) -> Settlement:
    method = PaymentMethod(payment_method)
    timestamp = int(time.time() * 1000) if now_ms is None else now_ms
    return Settlement(
        payment_status=_SETTLED_STATUS[method].value,
        payment_reference=f"{_REFERENCE_PREFIX[method]}_{timestamp}",
    )
