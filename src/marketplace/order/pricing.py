"""Order charges shared by the cart summary and checkout."""

from dataclasses import dataclass

from marketplace.config import settings
from marketplace.discovery.geo import round_half_up


@dataclass(frozen=True)
class Charges:
    total_amount: float
    delivery_fee: float
    taxes: float
    grand_total: float

    def to_dict(self):
        return {
            "total_amount": self.total_amount,
            "delivery_fee": self.delivery_fee,
            "taxes": self.taxes,
            "grand_total": self.grand_total,
        }


def calculate_charges(total_amount: float, delivery_fee: float | None = None, tax_rate: float | None = None) -> Charges:
    """Delivery fee plus whole-unit tax on top of the item total."""
    fee = settings.DELIVERY_FEE if delivery_fee is None else delivery_fee
    rate = settings.TAX_RATE if tax_rate is None else tax_rate
    taxes = round_half_up(rate * total_amount)
    return Charges(
        total_amount=total_amount,
        delivery_fee=fee,
        taxes=taxes,
        grand_total=total_amount + fee + taxes,
    )
