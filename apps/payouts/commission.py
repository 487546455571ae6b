from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

from apps.payouts.domain import LineSplit
from apps.sales.models import PaymentMethod

CENTS = Decimal("0.01")
ZERO = Decimal("0")


def to_cents(value):
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class FeeSchedule:
    """Payment-processor fees charged back to the consignor, per payment method.

    ``rates`` is a fraction of the line total; ``fixed_fees`` is a flat amount per
    transaction that gets spread over the sale's lines in proportion to their total.
    """

    rates: dict = field(default_factory=dict)
    fixed_fees: dict = field(default_factory=dict)

    def rate_for(self, payment_method):
        return Decimal(self.rates.get(payment_method, ZERO))

    def fixed_fee_for(self, payment_method):
        return Decimal(self.fixed_fees.get(payment_method, ZERO))

    @classmethod
    def from_settings(cls):
        return cls(
            rates={PaymentMethod.CARD: settings.PAYOUT_CARD_FEE_RATE},
            fixed_fees={PaymentMethod.CARD: settings.PAYOUT_CARD_FEE_FIXED},
        )


NO_FEES = FeeSchedule()


def card_fee_for(line, line_total, fees):
    if line.payment_method == PaymentMethod.CASH:
        return ZERO

    fee = line_total * fees.rate_for(line.payment_method)
    fixed = fees.fixed_fee_for(line.payment_method)
    if fixed:
        sale_subtotal = line.sale_subtotal or line_total
        if sale_subtotal > 0:
            fee += fixed * line_total / sale_subtotal
    return fee


def split_line(line, fees=NO_FEES):
    line_total = line.unit_price * line.quantity
    consignor_share = line_total * line.commission_split
    return LineSplit(
        line_total=line_total,
        consignor_gross_share=consignor_share,
        store_share=line_total - consignor_share,
        card_fee=card_fee_for(line, line_total, fees),
    )
