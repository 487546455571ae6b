"""
Plain values the reconciliation engine computes over and produces.

Nothing here touches the database: the ledger reader turns ORM rows into
``LineItemFact`` / ``RefundEntry`` values and the aggregator returns a
``ConsignorPayoutSummary`` that views, reports and tests consume as-is.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class LineItemFact:
    id: UUID
    sale_id: UUID
    consignor_id: UUID
    sku: str
    name: str
    unit_price: Decimal
    quantity: int
    commission_split: Decimal
    completed_at: datetime
    payment_method: str
    sale_subtotal: Decimal = Decimal("0")
    sale_tax_amount: Decimal = Decimal("0")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class RefundEntry:
    refund_id: UUID
    sale_line_id: UUID
    quantity: int
    restocked: bool = False


@dataclass(frozen=True)
class LineSplit:
    line_total: Decimal
    consignor_gross_share: Decimal
    store_share: Decimal
    card_fee: Decimal


@dataclass(frozen=True)
class RefundAdjustment:
    refunded_quantity: int
    effective_quantity: int
    is_fully_refunded: bool
    is_partially_refunded: bool
    adjusted_line_total: Decimal
    adjusted_consignor_share: Decimal
    adjusted_store_share: Decimal
    is_inconsistent: bool = False

    @property
    def refund_status(self) -> str:
        if self.is_fully_refunded:
            return "FULL"
        if self.is_partially_refunded:
            return "PARTIAL"
        return "NONE"


@dataclass(frozen=True)
class SummaryLine:
    line_id: UUID
    sale_id: UUID
    sale_date: datetime
    sku: str
    item_name: str
    unit_price: Decimal
    quantity: int
    commission_split: Decimal
    payment_method: str
    line_total: Decimal
    consignor_share: Decimal
    store_share: Decimal
    card_fee: Decimal
    tax_amount: Decimal
    refunded_quantity: int
    refund_status: str
    adjusted_line_total: Decimal
    adjusted_consignor_share: Decimal
    net_consignor_amount: Decimal
    is_inconsistent: bool = False

    @property
    def is_refunded(self) -> bool:
        return self.refund_status == "FULL"


@dataclass(frozen=True)
class ConsignorPayoutSummary:
    consignor_id: UUID
    consignor_number: str
    consignor_name: str
    commission_split: Decimal
    period_start: datetime
    period_end: datetime
    gross_sales: Decimal
    tax_collected: Decimal
    store_share: Decimal
    consignor_gross_share: Decimal
    credit_card_fees: Decimal
    pending_amount: Decimal
    sales_count: int
    items_sold: int
    lines: tuple = ()
    inconsistent_line_ids: tuple = ()
    last_payout_id: Optional[UUID] = None
    last_paid_at: Optional[datetime] = None

    @property
    def has_inconsistencies(self) -> bool:
        return bool(self.inconsistent_line_ids)


@dataclass(frozen=True)
class SummaryTotals:
    total_pending: Decimal = Decimal("0.00")
    total_gross_sales: Decimal = Decimal("0.00")
    total_store_share: Decimal = Decimal("0.00")
    total_tax_collected: Decimal = Decimal("0.00")
    total_credit_card_fees: Decimal = Decimal("0.00")
    total_sales_count: int = 0
    total_items_sold: int = 0
    consignors_with_pending: int = 0
