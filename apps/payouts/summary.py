"""
Per-consignor payout summary.

``build_summary`` is a pure function of the ledger facts, the reconciliation
period and the fee schedule: it runs the commission split and the refund
adjustment for every line and accumulates the totals the payout screen, the
printable report and the payout recorder all share. ``compute_summary`` wires it
to the ledger reader. Summaries are rebuilt on every call and never cached.
"""

import logging

from django.utils import timezone

from apps.payouts import selectors
from apps.payouts.commission import NO_FEES, ZERO, FeeSchedule, split_line, to_cents
from apps.payouts.domain import ConsignorPayoutSummary, SummaryLine, SummaryTotals
from apps.payouts.exceptions import InconsistentLedgerError
from apps.payouts.periods import resolve_period
from apps.payouts.refunds import adjust_line

logger = logging.getLogger(__name__)


def line_tax(line, taxable_total):
    """Share of the sale's tax attributable to ``taxable_total`` of this line."""
    subtotal = line.sale_subtotal or line.line_total
    if subtotal <= 0 or not line.sale_tax_amount:
        return ZERO
    return taxable_total * line.sale_tax_amount / subtotal


def _summary_line(line, split, adjustment, tax_amount):
    """Itemized line, rounded to cents. Summary totals are sums of these values."""
    line_total = to_cents(split.line_total)
    consignor_share = to_cents(split.consignor_gross_share)
    adjusted_share = to_cents(adjustment.adjusted_consignor_share)
    card_fee = to_cents(split.card_fee)
    return SummaryLine(
        line_id=line.id,
        sale_id=line.sale_id,
        sale_date=line.completed_at,
        sku=line.sku,
        item_name=line.name,
        unit_price=line.unit_price,
        quantity=line.quantity,
        commission_split=line.commission_split,
        payment_method=line.payment_method,
        line_total=line_total,
        consignor_share=consignor_share,
        store_share=line_total - consignor_share,
        card_fee=card_fee,
        tax_amount=to_cents(tax_amount),
        refunded_quantity=adjustment.refunded_quantity,
        refund_status=adjustment.refund_status,
        adjusted_line_total=to_cents(adjustment.adjusted_line_total),
        adjusted_consignor_share=adjusted_share,
        net_consignor_amount=adjusted_share - card_fee,
        is_inconsistent=adjustment.is_inconsistent,
    )


def build_summary(consignor, period, lines, refunds_by_line, fees=NO_FEES, last_payout=None):
    gross_sales = ZERO
    tax_collected = ZERO
    consignor_gross_share = ZERO
    card_fees = ZERO
    pending = ZERO
    items_sold = 0
    sale_ids = set()
    summary_lines = []
    inconsistent_line_ids = []

    for line in lines:
        if not period.contains(line.completed_at):
            continue

        split = split_line(line, fees)
        refunds = refunds_by_line.get(line.id, ())
        try:
            adjustment = adjust_line(line, split, refunds)
        except InconsistentLedgerError as exc:
            logger.warning(
                "Clamping refunds for consignor %s: %s",
                consignor.consignor_number,
                exc.detail,
            )
            adjustment = adjust_line(line, split, refunds, clamp=True)
            inconsistent_line_ids.append(line.id)

        item = _summary_line(line, split, adjustment, line_tax(line, adjustment.adjusted_line_total))
        summary_lines.append(item)

        gross_sales += item.adjusted_line_total
        consignor_gross_share += item.adjusted_consignor_share
        tax_collected += item.tax_amount
        # Processor fees stay with the consignor even when the line was refunded.
        card_fees += item.card_fee
        pending += item.net_consignor_amount
        sale_ids.add(line.sale_id)
        if not adjustment.is_fully_refunded:
            items_sold += line.quantity

    summary_lines.sort(key=lambda item: (item.sale_date, str(item.sale_id), str(item.line_id)), reverse=True)

    gross_sales = to_cents(gross_sales)
    consignor_gross_share = to_cents(consignor_gross_share)

    return ConsignorPayoutSummary(
        consignor_id=consignor.id,
        consignor_number=consignor.consignor_number,
        consignor_name=consignor.name,
        commission_split=consignor.commission_split,
        period_start=period.start,
        period_end=period.end,
        gross_sales=gross_sales,
        tax_collected=to_cents(tax_collected),
        store_share=gross_sales - consignor_gross_share,
        consignor_gross_share=consignor_gross_share,
        credit_card_fees=to_cents(card_fees),
        pending_amount=to_cents(pending),
        sales_count=len(sale_ids),
        items_sold=items_sold,
        lines=tuple(summary_lines),
        inconsistent_line_ids=tuple(inconsistent_line_ids),
        last_payout_id=last_payout.id if last_payout is not None else None,
        last_paid_at=last_payout.paid_at if last_payout is not None else None,
    )


def summarize(consignor, now=None, fees=None):
    previous = selectors.last_payout(consignor.id)
    period = resolve_period(previous, now=now)
    lines = selectors.line_items_in_period(consignor.id, period)
    refunds = selectors.refunds_by_line([line.id for line in lines])
    if fees is None:
        fees = FeeSchedule.from_settings()
    return build_summary(consignor, period, lines, refunds, fees=fees, last_payout=previous)


def compute_summary(consignor_id, now=None, fees=None):
    return summarize(selectors.get_consignor(consignor_id), now=now, fees=fees)


def compute_all_summaries(now=None, query=None, pending_only=False, fees=None):
    """Summaries for every active consignor, largest amount due first."""
    now = now or timezone.now()
    if fees is None:
        fees = FeeSchedule.from_settings()

    summaries = []
    for consignor in selectors.active_consignors(query=query):
        summary = summarize(consignor, now=now, fees=fees)
        if pending_only and summary.pending_amount <= 0:
            continue
        summaries.append(summary)

    summaries.sort(key=lambda item: (-item.pending_amount, item.consignor_number))
    return summaries


def summary_totals(summaries):
    totals = {
        "total_pending": ZERO,
        "total_gross_sales": ZERO,
        "total_store_share": ZERO,
        "total_tax_collected": ZERO,
        "total_credit_card_fees": ZERO,
        "total_sales_count": 0,
        "total_items_sold": 0,
        "consignors_with_pending": 0,
    }
    for summary in summaries:
        totals["total_pending"] += summary.pending_amount
        totals["total_gross_sales"] += summary.gross_sales
        totals["total_store_share"] += summary.store_share
        totals["total_tax_collected"] += summary.tax_collected
        totals["total_credit_card_fees"] += summary.credit_card_fees
        totals["total_sales_count"] += summary.sales_count
        totals["total_items_sold"] += summary.items_sold
        if summary.pending_amount > 0:
            totals["consignors_with_pending"] += 1
    return SummaryTotals(**totals)
