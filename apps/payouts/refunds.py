from apps.payouts.domain import RefundAdjustment
from apps.payouts.exceptions import InconsistentLedgerError


def refunded_quantity_for(line, refunds):
    return sum(entry.quantity for entry in refunds if entry.sale_line_id == line.id)


def adjust_line(line, split, refunds, clamp=False):
    """Net refunds out of a line's consignor share.

    Refunds only ever reduce the consignor and store shares; the card fee in
    ``split`` is left alone because processors keep their fee on refunded sales.

    A refunded quantity above the quantity sold means the ledger is corrupt.
    That raises ``InconsistentLedgerError`` unless ``clamp`` is set, in which case
    the refund is capped at the quantity sold and the result is flagged.
    """
    refunded = refunded_quantity_for(line, refunds)
    inconsistent = refunded > line.quantity
    if inconsistent:
        if not clamp:
            raise InconsistentLedgerError(line.id, refunded, line.quantity)
        refunded = line.quantity

    refunded_total = line.unit_price * refunded
    adjusted_line_total = split.line_total - refunded_total
    adjusted_consignor_share = split.consignor_gross_share - refunded_total * line.commission_split

    return RefundAdjustment(
        refunded_quantity=refunded,
        effective_quantity=line.quantity - refunded,
        is_fully_refunded=refunded >= line.quantity,
        is_partially_refunded=0 < refunded < line.quantity,
        adjusted_line_total=adjusted_line_total,
        adjusted_consignor_share=adjusted_consignor_share,
        adjusted_store_share=adjusted_line_total - adjusted_consignor_share,
        is_inconsistent=inconsistent,
    )
