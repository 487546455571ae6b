import logging
from collections import defaultdict
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum

from apps.audit.services import record_audit
from apps.sales.models import PaymentMethod, Refund, RefundLine, RefundStatus, Sale, SaleLine

logger = logging.getLogger(__name__)


def refunded_quantities(sale):
    rows = (
        RefundLine.objects.filter(refund__sale=sale)
        .values("sale_line_id")
        .annotate(total=Sum("quantity"))
    )
    return {row["sale_line_id"]: row["total"] for row in rows}


def resolve_refund_status(sale):
    original_qty = sale.lines.aggregate(total=Sum("quantity"))["total"] or 0
    refunded_qty = sum(refunded_quantities(sale).values())
    if refunded_qty <= 0:
        return None
    if refunded_qty >= original_qty:
        return RefundStatus.FULL
    return RefundStatus.PARTIAL


def record_refund(*, sale, items, refund_amount, payment_method=None, actor=None):
    """Append a refund against ``sale``.

    ``items`` is a list of ``{"sale_line": <id>, "quantity": int, "restocked": bool}``.
    Quantities are checked against what has already been refunded so that no line
    is ever refunded beyond its original quantity.
    """
    refund_amount = Decimal(refund_amount).quantize(Decimal("0.01"))
    if refund_amount <= 0:
        raise ValueError("Refund amount must be greater than 0.")
    if not items:
        raise ValueError("A refund must include at least one line.")
    payment_method = payment_method or sale.payment_method
    if payment_method not in PaymentMethod.values:
        raise ValueError("Invalid refund payment method.")

    with transaction.atomic():
        locked_sale = Sale.objects.select_for_update().get(pk=sale.pk)
        if locked_sale.refund_status == RefundStatus.FULL:
            raise ValueError("This sale has already been fully refunded.")

        lines_by_id = {str(line.id): line for line in SaleLine.objects.filter(sale=locked_sale)}
        already_refunded = {str(k): v for k, v in refunded_quantities(locked_sale).items()}

        requested = defaultdict(int)
        restocked = {}
        for item in items:
            line_id = str(item["sale_line"])
            if line_id not in lines_by_id:
                raise ValueError(f"Line {line_id} does not belong to this sale.")
            quantity = int(item["quantity"])
            if quantity <= 0:
                raise ValueError("Refund quantity must be greater than 0.")
            requested[line_id] += quantity
            restocked[line_id] = restocked.get(line_id, False) or bool(item.get("restocked", False))

        for line_id, quantity in requested.items():
            line = lines_by_id[line_id]
            remaining = line.quantity - already_refunded.get(line_id, 0)
            if quantity > remaining:
                raise ValueError(f"Only {remaining} unit(s) of {line.name} can still be refunded.")

        refund = Refund.objects.create(
            sale=locked_sale,
            refund_amount=refund_amount,
            payment_method=payment_method,
            processed_by=actor if actor is not None and actor.is_authenticated else None,
        )
        RefundLine.objects.bulk_create(
            [
                RefundLine(
                    refund=refund,
                    sale_line=lines_by_id[line_id],
                    quantity=quantity,
                    restocked=restocked[line_id],
                )
                for line_id, quantity in requested.items()
            ]
        )

        locked_sale.refund_status = resolve_refund_status(locked_sale)
        locked_sale.save(update_fields=["refund_status"])

        record_audit(
            actor=actor,
            action="sale.refund",
            entity_type="sale",
            entity_id=locked_sale.id,
            payload={
                "refund_id": str(refund.id),
                "refund_amount": str(refund_amount),
                "lines": {line_id: quantity for line_id, quantity in requested.items()},
            },
        )

    logger.info("Recorded refund %s of %s against sale %s", refund.id, refund_amount, locked_sale.id)
    return refund
