from collections import defaultdict

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Q

from apps.consignors.models import Consignor
from apps.payouts.domain import LineItemFact, RefundEntry
from apps.payouts.exceptions import NotFoundError
from apps.payouts.models import Payout
from apps.sales.models import RefundLine, SaleLine


def get_consignor(consignor_id):
    try:
        return Consignor.objects.get(pk=consignor_id)
    except (Consignor.DoesNotExist, DjangoValidationError, ValueError) as exc:
        raise NotFoundError(f"Consignor {consignor_id} not found.") from exc


def last_payout(consignor_id):
    return Payout.objects.filter(consignor_id=consignor_id).order_by("-paid_at", "-created_at").first()


def payout_history(consignor_id):
    return Payout.objects.filter(consignor_id=consignor_id).order_by("-paid_at", "-created_at")


def line_items_in_period(consignor_id, period):
    lines = (
        SaleLine.objects.filter(
            consignor_id=consignor_id,
            sale__completed_at__gt=period.start,
            sale__completed_at__lte=period.end,
        )
        .select_related("sale")
        .order_by("sale__completed_at", "sale_id", "id")
    )
    return [
        LineItemFact(
            id=line.id,
            sale_id=line.sale_id,
            consignor_id=line.consignor_id,
            sku=line.sku,
            name=line.name,
            unit_price=line.unit_price,
            quantity=line.quantity,
            commission_split=line.commission_split,
            completed_at=line.sale.completed_at,
            payment_method=line.sale.payment_method,
            sale_subtotal=line.sale.subtotal,
            sale_tax_amount=line.sale.tax_amount,
        )
        for line in lines
    ]


def refunds_by_line(line_ids):
    grouped = defaultdict(list)
    if not line_ids:
        return grouped
    entries = RefundLine.objects.filter(sale_line_id__in=line_ids).order_by("refund__created_at", "id")
    for entry in entries:
        grouped[entry.sale_line_id].append(
            RefundEntry(
                refund_id=entry.refund_id,
                sale_line_id=entry.sale_line_id,
                quantity=entry.quantity,
                restocked=entry.restocked,
            )
        )
    return grouped


def active_consignors(query=None):
    consignors = Consignor.objects.filter(is_active=True)
    if query:
        query = query.strip()
        consignors = consignors.filter(Q(name__icontains=query) | Q(consignor_number__icontains=query))
    return consignors.order_by("consignor_number")
