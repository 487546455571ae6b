import logging
from decimal import InvalidOperation

from django.db import IntegrityError, transaction

from apps.audit.services import record_audit
from apps.consignors.models import Consignor
from apps.payouts import selectors
from apps.payouts.commission import to_cents
from apps.payouts.exceptions import (
    InvalidAmount,
    InvalidDisposition,
    MissingReason,
    NotFoundError,
    PayoutConflict,
    PayoutValidationError,
)
from apps.payouts.models import BalanceDisposition, Payout

logger = logging.getLogger(__name__)


def _resolve_terms(summary, custom_amount, partial_reason, balance_disposition):
    pending = to_cents(summary.pending_amount)
    partial_reason = (partial_reason or "").strip()

    if custom_amount is None:
        if partial_reason or balance_disposition:
            raise InvalidDisposition(
                "A reason and balance disposition can only be given with a custom amount.",
                fields={"balance_disposition": "Only allowed on partial payouts."},
            )
        if pending <= 0:
            raise InvalidAmount("There is no pending amount to pay.", fields={"amount": str(pending)})
        return {
            "amount": pending,
            "is_partial": False,
            "original_amount_due": None,
            "partial_reason": "",
            "balance_disposition": None,
        }

    try:
        amount = to_cents(custom_amount)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidAmount("Custom amount is not a valid number.", fields={"custom_amount": str(custom_amount)}) from exc
    if amount <= 0:
        raise InvalidAmount("Custom amount must be greater than 0.", fields={"custom_amount": str(amount)})
    if amount > pending:
        raise InvalidAmount(
            f"Custom amount cannot exceed the {pending} currently due.",
            fields={"custom_amount": str(amount), "pending_amount": str(pending)},
        )
    if not partial_reason:
        raise MissingReason(
            "Explain why only part of the balance is being paid.",
            fields={"partial_reason": "This field is required for custom amounts."},
        )

    disposition = balance_disposition or BalanceDisposition.DEFERRED
    if disposition not in BalanceDisposition.values:
        raise InvalidDisposition(
            f"Unknown balance disposition {disposition!r}.",
            fields={"balance_disposition": f"Choose one of {', '.join(BalanceDisposition.values)}."},
        )
    return {
        "amount": amount,
        "is_partial": True,
        "original_amount_due": pending,
        "partial_reason": partial_reason,
        "balance_disposition": disposition,
    }


def record_payout(
    *,
    consignor_id,
    summary,
    notes="",
    custom_amount=None,
    partial_reason=None,
    balance_disposition=None,
    actor=None,
):
    """Persist a payout against a freshly computed summary.

    The payout's period is frozen to the summary's window and ``paid_at`` is the
    summary's period end, so the next reconciliation starts exactly where this one
    stopped. Whatever is left unpaid on a partial payout is never carried into a
    later period; ``balance_disposition`` only records what the store intends to do
    with it.

    A single atomic insert: a failure is final for this attempt and callers retry
    with a new summary.
    """
    if str(summary.consignor_id) != str(consignor_id):
        raise PayoutValidationError("The summary belongs to a different consignor.")

    terms = _resolve_terms(summary, custom_amount, partial_reason, balance_disposition)

    with transaction.atomic():
        consignor = Consignor.objects.select_for_update().filter(pk=consignor_id).first()
        if consignor is None:
            raise NotFoundError(f"Consignor {consignor_id} not found.")

        latest = selectors.last_payout(consignor.id)
        if (latest.id if latest else None) != summary.last_payout_id:
            raise PayoutConflict("Another payout was recorded for this consignor after the summary was computed.")

        try:
            with transaction.atomic():
                payout = Payout.objects.create(
                    consignor=consignor,
                    period_start=summary.period_start,
                    period_end=summary.period_end,
                    paid_at=summary.period_end,
                    sales_count=summary.sales_count,
                    items_sold=summary.items_sold,
                    gross_sales=summary.gross_sales,
                    tax_collected=summary.tax_collected,
                    store_share=summary.store_share,
                    credit_card_fees=summary.credit_card_fees,
                    notes=(notes or "").strip(),
                    created_by=actor if actor is not None and actor.is_authenticated else None,
                    **terms,
                )
        except IntegrityError as exc:
            raise PayoutConflict("A payout already covers this period.") from exc

        record_audit(
            actor=actor,
            action="payout.record",
            entity_type="consignor",
            entity_id=consignor.id,
            payload={
                "payout_id": str(payout.id),
                "amount": str(payout.amount),
                "is_partial": payout.is_partial,
                "original_amount_due": str(payout.original_amount_due) if payout.is_partial else None,
                "balance_disposition": payout.balance_disposition,
                "period_start": payout.period_start.isoformat(),
                "period_end": payout.period_end.isoformat(),
            },
        )

    logger.info(
        "Recorded %s payout of %s to consignor %s for period %s - %s",
        "partial" if payout.is_partial else "full",
        payout.amount,
        consignor.consignor_number,
        payout.period_start.isoformat(),
        payout.period_end.isoformat(),
    )
    return payout
