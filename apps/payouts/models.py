import uuid

from django.db import models

from apps.payouts.exceptions import ImmutableRecordError


class BalanceDisposition(models.TextChoices):
    DEFERRED = "DEFERRED", "Deferred"
    FORGIVEN = "FORGIVEN", "Forgiven"


class PayoutQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise ImmutableRecordError()

    def delete(self):
        raise ImmutableRecordError()


class Payout(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    consignor = models.ForeignKey("consignors.Consignor", on_delete=models.PROTECT, related_name="payouts")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    period_start = models.DateTimeField()
    period_end = models.DateTimeField()
    paid_at = models.DateTimeField()
    sales_count = models.PositiveIntegerField(default=0)
    items_sold = models.PositiveIntegerField(default=0)
    gross_sales = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    tax_collected = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    store_share = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    credit_card_fees = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    notes = models.TextField(blank=True)
    is_partial = models.BooleanField(default=False)
    original_amount_due = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    partial_reason = models.TextField(blank=True)
    balance_disposition = models.CharField(
        max_length=16, choices=BalanceDisposition.choices, null=True, blank=True
    )
    created_by = models.ForeignKey(
        "accounts.User", on_delete=models.SET_NULL, null=True, blank=True, related_name="payouts_recorded"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = PayoutQuerySet.as_manager()

    class Meta:
        ordering = ["-paid_at", "-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["consignor", "period_start"], name="payout_unique_consignor_period"),
            models.CheckConstraint(condition=models.Q(amount__gt=0), name="payout_amount_gt_zero"),
            models.CheckConstraint(
                condition=(
                    models.Q(
                        is_partial=True,
                        original_amount_due__isnull=False,
                        balance_disposition__isnull=False,
                    )
                    | models.Q(
                        is_partial=False,
                        original_amount_due__isnull=True,
                        balance_disposition__isnull=True,
                    )
                ),
                name="payout_partial_fields_consistent",
            ),
        ]
        indexes = [
            models.Index(fields=["consignor", "paid_at"], name="payout_consignor_paid_idx"),
        ]

    def __str__(self):
        return f"Payout {self.amount} to {self.consignor_id} at {self.paid_at:%Y-%m-%d}"

    @property
    def unpaid_remainder(self):
        if not self.is_partial or self.original_amount_due is None:
            return None
        return self.original_amount_due - self.amount

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError()
