import uuid

from django.core.exceptions import ValidationError
from django.db import models


class PaymentMethod(models.TextChoices):
    CASH = "CASH", "Cash"
    CARD = "CARD", "Card"


class RefundStatus(models.TextChoices):
    PARTIAL = "PARTIAL", "Partial"
    FULL = "FULL", "Full"


class Sale(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cashier = models.ForeignKey(
        "accounts.User", on_delete=models.PROTECT, null=True, blank=True, related_name="sales"
    )
    payment_method = models.CharField(max_length=16, choices=PaymentMethod.choices, default=PaymentMethod.CASH)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    completed_at = models.DateTimeField()
    refund_status = models.CharField(max_length=16, choices=RefundStatus.choices, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["completed_at"], name="sale_completed_idx"),
        ]

    def __str__(self):
        return f"Sale {str(self.id)[:8].upper()}"


class SaleLine(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name="lines")
    consignor = models.ForeignKey("consignors.Consignor", on_delete=models.PROTECT, related_name="sale_lines")
    sku = models.CharField(max_length=64)
    name = models.CharField(max_length=255)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField()
    # Split in force when the sale completed. Payout math reads this, never the consignor's current split.
    commission_split = models.DecimalField(max_digits=5, decimal_places=4)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gt=0), name="saleline_quantity_gt_zero"),
            models.CheckConstraint(condition=models.Q(unit_price__gte=0), name="saleline_unit_price_gte_zero"),
        ]
        indexes = [
            models.Index(fields=["consignor"], name="saleline_consignor_idx"),
        ]

    def clean(self):
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError("quantity must be greater than 0")
        if self.commission_split is not None and not (0 < self.commission_split <= 1):
            raise ValidationError("commission_split must be greater than 0 and at most 1")

    def save(self, *args, **kwargs):
        if self.commission_split is None:
            self.commission_split = self.consignor.commission_split
        super().save(*args, **kwargs)

    @property
    def line_total(self):
        return self.unit_price * self.quantity


class Refund(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sale = models.ForeignKey(Sale, on_delete=models.PROTECT, related_name="refunds")
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=16, choices=PaymentMethod.choices)
    processed_by = models.ForeignKey(
        "accounts.User", on_delete=models.SET_NULL, null=True, blank=True, related_name="refunds"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["sale", "created_at"], name="refund_sale_created_idx"),
        ]


class RefundLine(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    refund = models.ForeignKey(Refund, on_delete=models.CASCADE, related_name="lines")
    sale_line = models.ForeignKey(SaleLine, on_delete=models.PROTECT, related_name="refund_lines")
    quantity = models.PositiveIntegerField()
    restocked = models.BooleanField(default=False)

    class Meta:
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gt=0), name="refundline_quantity_gt_zero"),
        ]
