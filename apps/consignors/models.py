import uuid
from decimal import Decimal

from django.db import models

DEFAULT_COMMISSION_SPLIT = Decimal("0.6000")


class Consignor(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        "accounts.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="consignor_profile",
    )
    consignor_number = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=32, blank=True)
    address = models.CharField(max_length=255, blank=True)
    booth_location = models.CharField(max_length=64, blank=True)
    notes = models.TextField(blank=True)
    # Consignor's share of each sale; the store keeps the remainder.
    commission_split = models.DecimalField(max_digits=5, decimal_places=4, default=DEFAULT_COMMISSION_SPLIT)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["consignor_number"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(commission_split__gt=0) & models.Q(commission_split__lte=1),
                name="consignor_commission_split_range",
            ),
        ]
        indexes = [
            models.Index(fields=["is_active", "consignor_number"], name="consignor_active_number_idx"),
        ]

    def __str__(self):
        return f"{self.consignor_number} {self.name}"
