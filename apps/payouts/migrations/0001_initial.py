import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("consignors", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Payout",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("period_start", models.DateTimeField()),
                ("period_end", models.DateTimeField()),
                ("paid_at", models.DateTimeField()),
                ("sales_count", models.PositiveIntegerField(default=0)),
                ("items_sold", models.PositiveIntegerField(default=0)),
                ("gross_sales", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("tax_collected", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("store_share", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("credit_card_fees", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("notes", models.TextField(blank=True)),
                ("is_partial", models.BooleanField(default=False)),
                (
                    "original_amount_due",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True),
                ),
                ("partial_reason", models.TextField(blank=True)),
                (
                    "balance_disposition",
                    models.CharField(
                        blank=True,
                        choices=[("DEFERRED", "Deferred"), ("FORGIVEN", "Forgiven")],
                        max_length=16,
                        null=True,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "consignor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payouts",
                        to="consignors.consignor",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payouts_recorded",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-paid_at", "-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("consignor", "period_start"), name="payout_unique_consignor_period"
                    ),
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="payout_amount_gt_zero"),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("balance_disposition__isnull", False),
                                ("is_partial", True),
                                ("original_amount_due__isnull", False),
                            ),
                            models.Q(
                                ("balance_disposition__isnull", True),
                                ("is_partial", False),
                                ("original_amount_due__isnull", True),
                            ),
                            _connector="OR",
                        ),
                        name="payout_partial_fields_consistent",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["consignor", "paid_at"], name="payout_consignor_paid_idx"),
                ],
            },
        ),
    ]
