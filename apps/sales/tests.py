from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.consignors.models import Consignor
from apps.sales.models import PaymentMethod, Refund, RefundStatus, Sale, SaleLine

User = get_user_model()


class SaleRefundTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin_sales", password="admin123", role="ADMIN")
        self.cashier = User.objects.create_user(username="cashier_sales", password="cashier123", role="CASHIER")
        self.consignor_user = User.objects.create_user(
            username="consignor_sales", password="consignor123", role="CONSIGNOR"
        )
        self.consignor = Consignor.objects.create(
            consignor_number="C-300", name="Barbara", commission_split=Decimal("0.6500")
        )
        self.sale = Sale.objects.create(
            cashier=self.cashier,
            payment_method=PaymentMethod.CARD,
            subtotal=Decimal("45.00"),
            tax_amount=Decimal("3.60"),
            total=Decimal("48.60"),
            completed_at=timezone.now() - timedelta(hours=3),
        )
        self.mug = SaleLine.objects.create(
            sale=self.sale, consignor=self.consignor, sku="MUG-1", name="Stoneware mug", unit_price=Decimal("5.00"), quantity=3
        )
        self.vase = SaleLine.objects.create(
            sale=self.sale, consignor=self.consignor, sku="VASE-1", name="Glass vase", unit_price=Decimal("30.00"), quantity=1
        )

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def refund_url(self, sale=None):
        return f"/api/v1/sales/{(sale or self.sale).id}/refund/"

    def test_line_snapshots_consignor_split(self):
        self.assertEqual(self.mug.commission_split, Decimal("0.6500"))
        self.consignor.commission_split = Decimal("0.4000")
        self.consignor.save()
        self.mug.refresh_from_db()
        self.assertEqual(self.mug.commission_split, Decimal("0.6500"))

    def test_partial_then_full_refund(self):
        self.auth_as("cashier_sales", "cashier123")

        partial = self.client.post(
            self.refund_url(),
            {"refund_amount": "5.40", "items": [{"sale_line": str(self.mug.id), "quantity": 1, "restocked": True}]},
            format="json",
        )
        self.assertEqual(partial.status_code, 201)
        self.assertEqual(partial.data["payment_method"], PaymentMethod.CARD)
        self.assertTrue(partial.data["lines"][0]["restocked"])
        self.sale.refresh_from_db()
        self.assertEqual(self.sale.refund_status, RefundStatus.PARTIAL)

        rest = self.client.post(
            self.refund_url(),
            {
                "refund_amount": "43.20",
                "items": [
                    {"sale_line": str(self.mug.id), "quantity": 2},
                    {"sale_line": str(self.vase.id), "quantity": 1},
                ],
            },
            format="json",
        )
        self.assertEqual(rest.status_code, 201)
        self.sale.refresh_from_db()
        self.assertEqual(self.sale.refund_status, RefundStatus.FULL)
        self.assertEqual(AuditLog.objects.filter(action="sale.refund").count(), 2)

        again = self.client.post(
            self.refund_url(),
            {"refund_amount": "1.00", "items": [{"sale_line": str(self.vase.id), "quantity": 1}]},
            format="json",
        )
        self.assertEqual(again.status_code, 400)
        self.assertEqual(again.data["code"], "invalid_refund")

    def test_refund_cannot_exceed_quantity_sold(self):
        self.auth_as("cashier_sales", "cashier123")
        self.client.post(
            self.refund_url(),
            {"refund_amount": "10.00", "items": [{"sale_line": str(self.mug.id), "quantity": 2}]},
            format="json",
        )

        response = self.client.post(
            self.refund_url(),
            {"refund_amount": "10.00", "items": [{"sale_line": str(self.mug.id), "quantity": 2}]},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("Only 1 unit(s)", response.data["detail"])
        self.assertEqual(Refund.objects.filter(sale=self.sale).count(), 1)

    def test_refund_rejects_lines_from_other_sales(self):
        other = Sale.objects.create(
            payment_method=PaymentMethod.CASH,
            subtotal=Decimal("10.00"),
            total=Decimal("10.00"),
            completed_at=timezone.now(),
        )
        stranger = SaleLine.objects.create(
            sale=other, consignor=self.consignor, sku="X", name="Print", unit_price=Decimal("10.00"), quantity=1
        )
        self.auth_as("admin_sales", "admin123")
        response = self.client.post(
            self.refund_url(),
            {"refund_amount": "10.00", "items": [{"sale_line": str(stranger.id), "quantity": 1}]},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Refund.objects.exists())

    def test_refund_request_validation(self):
        self.auth_as("admin_sales", "admin123")
        empty = self.client.post(self.refund_url(), {"refund_amount": "5.00", "items": []}, format="json")
        self.assertEqual(empty.status_code, 400)
        self.assertIn("items", empty.data["fields"])

        negative = self.client.post(
            self.refund_url(),
            {"refund_amount": "-1.00", "items": [{"sale_line": str(self.mug.id), "quantity": 1}]},
            format="json",
        )
        self.assertEqual(negative.status_code, 400)
        self.assertIn("refund_amount", negative.data["fields"])

    def test_sales_list_and_detail(self):
        self.auth_as("cashier_sales", "cashier123")
        listing = self.client.get("/api/v1/sales/", {"consignor": str(self.consignor.id)})
        self.assertEqual(listing.status_code, 200)
        self.assertEqual(listing.data["count"], 1)

        detail = self.client.get(f"/api/v1/sales/{self.sale.id}/")
        self.assertEqual(detail.status_code, 200)
        self.assertEqual(len(detail.data["lines"]), 2)
        self.assertEqual(detail.data["lines"][0]["consignor_number"], "C-300")

    def test_consignor_role_cannot_browse_sales(self):
        self.auth_as("consignor_sales", "consignor123")
        self.assertEqual(self.client.get("/api/v1/sales/").status_code, 403)
        response = self.client.post(
            self.refund_url(),
            {"refund_amount": "5.00", "items": [{"sale_line": str(self.mug.id), "quantity": 1}]},
            format="json",
        )
        self.assertEqual(response.status_code, 403)
