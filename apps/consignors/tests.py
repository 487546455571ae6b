from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.consignors.models import Consignor

User = get_user_model()


class ConsignorApiTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin_con", password="admin123", role="ADMIN")
        self.cashier = User.objects.create_user(username="cashier_con", password="cashier123", role="CASHIER")
        self.consignor_user = User.objects.create_user(username="consignor_con", password="consignor123", role="CONSIGNOR")
        self.consignor = Consignor.objects.create(
            user=self.consignor_user,
            consignor_number="C-400",
            name="Margaret",
            commission_split=Decimal("0.6000"),
        )

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def test_admin_creates_consignor(self):
        self.auth_as("admin_con", "admin123")
        response = self.client.post(
            "/api/v1/consignors/",
            {"consignor_number": " C-401 ", "name": "Katherine", "commission_split": "0.5500"},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["consignor_number"], "C-401")
        self.assertTrue(AuditLog.objects.filter(action="consignor.create", entity_id=response.data["id"]).exists())

    def test_commission_split_must_be_a_fraction(self):
        self.auth_as("admin_con", "admin123")
        for split in ("0", "1.5000", "-0.2000"):
            response = self.client.post(
                "/api/v1/consignors/",
                {"consignor_number": f"C-X{split}", "name": "Bad split", "commission_split": split},
                format="json",
            )
            self.assertEqual(response.status_code, 400, split)
            self.assertIn("commission_split", response.data["fields"])

    def test_split_change_is_audited(self):
        self.auth_as("admin_con", "admin123")
        response = self.client.patch(
            f"/api/v1/consignors/{self.consignor.id}/",
            {"commission_split": "0.7000"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        audit = AuditLog.objects.get(action="consignor.commission_split.update")
        self.assertEqual(audit.payload, {"before": "0.6000", "after": "0.7000"})

    def test_search_and_no_delete(self):
        Consignor.objects.create(consignor_number="C-402", name="Dorothy")
        self.auth_as("cashier_con", "cashier123")

        response = self.client.get("/api/v1/consignors/", {"q": "doro"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["consignor_number"] for row in response.data["results"]], ["C-402"])

        self.assertEqual(self.client.delete(f"/api/v1/consignors/{self.consignor.id}/").status_code, 405)

    def test_cashier_cannot_edit_consignors(self):
        self.auth_as("cashier_con", "cashier123")
        response = self.client.patch(
            f"/api/v1/consignors/{self.consignor.id}/",
            {"commission_split": "0.9000"},
            format="json",
        )
        self.assertEqual(response.status_code, 403)

    def test_consignor_profile_self_view(self):
        self.auth_as("consignor_con", "consignor123")
        response = self.client.get("/api/v1/consignors/me/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["consignor_number"], "C-400")
        self.assertEqual(self.client.get("/api/v1/consignors/").status_code, 403)

    def test_user_without_profile_gets_not_found(self):
        User.objects.create_user(username="orphan_con", password="orphan123", role="CONSIGNOR")
        self.auth_as("orphan_con", "orphan123")
        response = self.client.get("/api/v1/consignors/me/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["code"], "consignor_profile_not_found")
