import uuid
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.consignors.models import Consignor
from apps.payouts.commission import NO_FEES, FeeSchedule, split_line
from apps.payouts.domain import LineItemFact, RefundEntry
from apps.payouts.exceptions import ImmutableRecordError, InconsistentLedgerError, PayoutConflict, PayoutValidationError
from apps.payouts.models import BalanceDisposition, Payout
from apps.payouts.periods import EPOCH, Period, resolve_period
from apps.payouts.refunds import adjust_line
from apps.payouts.services import record_payout
from apps.payouts.summary import build_summary, compute_summary
from apps.sales.models import PaymentMethod, Sale, SaleLine
from apps.sales.services import record_refund

User = get_user_model()

CARD_FEES = FeeSchedule(
    rates={PaymentMethod.CARD: Decimal("0.027")},
    fixed_fees={PaymentMethod.CARD: Decimal("0.05")},
)
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=dt_timezone.utc)


def fact(unit_price="10.00", quantity=1, split="0.6000", payment_method=PaymentMethod.CASH, **kwargs):
    unit_price = Decimal(unit_price)
    values = {
        "id": uuid.uuid4(),
        "sale_id": uuid.uuid4(),
        "consignor_id": uuid.uuid4(),
        "sku": "SKU-1",
        "name": "Brass lamp",
        "unit_price": unit_price,
        "quantity": quantity,
        "commission_split": Decimal(split),
        "completed_at": NOW - timedelta(days=1),
        "payment_method": payment_method,
        "sale_subtotal": unit_price * quantity,
        "sale_tax_amount": Decimal("0.00"),
    }
    values.update(kwargs)
    return LineItemFact(**values)


def refund_of(line, quantity):
    return RefundEntry(refund_id=uuid.uuid4(), sale_line_id=line.id, quantity=quantity)


def stub_consignor(split="0.6000"):
    return SimpleNamespace(id=uuid.uuid4(), consignor_number="C-001", name="Ada", commission_split=Decimal(split))


class CommissionSplitTests(SimpleTestCase):
    def test_split_conserves_line_total(self):
        for price, quantity, split in (("19.99", 3, "0.6000"), ("0.01", 1, "0.3333"), ("250.00", 2, "1.0000")):
            result = split_line(fact(price, quantity, split))
            self.assertEqual(result.consignor_gross_share + result.store_share, result.line_total)

    def test_cash_lines_carry_no_card_fee(self):
        self.assertEqual(split_line(fact("100.00"), CARD_FEES).card_fee, Decimal("0"))

    def test_card_fee_spreads_fixed_fee_across_sale(self):
        line = fact("60.00", payment_method=PaymentMethod.CARD, sale_subtotal=Decimal("100.00"))
        # 2.7% of 60 plus 60/100 of the 0.05 transaction fee
        self.assertEqual(split_line(line, CARD_FEES).card_fee, Decimal("1.62") + Decimal("0.03"))

    def test_no_fee_schedule_charges_nothing(self):
        line = fact("60.00", payment_method=PaymentMethod.CARD)
        self.assertEqual(split_line(line, NO_FEES).card_fee, 0)


class RefundAdjustmentTests(SimpleTestCase):
    def test_partial_refund_reduces_consignor_share(self):
        line = fact("10.00", quantity=3, split="0.6000")
        adjustment = adjust_line(line, split_line(line), [refund_of(line, 1)])

        self.assertEqual(adjustment.adjusted_consignor_share, Decimal("12.0"))
        self.assertEqual(adjustment.effective_quantity, 2)
        self.assertTrue(adjustment.is_partially_refunded)
        self.assertEqual(adjustment.refund_status, "PARTIAL")

    def test_refunds_accumulate_across_entries(self):
        line = fact("10.00", quantity=3)
        adjustment = adjust_line(line, split_line(line), [refund_of(line, 1), refund_of(line, 2)])

        self.assertTrue(adjustment.is_fully_refunded)
        self.assertEqual(adjustment.adjusted_consignor_share, 0)
        self.assertEqual(adjustment.adjusted_line_total, 0)

    def test_refunds_for_other_lines_are_ignored(self):
        line = fact("10.00", quantity=2)
        other = fact("10.00", quantity=2)
        adjustment = adjust_line(line, split_line(line), [refund_of(other, 2)])
        self.assertEqual(adjustment.refunded_quantity, 0)
        self.assertEqual(adjustment.refund_status, "NONE")

    def test_over_refund_raises_unless_clamped(self):
        line = fact("10.00", quantity=1)
        refunds = [refund_of(line, 2)]
        with self.assertRaises(InconsistentLedgerError):
            adjust_line(line, split_line(line), refunds)

        adjustment = adjust_line(line, split_line(line), refunds, clamp=True)
        self.assertTrue(adjustment.is_inconsistent)
        self.assertEqual(adjustment.refunded_quantity, 1)
        self.assertEqual(adjustment.adjusted_consignor_share, 0)


class PeriodTests(SimpleTestCase):
    def test_first_period_starts_at_epoch(self):
        period = resolve_period(None, now=NOW)
        self.assertEqual(period.start, EPOCH)
        self.assertEqual(period.end, NOW)

    def test_period_starts_at_last_payout(self):
        paid_at = NOW - timedelta(days=7)
        period = resolve_period(SimpleNamespace(paid_at=paid_at), now=NOW)
        self.assertEqual(period.start, paid_at)

    def test_period_is_open_at_start_and_closed_at_end(self):
        period = Period(start=NOW - timedelta(days=1), end=NOW)
        self.assertFalse(period.contains(period.start))
        self.assertTrue(period.contains(period.end))
        self.assertFalse(period.contains(NOW + timedelta(microseconds=1)))


class BuildSummaryTests(SimpleTestCase):
    def setUp(self):
        self.consignor = stub_consignor("0.7000")
        self.period = resolve_period(None, now=NOW)

    def test_summary_totals_conserve_gross_sales(self):
        lines = [
            fact("33.33", 1, "0.7000"),
            fact("12.50", 3, "0.7000"),
            fact("0.99", 7, "0.7000", payment_method=PaymentMethod.CARD),
        ]
        summary = build_summary(self.consignor, self.period, lines, {}, fees=CARD_FEES)

        self.assertEqual(summary.consignor_gross_share + summary.store_share, summary.gross_sales)
        self.assertEqual(summary.pending_amount, summary.consignor_gross_share - summary.credit_card_fees)
        self.assertEqual(summary.sales_count, 3)
        self.assertEqual(summary.items_sold, 11)

    def test_fully_refunded_card_line_keeps_its_fee(self):
        line = fact("50.00", 1, "0.7000", payment_method=PaymentMethod.CARD)
        summary = build_summary(self.consignor, self.period, [line], {line.id: [refund_of(line, 1)]}, fees=CARD_FEES)

        self.assertEqual(summary.gross_sales, Decimal("0.00"))
        self.assertEqual(summary.consignor_gross_share, Decimal("0.00"))
        self.assertEqual(summary.store_share, Decimal("0.00"))
        self.assertEqual(summary.credit_card_fees, Decimal("1.40"))
        self.assertEqual(summary.pending_amount, Decimal("-1.40"))
        self.assertEqual(summary.items_sold, 0)
        self.assertTrue(summary.lines[0].is_refunded)

    def test_tax_is_prorated_on_the_kept_share_of_the_line(self):
        line = fact("60.00", 2, "0.7000", sale_subtotal=Decimal("200.00"), sale_tax_amount=Decimal("16.00"))
        summary = build_summary(self.consignor, self.period, [line], {line.id: [refund_of(line, 1)]})

        self.assertEqual(summary.gross_sales, Decimal("60.00"))
        self.assertEqual(summary.tax_collected, Decimal("4.80"))

    def test_itemized_lines_add_up_to_totals(self):
        sale_id = uuid.uuid4()
        lines = [
            fact(
                "1.15",
                1,
                "0.5000",
                payment_method=PaymentMethod.CARD,
                sale_id=sale_id,
                sale_subtotal=Decimal("3.45"),
                sale_tax_amount=Decimal("0.25"),
            )
            for _ in range(3)
        ]
        summary = build_summary(self.consignor, self.period, lines, {}, fees=CARD_FEES)

        self.assertEqual(sum(item.net_consignor_amount for item in summary.lines), summary.pending_amount)
        self.assertEqual(sum(item.card_fee for item in summary.lines), summary.credit_card_fees)
        self.assertEqual(sum(item.adjusted_consignor_share for item in summary.lines), summary.consignor_gross_share)
        self.assertEqual(sum(item.adjusted_line_total for item in summary.lines), summary.gross_sales)
        self.assertEqual(sum(item.tax_amount for item in summary.lines), summary.tax_collected)
        self.assertEqual(summary.pending_amount, Decimal("1.59"))
        self.assertEqual(summary.credit_card_fees, Decimal("0.15"))
        self.assertEqual(summary.sales_count, 1)

    def test_lines_outside_the_period_are_skipped(self):
        inside = fact("10.00")
        outside = fact("10.00", completed_at=NOW + timedelta(hours=1))
        summary = build_summary(self.consignor, self.period, [inside, outside], {})
        self.assertEqual([item.line_id for item in summary.lines], [inside.id])

    def test_inconsistent_line_is_clamped_and_flagged(self):
        line = fact("10.00", 1, "0.7000")
        with self.assertLogs("apps.payouts.summary", level="WARNING") as captured:
            summary = build_summary(self.consignor, self.period, [line], {line.id: [refund_of(line, 3)]})

        self.assertIn("Clamping refunds", captured.output[0])
        self.assertTrue(summary.has_inconsistencies)
        self.assertEqual(summary.inconsistent_line_ids, (line.id,))
        self.assertEqual(summary.pending_amount, Decimal("0.00"))

    def test_lines_are_listed_newest_first(self):
        older = fact("10.00", completed_at=NOW - timedelta(days=3))
        newer = fact("10.00", completed_at=NOW - timedelta(days=1))
        summary = build_summary(self.consignor, self.period, [older, newer], {})
        self.assertEqual([item.line_id for item in summary.lines], [newer.id, older.id])


class SaleFixturesMixin:
    def make_sale(
        self,
        consignor,
        unit_price,
        quantity=1,
        payment_method=PaymentMethod.CASH,
        completed_at=None,
        tax_amount=Decimal("0.00"),
    ):
        unit_price = Decimal(unit_price)
        subtotal = (unit_price * quantity).quantize(Decimal("0.01"))
        sale = Sale.objects.create(
            payment_method=payment_method,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total=subtotal + tax_amount,
            completed_at=completed_at or timezone.now() - timedelta(days=1),
        )
        line = SaleLine.objects.create(
            sale=sale,
            consignor=consignor,
            sku=f"SKU-{uuid.uuid4().hex[:6]}",
            name="Oak side table",
            unit_price=unit_price,
            quantity=quantity,
        )
        return sale, line


class PayoutServiceTests(SaleFixturesMixin, TestCase):
    def setUp(self):
        self.consignor = Consignor.objects.create(consignor_number="C-100", name="Grace", commission_split=Decimal("0.7000"))
        self.now = timezone.now()

    def test_full_payout_closes_the_period(self):
        self.make_sale(self.consignor, "100.00", completed_at=self.now - timedelta(days=2))
        summary = compute_summary(self.consignor.id, now=self.now)
        payout = record_payout(consignor_id=self.consignor.id, summary=summary)

        self.assertEqual(payout.amount, Decimal("70.00"))
        self.assertFalse(payout.is_partial)
        self.assertIsNone(payout.balance_disposition)
        self.assertEqual(payout.period_start, EPOCH)
        self.assertEqual(payout.paid_at, self.now)
        self.assertEqual(payout.store_share, Decimal("30.00"))

        self.make_sale(self.consignor, "20.00", completed_at=self.now + timedelta(hours=1))
        later = compute_summary(self.consignor.id, now=self.now + timedelta(hours=2))
        self.assertEqual(later.period_start, payout.paid_at)
        self.assertEqual(later.pending_amount, Decimal("14.00"))
        self.assertEqual(later.sales_count, 1)
        self.assertEqual(later.last_payout_id, payout.id)

    def test_sale_on_the_boundary_belongs_to_the_closed_period(self):
        self.make_sale(self.consignor, "10.00", completed_at=self.now)
        summary = compute_summary(self.consignor.id, now=self.now)
        self.assertEqual(summary.pending_amount, Decimal("7.00"))
        record_payout(consignor_id=self.consignor.id, summary=summary)

        later = compute_summary(self.consignor.id, now=self.now + timedelta(days=1))
        self.assertEqual(later.pending_amount, Decimal("0.00"))

    def test_card_fees_reduce_pending_amount(self):
        self.make_sale(self.consignor, "100.00", payment_method=PaymentMethod.CARD)
        summary = compute_summary(self.consignor.id, now=self.now, fees=CARD_FEES)

        self.assertEqual(summary.credit_card_fees, Decimal("2.75"))
        self.assertEqual(summary.pending_amount, Decimal("67.25"))

    def test_summary_is_recomputed_identically(self):
        self.make_sale(self.consignor, "45.00", quantity=2)
        first = compute_summary(self.consignor.id, now=self.now)
        second = compute_summary(self.consignor.id, now=self.now)
        self.assertEqual(first, second)

    def test_refund_recorded_later_reduces_open_period(self):
        _, line = self.make_sale(self.consignor, "10.00", quantity=3)
        record_refund(sale=line.sale, items=[{"sale_line": line.id, "quantity": 1}], refund_amount="10.00")

        summary = compute_summary(self.consignor.id, now=self.now)
        self.assertEqual(summary.pending_amount, Decimal("14.00"))
        self.assertEqual(summary.lines[0].refund_status, "PARTIAL")

    def test_negative_balance_nets_against_later_sales(self):
        _, line = self.make_sale(self.consignor, "100.00", payment_method=PaymentMethod.CARD)
        record_refund(sale=line.sale, items=[{"sale_line": line.id, "quantity": 1}], refund_amount="100.00")

        summary = compute_summary(self.consignor.id, now=self.now, fees=CARD_FEES)
        self.assertEqual(summary.pending_amount, Decimal("-2.75"))
        with self.assertRaises(PayoutValidationError):
            record_payout(consignor_id=self.consignor.id, summary=summary)

        self.make_sale(self.consignor, "10.00")
        summary = compute_summary(self.consignor.id, now=self.now, fees=CARD_FEES)
        self.assertEqual(summary.pending_amount, Decimal("4.25"))
        payout = record_payout(consignor_id=self.consignor.id, summary=summary)
        self.assertEqual(payout.amount, Decimal("4.25"))
        self.assertEqual(payout.credit_card_fees, Decimal("2.75"))

    def test_stale_summary_is_rejected(self):
        self.make_sale(self.consignor, "100.00")
        summary = compute_summary(self.consignor.id, now=self.now)
        record_payout(consignor_id=self.consignor.id, summary=summary)

        with self.assertRaises(PayoutConflict):
            record_payout(consignor_id=self.consignor.id, summary=summary)
        self.assertEqual(Payout.objects.filter(consignor=self.consignor).count(), 1)

    def test_summary_for_another_consignor_is_rejected(self):
        other = Consignor.objects.create(consignor_number="C-101", name="Linus")
        self.make_sale(self.consignor, "100.00")
        summary = compute_summary(self.consignor.id, now=self.now)
        with self.assertRaises(PayoutValidationError):
            record_payout(consignor_id=other.id, summary=summary)

    def test_custom_amount_equal_to_pending_is_still_partial(self):
        self.make_sale(self.consignor, "100.00")
        summary = compute_summary(self.consignor.id, now=self.now)
        payout = record_payout(
            consignor_id=self.consignor.id,
            summary=summary,
            custom_amount=Decimal("70.00"),
            partial_reason="Rounded by hand",
            balance_disposition=BalanceDisposition.FORGIVEN,
        )
        self.assertTrue(payout.is_partial)
        self.assertEqual(payout.unpaid_remainder, Decimal("0.00"))
        self.assertEqual(payout.balance_disposition, BalanceDisposition.FORGIVEN)

    def test_forgiven_remainder_never_resurfaces(self):
        self.make_sale(self.consignor, "100.00")
        payout = record_payout(
            consignor_id=self.consignor.id,
            summary=compute_summary(self.consignor.id, now=self.now),
            custom_amount="30.00",
            partial_reason="Damaged stock deduction",
            balance_disposition=BalanceDisposition.FORGIVEN,
        )
        self.assertEqual(payout.unpaid_remainder, Decimal("40.00"))

        later = compute_summary(self.consignor.id, now=self.now + timedelta(days=30))
        self.assertEqual(later.pending_amount, Decimal("0.00"))
        self.assertEqual(later.lines, ())

    def test_payouts_are_immutable(self):
        self.make_sale(self.consignor, "100.00")
        payout = record_payout(consignor_id=self.consignor.id, summary=compute_summary(self.consignor.id, now=self.now))

        payout.amount = Decimal("1.00")
        with self.assertRaises(ImmutableRecordError):
            payout.save()
        with self.assertRaises(ImmutableRecordError):
            payout.delete()
        with self.assertRaises(ImmutableRecordError):
            Payout.objects.filter(pk=payout.pk).update(amount=Decimal("1.00"))
        with self.assertRaises(ImmutableRecordError):
            Payout.objects.filter(consignor=self.consignor).delete()
        with self.assertRaises(ImmutableRecordError):
            self.consignor.payouts.all().delete()
        payout.refresh_from_db()
        self.assertEqual(payout.amount, Decimal("70.00"))

    def test_commission_snapshot_survives_split_change(self):
        self.make_sale(self.consignor, "100.00")
        self.consignor.commission_split = Decimal("0.5000")
        self.consignor.save()

        summary = compute_summary(self.consignor.id, now=self.now)
        self.assertEqual(summary.pending_amount, Decimal("70.00"))
        self.assertEqual(summary.commission_split, Decimal("0.5000"))


class PayoutApiTests(SaleFixturesMixin, APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin_pay", password="admin123", role="ADMIN")
        self.cashier = User.objects.create_user(username="cashier_pay", password="cashier123", role="CASHIER")
        self.consignor_user = User.objects.create_user(username="consignor_pay", password="consignor123", role="CONSIGNOR")
        self.consignor = Consignor.objects.create(
            user=self.consignor_user,
            consignor_number="C-200",
            name="Hedy",
            commission_split=Decimal("0.7000"),
        )

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def summary_url(self, consignor=None):
        return f"/api/v1/consignors/{(consignor or self.consignor).id}/payout-summary/"

    def payouts_url(self, consignor=None):
        return f"/api/v1/consignors/{(consignor or self.consignor).id}/payouts/"

    def test_partial_payout_defers_remainder_without_carrying_it(self):
        self.make_sale(self.consignor, "60.00")
        self.make_sale(self.consignor, "20.00", quantity=2)
        self.auth_as("admin_pay", "admin123")

        summary = self.client.get(self.summary_url())
        self.assertEqual(summary.status_code, 200)
        self.assertEqual(summary.data["pending_amount"], "70.00")
        self.assertEqual(summary.data["store_share"], "30.00")
        self.assertEqual(summary.data["gross_sales"], "100.00")
        self.assertEqual(summary.data["sales_count"], 2)
        self.assertEqual(summary.data["items_sold"], 3)

        created = self.client.post(
            self.payouts_url(),
            {
                "custom_amount": "40.00",
                "partial_reason": "Register short on cash",
                "expected_pending_amount": "70.00",
            },
            format="json",
        )
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.data["amount"], "40.00")
        self.assertTrue(created.data["is_partial"])
        self.assertEqual(created.data["original_amount_due"], "70.00")
        self.assertEqual(created.data["balance_disposition"], BalanceDisposition.DEFERRED)
        self.assertEqual(created.data["unpaid_remainder"], "30.00")

        after = self.client.get(self.summary_url())
        self.assertEqual(after.data["pending_amount"], "0.00")
        self.assertEqual(after.data["sales_count"], 0)
        self.assertEqual(after.data["last_payout_id"], created.data["id"])

        audit = AuditLog.objects.get(action="payout.record")
        self.assertEqual(audit.actor, self.admin)
        self.assertEqual(audit.payload["original_amount_due"], "70.00")

    def test_full_payout_pays_pending_amount(self):
        self.make_sale(self.consignor, "80.00")
        self.auth_as("admin_pay", "admin123")

        created = self.client.post(self.payouts_url(), {"notes": "Check #1042"}, format="json")
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.data["amount"], "56.00")
        self.assertFalse(created.data["is_partial"])
        self.assertIsNone(created.data["original_amount_due"])
        self.assertEqual(created.data["notes"], "Check #1042")

        history = self.client.get(self.payouts_url())
        self.assertEqual(history.status_code, 200)
        self.assertEqual(history.data["count"], 1)

    def test_invalid_payout_requests_are_rejected(self):
        self.make_sale(self.consignor, "100.00")
        self.auth_as("admin_pay", "admin123")

        cases = [
            ({"custom_amount": "80.00", "partial_reason": "x"}, "invalid_amount"),
            ({"custom_amount": "0.00", "partial_reason": "x"}, "invalid_amount"),
            ({"custom_amount": "20.00", "partial_reason": "   "}, "missing_reason"),
            ({"partial_reason": "no custom amount"}, "invalid_disposition"),
            ({"balance_disposition": BalanceDisposition.FORGIVEN}, "invalid_disposition"),
        ]
        for payload, code in cases:
            response = self.client.post(self.payouts_url(), payload, format="json")
            self.assertEqual(response.status_code, 400, payload)
            self.assertEqual(response.data["code"], code, payload)

        self.assertFalse(Payout.objects.exists())

    def test_unknown_disposition_fails_request_validation(self):
        self.make_sale(self.consignor, "100.00")
        self.auth_as("admin_pay", "admin123")
        response = self.client.post(
            self.payouts_url(),
            {"custom_amount": "10.00", "partial_reason": "x", "balance_disposition": "LOST"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("balance_disposition", response.data["fields"])

    def test_nothing_pending_cannot_be_paid(self):
        self.auth_as("admin_pay", "admin123")
        response = self.client.post(self.payouts_url(), {}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "invalid_amount")

    def test_changed_pending_amount_returns_conflict(self):
        self.make_sale(self.consignor, "100.00")
        self.auth_as("admin_pay", "admin123")
        response = self.client.post(self.payouts_url(), {"expected_pending_amount": "50.00"}, format="json")

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "stale_summary")
        self.assertEqual(response.data["fields"]["pending_amount"], "70.00")
        self.assertFalse(Payout.objects.exists())

    def test_cashier_cannot_record_or_view_payouts(self):
        self.make_sale(self.consignor, "100.00")
        self.auth_as("cashier_pay", "cashier123")

        self.assertEqual(self.client.post(self.payouts_url(), {}, format="json").status_code, 403)
        self.assertEqual(self.client.get(self.summary_url()).status_code, 403)
        self.assertEqual(self.client.get("/api/v1/payouts/summaries/").status_code, 403)

    def test_summaries_are_sorted_by_pending_with_totals(self):
        small = Consignor.objects.create(consignor_number="C-201", name="Alan", commission_split=Decimal("0.5000"))
        Consignor.objects.create(consignor_number="C-202", name="Retired", is_active=False)
        self.make_sale(small, "40.00")
        self.make_sale(self.consignor, "100.00")
        self.auth_as("admin_pay", "admin123")

        response = self.client.get("/api/v1/payouts/summaries/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["consignor_number"] for row in response.data["results"]], ["C-200", "C-201"])
        self.assertEqual(response.data["totals"]["total_pending"], "90.00")
        self.assertEqual(response.data["totals"]["total_gross_sales"], "140.00")
        self.assertEqual(response.data["totals"]["consignors_with_pending"], 2)

        filtered = self.client.get("/api/v1/payouts/summaries/", {"q": "alan"})
        self.assertEqual([row["consignor_number"] for row in filtered.data["results"]], ["C-201"])

    def test_payout_report_includes_history(self):
        self.make_sale(self.consignor, "100.00")
        self.auth_as("admin_pay", "admin123")
        self.client.post(self.payouts_url(), {}, format="json")

        report = self.client.get(f"/api/v1/consignors/{self.consignor.id}/payout-report/")
        self.assertEqual(report.status_code, 200)
        self.assertEqual(report.data["summary"]["pending_amount"], "0.00")
        self.assertEqual(len(report.data["history"]), 1)
        self.assertEqual(report.data["history"][0]["amount"], "70.00")

    def test_payout_list_filters_partial(self):
        self.make_sale(self.consignor, "100.00")
        self.auth_as("admin_pay", "admin123")
        self.client.post(self.payouts_url(), {"custom_amount": "10.00", "partial_reason": "x"}, format="json")

        all_payouts = self.client.get("/api/v1/payouts/", {"consignor": str(self.consignor.id)})
        self.assertEqual(all_payouts.data["count"], 1)
        partial = self.client.get("/api/v1/payouts/", {"partial": "true"})
        self.assertEqual(partial.data["count"], 1)
        self.assertEqual(partial.data["results"][0]["consignor_number"], "C-200")

    def test_consignor_sees_only_own_summary(self):
        self.make_sale(self.consignor, "100.00")
        self.auth_as("consignor_pay", "consignor123")

        own = self.client.get("/api/v1/consignors/me/payout-summary/")
        self.assertEqual(own.status_code, 200)
        self.assertEqual(own.data["pending_amount"], "70.00")

        history = self.client.get("/api/v1/consignors/me/payouts/")
        self.assertEqual(history.status_code, 200)
        self.assertEqual(history.data["count"], 0)

        self.assertEqual(self.client.get(self.summary_url()).status_code, 403)
        self.assertEqual(self.client.get("/api/v1/payouts/summaries/").status_code, 403)
