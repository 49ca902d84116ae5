# reporting/tests/test_dashboard.py

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from kafala.tests.factories import (
    make_beneficiary,
    make_guardian,
    make_installment,
    make_sponsor,
    make_sponsorship,
)
from payments.models import Payment, PaymentType
from payments.services.payment_service import create_payment
from reporting.services.dashboard_service import collections_by_due_month, get_dashboard_kpis

User = get_user_model()

TODAY = date(2025, 6, 15)
JUNE = date(2025, 6, 1)
JULY = date(2025, 7, 1)


def _series(rows, month):
    return next(row for row in rows if row["month"] == month)


class DashboardKpiTests(TestCase):
    """
    Sponsor A: two active beneficiaries, June due 300 each, paid in full on TODAY,
    plus one legacy payment (no plan) and one with an unreadable plan.
    Sponsor B: ended sponsorship with a November 2024 installment still open.
    """

    def setUp(self):
        guardian = make_guardian()
        self.sponsor_a = make_sponsor("600.00", last_name="Bennani")
        self.sponsor_b = make_sponsor("200.00", last_name="Tazi")

        b1 = make_beneficiary(guardian, first_name="Amine")
        b2 = make_beneficiary(guardian, first_name="Salma")
        b3 = make_beneficiary(guardian, first_name="Hamza", birth_date=date(2007, 5, 1))

        s1 = make_sponsorship(self.sponsor_a, b1, start_date=JUNE, end_date=JULY)
        s2 = make_sponsorship(self.sponsor_a, b2, start_date=JUNE, end_date=JULY)
        make_installment(s1, JUNE, "300")
        make_installment(s2, JUNE, "300")

        old = make_sponsorship(self.sponsor_b, b3, start_date=date(2024, 11, 1), end_date=date(2024, 12, 1))
        make_installment(old, date(2024, 11, 1), "200")

        create_payment(sponsor_id=self.sponsor_a.id, amount="600", today=TODAY)
        Payment.objects.create(
            payment_type=PaymentType.KAFALA,
            sponsor=self.sponsor_a,
            amount=Decimal("100.00"),
            payment_date=date(2025, 5, 10),
            allocation=None,
        )
        Payment.objects.create(
            payment_type=PaymentType.KAFALA,
            sponsor=self.sponsor_a,
            amount=Decimal("50.00"),
            payment_date=date(2025, 4, 2),
            allocation={"version": 9, "lines": []},
        )

    def test_collections_are_booked_on_due_month(self):
        collected = collections_by_due_month()

        self.assertEqual(collected["2025-06"], Decimal("600.00"))
        self.assertEqual(collected["2025-05"], Decimal("100.00"))
        self.assertEqual(collected["2025-04"], Decimal("50.00"))

    def test_kpis(self):
        kpis = get_dashboard_kpis(today=TODAY)

        self.assertEqual(kpis["as_of_date"], "2025-06-15")
        self.assertEqual(kpis["sponsor_count"], 2)
        self.assertEqual(kpis["beneficiary_count"], 3)
        self.assertEqual(kpis["guardian_count"], 1)
        self.assertEqual(kpis["age_alerts"], 1)
        self.assertEqual(kpis["kafala_received_this_month"], 600.0)
        self.assertEqual(kpis["kafala_expected_this_month"], 600.0)
        self.assertEqual(kpis["sponsors_in_arrears"], 1)
        self.assertEqual(kpis["active_vs_inactive_sponsors"], {"active": 1, "inactive": 1})
        self.assertEqual(kpis["average_pledge_active_sponsors"], 600.0)
        self.assertEqual(kpis["monthly_payment_rate"], 100.0)
        self.assertEqual(kpis["recovery_rate"], 93.75)

    def test_monthly_series(self):
        kpis = get_dashboard_kpis(today=TODAY)

        self.assertEqual(len(kpis["expected_dues_by_month"]), 24)
        self.assertEqual(len(kpis["collected_by_due_month"]), 12)
        self.assertEqual(_series(kpis["expected_dues_by_month"], "2025-06")["amount"], 600.0)
        self.assertEqual(_series(kpis["collected_by_due_month"], "2025-05")["amount"], 100.0)
        self.assertEqual(_series(kpis["overdue_installments_by_month"], "2024-11")["count"], 1)
        self.assertEqual(_series(kpis["overdue_installments_by_month"], "2025-06")["count"], 0)

    def test_top_sponsors_and_ages(self):
        kpis = get_dashboard_kpis(today=TODAY)

        self.assertEqual(kpis["top_sponsors"][0]["sponsor_id"], str(self.sponsor_a.id))
        self.assertEqual(kpis["top_sponsors"][0]["total_amount"], 750.0)
        self.assertEqual(
            {row["bracket"]: row["count"] for row in kpis["age_distribution"]},
            {"0-5": 0, "6-10": 2, "11-15": 0, "16-18": 1},
        )


class DashboardApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="manager", password="password123")

    def test_requires_authentication(self):
        response = self.client.get(reverse("dashboard"))
        self.assertEqual(response.status_code, 401)

    def test_snapshot_date(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.get(reverse("dashboard"), {"as_of_date": "2025-06-15"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["as_of_date"], "2025-06-15")
        self.assertEqual(response.data["sponsor_count"], 0)
        self.assertEqual(response.data["recovery_rate"], 0.0)

    def test_invalid_snapshot_date(self):
        self.client.force_authenticate(user=self.user)

        for bad in ("15/06/2025", "2025-13-40"):
            with self.subTest(value=bad):
                response = self.client.get(reverse("dashboard"), {"as_of_date": bad})
                self.assertEqual(response.status_code, 400)
