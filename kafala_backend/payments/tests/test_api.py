# payments/tests/test_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from kafala.services.activity import current_date
from kafala.services.schedule import add_months, first_of_month
from kafala.tests.factories import (
    make_beneficiary,
    make_guardian,
    make_installment,
    make_sponsor,
    make_sponsorship,
)
from payments.models import Payment
from sponsorships.models import Installment

User = get_user_model()


class PaymentApiTests(TestCase):
    """
    GUARANTEES:
    - preview never moves money
    - create answers with allocation_stats
    - delete reverses the allocation
    """

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="cashier", password="password123")
        self.client.force_authenticate(user=self.user)

        this_month = first_of_month(current_date())
        next_month = add_months(this_month, 1)

        self.guardian = make_guardian()
        self.sponsor = make_sponsor("600.00")
        self.b1 = make_beneficiary(self.guardian, first_name="Amine")
        self.b2 = make_beneficiary(self.guardian, first_name="Salma")
        s1 = make_sponsorship(self.sponsor, self.b1, start_date=this_month, end_date=next_month)
        s2 = make_sponsorship(self.sponsor, self.b2, start_date=this_month, end_date=next_month)
        self.i1 = make_installment(s1, this_month, "300")
        self.i2 = make_installment(s2, this_month, "300")

    def post_payment(self, **payload):
        data = {"payment_type": "KAFALA", "sponsor_id": str(self.sponsor.id), "amount": "600.00"}
        data.update(payload)
        return self.client.post(reverse("payments"), data, format="json")

    def paid(self, row):
        return Installment.objects.get(pk=row.pk).amount_paid

    # =====================================================
    # PREVIEW
    # =====================================================

    def test_preview(self):
        response = self.client.post(
            reverse("payment-preview"),
            {"sponsor_id": str(self.sponsor.id), "amount": "600.00"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data["allocations"]), 2)
        self.assertEqual(response.data["amount_remaining"], "0.00")
        self.assertEqual(self.paid(self.i1), Decimal("0.00"))

    def test_preview_without_active_sponsorship_is_422(self):
        lonely = make_sponsor("100.00", last_name="Tazi")

        response = self.client.post(
            reverse("payment-preview"),
            {"sponsor_id": str(lonely.id), "amount": "100.00"},
            format="json",
        )

        self.assertEqual(response.status_code, 422)

    def test_preview_rejects_non_positive_amount(self):
        response = self.client.post(
            reverse("payment-preview"),
            {"sponsor_id": str(self.sponsor.id), "amount": "0"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    def test_preview_unknown_sponsor_is_404(self):
        response = self.client.post(
            reverse("payment-preview"),
            {"sponsor_id": "00000000-0000-0000-0000-000000000000", "amount": "10.00"},
            format="json",
        )
        self.assertEqual(response.status_code, 404)

    # =====================================================
    # CREATE
    # =====================================================

    def test_create_kafala_payment(self):
        response = self.post_payment()

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["allocation_stats"]["beneficiaries"], 2)
        self.assertEqual(response.data["allocation_stats"]["amount_remaining"], "0.00")
        self.assertEqual(response.data["allocation"]["source"], "auto")
        self.assertEqual(self.paid(self.i1), Decimal("300.00"))
        self.assertEqual(self.paid(self.i2), Decimal("300.00"))

    def test_create_with_edited_allocation(self):
        response = self.post_payment(
            amount="300.00",
            allocation=[{"installment_id": str(self.i2.id), "amount_applied": "300.00"}],
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["allocation_stats"]["source"], "edited")
        self.assertEqual(self.paid(self.i1), Decimal("0.00"))
        self.assertEqual(self.paid(self.i2), Decimal("300.00"))

    def test_edited_allocation_with_unknown_installment_is_404(self):
        response = self.post_payment(
            allocation=[
                {"installment_id": str(self.i1.id), "amount_applied": "100.00"},
                {"installment_id": "00000000-0000-0000-0000-000000000000", "amount_applied": "100.00"},
            ],
        )

        self.assertEqual(response.status_code, 404)
        self.assertEqual(self.paid(self.i1), Decimal("0.00"))
        self.assertFalse(Payment.objects.exists())

    def test_kafala_payment_rejects_beneficiary(self):
        response = self.post_payment(beneficiary_id=str(self.b1.id))
        self.assertEqual(response.status_code, 400)

    def test_kafala_payment_requires_sponsor(self):
        response = self.post_payment(sponsor_id=None)
        self.assertEqual(response.status_code, 400)

    def test_list_filtered_by_sponsor(self):
        self.post_payment()
        other = make_sponsor("100.00", last_name="Tazi")

        mine = self.client.get(reverse("payments"), {"sponsor": str(self.sponsor.id)})
        theirs = self.client.get(reverse("payments"), {"sponsor": str(other.id)})

        self.assertEqual(mine.data["count"], 1)
        self.assertEqual(mine.data["results"][0]["sponsor_name"], self.sponsor.full_name)
        self.assertEqual(theirs.data["count"], 0)

    # =====================================================
    # DELETE
    # =====================================================

    def test_delete_reverses_payment(self):
        created = self.post_payment()

        response = self.client.delete(reverse("payment-detail", args=[created.data["id"]]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["reversed_lines"], 2)
        self.assertEqual(self.paid(self.i1), Decimal("0.00"))
        self.assertFalse(Payment.objects.exists())

    def test_delete_unknown_payment_is_404(self):
        response = self.client.delete(
            reverse("payment-detail", args=["00000000-0000-0000-0000-000000000000"])
        )
        self.assertEqual(response.status_code, 404)


class ReceiptTransferApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="clerk", password="password123")
        self.client.force_authenticate(user=self.user)
        self.guardian = make_guardian()
        self.beneficiary = make_beneficiary(self.guardian)
        self.sponsor = make_sponsor("400.00")

    def test_create_receipt(self):
        response = self.client.post(
            reverse("receipts"),
            {
                "number": "R-2025-001",
                "sponsor": str(self.sponsor.id),
                "total": "1200.00",
                "payment_type": "KAFALA",
            },
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["sponsor_name"], self.sponsor.full_name)

    def test_receipt_total_must_be_positive(self):
        response = self.client.post(
            reverse("receipts"),
            {"number": "R-2", "total": "0", "payment_type": "OTHER"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    def test_create_transfer(self):
        response = self.client.post(
            reverse("transfers"),
            {
                "guardian": str(self.guardian.id),
                "beneficiary": str(self.beneficiary.id),
                "sponsor": str(self.sponsor.id),
                "pledge_value": "400.00",
                "months": 3,
            },
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["total_amount"], "1200.00")
