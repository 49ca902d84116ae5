# payments/tests/test_payment_service.py

import uuid
from datetime import date
from decimal import Decimal

from django.test import TestCase

from kafala.services.allocation_plan import AllocationPlan
from kafala.services.exceptions import (
    InvalidAllocationPlanError,
    InvalidAmountError,
    NoActiveSponsorshipError,
    PaymentNotFoundError,
    PaymentTypeRuleError,
)
from kafala.tests.factories import (
    make_beneficiary,
    make_guardian,
    make_installment,
    make_sponsor,
    make_sponsorship,
)
from payments.models import Payment, PaymentType
from payments.services.payment_service import (
    create_payment,
    delete_payment,
    preview_kafala_payment,
)
from sponsorships.models import Installment

TODAY = date(2025, 6, 15)
JUNE = date(2025, 6, 1)
JULY = date(2025, 7, 1)
AUGUST = date(2025, 8, 1)


class PaymentServiceTestCase(TestCase):
    """
    Two beneficiaries of one sponsor, each with a single June installment.
    Both sponsorships end on July 1st: active on TODAY, no horizon extension.
    """

    def setUp(self):
        self.guardian = make_guardian()
        self.sponsor = make_sponsor("600.00")
        self.b1 = make_beneficiary(self.guardian, first_name="Amine")
        self.b2 = make_beneficiary(self.guardian, first_name="Salma")
        self.s1 = make_sponsorship(self.sponsor, self.b1, start_date=JUNE, end_date=JULY)
        self.s2 = make_sponsorship(self.sponsor, self.b2, start_date=JUNE, end_date=JULY)
        self.i1 = make_installment(self.s1, JUNE, "300")
        self.i2 = make_installment(self.s2, JUNE, "300")

    def installment(self, row):
        return Installment.objects.get(pk=row.pk)


class KafalaPaymentTests(PaymentServiceTestCase):
    def test_auto_allocation_is_persisted_on_payment(self):
        outcome = create_payment(sponsor_id=self.sponsor.id, amount="600", today=TODAY)

        payment = Payment.objects.get(pk=outcome.payment.pk)
        plan = AllocationPlan.from_json(payment.allocation)
        self.assertEqual(plan.source, "auto")
        self.assertEqual(len(plan.lines), 2)
        self.assertEqual(payment.payment_date, TODAY)
        self.assertTrue(self.installment(self.i1).settled)
        self.assertTrue(self.installment(self.i2).settled)
        self.assertEqual(
            outcome.allocation_stats,
            {
                "beneficiaries": 2,
                "installments": 2,
                "amount_applied": "600.00",
                "amount_remaining": "0.00",
                "source": "auto",
            },
        )

    def test_partial_amount(self):
        create_payment(sponsor_id=self.sponsor.id, amount="250", today=TODAY)

        for row in (self.i1, self.i2):
            refreshed = self.installment(row)
            self.assertEqual(refreshed.amount_paid, Decimal("125.00"))
            self.assertFalse(refreshed.settled)

    def test_edited_plan_is_applied_as_given(self):
        outcome = create_payment(
            sponsor_id=self.sponsor.id,
            amount="600",
            allocation=[{"installment_id": str(self.i1.id), "amount_applied": "200.00"}],
            today=TODAY,
        )

        self.assertEqual(outcome.plan.source, "edited")
        self.assertEqual(self.installment(self.i1).amount_paid, Decimal("200.00"))
        self.assertEqual(self.installment(self.i2).amount_paid, Decimal("0.00"))
        self.assertEqual(outcome.allocation_stats["amount_remaining"], "400.00")

    def test_edited_plan_cannot_exceed_amount(self):
        with self.assertRaises(InvalidAllocationPlanError):
            create_payment(
                sponsor_id=self.sponsor.id,
                amount="100",
                allocation=[{"installment_id": str(self.i1.id), "amount_applied": "200.00"}],
                today=TODAY,
            )
        self.assertFalse(Payment.objects.exists())

    def test_edited_plan_cannot_pay_another_sponsors_installment(self):
        other = make_sponsor("600.00", last_name="Tazi")
        foreign = make_installment(
            make_sponsorship(other, make_beneficiary(self.guardian, first_name="Omar"), start_date=JUNE, end_date=JULY),
            JUNE,
            "600",
        )

        with self.assertRaises(InvalidAllocationPlanError):
            create_payment(
                sponsor_id=self.sponsor.id,
                amount="600",
                allocation=[
                    {"installment_id": str(self.i1.id), "amount_applied": "100.00"},
                    {"installment_id": str(foreign.id), "amount_applied": "500.00"},
                ],
                today=TODAY,
            )

        self.assertFalse(Payment.objects.exists())
        self.assertEqual(self.installment(foreign).amount_paid, Decimal("0.00"))
        self.assertFalse(self.installment(foreign).settled)
        self.assertEqual(self.installment(self.i1).amount_paid, Decimal("0.00"))

    def test_empty_edited_plan_is_refused(self):
        with self.assertRaises(InvalidAllocationPlanError):
            create_payment(sponsor_id=self.sponsor.id, amount="100", allocation=[], today=TODAY)

    def test_kafala_reference_rules(self):
        with self.assertRaises(PaymentTypeRuleError):
            create_payment(amount="100", today=TODAY)
        with self.assertRaises(PaymentTypeRuleError):
            create_payment(sponsor_id=self.sponsor.id, beneficiary_id=self.b1.id, amount="100", today=TODAY)

    def test_invalid_amount(self):
        for bad in ("0", "-10", "abc"):
            with self.subTest(amount=bad):
                with self.assertRaises(InvalidAmountError):
                    create_payment(sponsor_id=self.sponsor.id, amount=bad, today=TODAY)

    def test_no_active_sponsorship_creates_nothing(self):
        lonely = make_sponsor("100.00", last_name="Tazi")

        with self.assertRaises(NoActiveSponsorshipError):
            create_payment(sponsor_id=lonely.id, amount="100", today=TODAY)

        self.assertFalse(Payment.objects.exists())


class OtherPaymentTests(PaymentServiceTestCase):
    def test_single_beneficiary_fifo(self):
        sponsorship = make_sponsorship(
            make_sponsor("300.00", last_name="Tazi"),
            make_beneficiary(self.guardian, first_name="Omar"),
            start_date=JUNE,
            end_date=AUGUST,
        )
        june = make_installment(sponsorship, JUNE, "300")
        july = make_installment(sponsorship, JULY, "300")

        outcome = create_payment(
            payment_type=PaymentType.OTHER,
            sponsor_id=sponsorship.sponsor_id,
            beneficiary_id=sponsorship.beneficiary_id,
            amount="450",
            today=TODAY,
        )

        self.assertEqual(outcome.plan.source, "fifo")
        self.assertTrue(self.installment(june).settled)
        self.assertEqual(self.installment(july).amount_paid, Decimal("150.00"))

    def test_plain_payment_has_no_plan(self):
        outcome = create_payment(
            payment_type=PaymentType.SCHOOL_GRANT,
            guardian_id=self.guardian.id,
            amount="150",
            today=TODAY,
        )

        self.assertIsNone(outcome.payment.allocation)
        self.assertIsNone(outcome.allocation_stats)

    def test_allocation_only_for_kafala(self):
        with self.assertRaises(PaymentTypeRuleError):
            create_payment(
                payment_type=PaymentType.OTHER,
                guardian_id=self.guardian.id,
                amount="150",
                allocation=[{"installment_id": str(self.i1.id), "amount_applied": "1"}],
                today=TODAY,
            )


class PreviewAndDeleteTests(PaymentServiceTestCase):
    def test_preview_is_enriched_and_moves_no_money(self):
        preview = preview_kafala_payment(sponsor_id=self.sponsor.id, amount="400", today=TODAY)

        self.assertEqual(preview["amount_total"], "400.00")
        self.assertEqual(preview["amount_remaining"], "0.00")
        self.assertEqual(preview["installments_touched"], 2)
        first = next(line for line in preview["allocations"] if line["beneficiary_id"] == str(self.b1.id))
        self.assertEqual(first["beneficiary_first_name"], "Amine")
        self.assertEqual(first["amount_due"], "300.00")
        self.assertEqual(first["amount_paid_before"], "0.00")
        self.assertEqual(first["amount_remaining_after"], "100.00")
        self.assertEqual(self.installment(self.i1).amount_paid, Decimal("0.00"))

    def test_delete_reverses_allocation(self):
        outcome = create_payment(sponsor_id=self.sponsor.id, amount="600", today=TODAY)

        reversed_lines = delete_payment(payment_id=outcome.payment.id)

        self.assertEqual(reversed_lines, 2)
        self.assertFalse(Payment.objects.exists())
        for row in (self.i1, self.i2):
            refreshed = self.installment(row)
            self.assertEqual(refreshed.amount_paid, Decimal("0.00"))
            self.assertFalse(refreshed.settled)

    def test_delete_legacy_payment(self):
        payment = Payment.objects.create(sponsor=self.sponsor, amount=Decimal("50.00"), allocation=None)

        self.assertEqual(delete_payment(payment_id=payment.id), 0)
        self.assertFalse(Payment.objects.exists())

    def test_delete_unknown_payment(self):
        with self.assertRaises(PaymentNotFoundError):
            delete_payment(payment_id=uuid.uuid4())
