# kafala/tests/test_allocation.py

from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase

from kafala.services.allocation import (
    allocate_kafala_payment,
    apply_allocation_plan,
    reverse_allocation,
)
from kafala.services.allocation_plan import SOURCE_AUTO, AllocationPlan
from kafala.services.exceptions import (
    InstallmentNotFoundError,
    InvalidAmountError,
    NoActiveSponsorshipError,
    SponsorNotFoundError,
)
from kafala.services.recompute import recompute_sponsor
from kafala.tests.fakes import InMemoryKafalaStore

TODAY = date(2025, 6, 15)
JUNE = date(2025, 6, 1)
JULY = date(2025, 7, 1)


class AllocationTestMixin:
    """
    Sponsorships ending on July 1st are still active on TODAY and their
    schedule stops after June, so no horizon extension happens.
    """

    def make_store(self, pledge="600"):
        self.store = InMemoryKafalaStore()
        self.sponsor_id = self.store.add_sponsor(pledge)
        return self.store

    def add_june_only(self, *, amount_due="300", amount_paid="0.00"):
        sponsorship_id = self.store.add_sponsorship(self.sponsor_id, start_date=JUNE, end_date=JULY)
        installment_id = self.store.add_installment(
            sponsorship_id, JUNE, amount_due, amount_paid=amount_paid
        )
        return sponsorship_id, installment_id

    def allocate(self, amount, *, commit=True):
        return allocate_kafala_payment(
            sponsor_id=self.sponsor_id,
            amount=amount,
            commit=commit,
            store=self.store,
            today=TODAY,
        )


# ============================================================
# WORKED SCENARIOS
# ============================================================

class AllocationScenarioTests(AllocationTestMixin, SimpleTestCase):
    def setUp(self):
        self.make_store("600")

    def test_recompute_splits_pledge_over_two_beneficiaries(self):
        _, i1 = self.add_june_only(amount_due="600")
        _, i2 = self.add_june_only(amount_due="600")

        recompute_sponsor(sponsor_id=self.sponsor_id, store=self.store, today=TODAY)

        self.assertEqual(self.store.installments[i1]["amount_due"], Decimal("300.00"))
        self.assertEqual(self.store.installments[i2]["amount_due"], Decimal("300.00"))

    def test_full_payment_settles_both_installments(self):
        _, i1 = self.add_june_only()
        _, i2 = self.add_june_only()

        result = self.allocate("600")

        self.assertEqual(len(result.allocations), 2)
        self.assertEqual([line.amount_applied for line in result.allocations], [Decimal("300.00")] * 2)
        self.assertEqual(result.amount_remaining, Decimal("0.00"))
        self.assertEqual(result.installments_touched, 2)
        for installment_id in (i1, i2):
            row = self.store.installments[installment_id]
            self.assertEqual(row["amount_paid"], Decimal("300.00"))
            self.assertTrue(row["settled"])

    def test_partial_payment_is_split_equally(self):
        _, i1 = self.add_june_only()
        _, i2 = self.add_june_only()

        result = self.allocate("250")

        self.assertEqual(result.per_beneficiary_share, Decimal("125.00"))
        self.assertEqual(result.amount_remaining, Decimal("0.00"))
        for installment_id in (i1, i2):
            row = self.store.installments[installment_id]
            self.assertEqual(row["amount_paid"], Decimal("125.00"))
            self.assertFalse(row["settled"])

    def test_unapplied_share_is_reported_as_remaining(self):
        a = self.store.add_sponsorship(self.sponsor_id, start_date=date(2025, 5, 1), end_date=JULY)
        self.store.add_installment(a, date(2025, 5, 1), "300", amount_paid="300")
        self.store.add_installment(a, JUNE, "300", amount_paid="300")
        b, b_june = self.add_june_only()

        result = self.allocate("600")

        self.assertEqual(result.amount_remaining, Decimal("300.00"))
        self.assertEqual(result.amounts_by_beneficiary[self.store.beneficiary_of(a)], Decimal("0.00"))
        self.assertEqual(result.amounts_by_beneficiary[self.store.beneficiary_of(b)], Decimal("300.00"))
        self.assertEqual(self.store.installments[b_june]["amount_paid"], Decimal("300.00"))

    def test_reversal_restores_installments(self):
        _, i1 = self.add_june_only()
        _, i2 = self.add_june_only()
        result = self.allocate("600")
        payment_id = self.store.add_payment(result.to_plan().to_json())

        reversed_lines = reverse_allocation(payment_id=payment_id, store=self.store)

        self.assertEqual(reversed_lines, 2)
        for installment_id in (i1, i2):
            row = self.store.installments[installment_id]
            self.assertEqual(row["amount_paid"], Decimal("0.00"))
            self.assertFalse(row["settled"])


# ============================================================
# ALGORITHM PROPERTIES
# ============================================================

class AllocationBehaviourTests(AllocationTestMixin, SimpleTestCase):
    def setUp(self):
        self.make_store("600")

    def test_fifo_oldest_month_first(self):
        sponsorship_id = self.store.add_sponsorship(self.sponsor_id, start_date=date(2025, 4, 1))

        result = self.allocate("1500")

        self.assertEqual(
            [(line.month, line.amount_applied) for line in result.allocations],
            [
                (date(2025, 4, 1), Decimal("600.00")),
                (date(2025, 5, 1), Decimal("600.00")),
                (date(2025, 6, 1), Decimal("300.00")),
            ],
        )
        rows = self.store.installments_of(sponsorship_id)
        self.assertEqual([r["settled"] for r in rows[:3]], [True, True, False])

    def test_schedule_is_extended_to_horizon(self):
        sponsorship_id = self.store.add_sponsorship(self.sponsor_id, start_date=JUNE)
        self.store.add_installment(sponsorship_id, JUNE, "600")

        self.allocate("100")

        rows = self.store.installments_of(sponsorship_id)
        self.assertEqual(rows[0]["month"], JUNE)
        self.assertEqual(rows[-1]["month"], date(2026, 5, 1))
        self.assertEqual(len(rows), 12)

    def test_equal_split_without_shortfall(self):
        a = self.store.add_sponsorship(self.sponsor_id, start_date=JUNE)
        b = self.store.add_sponsorship(self.sponsor_id, start_date=JUNE)

        result = self.allocate("900")

        self.assertEqual(result.amounts_by_beneficiary[self.store.beneficiary_of(a)], Decimal("450.00"))
        self.assertEqual(result.amounts_by_beneficiary[self.store.beneficiary_of(b)], Decimal("450.00"))
        self.assertEqual(result.monthly_share, Decimal("300.00"))

    def test_rounded_shares_never_exceed_amount(self):
        self.store.sponsors[self.sponsor_id]["pledge_value"] = Decimal("900.00")
        for _ in range(3):
            self.store.add_sponsorship(self.sponsor_id, start_date=JUNE)

        result = self.allocate("1000.01")

        self.assertEqual(result.per_beneficiary_share, Decimal("333.34"))
        self.assertEqual(result.total_applied, Decimal("1000.01"))
        self.assertEqual(result.amount_remaining, Decimal("0.00"))
        self.assertEqual(self.store.total_paid(), Decimal("1000.01"))

    def test_conservation(self):
        self.add_june_only()
        self.add_june_only(amount_paid="100")

        result = self.allocate("700")

        self.assertEqual(result.total_applied, result.amount - result.amount_remaining)
        self.assertGreaterEqual(result.amount_remaining, Decimal("0.00"))
        self.assertEqual(result.amount_remaining, Decimal("200.00"))
        self.assertEqual(self.store.total_paid(), Decimal("600.00"))

    def test_preview_changes_no_paid_amount(self):
        _, i1 = self.add_june_only()
        _, i2 = self.add_june_only()

        result = self.allocate("600", commit=False)

        self.assertFalse(result.committed)
        self.assertEqual(len(result.allocations), 2)
        self.assertEqual(self.store.total_paid(), Decimal("0.00"))
        self.assertFalse(self.store.installments[i1]["settled"])
        self.assertFalse(self.store.installments[i2]["settled"])
        self.assertEqual(self.store.locked, [])

    def test_commit_locks_open_installments(self):
        _, i1 = self.add_june_only()

        self.allocate("100")

        self.assertIn(i1, self.store.locked)

    def test_plan_round_trips_through_json(self):
        self.add_june_only()
        self.add_june_only()
        result = self.allocate("600")

        plan = AllocationPlan.from_json(result.to_plan().to_json())

        self.assertEqual(plan.source, SOURCE_AUTO)
        self.assertEqual(plan.total_applied, Decimal("600.00"))
        self.assertEqual(list(plan.lines), result.allocations)

    def test_closed_sponsorship_is_ignored(self):
        self.store.add_sponsorship(self.sponsor_id, start_date=date(2024, 1, 1), end_date=TODAY)
        _, june = self.add_june_only(amount_due="600")

        result = self.allocate("600")

        self.assertEqual(len(result.allocations), 1)
        self.assertTrue(self.store.installments[june]["settled"])


# ============================================================
# ERRORS / ATOMICITY
# ============================================================

class FailingStore(InMemoryKafalaStore):
    """Raises on the N-th installment write."""

    def __init__(self, fail_on):
        super().__init__()
        self.fail_on = fail_on
        self.writes = 0

    def update_installment(self, installment_id, **fields):
        self.writes += 1
        if self.writes == self.fail_on:
            raise RuntimeError("connection lost")
        super().update_installment(installment_id, **fields)


class AllocationErrorTests(AllocationTestMixin, SimpleTestCase):
    def setUp(self):
        self.make_store("600")

    def test_invalid_amounts(self):
        self.add_june_only()
        for bad in (None, "0", "-5", "abc"):
            with self.subTest(amount=bad):
                with self.assertRaises(InvalidAmountError):
                    self.allocate(bad)

    def test_unknown_sponsor(self):
        with self.assertRaises(SponsorNotFoundError):
            allocate_kafala_payment(sponsor_id="missing", amount="10", store=self.store, today=TODAY)

    def test_no_active_sponsorship(self):
        ended = self.store.add_sponsorship(self.sponsor_id, start_date=date(2024, 1, 1), end_date=TODAY)
        row = self.store.add_installment(ended, date(2025, 5, 1), "600")

        with self.assertRaises(NoActiveSponsorshipError):
            self.allocate("600")

        self.assertEqual(self.store.installments[row]["amount_paid"], Decimal("0.00"))
        self.assertEqual(len(self.store.installments), 1)

    def test_failure_mid_commit_rolls_back_everything(self):
        self.store = FailingStore(fail_on=2)
        self.sponsor_id = self.store.add_sponsor("600")
        _, i1 = self.add_june_only()
        _, i2 = self.add_june_only()

        with self.assertRaises(RuntimeError):
            self.allocate("600")

        self.assertEqual(self.store.rollbacks, 1)
        self.assertEqual(self.store.total_paid(), Decimal("0.00"))
        self.assertFalse(self.store.installments[i1]["settled"])


# ============================================================
# OVERRIDE + REVERSAL
# ============================================================

class AllocationPlanApplyTests(AllocationTestMixin, SimpleTestCase):
    def setUp(self):
        self.make_store("600")
        _, self.i1 = self.add_june_only()
        _, self.i2 = self.add_june_only()

    def test_edited_plan_is_applied_as_given(self):
        applied = apply_allocation_plan(
            lines=[
                {"installment_id": self.i1, "amount_applied": "300"},
                {"installment_id": self.i2, "amount_applied": "50"},
            ],
            store=self.store,
        )

        self.assertEqual(applied, 2)
        self.assertTrue(self.store.installments[self.i1]["settled"])
        self.assertEqual(self.store.installments[self.i2]["amount_paid"], Decimal("50.00"))
        self.assertFalse(self.store.installments[self.i2]["settled"])

    def test_missing_installment_aborts_whole_plan(self):
        with self.assertRaises(InstallmentNotFoundError):
            apply_allocation_plan(
                lines=[
                    {"installment_id": self.i1, "amount_applied": "300"},
                    {"installment_id": "installment-gone", "amount_applied": "300"},
                ],
                store=self.store,
            )

        self.assertEqual(self.store.installments[self.i1]["amount_paid"], Decimal("0.00"))
        self.assertEqual(self.store.rollbacks, 1)

    def test_reverse_never_goes_negative(self):
        self.store.installments[self.i1]["amount_paid"] = Decimal("100.00")
        payment_id = self.store.add_payment(
            {
                "version": 1,
                "source": "edited",
                "lines": [{"installment_id": self.i1, "amount_applied": "250"}],
            }
        )

        reverse_allocation(payment_id=payment_id, store=self.store)

        self.assertEqual(self.store.installments[self.i1]["amount_paid"], Decimal("0.00"))

    def test_reverse_recomputes_settled(self):
        self.store.installments[self.i1].update(amount_paid=Decimal("400.00"), settled=True)
        payment_id = self.store.add_payment(
            [{"installment_id": self.i1, "amount_applied": "50"}]
        )

        reverse_allocation(payment_id=payment_id, store=self.store)

        row = self.store.installments[self.i1]
        self.assertEqual(row["amount_paid"], Decimal("350.00"))
        self.assertTrue(row["settled"])

    def test_legacy_payment_reverses_nothing(self):
        payment_id = self.store.add_payment(None)

        self.assertEqual(reverse_allocation(payment_id=payment_id, store=self.store), 0)

    def test_round_trip_restores_previous_state(self):
        self.store.installments[self.i2]["amount_paid"] = Decimal("120.00")
        before = {k: dict(v) for k, v in self.store.installments.items()}

        result = self.allocate("500")
        payment_id = self.store.add_payment(result.to_plan().to_json())
        reverse_allocation(payment_id=payment_id, store=self.store)

        self.assertEqual(self.store.installments, before)
