# payments/services/payment_service.py

"""
PAYMENT LIFECYCLE SERVICE

create_payment() picks ONE allocation path:

1) KAFALA, no plan given        -> allocate_kafala_payment(commit=True)   source "auto"
2) KAFALA, edited plan given    -> apply_allocation_plan(plan)           source "edited"
3) other type, sponsor + beneficiary with an active sponsorship
                                -> single-beneficiary FIFO              source "fifo"
4) anything else                -> plain payment, allocation NULL

The resulting plan is persisted on Payment.allocation in the same transaction
as the installment mutations. delete_payment() reverses that plan before the
row disappears.

All validation happens before the first write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from django.db import transaction

from beneficiaries.models import Beneficiary, Guardian
from kafala.services.activity import active_q, current_date
from kafala.services.allocation import (
    AllocationResult,
    allocate_kafala_payment,
    apply_allocation_plan,
    reverse_allocation,
)
from kafala.services.allocation_plan import (
    SOURCE_EDITED,
    SOURCE_FIFO,
    AllocationLine,
    AllocationPlan,
)
from kafala.services.exceptions import (
    BeneficiaryNotFoundError,
    InvalidAllocationPlanError,
    InvalidAmountError,
    KafalaNotFoundError,
    PaymentNotFoundError,
    PaymentTypeRuleError,
    SponsorNotFoundError,
)
from kafala.services.legacy_fifo import allocate_single_beneficiary_fifo
from kafala.services.money import ZERO, money
from kafala.services.store import KafalaStore, get_default_store
from payments.models import Payment, PaymentType, Receipt
from sponsorships.models import Installment, Sponsor, Sponsorship

logger = logging.getLogger("kafala.payments")


@dataclass
class PaymentOutcome:
    payment: Payment
    plan: AllocationPlan | None = None

    @property
    def allocation_stats(self) -> dict | None:
        if self.plan is None:
            return None
        return {
            "beneficiaries": len([k for k in self.plan.amounts_by_beneficiary() if k]),
            "installments": len(self.plan.installment_ids),
            "amount_applied": str(self.plan.total_applied),
            "amount_remaining": str(self.payment.amount - self.plan.total_applied),
            "source": self.plan.source,
        }


def _positive_amount(amount) -> Decimal:
    try:
        amt = money(amount)
    except ValueError as exc:
        raise InvalidAmountError(str(exc)) from exc
    if amt <= ZERO:
        logger.error("Invalid payment amount", extra={"amount": str(amount)})
        raise InvalidAmountError("Amount must be > 0")
    return amt


def _check_references(*, payment_type, sponsor_id, beneficiary_id, guardian_id, receipt_id) -> None:
    if payment_type not in PaymentType.values:
        raise PaymentTypeRuleError(f"Unknown payment type: {payment_type!r}")

    if payment_type == PaymentType.KAFALA:
        if not sponsor_id:
            raise PaymentTypeRuleError("A sponsor is required for a KAFALA payment")
        if beneficiary_id or guardian_id:
            raise PaymentTypeRuleError(
                "Beneficiary and guardian are not allowed on a KAFALA payment"
            )

    if sponsor_id and not Sponsor.objects.filter(pk=sponsor_id).exists():
        logger.error("Sponsor not found during payment", extra={"sponsor_id": str(sponsor_id)})
        raise SponsorNotFoundError(f"Sponsor {sponsor_id} not found")

    if beneficiary_id and not Beneficiary.objects.filter(pk=beneficiary_id).exists():
        logger.error("Beneficiary not found during payment", extra={"beneficiary_id": str(beneficiary_id)})
        raise BeneficiaryNotFoundError(f"Beneficiary {beneficiary_id} not found")

    if guardian_id and not Guardian.objects.filter(pk=guardian_id).exists():
        logger.error("Guardian not found during payment", extra={"guardian_id": str(guardian_id)})
        raise KafalaNotFoundError(f"Guardian {guardian_id} not found")

    if receipt_id and not Receipt.objects.filter(pk=receipt_id).exists():
        logger.error("Receipt not found during payment", extra={"receipt_id": str(receipt_id)})
        raise KafalaNotFoundError(f"Receipt {receipt_id} not found")


def _edited_plan(lines, *, sponsor_id, amount: Decimal) -> AllocationPlan:
    plan = AllocationPlan.from_lines(lines, source=SOURCE_EDITED)
    if not plan.lines:
        raise InvalidAllocationPlanError("An edited allocation must contain at least one line")
    if plan.total_applied > amount:
        raise InvalidAllocationPlanError(
            f"Allocation total {plan.total_applied} exceeds payment amount {amount}"
        )

    # unknown ids are left to apply_allocation_plan (404)
    foreign = sorted(
        str(pk)
        for pk in Installment.objects.filter(pk__in=plan.installment_ids)
        .exclude(sponsorship__sponsor_id=sponsor_id)
        .values_list("id", flat=True)
    )
    if foreign:
        logger.warning(
            "Edited allocation targets another sponsor",
            extra={"sponsor_id": str(sponsor_id), "installment_ids": foreign},
        )
        raise InvalidAllocationPlanError(
            f"Installments not owned by sponsor {sponsor_id}: {', '.join(foreign)}"
        )
    return plan


def _fifo_plan(*, sponsor_id, beneficiary_id, amount: Decimal, store: KafalaStore, today: date) -> AllocationPlan | None:
    sponsorship = (
        Sponsorship.objects.filter(sponsor_id=sponsor_id, beneficiary_id=beneficiary_id)
        .filter(active_q(today=today))
        .order_by("-start_date")
        .first()
    )
    if sponsorship is None:
        return None

    open_installments = store.find_open_installments(sponsorship.id, for_update=True)
    if not open_installments:
        return None

    lines = [
        AllocationLine(
            installment_id=line.installment_id,
            amount_applied=line.amount_applied,
            beneficiary_id=str(beneficiary_id),
            sponsorship_id=str(sponsorship.id),
            month=line.month,
        )
        for line in allocate_single_beneficiary_fifo(amount, open_installments)
    ]
    if not lines:
        return None
    return AllocationPlan(lines=tuple(lines), source=SOURCE_FIFO)


@transaction.atomic
def create_payment(
    *,
    payment_type: str = PaymentType.KAFALA,
    amount,
    payment_date: date | None = None,
    sponsor_id=None,
    beneficiary_id=None,
    guardian_id=None,
    receipt_id=None,
    allocation=None,
    store: KafalaStore | None = None,
    today: date | None = None,
) -> PaymentOutcome:
    """
    CREATE PAYMENT (atomic)

    `allocation` is an optional list of edited lines (from a preview). Only
    accepted on KAFALA payments.

    Raises:
        InvalidAmountError, PaymentTypeRuleError, InvalidAllocationPlanError
        SponsorNotFoundError, BeneficiaryNotFoundError, KafalaNotFoundError
        NoActiveSponsorshipError (KAFALA auto path)
        InstallmentNotFoundError (edited plan referencing a missing installment)
    """
    store = store or get_default_store()
    today = today or current_date()

    logger.info(
        "Initiating payment",
        extra={
            "payment_type": payment_type,
            "sponsor_id": str(sponsor_id) if sponsor_id else None,
            "amount": str(amount),
            "edited": allocation is not None,
        },
    )

    amt = _positive_amount(amount)
    _check_references(
        payment_type=payment_type,
        sponsor_id=sponsor_id,
        beneficiary_id=beneficiary_id,
        guardian_id=guardian_id,
        receipt_id=receipt_id,
    )

    if allocation is not None and payment_type != PaymentType.KAFALA:
        raise PaymentTypeRuleError("An allocation plan can only be supplied for a KAFALA payment")

    plan: AllocationPlan | None = None

    if payment_type == PaymentType.KAFALA:
        if allocation is not None:
            plan = _edited_plan(allocation, sponsor_id=sponsor_id, amount=amt)
            apply_allocation_plan(lines=plan.lines, store=store)
        else:
            result: AllocationResult = allocate_kafala_payment(
                sponsor_id=sponsor_id,
                amount=amt,
                commit=True,
                store=store,
                today=today,
            )
            plan = result.to_plan()

    elif sponsor_id and beneficiary_id:
        plan = _fifo_plan(
            sponsor_id=sponsor_id,
            beneficiary_id=beneficiary_id,
            amount=amt,
            store=store,
            today=today,
        )
        if plan is not None:
            apply_allocation_plan(lines=plan.lines, store=store)

    payment = Payment.objects.create(
        payment_type=payment_type,
        amount=amt,
        payment_date=payment_date or today,
        sponsor_id=sponsor_id,
        beneficiary_id=beneficiary_id,
        guardian_id=guardian_id,
        receipt_id=receipt_id,
        allocation=plan.to_json() if plan is not None else None,
    )

    logger.info(
        "Payment created",
        extra={
            "payment_id": str(payment.id),
            "payment_type": payment_type,
            "amount": str(amt),
            "source": plan.source if plan else None,
            "lines": len(plan.lines) if plan else 0,
        },
    )
    return PaymentOutcome(payment=payment, plan=plan)


def preview_kafala_payment(
    *,
    sponsor_id,
    amount,
    store: KafalaStore | None = None,
    today: date | None = None,
) -> dict:
    """
    Preview an automatic KAFALA allocation, enriched for display:
    beneficiary names and, per line, amount_due / amount_paid_before /
    amount_remaining_after.

    Nothing receives money. The schedule may still be extended to the horizon.
    """
    amt = _positive_amount(amount)
    result = allocate_kafala_payment(
        sponsor_id=sponsor_id,
        amount=amt,
        commit=False,
        store=store,
        today=today,
    )

    beneficiary_ids = {line.beneficiary_id for line in result.allocations if line.beneficiary_id}
    installment_ids = {line.installment_id for line in result.allocations}

    beneficiaries = {
        str(b.id): b
        for b in Beneficiary.objects.filter(pk__in=beneficiary_ids).only("id", "first_name", "last_name")
    }
    installments = {
        str(i.id): i
        for i in Installment.objects.filter(pk__in=installment_ids).only("id", "amount_due", "amount_paid")
    }

    lines = []
    for line in result.allocations:
        beneficiary = beneficiaries.get(line.beneficiary_id)
        installment = installments.get(line.installment_id)
        amount_due = installment.amount_due if installment else ZERO
        amount_paid = installment.amount_paid if installment else ZERO

        payload = line.to_json()
        payload.update(
            {
                "beneficiary_last_name": beneficiary.last_name if beneficiary else "",
                "beneficiary_first_name": beneficiary.first_name if beneficiary else "",
                "amount_due": str(amount_due),
                "amount_paid_before": str(amount_paid),
                "amount_remaining_after": str(amount_due - amount_paid - line.amount_applied),
            }
        )
        lines.append(payload)

    return {
        "amount_total": str(amt),
        "allocations": lines,
        "amounts_by_beneficiary": {k: str(v) for k, v in result.amounts_by_beneficiary.items()},
        "installments_touched": result.installments_touched,
        "amount_remaining": str(result.amount_remaining),
        "per_beneficiary_share": str(result.per_beneficiary_share),
        "monthly_share": str(result.monthly_share),
    }


@transaction.atomic
def delete_payment(*, payment_id, store: KafalaStore | None = None) -> int:
    """
    Reverse the payment's allocation, then delete it. Returns reversed lines.
    """
    store = store or get_default_store()

    if not Payment.objects.filter(pk=payment_id).exists():
        logger.error("Payment not found", extra={"payment_id": str(payment_id)})
        raise PaymentNotFoundError(f"Payment {payment_id} not found")

    reversed_lines = reverse_allocation(payment_id=payment_id, store=store)
    Payment.objects.filter(pk=payment_id).delete()

    logger.info(
        "Payment deleted",
        extra={"payment_id": str(payment_id), "reversed_lines": reversed_lines},
    )
    return reversed_lines
