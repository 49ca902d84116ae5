# kafala/services/allocation.py

"""
KAFALA PAYMENT ALLOCATOR

Purpose:
- Split an incoming lump sum EQUALLY across the sponsor's active beneficiaries
  (headcount, not need), then apply each share FIFO over that beneficiary's
  unsettled installments, oldest month first.
- Preview (commit=False): same computation, no installment receives money.
- Commit (commit=True): each allocation line immediately updates its installment.

FLOW (allocate_kafala_payment):
1) validate amount, sponsor, at least one active sponsorship
2) recompute active count + due amounts (fresh obligations)
3) read pledge + count -> per-beneficiary monthly share
4) extend every schedule to the horizon (current month + 12)
5) reload open installments (month ascending)
6) equal split of the payment over beneficiaries
7) FIFO per beneficiary
8) commit mutations (commit=True only)
9) totals: per beneficiary, installments touched, amount remaining

`amount_remaining > 0` happens when a beneficiary has fewer open obligations
than its share. It is reported, never raised.

Preview still persists steps 2 and 4. Both are idempotent maintenance of
derived state, and the installment ids they produce must survive so an edited
preview can be committed later through apply_allocation_plan().

Also here:
- apply_allocation_plan(): commit a previously computed (possibly hand-edited)
  plan exactly as given.
- reverse_allocation(): undo a payment's plan before the payment is deleted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from kafala.services.activity import current_date
from kafala.services.allocation_plan import (
    SOURCE_AUTO,
    AllocationLine,
    AllocationPlan,
)
from kafala.services.exceptions import InvalidAmountError, NoActiveSponsorshipError
from kafala.services.money import ZERO, money, split
from kafala.services.recompute import (
    recompute_active_sponsorship_count,
    recompute_installment_amounts,
)
from kafala.services.schedule import (
    add_months,
    first_of_month,
    generate_installments,
    horizon_month,
)
from kafala.services.store import InstallmentRecord, KafalaStore, get_default_store

logger = logging.getLogger("kafala.allocation")


@dataclass
class AllocationResult:
    amount: Decimal
    committed: bool
    allocations: list[AllocationLine] = field(default_factory=list)
    amounts_by_beneficiary: dict[str, Decimal] = field(default_factory=dict)
    installments_touched: int = 0
    amount_remaining: Decimal = ZERO
    per_beneficiary_share: Decimal = ZERO
    monthly_share: Decimal = ZERO

    @property
    def total_applied(self) -> Decimal:
        return sum((line.amount_applied for line in self.allocations), ZERO)

    def to_plan(self, *, source: str = SOURCE_AUTO) -> AllocationPlan:
        return AllocationPlan(lines=tuple(self.allocations), source=source)

    def to_dict(self) -> dict:
        return {
            "amount": str(self.amount),
            "committed": self.committed,
            "allocations": [line.to_json() for line in self.allocations],
            "amounts_by_beneficiary": {k: str(v) for k, v in self.amounts_by_beneficiary.items()},
            "installments_touched": self.installments_touched,
            "amount_remaining": str(self.amount_remaining),
            "per_beneficiary_share": str(self.per_beneficiary_share),
            "monthly_share": str(self.monthly_share),
        }


def _positive_amount(amount) -> Decimal:
    try:
        amt = money(amount)
    except ValueError as exc:
        raise InvalidAmountError(str(exc)) from exc

    if amt <= ZERO:
        raise InvalidAmountError("Amount must be > 0")
    return amt


def _apply_to_installment(store: KafalaStore, installment: InstallmentRecord, applied: Decimal) -> None:
    new_paid = installment.amount_paid + applied
    store.update_installment(
        installment.id,
        amount_paid=new_paid,
        settled=new_paid >= installment.amount_due,
    )


def _extend_schedules(store: KafalaStore, sponsorships, *, pledge_value, active_count, today: date) -> int:
    """
    Make sure every active sponsorship has installments up to the horizon.
    """
    horizon = horizon_month(today=today)
    created = 0

    for sponsorship in sponsorships:
        latest = store.latest_installment_month(sponsorship.id)
        start = add_months(latest, 1) if latest else first_of_month(sponsorship.start_date)
        if start >= horizon:
            continue

        # A scheduled end before the horizon still bounds the schedule.
        end = sponsorship.end_date if sponsorship.end_date and sponsorship.end_date < horizon else None

        created += generate_installments(
            sponsorship_id=sponsorship.id,
            start_date=start,
            pledge_value=pledge_value,
            active_count=active_count,
            end_date=end,
            store=store,
            today=today,
        )

    return created


def _allocate(store: KafalaStore, *, sponsor_id, amount: Decimal, commit: bool, today: date) -> AllocationResult:
    # --------------------------------------------------
    # 1. VALIDATE (no writes before this point)
    # --------------------------------------------------
    store.find_sponsor(sponsor_id)

    if store.count_active_sponsorships(sponsor_id, today) == 0:
        raise NoActiveSponsorshipError("No active sponsorship for this sponsor")

    # --------------------------------------------------
    # 2. FRESH OBLIGATIONS
    # --------------------------------------------------
    recompute_active_sponsorship_count(sponsor_id=sponsor_id, store=store, today=today)
    recompute_installment_amounts(sponsor_id=sponsor_id, store=store, today=today)

    sponsorships = store.find_active_sponsorships(sponsor_id, today)
    if not sponsorships:
        raise NoActiveSponsorshipError("No active sponsorship for this sponsor")

    # --------------------------------------------------
    # 3. MONTHLY SHARE
    # --------------------------------------------------
    sponsor = store.find_sponsor(sponsor_id)
    active_count = max(int(sponsor.active_sponsorship_count or 0), 1)
    monthly_share = split(sponsor.pledge_value, active_count)

    # --------------------------------------------------
    # 4. HORIZON EXTENSION
    # --------------------------------------------------
    _extend_schedules(
        store,
        sponsorships,
        pledge_value=sponsor.pledge_value,
        active_count=active_count,
        today=today,
    )

    # --------------------------------------------------
    # 5. RELOAD OPEN INSTALLMENTS
    # --------------------------------------------------
    open_installments = {
        s.id: store.find_open_installments(s.id, for_update=commit) for s in sponsorships
    }

    # --------------------------------------------------
    # 6. EQUAL SPLIT (headcount)
    # --------------------------------------------------
    per_beneficiary = split(amount, len(sponsorships))

    result = AllocationResult(
        amount=amount,
        committed=commit,
        per_beneficiary_share=per_beneficiary,
        monthly_share=monthly_share,
    )

    # --------------------------------------------------
    # 7 + 8. FIFO PER BENEFICIARY (+ COMMIT)
    # --------------------------------------------------
    # Half-up shares can sum past the amount; never hand out more than is left.
    unallocated = amount

    for sponsorship in sponsorships:
        beneficiary_key = str(sponsorship.beneficiary_id)
        remaining_share = min(per_beneficiary, unallocated)
        applied_total = ZERO

        for installment in open_installments[sponsorship.id]:
            if remaining_share <= ZERO:
                break

            outstanding = installment.amount_due - installment.amount_paid
            if outstanding <= ZERO:
                continue

            applied = min(remaining_share, outstanding)
            result.allocations.append(
                AllocationLine(
                    installment_id=str(installment.id),
                    amount_applied=applied,
                    beneficiary_id=beneficiary_key,
                    sponsorship_id=str(sponsorship.id),
                    month=installment.month,
                )
            )
            applied_total += applied
            remaining_share -= applied

            if commit:
                _apply_to_installment(store, installment, applied)

        unallocated -= applied_total
        result.amounts_by_beneficiary[beneficiary_key] = (
            result.amounts_by_beneficiary.get(beneficiary_key, ZERO) + applied_total
        )

    # --------------------------------------------------
    # 9. TOTALS
    # --------------------------------------------------
    result.installments_touched = len({line.installment_id for line in result.allocations})
    result.amount_remaining = amount - result.total_applied

    return result


def allocate_kafala_payment(
    *,
    sponsor_id,
    amount,
    commit: bool = False,
    store: KafalaStore | None = None,
    today: date | None = None,
) -> AllocationResult:
    """
    Allocate (commit=True) or preview (commit=False) a KAFALA payment.

    Raises:
        InvalidAmountError: amount missing or not > 0
        SponsorNotFoundError: unknown sponsor
        NoActiveSponsorshipError: sponsor has nothing to allocate against
    """
    store = store or get_default_store()
    today = today or current_date()
    amt = _positive_amount(amount)

    logger.info(
        "Allocating kafala payment",
        extra={"sponsor_id": str(sponsor_id), "amount": str(amt), "commit": commit},
    )

    result = store.run_in_atomic_unit(
        lambda: _allocate(store, sponsor_id=sponsor_id, amount=amt, commit=commit, today=today)
    )

    logger.info(
        "Kafala payment allocated" if commit else "Kafala payment previewed",
        extra={
            "sponsor_id": str(sponsor_id),
            "amount": str(amt),
            "lines": len(result.allocations),
            "installments_touched": result.installments_touched,
            "amount_remaining": str(result.amount_remaining),
        },
    )
    return result


def apply_allocation_plan(*, lines, store: KafalaStore | None = None) -> int:
    """
    Commit a plan exactly as given (override path).

    The plan is trusted: no re-validation against shares. Each installment still
    derives `settled` from its own amount_due / amount_paid. A missing installment
    aborts the whole unit.

    Returns the number of lines applied.
    """
    store = store or get_default_store()
    parsed = [line if isinstance(line, AllocationLine) else AllocationLine.from_json(line) for line in lines]

    def _run() -> int:
        for line in parsed:
            installment = store.find_installment(line.installment_id, for_update=True)
            _apply_to_installment(store, installment, line.amount_applied)
        return len(parsed)

    applied = store.run_in_atomic_unit(_run)
    logger.info("Allocation plan applied", extra={"lines": applied})
    return applied


def reverse_allocation(*, payment_id, store: KafalaStore | None = None) -> int:
    """
    Undo every line of a payment's plan:
        amount_paid = max(0, amount_paid - amount_applied)
        settled     = amount_paid >= amount_due

    Must run (in the same atomic unit) before the payment row is deleted.
    Payments without a plan (legacy rows) reverse nothing.

    Returns the number of lines reversed.
    """
    store = store or get_default_store()

    def _run() -> int:
        plan = AllocationPlan.from_json(store.find_payment_allocation(payment_id))
        if plan is None:
            return 0

        for line in plan.lines:
            installment = store.find_installment(line.installment_id, for_update=True)
            new_paid = max(ZERO, installment.amount_paid - line.amount_applied)
            store.update_installment(
                installment.id,
                amount_paid=new_paid,
                settled=new_paid >= installment.amount_due,
            )
        return len(plan.lines)

    reversed_lines = store.run_in_atomic_unit(_run)
    logger.info(
        "Payment allocation reversed",
        extra={"payment_id": str(payment_id), "lines": reversed_lines},
    )
    return reversed_lines
