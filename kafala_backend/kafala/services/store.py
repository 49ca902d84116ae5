# kafala/services/store.py

"""
KAFALA STORAGE CAPABILITY

The engine never touches the ORM directly. Every operation receives a
KafalaStore (explicitly, or the Django default via get_default_store()).

Records crossing the boundary are plain dataclasses so the same engine runs
against the ORM in production and against an in-memory store in tests.

Contract (all implementations):
- find_* raise the matching KafalaNotFoundError subclass when the row is missing.
- find_active_sponsorships() orders sponsorships by start_date, then creation,
  and nests each one's UNSETTLED installments ordered by month ascending.
- create_installments() is idempotent on (sponsorship_id, month).
- run_in_atomic_unit(fn) executes fn() so that any exception undoes every write
  made inside it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Iterable, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class SponsorRecord:
    id: Any
    pledge_value: Decimal
    active_sponsorship_count: int


@dataclass(frozen=True)
class InstallmentRecord:
    id: Any
    sponsorship_id: Any
    month: date
    amount_due: Decimal
    amount_paid: Decimal
    settled: bool

    @property
    def amount_remaining(self) -> Decimal:
        return self.amount_due - self.amount_paid


@dataclass(frozen=True)
class NewInstallment:
    sponsorship_id: Any
    month: date
    amount_due: Decimal


@dataclass
class SponsorshipRecord:
    id: Any
    sponsor_id: Any
    beneficiary_id: Any
    start_date: date
    end_date: date | None
    installments: list[InstallmentRecord] = field(default_factory=list)


class KafalaStore:
    """
    Base storage capability. Subclasses implement every method.
    """

    # ---------------- sponsors ----------------

    def find_sponsor(self, sponsor_id) -> SponsorRecord:
        raise NotImplementedError

    def update_sponsor(self, sponsor_id, **fields) -> None:
        raise NotImplementedError

    # ---------------- sponsorships ----------------

    def count_active_sponsorships(self, sponsor_id, today: date) -> int:
        raise NotImplementedError

    def find_active_sponsorships(self, sponsor_id, today: date) -> list[SponsorshipRecord]:
        raise NotImplementedError

    # ---------------- installments ----------------

    def find_open_installments(self, sponsorship_id, *, for_update: bool = False) -> list[InstallmentRecord]:
        raise NotImplementedError

    def latest_installment_month(self, sponsorship_id) -> date | None:
        raise NotImplementedError

    def create_installments(self, batch: Iterable[NewInstallment], *, skip_duplicate_months: bool = True) -> int:
        raise NotImplementedError

    def update_installments_by_filter(self, filters: dict, fields: dict) -> int:
        raise NotImplementedError

    def find_installment(self, installment_id, *, for_update: bool = False) -> InstallmentRecord:
        raise NotImplementedError

    def update_installment(self, installment_id, **fields) -> None:
        raise NotImplementedError

    # ---------------- payments ----------------

    def find_payment_allocation(self, payment_id):
        """Raw persisted allocation value of a payment (may be None)."""
        raise NotImplementedError

    # ---------------- transactions ----------------

    def run_in_atomic_unit(self, fn: Callable[[], T]) -> T:
        raise NotImplementedError


def get_default_store() -> KafalaStore:
    # Local import: the ORM store pulls in app models.
    from kafala.services.django_store import DjangoKafalaStore

    return DjangoKafalaStore()
