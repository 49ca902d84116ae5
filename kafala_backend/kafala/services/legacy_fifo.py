# kafala/services/legacy_fifo.py

"""
LEGACY SINGLE-BENEFICIARY FIFO

Kept for payment types that name one beneficiary directly (no sponsor-wide
equal split). Same stop-early semantics as the per-beneficiary step of the
Kafala allocator:

- settled installments are ignored
- oldest month first
- each installment takes min(remaining, amount_due - amount_paid)
- stop once the amount is exhausted

Pure function: no store, no writes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from kafala.services.money import ZERO, money


@dataclass(frozen=True)
class FifoLine:
    installment_id: str
    month: date
    amount_applied: Decimal


def allocate_single_beneficiary_fifo(amount, installments) -> list[FifoLine]:
    """
    `installments` are objects exposing id, month, amount_due, amount_paid, settled
    (store records or Installment rows).
    """
    remaining = money(amount)
    lines: list[FifoLine] = []

    open_installments = sorted(
        (i for i in installments if not i.settled),
        key=lambda i: i.month,
    )

    for installment in open_installments:
        if remaining <= ZERO:
            break

        outstanding = money(installment.amount_due) - money(installment.amount_paid)
        if outstanding <= ZERO:
            continue

        applied = min(remaining, outstanding)
        lines.append(
            FifoLine(
                installment_id=str(installment.id),
                month=installment.month,
                amount_applied=applied,
            )
        )
        remaining -= applied

    return lines
