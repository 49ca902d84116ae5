# kafala/services/allocation_plan.py

"""
ALLOCATION PLAN (persisted on Payment.allocation)

Stored shape (version 1):

    {
        "version": 1,
        "source": "auto" | "edited" | "fifo",
        "lines": [
            {
                "beneficiary_id": "...",
                "sponsorship_id": "...",
                "installment_id": "...",
                "month": "YYYY-MM-DD",
                "amount_applied": "300.00"
            },
            ...
        ]
    }

Line order is insertion order (beneficiary-major, month ascending) and is
significant for audit display.

Historical variants:
- allocation is NULL: payment predates allocation tracking. Reporting books
  it on its payment date. from_json() returns None for it.
- allocation is a bare list of lines: unversioned rows, read as version 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from kafala.services.exceptions import InvalidAllocationPlanError
from kafala.services.money import ZERO, money

PLAN_VERSION = 1

SOURCE_AUTO = "auto"
SOURCE_EDITED = "edited"
SOURCE_FIFO = "fifo"
SOURCE_LEGACY = "legacy"

SOURCES = (SOURCE_AUTO, SOURCE_EDITED, SOURCE_FIFO, SOURCE_LEGACY)


def _parse_month(value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise InvalidAllocationPlanError(f"Invalid allocation month: {value!r}") from exc


def _id_or_none(value) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


@dataclass(frozen=True)
class AllocationLine:
    installment_id: str
    amount_applied: Decimal
    beneficiary_id: str | None = None
    sponsorship_id: str | None = None
    month: date | None = None

    def to_json(self) -> dict:
        return {
            "beneficiary_id": self.beneficiary_id,
            "sponsorship_id": self.sponsorship_id,
            "installment_id": self.installment_id,
            "month": self.month.isoformat() if self.month else None,
            "amount_applied": str(self.amount_applied),
        }

    @classmethod
    def from_json(cls, data) -> "AllocationLine":
        if not isinstance(data, dict):
            raise InvalidAllocationPlanError("Allocation lines must be objects")

        installment_id = _id_or_none(data.get("installment_id"))
        if installment_id is None:
            raise InvalidAllocationPlanError("Allocation line is missing installment_id")

        try:
            amount = money(data.get("amount_applied"))
        except ValueError as exc:
            raise InvalidAllocationPlanError(str(exc)) from exc

        if amount < ZERO:
            raise InvalidAllocationPlanError(
                f"Allocation line for installment {installment_id} has a negative amount"
            )

        return cls(
            installment_id=installment_id,
            amount_applied=amount,
            beneficiary_id=_id_or_none(data.get("beneficiary_id")),
            sponsorship_id=_id_or_none(data.get("sponsorship_id")),
            month=_parse_month(data.get("month")),
        )


@dataclass(frozen=True)
class AllocationPlan:
    lines: tuple[AllocationLine, ...]
    source: str = SOURCE_AUTO
    version: int = PLAN_VERSION

    @property
    def total_applied(self) -> Decimal:
        return sum((line.amount_applied for line in self.lines), ZERO)

    @property
    def installment_ids(self) -> set[str]:
        return {line.installment_id for line in self.lines}

    def amounts_by_beneficiary(self) -> dict[str, Decimal]:
        totals: dict[str, Decimal] = {}
        for line in self.lines:
            key = line.beneficiary_id or ""
            totals[key] = totals.get(key, ZERO) + line.amount_applied
        return totals

    def to_json(self) -> dict:
        return {
            "version": self.version,
            "source": self.source,
            "lines": [line.to_json() for line in self.lines],
        }

    @classmethod
    def from_lines(cls, lines, *, source: str = SOURCE_AUTO) -> "AllocationPlan":
        parsed = tuple(
            line if isinstance(line, AllocationLine) else AllocationLine.from_json(line)
            for line in lines
        )
        return cls(lines=parsed, source=source)

    @classmethod
    def from_json(cls, value) -> "AllocationPlan | None":
        """
        Read a persisted allocation value. None means "no plan" (legacy payment).
        """
        if value is None:
            return None

        if isinstance(value, list):
            return cls(
                lines=tuple(AllocationLine.from_json(item) for item in value),
                source=SOURCE_LEGACY,
                version=0,
            )

        if not isinstance(value, dict):
            raise InvalidAllocationPlanError("Allocation must be an object or a list")

        version = value.get("version")
        if version != PLAN_VERSION:
            raise InvalidAllocationPlanError(f"Unsupported allocation version: {version!r}")

        source = value.get("source") or SOURCE_AUTO
        if source not in SOURCES:
            raise InvalidAllocationPlanError(f"Unknown allocation source: {source!r}")

        lines = value.get("lines") or []
        if not isinstance(lines, list):
            raise InvalidAllocationPlanError("Allocation lines must be a list")

        return cls(
            lines=tuple(AllocationLine.from_json(item) for item in lines),
            source=source,
            version=PLAN_VERSION,
        )
