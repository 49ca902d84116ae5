# sponsorships/services/sponsorship_service.py

"""
SPONSORSHIP LIFECYCLE SERVICE

Every change of sponsorship membership (create / close / edit dates / delete)
or of a sponsor's pledge ends with a recomputation of that sponsor, inside the
same transaction:

    recompute_active_sponsorship_count -> recompute_installment_amounts

RULES:
- At most one ACTIVE sponsorship per beneficiary, on create and on date edits.
  A new one is refused unless close_previous=True, which closes the current
  one (end_date = today) first, or deletes it when it has not started yet.
- Closing drops the open, untouched installments of months after the end date.
- A sponsorship that already received money cannot be deleted.
- Editing dates drops the open, untouched installments and regenerates the
  schedule. Installments that already carry money are kept.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Q, Sum

from beneficiaries.models import Beneficiary
from kafala.services.activity import active_q, current_date, is_active
from kafala.services.exceptions import (
    ActiveSponsorshipExistsError,
    BeneficiaryNotFoundError,
    InvalidAmountError,
    KafalaValidationError,
    SponsorNotFoundError,
    SponsorshipLockedError,
    SponsorshipNotFoundError,
)
from kafala.services.money import ZERO, money
from kafala.services.recompute import (
    recompute_active_sponsorship_count,
    recompute_installment_amounts,
    recompute_sponsor,
)
from kafala.services.schedule import generate_installments
from kafala.services.store import KafalaStore, get_default_store
from sponsorships.models import Installment, Sponsor, Sponsorship

logger = logging.getLogger("kafala.sponsorships")

UNSET = object()

SPONSOR_EDITABLE_FIELDS = (
    "sponsor_type",
    "last_name",
    "first_name",
    "national_id",
    "ice",
    "email",
    "phone",
    "address",
    "pledge_value",
    "donor_code",
    "sponsor_code",
    "is_member",
    "is_donor",
    "is_sponsor",
)


def _get_sponsorship(sponsorship_id, *, for_update: bool = False) -> Sponsorship:
    qs = Sponsorship.objects.all()
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=sponsorship_id)
    except Sponsorship.DoesNotExist as exc:
        logger.error("Sponsorship not found", extra={"sponsorship_id": str(sponsorship_id)})
        raise SponsorshipNotFoundError(f"Sponsorship {sponsorship_id} not found") from exc


def _validate_dates(start_date: date, end_date: date | None) -> None:
    if start_date is None:
        raise KafalaValidationError("start_date is required")
    if end_date is not None and end_date < start_date:
        raise KafalaValidationError("end_date must be on or after start_date")


def _regenerate(sponsorship: Sponsorship, *, store: KafalaStore, today: date) -> int:
    sponsor = store.find_sponsor(sponsorship.sponsor_id)
    return generate_installments(
        sponsorship_id=sponsorship.id,
        start_date=sponsorship.start_date,
        pledge_value=sponsor.pledge_value,
        active_count=sponsor.active_sponsorship_count,
        end_date=sponsorship.end_date,
        store=store,
        today=today,
    )


def _ensure_no_money_applied(sponsorship: Sponsorship) -> None:
    if sponsorship.installments.filter(amount_paid__gt=ZERO).exists():
        raise SponsorshipLockedError(
            "This sponsorship has received payments; close it instead of deleting it"
        )


def _drop_open_installments_after(sponsorship: Sponsorship, cutoff: date) -> int:
    dropped, _ = Installment.objects.filter(
        sponsorship=sponsorship,
        month__gt=cutoff,
        settled=False,
        amount_paid=ZERO,
    ).delete()
    return dropped


def _end(sponsorship: Sponsorship, *, today: date) -> int:
    sponsorship.end_date = today
    sponsorship.save(update_fields=["end_date"])
    return _drop_open_installments_after(sponsorship, today)


def find_active_sponsorship_for_beneficiary(
    beneficiary_id,
    *,
    today: date | None = None,
    exclude_id=None,
) -> Sponsorship | None:
    qs = Sponsorship.objects.filter(beneficiary_id=beneficiary_id).filter(
        active_q(today=today or current_date())
    )
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return qs.order_by("-start_date").first()


@transaction.atomic
def create_sponsorship(
    *,
    sponsor_id,
    beneficiary_id,
    start_date: date,
    end_date: date | None = None,
    close_previous: bool = False,
    store: KafalaStore | None = None,
    today: date | None = None,
) -> Sponsorship:
    """
    Create a sponsorship, generate its schedule, recompute the sponsor.

    Raises:
        SponsorNotFoundError / BeneficiaryNotFoundError
        ActiveSponsorshipExistsError: beneficiary already sponsored and close_previous is False
    """
    store = store or get_default_store()
    today = today or current_date()
    _validate_dates(start_date, end_date)

    try:
        sponsor = Sponsor.objects.select_for_update().get(pk=sponsor_id)
    except Sponsor.DoesNotExist as exc:
        logger.error("Sponsor not found", extra={"sponsor_id": str(sponsor_id)})
        raise SponsorNotFoundError(f"Sponsor {sponsor_id} not found") from exc

    if not Beneficiary.objects.filter(pk=beneficiary_id).exists():
        logger.error("Beneficiary not found", extra={"beneficiary_id": str(beneficiary_id)})
        raise BeneficiaryNotFoundError(f"Beneficiary {beneficiary_id} not found")

    previous = find_active_sponsorship_for_beneficiary(beneficiary_id, today=today)
    if previous is not None and not close_previous:
        raise ActiveSponsorshipExistsError(
            "An active sponsorship already exists for this beneficiary",
            sponsorship_id=previous.id,
            sponsor_id=previous.sponsor_id,
        )

    if previous is not None and previous.start_date >= today:
        # not started yet: nothing to close, remove it with its schedule
        _ensure_no_money_applied(previous)
        removed_id = previous.id
        previous.delete()
        logger.info(
            "Previous sponsorship removed before start",
            extra={"sponsorship_id": str(removed_id), "sponsor_id": str(previous.sponsor_id)},
        )
    elif previous is not None:
        dropped = _end(previous, today=today)
        logger.info(
            "Previous sponsorship closed",
            extra={
                "sponsorship_id": str(previous.id),
                "sponsor_id": str(previous.sponsor_id),
                "dropped": dropped,
            },
        )

    sponsorship = Sponsorship.objects.create(
        sponsor=sponsor,
        beneficiary_id=beneficiary_id,
        start_date=start_date,
        end_date=end_date,
        pledge_value=sponsor.pledge_value,
    )

    count = recompute_active_sponsorship_count(sponsor_id=sponsor.id, store=store, today=today)
    created = generate_installments(
        sponsorship_id=sponsorship.id,
        start_date=start_date,
        pledge_value=sponsor.pledge_value,
        active_count=count,
        end_date=end_date,
        store=store,
        today=today,
    )
    recompute_installment_amounts(sponsor_id=sponsor.id, store=store, today=today)

    if previous is not None and previous.sponsor_id != sponsor.id:
        recompute_sponsor(sponsor_id=previous.sponsor_id, store=store, today=today)

    logger.info(
        "Sponsorship created",
        extra={
            "sponsorship_id": str(sponsorship.id),
            "sponsor_id": str(sponsor.id),
            "beneficiary_id": str(beneficiary_id),
            "installments_created": created,
            "closed_previous": previous is not None,
        },
    )
    return sponsorship


@transaction.atomic
def close_sponsorship(
    *,
    sponsorship_id,
    store: KafalaStore | None = None,
    today: date | None = None,
) -> Sponsorship:
    """
    end_date = today (inactive from today on). Untouched installments of later
    months go away, then the sponsor is recomputed.
    """
    store = store or get_default_store()
    today = today or current_date()

    sponsorship = _get_sponsorship(sponsorship_id, for_update=True)
    dropped = _end(sponsorship, today=today)

    recompute_sponsor(sponsor_id=sponsorship.sponsor_id, store=store, today=today)

    logger.info(
        "Sponsorship closed",
        extra={
            "sponsorship_id": str(sponsorship.id),
            "sponsor_id": str(sponsorship.sponsor_id),
            "dropped": dropped,
        },
    )
    return sponsorship


@transaction.atomic
def update_sponsorship(
    *,
    sponsorship_id,
    start_date=UNSET,
    end_date=UNSET,
    store: KafalaStore | None = None,
    today: date | None = None,
) -> Sponsorship:
    store = store or get_default_store()
    today = today or current_date()

    sponsorship = _get_sponsorship(sponsorship_id, for_update=True)

    new_start = sponsorship.start_date if start_date is UNSET else start_date
    new_end = sponsorship.end_date if end_date is UNSET else end_date
    _validate_dates(new_start, new_end)

    dates_changed = new_start != sponsorship.start_date or new_end != sponsorship.end_date
    if not dates_changed:
        return sponsorship

    if is_active(new_end, today=today):
        other = find_active_sponsorship_for_beneficiary(
            sponsorship.beneficiary_id, today=today, exclude_id=sponsorship.id
        )
        if other is not None:
            raise ActiveSponsorshipExistsError(
                "Another active sponsorship already exists for this beneficiary",
                sponsorship_id=other.id,
                sponsor_id=other.sponsor_id,
            )

    sponsorship.start_date = new_start
    sponsorship.end_date = new_end
    sponsorship.save(update_fields=["start_date", "end_date"])

    dropped, _ = Installment.objects.filter(
        sponsorship=sponsorship,
        settled=False,
        amount_paid=ZERO,
    ).delete()

    recompute_sponsor(sponsor_id=sponsorship.sponsor_id, store=store, today=today)
    created = _regenerate(sponsorship, store=store, today=today)
    recompute_sponsor(sponsor_id=sponsorship.sponsor_id, store=store, today=today)

    logger.info(
        "Sponsorship schedule regenerated",
        extra={
            "sponsorship_id": str(sponsorship.id),
            "dropped": dropped,
            "regenerated": created,
        },
    )
    return sponsorship


@transaction.atomic
def delete_sponsorship(
    *,
    sponsorship_id,
    store: KafalaStore | None = None,
    today: date | None = None,
) -> None:
    """
    Raises:
        SponsorshipLockedError: at least one installment received money
    """
    store = store or get_default_store()
    today = today or current_date()

    sponsorship = _get_sponsorship(sponsorship_id, for_update=True)

    _ensure_no_money_applied(sponsorship)

    sponsor_id = sponsorship.sponsor_id
    sponsorship.delete()
    recompute_sponsor(sponsor_id=sponsor_id, store=store, today=today)

    logger.info(
        "Sponsorship deleted",
        extra={"sponsorship_id": str(sponsorship_id), "sponsor_id": str(sponsor_id)},
    )


@transaction.atomic
def update_sponsor(
    *,
    sponsor_id,
    store: KafalaStore | None = None,
    today: date | None = None,
    **fields,
) -> Sponsor:
    """
    Edit a sponsor. A pledge change rewrites the open installments of every
    active sponsorship.
    """
    store = store or get_default_store()

    try:
        sponsor = Sponsor.objects.select_for_update().get(pk=sponsor_id)
    except Sponsor.DoesNotExist as exc:
        logger.error("Sponsor not found", extra={"sponsor_id": str(sponsor_id)})
        raise SponsorNotFoundError(f"Sponsor {sponsor_id} not found") from exc

    unknown = set(fields) - set(SPONSOR_EDITABLE_FIELDS)
    if unknown:
        raise KafalaValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")

    pledge_changed = False
    if "pledge_value" in fields:
        try:
            pledge = money(fields["pledge_value"])
        except ValueError as exc:
            raise InvalidAmountError(str(exc)) from exc
        if pledge <= ZERO:
            raise InvalidAmountError("pledge_value must be > 0")
        fields["pledge_value"] = pledge
        pledge_changed = pledge != sponsor.pledge_value

    for name, value in fields.items():
        setattr(sponsor, name, value)
    sponsor.save()

    if pledge_changed:
        recompute_sponsor(sponsor_id=sponsor.id, store=store, today=today)
        sponsor.refresh_from_db()
        logger.info(
            "Sponsor pledge changed",
            extra={"sponsor_id": str(sponsor.id), "pledge_value": str(sponsor.pledge_value)},
        )

    return sponsor


def installment_stats(sponsorship: Sponsorship) -> dict:
    """Totals over every installment of a sponsorship (settled or not)."""
    agg = sponsorship.installments.aggregate(
        total=Count("id"),
        settled=Count("id", filter=Q(settled=True)),
        amount_due=Sum("amount_due"),
        amount_paid=Sum("amount_paid"),
    )
    amount_due = agg["amount_due"] or Decimal("0.00")
    amount_paid = agg["amount_paid"] or Decimal("0.00")

    return {
        "total": agg["total"],
        "settled": agg["settled"],
        "pending": agg["total"] - agg["settled"],
        "amount_due": str(money(amount_due)),
        "amount_paid": str(money(amount_paid)),
        "amount_remaining": str(money(amount_due - amount_paid)),
    }
