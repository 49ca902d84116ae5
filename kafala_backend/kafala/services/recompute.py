# kafala/services/recompute.py

"""
DUE-AMOUNT RECOMPUTATION

Answers ONE question: "what does each open month cost this sponsor, now?"

    share = sponsor.pledge_value / sponsor.active_sponsorship_count

ORDERING CONTRACT:
1) recompute_active_sponsorship_count()  (persists the derived count)
2) recompute_installment_amounts()       (reads the fresh count)

Both must run inside the same atomic unit as whatever changed sponsorship
membership or the pledge (creation, closure, pledge edit).

RULES:
- Only UNSETTLED installments of ACTIVE sponsorships are rewritten.
- Settled installments are historical and frozen.
- A sponsor with zero active sponsorships is a valid state: nothing to do.
- An open installment whose payments already cover the new share becomes settled,
  so `settled == (amount_paid >= amount_due)` keeps holding after a rewrite.
"""

from __future__ import annotations

import logging
from datetime import date

from kafala.services.activity import current_date
from kafala.services.money import split
from kafala.services.store import KafalaStore, get_default_store

logger = logging.getLogger("kafala.recompute")


def recompute_active_sponsorship_count(
    *,
    sponsor_id,
    store: KafalaStore | None = None,
    today: date | None = None,
) -> int:
    """
    Count the sponsor's active sponsorships and persist the count.
    Returns it so callers don't need to re-read the sponsor.
    """
    store = store or get_default_store()
    today = today or current_date()

    count = store.count_active_sponsorships(sponsor_id, today)
    store.update_sponsor(sponsor_id, active_sponsorship_count=count)

    logger.debug(
        "Active sponsorship count recomputed",
        extra={"sponsor_id": str(sponsor_id), "count": count},
    )
    return count


def recompute_installment_amounts(
    *,
    sponsor_id,
    store: KafalaStore | None = None,
    today: date | None = None,
) -> int:
    """
    Rewrite amount_due on every open installment of the sponsor's active
    sponsorships. Returns the number of rewritten installments.
    """
    store = store or get_default_store()
    today = today or current_date()

    sponsor = store.find_sponsor(sponsor_id)
    count = int(sponsor.active_sponsorship_count or 0)
    if count <= 0:
        logger.debug(
            "No active sponsorship, installment amounts left untouched",
            extra={"sponsor_id": str(sponsor_id)},
        )
        return 0

    share = split(sponsor.pledge_value, count)

    sponsorship_ids = [s.id for s in store.find_active_sponsorships(sponsor_id, today)]
    if not sponsorship_ids:
        return 0

    rewritten = store.update_installments_by_filter(
        {"sponsorship_id__in": sponsorship_ids, "settled": False},
        {"amount_due": share},
    )
    newly_settled = store.update_installments_by_filter(
        {"sponsorship_id__in": sponsorship_ids, "settled": False, "amount_paid__gte": share},
        {"settled": True},
    )

    logger.info(
        "Installment amounts recomputed",
        extra={
            "sponsor_id": str(sponsor_id),
            "active_sponsorships": count,
            "share": str(share),
            "rewritten": rewritten,
            "newly_settled": newly_settled,
        },
    )
    return rewritten


def recompute_sponsor(
    *,
    sponsor_id,
    store: KafalaStore | None = None,
    today: date | None = None,
) -> int:
    """
    Count then amounts, in one atomic unit. Returns the active count.
    """
    store = store or get_default_store()
    today = today or current_date()

    def _run() -> int:
        count = recompute_active_sponsorship_count(sponsor_id=sponsor_id, store=store, today=today)
        recompute_installment_amounts(sponsor_id=sponsor_id, store=store, today=today)
        return count

    return store.run_in_atomic_unit(_run)
