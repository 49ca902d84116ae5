import random
from datetime import date
from decimal import Decimal

from django.core.management.base import BaseCommand

from beneficiaries.models import Beneficiary, Guardian
from kafala.services.activity import current_date
from kafala.services.schedule import add_months, first_of_month
from payments.services.payment_service import create_payment
from sponsorships.models import Sponsor
from sponsorships.services.sponsorship_service import (
    create_sponsorship,
    find_active_sponsorship_for_beneficiary,
)


class Command(BaseCommand):
    help = "Seed guardians, orphans, sponsors, sponsorships and a few KAFALA payments"

    def add_arguments(self, parser):
        parser.add_argument(
            "--with-payments",
            action="store_true",
            help="Also record one automatic KAFALA payment per sponsor",
        )

    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Seeding kafala demo data..."))
        today = current_date()
        start = add_months(first_of_month(today), -3)

        # -------------------------------
        # GUARDIANS + BENEFICIARIES
        # -------------------------------
        families = [
            ("Alaoui", "Fatima", [("Amine", 2014), ("Salma", 2017)]),
            ("Bennis", "Khadija", [("Youssef", 2010)]),
            ("Chraibi", "Naima", [("Hiba", 2008), ("Omar", 2012), ("Rania", 2019)]),
        ]

        beneficiaries = []
        for last_name, first_name, children in families:
            guardian, _ = Guardian.objects.get_or_create(
                last_name=last_name,
                first_name=first_name,
            )
            for child_name, birth_year in children:
                beneficiary, _ = Beneficiary.objects.get_or_create(
                    guardian=guardian,
                    last_name=last_name,
                    first_name=child_name,
                    defaults={"birth_date": date(birth_year, random.randint(1, 12), random.randint(1, 28))},
                )
                beneficiaries.append(beneficiary)

        # -------------------------------
        # SPONSORS
        # -------------------------------
        sponsors_data = [
            ("Tazi", "Karim", Sponsor.SponsorType.INDIVIDUAL, "600.00"),
            ("Fondation Atlas", "", Sponsor.SponsorType.ORGANIZATION, "1500.00"),
            ("Idrissi", "Leila", Sponsor.SponsorType.INDIVIDUAL, "400.00"),
        ]

        sponsors = []
        for last_name, first_name, sponsor_type, pledge in sponsors_data:
            sponsor, _ = Sponsor.objects.get_or_create(
                last_name=last_name,
                first_name=first_name,
                defaults={"sponsor_type": sponsor_type, "pledge_value": Decimal(pledge)},
            )
            sponsors.append(sponsor)

        # -------------------------------
        # SPONSORSHIPS (round robin)
        # -------------------------------
        created = 0
        for index, beneficiary in enumerate(beneficiaries):
            if find_active_sponsorship_for_beneficiary(beneficiary.id, today=today):
                continue
            create_sponsorship(
                sponsor_id=sponsors[index % len(sponsors)].id,
                beneficiary_id=beneficiary.id,
                start_date=start,
                today=today,
            )
            created += 1

        self.stdout.write(f"{created} sponsorships created.")

        # -------------------------------
        # PAYMENTS
        # -------------------------------
        if options["with_payments"]:
            for sponsor in sponsors:
                sponsor.refresh_from_db()
                outcome = create_payment(sponsor_id=sponsor.id, amount=sponsor.pledge_value * 2, today=today)
                self.stdout.write(
                    f"{sponsor.full_name}: {outcome.allocation_stats['amount_applied']} allocated."
                )

        self.stdout.write(
            self.style.SUCCESS("✅ Kafala demo data seeded successfully.")
        )
