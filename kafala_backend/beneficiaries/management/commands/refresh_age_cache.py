from django.core.management.base import BaseCommand

from beneficiaries.models import Beneficiary


class Command(BaseCommand):
    help = "Recompute Beneficiary.age_cache from birth_date (run daily)"

    def handle(self, *args, **options):
        changed = []
        for beneficiary in Beneficiary.objects.only("id", "birth_date", "age_cache").iterator():
            if beneficiary.refresh_age_cache():
                changed.append(beneficiary)

        Beneficiary.objects.bulk_update(changed, ["age_cache"], batch_size=500)

        self.stdout.write(
            self.style.SUCCESS(f"✅ age_cache refreshed for {len(changed)} beneficiaries.")
        )
