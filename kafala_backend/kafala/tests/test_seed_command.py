# kafala/tests/test_seed_command.py

from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from beneficiaries.models import Beneficiary
from payments.models import Payment
from sponsorships.models import Sponsor, Sponsorship


class SeedKafalaDemoTests(TestCase):
    def test_seed_is_idempotent(self):
        call_command("seed_kafala_demo", stdout=StringIO())
        call_command("seed_kafala_demo", stdout=StringIO())

        self.assertEqual(Beneficiary.objects.count(), 6)
        self.assertEqual(Sponsor.objects.count(), 3)
        self.assertEqual(Sponsorship.objects.count(), 6)
        self.assertEqual(
            sorted(Sponsor.objects.values_list("active_sponsorship_count", flat=True)),
            [2, 2, 2],
        )

    def test_seed_with_payments(self):
        out = StringIO()

        call_command("seed_kafala_demo", "--with-payments", stdout=out)

        self.assertEqual(Payment.objects.count(), 3)
        self.assertIn("seeded successfully", out.getvalue())
