# beneficiaries/tests/test_beneficiaries.py

from datetime import date
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from beneficiaries.models import Beneficiary, Guardian
from kafala.services.activity import current_date
from kafala.tests.factories import make_beneficiary, make_guardian, make_sponsor, make_sponsorship

User = get_user_model()


def born_years_ago(years):
    return date(current_date().year - years, 1, 1)


class BeneficiaryModelTests(TestCase):
    """
    GUARANTEES:
    - age is always derived from birth_date
    - age_cache follows birth_date on every save
    """

    def test_age_cache_set_on_create(self):
        beneficiary = make_beneficiary(birth_date=born_years_ago(12))
        self.assertEqual(beneficiary.age, 12)
        self.assertEqual(beneficiary.age_cache, 12)

    def test_age_cache_follows_birth_date_with_update_fields(self):
        beneficiary = make_beneficiary(birth_date=born_years_ago(12))

        beneficiary.birth_date = born_years_ago(7)
        beneficiary.save(update_fields=["birth_date"])

        self.assertEqual(Beneficiary.objects.get(pk=beneficiary.pk).age_cache, 7)

    def test_age_alert(self):
        self.assertTrue(make_beneficiary(birth_date=born_years_ago(18)).age_alert)
        self.assertFalse(make_beneficiary(birth_date=born_years_ago(17)).age_alert)

    def test_refresh_age_cache_command(self):
        fresh = make_beneficiary(birth_date=born_years_ago(5))
        stale = make_beneficiary(birth_date=born_years_ago(9))
        Beneficiary.objects.filter(pk=stale.pk).update(age_cache=3)

        out = StringIO()
        call_command("refresh_age_cache", stdout=out)

        self.assertIn("1 beneficiaries", out.getvalue())
        self.assertEqual(Beneficiary.objects.get(pk=stale.pk).age_cache, 9)
        self.assertEqual(Beneficiary.objects.get(pk=fresh.pk).age_cache, 5)


class BeneficiaryApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="staff", password="password123")
        self.client.force_authenticate(user=self.user)
        self.guardian = make_guardian("Idrissi")

    def test_create_guardian(self):
        response = self.client.post(
            reverse("guardians"),
            {"last_name": "Fassi", "first_name": "Nadia"},
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["beneficiary_count"], 0)

    def test_guardian_requires_last_name(self):
        response = self.client.post(reverse("guardians"), {"last_name": "  "}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_create_beneficiary_exposes_age(self):
        response = self.client.post(
            reverse("beneficiaries"),
            {
                "last_name": "Idrissi",
                "first_name": "Yassine",
                "birth_date": born_years_ago(10).isoformat(),
                "guardian": str(self.guardian.id),
            },
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["age"], 10)
        self.assertFalse(response.data["age_alert"])
        self.assertIsNone(response.data["active_sponsorship"])
        self.assertEqual(response.data["guardian_name"], "Idrissi")

    def test_filter_by_age(self):
        make_beneficiary(self.guardian, first_name="Small", birth_date=born_years_ago(4))
        make_beneficiary(self.guardian, first_name="Big", birth_date=born_years_ago(16))

        response = self.client.get(reverse("beneficiaries"), {"min_age": 10})

        self.assertEqual([row["first_name"] for row in response.data["results"]], ["Big"])

    def test_detail_shows_active_sponsorship(self):
        beneficiary = make_beneficiary(self.guardian)
        sponsorship = make_sponsorship(make_sponsor(), beneficiary, start_date=current_date().replace(day=1))

        response = self.client.get(reverse("beneficiary-detail", args=[beneficiary.id]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["active_sponsorship"]["id"], str(sponsorship.id))

    def test_guardian_list_counts_beneficiaries(self):
        make_beneficiary(self.guardian)
        make_beneficiary(self.guardian)

        response = self.client.get(reverse("guardians"))

        self.assertEqual(response.data["results"][0]["beneficiary_count"], 2)

    def test_guardian_with_beneficiaries_cannot_be_deleted(self):
        make_beneficiary(self.guardian)

        response = self.client.delete(reverse("guardian-detail", args=[self.guardian.id]))

        self.assertEqual(response.status_code, 409)
        self.assertTrue(Guardian.objects.filter(pk=self.guardian.id).exists())

    def test_sponsored_beneficiary_cannot_be_deleted(self):
        beneficiary = make_beneficiary(self.guardian)
        make_sponsorship(make_sponsor(), beneficiary)

        response = self.client.delete(reverse("beneficiary-detail", args=[beneficiary.id]))

        self.assertEqual(response.status_code, 409)

    def test_delete_beneficiary(self):
        beneficiary = make_beneficiary(self.guardian)

        response = self.client.delete(reverse("beneficiary-detail", args=[beneficiary.id]))

        self.assertEqual(response.status_code, 204)
