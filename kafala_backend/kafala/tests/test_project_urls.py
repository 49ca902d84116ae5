# kafala/tests/test_project_urls.py

from django.test import TestCase
from rest_framework.test import APIClient


class ProjectUrlTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_health_check_is_public(self):
        response = self.client.get("/api/health/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {"status": "ok", "db": "ok"})

    def test_api_root_lists_modules(self):
        response = self.client.get("/api/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["modules"]["payment_preview"], "/api/payments/preview/")

    def test_site_root_redirects_to_docs(self):
        response = self.client.get("/")

        self.assertEqual(response.status_code, 302)
        self.assertEqual(response["Location"], "/api/docs/")
