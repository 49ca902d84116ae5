# reporting/api/urls.py

from django.urls import path

from reporting.api.views import DashboardView

urlpatterns = [
    path("dashboard/", DashboardView.as_view(), name="dashboard"),
]
