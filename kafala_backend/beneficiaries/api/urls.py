# beneficiaries/api/urls.py

from django.urls import path

from beneficiaries.api.views import (
    BeneficiaryDetailView,
    BeneficiaryListCreateView,
    GuardianDetailView,
    GuardianListCreateView,
)

urlpatterns = [
    path("guardians/", GuardianListCreateView.as_view(), name="guardians"),
    path("guardians/<uuid:guardian_id>/", GuardianDetailView.as_view(), name="guardian-detail"),
    path("beneficiaries/", BeneficiaryListCreateView.as_view(), name="beneficiaries"),
    path(
        "beneficiaries/<uuid:beneficiary_id>/",
        BeneficiaryDetailView.as_view(),
        name="beneficiary-detail",
    ),
]
