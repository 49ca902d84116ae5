# sponsorships/api/urls.py

from django.urls import path

from sponsorships.api.views import (
    SponsorDetailView,
    SponsorListCreateView,
    SponsorshipCloseView,
    SponsorshipDetailView,
    SponsorshipInstallmentsView,
    SponsorshipListCreateView,
)

urlpatterns = [
    path("sponsors/", SponsorListCreateView.as_view(), name="sponsors"),
    path("sponsors/<uuid:sponsor_id>/", SponsorDetailView.as_view(), name="sponsor-detail"),
    path("sponsorships/", SponsorshipListCreateView.as_view(), name="sponsorships"),
    path(
        "sponsorships/<uuid:sponsorship_id>/",
        SponsorshipDetailView.as_view(),
        name="sponsorship-detail",
    ),
    path(
        "sponsorships/<uuid:sponsorship_id>/close/",
        SponsorshipCloseView.as_view(),
        name="sponsorship-close",
    ),
    path(
        "sponsorships/<uuid:sponsorship_id>/installments/",
        SponsorshipInstallmentsView.as_view(),
        name="sponsorship-installments",
    ),
]
