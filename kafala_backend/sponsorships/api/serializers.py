# sponsorships/api/serializers.py

from decimal import Decimal

from rest_framework import serializers

from sponsorships.models import Installment, Sponsor, Sponsorship
from sponsorships.services.sponsorship_service import installment_stats


class SponsorSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Sponsor
        fields = [
            "id",
            "sponsor_type",
            "last_name",
            "first_name",
            "full_name",
            "national_id",
            "ice",
            "email",
            "phone",
            "address",
            "pledge_value",
            "active_sponsorship_count",
            "donor_code",
            "sponsor_code",
            "is_member",
            "is_donor",
            "is_sponsor",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ("id", "full_name", "active_sponsorship_count", "created_at", "updated_at")

    def validate_pledge_value(self, value):
        if value is None or value <= Decimal("0.00"):
            raise serializers.ValidationError("pledge_value must be > 0")
        return value

    def validate_last_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("last_name is required")
        return value


class InstallmentSerializer(serializers.ModelSerializer):
    amount_remaining = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Installment
        fields = [
            "id",
            "sponsorship",
            "month",
            "amount_due",
            "amount_paid",
            "amount_remaining",
            "settled",
            "updated_at",
        ]
        read_only_fields = fields


class SponsorshipSerializer(serializers.ModelSerializer):
    sponsor_name = serializers.CharField(source="sponsor.full_name", read_only=True)
    beneficiary_name = serializers.CharField(source="beneficiary.full_name", read_only=True)
    is_active = serializers.BooleanField(read_only=True)
    installment_stats = serializers.SerializerMethodField()

    class Meta:
        model = Sponsorship
        fields = [
            "id",
            "sponsor",
            "sponsor_name",
            "beneficiary",
            "beneficiary_name",
            "start_date",
            "end_date",
            "pledge_value",
            "is_active",
            "installment_stats",
            "created_at",
        ]
        read_only_fields = fields

    def get_installment_stats(self, obj):
        return installment_stats(obj)


class SponsorshipCreateSerializer(serializers.Serializer):
    sponsor_id = serializers.UUIDField()
    beneficiary_id = serializers.UUIDField()
    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False, allow_null=True, default=None)
    close_previous = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        end = attrs.get("end_date")
        if end is not None and end < attrs["start_date"]:
            raise serializers.ValidationError({"end_date": "end_date must be on or after start_date"})
        return attrs


class SponsorshipUpdateSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False, allow_null=True)
