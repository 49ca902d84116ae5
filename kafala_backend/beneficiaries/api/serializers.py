# beneficiaries/api/serializers.py

from rest_framework import serializers

from beneficiaries.models import Beneficiary, Guardian


class GuardianSerializer(serializers.ModelSerializer):
    beneficiary_count = serializers.SerializerMethodField()

    class Meta:
        model = Guardian
        fields = [
            "id",
            "last_name",
            "first_name",
            "national_id",
            "bank_account",
            "phone",
            "address",
            "is_closed",
            "beneficiary_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ("id", "beneficiary_count", "created_at", "updated_at")

    def get_beneficiary_count(self, obj):
        annotated = getattr(obj, "beneficiary_count", None)
        if annotated is not None:
            return annotated
        return obj.beneficiaries.count()

    def validate_last_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("last_name is required")
        return value


class BeneficiarySerializer(serializers.ModelSerializer):
    """
    age / age_alert are computed live from birth_date (age_cache is never exposed
    as authoritative).
    """

    guardian_name = serializers.CharField(source="guardian.full_name", read_only=True)
    age = serializers.IntegerField(read_only=True)
    age_alert = serializers.BooleanField(read_only=True)
    active_sponsorship = serializers.SerializerMethodField()

    class Meta:
        model = Beneficiary
        fields = [
            "id",
            "last_name",
            "first_name",
            "birth_date",
            "guardian",
            "guardian_name",
            "school_follow_up",
            "is_closed",
            "age",
            "age_alert",
            "active_sponsorship",
            "created_at",
            "updated_at",
        ]
        read_only_fields = (
            "id",
            "guardian_name",
            "age",
            "age_alert",
            "active_sponsorship",
            "created_at",
            "updated_at",
        )

    def validate_last_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("last_name is required")
        return value

    def get_active_sponsorship(self, obj):
        # Local import: sponsorships depends on beneficiaries.
        from sponsorships.services.sponsorship_service import find_active_sponsorship_for_beneficiary

        sponsorship = find_active_sponsorship_for_beneficiary(obj.id)
        if sponsorship is None:
            return None
        return {
            "id": str(sponsorship.id),
            "sponsor_id": str(sponsorship.sponsor_id),
            "start_date": sponsorship.start_date,
            "end_date": sponsorship.end_date,
        }
