# payments/api/serializers.py

from decimal import Decimal

from rest_framework import serializers

from payments.models import Payment, PaymentType, Receipt, Transfer


class AllocationLineInputSerializer(serializers.Serializer):
    installment_id = serializers.UUIDField()
    amount_applied = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.00"))
    beneficiary_id = serializers.UUIDField(required=False, allow_null=True)
    sponsorship_id = serializers.UUIDField(required=False, allow_null=True)
    month = serializers.DateField(required=False, allow_null=True)


class PaymentCreateSerializer(serializers.Serializer):
    """
    KAFALA rule: sponsor required, beneficiary and guardian forbidden.
    `allocation` is an edited preview; omit it to let the engine allocate.
    """

    payment_type = serializers.ChoiceField(choices=PaymentType.choices, default=PaymentType.KAFALA)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    payment_date = serializers.DateField(required=False)

    sponsor_id = serializers.UUIDField(required=False, allow_null=True)
    beneficiary_id = serializers.UUIDField(required=False, allow_null=True)
    guardian_id = serializers.UUIDField(required=False, allow_null=True)
    receipt_id = serializers.UUIDField(required=False, allow_null=True)

    allocation = AllocationLineInputSerializer(many=True, required=False)

    def validate_amount(self, value):
        if value is None or value <= Decimal("0.00"):
            raise serializers.ValidationError("Amount must be > 0")
        return value

    def validate(self, attrs):
        if attrs.get("payment_type") == PaymentType.KAFALA:
            if not attrs.get("sponsor_id"):
                raise serializers.ValidationError({"sponsor_id": "A sponsor is required for a KAFALA payment"})
            if attrs.get("beneficiary_id") or attrs.get("guardian_id"):
                raise serializers.ValidationError(
                    {"payment_type": "Beneficiary and guardian are not allowed on a KAFALA payment"}
                )
        elif attrs.get("allocation") is not None:
            raise serializers.ValidationError(
                {"allocation": "An allocation plan can only be supplied for a KAFALA payment"}
            )
        return attrs


class PaymentPreviewSerializer(serializers.Serializer):
    sponsor_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)

    def validate_amount(self, value):
        if value <= Decimal("0.00"):
            raise serializers.ValidationError("Amount must be > 0")
        return value


class PaymentSerializer(serializers.ModelSerializer):
    sponsor_name = serializers.SerializerMethodField()
    beneficiary_name = serializers.SerializerMethodField()
    guardian_name = serializers.SerializerMethodField()
    receipt_number = serializers.SerializerMethodField()

    class Meta:
        model = Payment
        fields = [
            "id",
            "payment_type",
            "amount",
            "payment_date",
            "sponsor",
            "sponsor_name",
            "beneficiary",
            "beneficiary_name",
            "guardian",
            "guardian_name",
            "receipt",
            "receipt_number",
            "allocation",
            "created_at",
        ]
        read_only_fields = fields

    def get_sponsor_name(self, obj):
        return getattr(obj.sponsor, "full_name", None)

    def get_beneficiary_name(self, obj):
        return getattr(obj.beneficiary, "full_name", None)

    def get_guardian_name(self, obj):
        return getattr(obj.guardian, "full_name", None)

    def get_receipt_number(self, obj):
        return getattr(obj.receipt, "number", None)


class ReceiptSerializer(serializers.ModelSerializer):
    sponsor_name = serializers.SerializerMethodField()

    class Meta:
        model = Receipt
        fields = [
            "id",
            "number",
            "sponsor",
            "sponsor_name",
            "ice",
            "total",
            "payment_type",
            "lines",
            "issued_on",
            "created_at",
        ]
        read_only_fields = ("id", "sponsor_name", "created_at")

    def get_sponsor_name(self, obj):
        return getattr(obj.sponsor, "full_name", None)

    def validate_number(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("number is required")
        return value

    def validate_total(self, value):
        if value is None or value <= Decimal("0.00"):
            raise serializers.ValidationError("total must be > 0")
        return value


class TransferSerializer(serializers.ModelSerializer):
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    guardian_name = serializers.CharField(source="guardian.full_name", read_only=True)
    beneficiary_name = serializers.CharField(source="beneficiary.full_name", read_only=True)
    sponsor_name = serializers.CharField(source="sponsor.full_name", read_only=True)

    class Meta:
        model = Transfer
        fields = [
            "id",
            "guardian",
            "guardian_name",
            "beneficiary",
            "beneficiary_name",
            "sponsor",
            "sponsor_name",
            "pledge_value",
            "months",
            "total_amount",
            "transfer_date",
            "created_at",
        ]
        read_only_fields = (
            "id",
            "guardian_name",
            "beneficiary_name",
            "sponsor_name",
            "total_amount",
            "created_at",
        )

    def validate_pledge_value(self, value):
        if value is None or value <= Decimal("0.00"):
            raise serializers.ValidationError("pledge_value must be > 0")
        return value

    def validate_months(self, value):
        if value is None or value <= 0:
            raise serializers.ValidationError("months must be > 0")
        return value
