from rest_framework import serializers
from .models import (
    Registration,
    PaymentHistory,
    PaymentReceipt,
    PaymentStatus,
    RegistrationStatus,
    ShirtSize,
)
from apps.accounts.serializers import UserMinimalSerializer
from apps.events.models import PaymentMethod
from apps.registrations.services.reports import REPORT_TYPES, STATUS_FILTERS, EXPORT_FORMATS


# =============================================================================
# Input Serializers
# =============================================================================

class RegistrationFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for registration filtering.

    Query Parameters:
        payment_status (str): pending, confirmed or rejected
        status (str): Coarse registration status
        category (str): Category name
        kit_claimed (bool): Kit handed out or not
        search (str): Name, e-mail or registration ID fragment
    """

    payment_status = serializers.ChoiceField(choices=PaymentStatus.choices, required=False)
    status = serializers.ChoiceField(choices=RegistrationStatus.choices, required=False)
    category = serializers.CharField(max_length=100, required=False)
    kit_claimed = serializers.BooleanField(required=False, allow_null=True, default=None)
    search = serializers.CharField(max_length=100, required=False)


class RegistrationCreateSerializer(serializers.Serializer):
    """Public registration form."""

    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    email = serializers.EmailField(max_length=255)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')
    age = serializers.IntegerField(min_value=1, max_value=120, required=False, allow_null=True)
    gender = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    category = serializers.CharField(max_length=100)
    shirt_size = serializers.ChoiceField(choices=ShirtSize.choices)
    is_church_attendee = serializers.BooleanField(required=False, default=False)
    department = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    ministry = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    cluster = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    emergency_contact = serializers.CharField(max_length=150, required=False, allow_blank=True, default='')
    emergency_phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')
    medical_conditions = serializers.CharField(required=False, allow_blank=True, default='')
    payment_method = serializers.PrimaryKeyRelatedField(
        queryset=PaymentMethod.objects.filter(active=True),
        required=False,
        allow_null=True
    )
    payment_reference_number = serializers.CharField(
        max_length=100, required=False, allow_blank=True, default=''
    )
    payment_proof_url = serializers.URLField(
        max_length=500, required=False, allow_blank=True, default=''
    )

    def validate_first_name(self, value):
        if '|' in value:
            raise serializers.ValidationError("Name cannot contain '|'.")
        return value.strip()

    def validate_last_name(self, value):
        if '|' in value:
            raise serializers.ValidationError("Name cannot contain '|'.")
        return value.strip()


class PaymentStatusInputSerializer(serializers.Serializer):
    """
    Validate input for a payment status change.

    Fields:
        status (str): pending, confirmed or rejected
        notes (str): Optional team note (e-mailed on rejection)
        send_email (bool): Notify the participant (default True)
    """

    status = serializers.CharField(max_length=20)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    send_email = serializers.BooleanField(required=False, default=True)


class KitClaimInputSerializer(serializers.Serializer):
    """Claim details entered at the claim desk."""

    actual_claimer = serializers.CharField(max_length=150, required=False, allow_blank=True, default='')
    claim_location = serializers.IntegerField(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class TicketScanInputSerializer(serializers.Serializer):
    """Raw QR payload from the scanner."""

    qr_data = serializers.CharField(max_length=1000, trim_whitespace=True)


class TicketClaimInputSerializer(TicketScanInputSerializer, KitClaimInputSerializer):
    """Scanned ticket plus claim details."""
    pass


class BulkClaimInputSerializer(serializers.Serializer):
    """
    Validate input for bulk kit claims.

    Fields:
        registration_ids (list[UUID]): Registrations to claim, in order
        claim_location (int): Where the kits were handed out
        notes (str): Optional note appended to every claim
    """

    registration_ids = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=False,
        max_length=500
    )
    claim_location = serializers.IntegerField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_registration_ids(self, value):
        if len(set(value)) != len(value):
            raise serializers.ValidationError("Duplicate registration IDs.")
        return value


class BatchPaymentStatusInputSerializer(serializers.Serializer):
    """
    Validate input for batch payment verification.

    Fields:
        registration_ids (list[UUID]): Registrations to update
        status (str): pending, confirmed or rejected
        notes (str): Optional note added to every registration
        send_email (bool): Notify each participant (default True)
    """

    registration_ids = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=False,
        max_length=500
    )
    status = serializers.ChoiceField(choices=PaymentStatus.choices)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    send_email = serializers.BooleanField(required=False, default=True)

    def validate_registration_ids(self, value):
        if len(set(value)) != len(value):
            raise serializers.ValidationError("Duplicate registration IDs.")
        return value


class BulkUploadInputSerializer(serializers.Serializer):
    """CSV or .xlsx sheet of registrations."""

    file = serializers.FileField()
    send_emails = serializers.BooleanField(required=False, default=False)


class ReportExportInputSerializer(serializers.Serializer):
    """
    Validate query parameters for report export.

    Query Parameters:
        report (str): Report type, e.g. all-registrations
        status (str): all, pending or confirmed
        file_format (str): xlsx or csv
    """

    report = serializers.ChoiceField(choices=list(REPORT_TYPES.items()))
    status = serializers.ChoiceField(choices=STATUS_FILTERS, required=False, default='all')
    file_format = serializers.ChoiceField(choices=list(EXPORT_FORMATS), required=False, default='xlsx')


# =============================================================================
# Output Serializers
# =============================================================================


class PaymentHistorySerializer(serializers.ModelSerializer):

    changed_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = PaymentHistory
        fields = ['id', 'payment_status', 'previous_status', 'changed_by', 'notes', 'created_at']
        read_only_fields = fields


class PaymentReceiptSerializer(serializers.ModelSerializer):

    registration_id = serializers.CharField(source='registration.registration_id', read_only=True)
    participant_name = serializers.CharField(source='registration.full_name', read_only=True)
    category = serializers.CharField(source='registration.category', read_only=True)
    amount = serializers.DecimalField(
        source='registration.price', max_digits=10, decimal_places=2, read_only=True
    )
    generated_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = PaymentReceipt
        fields = [
            'id',
            'receipt_number',
            'registration_id',
            'participant_name',
            'category',
            'amount',
            'receipt_url',
            'generated_at',
            'generated_by',
        ]
        read_only_fields = fields


class RegistrationListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for the admin list."""

    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Registration
        fields = [
            'id',
            'registration_id',
            'full_name',
            'email',
            'category',
            'price',
            'shirt_size',
            'status',
            'payment_status',
            'kit_claimed',
            'created_at',
        ]
        read_only_fields = fields


class RegistrationSerializer(serializers.ModelSerializer):
    """Full registration record for staff."""

    full_name = serializers.CharField(read_only=True)
    payment_method_name = serializers.CharField(source='payment_method.name', read_only=True, default=None)
    payment_confirmed_by = UserMinimalSerializer(read_only=True)
    processed_by = UserMinimalSerializer(read_only=True)
    claim_location_name = serializers.CharField(source='claim_location.name', read_only=True, default=None)
    receipt_number = serializers.SerializerMethodField()

    class Meta:
        model = Registration
        fields = [
            'id',
            'registration_id',
            'first_name',
            'last_name',
            'full_name',
            'email',
            'phone',
            'age',
            'gender',
            'category',
            'price',
            'shirt_size',
            'is_church_attendee',
            'department',
            'ministry',
            'cluster',
            'emergency_contact',
            'emergency_phone',
            'medical_conditions',
            'status',
            'payment_status',
            'payment_method',
            'payment_method_name',
            'payment_reference_number',
            'payment_proof_url',
            'payment_notes',
            'payment_confirmed_by',
            'payment_date',
            'receipt_number',
            'kit_claimed',
            'claimed_at',
            'processed_by',
            'actual_claimer',
            'claim_location',
            'claim_location_name',
            'claim_notes',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_receipt_number(self, obj):
        receipt = getattr(obj, 'receipt', None)
        return receipt.receipt_number if receipt else None


class PublicRegistrationSerializer(serializers.ModelSerializer):
    """What a participant sees right after registering."""

    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Registration
        fields = [
            'id',
            'registration_id',
            'full_name',
            'email',
            'category',
            'price',
            'shirt_size',
            'status',
            'payment_status',
            'created_at',
        ]
        read_only_fields = fields


class PaymentUpdateResultSerializer(serializers.Serializer):
    registration = RegistrationSerializer()
    changed = serializers.BooleanField()
    previous_status = serializers.CharField()
    receipt_number = serializers.CharField(allow_null=True)
    receipt_error = serializers.CharField(allow_null=True)
    notification_error = serializers.CharField(allow_null=True)
    warnings = serializers.ListField(child=serializers.CharField())


class TicketSerializer(serializers.Serializer):
    registration_id = serializers.CharField()
    participant_name = serializers.CharField()
    category = serializers.CharField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    shirt_size = serializers.CharField()


class TicketLookupSerializer(serializers.Serializer):
    registration = RegistrationSerializer()
    ticket = TicketSerializer()
    mismatches = serializers.ListField(child=serializers.CharField())
    is_consistent = serializers.BooleanField()


class TicketPayloadSerializer(serializers.Serializer):
    qr_data = serializers.CharField()
    qr_image = serializers.CharField(help_text="Base64 encoded PNG")


class RegistrationSummarySerializer(serializers.Serializer):
    total = serializers.IntegerField()
    pending = serializers.IntegerField()
    confirmed = serializers.IntegerField()
    rejected = serializers.IntegerField()
    kits_claimed = serializers.IntegerField()
    confirmed_revenue = serializers.DecimalField(max_digits=12, decimal_places=2)


class LocationClaimCountSerializer(serializers.Serializer):
    location = serializers.CharField()
    claimed = serializers.IntegerField()


class KitStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    claimed = serializers.IntegerField()
    unclaimed = serializers.IntegerField()
    confirmed_unclaimed = serializers.IntegerField()
    by_location = LocationClaimCountSerializer(many=True)


class BatchPaymentItemSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    registration_id = serializers.CharField(allow_null=True)
    success = serializers.BooleanField()
    changed = serializers.BooleanField()
    receipt_number = serializers.CharField(allow_null=True)
    error = serializers.CharField(allow_null=True)
    warnings = serializers.ListField(child=serializers.CharField())


class BatchPaymentResultSerializer(serializers.Serializer):
    updated = serializers.IntegerField()
    unchanged = serializers.IntegerField()
    failed = serializers.IntegerField()
    receipts = serializers.IntegerField()
    results = BatchPaymentItemSerializer(many=True)


class UploadRowErrorSerializer(serializers.Serializer):
    row = serializers.IntegerField()
    field = serializers.CharField(required=False)
    message = serializers.CharField()


class BulkUploadResultSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    created = serializers.IntegerField()
    failed = serializers.IntegerField()
    registration_ids = serializers.ListField(child=serializers.CharField())
    errors = UploadRowErrorSerializer(many=True)
