from django.contrib import admin
from django.utils.html import format_html
from .models import (
    Registration,
    PaymentHistory,
    PaymentReceipt,
    EmailNotification,
    EmailNotificationStatus,
    PaymentStatus,
)


PAYMENT_STATUS_COLORS = {
    PaymentStatus.PENDING: ('#E5C49A', '#2C1810'),
    PaymentStatus.CONFIRMED: ('#6B8E5E', 'white'),
    PaymentStatus.REJECTED: ('#B85C5C', 'white'),
}


def _badge(label, background, color='white'):
    return format_html(
        '<span style="background: {}; color: {}; padding: 3px 8px; '
        'border-radius: 10px; font-size: 11px;">{}</span>',
        background, color, label,
    )


class PaymentHistoryInline(admin.TabularInline):
    """Read-only payment history within a registration."""
    model = PaymentHistory
    extra = 0
    fields = ['created_at', 'previous_status', 'payment_status', 'changed_by', 'notes']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        """History rows are written by the payment service only."""
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    """
    Admin interface for registrations.

    Payment status is read-only here: changes must go through the API so
    that history, receipts and e-mails stay consistent.
    """

    list_display = [
        'registration_id',
        'full_name',
        'email',
        'category',
        'shirt_size',
        'payment_status_badge',
        'kit_badge',
        'created_at',
    ]

    list_filter = [
        'payment_status',
        'status',
        'category',
        'shirt_size',
        'kit_claimed',
        'claim_location',
        'created_at',
    ]

    search_fields = [
        'registration_id',
        'first_name',
        'last_name',
        'email',
        'payment_reference_number',
    ]

    readonly_fields = [
        'id',
        'registration_id',
        'price',
        'status',
        'payment_status',
        'payment_confirmed_by',
        'payment_date',
        'kit_claimed',
        'claimed_at',
        'processed_by',
        'created_at',
        'updated_at',
    ]

    fieldsets = (
        ('Participant', {
            'fields': (
                'id', 'registration_id', 'first_name', 'last_name', 'email',
                'phone', 'age', 'gender', 'category', 'price', 'shirt_size',
            )
        }),
        ('Church', {
            'fields': ('is_church_attendee', 'department', 'ministry', 'cluster'),
            'classes': ('collapse',),
        }),
        ('Emergency', {
            'fields': ('emergency_contact', 'emergency_phone', 'medical_conditions'),
            'classes': ('collapse',),
        }),
        ('Payment', {
            'fields': (
                'status', 'payment_status', 'payment_method', 'payment_reference_number',
                'payment_proof_url', 'payment_notes', 'payment_confirmed_by', 'payment_date',
            )
        }),
        ('Kit', {
            'fields': (
                'kit_claimed', 'claimed_at', 'processed_by', 'actual_claimer',
                'claim_location', 'claim_notes',
            )
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    inlines = [PaymentHistoryInline]
    date_hierarchy = 'created_at'

    def payment_status_badge(self, obj):
        bg, fg = PAYMENT_STATUS_COLORS.get(obj.payment_status, ('#ccc', '#666'))
        return _badge(obj.get_payment_status_display(), bg, fg)
    payment_status_badge.short_description = 'Payment'

    def kit_badge(self, obj):
        if obj.kit_claimed:
            return _badge('Claimed', '#6B8E5E')
        return _badge('Waiting', '#ccc', '#666')
    kit_badge.short_description = 'Kit'


@admin.register(PaymentReceipt)
class PaymentReceiptAdmin(admin.ModelAdmin):
    list_display = ['receipt_number', 'registration', 'generated_by', 'generated_at']
    search_fields = ['receipt_number', 'registration__registration_id', 'registration__email']
    readonly_fields = ['id', 'registration', 'receipt_number', 'generated_by', 'generated_at']

    def has_add_permission(self, request):
        """Receipts are issued when a payment is confirmed."""
        return False


@admin.register(EmailNotification)
class EmailNotificationAdmin(admin.ModelAdmin):
    list_display = ['email', 'email_type', 'registration_id', 'status_badge', 'created_at']
    list_filter = ['status', 'email_type', 'created_at']
    search_fields = ['email', 'registration_id', 'subject']
    readonly_fields = [f.name for f in EmailNotification._meta.fields]

    def status_badge(self, obj):
        if obj.status == EmailNotificationStatus.SENT:
            return _badge('Sent', '#6B8E5E')
        return _badge('Failed', '#B85C5C')
    status_badge.short_description = 'Status'

    def has_add_permission(self, request):
        return False
