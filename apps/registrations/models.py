from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


class PaymentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    CONFIRMED = 'confirmed', 'Confirmed'
    REJECTED = 'rejected', 'Rejected'


class RegistrationStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    CONFIRMED = 'confirmed', 'Confirmed'


class ShirtSize(models.TextChoices):
    XS = 'XS', 'Extra Small'
    S = 'S', 'Small'
    M = 'M', 'Medium'
    L = 'L', 'Large'
    XL = 'XL', 'Extra Large'
    XXL = 'XXL', '2X Large'
    XXXL = 'XXXL', '3X Large'


class Registration(models.Model):
    """One participant's enrollment for the race."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Human readable identifier printed on tickets
    registration_id = models.CharField(max_length=32, unique=True, db_index=True)

    # Participant
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(max_length=255)
    phone = models.CharField(max_length=30, blank=True)
    age = models.PositiveIntegerField(null=True, blank=True)
    gender = models.CharField(max_length=20, blank=True)

    # Race entry (category name and price are snapshots taken at registration)
    category = models.CharField(max_length=100)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    shirt_size = models.CharField(max_length=5, choices=ShirtSize.choices)

    # Church affiliation
    is_church_attendee = models.BooleanField(default=False)
    department = models.CharField(max_length=100, blank=True)
    ministry = models.CharField(max_length=100, blank=True)
    cluster = models.CharField(max_length=100, blank=True)

    # Emergency info
    emergency_contact = models.CharField(max_length=150, blank=True)
    emergency_phone = models.CharField(max_length=30, blank=True)
    medical_conditions = models.TextField(blank=True)

    # Payment
    status = models.CharField(
        max_length=20,
        choices=RegistrationStatus.choices,
        default=RegistrationStatus.PENDING
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING
    )
    payment_method = models.ForeignKey(
        'events.PaymentMethod',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='registrations'
    )
    payment_reference_number = models.CharField(max_length=100, blank=True)
    payment_proof_url = models.URLField(max_length=500, blank=True)
    payment_notes = models.TextField(blank=True)
    payment_confirmed_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payment_decisions'
    )
    payment_date = models.DateTimeField(null=True, blank=True)

    # Kit claim
    kit_claimed = models.BooleanField(default=False)
    claimed_at = models.DateTimeField(null=True, blank=True)
    processed_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='kits_processed'
    )
    actual_claimer = models.CharField(max_length=150, blank=True)
    claim_location = models.ForeignKey(
        'events.ClaimLocation',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='claims'
    )
    claim_notes = models.TextField(blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'registrations'
        indexes = [
            models.Index(fields=['payment_status'], name='reg_payment_status_idx'),
            models.Index(fields=['status', 'kit_claimed'], name='reg_status_kit_idx'),
            models.Index(fields=['category'], name='reg_category_idx'),
            models.Index(fields=['created_at'], name='reg_created_at_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.registration_id} - {self.full_name} ({self.category})"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def current_payment_status(self):
        """Payment status with legacy blanks treated as pending."""
        return self.payment_status or PaymentStatus.PENDING


class PaymentHistory(models.Model):
    """Append-only audit entry, one per payment status change."""

    registration = models.ForeignKey(
        Registration,
        on_delete=models.CASCADE,
        related_name='payment_history'
    )
    payment_status = models.CharField(max_length=20, choices=PaymentStatus.choices)
    previous_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        null=True,
        blank=True
    )
    changed_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payment_history_entries'
    )
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'payment_history'
        indexes = [
            models.Index(fields=['registration', 'created_at'], name='payhist_reg_created_idx'),
        ]
        ordering = ['-created_at', '-id']
        verbose_name_plural = 'payment history'

    def __str__(self):
        return f"{self.registration.registration_id}: {self.previous_status} -> {self.payment_status}"


class PaymentReceipt(models.Model):
    """Proof of payment, issued once per confirmed registration."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    registration = models.OneToOneField(
        Registration,
        on_delete=models.CASCADE,
        related_name='receipt'
    )
    receipt_number = models.CharField(max_length=32, unique=True, db_index=True)
    receipt_url = models.URLField(max_length=500, blank=True)
    generated_at = models.DateTimeField(auto_now_add=True)
    generated_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='receipts_generated'
    )

    class Meta:
        db_table = 'payment_receipts'
        ordering = ['-generated_at']

    def __str__(self):
        return self.receipt_number


class EmailNotificationStatus(models.TextChoices):
    SENT = 'sent', 'Sent'
    FAILED = 'failed', 'Failed'


class EmailNotification(models.Model):
    """Log of every participant e-mail the system attempted to send."""

    email = models.EmailField(max_length=255)
    recipient_name = models.CharField(max_length=150, blank=True)
    registration_id = models.CharField(max_length=32, db_index=True)
    email_type = models.CharField(max_length=50)
    subject = models.CharField(max_length=255)
    body = models.TextField()
    status = models.CharField(max_length=10, choices=EmailNotificationStatus.choices)
    error_message = models.TextField(blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'email_notifications'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.email_type} to {self.email} ({self.status})"
