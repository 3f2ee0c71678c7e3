"""
Participant e-mails: payment status changes and registration tickets.

Every attempt is recorded as an EmailNotification row. Send failures are
logged, recorded as ``failed`` and raised as NotificationError; callers
in the payment workflow treat them as non-fatal.
"""
from django.conf import settings
from django.core.mail import send_mail, EmailMultiAlternatives
from django.db import DatabaseError, transaction
from django.template.loader import render_to_string
from django.utils import timezone
from typing import Optional
import logging

from apps.registrations.models import (
    EmailNotification,
    EmailNotificationStatus,
    PaymentStatus,
)
from .exceptions import NotificationError
from .tickets import ticket_for_registration, generate_ticket_qr_png

logger = logging.getLogger(__name__)


STATUS_EMAILS = {
    PaymentStatus.CONFIRMED: ('{event}: Payment Confirmed', 'registrations/emails/payment_confirmed.txt'),
    PaymentStatus.REJECTED: ('{event}: Payment Issue - Action Required', 'registrations/emails/payment_rejected.txt'),
    PaymentStatus.PENDING: ('{event}: Payment Received - Under Review', 'registrations/emails/payment_pending.txt'),
}


def _event_name():
    return getattr(settings, 'FAMRUN_EVENT_NAME', 'FamRun')


def _record(*, email, recipient_name, registration_id, email_type, subject, body, error=None):
    try:
        with transaction.atomic():
            return EmailNotification.objects.create(
                email=email,
                recipient_name=recipient_name,
                registration_id=registration_id,
                email_type=email_type,
                subject=subject,
                body=body,
                status=EmailNotificationStatus.FAILED if error else EmailNotificationStatus.SENT,
                error_message=str(error) if error else '',
                sent_at=None if error else timezone.now(),
            )
    except DatabaseError as e:
        logger.error(f"Failed to log {email_type} email for {registration_id}: {e}")
        raise NotificationError(f"Failed to log {email_type} email: {e}") from e


def send_payment_status_email(
    *,
    email: str,
    participant_name: str,
    registration_id: str,
    status: str,
    notes: Optional[str] = None,
) -> EmailNotification:
    """
    Tell a participant their payment status changed.

    Args:
        email: Recipient address
        participant_name: Name used in the greeting
        registration_id: Human readable registration identifier
        status: Resulting payment status
        notes: Team note shown to the participant (rejections)

    Returns:
        The EmailNotification recorded for the sent message

    Raises:
        NotificationError: If there is no template for the status or the
            mail backend failed
    """
    if status not in STATUS_EMAILS:
        raise NotificationError(f"No email template for status: {status}")

    subject_format, template_name = STATUS_EMAILS[status]
    subject = subject_format.format(event=_event_name())
    body = render_to_string(template_name, {
        'participant_name': participant_name,
        'registration_id': registration_id,
        'notes': notes,
        'event_name': _event_name(),
    })
    email_type = f'payment_{status}'

    try:
        send_mail(
            subject=subject,
            message=body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[email],
            fail_silently=False,
        )
    except Exception as e:
        logger.error(f"Failed to send {email_type} email to {email} for {registration_id}: {e}")
        _record(
            email=email,
            recipient_name=participant_name,
            registration_id=registration_id,
            email_type=email_type,
            subject=subject,
            body=body,
            error=e,
        )
        raise NotificationError(f"Failed to send {email_type} email: {e}") from e

    logger.info(f"{email_type} email sent to {email} for registration {registration_id}")
    return _record(
        email=email,
        recipient_name=participant_name,
        registration_id=registration_id,
        email_type=email_type,
        subject=subject,
        body=body,
    )


def send_registration_ticket_email(registration) -> EmailNotification:
    """
    Send the participant their ticket with the QR code attached.

    Raises:
        NotificationError: If the ticket could not be encoded or the mail
            backend failed
    """
    subject = f'{_event_name()}: Registration Received - {registration.registration_id}'
    body = render_to_string('registrations/emails/registration_ticket.txt', {
        'registration': registration,
        'event_name': _event_name(),
    })

    try:
        payload = ticket_for_registration(registration)
        message = EmailMultiAlternatives(
            subject=subject,
            body=body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[registration.email],
        )
        message.attach(
            f'ticket_{registration.registration_id}.png',
            generate_ticket_qr_png(payload),
            'image/png',
        )
        message.send(fail_silently=False)
    except Exception as e:
        logger.error(f"Failed to send ticket email for {registration.registration_id}: {e}")
        _record(
            email=registration.email,
            recipient_name=registration.full_name,
            registration_id=registration.registration_id,
            email_type='registration_ticket',
            subject=subject,
            body=body,
            error=e,
        )
        raise NotificationError(f"Failed to send ticket email: {e}") from e

    logger.info(f"Ticket email sent to {registration.email} for registration {registration.registration_id}")
    return _record(
        email=registration.email,
        recipient_name=registration.full_name,
        registration_id=registration.registration_id,
        email_type='registration_ticket',
        subject=subject,
        body=body,
    )
