"""
Payment status transitions.

States are pending, confirmed and rejected; every edge between them is
allowed. A transition updates the registration and appends one
PaymentHistory row atomically. Receipt issuance (on confirmation) and
the participant e-mail run after the commit and never undo it.
"""

from django.conf import settings
from django.db import transaction, DatabaseError
from django.utils import timezone
from typing import Iterable, Optional
from uuid import UUID
import logging

from apps.accounts.models import User
from apps.registrations.models import (
    Registration,
    PaymentHistory,
    PaymentStatus,
    RegistrationStatus,
)
from .exceptions import (
    RegistrationsServiceError,
    RegistrationNotFoundError,
    InvalidPaymentStatusError,
    PaymentUpdateFailedError,
    ReceiptIssuanceError,
    NotificationError,
)
from .receipts import issue_receipt, get_receipt
from .notifications import send_payment_status_email

logger = logging.getLogger(__name__)


def _result(registration, changed, previous_status, history_entry=None, receipt_number=None):
    return {
        'registration': registration,
        'changed': changed,
        'previous_status': previous_status,
        'history_entry': history_entry,
        'receipt_number': receipt_number,
        'receipt_error': None,
        'notification_error': None,
        'warnings': [],
    }


def update_payment_status(
    *,
    registration_id: UUID,
    new_status: str,
    notes: Optional[str] = None,
    actor: Optional[User] = None,
    send_email: bool = True,
) -> dict:
    """
    Move a registration to a new payment status.

    This operation:
    1. Locks the registration row (concurrent transitions serialize)
    2. Short-circuits when the status is unchanged and no notes are given
    3. Updates payment fields and appends a PaymentHistory row atomically
    4. Issues the receipt when the new status is confirmed (best effort)
    5. E-mails the participant (best effort)

    Args:
        registration_id: Registration primary key
        new_status: pending, confirmed or rejected
        notes: Free-text staff notes (shown to the participant on rejection)
        actor: Staff member making the change
        send_email: Set False to skip the participant e-mail

    Returns:
        dict: A dictionary containing:
            - registration (Registration): The refreshed registration.
            - changed (bool): False for the no-op case.
            - previous_status (str): Status before the call.
            - history_entry (PaymentHistory | None): Row appended.
            - receipt_number (str | None): Receipt of a confirmed payment.
            - receipt_error, notification_error (str | None): Non-fatal failures.
            - warnings (list[str]): Human readable partial-failure notes.

    Raises:
        InvalidPaymentStatusError: If new_status is not a known status
        RegistrationNotFoundError: If the registration doesn't exist
        PaymentUpdateFailedError: If the registration or history write failed
            (nothing is committed, no receipt, no e-mail)
    """
    if new_status not in PaymentStatus.values:
        raise InvalidPaymentStatusError(
            f"Invalid payment status '{new_status}'. "
            f"Expected one of: {', '.join(PaymentStatus.values)}"
        )
    notes = (notes or '').strip()

    try:
        with transaction.atomic():
            try:
                registration = (
                    Registration.objects
                    .select_for_update()
                    .get(id=registration_id)
                )
            except Registration.DoesNotExist:
                raise RegistrationNotFoundError(f"Registration {registration_id} not found")

            previous_status = registration.current_payment_status

            if previous_status == new_status and not notes:
                receipt = get_receipt(registration)
                return _result(
                    registration,
                    changed=False,
                    previous_status=previous_status,
                    receipt_number=receipt.receipt_number if receipt else None,
                )

            registration.payment_status = new_status
            registration.payment_notes = notes
            registration.payment_confirmed_by = actor
            if new_status == PaymentStatus.CONFIRMED:
                registration.status = RegistrationStatus.CONFIRMED
                registration.payment_date = timezone.now()
            else:
                registration.status = RegistrationStatus.PENDING
            registration.save(update_fields=[
                'payment_status',
                'payment_notes',
                'payment_confirmed_by',
                'status',
                'payment_date',
                'updated_at',
            ])

            history_entry = PaymentHistory.objects.create(
                registration=registration,
                payment_status=new_status,
                previous_status=previous_status,
                changed_by=actor,
                notes=notes,
            )
    except DatabaseError as e:
        logger.error(f"Payment status update failed for registration {registration_id}: {e}")
        raise PaymentUpdateFailedError(f"Could not update payment status: {e}") from e

    logger.info(
        f"Payment status of {registration.registration_id} changed "
        f"{previous_status} -> {new_status} by {actor or 'system'}"
    )

    result = _result(
        registration,
        changed=True,
        previous_status=previous_status,
        history_entry=history_entry,
    )

    if new_status == PaymentStatus.CONFIRMED:
        try:
            receipt = issue_receipt(registration=registration, actor=actor)
            result['receipt_number'] = receipt.receipt_number
        except ReceiptIssuanceError as e:
            logger.error(f"Failed to generate receipt for {registration.registration_id}: {e}")
            result['receipt_error'] = str(e)
            result['warnings'].append('Receipt could not be generated')

    if send_email and getattr(settings, 'FAMRUN_SEND_STATUS_EMAILS', True):
        try:
            send_payment_status_email(
                email=registration.email,
                participant_name=registration.first_name,
                registration_id=registration.registration_id,
                status=new_status,
                notes=notes if new_status == PaymentStatus.REJECTED else None,
            )
        except NotificationError as e:
            result['notification_error'] = str(e)
            result['warnings'].append('Status e-mail could not be sent')

    return result


def get_payment_history(registration: Registration):
    """Payment history of a registration, newest first."""
    return (
        PaymentHistory.objects
        .filter(registration=registration)
        .select_related('changed_by')
        .order_by('-created_at', '-id')
    )


def batch_update_payment_status(
    *,
    registration_ids: Iterable[UUID],
    new_status: str,
    notes: Optional[str] = None,
    actor: Optional[User] = None,
    send_email: bool = True,
) -> dict:
    """
    Apply one payment status to many registrations (batch verification).

    Each registration goes through update_payment_status() on its own, so
    a failure only affects that item; the rest of the batch carries on.

    Returns:
        dict: A dictionary containing:
            - updated (int): Registrations whose status changed
            - unchanged (int): No-op transitions
            - failed (int): Registrations that could not be updated
            - receipts (int): Receipts issued or already on file
            - results (list[dict]): Per registration ``id``,
              ``registration_id``, ``success``, ``changed``,
              ``receipt_number``, ``error`` and ``warnings``

    Raises:
        InvalidPaymentStatusError: If new_status is not a known status
            (checked once, before any registration is touched)
    """
    if new_status not in PaymentStatus.values:
        raise InvalidPaymentStatusError(
            f"Invalid payment status '{new_status}'. "
            f"Expected one of: {', '.join(PaymentStatus.values)}"
        )

    summary = {'updated': 0, 'unchanged': 0, 'failed': 0, 'receipts': 0, 'results': []}

    for registration_id in registration_ids:
        try:
            result = update_payment_status(
                registration_id=registration_id,
                new_status=new_status,
                notes=notes,
                actor=actor,
                send_email=send_email,
            )
        except RegistrationsServiceError as e:
            logger.error(f"Batch payment update failed for registration {registration_id}: {e}")
            summary['failed'] += 1
            summary['results'].append({
                'id': registration_id,
                'registration_id': None,
                'success': False,
                'changed': False,
                'receipt_number': None,
                'error': str(e),
                'warnings': [],
            })
            continue

        summary['updated' if result['changed'] else 'unchanged'] += 1
        if result['receipt_number']:
            summary['receipts'] += 1
        summary['results'].append({
            'id': registration_id,
            'registration_id': result['registration'].registration_id,
            'success': True,
            'changed': result['changed'],
            'receipt_number': result['receipt_number'],
            'error': None,
            'warnings': result['warnings'],
        })

    logger.info(
        f"Batch payment update to {new_status} by {actor or 'system'}: "
        f"{summary['updated']} updated, {summary['unchanged']} unchanged, {summary['failed']} failed"
    )
    return summary
