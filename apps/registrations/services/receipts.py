"""Payment receipt issuance."""

from django.conf import settings
from django.db import transaction, IntegrityError, DatabaseError
from django.utils import timezone
from typing import Optional
import logging
import secrets

from apps.accounts.models import User
from apps.registrations.models import Registration, PaymentReceipt
from .exceptions import ReceiptIssuanceError

logger = logging.getLogger(__name__)

RECEIPT_NUMBER_ATTEMPTS = 3


def generate_receipt_number() -> str:
    """
    Generate a receipt number.

    Format: ``FR-<year>-<8 uppercase hex>``, e.g. ``FR-2025-3FA94C1B``.
    The unique constraint on ``receipt_number`` catches the rare collision.
    """
    prefix = getattr(settings, 'FAMRUN_RECEIPT_PREFIX', 'FR')
    year = timezone.now().year
    return f"{prefix}-{year:04d}-{secrets.token_hex(4).upper()}"


def get_receipt(registration: Registration) -> Optional[PaymentReceipt]:
    return PaymentReceipt.objects.filter(registration=registration).first()


def issue_receipt(*, registration: Registration, actor: Optional[User] = None) -> PaymentReceipt:
    """
    Return the registration's receipt, creating it on first call.

    Safe to call repeatedly: an existing receipt is returned unchanged.

    Args:
        registration: Registration the receipt belongs to
        actor: Staff member issuing the receipt

    Returns:
        PaymentReceipt instance

    Raises:
        ReceiptIssuanceError: If the receipt could not be stored after
            RECEIPT_NUMBER_ATTEMPTS tries
    """
    existing = get_receipt(registration)
    if existing:
        return existing

    for attempt in range(1, RECEIPT_NUMBER_ATTEMPTS + 1):
        receipt_number = generate_receipt_number()
        try:
            with transaction.atomic():
                receipt = PaymentReceipt.objects.create(
                    registration=registration,
                    receipt_number=receipt_number,
                    generated_by=actor,
                )
        except IntegrityError:
            # Another request may have issued the receipt meanwhile
            existing = get_receipt(registration)
            if existing:
                return existing
            logger.warning(
                f"Receipt number collision on {receipt_number} "
                f"(attempt {attempt}/{RECEIPT_NUMBER_ATTEMPTS})"
            )
            continue
        except DatabaseError as e:
            raise ReceiptIssuanceError(
                f"Could not store receipt for {registration.registration_id}: {e}"
            )

        logger.info(f"Issued receipt {receipt.receipt_number} for {registration.registration_id}")
        return receipt

    raise ReceiptIssuanceError(
        f"Could not generate a unique receipt number for {registration.registration_id}"
    )
