"""
Participant registration service.

Handles public sign-ups and the dashboard summary.
"""

from django.conf import settings
from django.db import transaction, IntegrityError
from django.db.models import Count, Sum, Q
from django.utils import timezone
from decimal import Decimal
from typing import Optional
import logging
import secrets

from apps.events.models import Category, PaymentMethod
from apps.registrations.models import (
    Registration,
    PaymentStatus,
    RegistrationStatus,
)
from .exceptions import CategoryNotFoundError, RegistrationsServiceError
from .notifications import send_registration_ticket_email

logger = logging.getLogger(__name__)


def generate_registration_id() -> str:
    """``FR<year><6 random digits>``, e.g. ``FR2025123456``."""
    return f"FR{timezone.now().year}{secrets.randbelow(1_000_000):06d}"


def _send_ticket_email(registration_pk):
    registration = Registration.objects.get(pk=registration_pk)
    try:
        send_registration_ticket_email(registration)
    except RegistrationsServiceError as e:
        logger.error(f"Ticket email for {registration.registration_id} not delivered: {e}")


def register_participant(
    *,
    first_name: str,
    last_name: str,
    email: str,
    category: str,
    shirt_size: str,
    phone: str = '',
    age: Optional[int] = None,
    gender: str = '',
    is_church_attendee: bool = False,
    department: str = '',
    ministry: str = '',
    cluster: str = '',
    emergency_contact: str = '',
    emergency_phone: str = '',
    medical_conditions: str = '',
    payment_method: Optional[PaymentMethod] = None,
    payment_reference_number: str = '',
    payment_proof_url: str = '',
    send_ticket_email: bool = True,
    max_retries: int = 5,
) -> Registration:
    """
    Register a participant for the race.

    This operation:
    1. Resolves the active category and snapshots its price
    2. Generates a unique registration ID
    3. Stores the registration as pending
    4. Queues the ticket e-mail for after the commit

    Args:
        category: Category name (case-insensitive)
        payment_method: Account the participant paid into
        send_ticket_email: Set False to skip the ticket e-mail
        max_retries: Maximum attempts to generate a unique registration ID
        (remaining arguments are participant attributes)

    Returns:
        Created Registration instance

    Raises:
        CategoryNotFoundError: If the category is unknown or inactive
        RuntimeError: If no unique registration ID could be generated
    """
    try:
        race_category = Category.objects.get(name__iexact=category.strip(), active=True)
    except Category.DoesNotExist:
        raise CategoryNotFoundError(f"Category '{category}' is not available")

    for attempt in range(max_retries):
        registration_id = generate_registration_id()
        try:
            with transaction.atomic():
                registration = Registration.objects.create(
                    registration_id=registration_id,
                    first_name=first_name.strip(),
                    last_name=last_name.strip(),
                    email=email.strip().lower(),
                    phone=phone,
                    age=age,
                    gender=gender,
                    category=race_category.name,
                    price=race_category.price,
                    shirt_size=shirt_size,
                    is_church_attendee=is_church_attendee,
                    department=department,
                    ministry=ministry,
                    cluster=cluster,
                    emergency_contact=emergency_contact,
                    emergency_phone=emergency_phone,
                    medical_conditions=medical_conditions,
                    payment_method=payment_method,
                    payment_reference_number=payment_reference_number,
                    payment_proof_url=payment_proof_url,
                    status=RegistrationStatus.PENDING,
                    payment_status=PaymentStatus.PENDING,
                )
        except IntegrityError:
            # Registration ID collision
            logger.warning(f"Registration ID collision on {registration_id}")
            if attempt == max_retries - 1:
                raise RuntimeError(
                    f"Failed to generate unique registration ID after {max_retries} attempts"
                )
            continue

        logger.info(
            f"Registered {registration.full_name} as {registration.registration_id} "
            f"({registration.category})"
        )
        if send_ticket_email and getattr(settings, 'FAMRUN_SEND_TICKET_EMAILS', True):
            transaction.on_commit(lambda pk=registration.pk: _send_ticket_email(pk))
        return registration

    # Should never reach here
    raise RuntimeError("Unexpected error in participant registration")


def get_registration_summary() -> dict:
    """
    Registration counts for the admin dashboard.

    Returns:
        dict: A dictionary containing:
            - total (int)
            - pending, confirmed, rejected (int): Counts by payment status
            - kits_claimed (int)
            - confirmed_revenue (Decimal): Sum of confirmed prices
    """
    stats = Registration.objects.aggregate(
        total=Count('id'),
        pending=Count('id', filter=Q(payment_status=PaymentStatus.PENDING) | Q(payment_status='')),
        confirmed=Count('id', filter=Q(payment_status=PaymentStatus.CONFIRMED)),
        rejected=Count('id', filter=Q(payment_status=PaymentStatus.REJECTED)),
        kits_claimed=Count('id', filter=Q(kit_claimed=True)),
        confirmed_revenue=Sum('price', filter=Q(payment_status=PaymentStatus.CONFIRMED)),
    )
    stats['confirmed_revenue'] = stats['confirmed_revenue'] or Decimal('0.00')
    return stats
