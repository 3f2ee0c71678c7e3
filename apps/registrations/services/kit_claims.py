"""
Kit distribution service.

Handles claiming race kits at the claim desk, undoing a claim and bulk
hand-outs. Every claim locks the registration row so two volunteers
scanning the same ticket cannot both release the kit.
"""

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Count, Q
from django.utils import timezone
from typing import Iterable, Optional
from uuid import UUID
import logging

from apps.accounts.models import User
from apps.events.models import ClaimLocation
from apps.registrations.models import Registration, RegistrationStatus
from .exceptions import (
    RegistrationsServiceError,
    RegistrationNotFoundError,
    TicketMismatchError,
    ClaimLocationNotFoundError,
    KitAlreadyClaimedError,
    KitNotClaimedError,
    PaymentNotConfirmedError,
    BulkClaimError,
)
from .lookup import lookup_registration

logger = logging.getLogger(__name__)

BULK_CLAIMER = 'Bulk Distribution'


def _get_claim_location(claim_location_id) -> Optional[ClaimLocation]:
    if claim_location_id is None:
        return None
    try:
        return ClaimLocation.objects.get(id=claim_location_id, active=True)
    except ClaimLocation.DoesNotExist:
        raise ClaimLocationNotFoundError(f"Claim location {claim_location_id} not found")


def _lock_registration(registration_id: UUID) -> Registration:
    try:
        return Registration.objects.select_for_update().get(id=registration_id)
    except Registration.DoesNotExist:
        raise RegistrationNotFoundError(f"Registration {registration_id} not found")


@transaction.atomic
def claim_kit(
    *,
    registration_id: UUID,
    actor: User,
    actual_claimer: str = '',
    claim_location_id: Optional[int] = None,
    notes: str = '',
    require_confirmed: Optional[bool] = None,
) -> Registration:
    """
    Mark a registration's race kit as handed out.

    Args:
        registration_id: Registration primary key
        actor: Staff member at the claim desk
        actual_claimer: Person who physically picked the kit up, if not
            the participant
        claim_location_id: Where the kit was claimed
        notes: Free-text claim notes
        require_confirmed: Refuse unconfirmed registrations. Defaults to
            FAMRUN_REQUIRE_CONFIRMED_FOR_CLAIM.

    Returns:
        Updated Registration instance

    Raises:
        RegistrationNotFoundError: If the registration doesn't exist
        ClaimLocationNotFoundError: If the location is unknown or inactive
        KitAlreadyClaimedError: If the kit was already claimed
        PaymentNotConfirmedError: If payment is required and not confirmed
    """
    if require_confirmed is None:
        require_confirmed = getattr(settings, 'FAMRUN_REQUIRE_CONFIRMED_FOR_CLAIM', True)

    location = _get_claim_location(claim_location_id)
    registration = _lock_registration(registration_id)

    if registration.kit_claimed:
        raise KitAlreadyClaimedError(
            f"Kit for {registration.registration_id} was already claimed"
        )
    if require_confirmed and registration.status != RegistrationStatus.CONFIRMED:
        raise PaymentNotConfirmedError(
            f"Payment for {registration.registration_id} is not confirmed"
        )

    registration.kit_claimed = True
    registration.claimed_at = timezone.now()
    registration.processed_by = actor
    registration.actual_claimer = (actual_claimer or '').strip()
    registration.claim_location = location
    registration.claim_notes = (notes or '').strip()
    registration.save(update_fields=[
        'kit_claimed',
        'claimed_at',
        'processed_by',
        'actual_claimer',
        'claim_location',
        'claim_notes',
        'updated_at',
    ])

    logger.info(
        f"Kit for {registration.registration_id} claimed by {actor} "
        f"at {location or 'unspecified location'}"
    )
    return registration


def claim_kit_from_ticket(
    *,
    payload: str,
    actor: User,
    actual_claimer: str = '',
    claim_location_id: Optional[int] = None,
    notes: str = '',
    require_confirmed: Optional[bool] = None,
) -> Registration:
    """
    Claim a kit from a scanned ticket.

    The ticket must agree with the stored registration on category, price
    and shirt size; a doctored or outdated ticket is refused.

    Raises:
        InvalidTicketFormatError: If the payload does not decode
        RegistrationNotFoundError: If no registration matches
        TicketMismatchError: If ticket fields differ from the record
        (plus everything claim_kit raises)
    """
    lookup = lookup_registration(payload)
    if not lookup.is_consistent:
        logger.warning(
            f"Ticket for {lookup.registration.registration_id} does not match "
            f"the record: {', '.join(lookup.mismatches)}"
        )
        raise TicketMismatchError(
            f"Ticket does not match registration {lookup.registration.registration_id} "
            f"({', '.join(lookup.mismatches)})",
            mismatches=lookup.mismatches,
        )

    return claim_kit(
        registration_id=lookup.registration.id,
        actor=actor,
        actual_claimer=actual_claimer,
        claim_location_id=claim_location_id,
        notes=notes,
        require_confirmed=require_confirmed,
    )


@transaction.atomic
def unclaim_kit(*, registration_id: UUID, actor: User) -> Registration:
    """
    Undo a kit claim made by mistake.

    The previous claim notes are kept inside the new note.

    Raises:
        RegistrationNotFoundError: If the registration doesn't exist
        KitNotClaimedError: If the kit has not been claimed
    """
    registration = _lock_registration(registration_id)

    if not registration.kit_claimed:
        raise KitNotClaimedError(
            f"Kit for {registration.registration_id} has not been claimed"
        )

    previous_notes = registration.claim_notes or 'None'
    registration.kit_claimed = False
    registration.claimed_at = None
    registration.processed_by = None
    registration.actual_claimer = ''
    registration.claim_location = None
    registration.claim_notes = (
        f"Unclaimed on {timezone.now().isoformat()}. Previous notes: {previous_notes}"
    )
    registration.save(update_fields=[
        'kit_claimed',
        'claimed_at',
        'processed_by',
        'actual_claimer',
        'claim_location',
        'claim_notes',
        'updated_at',
    ])

    logger.info(f"Kit for {registration.registration_id} unclaimed by {actor}")
    return registration


def bulk_claim_kits(
    *,
    registration_ids: Iterable[UUID],
    actor: User,
    claim_location_id: int,
    notes: str = '',
) -> int:
    """
    Claim many kits at once (e.g. a team picking up for its members).

    Claims run one by one, each in its own transaction. When one fails
    the loop stops; kits claimed before it stay claimed.

    Returns:
        Number of kits claimed

    Raises:
        ClaimLocationNotFoundError: If the location is unknown or inactive
        BulkClaimError: If a claim failed partway; carries ``completed``
            and the failing ``registration_id``
    """
    _get_claim_location(claim_location_id)

    notes = (notes or '').strip()
    claim_notes = f"Bulk distribution: {notes}" if notes else 'Bulk distribution'

    completed = 0
    for registration_id in registration_ids:
        try:
            claim_kit(
                registration_id=registration_id,
                actor=actor,
                actual_claimer=BULK_CLAIMER,
                claim_location_id=claim_location_id,
                notes=claim_notes,
            )
        except (RegistrationsServiceError, DatabaseError) as e:
            logger.error(
                f"Bulk claim stopped at {registration_id} after {completed} kits: {e}"
            )
            raise BulkClaimError(
                f"Claimed {completed} kits, then failed on {registration_id}: {e}",
                completed=completed,
                registration_id=registration_id,
            ) from e
        completed += 1

    logger.info(f"Bulk claimed {completed} kits by {actor}")
    return completed


def get_kit_distribution_stats() -> dict:
    """
    Kit distribution totals for the claim desk dashboard.

    Returns:
        dict: A dictionary containing:
            - total (int): All registrations
            - claimed (int): Kits handed out
            - unclaimed (int): Kits still waiting
            - confirmed_unclaimed (int): Paid kits still waiting
            - by_location (list[dict]): ``{'location', 'claimed'}`` per
              claim location with at least one claim
    """
    totals = Registration.objects.aggregate(
        total=Count('id'),
        claimed=Count('id', filter=Q(kit_claimed=True)),
        confirmed_unclaimed=Count(
            'id',
            filter=Q(kit_claimed=False, status=RegistrationStatus.CONFIRMED)
        ),
    )

    by_location = (
        Registration.objects
        .filter(kit_claimed=True)
        .values('claim_location__name')
        .annotate(claimed=Count('id'))
        .order_by('claim_location__name')
    )

    return {
        'total': totals['total'],
        'claimed': totals['claimed'],
        'unclaimed': totals['total'] - totals['claimed'],
        'confirmed_unclaimed': totals['confirmed_unclaimed'],
        'by_location': [
            {
                'location': row['claim_location__name'] or 'Unspecified',
                'claimed': row['claimed'],
            }
            for row in by_location
        ],
    }
