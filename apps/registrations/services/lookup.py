"""Registration lookup by scanned ticket."""

from typing import NamedTuple

from apps.registrations.models import Registration
from .exceptions import RegistrationNotFoundError
from .tickets import Ticket, decode_ticket


class TicketLookup(NamedTuple):
    registration: Registration
    ticket: Ticket
    mismatches: list

    @property
    def is_consistent(self):
        return not self.mismatches


def get_registration_by_registration_id(registration_id: str) -> Registration:
    """
    Fetch a registration by its human readable identifier.

    Raises:
        RegistrationNotFoundError: If no registration matches
    """
    try:
        return (
            Registration.objects
            .select_related('claim_location', 'processed_by', 'payment_method')
            .get(registration_id=registration_id)
        )
    except Registration.DoesNotExist:
        raise RegistrationNotFoundError(f"Registration {registration_id} not found")


def compare_ticket(ticket: Ticket, registration: Registration) -> list:
    """
    Return the names of ticket fields that differ from the stored record.

    Participant names are not compared: staff fix typos in names after
    tickets are printed.
    """
    mismatches = []
    if ticket.category.strip().lower() != (registration.category or '').strip().lower():
        mismatches.append('category')
    if ticket.price != registration.price:
        mismatches.append('price')
    if ticket.shirt_size.strip().upper() != (registration.shirt_size or '').strip().upper():
        mismatches.append('shirt_size')
    return mismatches


def lookup_registration(payload: str) -> TicketLookup:
    """
    Decode a scanned ticket and resolve its registration. Read-only.

    Args:
        payload: Raw QR payload

    Returns:
        TicketLookup with the registration, the decoded ticket and the list
        of fields where they disagree

    Raises:
        InvalidTicketFormatError: If the payload does not decode
        RegistrationNotFoundError: If no registration matches
    """
    ticket = decode_ticket(payload)
    registration = get_registration_by_registration_id(ticket.registration_id)
    return TicketLookup(
        registration=registration,
        ticket=ticket,
        mismatches=compare_ticket(ticket, registration),
    )
