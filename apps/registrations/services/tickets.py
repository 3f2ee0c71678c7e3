"""
Kit/payment ticket codec.

A ticket is the text encoded into the participant's QR code::

    <prefix>|<registration_id>|<participant_name>|<category>|<price>|<shirt_size>

e.g. ``CogFamRun2025|FR2025123456|Juan Dela Cruz|5K|450.00|M``.

The format is versionless and unsigned: anyone holding a ticket string can
forge one, and changing the layout breaks tickets that were already
printed. Staff-side checks (``lookup.py``) compare the ticket with the
stored registration before releasing a kit.
"""

from decimal import Decimal, InvalidOperation
from typing import NamedTuple, Optional

from django.conf import settings

from .exceptions import InvalidTicketFormatError

SEPARATOR = '|'
FIELD_COUNT = 6


class Ticket(NamedTuple):
    registration_id: str
    participant_name: str
    category: str
    price: Decimal
    shirt_size: str


def get_ticket_prefix() -> str:
    return getattr(settings, 'FAMRUN_TICKET_PREFIX', 'CogFamRun2025')


def encode_ticket(
    registration_id: str,
    participant_name: str,
    category: str,
    price,
    shirt_size: str,
    prefix: Optional[str] = None,
) -> str:
    """
    Build the pipe-delimited ticket payload.

    Surrounding whitespace is stripped from every field, matching what
    decode_ticket() gets back from a scanner.

    Raises:
        InvalidTicketFormatError: If a field contains the separator or the
            registration id is empty (the payload would not decode).
    """
    fields = [
        str(value).strip() for value in (
            registration_id,
            participant_name,
            category,
            _format_price(price),
            shirt_size,
        )
    ]
    if not registration_id or not fields[0]:
        raise InvalidTicketFormatError("Registration ID is required")
    for value in fields:
        if SEPARATOR in value:
            raise InvalidTicketFormatError(f"Ticket fields cannot contain '{SEPARATOR}'")

    return SEPARATOR.join([prefix or get_ticket_prefix(), *fields])


def decode_ticket(payload: str, prefix: Optional[str] = None) -> Ticket:
    """
    Parse a scanned ticket payload. Pure, performs no I/O.

    Raises:
        InvalidTicketFormatError: Wrong prefix, wrong field count, empty
            registration id or non-numeric price.
    """
    if not isinstance(payload, str):
        raise InvalidTicketFormatError("Ticket payload must be text")

    parts = payload.strip().split(SEPARATOR)
    if len(parts) != FIELD_COUNT:
        raise InvalidTicketFormatError(
            f"Expected {FIELD_COUNT} fields, got {len(parts)}"
        )

    ticket_prefix, registration_id, participant_name, category, price, shirt_size = parts

    if ticket_prefix != (prefix or get_ticket_prefix()):
        raise InvalidTicketFormatError("Invalid ticket prefix")

    if not registration_id:
        raise InvalidTicketFormatError("Ticket has no registration ID")

    try:
        parsed_price = Decimal(price)
    except InvalidOperation:
        raise InvalidTicketFormatError(f"Invalid ticket price: {price!r}")
    if not parsed_price.is_finite():
        raise InvalidTicketFormatError(f"Invalid ticket price: {price!r}")

    return Ticket(
        registration_id=registration_id,
        participant_name=participant_name,
        category=category,
        price=parsed_price,
        shirt_size=shirt_size,
    )


def ticket_for_registration(registration) -> str:
    """Ticket payload for a stored Registration."""
    return encode_ticket(
        registration_id=registration.registration_id,
        participant_name=registration.full_name,
        category=registration.category,
        price=registration.price,
        shirt_size=registration.shirt_size,
    )


def generate_ticket_qr_image(payload: str, output=None):
    """
    Render a ticket payload as a QR code.

    Args:
        payload: Ticket string from encode_ticket().
        output: Optional path or binary file object. When given the PNG is
            written there and ``output`` is returned.

    Returns:
        PIL.Image.Image | str | file: The image, or ``output``.

    Note:
        Error correction level M keeps printed tickets readable when
        slightly creased.
    """
    import qrcode

    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    if output is not None:
        img.save(output, format='PNG')
        return output

    return img


def generate_ticket_qr_png(payload: str) -> bytes:
    """PNG bytes of the ticket QR code (e-mail attachments, API)."""
    from io import BytesIO

    buffer = BytesIO()
    generate_ticket_qr_image(payload, buffer)
    return buffer.getvalue()


def _format_price(price) -> str:
    if isinstance(price, Decimal):
        return str(price)
    if isinstance(price, float):
        # repr keeps the shortest round-trippable form
        return str(Decimal(repr(price)))
    return str(Decimal(str(price)))
