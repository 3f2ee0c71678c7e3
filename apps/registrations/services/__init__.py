"""
Registrations app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and row locks.
"""

from .exceptions import (
    RegistrationsServiceError,
    InvalidTicketFormatError,
    RegistrationNotFoundError,
    TicketMismatchError,
    InvalidPaymentStatusError,
    PaymentUpdateFailedError,
    ReceiptIssuanceError,
    NotificationError,
    CategoryNotFoundError,
    ClaimLocationNotFoundError,
    KitAlreadyClaimedError,
    KitNotClaimedError,
    PaymentNotConfirmedError,
    BulkClaimError,
    BulkUploadError,
    ReportError,
)

from .tickets import (
    Ticket,
    encode_ticket,
    decode_ticket,
    ticket_for_registration,
    generate_ticket_qr_image,
    generate_ticket_qr_png,
)

from .lookup import (
    TicketLookup,
    lookup_registration,
    get_registration_by_registration_id,
    compare_ticket,
)

from .receipts import (
    generate_receipt_number,
    issue_receipt,
    get_receipt,
)

from .notifications import (
    send_payment_status_email,
    send_registration_ticket_email,
)

from .payment_status import (
    update_payment_status,
    batch_update_payment_status,
    get_payment_history,
)

from .kit_claims import (
    claim_kit,
    claim_kit_from_ticket,
    unclaim_kit,
    bulk_claim_kits,
    get_kit_distribution_stats,
)

from .registration import (
    register_participant,
    generate_registration_id,
    get_registration_summary,
)

from .bulk_upload import (
    UPLOAD_COLUMNS,
    parse_registration_file,
    validate_registration_rows,
    import_registrations,
    write_upload_template,
)

from .reports import (
    REPORT_TYPES,
    EXPORT_FORMATS,
    build_report,
    export_report,
)


__all__ = [
    # Exceptions
    'RegistrationsServiceError',
    'InvalidTicketFormatError',
    'RegistrationNotFoundError',
    'TicketMismatchError',
    'InvalidPaymentStatusError',
    'PaymentUpdateFailedError',
    'ReceiptIssuanceError',
    'NotificationError',
    'CategoryNotFoundError',
    'ClaimLocationNotFoundError',
    'KitAlreadyClaimedError',
    'KitNotClaimedError',
    'PaymentNotConfirmedError',
    'BulkClaimError',
    'BulkUploadError',
    'ReportError',

    # Tickets
    'Ticket',
    'encode_ticket',
    'decode_ticket',
    'ticket_for_registration',
    'generate_ticket_qr_image',
    'generate_ticket_qr_png',

    # Lookup
    'TicketLookup',
    'lookup_registration',
    'get_registration_by_registration_id',
    'compare_ticket',

    # Receipts
    'generate_receipt_number',
    'issue_receipt',
    'get_receipt',

    # Notifications
    'send_payment_status_email',
    'send_registration_ticket_email',

    # Payment status
    'update_payment_status',
    'batch_update_payment_status',
    'get_payment_history',

    # Kit claims
    'claim_kit',
    'claim_kit_from_ticket',
    'unclaim_kit',
    'bulk_claim_kits',
    'get_kit_distribution_stats',

    # Registration
    'register_participant',
    'generate_registration_id',
    'get_registration_summary',

    # Bulk upload
    'UPLOAD_COLUMNS',
    'parse_registration_file',
    'validate_registration_rows',
    'import_registrations',
    'write_upload_template',

    # Reports
    'REPORT_TYPES',
    'EXPORT_FORMATS',
    'build_report',
    'export_report',
]
