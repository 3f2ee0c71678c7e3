"""
Registration reports exported as CSV or Excel (.xlsx).
"""

from django.utils import timezone
import csv
import io
import logging

from apps.registrations.models import Registration, RegistrationStatus
from .exceptions import ReportError

logger = logging.getLogger(__name__)


REPORT_TYPES = {
    'all-registrations': 'All Registrations',
    'church-members': 'Church Members Only',
    'non-church': 'Non-Church Attendees',
    'by-category': 'By Race Category',
    'by-department': 'By Department',
    'financial-summary': 'Financial Summary',
}

STATUS_FILTERS = ['all', *RegistrationStatus.values]

EXPORT_FORMATS = {
    'csv': 'text/csv',
    'xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
}

BASE_COLUMNS = [
    'Registration ID',
    'Name',
    'Email',
    'Phone',
    'Category',
    'Status',
    'Registration Date',
    'Fee',
]

EXTRA_COLUMNS = {
    'all-registrations': ['Gender', 'Age', 'Shirt Size', 'Church Attendee'],
    'by-category': ['Gender', 'Age', 'Shirt Size', 'Church Attendee'],
    'church-members': ['Department', 'Ministry', 'Cluster', 'Shirt Size'],
    'by-department': ['Department', 'Ministry', 'Cluster', 'Shirt Size'],
    'financial-summary': [
        'Payment Status',
        'Payment Method',
        'Payment Reference',
        'Payment Date',
        'Payment Notes',
        'Receipt Number',
    ],
    'non-church': [],
}

ORDERING = {
    'by-category': ['category', 'last_name', 'first_name'],
    'by-department': ['department', 'ministry', 'last_name', 'first_name'],
}


def _format_datetime(value) -> str:
    if value is None:
        return ''
    return timezone.localtime(value).strftime('%Y-%m-%d %H:%M')


def _or_na(value):
    return value if value not in (None, '') else 'N/A'


def _row(registration, report_type):
    row = [
        registration.registration_id,
        registration.full_name,
        registration.email,
        _or_na(registration.phone),
        registration.category,
        registration.get_status_display(),
        _format_datetime(registration.created_at),
        registration.price,
    ]

    if report_type in ('all-registrations', 'by-category'):
        row += [
            _or_na(registration.gender),
            _or_na(registration.age),
            registration.shirt_size,
            'Yes' if registration.is_church_attendee else 'No',
        ]
    elif report_type in ('church-members', 'by-department'):
        row += [
            _or_na(registration.department),
            _or_na(registration.ministry),
            _or_na(registration.cluster),
            registration.shirt_size,
        ]
    elif report_type == 'financial-summary':
        receipt = getattr(registration, 'receipt', None)
        row += [
            registration.get_payment_status_display(),
            registration.payment_method.name if registration.payment_method else 'N/A',
            _or_na(registration.payment_reference_number),
            _format_datetime(registration.payment_date),
            registration.payment_notes,
            receipt.receipt_number if receipt else '',
        ]
    return row


def build_report(*, report_type: str, status: str = 'all'):
    """
    Collect the columns and rows of a registration report.

    Args:
        report_type: One of REPORT_TYPES
        status: ``all`` or a registration status

    Returns:
        tuple: (headers, rows) where rows is a list of lists

    Raises:
        ReportError: If the report type or status filter is unknown
    """
    if report_type not in REPORT_TYPES:
        raise ReportError(
            f"Unknown report '{report_type}'. Expected one of: {', '.join(REPORT_TYPES)}"
        )
    if status not in STATUS_FILTERS:
        raise ReportError(
            f"Unknown status filter '{status}'. Expected one of: {', '.join(STATUS_FILTERS)}"
        )

    queryset = Registration.objects.select_related('payment_method', 'receipt')
    if status != 'all':
        queryset = queryset.filter(status=status)
    if report_type == 'church-members':
        queryset = queryset.filter(is_church_attendee=True)
    elif report_type == 'non-church':
        queryset = queryset.filter(is_church_attendee=False)
    queryset = queryset.order_by(*ORDERING.get(report_type, ['created_at', 'registration_id']))

    headers = BASE_COLUMNS + EXTRA_COLUMNS[report_type]
    rows = [_row(registration, report_type) for registration in queryset]
    return headers, rows


def _write_csv(headers, rows) -> bytes:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    writer.writerows(rows)
    # BOM so spreadsheet apps detect UTF-8
    return output.getvalue().encode('utf-8-sig')


def _write_xlsx(headers, rows) -> bytes:
    from openpyxl import Workbook
    from openpyxl.styles import Font

    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = 'Registrations'
    worksheet.append(headers)
    for cell in worksheet[1]:
        cell.font = Font(bold=True)
    for row in rows:
        worksheet.append(row)
    worksheet.freeze_panes = 'A2'

    output = io.BytesIO()
    workbook.save(output)
    return output.getvalue()


def export_report(
    *,
    report_type: str,
    status: str = 'all',
    file_format: str = 'xlsx',
) -> dict:
    """
    Render a registration report as a downloadable file.

    Returns:
        dict: A dictionary containing:
            - content (bytes): File body
            - content_type (str): MIME type
            - filename (str): ``<report>-<YYYY-MM-DD>.<format>``
            - row_count (int): Registrations in the report

    Raises:
        ReportError: Unknown report type, status filter or format
    """
    if file_format not in EXPORT_FORMATS:
        raise ReportError(
            f"Unknown format '{file_format}'. Expected one of: {', '.join(EXPORT_FORMATS)}"
        )

    headers, rows = build_report(report_type=report_type, status=status)
    if file_format == 'csv':
        content = _write_csv(headers, rows)
    else:
        content = _write_xlsx(headers, rows)

    today = timezone.localdate().isoformat()
    logger.info(f"Exported {report_type} report ({status}) with {len(rows)} registrations as {file_format}")
    return {
        'content': content,
        'content_type': EXPORT_FORMATS[file_format],
        'filename': f'{report_type}-{today}.{file_format}',
        'row_count': len(rows),
    }
