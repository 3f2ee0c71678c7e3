"""
Bulk registration upload.

Staff upload a CSV or Excel (.xlsx) sheet of offline sign-ups. The whole
sheet is validated first; one bad row rejects the file. Valid sheets are
imported row by row through register_participant(), so every row gets a
fresh registration ID and the category's current price.
"""

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import DatabaseError
from typing import Optional
import csv
import io
import logging

from apps.accounts.models import User
from apps.events.models import Category, Department, Ministry, Cluster
from apps.registrations.models import ShirtSize
from .exceptions import BulkUploadError, RegistrationsServiceError
from .registration import register_participant

logger = logging.getLogger(__name__)


UPLOAD_COLUMNS = [
    'first_name',
    'last_name',
    'email',
    'phone',
    'age',
    'gender',
    'category',
    'shirt_size',
    'is_church_attendee',
    'department',
    'ministry',
    'cluster',
    'emergency_contact',
    'emergency_phone',
    'medical_conditions',
]

REQUIRED_COLUMNS = [
    'first_name',
    'last_name',
    'email',
    'category',
    'shirt_size',
    'emergency_contact',
    'emergency_phone',
]

GENDERS = ['male', 'female']
TRUE_VALUES = {'true', 'yes', 'y', '1'}
FALSE_VALUES = {'false', 'no', 'n', '0', ''}

# Sheet rows are 1-indexed and row 1 holds the headers
FIRST_DATA_ROW = 2


def _cell_text(value) -> str:
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'TRUE' if value else 'FALSE'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _normalize_row(row: dict) -> dict:
    return {
        str(key).strip().lower(): _cell_text(value)
        for key, value in row.items()
        if key
    }


def _read_csv(uploaded) -> list:
    raw = uploaded.read()
    try:
        content = raw.decode('utf-8-sig')
    except UnicodeDecodeError:
        content = raw.decode('latin-1')
    reader = csv.DictReader(io.StringIO(content.strip()))
    return [_normalize_row(row) for row in reader]


def _read_xlsx(uploaded) -> list:
    import openpyxl

    try:
        workbook = openpyxl.load_workbook(uploaded, read_only=True, data_only=True)
    except Exception as e:
        raise BulkUploadError(f"Could not read the Excel file: {e}") from e

    worksheet = workbook['TEMPLATE'] if 'TEMPLATE' in workbook.sheetnames else workbook.active
    data = list(worksheet.iter_rows(values_only=True))
    workbook.close()
    if not data:
        return []

    headers = [_cell_text(cell) for cell in data[0]]
    return [_normalize_row(dict(zip(headers, row))) for row in data[1:]]


def parse_registration_file(uploaded) -> list:
    """
    Read an uploaded CSV or .xlsx file into row dicts.

    Header names are matched case-insensitively and every cell is returned
    as stripped text. Fully blank rows are dropped.

    Raises:
        BulkUploadError: Unsupported file type, unreadable file or no rows
    """
    name = (getattr(uploaded, 'name', '') or '').lower()
    if name.endswith('.csv'):
        rows = _read_csv(uploaded)
    elif name.endswith('.xlsx'):
        rows = _read_xlsx(uploaded)
    else:
        raise BulkUploadError("Please upload a CSV or Excel (.xlsx) file.")

    rows = [row for row in rows if any(row.values())]
    if not rows:
        raise BulkUploadError("The file contains no registrations.")
    return rows


def _parse_bool(value: str) -> Optional[bool]:
    lowered = value.lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    return None


def _validate_row(row: dict, row_number: int, categories: dict) -> list:
    errors = []

    def error(field, message):
        errors.append({'row': row_number, 'field': field, 'message': message})

    for field in REQUIRED_COLUMNS:
        if not row.get(field):
            error(field, f'Required field "{field}" is missing')

    for field in ['first_name', 'last_name']:
        if '|' in row.get(field, ''):
            error(field, "Name cannot contain '|'")

    email = row.get('email', '')
    if email:
        try:
            validate_email(email)
        except ValidationError:
            error('email', f'Invalid email format: "{email}"')

    category = row.get('category', '')
    if category and category.lower() not in categories:
        error('category', f'Invalid category "{category}". Must be one of: {", ".join(categories.values())}')

    shirt_size = row.get('shirt_size', '').upper()
    if shirt_size and shirt_size not in ShirtSize.values:
        error('shirt_size', f'Invalid shirt size "{row["shirt_size"]}". Must be one of: {", ".join(ShirtSize.values)}')

    gender = row.get('gender', '').lower()
    if gender and gender not in GENDERS:
        error('gender', f'Invalid gender "{row["gender"]}". Must be one of: {", ".join(GENDERS)} or empty')

    age = row.get('age', '')
    if age:
        if not age.isdigit() or not 1 <= int(age) <= 120:
            error('age', f'Invalid age "{age}"')

    is_church_attendee = _parse_bool(row.get('is_church_attendee', ''))
    if is_church_attendee is None:
        error('is_church_attendee', 'Use TRUE or FALSE')
    elif is_church_attendee:
        errors.extend(_validate_affiliation(row, row_number))

    return errors


def _validate_affiliation(row: dict, row_number: int) -> list:
    errors = []
    department_name = row.get('department', '')
    ministry_name = row.get('ministry', '')
    cluster_name = row.get('cluster', '')

    if not department_name:
        errors.append({
            'row': row_number,
            'field': 'department',
            'message': 'Department is required when is_church_attendee is true',
        })
    if not ministry_name:
        errors.append({
            'row': row_number,
            'field': 'ministry',
            'message': 'Ministry is required when is_church_attendee is true',
        })

    department = None
    if department_name:
        department = Department.objects.filter(name__iexact=department_name, active=True).first()
        if department is None:
            errors.append({
                'row': row_number,
                'field': 'department',
                'message': f'Department "{department_name}" does not exist',
            })

    if department and ministry_name:
        if not Ministry.objects.filter(
            name__iexact=ministry_name, department=department, active=True
        ).exists():
            errors.append({
                'row': row_number,
                'field': 'ministry',
                'message': f'Ministry "{ministry_name}" does not exist in department "{department_name}"',
            })

    if cluster_name and not Cluster.objects.filter(name__iexact=cluster_name, active=True).exists():
        errors.append({
            'row': row_number,
            'field': 'cluster',
            'message': f'Cluster "{cluster_name}" does not exist',
        })

    return errors


def validate_registration_rows(rows: list) -> list:
    """
    Check every row of an upload.

    Returns:
        list[dict]: ``{'row', 'field', 'message'}`` per problem, with
        spreadsheet row numbers; empty when the sheet is valid
    """
    categories = {
        name.lower(): name
        for name in Category.objects.filter(active=True).values_list('name', flat=True)
    }
    errors = []
    for index, row in enumerate(rows):
        errors.extend(_validate_row(row, index + FIRST_DATA_ROW, categories))
    return errors


def import_registrations(
    *,
    rows: list,
    actor: Optional[User] = None,
    send_emails: bool = False,
) -> dict:
    """
    Validate and import uploaded registrations.

    Rows are created one by one, each in its own transaction; a row that
    fails to save is reported and the import carries on.

    Args:
        rows: Row dicts from parse_registration_file()
        actor: Staff member running the upload
        send_emails: E-mail each participant their ticket

    Returns:
        dict: A dictionary containing:
            - total (int): Rows in the upload
            - created (int): Registrations created
            - failed (int): Rows that could not be saved
            - registration_ids (list[str]): IDs of created registrations
            - errors (list[dict]): ``{'row', 'message'}`` per failed row

    Raises:
        BulkUploadError: If any row fails validation (nothing is imported);
            ``errors`` lists every problem
    """
    errors = validate_registration_rows(rows)
    if errors:
        raise BulkUploadError(
            f"{len(errors)} validation error{'s' if len(errors) != 1 else ''}; nothing was imported.",
            errors=errors,
        )

    summary = {
        'total': len(rows),
        'created': 0,
        'failed': 0,
        'registration_ids': [],
        'errors': [],
    }

    for index, row in enumerate(rows):
        row_number = index + FIRST_DATA_ROW
        try:
            registration = register_participant(
                first_name=row['first_name'],
                last_name=row['last_name'],
                email=row['email'],
                category=row['category'],
                shirt_size=row['shirt_size'].upper(),
                phone=row.get('phone', ''),
                age=int(row['age']) if row.get('age') else None,
                gender=row.get('gender', '').lower(),
                is_church_attendee=bool(_parse_bool(row.get('is_church_attendee', ''))),
                department=row.get('department', ''),
                ministry=row.get('ministry', ''),
                cluster=row.get('cluster', ''),
                emergency_contact=row.get('emergency_contact', ''),
                emergency_phone=row.get('emergency_phone', ''),
                medical_conditions=row.get('medical_conditions', ''),
                send_ticket_email=send_emails,
            )
        except (RegistrationsServiceError, DatabaseError, RuntimeError) as e:
            logger.error(f"Bulk upload row {row_number} failed: {e}")
            summary['failed'] += 1
            summary['errors'].append({'row': row_number, 'message': str(e)})
            continue

        summary['created'] += 1
        summary['registration_ids'].append(registration.registration_id)

    logger.info(
        f"Bulk upload by {actor or 'system'}: {summary['created']} of "
        f"{summary['total']} registrations created"
    )
    return summary


def write_upload_template(output) -> None:
    """Write the CSV upload template (headers and one example row) to ``output``."""
    writer = csv.writer(output)
    writer.writerow(UPLOAD_COLUMNS)
    writer.writerow([
        'Juan',
        'Dela Cruz',
        'juan@example.com',
        '09171234567',
        '30',
        'male',
        '5K',
        'M',
        'FALSE',
        '',
        '',
        '',
        'Maria Dela Cruz',
        '09179876543',
        '',
    ])
