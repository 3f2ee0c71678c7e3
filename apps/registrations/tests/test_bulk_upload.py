import csv
import io
import pytest
from decimal import Decimal
from unittest.mock import patch
from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from openpyxl import Workbook

from apps.registrations.models import Registration, PaymentStatus
from apps.registrations.services import (
    UPLOAD_COLUMNS,
    parse_registration_file,
    validate_registration_rows,
    import_registrations,
    write_upload_template,
    BulkUploadError,
)


def make_row(**overrides):
    row = {
        'first_name': 'Ana',
        'last_name': 'Reyes',
        'email': 'ana@example.com',
        'phone': '',
        'age': '',
        'gender': '',
        'category': '5K',
        'shirt_size': 'M',
        'is_church_attendee': 'FALSE',
        'department': '',
        'ministry': '',
        'cluster': '',
        'emergency_contact': 'Luz Reyes',
        'emergency_phone': '09170000000',
        'medical_conditions': '',
    }
    row.update(overrides)
    return row


def csv_upload(rows, name='registrations.csv'):
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=UPLOAD_COLUMNS)
    writer.writeheader()
    writer.writerows(rows)
    return SimpleUploadedFile(name, output.getvalue().encode('utf-8'), content_type='text/csv')


def xlsx_upload(header, *rows):
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.append(header)
    for row in rows:
        worksheet.append(row)
    output = io.BytesIO()
    workbook.save(output)
    return SimpleUploadedFile(
        'registrations.xlsx',
        output.getvalue(),
        content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    )


class TestParseRegistrationFile:

    def test_csv(self):
        rows = parse_registration_file(csv_upload([make_row(), make_row(email='bo@example.com')]))

        assert len(rows) == 2
        assert rows[1]['email'] == 'bo@example.com'

    def test_csv_headers_are_case_insensitive(self):
        content = 'First_Name,Last_Name,EMAIL\nAna,Reyes,ana@example.com\n'
        upload = SimpleUploadedFile('sheet.csv', content.encode('utf-8'))

        rows = parse_registration_file(upload)

        assert rows == [{'first_name': 'Ana', 'last_name': 'Reyes', 'email': 'ana@example.com'}]

    def test_xlsx_cells_become_text(self):
        upload = xlsx_upload(
            ['first_name', 'last_name', 'age', 'is_church_attendee'],
            ['Ana', 'Reyes', 34.0, True],
        )

        rows = parse_registration_file(upload)

        assert rows == [{
            'first_name': 'Ana',
            'last_name': 'Reyes',
            'age': '34',
            'is_church_attendee': 'TRUE',
        }]

    def test_blank_rows_dropped(self):
        rows = parse_registration_file(csv_upload([make_row(), {column: '' for column in UPLOAD_COLUMNS}]))

        assert len(rows) == 1

    def test_unsupported_extension(self):
        with pytest.raises(BulkUploadError):
            parse_registration_file(SimpleUploadedFile('sheet.pdf', b'%PDF'))

    def test_empty_file(self):
        with pytest.raises(BulkUploadError):
            parse_registration_file(csv_upload([]))


@pytest.mark.django_db
class TestValidateRegistrationRows:

    def test_valid_rows(self, category):
        assert validate_registration_rows([make_row(), make_row(shirt_size='xl')]) == []

    def test_errors_carry_sheet_row_numbers(self, category):
        errors = validate_registration_rows([
            make_row(),
            make_row(email='not-an-email', category='Marathon'),
        ])

        assert {(e['row'], e['field']) for e in errors} == {(3, 'email'), (3, 'category')}

    def test_required_fields(self, category):
        errors = validate_registration_rows([make_row(emergency_contact='', last_name='')])

        assert {e['field'] for e in errors} == {'emergency_contact', 'last_name'}

    @pytest.mark.parametrize('field,value', [
        ('shirt_size', 'XXXXL'),
        ('gender', 'other'),
        ('age', 'thirty'),
        ('is_church_attendee', 'maybe'),
        ('first_name', 'Ana|Maria'),
    ])
    def test_invalid_values(self, category, field, value):
        errors = validate_registration_rows([make_row(**{field: value})])

        assert [e['field'] for e in errors] == [field]

    def test_church_attendee_needs_affiliation(self, category):
        errors = validate_registration_rows([make_row(is_church_attendee='TRUE')])

        assert {e['field'] for e in errors} == {'department', 'ministry'}

    def test_ministry_must_belong_to_department(self, category, ministry):
        valid = make_row(is_church_attendee='yes', department='youth', ministry='worship')
        wrong = make_row(is_church_attendee='yes', department='Youth', ministry='Ushering')

        assert validate_registration_rows([valid]) == []
        assert [e['field'] for e in validate_registration_rows([wrong])] == ['ministry']


@pytest.mark.django_db
class TestImportRegistrations:

    def test_import(self, category, admin_user):
        summary = import_registrations(
            rows=[make_row(), make_row(email='bo@example.com', shirt_size='l', gender='Female')],
            actor=admin_user,
        )

        assert summary['total'] == 2
        assert summary['created'] == 2
        assert summary['failed'] == 0
        created = Registration.objects.get(email='bo@example.com')
        assert created.registration_id in summary['registration_ids']
        assert created.shirt_size == 'L'
        assert created.gender == 'female'
        assert created.price == Decimal('450.00')
        assert created.payment_status == PaymentStatus.PENDING
        assert mail.outbox == []

    def test_invalid_sheet_imports_nothing(self, category):
        with pytest.raises(BulkUploadError) as exc_info:
            import_registrations(rows=[make_row(), make_row(category='Marathon')])

        assert exc_info.value.errors[0]['row'] == 3
        assert Registration.objects.count() == 0

    def test_row_failure_does_not_stop_import(self, category):
        original_create = Registration.objects.create
        calls = []

        def flaky_create(**kwargs):
            calls.append(kwargs['email'])
            if len(calls) == 1:
                raise DatabaseError('disk full')
            return original_create(**kwargs)

        with patch.object(Registration.objects, 'create', side_effect=flaky_create):
            summary = import_registrations(rows=[make_row(), make_row(email='bo@example.com')])

        assert summary['created'] == 1
        assert summary['failed'] == 1
        assert summary['errors'] == [{'row': 2, 'message': 'disk full'}]
        assert Registration.objects.filter(email='bo@example.com').exists()

    def test_send_emails(self, category, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            import_registrations(rows=[make_row()], send_emails=True)

        assert len(mail.outbox) == 1


class TestUploadTemplate:

    def test_template_rows(self):
        output = io.StringIO()
        write_upload_template(output)

        rows = list(csv.reader(io.StringIO(output.getvalue())))
        assert rows[0] == UPLOAD_COLUMNS
        assert len(rows[1]) == len(UPLOAD_COLUMNS)
