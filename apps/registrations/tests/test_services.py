"""
Service layer unit tests for registrations app.

Tests cover:
- Payment status transitions, history and receipts
- Partial failures (receipt, e-mail) leaving the status change in place
- Ticket lookup and kit claims
- Bulk claims stopping at the first failure
"""

import re
import pytest
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4
from django.core import mail
from django.db import DatabaseError

from apps.events.models import Category
from apps.registrations.models import (
    Registration,
    PaymentHistory,
    PaymentReceipt,
    PaymentStatus,
    RegistrationStatus,
    EmailNotification,
    EmailNotificationStatus,
)
from apps.registrations.services import (
    update_payment_status,
    batch_update_payment_status,
    get_payment_history,
    issue_receipt,
    generate_receipt_number,
    send_payment_status_email,
    send_registration_ticket_email,
    lookup_registration,
    encode_ticket,
    ticket_for_registration,
    claim_kit,
    claim_kit_from_ticket,
    unclaim_kit,
    bulk_claim_kits,
    get_kit_distribution_stats,
    register_participant,
    generate_registration_id,
    get_registration_summary,
)
from apps.registrations.services.exceptions import (
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
)

RECEIPT_NUMBER_RE = re.compile(r'^FR-\d{4}-[0-9A-F]{8}$')


# =============================================================================
# Payment Status Service Tests
# =============================================================================

@pytest.mark.django_db
class TestUpdatePaymentStatus:
    """Tests for payment_status.py service functions."""

    def test_confirm_pending_registration(self, registration, admin_user):
        """Confirming writes history, issues a receipt and e-mails the participant."""
        result = update_payment_status(
            registration_id=registration.id,
            new_status=PaymentStatus.CONFIRMED,
            actor=admin_user,
        )

        registration.refresh_from_db()
        assert result['changed'] is True
        assert result['previous_status'] == PaymentStatus.PENDING
        assert registration.payment_status == PaymentStatus.CONFIRMED
        assert registration.status == RegistrationStatus.CONFIRMED
        assert registration.payment_confirmed_by == admin_user
        assert registration.payment_date is not None

        history = list(registration.payment_history.all())
        assert len(history) == 1
        assert history[0].previous_status == PaymentStatus.PENDING
        assert history[0].payment_status == PaymentStatus.CONFIRMED
        assert history[0].changed_by == admin_user

        receipt = PaymentReceipt.objects.get(registration=registration)
        assert RECEIPT_NUMBER_RE.match(receipt.receipt_number)
        assert result['receipt_number'] == receipt.receipt_number
        assert receipt.generated_by == admin_user

        assert len(mail.outbox) == 1
        assert 'Payment Confirmed' in mail.outbox[0].subject
        assert mail.outbox[0].to == [registration.email]
        assert 'FR2025000001' in mail.outbox[0].body

    def test_repeat_confirm_is_noop(self, registration, admin_user):
        """Confirming twice keeps one history row and one receipt."""
        first = update_payment_status(
            registration_id=registration.id,
            new_status=PaymentStatus.CONFIRMED,
            actor=admin_user,
        )
        registration.refresh_from_db()
        updated_at = registration.updated_at

        second = update_payment_status(
            registration_id=registration.id,
            new_status=PaymentStatus.CONFIRMED,
            actor=admin_user,
        )

        registration.refresh_from_db()
        assert second['changed'] is False
        assert second['history_entry'] is None
        assert second['receipt_number'] == first['receipt_number']
        assert registration.updated_at == updated_at
        assert PaymentHistory.objects.filter(registration=registration).count() == 1
        assert PaymentReceipt.objects.filter(registration=registration).count() == 1
        assert len(mail.outbox) == 1

    def test_reject_after_confirm(self, registration, admin_user):
        """Rejecting keeps payment_date and the existing receipt."""
        update_payment_status(
            registration_id=registration.id,
            new_status=PaymentStatus.CONFIRMED,
            actor=admin_user,
        )
        registration.refresh_from_db()
        payment_date = registration.payment_date

        result = update_payment_status(
            registration_id=registration.id,
            new_status=PaymentStatus.REJECTED,
            notes='Reference number not found',
            actor=admin_user,
        )

        registration.refresh_from_db()
        assert result['changed'] is True
        assert result['receipt_number'] is None
        assert registration.payment_status == PaymentStatus.REJECTED
        assert registration.status == RegistrationStatus.PENDING
        assert registration.payment_notes == 'Reference number not found'
        assert registration.payment_date == payment_date
        assert registration.payment_history.count() == 2
        assert PaymentReceipt.objects.filter(registration=registration).count() == 1

        rejection = mail.outbox[-1]
        assert 'Action Required' in rejection.subject
        assert 'Reference number not found' in rejection.body

    def test_same_status_with_notes_records_history(self, registration, admin_user):
        result = update_payment_status(
            registration_id=registration.id,
            new_status=PaymentStatus.PENDING,
            notes='Waiting for bank statement',
            actor=admin_user,
        )

        assert result['changed'] is True
        assert result['history_entry'].previous_status == PaymentStatus.PENDING
        assert registration.payment_history.count() == 1

    def test_pending_notes_not_emailed(self, registration, admin_user):
        """Notes only reach the participant on rejection."""
        update_payment_status(
            registration_id=registration.id,
            new_status=PaymentStatus.CONFIRMED,
            notes='internal: matched GCash ref',
            actor=admin_user,
        )

        assert 'internal' not in mail.outbox[0].body

    def test_blank_status_treated_as_pending(self, registration_factory, admin_user):
        legacy = registration_factory('FR2025000077', payment_status='')

        result = update_payment_status(
            registration_id=legacy.id,
            new_status=PaymentStatus.PENDING,
            actor=admin_user,
        )

        assert result['changed'] is False
        assert result['previous_status'] == PaymentStatus.PENDING

    def test_invalid_status(self, registration, admin_user):
        with pytest.raises(InvalidPaymentStatusError):
            update_payment_status(
                registration_id=registration.id,
                new_status='refunded',
                actor=admin_user,
            )

        assert registration.payment_history.count() == 0

    def test_unknown_registration(self, admin_user):
        with pytest.raises(RegistrationNotFoundError):
            update_payment_status(
                registration_id=uuid4(),
                new_status=PaymentStatus.CONFIRMED,
                actor=admin_user,
            )

    def test_send_email_false(self, registration, admin_user):
        update_payment_status(
            registration_id=registration.id,
            new_status=PaymentStatus.CONFIRMED,
            actor=admin_user,
            send_email=False,
        )

        assert mail.outbox == []

    def test_status_emails_disabled_by_setting(self, registration, admin_user, settings):
        settings.FAMRUN_SEND_STATUS_EMAILS = False

        update_payment_status(
            registration_id=registration.id,
            new_status=PaymentStatus.CONFIRMED,
            actor=admin_user,
        )

        assert mail.outbox == []

    def test_history_write_failure_rolls_back(self, registration, admin_user):
        """A failed history insert leaves the registration untouched."""
        with patch.object(
            PaymentHistory.objects,
            'create',
            side_effect=DatabaseError('disk full'),
        ):
            with pytest.raises(PaymentUpdateFailedError):
                update_payment_status(
                    registration_id=registration.id,
                    new_status=PaymentStatus.CONFIRMED,
                    actor=admin_user,
                )

        registration.refresh_from_db()
        assert registration.payment_status == PaymentStatus.PENDING
        assert registration.payment_date is None
        assert not PaymentReceipt.objects.filter(registration=registration).exists()
        assert mail.outbox == []

    def test_receipt_failure_is_not_fatal(self, registration, admin_user):
        with patch(
            'apps.registrations.services.payment_status.issue_receipt',
            side_effect=ReceiptIssuanceError('storage offline'),
        ):
            result = update_payment_status(
                registration_id=registration.id,
                new_status=PaymentStatus.CONFIRMED,
                actor=admin_user,
            )

        registration.refresh_from_db()
        assert registration.payment_status == PaymentStatus.CONFIRMED
        assert registration.payment_history.count() == 1
        assert result['receipt_number'] is None
        assert result['receipt_error'] == 'storage offline'
        assert result['warnings'] == ['Receipt could not be generated']
        assert len(mail.outbox) == 1

    def test_email_failure_is_not_fatal(self, registration, admin_user):
        with patch(
            'apps.registrations.services.notifications.send_mail',
            side_effect=ConnectionError('SMTP down'),
        ):
            result = update_payment_status(
                registration_id=registration.id,
                new_status=PaymentStatus.CONFIRMED,
                actor=admin_user,
            )

        registration.refresh_from_db()
        assert registration.payment_status == PaymentStatus.CONFIRMED
        assert result['receipt_number'] is not None
        assert 'SMTP down' in result['notification_error']

        notification = EmailNotification.objects.get(registration_id=registration.registration_id)
        assert notification.status == EmailNotificationStatus.FAILED

    def test_notification_log_failure_is_not_fatal(self, registration, admin_user):
        with patch.object(
            EmailNotification.objects,
            'create',
            side_effect=DatabaseError('log table down'),
        ):
            result = update_payment_status(
                registration_id=registration.id,
                new_status=PaymentStatus.CONFIRMED,
                actor=admin_user,
            )

        registration.refresh_from_db()
        assert registration.payment_status == PaymentStatus.CONFIRMED
        assert result['changed'] is True
        assert 'log table down' in result['notification_error']

    def test_get_payment_history_newest_first(self, registration, admin_user):
        for new_status in ['confirmed', 'rejected', 'confirmed']:
            update_payment_status(
                registration_id=registration.id,
                new_status=new_status,
                actor=admin_user,
                send_email=False,
            )

        history = list(get_payment_history(registration))

        assert [h.payment_status for h in history] == ['confirmed', 'rejected', 'confirmed']
        assert [h.previous_status for h in history] == ['rejected', 'confirmed', 'pending']
        assert PaymentReceipt.objects.filter(registration=registration).count() == 1


@pytest.mark.django_db
class TestBatchPaymentStatus:

    def test_batch_confirm(self, registration_factory, admin_user):
        registrations = [registration_factory(f'FR20250004{i:02d}') for i in range(3)]

        summary = batch_update_payment_status(
            registration_ids=[r.id for r in registrations],
            new_status=PaymentStatus.CONFIRMED,
            notes='GCash batch 12',
            actor=admin_user,
        )

        assert summary['updated'] == 3
        assert summary['failed'] == 0
        assert summary['receipts'] == 3
        assert [item['registration_id'] for item in summary['results']] == [
            'FR2025000400', 'FR2025000401', 'FR2025000402'
        ]
        assert all(item['success'] for item in summary['results'])
        for registration in registrations:
            registration.refresh_from_db()
            assert registration.payment_status == PaymentStatus.CONFIRMED
            assert registration.payment_history.get().notes == 'GCash batch 12'
        assert len(mail.outbox) == 3

    def test_batch_continues_past_failures(self, registration, confirmed_registration, admin_user):
        missing = uuid4()

        summary = batch_update_payment_status(
            registration_ids=[missing, registration.id, confirmed_registration.id],
            new_status=PaymentStatus.CONFIRMED,
            actor=admin_user,
            send_email=False,
        )

        assert summary['updated'] == 1
        assert summary['unchanged'] == 1
        assert summary['failed'] == 1
        failed = summary['results'][0]
        assert failed['id'] == missing
        assert failed['success'] is False
        assert 'not found' in failed['error']
        registration.refresh_from_db()
        assert registration.payment_status == PaymentStatus.CONFIRMED

    def test_batch_invalid_status_touches_nothing(self, registration, admin_user):
        with pytest.raises(InvalidPaymentStatusError):
            batch_update_payment_status(
                registration_ids=[registration.id],
                new_status='paid',
                actor=admin_user,
            )

        assert registration.payment_history.count() == 0


# =============================================================================
# Receipt Service Tests
# =============================================================================

@pytest.mark.django_db
class TestReceipts:
    """Tests for receipts.py service functions."""

    def test_receipt_number_format(self):
        assert RECEIPT_NUMBER_RE.match(generate_receipt_number())

    def test_issue_receipt_is_idempotent(self, confirmed_registration, admin_user):
        first = issue_receipt(registration=confirmed_registration, actor=admin_user)
        second = issue_receipt(registration=confirmed_registration)

        assert first.pk == second.pk
        assert PaymentReceipt.objects.count() == 1

    def test_collision_is_retried(self, registration, confirmed_registration):
        PaymentReceipt.objects.create(
            registration=confirmed_registration,
            receipt_number='FR-2025-AAAAAAAA',
        )

        with patch(
            'apps.registrations.services.receipts.generate_receipt_number',
            side_effect=['FR-2025-AAAAAAAA', 'FR-2025-BBBBBBBB'],
        ):
            receipt = issue_receipt(registration=registration)

        assert receipt.receipt_number == 'FR-2025-BBBBBBBB'

    def test_collision_retries_exhausted(self, registration, confirmed_registration):
        PaymentReceipt.objects.create(
            registration=confirmed_registration,
            receipt_number='FR-2025-AAAAAAAA',
        )

        with patch(
            'apps.registrations.services.receipts.generate_receipt_number',
            return_value='FR-2025-AAAAAAAA',
        ):
            with pytest.raises(ReceiptIssuanceError):
                issue_receipt(registration=registration)

        assert not PaymentReceipt.objects.filter(registration=registration).exists()


# =============================================================================
# Notification Service Tests
# =============================================================================

@pytest.mark.django_db
class TestNotifications:
    """Tests for notifications.py service functions."""

    def test_pending_email(self):
        notification = send_payment_status_email(
            email='juan@example.com',
            participant_name='Juan',
            registration_id='FR2025000001',
            status=PaymentStatus.PENDING,
        )

        assert notification.status == EmailNotificationStatus.SENT
        assert notification.email_type == 'payment_pending'
        assert 'Under Review' in mail.outbox[0].subject
        assert 'Juan' in mail.outbox[0].body

    def test_rejection_without_notes(self):
        send_payment_status_email(
            email='juan@example.com',
            participant_name='Juan',
            registration_id='FR2025000001',
            status=PaymentStatus.REJECTED,
        )

        assert 'None' not in mail.outbox[0].body

    def test_unknown_status(self):
        with pytest.raises(NotificationError):
            send_payment_status_email(
                email='juan@example.com',
                participant_name='Juan',
                registration_id='FR2025000001',
                status='refunded',
            )

    def test_event_name_in_subject(self, settings):
        settings.FAMRUN_EVENT_NAME = 'Test Run 2026'

        send_payment_status_email(
            email='juan@example.com',
            participant_name='Juan',
            registration_id='FR2025000001',
            status=PaymentStatus.CONFIRMED,
        )

        assert mail.outbox[0].subject.startswith('Test Run 2026')

    def test_ticket_email_with_unencodable_ticket(self, registration):
        registration.category = '5K|Fun'

        with pytest.raises(NotificationError):
            send_registration_ticket_email(registration)

        assert mail.outbox == []
        notification = EmailNotification.objects.get(registration_id=registration.registration_id)
        assert notification.email_type == 'registration_ticket'
        assert notification.status == EmailNotificationStatus.FAILED


# =============================================================================
# Lookup Service Tests
# =============================================================================

@pytest.mark.django_db
class TestLookup:
    """Tests for lookup.py service functions."""

    def test_lookup_matching_ticket(self, registration):
        lookup = lookup_registration(ticket_for_registration(registration))

        assert lookup.registration == registration
        assert lookup.is_consistent
        assert lookup.mismatches == []

    def test_lookup_reports_mismatches(self, registration):
        payload = encode_ticket('FR2025000001', 'Juan Dela Cruz', '10K', Decimal('550'), 'm')

        lookup = lookup_registration(payload)

        assert lookup.mismatches == ['category', 'price']

    def test_lookup_ignores_name_changes(self, registration):
        payload = encode_ticket('FR2025000001', 'Jaun Dela Cruz', '5k', Decimal('450'), 'M')

        assert lookup_registration(payload).is_consistent

    def test_lookup_unknown_registration(self, db):
        payload = encode_ticket('FR2025999999', 'Nobody', '5K', Decimal('450'), 'M')

        with pytest.raises(RegistrationNotFoundError):
            lookup_registration(payload)

    def test_lookup_invalid_payload(self, db):
        with pytest.raises(InvalidTicketFormatError):
            lookup_registration('FR2025000001')


# =============================================================================
# Kit Claim Service Tests
# =============================================================================

@pytest.mark.django_db
class TestKitClaims:
    """Tests for kit_claims.py service functions."""

    def test_claim_kit(self, confirmed_registration, volunteer, claim_location):
        registration = claim_kit(
            registration_id=confirmed_registration.id,
            actor=volunteer,
            actual_claimer='Pedro Santos',
            claim_location_id=claim_location.id,
            notes='Picked up by brother',
        )

        assert registration.kit_claimed is True
        assert registration.claimed_at is not None
        assert registration.processed_by == volunteer
        assert registration.actual_claimer == 'Pedro Santos'
        assert registration.claim_location == claim_location
        assert registration.claim_notes == 'Picked up by brother'

    def test_claim_twice(self, confirmed_registration, volunteer):
        claim_kit(registration_id=confirmed_registration.id, actor=volunteer)

        with pytest.raises(KitAlreadyClaimedError):
            claim_kit(registration_id=confirmed_registration.id, actor=volunteer)

    def test_claim_requires_confirmed_payment(self, registration, volunteer):
        with pytest.raises(PaymentNotConfirmedError):
            claim_kit(registration_id=registration.id, actor=volunteer)

        registration.refresh_from_db()
        assert registration.kit_claimed is False

    def test_claim_unconfirmed_when_allowed(self, registration, volunteer, settings):
        settings.FAMRUN_REQUIRE_CONFIRMED_FOR_CLAIM = False

        claimed = claim_kit(registration_id=registration.id, actor=volunteer)

        assert claimed.kit_claimed is True

    def test_claim_inactive_location(self, confirmed_registration, volunteer, inactive_location):
        with pytest.raises(ClaimLocationNotFoundError):
            claim_kit(
                registration_id=confirmed_registration.id,
                actor=volunteer,
                claim_location_id=inactive_location.id,
            )

    def test_claim_from_ticket(self, confirmed_registration, volunteer):
        registration = claim_kit_from_ticket(
            payload=ticket_for_registration(confirmed_registration),
            actor=volunteer,
        )

        assert registration.kit_claimed is True

    def test_claim_from_mismatched_ticket(self, confirmed_registration, volunteer):
        payload = encode_ticket('FR2025000002', 'Maria Santos', '10K', Decimal('550.00'), 'XL')

        with pytest.raises(TicketMismatchError) as exc_info:
            claim_kit_from_ticket(payload=payload, actor=volunteer)

        assert exc_info.value.mismatches == ['shirt_size']
        confirmed_registration.refresh_from_db()
        assert confirmed_registration.kit_claimed is False

    def test_unclaim_kit(self, confirmed_registration, volunteer, claim_location):
        claim_kit(
            registration_id=confirmed_registration.id,
            actor=volunteer,
            claim_location_id=claim_location.id,
            notes='Front desk',
        )

        registration = unclaim_kit(registration_id=confirmed_registration.id, actor=volunteer)

        assert registration.kit_claimed is False
        assert registration.claimed_at is None
        assert registration.processed_by is None
        assert registration.claim_location is None
        assert registration.claim_notes.startswith('Unclaimed on ')
        assert registration.claim_notes.endswith('Previous notes: Front desk')

    def test_unclaim_without_notes(self, confirmed_registration, volunteer):
        claim_kit(registration_id=confirmed_registration.id, actor=volunteer)

        registration = unclaim_kit(registration_id=confirmed_registration.id, actor=volunteer)

        assert registration.claim_notes.endswith('Previous notes: None')

    def test_unclaim_unclaimed_kit(self, confirmed_registration, volunteer):
        with pytest.raises(KitNotClaimedError):
            unclaim_kit(registration_id=confirmed_registration.id, actor=volunteer)


@pytest.mark.django_db
class TestBulkClaims:

    def test_bulk_claim(self, registration_factory, volunteer, claim_location):
        registrations = [
            registration_factory(f'FR20250001{i:02d}', status=RegistrationStatus.CONFIRMED)
            for i in range(3)
        ]

        claimed = bulk_claim_kits(
            registration_ids=[r.id for r in registrations],
            actor=volunteer,
            claim_location_id=claim_location.id,
            notes='Team Alpha',
        )

        assert claimed == 3
        for registration in registrations:
            registration.refresh_from_db()
            assert registration.kit_claimed is True
            assert registration.actual_claimer == 'Bulk Distribution'
            assert registration.claim_notes == 'Bulk distribution: Team Alpha'
            assert registration.claim_location == claim_location

    def test_bulk_claim_default_notes(self, confirmed_registration, volunteer, claim_location):
        bulk_claim_kits(
            registration_ids=[confirmed_registration.id],
            actor=volunteer,
            claim_location_id=claim_location.id,
        )

        confirmed_registration.refresh_from_db()
        assert confirmed_registration.claim_notes == 'Bulk distribution'

    def test_bulk_claim_stops_at_first_failure(self, registration_factory, volunteer, claim_location):
        first = registration_factory('FR2025000201', status=RegistrationStatus.CONFIRMED)
        unpaid = registration_factory('FR2025000202')
        last = registration_factory('FR2025000203', status=RegistrationStatus.CONFIRMED)

        with pytest.raises(BulkClaimError) as exc_info:
            bulk_claim_kits(
                registration_ids=[first.id, unpaid.id, last.id],
                actor=volunteer,
                claim_location_id=claim_location.id,
            )

        assert exc_info.value.completed == 1
        assert exc_info.value.registration_id == unpaid.id
        first.refresh_from_db()
        last.refresh_from_db()
        assert first.kit_claimed is True
        assert last.kit_claimed is False

    def test_bulk_claim_database_error_reports_progress(self, registration_factory, volunteer, claim_location):
        registrations = [
            registration_factory(f'FR20250003{i:02d}', status=RegistrationStatus.CONFIRMED)
            for i in range(3)
        ]
        original_save = Registration.save
        saved = []

        def flaky_save(instance, *args, **kwargs):
            saved.append(instance.pk)
            if len(saved) == 2:
                raise DatabaseError('connection reset')
            return original_save(instance, *args, **kwargs)

        with patch.object(Registration, 'save', autospec=True, side_effect=flaky_save):
            with pytest.raises(BulkClaimError) as exc_info:
                bulk_claim_kits(
                    registration_ids=[r.id for r in registrations],
                    actor=volunteer,
                    claim_location_id=claim_location.id,
                )

        assert exc_info.value.completed == 1
        assert exc_info.value.registration_id == registrations[1].id
        assert Registration.objects.filter(kit_claimed=True).count() == 1

    def test_bulk_claim_unknown_location(self, confirmed_registration, volunteer):
        with pytest.raises(ClaimLocationNotFoundError):
            bulk_claim_kits(
                registration_ids=[confirmed_registration.id],
                actor=volunteer,
                claim_location_id=9999,
            )

    def test_kit_stats(self, registration, confirmed_registration, volunteer, claim_location):
        claim_kit(
            registration_id=confirmed_registration.id,
            actor=volunteer,
            claim_location_id=claim_location.id,
        )

        stats = get_kit_distribution_stats()

        assert stats['total'] == 2
        assert stats['claimed'] == 1
        assert stats['unclaimed'] == 1
        assert stats['confirmed_unclaimed'] == 0
        assert stats['by_location'] == [{'location': 'Main Church Lobby', 'claimed': 1}]


# =============================================================================
# Registration Service Tests
# =============================================================================

@pytest.mark.django_db
class TestRegisterParticipant:
    """Tests for registration.py service functions."""

    def test_registration_id_format(self):
        assert re.match(r'^FR\d{4}\d{6}$', generate_registration_id())

    def test_register_snapshots_category_price(self, category, payment_method):
        registration = register_participant(
            first_name=' Ana ',
            last_name='Reyes',
            email='Ana@Example.com',
            category='5k',
            shirt_size='L',
            payment_method=payment_method,
            payment_reference_number='GC-123',
        )

        assert registration.category == '5K'
        assert registration.price == Decimal('450.00')
        assert registration.first_name == 'Ana'
        assert registration.email == 'ana@example.com'
        assert registration.payment_status == PaymentStatus.PENDING
        assert registration.status == RegistrationStatus.PENDING

    def test_register_unknown_category(self, db):
        with pytest.raises(CategoryNotFoundError):
            register_participant(
                first_name='Ana',
                last_name='Reyes',
                email='ana@example.com',
                category='Marathon',
                shirt_size='L',
            )

    def test_register_retries_id_collision(self, category, registration):
        with patch(
            'apps.registrations.services.registration.generate_registration_id',
            side_effect=['FR2025000001', 'FR2025000555'],
        ):
            created = register_participant(
                first_name='Ana',
                last_name='Reyes',
                email='ana@example.com',
                category='5K',
                shirt_size='L',
            )

        assert created.registration_id == 'FR2025000555'

    def test_ticket_email_sent_on_commit(self, category, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            registration = register_participant(
                first_name='Ana',
                last_name='Reyes',
                email='ana@example.com',
                category='5K',
                shirt_size='L',
            )

        assert len(mail.outbox) == 1
        message = mail.outbox[0]
        assert registration.registration_id in message.subject
        assert message.attachments[0][0] == f'ticket_{registration.registration_id}.png'
        assert EmailNotification.objects.filter(
            registration_id=registration.registration_id,
            email_type='registration_ticket',
        ).exists()

    def test_ticket_failure_does_not_fail_registration(self, db, django_capture_on_commit_callbacks):
        Category.objects.create(name='5K|Fun', price=Decimal('450.00'))

        with django_capture_on_commit_callbacks(execute=True):
            registration = register_participant(
                first_name='Ana',
                last_name='Reyes',
                email='ana@example.com',
                category='5K|Fun',
                shirt_size='L',
            )

        assert Registration.objects.filter(pk=registration.pk).exists()
        assert mail.outbox == []
        assert EmailNotification.objects.get(
            registration_id=registration.registration_id
        ).status == EmailNotificationStatus.FAILED

    def test_registration_summary(self, registration, confirmed_registration):
        summary = get_registration_summary()

        assert summary['total'] == 2
        assert summary['pending'] == 1
        assert summary['confirmed'] == 1
        assert summary['rejected'] == 0
        assert summary['confirmed_revenue'] == Decimal('550.00')

    def test_registration_summary_empty(self, db):
        assert get_registration_summary()['confirmed_revenue'] == Decimal('0.00')
