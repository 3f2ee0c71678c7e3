"""
Management command to seed the reference data a fresh event needs.
Run this after migrations: python manage.py setup_event_data
"""
from decimal import Decimal
from django.core.management.base import BaseCommand
from django.db import transaction
from apps.events.models import Category, ClaimLocation, PaymentMethod


CATEGORIES = [
    {'name': '3K', 'price': Decimal('350.00'), 'display_order': 1, 'description': 'Family fun walk/run'},
    {'name': '5K', 'price': Decimal('450.00'), 'display_order': 2, 'description': 'Beginner friendly'},
    {'name': '10K', 'price': Decimal('550.00'), 'display_order': 3, 'description': 'For seasoned runners'},
]

CLAIM_LOCATIONS = [
    {'name': 'Main Church Lobby', 'address': 'Ground floor, main building'},
    {'name': 'Race Day Booth', 'address': 'Start/finish area'},
]

PAYMENT_METHODS = [
    {'name': 'GCash', 'account_number': '0917-000-0000', 'account_type': 'e-wallet'},
    {'name': 'Bank Transfer', 'account_number': '0000-0000-00', 'account_type': 'bank'},
]


class Command(BaseCommand):
    help = 'Sets up default race categories, claim locations and payment methods'

    def handle(self, *args, **options):
        self.stdout.write('Setting up event reference data...')

        with transaction.atomic():
            for data in CATEGORIES:
                category, created = Category.objects.get_or_create(
                    name=data['name'],
                    defaults=data,
                )
                self._report('Category', category, created)

            for data in CLAIM_LOCATIONS:
                location, created = ClaimLocation.objects.get_or_create(
                    name=data['name'],
                    defaults=data,
                )
                self._report('Claim location', location, created)

            for data in PAYMENT_METHODS:
                method, created = PaymentMethod.objects.get_or_create(
                    name=data['name'],
                    defaults=data,
                )
                self._report('Payment method', method, created)

        self.stdout.write(self.style.SUCCESS('Event reference data ready.'))

    def _report(self, kind, obj, created):
        if created:
            self.stdout.write(self.style.SUCCESS(f'Created {kind}: {obj}'))
        else:
            self.stdout.write(self.style.WARNING(f'{kind} {obj} already exists'))
