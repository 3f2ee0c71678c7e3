import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.events.models import Category, ClaimLocation, PaymentMethod, Department, Ministry
from apps.registrations.models import (
    Registration,
    PaymentStatus,
    RegistrationStatus,
)


def make_registration(registration_id, **overrides):
    """Create a registration with sensible participant defaults."""
    fields = {
        'registration_id': registration_id,
        'first_name': 'Juan',
        'last_name': 'Dela Cruz',
        'email': f'{registration_id.lower()}@example.com',
        'category': '5K',
        'price': Decimal('450.00'),
        'shirt_size': 'M',
    }
    fields.update(overrides)
    return Registration.objects.create(**fields)


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def admin_user(db):
    """Create and return an event administrator."""
    return User.objects.create_user(
        email='admin@example.com',
        password='TestPass123!',
        display_name='Event Admin',
        is_staff=True,
    )


@pytest.fixture
def volunteer(db):
    """Create and return a kit-desk volunteer."""
    return User.objects.create_user(
        email='volunteer@example.com',
        password='TestPass123!',
        display_name='Kit Volunteer',
        can_distribute_kits=True,
    )


@pytest.fixture
def plain_user(db):
    """Staff account without any role."""
    return User.objects.create_user(
        email='plain@example.com',
        password='TestPass123!',
    )


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def admin_client(admin_user):
    """Return API client authenticated as event admin."""
    return _client_for(admin_user)


@pytest.fixture
def volunteer_client(volunteer):
    """Return API client authenticated as kit volunteer."""
    return _client_for(volunteer)


@pytest.fixture
def plain_client(plain_user):
    return _client_for(plain_user)


@pytest.fixture
def category(db):
    return Category.objects.create(name='5K', price=Decimal('450.00'))


@pytest.fixture
def payment_method(db):
    return PaymentMethod.objects.create(name='GCash', account_number='0917-000-0000')


@pytest.fixture
def claim_location(db):
    return ClaimLocation.objects.create(name='Main Church Lobby')


@pytest.fixture
def inactive_location(db):
    return ClaimLocation.objects.create(name='Old Booth', active=False)


@pytest.fixture
def registration(db):
    """Pending registration REG-001 style record."""
    return make_registration('FR2025000001')


@pytest.fixture
def confirmed_registration(db):
    return make_registration(
        'FR2025000002',
        first_name='Maria',
        last_name='Santos',
        category='10K',
        price=Decimal('550.00'),
        shirt_size='S',
        status=RegistrationStatus.CONFIRMED,
        payment_status=PaymentStatus.CONFIRMED,
    )


@pytest.fixture
def registration_factory(db):
    """Return a callable creating registrations by registration ID."""
    return make_registration


@pytest.fixture
def department(db):
    return Department.objects.create(name='Youth')


@pytest.fixture
def ministry(department):
    return Ministry.objects.create(name='Worship', department=department)
