import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.events.models import Category, ClaimLocation, Department, Ministry


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email='admin@example.com',
        password='TestPass123!',
        display_name='Event Admin',
        is_staff=True,
    )


@pytest.fixture
def volunteer(db):
    return User.objects.create_user(
        email='volunteer@example.com',
        password='TestPass123!',
        can_distribute_kits=True,
    )


@pytest.fixture
def admin_client(api_client, admin_user):
    """Return API client authenticated as event admin."""
    refresh = RefreshToken.for_user(admin_user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def volunteer_client(api_client, volunteer):
    refresh = RefreshToken.for_user(volunteer)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def category_5k(db):
    return Category.objects.create(name='5K', price=Decimal('450.00'), display_order=2)


@pytest.fixture
def inactive_category(db):
    return Category.objects.create(name='21K', price=Decimal('900.00'), active=False)


@pytest.fixture
def claim_location(db):
    return ClaimLocation.objects.create(name='Main Church Lobby', address='123 Main St')


@pytest.fixture
def department(db):
    return Department.objects.create(name='Youth')


@pytest.fixture
def ministry(db, department):
    return Ministry.objects.create(name='Worship', department=department)
