import pytest
from django.urls import reverse
from rest_framework import status
from apps.accounts.models import User
from apps.accounts.services import (
    authenticate_user,
    InvalidCredentialsError,
    InactiveAccountError,
)


# =============================================================================
# Login Tests
# =============================================================================

@pytest.mark.django_db
class TestLogin:
    """Tests for POST /api/auth/login/"""

    def test_login_success(self, api_client, user):
        """Successfully login with valid credentials."""
        url = reverse('users:login')
        data = {
            'email': user.email,
            'password': 'TestPass123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data['tokens']
        assert 'refresh' in response.data['tokens']
        assert response.data['user']['email'] == user.email
        assert response.data['user']['is_staff'] is True

    def test_plain_http_is_not_redirected(self, api_client, user):
        """Test settings serve http without the production SSL redirect."""
        response = api_client.post(reverse('users:login'), {
            'email': user.email,
            'password': 'TestPass123!',
        }, secure=False)

        assert response.status_code == status.HTTP_200_OK

    def test_login_case_insensitive_email(self, api_client, user):
        """Email lookup ignores case."""
        url = reverse('users:login')
        response = api_client.post(url, {
            'email': 'ADMIN@example.com',
            'password': 'TestPass123!',
        })

        assert response.status_code == status.HTTP_200_OK

    def test_login_wrong_password(self, api_client, user):
        """Login fails with wrong password."""
        url = reverse('users:login')
        response = api_client.post(url, {
            'email': user.email,
            'password': 'WrongPass123!',
        })

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['error'] == 'Invalid credentials'

    def test_login_unknown_user(self, api_client, db):
        """Login fails for an unknown account."""
        url = reverse('users:login')
        response = api_client.post(url, {
            'email': 'nobody@example.com',
            'password': 'TestPass123!',
        })

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_inactive_user(self, api_client, user_inactive):
        """Deactivated staff cannot log in."""
        url = reverse('users:login')
        response = api_client.post(url, {
            'email': user_inactive.email,
            'password': 'TestPass123!',
        })

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_login_missing_fields(self, api_client, db):
        """Login requires email and password."""
        url = reverse('users:login')
        response = api_client.post(url, {'email': 'admin@example.com'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'password' in response.data

    def test_login_updates_last_login(self, api_client, user):
        """Successful login records last_login."""
        assert user.last_login is None
        api_client.post(reverse('users:login'), {
            'email': user.email,
            'password': 'TestPass123!',
        })

        user.refresh_from_db()
        assert user.last_login is not None


# =============================================================================
# Current User Tests
# =============================================================================

@pytest.mark.django_db
class TestCurrentUser:
    """Tests for GET /api/auth/user/"""

    def test_get_current_user(self, authenticated_client, user):
        """Authenticated staff get their profile and roles."""
        response = authenticated_client.get(reverse('users:current-user'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == user.email
        assert response.data['display_name'] == 'Event Admin'
        assert response.data['is_staff'] is True

    def test_get_current_user_unauthenticated(self, api_client):
        """Anonymous requests are rejected."""
        response = api_client.get(reverse('users:current-user'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Service and Role Tests
# =============================================================================

@pytest.mark.django_db
class TestAuthenticationService:

    def test_authenticate_user(self, user):
        assert authenticate_user(email=user.email, password='TestPass123!') == user

    def test_authenticate_wrong_password(self, user):
        with pytest.raises(InvalidCredentialsError):
            authenticate_user(email=user.email, password='nope')

    def test_authenticate_inactive(self, user_inactive):
        with pytest.raises(InactiveAccountError):
            authenticate_user(email=user_inactive.email, password='TestPass123!')


@pytest.mark.django_db
class TestRoles:

    def test_admin_can_distribute_kits(self, user):
        assert user.is_event_admin
        assert user.is_kit_distributor

    def test_volunteer_is_not_admin(self, kit_volunteer):
        assert not kit_volunteer.is_event_admin
        assert kit_volunteer.is_kit_distributor

    def test_superuser_gets_all_roles(self, db):
        superuser = User.objects.create_superuser(
            email='root@example.com',
            password='TestPass123!',
        )
        assert superuser.is_event_admin
        assert superuser.can_distribute_kits
