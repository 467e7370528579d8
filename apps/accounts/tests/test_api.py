import pytest
from django.urls import reverse
from rest_framework import status
from apps.accounts.models import User
from apps.trips.models import Trip
from apps.accounts.services import (
    register_user,
    authenticate_user,
    UserRegistrationError,
    InvalidCredentialsError,
    InactiveAccountError,
)


# =============================================================================
# Registration Tests
# =============================================================================

@pytest.mark.django_db
class TestRegistration:
    """Tests for POST /api/auth/register/"""

    def test_register_success(self, api_client):
        """Successfully register a new user."""
        url = reverse('users:register')
        data = {
            'email': 'newuser@example.com',
            'password': 'SecurePass123!',
            'password_confirm': 'SecurePass123!',
            'display_name': 'New User',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_201_CREATED
        assert 'access' in response.data['tokens']
        assert 'refresh' in response.data['tokens']
        assert User.objects.filter(email='newuser@example.com').exists()

    def test_register_duplicate_email(self, api_client, user):
        """Cannot register with existing email."""
        url = reverse('users:register')
        data = {
            'email': user.email,
            'password': 'SecurePass123!',
            'password_confirm': 'SecurePass123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_register_password_mismatch(self, api_client):
        """Registration fails when passwords don't match."""
        url = reverse('users:register')
        data = {
            'email': 'mismatch@example.com',
            'password': 'SecurePass123!',
            'password_confirm': 'DifferentPass123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'password_confirm' in response.data


# =============================================================================
# Login Tests
# =============================================================================

@pytest.mark.django_db
class TestLogin:
    """Tests for POST /api/auth/login/"""

    def test_login_success(self, api_client, user):
        """Successfully login with valid credentials."""
        url = reverse('users:login')
        response = api_client.post(url, {'email': user.email, 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data['tokens']
        assert response.data['user']['email'] == user.email

    def test_login_wrong_password(self, api_client, user):
        """Login fails with wrong password."""
        url = reverse('users:login')
        response = api_client.post(url, {'email': user.email, 'password': 'WrongPass123!'})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_inactive_user(self, api_client, user_inactive):
        """Deactivated accounts cannot log in."""
        url = reverse('users:login')
        response = api_client.post(url, {'email': user_inactive.email, 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# Current User Tests
# =============================================================================

@pytest.mark.django_db
class TestCurrentUser:
    """Tests for GET /api/auth/user/"""

    def test_get_current_user(self, authenticated_client, user):
        url = reverse('users:current-user')
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == user.email
        assert response.data['display_name'] == 'Test User'

    def test_get_current_user_unauthenticated(self, api_client):
        url = reverse('users:current-user')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Service Tests
# =============================================================================

@pytest.mark.django_db
class TestAccountServices:

    def test_register_user_rejects_case_insensitive_duplicate(self, user):
        with pytest.raises(UserRegistrationError):
            register_user(email='TestUser@Example.com', password='SecurePass123!')

    def test_authenticate_user_sets_last_login(self, user):
        assert user.last_login is None

        authenticated = authenticate_user(email=user.email, password='TestPass123!')

        assert authenticated.id == user.id
        assert authenticated.last_login is not None

    def test_authenticate_user_unknown_email(self):
        with pytest.raises(InvalidCredentialsError):
            authenticate_user(email='nobody@example.com', password='whatever')

    def test_authenticate_user_inactive(self, user_inactive):
        with pytest.raises(InactiveAccountError):
            authenticate_user(email=user_inactive.email, password='TestPass123!')

    def test_authenticate_user_email_case_insensitive(self, user):
        authenticated = authenticate_user(email='  TESTUSER@example.com ', password='TestPass123!')
        assert authenticated.id == user.id


@pytest.mark.django_db
class TestOwnerProfile:
    """Profile fields shown for trip owners."""

    def test_current_user_reports_trip_count(self, authenticated_client, user):
        Trip.objects.create(owner=user, owner_email=user.email, name='Goa Trip')

        response = authenticated_client.get(reverse('users:current-user'))

        assert response.data['trip_count'] == 1

    def test_name_falls_back_to_email_prefix(self, db):
        owner = User.objects.create_user(email='sam@example.com', password='TestPass123!')
        assert owner.get_display_name() == 'sam'
