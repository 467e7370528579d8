import pytest
from datetime import timedelta
from decimal import Decimal
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.trips.models import Trip, Contribution, ContributionStatus


PNG_BYTES = (
    b'\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01'
    b'\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f'
    b'\x00\x00\x01\x01\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82'
)


def make_image(name='proof.png', content_type='image/png', size=None):
    """Build an in-memory upload; ``size`` pads the content to that many bytes."""
    content = PNG_BYTES if size is None else b'\0' * size
    return SimpleUploadedFile(name, content, content_type=content_type)


def make_contribution(trip, username, amount, status=ContributionStatus.PENDING, minutes_ago=0):
    """Create a contribution with a controlled ``created_at``."""
    approved_at = timezone.now() if status == ContributionStatus.APPROVED else None
    contribution = Contribution.objects.create(
        trip=trip,
        username=username,
        amount=Decimal(amount),
        screenshot_url=f'/media/screenshots/{username}.png',
        status=status,
        approved_at=approved_at,
    )
    created_at = timezone.now() - timedelta(minutes=minutes_ago)
    Contribution.objects.filter(pk=contribution.pk).update(created_at=created_at)
    contribution.created_at = created_at
    return contribution


def bearer(client, user):
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    """Keep uploaded files out of the project tree."""
    settings.MEDIA_ROOT = str(tmp_path / 'media')
    settings.MEDIA_PUBLIC_BASE_URL = ''
    return settings.MEDIA_ROOT


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def owner(db):
    """Create and return the trip owner."""
    return User.objects.create_user(
        email='owner@example.com',
        password='TestPass123!',
        display_name='Trip Owner',
    )


@pytest.fixture
def other_user(db):
    """Create and return a signed-in user who owns nothing."""
    return User.objects.create_user(
        email='other@example.com',
        password='TestPass123!',
        display_name='Other User',
    )


@pytest.fixture
def owner_client(owner):
    """API client authenticated as the trip owner."""
    return bearer(APIClient(), owner)


@pytest.fixture
def other_client(other_user):
    """API client authenticated as a non-owner."""
    return bearer(APIClient(), other_user)


@pytest.fixture
def trip(owner):
    """A trip with a goal and UPI ID."""
    return Trip.objects.create(
        owner=owner,
        owner_email=owner.email,
        name='Goa Trip',
        description='Beach weekend',
        goal_amount=Decimal('1000.00'),
        upi_id='goa-trip@okbank',
    )


@pytest.fixture
def trip_without_goal(owner):
    return Trip.objects.create(owner=owner, owner_email=owner.email, name='Open Fund')


@pytest.fixture
def other_trip(other_user):
    """A trip owned by someone else."""
    return Trip.objects.create(
        owner=other_user,
        owner_email=other_user.email,
        name='Ski Trip',
    )


@pytest.fixture
def pending_contribution(trip):
    return make_contribution(trip, 'carol', '30.00')


@pytest.fixture
def approved_contribution(trip):
    return make_contribution(trip, 'alice', '100.00', status=ContributionStatus.APPROVED, minutes_ago=10)


@pytest.fixture
def png_image():
    return make_image()
