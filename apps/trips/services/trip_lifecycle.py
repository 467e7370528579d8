"""
Trip lifecycle service.

Create, list, delete and reset trips. Every mutation is restricted to the
trip owner; listing and lookups are public.
"""

import logging
from typing import Optional

from django.conf import settings
from django.db import transaction, DatabaseError

from apps.trips.models import Trip, Contribution

from .authorization import ensure_trip_owner, get_caller_id, require_authenticated
from .exceptions import (
    TripNotFoundError,
    StorageError,
    DeleteFailedError,
)
from .media_upload import build_upload_name, upload_image
from .validation import clean_trip_fields, parse_uuid

logger = logging.getLogger(__name__)


def create_trip(
    *,
    user,
    name: str,
    description: Optional[str] = None,
    goal_amount=None,
    upi_id: Optional[str] = None,
    qr_code_image=None
) -> Trip:
    """
    Create a new trip owned by ``user``.

    All fields are validated before anything is uploaded or written. The
    optional QR code image is uploaded first; if the upload fails no trip
    is created.

    Args:
        user: Authenticated caller who becomes the owner
        name: Trip name (3-100 characters)
        description: Optional description (up to 500 characters)
        goal_amount: Optional positive savings target (number or numeric string)
        upi_id: Optional UPI payment identifier (up to 100 characters)
        qr_code_image: Optional uploaded image (JPG/PNG/WEBP, up to 2MB)

    Returns:
        Created Trip instance

    Raises:
        UnauthenticatedError: If there is no signed-in caller
        ValidationFailedError: If any field is invalid
        UploadFailedError: If the QR code image could not be stored
        StorageError: If the trip could not be saved
    """
    caller_id = require_authenticated(user)

    cleaned = clean_trip_fields(
        name=name,
        description=description,
        goal_amount=goal_amount,
        upi_id=upi_id,
        qr_code_image=qr_code_image,
    )

    qr_code_image_url = ''
    image = cleaned['qr_code_image']
    if image is not None:
        qr_code_image_url = upload_image(
            file=image,
            name=build_upload_name(
                folder='qr_codes',
                prefix=f'qr_code_{caller_id}',
                original_name=image.name,
            ),
        )

    try:
        trip = Trip.objects.create(
            owner=user,
            owner_email=getattr(user, 'email', '') or '',
            name=cleaned['name'],
            description=cleaned['description'],
            goal_amount=cleaned['goal_amount'],
            upi_id=cleaned['upi_id'],
            qr_code_image_url=qr_code_image_url,
        )
    except DatabaseError as e:
        logger.exception("Failed to create trip for user %s", caller_id)
        raise StorageError(f"Failed to create trip: {e}")

    logger.info("User %s created trip %s", caller_id, trip.id)
    return trip


def list_trips(*, user=None) -> list:
    """
    List trips, newest first.

    A signed-in caller sees only the trips they own. Anonymous callers get
    every trip in the system so trips can be browsed publicly.
    """
    queryset = Trip.objects.all()
    caller_id = get_caller_id(user)
    if caller_id is not None:
        queryset = queryset.filter(owner_id=caller_id)

    try:
        return list(queryset.order_by('-created_at'))
    except DatabaseError as e:
        raise StorageError(f"Failed to fetch trips: {e}")


def list_recent_public_trips(*, limit: Optional[int] = None) -> list:
    """Return the newest trips of all owners, at most ``limit`` of them."""
    if limit is None:
        limit = settings.TRIPS_RECENT_LIMIT
    if limit <= 0:
        return []

    try:
        return list(Trip.objects.order_by('-created_at')[:limit])
    except DatabaseError as e:
        raise StorageError(f"Failed to fetch recent trips: {e}")


def get_trip(*, trip_id) -> Optional[Trip]:
    """Return the trip, or None when the id is malformed or unknown."""
    parsed_id = parse_uuid(trip_id)
    if parsed_id is None:
        return None

    try:
        return Trip.objects.filter(pk=parsed_id).first()
    except DatabaseError as e:
        raise StorageError(f"Failed to fetch trip {trip_id}: {e}")


def get_trip_by_id(*, trip_id) -> Trip:
    """
    Return the trip or raise.

    Raises:
        TripNotFoundError: If the id is malformed or no such trip exists
    """
    if parse_uuid(trip_id) is None:
        raise TripNotFoundError("Invalid trip ID format.")

    trip = get_trip(trip_id=trip_id)
    if trip is None:
        raise TripNotFoundError()
    return trip


def delete_trip(*, trip_id, user) -> str:
    """
    Delete a trip and all of its contributions (owner only).

    Contributions are removed first; if that fails the trip is left in
    place. Both deletes run in one transaction where the database supports
    it.

    Returns:
        Name of the deleted trip

    Raises:
        UnauthenticatedError: If there is no signed-in caller
        TripNotFoundError: If the trip doesn't exist (or vanished mid-operation)
        ForbiddenError: If the caller is not the owner
        DeleteFailedError: If the contributions could not be removed
        StorageError: If the trip row could not be removed
    """
    caller_id = require_authenticated(user)
    trip = get_trip_by_id(trip_id=trip_id)
    ensure_trip_owner(user=user, trip=trip)

    with transaction.atomic():
        try:
            removed, _ = Contribution.objects.for_trip(trip.pk).delete()
        except DatabaseError as e:
            logger.exception("Failed to delete contributions of trip %s", trip.pk)
            raise DeleteFailedError(f"Failed to delete trip: {e}")

        try:
            _, deleted_per_model = Trip.objects.filter(pk=trip.pk, owner_id=caller_id).delete()
        except DatabaseError as e:
            logger.exception("Failed to delete trip %s", trip.pk)
            raise StorageError(f"Failed to delete trip: {e}")

        if not deleted_per_model.get(Trip._meta.label, 0):
            raise TripNotFoundError("Trip not found or already deleted during operation.")

    logger.info(
        "User %s deleted trip %s with %d contribution(s)", caller_id, trip.pk, removed
    )
    return trip.name


def reset_trip(*, trip_id, user) -> tuple:
    """
    Remove every contribution of a trip while keeping the trip itself (owner only).

    Name, goal and payment details are untouched.

    Returns:
        tuple: A tuple containing:
            - Trip: the reset trip
            - int: number of contributions removed

    Raises:
        UnauthenticatedError: If there is no signed-in caller
        TripNotFoundError: If the trip doesn't exist
        ForbiddenError: If the caller is not the owner
        StorageError: If the contributions could not be removed
    """
    caller_id = require_authenticated(user)
    trip = get_trip_by_id(trip_id=trip_id)
    ensure_trip_owner(user=user, trip=trip)

    try:
        removed, _ = Contribution.objects.for_trip(trip.pk).delete()
    except DatabaseError as e:
        logger.exception("Failed to reset trip %s", trip.pk)
        raise StorageError(f"Failed to reset trip: {e}")

    logger.info("User %s reset trip %s (%d contribution(s) removed)", caller_id, trip.pk, removed)
    return trip, removed
