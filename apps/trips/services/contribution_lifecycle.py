"""
Contribution lifecycle service.

Anyone may submit a contribution claim against a trip. Only the owner of
that trip may approve or delete the claim. Status only ever moves from
pending to approved.
"""

import logging

from django.db import DatabaseError, IntegrityError
from django.utils import timezone

from apps.trips.models import Trip, Contribution, ContributionStatus

from .authorization import ensure_trip_owner, require_authenticated
from .exceptions import (
    ContributionNotFoundError,
    InvalidStateError,
    InvalidTripError,
    StorageError,
    ValidationFailedError,
)
from .media_upload import build_upload_name, upload_image
from .validation import clean_contribution_fields, parse_uuid

logger = logging.getLogger(__name__)

NOT_TRIP_OWNER_MESSAGE = 'Forbidden. You do not own the trip this contribution belongs to.'


def _find_trip(trip_id):
    parsed_id = parse_uuid(trip_id)
    if parsed_id is None:
        return None
    try:
        return Trip.objects.filter(pk=parsed_id).first()
    except DatabaseError as e:
        raise StorageError(f"Failed to fetch trip {trip_id}: {e}")


def _get_contribution(contribution_id) -> Contribution:
    parsed_id = parse_uuid(contribution_id)
    if parsed_id is None:
        raise ContributionNotFoundError("Invalid contribution ID format.")

    try:
        contribution = (
            Contribution.objects
            .select_related('trip')
            .filter(pk=parsed_id)
            .first()
        )
    except DatabaseError as e:
        raise StorageError(f"Failed to fetch contribution {contribution_id}: {e}")

    if contribution is None:
        raise ContributionNotFoundError()
    return contribution


def submit_contribution(*, trip_id, username, amount, screenshot) -> Contribution:
    """
    Record a pending contribution claim with its payment screenshot.

    No sign-in is needed. Every field is validated, and the trip must
    exist, before the screenshot is uploaded. Nothing is saved when the
    upload fails.

    Args:
        trip_id: Id of the trip the money was paid toward
        username: Contributor's display name (1-50 characters)
        amount: Claimed amount, greater than 0 and at most 100000
        screenshot: Uploaded payment proof (JPG/PNG/WEBP, up to 5MB)

    Returns:
        Created Contribution in pending state

    Raises:
        InvalidTripError: If only the trip reference is bad
        ValidationFailedError: If any other field is invalid (the trip
            reference is included in ``errors`` when it is bad too)
        UploadFailedError: If the screenshot could not be stored
        StorageError: If the contribution could not be saved
    """
    trip = _find_trip(trip_id)

    try:
        cleaned = clean_contribution_fields(
            username=username,
            amount=amount,
            screenshot=screenshot,
        )
    except ValidationFailedError as e:
        if trip is None:
            e.errors['trip_id'] = [InvalidTripError.default_message]
        raise

    if trip is None:
        raise InvalidTripError()

    screenshot_file = cleaned['screenshot']
    screenshot_url = upload_image(
        file=screenshot_file,
        name=build_upload_name(
            folder='screenshots',
            prefix=f'contribution_{trip.pk}',
            original_name=screenshot_file.name,
        ),
    )

    try:
        contribution = Contribution.objects.create(
            trip=trip,
            username=cleaned['username'],
            amount=cleaned['amount'],
            screenshot_url=screenshot_url,
            status=ContributionStatus.PENDING,
        )
    except IntegrityError:
        # Trip deleted between the lookup and the insert
        raise InvalidTripError("Trip no longer exists.")
    except DatabaseError as e:
        logger.exception("Failed to save contribution for trip %s", trip.pk)
        raise StorageError(f"Failed to submit contribution: {e}")

    logger.info(
        "Contribution %s of %s submitted to trip %s", contribution.id, contribution.amount, trip.pk
    )
    return contribution


def list_contributions(*, trip_id) -> list:
    """All contributions of a trip, pending first, newest first within each status."""
    parsed_id = parse_uuid(trip_id)
    if parsed_id is None:
        return []

    try:
        return list(Contribution.objects.for_trip(parsed_id).pending_first())
    except DatabaseError as e:
        raise StorageError(f"Failed to fetch contributions: {e}")


def approve_contribution(*, contribution_id, user) -> tuple:
    """
    Approve a pending contribution (trip owner only).

    The status change is a single conditional update that only matches a
    pending row, so two concurrent approvals cannot both win. Approving an
    already approved contribution succeeds without touching ``approved_at``.

    Returns:
        tuple: A tuple containing:
            - Contribution: the contribution in approved state
            - bool: True if this call approved it, False if it already was

    Raises:
        UnauthenticatedError: If there is no signed-in caller
        ContributionNotFoundError: If it doesn't exist or was deleted meanwhile
        ForbiddenError: If the caller does not own the contribution's trip
        InvalidStateError: If the row is neither pending nor approved
        StorageError: If the update fails
    """
    caller_id = require_authenticated(user)
    contribution = _get_contribution(contribution_id)
    ensure_trip_owner(user=user, trip=contribution.trip, message=NOT_TRIP_OWNER_MESSAGE)

    approved_at = timezone.now()
    try:
        updated = (
            Contribution.objects
            .filter(pk=contribution.pk, status=ContributionStatus.PENDING)
            .update(status=ContributionStatus.APPROVED, approved_at=approved_at)
        )
        if not updated:
            current = Contribution.objects.filter(pk=contribution.pk).first()
    except DatabaseError as e:
        logger.exception("Failed to approve contribution %s", contribution.pk)
        raise StorageError(f"Failed to approve contribution: {e}")

    if not updated:
        if current is None:
            raise ContributionNotFoundError("Contribution not found or already deleted.")
        if current.is_approved:
            return current, False
        raise InvalidStateError()

    contribution.status = ContributionStatus.APPROVED
    contribution.approved_at = approved_at
    logger.info("User %s approved contribution %s", caller_id, contribution.pk)
    return contribution, True


def delete_contribution(*, contribution_id, user) -> None:
    """
    Delete a contribution in any state (trip owner only).

    Raises:
        UnauthenticatedError: If there is no signed-in caller
        ContributionNotFoundError: If it doesn't exist or was deleted meanwhile
        ForbiddenError: If the caller does not own the contribution's trip
        StorageError: If the delete fails
    """
    caller_id = require_authenticated(user)
    contribution = _get_contribution(contribution_id)
    ensure_trip_owner(user=user, trip=contribution.trip, message=NOT_TRIP_OWNER_MESSAGE)

    try:
        deleted, _ = Contribution.objects.filter(pk=contribution.pk).delete()
    except DatabaseError as e:
        logger.exception("Failed to delete contribution %s", contribution.pk)
        raise StorageError(f"Failed to delete contribution: {e}")

    if not deleted:
        raise ContributionNotFoundError("Contribution not found or already deleted.")

    logger.info("User %s deleted contribution %s", caller_id, contribution.pk)
