"""
Ownership guard for trip mutations.

The owner of a trip is the only caller allowed to delete or reset it and to
approve or delete its contributions. Reads never go through this guard.
"""

import logging

from .exceptions import UnauthenticatedError, ForbiddenError

logger = logging.getLogger(__name__)


def authorize(*, caller_id, owner_id) -> bool:
    """Allow only a present caller whose id equals the resource owner's id."""
    if caller_id is None:
        return False
    return str(caller_id) == str(owner_id)


def get_caller_id(user):
    """Return the id of an authenticated user, or None for anonymous callers."""
    if user is None or not getattr(user, 'is_authenticated', False):
        return None
    return user.pk


def require_authenticated(user):
    """
    Return the caller's id or raise if there is no signed-in caller.

    Raises:
        UnauthenticatedError: If ``user`` is None or anonymous
    """
    caller_id = get_caller_id(user)
    if caller_id is None:
        raise UnauthenticatedError()
    return caller_id


def ensure_trip_owner(*, user, trip, message=None) -> None:
    """
    Raise unless ``user`` owns ``trip``.

    Raises:
        UnauthenticatedError: If there is no signed-in caller
        ForbiddenError: If the caller is not the trip owner
    """
    caller_id = require_authenticated(user)
    if not authorize(caller_id=caller_id, owner_id=trip.owner_id):
        logger.warning("User %s denied on trip %s", caller_id, trip.pk)
        raise ForbiddenError(message)
