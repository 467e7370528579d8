"""Trip owner sign-in."""

import logging

from django.db import transaction
from django.contrib.auth import get_user_model
from django.utils import timezone

from .exceptions import InvalidCredentialsError, InactiveAccountError

logger = logging.getLogger(__name__)

User = get_user_model()


@transaction.atomic
def authenticate_user(*, email: str, password: str) -> User:
    """
    Check an owner's email and password and stamp ``last_login``.

    The email match is case-insensitive. The row is locked while
    ``last_login`` is written so parallel logins don't interleave.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password (same message for both)
        InactiveAccountError: If the account has been deactivated
    """
    user = (
        User.objects
        .select_for_update()
        .filter(email__iexact=(email or '').strip())
        .first()
    )
    if user is None or not user.check_password(password):
        logger.warning("Failed login attempt for %s", email)
        raise InvalidCredentialsError("Invalid email or password")

    if not user.is_active:
        raise InactiveAccountError("Account is deactivated")

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])

    logger.info("User %s signed in", user.pk)
    return user
