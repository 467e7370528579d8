"""User registration service."""

import logging

from django.db import transaction, IntegrityError
from django.contrib.auth import get_user_model

from .exceptions import UserRegistrationError

User = get_user_model()
logger = logging.getLogger(__name__)


@transaction.atomic
def register_user(
    *,
    email: str,
    password: str,
    display_name: str = "",
    avatar_url: str = ""
) -> User:
    """
    Register a new trip owner account.

    Args:
        email: User's email address (login name, shown on owned trips)
        password: User's password (will be hashed)
        display_name: Optional display name
        avatar_url: Optional avatar image URL

    Returns:
        Created User instance

    Raises:
        UserRegistrationError: If the email is taken or the insert fails
    """
    if User.objects.filter(email__iexact=email).exists():
        raise UserRegistrationError("An account with this email already exists")

    try:
        user = User.objects.create_user(
            email=email,
            password=password,
            display_name=display_name,
            avatar_url=avatar_url,
        )
    except IntegrityError as e:
        raise UserRegistrationError(f"Registration failed: {str(e)}")

    logger.info("Registered user %s", user.id)
    return user
