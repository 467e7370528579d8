"""
Field validation for trip and contribution forms.

Each ``clean_*`` function checks every field, collects all problems into a
``{field: [messages]}`` mapping and raises ``ValidationFailedError`` once,
so callers can show every error of a form at the same time. On success the
cleaned values are returned as a dict. Nothing here touches the database or
the media storage.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from uuid import UUID

from django.conf import settings

from .exceptions import ValidationFailedError

TWO_PLACES = Decimal('0.01')
MAX_GOAL_AMOUNT = Decimal('9999999999.99')


def parse_uuid(value):
    """Return ``value`` as a UUID, or None when it is not a well-formed id."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def is_empty_upload(file) -> bool:
    """Missing files and zero-length files are both treated as absent."""
    return file is None or not getattr(file, 'size', 0)


def _format_megabytes(num_bytes):
    megabytes = num_bytes / (1024 * 1024)
    if megabytes == int(megabytes):
        return f"{int(megabytes)}MB"
    return f"{megabytes:.1f}MB"


def _to_decimal(value):
    """Coerce form input to a two-place Decimal; None when it is not a finite number."""
    if isinstance(value, float):
        value = repr(value)
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    try:
        return number.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # Too many digits to hold two places; callers reject it on range
        return number


def _check_image(file, *, field, label, max_bytes, errors):
    if file.size > max_bytes:
        errors.setdefault(field, []).append(
            f"{label} must be less than {_format_megabytes(max_bytes)}."
        )
    content_type = getattr(file, 'content_type', None)
    if content_type not in settings.TRIPS_ALLOWED_IMAGE_TYPES:
        errors.setdefault(field, []).append("Only JPG, PNG, WEBP images are allowed.")


def clean_trip_fields(
    *,
    name,
    description=None,
    goal_amount=None,
    upi_id=None,
    qr_code_image=None
) -> dict:
    """
    Validate the create-trip form.

    Returns:
        dict with ``name``, ``description``, ``goal_amount`` (Decimal or None),
        ``upi_id`` and ``qr_code_image`` (the file, or None when absent/empty)

    Raises:
        ValidationFailedError: With every offending field
    """
    errors = {}

    name = (name or '').strip()
    if len(name) < 3:
        errors['name'] = ["Trip name must be at least 3 characters."]
    elif len(name) > 100:
        errors['name'] = ["Trip name must be less than 100 characters."]

    description = description or ''
    if len(description) > 500:
        errors['description'] = ["Description must be less than 500 characters."]

    cleaned_goal = None
    if goal_amount is not None and str(goal_amount).strip() != '':
        cleaned_goal = _to_decimal(goal_amount)
        if cleaned_goal is None:
            errors['goal_amount'] = ["Goal amount must be a number."]
        elif cleaned_goal <= 0:
            errors['goal_amount'] = ["Goal amount must be positive."]
        elif cleaned_goal > MAX_GOAL_AMOUNT:
            errors['goal_amount'] = ["Goal amount is too large."]

    upi_id = (upi_id or '').strip()
    if len(upi_id) > 100:
        errors['upi_id'] = ["UPI ID must be less than 100 characters."]

    if is_empty_upload(qr_code_image):
        qr_code_image = None
    else:
        _check_image(
            qr_code_image,
            field='qr_code_image',
            label='QR Code image',
            max_bytes=settings.TRIPS_QR_IMAGE_MAX_BYTES,
            errors=errors,
        )

    if errors:
        raise ValidationFailedError(errors, "Invalid trip data.")

    return {
        'name': name,
        'description': description,
        'goal_amount': cleaned_goal,
        'upi_id': upi_id,
        'qr_code_image': qr_code_image,
    }


def clean_contribution_fields(*, username, amount, screenshot) -> dict:
    """
    Validate the contribution form (everything except the trip reference).

    Returns:
        dict with ``username``, ``amount`` (Decimal) and ``screenshot``

    Raises:
        ValidationFailedError: With every offending field
    """
    errors = {}
    max_amount = Decimal(str(settings.TRIPS_MAX_CONTRIBUTION_AMOUNT))

    username = (username or '').strip()
    if not username:
        errors['username'] = ["Username is required."]
    elif len(username) > 50:
        errors['username'] = ["Username must be less than 50 characters."]

    cleaned_amount = None
    if amount is None or str(amount).strip() == '':
        errors['amount'] = ["Amount is required."]
    else:
        cleaned_amount = _to_decimal(amount)
        if cleaned_amount is None:
            errors['amount'] = ["Amount must be a number."]
        elif cleaned_amount <= 0:
            errors['amount'] = ["Amount must be positive."]
        elif cleaned_amount > max_amount:
            errors['amount'] = ["Amount seems too high."]

    if is_empty_upload(screenshot):
        errors['screenshot'] = ["Screenshot is required."]
    else:
        _check_image(
            screenshot,
            field='screenshot',
            label='Screenshot',
            max_bytes=settings.TRIPS_SCREENSHOT_MAX_BYTES,
            errors=errors,
        )

    if errors:
        raise ValidationFailedError(errors)

    return {
        'username': username,
        'amount': cleaned_amount,
        'screenshot': screenshot,
    }
