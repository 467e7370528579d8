"""
Domain exceptions for trips app.

These exceptions represent business rule violations and failures of the
collaborators (database, media storage). Views catch them and turn them
into ``{"success": false, "message": ...}`` responses, using
``status_code`` as the HTTP status.

Exception Hierarchy:
    TripsServiceError (base)
    ├── UnauthenticatedError
    ├── ForbiddenError
    ├── TripNotFoundError
    ├── ContributionNotFoundError
    ├── ValidationFailedError
    │   └── InvalidTripError
    ├── UploadFailedError
    ├── InvalidStateError
    └── StorageError
        └── DeleteFailedError
"""


class TripsServiceError(Exception):
    """Base exception for all trips service errors."""

    status_code = 400
    default_message = 'Trip operation failed.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthenticatedError(TripsServiceError):
    """Raised when an operation needs a signed-in caller and there is none."""

    status_code = 401
    default_message = 'Unauthorized. Please log in.'


class ForbiddenError(TripsServiceError):
    """Raised when the caller is signed in but does not own the trip."""

    status_code = 403
    default_message = 'Forbidden. You do not own this trip.'


class TripNotFoundError(TripsServiceError):
    status_code = 404
    default_message = 'Trip not found.'


class ContributionNotFoundError(TripsServiceError):
    status_code = 404
    default_message = 'Contribution not found.'


class ValidationFailedError(TripsServiceError):
    """
    Raised when submitted fields fail validation.

    ``errors`` maps each offending field name to a list of messages, e.g.::

        {'amount': ['Amount seems too high.'], 'screenshot': ['Screenshot is required.']}
    """

    status_code = 400
    default_message = 'Invalid form data.'

    def __init__(self, errors, message=None):
        self.errors = {field: list(messages) for field, messages in errors.items()}
        super().__init__(message)


class InvalidTripError(ValidationFailedError):
    """Raised when a contribution targets a malformed or unknown trip id."""

    default_message = 'Invalid Trip ID'

    def __init__(self, message=None):
        super().__init__({'trip_id': [message or self.default_message]}, message)


class UploadFailedError(TripsServiceError):
    """Raised when the media storage rejects an upload."""

    status_code = 502
    default_message = 'Failed to upload image.'


class InvalidStateError(TripsServiceError):
    """Raised when a contribution is not in a state that allows the transition."""

    status_code = 409
    default_message = 'Contribution not found or not in pending state.'


class StorageError(TripsServiceError):
    """Raised when the database fails underneath an operation."""

    status_code = 500
    default_message = 'Storage operation failed.'


class DeleteFailedError(StorageError):
    """Raised when a trip's contributions could not be removed, so the trip is kept."""

    default_message = 'Failed to delete trip contributions; trip was not deleted.'
