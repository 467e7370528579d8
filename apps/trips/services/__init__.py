"""
Trips app services layer.

Services contain the business rules for trips and contributions: field
validation, the ownership guard, uploads, and statistics. Views only
translate between HTTP and these functions.
"""

from .exceptions import (
    TripsServiceError,
    UnauthenticatedError,
    ForbiddenError,
    TripNotFoundError,
    ContributionNotFoundError,
    ValidationFailedError,
    InvalidTripError,
    UploadFailedError,
    InvalidStateError,
    StorageError,
    DeleteFailedError,
)

from .authorization import (
    authorize,
    ensure_trip_owner,
)

from .trip_lifecycle import (
    create_trip,
    list_trips,
    list_recent_public_trips,
    get_trip,
    get_trip_by_id,
    delete_trip,
    reset_trip,
)

from .contribution_lifecycle import (
    submit_contribution,
    list_contributions,
    approve_contribution,
    delete_contribution,
)

from .statistics import (
    compute_stats,
)

from .payment_links import UPIPaymentLinkGenerator


__all__ = [
    # Exceptions
    'TripsServiceError',
    'UnauthenticatedError',
    'ForbiddenError',
    'TripNotFoundError',
    'ContributionNotFoundError',
    'ValidationFailedError',
    'InvalidTripError',
    'UploadFailedError',
    'InvalidStateError',
    'StorageError',
    'DeleteFailedError',

    # Authorization
    'authorize',
    'ensure_trip_owner',

    # Trip Lifecycle
    'create_trip',
    'list_trips',
    'list_recent_public_trips',
    'get_trip',
    'get_trip_by_id',
    'delete_trip',
    'reset_trip',

    # Contribution Lifecycle
    'submit_contribution',
    'list_contributions',
    'approve_contribution',
    'delete_contribution',

    # Statistics
    'compute_stats',

    # Payment links
    'UPIPaymentLinkGenerator',
]
