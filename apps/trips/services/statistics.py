"""Statistics service - totals and contributor rankings for a trip."""

from decimal import Decimal, ROUND_HALF_UP

from django.db import DatabaseError
from django.db.models import Count, Q, Sum

from apps.trips.models import Trip, Contribution, ContributionStatus
from .exceptions import StorageError
from .validation import parse_uuid


def empty_stats() -> dict:
    """Stats returned for unknown or malformed trips."""
    return {
        'trip_id': None,
        'trip_name': None,
        'goal_amount': None,
        'total_amount': Decimal('0'),
        'approved_count': 0,
        'pending_count': 0,
        'progress_percent': None,
        'contributions_by_user': [],
    }


def calculate_progress(total_amount, goal_amount):
    """
    Percentage of the goal collected, capped at 100 and rounded to one decimal.

    Returns None when the trip has no goal.
    """
    if not goal_amount or goal_amount <= 0:
        return None
    percent = min(Decimal(total_amount) / Decimal(goal_amount) * 100, Decimal('100'))
    return percent.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)


def compute_stats(*, trip_id) -> dict:
    """
    Calculate collection statistics for a trip from its approved contributions.

    Always recomputed from the database. Pending contributions are only
    counted, never summed.

    This operation:
    1. Resolves the trip (unknown or malformed ids yield zeroed stats)
    2. Sums approved amounts and counts approved/pending claims
    3. Groups approved amounts by contributor name
    4. Ranks contributors by total descending, then name ascending

    Args:
        trip_id: Trip id (UUID or string)

    Returns:
        Dictionary with statistics:
        - trip_id: UUID of the trip (None if not found)
        - trip_name: str - Trip name for display
        - goal_amount: Decimal or None
        - total_amount: Decimal - Sum of approved contributions
        - approved_count: int
        - pending_count: int
        - progress_percent: Decimal or None - Share of goal collected (max 100)
        - contributions_by_user: list of {username, total}

    Raises:
        StorageError: If the database query fails

    Example:
        >>> stats = compute_stats(trip_id=trip.id)
        >>> stats['contributions_by_user']
        [{'username': 'alice', 'total': Decimal('125.00')}, {'username': 'bob', 'total': Decimal('50.00')}]
    """
    parsed_id = parse_uuid(trip_id)
    if parsed_id is None:
        return empty_stats()

    try:
        trip = Trip.objects.filter(pk=parsed_id).first()
        if trip is None:
            return empty_stats()

        contributions = Contribution.objects.for_trip(trip.pk)
        totals = contributions.aggregate(
            total=Sum('amount', filter=Q(status=ContributionStatus.APPROVED)),
            approved_count=Count('id', filter=Q(status=ContributionStatus.APPROVED)),
            pending_count=Count('id', filter=Q(status=ContributionStatus.PENDING)),
        )

        # GROUP BY username over approved rows only
        rows = (
            contributions.approved()
            .order_by()
            .values('username')
            .annotate(total=Sum('amount'))
        )
        # Ties sort by code point order whatever the database collation
        contributions_by_user = sorted(
            ({'username': row['username'], 'total': row['total']} for row in rows),
            key=lambda row: (-row['total'], row['username']),
        )
    except DatabaseError as e:
        raise StorageError(f"Failed to compute stats for trip {trip_id}: {e}")

    total_amount = totals['total'] or Decimal('0')

    return {
        'trip_id': trip.pk,
        'trip_name': trip.name,
        'goal_amount': trip.goal_amount,
        'total_amount': total_amount,
        'approved_count': totals['approved_count'],
        'pending_count': totals['pending_count'],
        'progress_percent': calculate_progress(total_amount, trip.goal_amount),
        'contributions_by_user': contributions_by_user,
    }
