from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator, MinLengthValidator
from decimal import Decimal
import uuid


class ContributionStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    APPROVED = 'approved', 'Approved'


class Trip(models.Model):
    """A named group savings goal with optional payment details."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Sole authorization anchor for the trip and its contributions
    owner = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='trips',
        editable=False,
    )
    owner_email = models.EmailField(max_length=255, blank=True)

    name = models.CharField(max_length=100, validators=[MinLengthValidator(3)])
    description = models.TextField(max_length=500, blank=True)
    goal_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.01'))]
    )

    # Payment collection details
    upi_id = models.CharField(max_length=100, blank=True)
    qr_code_image_url = models.CharField(max_length=500, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'trips'
        indexes = [
            models.Index(fields=['owner', 'created_at']),
            models.Index(fields=['created_at']),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    @property
    def has_payment_details(self):
        return bool(self.upi_id or self.qr_code_image_url)


class ContributionQuerySet(models.QuerySet):

    def approved(self):
        return self.filter(status=ContributionStatus.APPROVED)

    def for_trip(self, trip_id):
        return self.filter(trip_id=trip_id)

    def pending_first(self):
        """Pending claims before approved ones, newest first within each status."""
        return self.annotate(
            status_rank=models.Case(
                models.When(status=ContributionStatus.PENDING, then=models.Value(0)),
                default=models.Value(1),
                output_field=models.IntegerField(),
            )
        ).order_by('status_rank', '-created_at')


class Contribution(models.Model):
    """A claimed payment toward a trip, backed by a screenshot."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    trip = models.ForeignKey(
        Trip,
        on_delete=models.CASCADE,
        related_name='contributions',
        editable=False,
    )

    # Free-text contributor name, not tied to an account
    username = models.CharField(max_length=50)
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[
            MinValueValidator(Decimal('0.01')),
            MaxValueValidator(Decimal('100000')),
        ]
    )
    screenshot_url = models.CharField(max_length=500)

    status = models.CharField(
        max_length=20,
        choices=ContributionStatus.choices,
        default=ContributionStatus.PENDING
    )

    created_at = models.DateTimeField(auto_now_add=True)
    approved_at = models.DateTimeField(null=True, blank=True)

    objects = ContributionQuerySet.as_manager()

    class Meta:
        db_table = 'contributions'
        indexes = [
            models.Index(fields=['trip', 'status']),
            models.Index(fields=['trip', 'created_at']),
        ]
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(status=ContributionStatus.APPROVED, approved_at__isnull=False) |
                    models.Q(status=ContributionStatus.PENDING, approved_at__isnull=True)
                ),
                name='contribution_approved_at_matches_status',
            ),
        ]

    def __str__(self):
        return f"{self.username} - {self.amount} ({self.status})"

    @property
    def is_approved(self):
        return self.status == ContributionStatus.APPROVED
