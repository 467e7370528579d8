from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from .models import Trip, Contribution
from .services import authorize


# =============================================================================
# Input Serializers
# =============================================================================

class TripCreateSerializer(serializers.Serializer):
    """
    Multipart form for creating a trip.

    Field rules are enforced by the service layer so that API and service
    callers get the same ``{field: [messages]}`` errors.
    """

    name = serializers.CharField(help_text="3-100 characters")
    description = serializers.CharField(required=False, allow_blank=True, help_text="Up to 500 characters")
    goal_amount = serializers.CharField(required=False, allow_blank=True, help_text="Positive number")
    upi_id = serializers.CharField(required=False, allow_blank=True, help_text="Up to 100 characters")
    qr_code_image = serializers.FileField(required=False, help_text="JPG, PNG or WEBP, up to 2MB")


class ContributionSubmitSerializer(serializers.Serializer):
    """Multipart form for submitting a contribution claim."""

    trip_id = serializers.CharField()
    username = serializers.CharField(help_text="1-50 characters")
    amount = serializers.CharField(help_text="Greater than 0, at most 100000")
    screenshot = serializers.FileField(help_text="JPG, PNG or WEBP, up to 5MB")


class RecentTripsQuerySerializer(serializers.Serializer):
    """
    Validate query parameters for recent trips.

    Query Parameters:
        limit (int): Maximum number of trips to return
    """

    limit = serializers.IntegerField(required=False, min_value=1, max_value=100)

    def validate_limit(self, value):
        return value or settings.TRIPS_RECENT_LIMIT


class UPIQRQuerySerializer(serializers.Serializer):
    """
    Validate query parameters for the UPI QR code.

    Query Parameters:
        amount (decimal): Optional amount to prefill
    """

    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal('0.01'),
        required=False
    )


# =============================================================================
# Output Serializers
# =============================================================================

class TripSerializer(serializers.ModelSerializer):
    """Main serializer for trips."""

    owner_id = serializers.UUIDField(read_only=True)
    is_owner = serializers.SerializerMethodField()
    has_payment_details = serializers.BooleanField(read_only=True)

    class Meta:
        model = Trip
        fields = [
            'id',
            'owner_id',
            'owner_email',
            'name',
            'description',
            'goal_amount',
            'upi_id',
            'qr_code_image_url',
            'has_payment_details',
            'is_owner',
            'created_at',
        ]
        read_only_fields = fields

    def get_is_owner(self, obj):
        """Whether the requesting user owns this trip."""
        request = self.context.get('request')
        if request and request.user.is_authenticated:
            return authorize(caller_id=request.user.pk, owner_id=obj.owner_id)
        return False


class ContributionSerializer(serializers.ModelSerializer):
    """Serializer for contribution claims."""

    trip_id = serializers.UUIDField(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Contribution
        fields = [
            'id',
            'trip_id',
            'username',
            'amount',
            'screenshot_url',
            'status',
            'status_display',
            'created_at',
            'approved_at',
        ]
        read_only_fields = fields


class ContributorTotalSerializer(serializers.Serializer):
    username = serializers.CharField()
    total = serializers.DecimalField(max_digits=14, decimal_places=2)


class TripStatsSerializer(serializers.Serializer):
    """Collection statistics computed from approved contributions."""

    trip_id = serializers.UUIDField(allow_null=True)
    trip_name = serializers.CharField(allow_null=True)
    goal_amount = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    approved_count = serializers.IntegerField()
    pending_count = serializers.IntegerField()
    progress_percent = serializers.DecimalField(max_digits=4, decimal_places=1, allow_null=True)
    contributions_by_user = ContributorTotalSerializer(many=True)


# Response serializers for API documentation
class MessageResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    message = serializers.CharField()


class ErrorResponseSerializer(MessageResponseSerializer):
    errors = serializers.DictField(
        child=serializers.ListField(child=serializers.CharField()),
        required=False
    )


class TripCreatedResponseSerializer(MessageResponseSerializer):
    trip = TripSerializer()


class ContributionResponseSerializer(MessageResponseSerializer):
    contribution = ContributionSerializer()


class ResetResponseSerializer(MessageResponseSerializer):
    removed_count = serializers.IntegerField()
