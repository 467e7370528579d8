from django.http import HttpResponse
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiTypes

from .serializers import (
    TripSerializer,
    TripCreateSerializer,
    TripStatsSerializer,
    ContributionSerializer,
    ContributionSubmitSerializer,
    RecentTripsQuerySerializer,
    UPIQRQuerySerializer,
    MessageResponseSerializer,
    ErrorResponseSerializer,
    TripCreatedResponseSerializer,
    ContributionResponseSerializer,
    ResetResponseSerializer,
)
from .services import (
    create_trip,
    list_trips,
    list_recent_public_trips,
    get_trip_by_id,
    delete_trip,
    reset_trip,
    submit_contribution,
    list_contributions,
    approve_contribution,
    delete_contribution,
    compute_stats,
    UPIPaymentLinkGenerator,
    # Exceptions
    TripsServiceError,
    TripNotFoundError,
    ValidationFailedError,
)


def error_response(error):
    """Turn a service exception into the ``{success, message, errors}`` envelope."""
    body = {'success': False, 'message': error.message}
    if isinstance(error, ValidationFailedError):
        body['errors'] = error.errors
    return Response(body, status=error.status_code)


class TripViewSet(viewsets.ViewSet):
    """
    ViewSet for trips.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Own trips when signed in, every trip otherwise
    create: Create a new trip (signed in)
    retrieve: Get a specific trip
    destroy: Delete a trip and its contributions (owner only)
    """

    permission_classes = [AllowAny]

    @extend_schema(
        responses={200: TripSerializer(many=True)},
        tags=['trips'],
    )
    def list(self, request):
        """List trips, newest first."""
        try:
            trips = list_trips(user=request.user)
        except TripsServiceError as e:
            return error_response(e)

        serializer = TripSerializer(trips, many=True, context={'request': request})
        return Response(serializer.data)

    @extend_schema(
        request={'multipart/form-data': TripCreateSerializer},
        responses={
            201: TripCreatedResponseSerializer,
            400: ErrorResponseSerializer,
            401: ErrorResponseSerializer,
            502: ErrorResponseSerializer,
        },
        tags=['trips'],
    )
    def create(self, request):
        """Create a new trip, optionally with a payment QR code image."""
        try:
            trip = create_trip(
                user=request.user,
                name=request.data.get('name'),
                description=request.data.get('description'),
                goal_amount=request.data.get('goal_amount'),
                upi_id=request.data.get('upi_id'),
                qr_code_image=request.FILES.get('qr_code_image'),
            )
        except TripsServiceError as e:
            return error_response(e)

        return Response({
            'success': True,
            'message': f"Trip '{trip.name}' created successfully!",
            'trip': TripSerializer(trip, context={'request': request}).data,
        }, status=status.HTTP_201_CREATED)

    @extend_schema(
        responses={200: TripSerializer, 404: ErrorResponseSerializer},
        tags=['trips'],
    )
    def retrieve(self, request, pk=None):
        """Get a trip by id."""
        try:
            trip = get_trip_by_id(trip_id=pk)
        except TripsServiceError as e:
            return error_response(e)

        return Response(TripSerializer(trip, context={'request': request}).data)

    @extend_schema(
        responses={
            200: MessageResponseSerializer,
            401: ErrorResponseSerializer,
            403: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
            500: ErrorResponseSerializer,
        },
        tags=['trips'],
    )
    def destroy(self, request, pk=None):
        """Delete a trip together with all of its contributions."""
        try:
            name = delete_trip(trip_id=pk, user=request.user)
        except TripsServiceError as e:
            return error_response(e)

        return Response({
            'success': True,
            'message': f"Trip '{name}' and all its contributions deleted successfully!",
        })

    @extend_schema(
        request=None,
        responses={
            200: ResetResponseSerializer,
            401: ErrorResponseSerializer,
            403: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
        },
        tags=['trips'],
    )
    @action(detail=True, methods=['post'])
    def reset(self, request, pk=None):
        """Remove every contribution but keep the trip."""
        try:
            trip, removed = reset_trip(trip_id=pk, user=request.user)
        except TripsServiceError as e:
            return error_response(e)

        return Response({
            'success': True,
            'message': f"Trip '{trip.name}' has been reset. All contributions deleted.",
            'removed_count': removed,
        })

    @extend_schema(
        responses={200: TripStatsSerializer},
        description="Totals and per-contributor ranking. Unknown trips yield zeroed stats.",
        tags=['trips'],
    )
    @action(detail=True, methods=['get'])
    def stats(self, request, pk=None):
        """Get collection statistics for a trip."""
        try:
            stats = compute_stats(trip_id=pk)
        except TripsServiceError as e:
            return error_response(e)

        return Response(TripStatsSerializer(stats).data)

    @extend_schema(
        responses={200: ContributionSerializer(many=True)},
        tags=['contributions'],
    )
    @action(detail=True, methods=['get'])
    def contributions(self, request, pk=None):
        """List a trip's contributions, pending first."""
        try:
            contributions = list_contributions(trip_id=pk)
        except TripsServiceError as e:
            return error_response(e)

        return Response(ContributionSerializer(contributions, many=True).data)

    @extend_schema(
        parameters=[
            OpenApiParameter('amount', OpenApiTypes.DECIMAL, description='Amount to prefill'),
        ],
        responses={
            (200, 'image/png'): OpenApiTypes.BINARY,
            400: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
        },
        description="QR code for paying the trip owner through any UPI app.",
        tags=['trips'],
    )
    @action(detail=True, methods=['get'], url_path='upi-qr')
    def upi_qr(self, request, pk=None):
        """Render the trip's UPI payment link as a PNG QR code."""
        query = UPIQRQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response({
                'success': False,
                'message': 'Invalid query parameters.',
                'errors': query.errors,
            }, status=status.HTTP_400_BAD_REQUEST)

        try:
            trip = get_trip_by_id(trip_id=pk)
            if not trip.upi_id:
                raise TripNotFoundError('This trip has no UPI ID.')
            uri, png = UPIPaymentLinkGenerator.generate_for_trip(
                trip, amount=query.validated_data.get('amount')
            )
        except TripsServiceError as e:
            return error_response(e)

        response = HttpResponse(png, content_type='image/png')
        response['X-UPI-URI'] = uri
        return response

    @extend_schema(
        parameters=[RecentTripsQuerySerializer],
        responses={200: TripSerializer(many=True)},
        tags=['trips'],
    )
    @action(detail=False, methods=['get'])
    def recent(self, request):
        """Newest trips across all owners."""
        query = RecentTripsQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response({
                'success': False,
                'message': 'Invalid query parameters.',
                'errors': query.errors,
            }, status=status.HTTP_400_BAD_REQUEST)

        try:
            trips = list_recent_public_trips(limit=query.validated_data.get('limit'))
        except TripsServiceError as e:
            return error_response(e)

        serializer = TripSerializer(trips, many=True, context={'request': request})
        return Response(serializer.data)


class ContributionViewSet(viewsets.ViewSet):
    """
    ViewSet for contribution claims.

    create: Submit a claim with a payment screenshot (no sign-in)
    destroy: Delete a claim (trip owner only)
    approve: Approve a pending claim (trip owner only)
    """

    permission_classes = [AllowAny]

    @extend_schema(
        request={'multipart/form-data': ContributionSubmitSerializer},
        responses={
            201: ContributionResponseSerializer,
            400: ErrorResponseSerializer,
            502: ErrorResponseSerializer,
        },
        tags=['contributions'],
    )
    def create(self, request):
        """Submit a contribution claim."""
        try:
            contribution = submit_contribution(
                trip_id=request.data.get('trip_id'),
                username=request.data.get('username'),
                amount=request.data.get('amount'),
                screenshot=request.FILES.get('screenshot'),
            )
        except TripsServiceError as e:
            return error_response(e)

        return Response({
            'success': True,
            'message': 'Contribution submitted successfully!',
            'contribution': ContributionSerializer(contribution).data,
        }, status=status.HTTP_201_CREATED)

    @extend_schema(
        responses={
            200: MessageResponseSerializer,
            401: ErrorResponseSerializer,
            403: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
        },
        tags=['contributions'],
    )
    def destroy(self, request, pk=None):
        """Delete a contribution in any state."""
        try:
            delete_contribution(contribution_id=pk, user=request.user)
        except TripsServiceError as e:
            return error_response(e)

        return Response({
            'success': True,
            'message': 'Contribution deleted successfully!',
        })

    @extend_schema(
        request=None,
        responses={
            200: ContributionResponseSerializer,
            401: ErrorResponseSerializer,
            403: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
            409: ErrorResponseSerializer,
        },
        tags=['contributions'],
    )
    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        """Approve a pending contribution. Approving twice is harmless."""
        try:
            contribution, changed = approve_contribution(contribution_id=pk, user=request.user)
        except TripsServiceError as e:
            return error_response(e)

        message = (
            'Contribution approved successfully!' if changed
            else 'Contribution already approved.'
        )
        return Response({
            'success': True,
            'message': message,
            'contribution': ContributionSerializer(contribution).data,
        })
