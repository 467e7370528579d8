from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'trips'

router = DefaultRouter()
router.register(r'trips', views.TripViewSet, basename='trip')
router.register(r'contributions', views.ContributionViewSet, basename='contribution')

urlpatterns = [
    # Trip routes
    # GET    /api/trips/                      - Own trips (signed in) or all trips
    # POST   /api/trips/                      - Create trip
    # GET    /api/trips/recent/               - Newest trips of all owners
    # GET    /api/trips/{id}/                 - Get trip
    # DELETE /api/trips/{id}/                 - Delete trip and contributions (owner)
    # POST   /api/trips/{id}/reset/           - Delete all contributions (owner)
    # GET    /api/trips/{id}/stats/           - Collection statistics
    # GET    /api/trips/{id}/contributions/   - Contributions, pending first
    # GET    /api/trips/{id}/upi-qr/          - UPI payment QR code (PNG)

    # Contribution routes
    # POST   /api/contributions/              - Submit contribution claim
    # POST   /api/contributions/{id}/approve/ - Approve claim (trip owner)
    # DELETE /api/contributions/{id}/         - Delete claim (trip owner)

    path('', include(router.urls)),
]
