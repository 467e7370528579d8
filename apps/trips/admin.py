from django.contrib import admin
from django.db.models import Count, Q
from django.utils import timezone

from .models import Trip, Contribution, ContributionStatus


class ContributionInline(admin.TabularInline):
    """Inline admin for a trip's contributions."""
    model = Contribution
    extra = 0
    fields = ['username', 'amount', 'status', 'screenshot_url', 'created_at', 'approved_at']
    readonly_fields = ['created_at', 'approved_at']


@admin.register(Trip)
class TripAdmin(admin.ModelAdmin):
    """Admin interface for trips."""

    list_display = [
        'name',
        'owner_email',
        'goal_amount',
        'contribution_count',
        'pending_count',
        'created_at',
    ]
    list_filter = ['created_at']
    search_fields = ['name', 'owner_email', 'upi_id']
    readonly_fields = ['id', 'owner', 'created_at']
    date_hierarchy = 'created_at'
    inlines = [ContributionInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('id', 'name', 'description', 'goal_amount')
        }),
        ('Owner', {
            'fields': ('owner', 'owner_email')
        }),
        ('Payment Details', {
            'fields': ('upi_id', 'qr_code_image_url')
        }),
        ('Timestamps', {
            'fields': ('created_at',),
            'classes': ('collapse',),
        }),
    )

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.annotate(
            contribution_count=Count('contributions'),
            pending_count=Count(
                'contributions',
                filter=Q(contributions__status=ContributionStatus.PENDING)
            ),
        )

    def contribution_count(self, obj):
        return obj.contribution_count
    contribution_count.short_description = 'Contributions'
    contribution_count.admin_order_field = 'contribution_count'

    def pending_count(self, obj):
        return obj.pending_count
    pending_count.short_description = 'Pending'
    pending_count.admin_order_field = 'pending_count'


@admin.register(Contribution)
class ContributionAdmin(admin.ModelAdmin):
    """Admin interface for contribution claims."""

    list_display = ['username', 'trip', 'amount', 'status', 'created_at', 'approved_at']
    list_filter = ['status', 'created_at']
    search_fields = ['username', 'trip__name']
    readonly_fields = ['id', 'trip', 'created_at', 'approved_at']
    list_select_related = ['trip']

    actions = ['approve_selected']

    @admin.action(description='Approve selected pending contributions')
    def approve_selected(self, request, queryset):
        count = queryset.filter(status=ContributionStatus.PENDING).update(
            status=ContributionStatus.APPROVED,
            approved_at=timezone.now(),
        )
        self.message_user(request, f'Approved {count} contribution(s).')
