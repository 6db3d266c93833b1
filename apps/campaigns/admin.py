# ==========================================
# apps/campaigns/admin.py
# ==========================================

from django.contrib import admin, messages
from django.utils.html import format_html
from .models import Campaign, Product, Order, OrderItem
from .services import (
    CampaignsServiceError,
    consolidate_campaign,
    distribute_shipping,
    validate_campaign,
)


def _badge(label, bg, fg='white'):
    return format_html(
        '<span style="background: {}; color: {}; padding: 3px 8px; '
        'border-radius: 10px; font-size: 11px;">{}</span>',
        bg, fg, label
    )


class ProductInline(admin.TabularInline):
    """Inline admin for products within a campaign."""
    model = Product
    extra = 0
    fields = ['name', 'price', 'weight']


class OrderItemInline(admin.TabularInline):
    """Inline admin for items within an order."""
    model = OrderItem
    extra = 0
    fields = ['product', 'quantity', 'unit_price', 'subtotal']
    readonly_fields = ['subtotal']


@admin.register(Campaign)
class CampaignAdmin(admin.ModelAdmin):
    """
    Admin interface for Campaigns.

    Provides campaign management including:
    - Campaign listing with shipping cost and order count
    - Inline products
    - Actions for shipping distribution, consolidation and integrity audit
    """

    list_display = [
        'name',
        'status',
        'shipping_cost',
        'get_order_count',
        'created_by',
        'created_at',
    ]

    list_filter = [
        'status',
        'created_at',
    ]

    search_fields = [
        'name',
        'description',
        'created_by__username',
        'created_by__email',
    ]

    readonly_fields = ['created_at', 'updated_at']
    inlines = [ProductInline]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    actions = [
        'redistribute_shipping',
        'consolidate_duplicate_orders',
        'validate_integrity',
    ]

    def get_order_count(self, obj):
        """Display number of orders."""
        return obj.orders.count()
    get_order_count.short_description = 'Orders'

    def _run_per_campaign(self, request, queryset, operation):
        """Run a service per campaign, reporting failures without stopping."""
        results = []
        for campaign in queryset:
            try:
                results.append((campaign, operation(campaign_id=campaign.id)))
            except CampaignsServiceError as e:
                self.message_user(request, f'{campaign.name}: {e}', level=messages.ERROR)
        return results

    @admin.action(description='Redistribute shipping by weight')
    def redistribute_shipping(self, request, queryset):
        """Recompute shipping_fee and total for every order of selected campaigns."""
        results = self._run_per_campaign(request, queryset, distribute_shipping)
        count = sum(result['orders_updated'] for _, result in results)
        self.message_user(request, f'Updated {count} order(s) in {len(results)} campaign(s).')

    @admin.action(description='Merge duplicate orders and redistribute shipping')
    def consolidate_duplicate_orders(self, request, queryset):
        """Merge duplicate orders per user, then redistribute shipping."""
        results = self._run_per_campaign(request, queryset, consolidate_campaign)
        merged = sum(result['merged_groups'] for _, result in results)
        self._run_per_campaign(
            request,
            queryset.filter(id__in=[campaign.id for campaign, _ in results]),
            distribute_shipping,
        )
        self.message_user(request, f'Merged {merged} duplicate order group(s).')

    @admin.action(description='Validate financial integrity')
    def validate_integrity(self, request, queryset):
        """Audit selected campaigns and report failing checks."""
        results = self._run_per_campaign(request, queryset, validate_campaign)
        failed = [campaign.name for campaign, report in results if not report['passed']]
        if failed:
            self.message_user(
                request,
                f'Integrity check failed for: {", ".join(failed)}',
                level=messages.WARNING
            )
        else:
            self.message_user(request, f'All {len(results)} campaign(s) passed.')


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Admin interface for Orders.

    Amounts are read-only: they are derived from items and the campaign's
    shipping distribution.
    """

    list_display = [
        'get_owner',
        'campaign',
        'subtotal',
        'shipping_fee',
        'total',
        'payment_status_badge',
        'created_at',
    ]

    list_filter = [
        'is_paid',
        'campaign',
        'created_at',
    ]

    search_fields = [
        'customer_name',
        'user__username',
        'user__email',
        'campaign__name',
    ]

    readonly_fields = [
        'subtotal',
        'shipping_fee',
        'total',
        'created_at',
        'updated_at',
    ]

    inlines = [OrderItemInline]
    date_hierarchy = 'created_at'
    ordering = ['created_at']

    def get_owner(self, obj):
        """Display customer name or username."""
        if obj.customer_name:
            return obj.customer_name
        return obj.user.get_username() if obj.user else '—'
    get_owner.short_description = 'Customer'

    def payment_status_badge(self, obj):
        """Display payment status as colored badge."""
        if obj.is_paid:
            return _badge('Paid', '#6B8E5E')
        return _badge('Unpaid', '#E5C49A', '#2C1810')
    payment_status_badge.short_description = 'Status'
    payment_status_badge.admin_order_field = 'is_paid'

    def get_queryset(self, request):
        """Optimize query with select_related."""
        qs = super().get_queryset(request)
        return qs.select_related('user', 'campaign')
