from rest_framework import serializers
from .models import Campaign, Order, OrderItem


class CampaignMinimalSerializer(serializers.ModelSerializer):
    """Minimal campaign serializer for nested representation."""

    class Meta:
        model = Campaign
        fields = ['id', 'name', 'status', 'shipping_cost']
        read_only_fields = fields


class OrderItemSerializer(serializers.ModelSerializer):
    """Serializer for order items."""

    product_name = serializers.CharField(source='product.name', read_only=True)
    product_weight = serializers.DecimalField(
        source='product.weight', max_digits=10, decimal_places=3, read_only=True
    )

    class Meta:
        model = OrderItem
        fields = [
            'id',
            'product',
            'product_name',
            'product_weight',
            'quantity',
            'unit_price',
            'subtotal',
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Serializer for orders with their items."""

    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id',
            'campaign',
            'user',
            'customer_name',
            'subtotal',
            'shipping_fee',
            'total',
            'is_paid',
            'items',
            'created_at',
        ]
        read_only_fields = fields


class ShippingAllocationSerializer(serializers.Serializer):
    """One order's share of the campaign shipping cost."""

    order_id = serializers.UUIDField()
    weight = serializers.DecimalField(max_digits=14, decimal_places=3)
    shipping_fee = serializers.DecimalField(max_digits=10, decimal_places=2)
    total = serializers.DecimalField(max_digits=10, decimal_places=2)


class ShippingDistributionSerializer(serializers.Serializer):
    """Serializer for a shipping distribution result."""

    campaign = CampaignMinimalSerializer()
    shipping_cost = serializers.DecimalField(max_digits=10, decimal_places=2)
    total_weight = serializers.DecimalField(max_digits=14, decimal_places=3)
    distributed_amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    orders_updated = serializers.IntegerField()
    allocations = ShippingAllocationSerializer(many=True)


class ConsolidatedGroupSerializer(serializers.Serializer):
    """One user's merged order group."""

    user_id = serializers.IntegerField()
    surviving_order_id = serializers.UUIDField()
    removed_order_ids = serializers.ListField(child=serializers.UUIDField())
    subtotal = serializers.DecimalField(max_digits=10, decimal_places=2)


class ConsolidationSerializer(serializers.Serializer):
    """Serializer for an order consolidation result."""

    campaign = CampaignMinimalSerializer()
    merged_groups = serializers.IntegerField()
    surviving_order_ids = serializers.ListField(child=serializers.UUIDField())
    removed_order_ids = serializers.ListField(child=serializers.UUIDField())
    merged_items = serializers.IntegerField()
    groups = ConsolidatedGroupSerializer(many=True)


class IntegrityReportSerializer(serializers.Serializer):
    """Serializer for a campaign integrity report."""

    campaign_id = serializers.UUIDField()
    campaign_name = serializers.CharField()
    order_count = serializers.IntegerField()
    shipping_cost = serializers.DecimalField(max_digits=10, decimal_places=2)
    sum_shipping_fees = serializers.DecimalField(max_digits=12, decimal_places=2)
    sum_subtotals = serializers.DecimalField(max_digits=12, decimal_places=2)
    sum_totals = serializers.DecimalField(max_digits=12, decimal_places=2)
    expected_total = serializers.DecimalField(max_digits=12, decimal_places=2)
    sum_paid = serializers.DecimalField(max_digits=12, decimal_places=2)
    sum_unpaid = serializers.DecimalField(max_digits=12, decimal_places=2)
    shipping_match = serializers.BooleanField()
    total_match = serializers.BooleanField()
    paid_unpaid_match = serializers.BooleanField()
    passed = serializers.BooleanField()


class CampaignFailureSerializer(serializers.Serializer):
    campaign_id = serializers.UUIDField()
    kind = serializers.CharField()
    error = serializers.CharField()


class IntegritySummarySerializer(serializers.Serializer):
    """Serializer for a batch integrity run over many campaigns."""

    total = serializers.IntegerField()
    succeeded = serializers.IntegerField()
    failed = serializers.IntegerField()
    reports = IntegrityReportSerializer(many=True)
    failures = CampaignFailureSerializer(many=True)
