from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .models import Campaign, Order
from .serializers import (
    CampaignMinimalSerializer,
    OrderSerializer,
    ShippingDistributionSerializer,
    ConsolidationSerializer,
    IntegrityReportSerializer,
    IntegritySummarySerializer,
)
from .services import (
    distribute_shipping,
    consolidate_campaign,
    validate_campaign,
    run_for_all_campaigns,
    # Exceptions
    NotFoundError,
    InvalidAmountError,
    ConsolidationConflictError,
    PersistenceError,
)


def _error_response(error):
    """Map a campaigns service error to an HTTP response."""
    if isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, InvalidAmountError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, ConsolidationConflictError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    return Response({'error': str(error)}, status=code)


class CampaignReconciliationViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Admin ViewSet for campaign financial reconciliation.

    list: List campaigns
    retrieve: Get a campaign
    orders: Orders of a campaign with items and amounts
    redistribute_shipping: Redistribute shipping by order weight
    consolidate: Merge duplicate orders per user
    integrity: Audit one campaign's books
    integrity_summary: Audit every campaign
    """

    queryset = Campaign.objects.all()
    serializer_class = CampaignMinimalSerializer
    permission_classes = [IsAdminUser]
    lookup_value_regex = '[0-9a-f-]{36}'

    @extend_schema(responses={200: OrderSerializer(many=True)}, tags=['campaigns'])
    @action(detail=True, methods=['get'])
    def orders(self, request, pk=None):
        """
        Get all orders of the campaign, earliest first.

        GET /api/campaigns/{id}/orders/
        """
        campaign = self.get_object()
        orders = (
            Order.objects
            .filter(campaign=campaign)
            .order_by('created_at', 'id')
            .prefetch_related('items__product')
        )
        serializer = OrderSerializer(orders, many=True)
        return Response(serializer.data)

    @extend_schema(request=None, responses={200: ShippingDistributionSerializer}, tags=['campaigns'])
    @action(detail=True, methods=['post'], url_path='distribute-shipping')
    def redistribute_shipping(self, request, pk=None):
        """
        Redistribute the campaign shipping cost across its orders.

        POST /api/campaigns/{id}/distribute-shipping/
        """
        try:
            result = distribute_shipping(campaign_id=pk)
        except (NotFoundError, InvalidAmountError, PersistenceError) as e:
            return _error_response(e)

        serializer = ShippingDistributionSerializer(result)
        return Response(serializer.data)

    @extend_schema(request=None, responses={200: ConsolidationSerializer}, tags=['campaigns'])
    @action(detail=True, methods=['post'])
    def consolidate(self, request, pk=None):
        """
        Merge duplicate orders per user. Shipping is not redistributed.

        POST /api/campaigns/{id}/consolidate/
        """
        try:
            result = consolidate_campaign(campaign_id=pk)
        except (NotFoundError, ConsolidationConflictError, PersistenceError) as e:
            return _error_response(e)

        serializer = ConsolidationSerializer(result)
        return Response(serializer.data)

    @extend_schema(responses={200: IntegrityReportSerializer}, tags=['campaigns'])
    @action(detail=True, methods=['get'])
    def integrity(self, request, pk=None):
        """
        Audit one campaign's books.

        GET /api/campaigns/{id}/integrity/
        """
        try:
            report = validate_campaign(campaign_id=pk)
        except (NotFoundError, PersistenceError) as e:
            return _error_response(e)

        serializer = IntegrityReportSerializer(report)
        return Response(serializer.data)

    @extend_schema(responses={200: IntegritySummarySerializer}, tags=['campaigns'])
    @action(detail=False, methods=['get'], url_path='integrity')
    def integrity_summary(self, request):
        """
        Audit every campaign; one failing campaign doesn't stop the others.

        GET /api/campaigns/integrity/
        """
        summary = run_for_all_campaigns(validate_campaign)
        serializer = IntegritySummarySerializer({
            'total': summary['total'],
            'succeeded': summary['succeeded'],
            'failed': summary['failed'],
            'reports': [entry['result'] for entry in summary['results']],
            'failures': summary['failures'],
        })
        return Response(serializer.data)
