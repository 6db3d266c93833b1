import pytest
import uuid
from decimal import Decimal
from django.urls import reverse
from rest_framework import status
from apps.campaigns.models import Order


# =============================================================================
# Access Control Tests
# =============================================================================

@pytest.mark.django_db
class TestAccess:
    """Reconciliation endpoints are admin-only."""

    def test_unauthenticated_rejected(self, api_client, campaign):
        """Unauthenticated users get 401."""
        url = reverse('campaigns:campaign-list')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_shopper_forbidden(self, shopper_client, campaign):
        """Non-staff users cannot trigger shipping distribution."""
        url = reverse('campaigns:campaign-redistribute-shipping', kwargs={'pk': campaign.id})
        response = shopper_client.post(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert Order.objects.filter(campaign=campaign, shipping_fee__gt=0).count() == 0

    def test_admin_lists_campaigns(self, admin_client, campaign):
        url = reverse('campaigns:campaign-list')
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data[0]['id'] == str(campaign.id)
        assert response.data[0]['shipping_cost'] == '100.00'


# =============================================================================
# Campaign Action Tests
# =============================================================================

@pytest.mark.django_db
class TestCampaignOrders:
    """Tests for GET /api/campaigns/{id}/orders/"""

    def test_orders_earliest_first_with_items(self, admin_client, campaign, weighted_orders):
        url = reverse('campaigns:campaign-orders', kwargs={'pk': campaign.id})
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert [o['id'] for o in response.data] == [str(o.id) for o in weighted_orders]
        assert response.data[0]['items'][0]['product_weight'] == '1.000'


@pytest.mark.django_db
class TestDistributeShippingEndpoint:
    """Tests for POST /api/campaigns/{id}/distribute-shipping/"""

    def test_distributes_shipping(self, admin_client, campaign, weighted_orders):
        """Response lists every order's new fee and total."""
        url = reverse('campaigns:campaign-redistribute-shipping', kwargs={'pk': campaign.id})
        response = admin_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['distributed_amount'] == '100.00'
        assert response.data['orders_updated'] == 3
        assert [a['shipping_fee'] for a in response.data['allocations']] == ['16.67', '33.33', '50.00']
        assert Order.objects.get(id=weighted_orders[2].id).total == Decimal('90.00')

    def test_unknown_campaign(self, admin_client):
        url = reverse('campaigns:campaign-redistribute-shipping', kwargs={'pk': uuid.uuid4()})
        response = admin_client.post(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert 'error' in response.data


@pytest.mark.django_db
class TestConsolidateEndpoint:
    """Tests for POST /api/campaigns/{id}/consolidate/"""

    def test_merges_duplicates(self, admin_client, campaign, duplicate_orders, alice):
        order_a, order_b = duplicate_orders
        url = reverse('campaigns:campaign-consolidate', kwargs={'pk': campaign.id})
        response = admin_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['merged_groups'] == 1
        assert response.data['merged_items'] == 0
        assert response.data['removed_order_ids'] == [str(order_b.id)]
        group = response.data['groups'][0]
        assert group['user_id'] == alice.id
        assert group['surviving_order_id'] == str(order_a.id)
        assert group['subtotal'] == '75.00'


@pytest.mark.django_db
class TestIntegrityEndpoints:
    """Tests for the integrity audit endpoints."""

    def test_single_campaign_report(self, admin_client, campaign, weighted_orders):
        admin_client.post(
            reverse('campaigns:campaign-redistribute-shipping', kwargs={'pk': campaign.id})
        )

        url = reverse('campaigns:campaign-integrity', kwargs={'pk': campaign.id})
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['passed'] is True
        assert response.data['sum_shipping_fees'] == '100.00'

    def test_failing_report_is_not_an_error(self, admin_client, campaign, weighted_orders):
        """Unbalanced books still return 200 with the failing checks."""
        url = reverse('campaigns:campaign-integrity', kwargs={'pk': campaign.id})
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['shipping_match'] is False
        assert response.data['passed'] is False

    def test_unknown_campaign(self, admin_client):
        url = reverse('campaigns:campaign-integrity', kwargs={'pk': uuid.uuid4()})
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_summary_over_all_campaigns(self, admin_client, campaign, weighted_orders):
        url = reverse('campaigns:campaign-integrity-summary')
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total'] == 1
        assert response.data['failed'] == 1
        assert response.data['reports'][0]['campaign_id'] == str(campaign.id)
        assert response.data['failures'][0]['error'] == 'Integrity check failed'


@pytest.mark.django_db
class TestHealthCheck:

    def test_health_check(self, api_client):
        """Health check needs no authentication."""
        response = api_client.get(reverse('health-check'))

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'status': 'ok'}
