import pytest
from decimal import Decimal
from unittest.mock import patch

from django.contrib import admin, messages
from django.test import RequestFactory

from apps.campaigns.admin import CampaignAdmin
from apps.campaigns.models import Campaign, Order
from apps.campaigns.services import PersistenceError, distribute_shipping


@pytest.fixture
def campaign_admin():
    return CampaignAdmin(Campaign, admin.site)


@pytest.fixture
def admin_request(admin_user):
    request = RequestFactory().post('/admin/campaigns/campaign/')
    request.user = admin_user
    return request


def sent_messages(message_user):
    """(text, level) for every message_user call; level defaults to INFO."""
    return [
        (call.args[1], call.kwargs.get('level', messages.INFO))
        for call in message_user.call_args_list
    ]


@pytest.mark.django_db
class TestCampaignAdminActions:
    """Tests for the bulk actions on the campaign changelist."""

    def test_redistribute_shipping(self, campaign_admin, admin_request, campaign, weighted_orders):
        with patch.object(CampaignAdmin, 'message_user') as message_user:
            campaign_admin.redistribute_shipping(admin_request, Campaign.objects.all())

        assert sent_messages(message_user) == [
            ('Updated 3 order(s) in 1 campaign(s).', messages.INFO),
        ]
        fees = list(
            Order.objects.filter(campaign=campaign).order_by('created_at').values_list('shipping_fee', flat=True)
        )
        assert fees == [Decimal('16.67'), Decimal('33.33'), Decimal('50.00')]

    def test_consolidate_duplicate_orders(self, campaign_admin, admin_request, campaign, duplicate_orders):
        """Duplicates are merged and shipping lands on the surviving order."""
        order_a, _ = duplicate_orders

        with patch.object(CampaignAdmin, 'message_user') as message_user:
            campaign_admin.consolidate_duplicate_orders(admin_request, Campaign.objects.all())

        assert sent_messages(message_user) == [
            ('Merged 1 duplicate order group(s).', messages.INFO),
        ]
        survivor = Order.objects.get(campaign=campaign)
        assert survivor.id == order_a.id
        assert survivor.shipping_fee == Decimal('100.00')
        assert survivor.total == Decimal('175.00')

    def test_validate_integrity_all_passed(self, campaign_admin, admin_request, campaign, weighted_orders):
        distribute_shipping(campaign_id=campaign.id)

        with patch.object(CampaignAdmin, 'message_user') as message_user:
            campaign_admin.validate_integrity(admin_request, Campaign.objects.all())

        assert sent_messages(message_user) == [('All 1 campaign(s) passed.', messages.INFO)]

    def test_validate_integrity_reports_failing_campaigns(
        self, campaign_admin, admin_request, campaign, weighted_orders
    ):
        """Shipping was never distributed, so the campaign is named as failing."""
        with patch.object(CampaignAdmin, 'message_user') as message_user:
            campaign_admin.validate_integrity(admin_request, Campaign.objects.all())

        assert sent_messages(message_user) == [
            ('Integrity check failed for: Bulk Coffee Order', messages.WARNING),
        ]

    def test_service_errors_are_reported_per_campaign(
        self, campaign_admin, admin_request, campaign, weighted_orders
    ):
        with patch(
            'apps.campaigns.admin.distribute_shipping',
            side_effect=PersistenceError('connection lost'),
        ):
            with patch.object(CampaignAdmin, 'message_user') as message_user:
                campaign_admin.redistribute_shipping(admin_request, Campaign.objects.all())

        assert sent_messages(message_user) == [
            ('Bulk Coffee Order: connection lost', messages.ERROR),
            ('Updated 0 order(s) in 0 campaign(s).', messages.INFO),
        ]
        assert not Order.objects.filter(campaign=campaign, shipping_fee__gt=0).exists()
