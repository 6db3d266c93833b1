"""
Financial integrity validation - read-only audit of a campaign's books.

A failed check is a normal result, not an exception: the report carries a
boolean per check plus the aggregates behind it.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from django.conf import settings
from django.db import DatabaseError

from apps.campaigns.models import Campaign, Order
from .exceptions import CampaignNotFoundError, PersistenceError
from .money import amounts_match, money_sum, to_money

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = Decimal('0.01')


def get_integrity_tolerance() -> Decimal:
    """Tolerance for all checks, CAMPAIGNS_INTEGRITY_TOLERANCE or one cent."""
    return Decimal(str(getattr(settings, 'CAMPAIGNS_INTEGRITY_TOLERANCE', DEFAULT_TOLERANCE)))


def build_integrity_report(
    campaign: Campaign,
    orders: Iterable[Order],
    tolerance: Optional[Decimal] = None
) -> dict:
    """
    Check that a campaign's order amounts are consistent with its shipping cost.

    Checks (each passes when the difference is below the tolerance):
    - shipping_match: sum of shipping fees equals the campaign shipping cost
    - total_match: sum of totals equals sum of subtotals plus shipping cost
    - paid_unpaid_match: sum of totals equals paid totals plus unpaid totals.
      Only orders with is_paid exactly True or False are counted in the
      partition, so an order with a missing flag fails this check.

    Args:
        campaign: The campaign being audited
        orders: Its orders (any objects with subtotal, shipping_fee, total
            and is_paid)
        tolerance: Optional override of the configured tolerance

    Returns:
        Dictionary with the aggregates, the three check results and
        passed (all three true)
    """
    if tolerance is None:
        tolerance = get_integrity_tolerance()
    orders = list(orders)
    shipping_cost = to_money(campaign.shipping_cost)

    sum_subtotals = money_sum(o.subtotal for o in orders)
    sum_shipping_fees = money_sum(o.shipping_fee for o in orders)
    sum_totals = money_sum(o.total for o in orders)
    sum_paid = money_sum(o.total for o in orders if o.is_paid is True)
    sum_unpaid = money_sum(o.total for o in orders if o.is_paid is False)
    expected_total = to_money(sum_subtotals + shipping_cost)

    shipping_match = amounts_match(sum_shipping_fees, shipping_cost, tolerance)
    total_match = amounts_match(sum_totals, expected_total, tolerance)
    paid_unpaid_match = amounts_match(sum_totals, sum_paid + sum_unpaid, tolerance)

    return {
        'campaign_id': campaign.id,
        'campaign_name': campaign.name,
        'order_count': len(orders),
        'shipping_cost': shipping_cost,
        'sum_shipping_fees': sum_shipping_fees,
        'sum_subtotals': sum_subtotals,
        'sum_totals': sum_totals,
        'expected_total': expected_total,
        'sum_paid': sum_paid,
        'sum_unpaid': sum_unpaid,
        'shipping_match': shipping_match,
        'total_match': total_match,
        'paid_unpaid_match': paid_unpaid_match,
        'passed': shipping_match and total_match and paid_unpaid_match,
    }


def validate_campaign(*, campaign_id: UUID) -> dict:
    """
    Audit one campaign's books.

    Args:
        campaign_id: UUID of the campaign

    Returns:
        Integrity report, see build_integrity_report

    Raises:
        CampaignNotFoundError: If the campaign doesn't exist
        PersistenceError: If the database fails

    Example:
        >>> report = validate_campaign(campaign_id=campaign.id)
        >>> report['passed']
        True
    """
    try:
        try:
            campaign = Campaign.objects.get(id=campaign_id)
        except Campaign.DoesNotExist:
            raise CampaignNotFoundError(f"Campaign with ID {campaign_id} not found")

        orders = Order.objects.filter(campaign=campaign).only(
            'id', 'subtotal', 'shipping_fee', 'total', 'is_paid'
        )
        report = build_integrity_report(campaign, orders)
    except DatabaseError as e:
        raise PersistenceError(
            f"Integrity validation failed for campaign {campaign_id}: {e}"
        ) from e

    if not report['passed']:
        logger.warning(
            "Integrity check failed for campaign %s: shipping=%s total=%s paid_unpaid=%s",
            campaign_id, report['shipping_match'], report['total_match'],
            report['paid_unpaid_match'],
        )
    return report
