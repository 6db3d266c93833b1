"""
Shipping distribution service.

Distributes a campaign's shipping cost across its orders in proportion to
order weight, and keeps each order's total equal to subtotal plus fee.
"""

import logging
from decimal import Decimal
from uuid import UUID

from django.db import DatabaseError, transaction

from apps.campaigns.models import Campaign, Order
from .exceptions import CampaignNotFoundError, OrderNotFoundError, PersistenceError
from .money import allocate_by_weight, money_sum, to_money
from .weight_aggregation import build_weight_vector

logger = logging.getLogger(__name__)


def lock_campaign(campaign_id: UUID) -> Campaign:
    """
    Lock a campaign row for the rest of the current transaction.

    Every mutating operation on a campaign takes this lock first, so
    distribution and consolidation never interleave on the same campaign.

    Raises:
        CampaignNotFoundError: If the campaign doesn't exist.
    """
    try:
        return (
            Campaign.objects
            .select_for_update()
            .get(id=campaign_id)
        )
    except Campaign.DoesNotExist:
        raise CampaignNotFoundError(f"Campaign with ID {campaign_id} not found")


def get_campaign_orders(campaign: Campaign, *, for_update: bool = False):
    """Orders of a campaign, earliest first, with items and products loaded."""
    queryset = Order.objects.filter(campaign=campaign)
    if for_update:
        queryset = queryset.select_for_update()
    return list(
        queryset
        .order_by('created_at', 'id')
        .prefetch_related('items__product')
    )


def distribute_shipping(*, campaign_id: UUID) -> dict:
    """
    Distribute a campaign's shipping cost across its orders by weight.

    This operation:
    1. Locks the campaign and its orders
    2. Computes each order's weight from its items (earliest order first)
    3. Allocates the shipping cost by weight; the last order absorbs rounding
    4. Sets shipping_fee and total = subtotal + shipping_fee on every order

    Re-running on an unchanged campaign writes identical values.

    Args:
        campaign_id: UUID of the campaign

    Returns:
        Dictionary with:
        - campaign: Campaign - The campaign
        - shipping_cost: Decimal - Amount to distribute
        - total_weight: Decimal - Sum of order weights
        - distributed_amount: Decimal - Sum of assigned fees
        - orders_updated: int - Number of orders written
        - allocations: list - One {order_id, weight, shipping_fee, total}
          per order

    Raises:
        CampaignNotFoundError: If the campaign doesn't exist
        PersistenceError: If the database fails; nothing is written

    Example:
        >>> result = distribute_shipping(campaign_id=campaign.id)
        >>> result['distributed_amount'] == campaign.shipping_cost
        True
    """
    try:
        with transaction.atomic():
            campaign = lock_campaign(campaign_id)
            orders = get_campaign_orders(campaign, for_update=True)
            return _apply_distribution(campaign, orders)
    except DatabaseError as e:
        raise PersistenceError(
            f"Shipping distribution failed for campaign {campaign_id}: {e}"
        ) from e


def _apply_distribution(campaign: Campaign, orders) -> dict:
    weighted = build_weight_vector(orders)
    weights = {order.id: weight for order, weight in weighted}

    allocations = []
    for order, fee in allocate_by_weight(campaign.shipping_cost, weighted):
        order.shipping_fee = fee
        order.total = to_money(order.subtotal + fee)
        order.save(update_fields=['shipping_fee', 'total', 'updated_at'])
        allocations.append({
            'order_id': order.id,
            'weight': weights[order.id],
            'shipping_fee': order.shipping_fee,
            'total': order.total,
        })

    total_weight = sum(weights.values(), Decimal('0'))
    distributed = money_sum(a['shipping_fee'] for a in allocations)

    logger.info(
        "Distributed shipping for campaign %s: cost=%s weight=%s orders=%d distributed=%s",
        campaign.id, campaign.shipping_cost, total_weight, len(allocations), distributed,
    )

    return {
        'campaign': campaign,
        'shipping_cost': campaign.shipping_cost,
        'total_weight': total_weight,
        'distributed_amount': distributed,
        'orders_updated': len(allocations),
        'allocations': allocations,
    }


def recalculate_order_subtotal(*, order_id: UUID) -> Order:
    """
    Re-sum an order's item subtotals and redistribute its campaign's shipping.

    Called after an order's items change, since any weight change moves
    shipping between every order of the campaign.

    Args:
        order_id: UUID of the order

    Returns:
        The order, refreshed after redistribution

    Raises:
        OrderNotFoundError: If the order doesn't exist
        PersistenceError: If the database fails; nothing is written
    """
    try:
        with transaction.atomic():
            try:
                campaign_id = Order.objects.values_list('campaign_id', flat=True).get(id=order_id)
            except Order.DoesNotExist:
                raise OrderNotFoundError(f"Order with ID {order_id} not found")

            campaign = lock_campaign(campaign_id)
            order = Order.objects.select_for_update().get(id=order_id)
            order.subtotal = money_sum(item.subtotal for item in order.items.all())
            order.save(update_fields=['subtotal', 'updated_at'])

            _apply_distribution(campaign, get_campaign_orders(campaign, for_update=True))
    except DatabaseError as e:
        raise PersistenceError(
            f"Subtotal recalculation failed for order {order_id}: {e}"
        ) from e

    order.refresh_from_db()
    return order
