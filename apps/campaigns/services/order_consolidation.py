"""
Order consolidation service.

Merges duplicate orders (same user, same campaign) into the user's earliest
order, conserving item quantities and subtotals, and leaves at most one item
per product on every order. Shipping is not touched: callers redistribute
shipping afterwards.
"""

import logging
from typing import List, Optional
from uuid import UUID

from django.db import DatabaseError, transaction
from django.db.models import Count

from apps.campaigns.models import Campaign, Order, OrderItem
from .exceptions import ConsolidationConflictError, PersistenceError
from .money import money_sum
from .shipping_distribution import lock_campaign

logger = logging.getLogger(__name__)


def find_duplicate_order_groups(*, campaign_id: Optional[UUID] = None) -> List[dict]:
    """
    Find (campaign, user) pairs owning more than one order.

    Orders without a user are never grouped.

    Args:
        campaign_id: Optional UUID to restrict the search to one campaign

    Returns:
        List of {campaign_id, user_id, count} dictionaries
    """
    queryset = Order.objects.filter(user__isnull=False)
    if campaign_id is not None:
        queryset = queryset.filter(campaign_id=campaign_id)

    return list(
        queryset
        .values('campaign_id', 'user_id')
        .annotate(count=Count('id'))
        .filter(count__gt=1)
        .order_by('campaign_id', 'user_id')
    )


def find_duplicate_item_groups(*, campaign_id: Optional[UUID] = None) -> List[dict]:
    """
    Find orders holding more than one item for the same product.

    Returns:
        List of {campaign_id, order_id, product_id, count} dictionaries
    """
    queryset = OrderItem.objects.all()
    if campaign_id is not None:
        queryset = queryset.filter(order__campaign_id=campaign_id)

    rows = (
        queryset
        .values('order__campaign_id', 'order_id', 'product_id')
        .annotate(count=Count('id'))
        .filter(count__gt=1)
        .order_by('order__campaign_id', 'order_id', 'product_id')
    )
    return [
        {
            'campaign_id': row['order__campaign_id'],
            'order_id': row['order_id'],
            'product_id': row['product_id'],
            'count': row['count'],
        }
        for row in rows
    ]


def merge_duplicate_items(order: Order) -> int:
    """
    Collapse items of the same product within one order.

    The earliest item for a product is kept, receives the summed quantity
    and keeps its own unit price. Later items for that product are deleted.

    Args:
        order: Order whose items should be unique per product

    Returns:
        Number of items removed
    """
    kept = {}
    removed = 0
    for item in order.items.order_by('created_at', 'id'):
        existing = kept.get(item.product_id)
        if existing is None:
            kept[item.product_id] = item
            continue

        existing.quantity += item.quantity
        existing.save(update_fields=['quantity', 'updated_at'])
        item.delete()
        removed += 1

    return removed


def _merge_order_group(orders: List[Order]) -> dict:
    """
    Merge a group of one user's orders into the earliest of them.

    Earliest order's price wins: when a product is already on the surviving
    order, only the quantity moves and the surviving unit price is kept.
    """
    survivor, removable = orders[0], orders[1:]
    removable_ids = [order.id for order in removable]

    merge_duplicate_items(survivor)
    survivor_items = {item.product_id: item for item in survivor.items.all()}

    items_to_move = (
        OrderItem.objects
        .filter(order_id__in=removable_ids)
        .order_by('order__created_at', 'order__id', 'created_at', 'id')
    )
    for item in items_to_move:
        existing = survivor_items.get(item.product_id)
        if existing:
            existing.quantity += item.quantity
            existing.save(update_fields=['quantity', 'updated_at'])
        else:
            item.order = survivor
            item.save(update_fields=['order', 'updated_at'])
            survivor_items[item.product_id] = item

    # Remaining items of removable orders cascade with them
    _, deleted_per_model = Order.objects.filter(id__in=removable_ids).delete()
    deleted_orders = deleted_per_model.get(Order._meta.label, 0)
    if deleted_orders != len(removable_ids):
        raise ConsolidationConflictError(
            f"Expected to delete {len(removable_ids)} duplicate order(s) of user "
            f"{survivor.user_id}, deleted {deleted_orders}"
        )

    survivor.subtotal = money_sum(item.subtotal for item in survivor.items.all())
    survivor.save(update_fields=['subtotal', 'updated_at'])

    return {
        'user_id': survivor.user_id,
        'surviving_order_id': survivor.id,
        'removed_order_ids': removable_ids,
        'subtotal': survivor.subtotal,
    }


def consolidate_campaign(*, campaign_id: UUID) -> dict:
    """
    Merge every user's duplicate orders within one campaign.

    This operation:
    1. Locks the campaign and all its user-owned orders
    2. Groups orders by user, keeping groups with more than one order
    3. For each group, keeps the earliest order and moves or merges the
       items of the others into it
    4. Deletes the emptied duplicates
    5. Collapses items of the same product on every remaining order
    6. Re-sums the subtotal of every order that changed

    Item quantities per product and the group's subtotal are conserved when
    all orders share the same unit prices. shipping_fee and total are left
    stale; run distribute_shipping afterwards.

    Args:
        campaign_id: UUID of the campaign

    Returns:
        Dictionary with:
        - campaign: Campaign - The campaign
        - merged_groups: int - Number of users whose orders were merged
        - surviving_order_ids: list - Kept order per merged group
        - removed_order_ids: list - Deleted duplicate orders
        - merged_items: int - Same-product items folded into another item
        - groups: list - Per-group details

    Raises:
        CampaignNotFoundError: If the campaign doesn't exist
        ConsolidationConflictError: If duplicates vanished mid-merge
        PersistenceError: If the database fails; nothing is written
    """
    try:
        with transaction.atomic():
            campaign = lock_campaign(campaign_id)
            return _consolidate_locked(campaign)
    except DatabaseError as e:
        raise PersistenceError(
            f"Order consolidation failed for campaign {campaign_id}: {e}"
        ) from e


def _merge_items_per_order(campaign: Campaign) -> int:
    """Collapse same-product items on every order of the campaign."""
    merged_items = 0
    orders = (
        Order.objects
        .select_for_update()
        .filter(campaign=campaign)
        .order_by('created_at', 'id')
    )
    for order in orders:
        removed = merge_duplicate_items(order)
        if not removed:
            continue
        order.subtotal = money_sum(item.subtotal for item in order.items.all())
        order.save(update_fields=['subtotal', 'updated_at'])
        merged_items += removed
    return merged_items


def _consolidate_locked(campaign: Campaign) -> dict:
    duplicate_user_ids = [
        group['user_id']
        for group in find_duplicate_order_groups(campaign_id=campaign.id)
    ]

    groups = []
    for user_id in duplicate_user_ids:
        orders = list(
            Order.objects
            .select_for_update()
            .filter(campaign=campaign, user_id=user_id)
            .order_by('created_at', 'id')
        )
        if len(orders) < 2:
            raise ConsolidationConflictError(
                f"Duplicate orders of user {user_id} in campaign {campaign.id} changed during consolidation"
            )
        groups.append(_merge_order_group(orders))

    merged_items = _merge_items_per_order(campaign)
    removed_ids = [order_id for group in groups for order_id in group['removed_order_ids']]

    logger.info(
        "Consolidated campaign %s: merged_groups=%d removed_orders=%d merged_items=%d",
        campaign.id, len(groups), len(removed_ids), merged_items,
    )

    return {
        'campaign': campaign,
        'merged_groups': len(groups),
        'surviving_order_ids': [group['surviving_order_id'] for group in groups],
        'removed_order_ids': removed_ids,
        'merged_items': merged_items,
        'groups': groups,
    }
