"""Weight aggregation - shipping weight of orders from their items."""

from decimal import Decimal
from typing import Iterable, List, Tuple

from apps.campaigns.models import Order
from .exceptions import InvalidAmountError
from .money import require_non_negative


def calculate_item_weight(quantity, product_weight) -> Decimal:
    """
    Weight of one order line: quantity x product weight.

    Raises:
        InvalidAmountError: If quantity or product weight is negative.
    """
    quantity = require_non_negative(quantity, 'quantity')
    if quantity != quantity.to_integral_value():
        raise InvalidAmountError(f"Quantity must be a whole number: {quantity}")
    return quantity * require_non_negative(product_weight, 'weight')


def calculate_order_weight(order: Order) -> Decimal:
    """
    Sum of quantity x product weight over the order's items.

    Pure: reads only the items already attached to the order (prefetch
    ``items__product`` to avoid one query per item). An order without
    items weighs zero.

    Args:
        order: Order with its items and their products.

    Returns:
        Decimal total weight.
    """
    return sum(
        (calculate_item_weight(item.quantity, item.product.weight) for item in order.items.all()),
        Decimal('0'),
    )


def build_weight_vector(orders: Iterable[Order]) -> List[Tuple[Order, Decimal]]:
    """Return ``(order, weight)`` pairs in the order the orders were given."""
    return [(order, calculate_order_weight(order)) for order in orders]
