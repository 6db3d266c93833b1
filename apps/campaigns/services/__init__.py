"""Services for campaign allocation and reconciliation."""

from .exceptions import (
    CampaignsServiceError,
    NotFoundError,
    CampaignNotFoundError,
    OrderNotFoundError,
    InvalidAmountError,
    ConsolidationConflictError,
    PersistenceError,
)
from .money import (
    CENT,
    to_money,
    money_sum,
    amounts_match,
    allocate_by_weight,
    distribute_proportionally,
)
from .weight_aggregation import (
    calculate_item_weight,
    calculate_order_weight,
    build_weight_vector,
)
from .shipping_distribution import (
    distribute_shipping,
    recalculate_order_subtotal,
)
from .order_consolidation import (
    find_duplicate_order_groups,
    find_duplicate_item_groups,
    merge_duplicate_items,
    consolidate_campaign,
)
from .integrity_validation import (
    build_integrity_report,
    validate_campaign,
)
from .batch import (
    reconcile_campaign,
    run_for_all_campaigns,
)

__all__ = [
    # Exceptions
    'CampaignsServiceError',
    'NotFoundError',
    'CampaignNotFoundError',
    'OrderNotFoundError',
    'InvalidAmountError',
    'ConsolidationConflictError',
    'PersistenceError',
    # Money
    'CENT',
    'to_money',
    'money_sum',
    'amounts_match',
    'allocate_by_weight',
    'distribute_proportionally',
    # Weight Aggregation
    'calculate_item_weight',
    'calculate_order_weight',
    'build_weight_vector',
    # Shipping Distribution
    'distribute_shipping',
    'recalculate_order_subtotal',
    # Order Consolidation
    'find_duplicate_order_groups',
    'find_duplicate_item_groups',
    'merge_duplicate_items',
    'consolidate_campaign',
    # Integrity Validation
    'build_integrity_report',
    'validate_campaign',
    # Batch
    'reconcile_campaign',
    'run_for_all_campaigns',
]
