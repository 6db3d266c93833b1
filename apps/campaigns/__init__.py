"""
Campaigns App - Group-Purchase Allocation and Reconciliation

This app owns group-purchase campaigns, their orders and order items, and the
financial engine that keeps the books of each campaign balanced.

Key Features:
- Cent-precise proportional shipping distribution by order weight
- Consolidation of duplicate orders (one order per user per campaign)
- Read-only financial integrity audit per campaign
- Batch runs over all campaigns with per-campaign failure isolation

Architecture:
- Models: Campaign, Product, Order, OrderItem
- Services: money, weight_aggregation, shipping_distribution,
  order_consolidation, integrity_validation, batch
- Commands: distribute_shipping, consolidate_orders,
  validate_financial_integrity
- Views: admin-only reconciliation endpoints
"""

__version__ = '1.0.0'
