import pytest
from datetime import timedelta
from decimal import Decimal
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.campaigns.models import Campaign, Product, Order, OrderItem
from apps.campaigns.services import money_sum

User = get_user_model()


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def admin_user(db):
    """Create and return a staff user allowed to run reconciliation."""
    return User.objects.create_user(
        username='admin',
        email='admin@example.com',
        password='TestPass123!',
        is_staff=True,
    )


@pytest.fixture
def alice(db):
    """Create and return a shopper."""
    return User.objects.create_user(
        username='alice',
        email='alice@example.com',
        password='TestPass123!',
    )


@pytest.fixture
def bob(db):
    """Create and return another shopper."""
    return User.objects.create_user(
        username='bob',
        email='bob@example.com',
        password='TestPass123!',
    )


@pytest.fixture
def carol(db):
    """Create and return a third shopper."""
    return User.objects.create_user(
        username='carol',
        email='carol@example.com',
        password='TestPass123!',
    )


@pytest.fixture
def admin_client(api_client, admin_user):
    """Return API client authenticated as admin."""
    refresh = RefreshToken.for_user(admin_user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def shopper_client(api_client, alice):
    """Return API client authenticated as a regular shopper."""
    refresh = RefreshToken.for_user(alice)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def campaign(db, admin_user):
    """Create a campaign with 100.00 of shipping to distribute."""
    return Campaign.objects.create(
        name='Bulk Coffee Order',
        description='Shared shipment from the roastery',
        shipping_cost=Decimal('100.00'),
        created_by=admin_user,
    )


@pytest.fixture
def product_x(db, campaign):
    """1 kg product at 10.00."""
    return Product.objects.create(
        campaign=campaign,
        name='Espresso Blend 1kg',
        price=Decimal('10.00'),
        weight=Decimal('1.000'),
    )


@pytest.fixture
def product_y(db, campaign):
    """2 kg product at 25.00."""
    return Product.objects.create(
        campaign=campaign,
        name='Filter Roast 2kg',
        price=Decimal('25.00'),
        weight=Decimal('2.000'),
    )


@pytest.fixture
def product_z(db, campaign):
    """3 kg product at 40.00."""
    return Product.objects.create(
        campaign=campaign,
        name='Green Beans 3kg',
        price=Decimal('40.00'),
        weight=Decimal('3.000'),
    )


@pytest.fixture
def weightless_product(db, campaign):
    """Product without shipping weight (e.g. a gift card)."""
    return Product.objects.create(
        campaign=campaign,
        name='Gift Card',
        price=Decimal('15.00'),
        weight=Decimal('0.000'),
    )


@pytest.fixture
def order_factory(db, campaign):
    """
    Return a function creating orders with items.

    Items are (product, quantity) or (product, quantity, unit_price).
    Each order is created one minute after the previous one, and its items
    one second apart, so creation order is deterministic. subtotal and total are set from the items,
    shipping_fee stays 0.00 until shipping is distributed.
    """
    base_time = timezone.now() - timedelta(days=1)
    created = []

    def create_order(user=None, items=(), *, target_campaign=None, is_paid=False, customer_name=''):
        order = Order.objects.create(
            campaign=target_campaign or campaign,
            user=user,
            customer_name=customer_name,
            is_paid=is_paid,
        )
        created_at = base_time + timedelta(minutes=len(created))
        for position, item in enumerate(items):
            product, quantity = item[0], item[1]
            unit_price = item[2] if len(item) > 2 else product.price
            order_item = OrderItem.objects.create(
                order=order,
                product=product,
                quantity=quantity,
                unit_price=unit_price,
            )
            OrderItem.objects.filter(id=order_item.id).update(
                created_at=created_at + timedelta(seconds=position)
            )

        subtotal = money_sum(i.subtotal for i in order.items.all())
        Order.objects.filter(id=order.id).update(
            subtotal=subtotal,
            total=subtotal,
            created_at=created_at,
        )
        order.refresh_from_db()
        created.append(order)
        return order

    return create_order


@pytest.fixture
def weighted_orders(order_factory, alice, bob, carol, product_x, product_y, product_z):
    """Three orders weighing 1, 2 and 3 kg in a campaign with 100.00 shipping."""
    return [
        order_factory(alice, [(product_x, 1)]),
        order_factory(bob, [(product_y, 1)]),
        order_factory(carol, [(product_z, 1)]),
    ]


@pytest.fixture
def duplicate_orders(order_factory, alice, product_x, product_y):
    """
    Alice ordered twice in the same campaign.

    Order A: product X qty 2 (20.00)
    Order B: product X qty 3, product Y qty 1 (55.00)
    """
    order_a = order_factory(alice, [(product_x, 2)])
    order_b = order_factory(alice, [(product_x, 3), (product_y, 1)])
    return order_a, order_b
