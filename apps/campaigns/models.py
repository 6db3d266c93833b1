from django.conf import settings
from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal, ROUND_HALF_UP
import uuid


class CampaignStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    CLOSED = 'closed', 'Closed'
    SENT = 'sent', 'Sent'
    ARCHIVED = 'archived', 'Archived'


class Campaign(models.Model):
    """Group-purchase campaign sharing one shipping cost between its orders."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    status = models.CharField(
        max_length=20,
        choices=CampaignStatus.choices,
        default=CampaignStatus.ACTIVE
    )

    # Full amount to be distributed across orders by weight
    shipping_cost = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='campaigns_created'
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'campaigns'
        indexes = [
            models.Index(fields=['status', 'created_at'], name='campaigns_status_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.get_status_display()})"


class Product(models.Model):
    """Product offered within a campaign."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    campaign = models.ForeignKey(
        Campaign,
        on_delete=models.CASCADE,
        related_name='products'
    )
    name = models.CharField(max_length=200)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    # Shipping weight in kilograms
    weight = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        default=Decimal('0.000'),
        validators=[MinValueValidator(Decimal('0.000'))]
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'campaign_products'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} - {self.price} ({self.weight} kg)"


class Order(models.Model):
    """One user's order within a campaign."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    campaign = models.ForeignKey(
        Campaign,
        on_delete=models.CASCADE,
        related_name='orders'
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='campaign_orders'
    )
    customer_name = models.CharField(max_length=200, blank=True)

    # Financial details
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    shipping_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    is_paid = models.BooleanField(default=False)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'campaign_orders'
        indexes = [
            models.Index(fields=['campaign', 'user'], name='orders_campaign_user_idx'),
            models.Index(fields=['campaign', 'created_at'], name='orders_campaign_created_idx'),
            models.Index(fields=['is_paid'], name='orders_is_paid_idx'),
        ]
        # Earliest order first: distribution order and consolidation tie-break
        ordering = ['created_at', 'id']

    def __str__(self):
        owner = self.customer_name or (self.user.get_username() if self.user else 'Unknown')
        return f"{owner} - {self.total} ({'paid' if self.is_paid else 'unpaid'})"


class OrderItem(models.Model):
    """Product line within an order."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='items'
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name='order_items'
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'campaign_order_items'
        indexes = [
            models.Index(fields=['order', 'product'], name='order_items_order_product_idx'),
        ]
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.quantity} x {self.product.name} @ {self.unit_price}"

    def save(self, *args, **kwargs):
        """Keep subtotal equal to quantity x unit price."""
        self.subtotal = self.calculate_subtotal()
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'subtotal' not in update_fields:
            kwargs['update_fields'] = list(update_fields) + ['subtotal']
        super().save(*args, **kwargs)

    def calculate_subtotal(self):
        """Return quantity x unit price rounded to the cent."""
        amount = Decimal(self.quantity) * Decimal(str(self.unit_price))
        return amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
