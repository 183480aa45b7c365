# boutique/models.py - Storefront data model
"""
Catalog, order and store settings models.

Products carry their names and descriptions in the three storefront languages
(English, French, Arabic). Variants hold the purchasable size/color combination
with its own stock and SKU. Order items keep a price snapshot taken at
checkout so historical orders never change value when the catalog does.
"""

import uuid

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import translation
from django.utils.translation import gettext_lazy as _

from .exceptions import ImmutableRecordError

SUPPORTED_LANGUAGES = ('en', 'fr', 'ar')


class TimestampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_('created at'))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_('updated at'))

    class Meta:
        abstract = True


class LocalizedTextMixin:
    """Pick the ``<field>_<lang>`` column for the active language"""

    def _localized(self, field, language=None):
        language = (language or translation.get_language() or 'en')[:2]
        if language not in SUPPORTED_LANGUAGES:
            language = 'en'
        value = getattr(self, f'{field}_{language}', '')
        return value or getattr(self, f'{field}_en', '')

    def get_name(self, language=None):
        return self._localized('name', language)

    def get_description(self, language=None):
        return self._localized('description', language)


class Category(LocalizedTextMixin, TimestampedModel):
    """Product category"""
    name_en = models.CharField(max_length=200, verbose_name=_('name (English)'))
    name_fr = models.CharField(max_length=200, blank=True, verbose_name=_('name (French)'))
    name_ar = models.CharField(max_length=200, blank=True, verbose_name=_('name (Arabic)'))
    description_en = models.TextField(blank=True)
    description_fr = models.TextField(blank=True)
    description_ar = models.TextField(blank=True)

    class Meta:
        db_table = 'categories'
        verbose_name = _('category')
        verbose_name_plural = _('categories')
        ordering = ['name_en']

    def __str__(self):
        return self.name_en


class Product(LocalizedTextMixin, TimestampedModel):
    """Catalog product; purchasable through its variants"""

    GENDER_CHOICES = [
        ('male', _('Male')),
        ('female', _('Female')),
        ('unisex', _('Unisex')),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    category = models.ForeignKey(
        Category, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='products', verbose_name=_('category')
    )

    name_en = models.CharField(max_length=255, verbose_name=_('name (English)'))
    name_fr = models.CharField(max_length=255, blank=True, verbose_name=_('name (French)'))
    name_ar = models.CharField(max_length=255, blank=True, verbose_name=_('name (Arabic)'))
    description_en = models.TextField(blank=True)
    description_fr = models.TextField(blank=True)
    description_ar = models.TextField(blank=True)

    # Pricing: original_price is what the shop pays, selling_price what the customer pays
    original_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=0,
        validators=[MinValueValidator(0)], verbose_name=_('original price')
    )
    selling_price = models.DecimalField(
        max_digits=10, decimal_places=2,
        validators=[MinValueValidator(0)], verbose_name=_('selling price')
    )
    discount = models.DecimalField(
        max_digits=5, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        verbose_name=_('discount (%)')
    )

    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    material = models.CharField(max_length=100, blank=True)
    brand = models.CharField(max_length=100, blank=True)
    images = models.JSONField(default=list, blank=True, verbose_name=_('images'))

    is_active = models.BooleanField(default=True, verbose_name=_('active'))

    class Meta:
        db_table = 'products'
        verbose_name = _('product')
        verbose_name_plural = _('products')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['category', 'is_active']),
        ]

    def __str__(self):
        return self.name_en


class ProductVariant(TimestampedModel):
    """A purchasable size/color combination of a product"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(
        Product, on_delete=models.CASCADE, related_name='variants', verbose_name=_('product')
    )
    size = models.CharField(max_length=50, blank=True, verbose_name=_('size'))
    color = models.CharField(max_length=50, blank=True, verbose_name=_('color'))
    stock = models.PositiveIntegerField(default=0, verbose_name=_('stock'))
    sku = models.CharField(max_length=100, unique=True, verbose_name=_('SKU'))
    is_active = models.BooleanField(default=True, verbose_name=_('active'))

    class Meta:
        db_table = 'product_variants'
        verbose_name = _('product variant')
        verbose_name_plural = _('product variants')
        ordering = ['size', 'color']

    def __str__(self):
        return f"{self.product.name_en} ({self.size}/{self.color})"


class OrderStatus(models.TextChoices):
    PENDING = 'pending', _('Pending')
    PROCESSING = 'processing', _('Processing')
    DELIVERED = 'delivered', _('Delivered')
    COMPLETED = 'completed', _('Completed')
    CANCELLED = 'cancelled', _('Cancelled')


class Order(TimestampedModel):
    """Customer order placed at checkout"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Customer information
    customer_name = models.CharField(max_length=255, verbose_name=_('customer name'))
    customer_email = models.EmailField(blank=True, verbose_name=_('email'))
    customer_phone = models.CharField(max_length=30, verbose_name=_('phone'))
    customer_alt_phone = models.CharField(max_length=30, blank=True, verbose_name=_('alternate phone'))
    customer_address = models.TextField(verbose_name=_('address'))
    customer_governorate = models.CharField(max_length=100, verbose_name=_('governorate'))
    customer_delegation = models.CharField(max_length=100, blank=True, verbose_name=_('delegation'))
    customer_zip_code = models.CharField(max_length=20, blank=True, verbose_name=_('zip code'))

    # Amounts
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, verbose_name=_('total amount'))
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0, verbose_name=_('delivery fee'))

    status = models.CharField(
        max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING,
        verbose_name=_('status')
    )

    class Meta:
        db_table = 'orders'
        verbose_name = _('order')
        verbose_name_plural = _('orders')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status']),
            models.Index(fields=['created_at']),
        ]

    def __str__(self):
        return f"Order {self.id} - {self.customer_name}"


class OrderItem(models.Model):
    """Line of an order, with the price snapshot taken at checkout"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items', verbose_name=_('order'))
    product_variant = models.ForeignKey(
        ProductVariant, on_delete=models.PROTECT, related_name='order_items',
        verbose_name=_('product variant')
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)], verbose_name=_('quantity'))

    # Snapshot at order time
    price = models.DecimalField(max_digits=10, decimal_places=2, verbose_name=_('list price'))
    price_at_time = models.DecimalField(max_digits=10, decimal_places=2, verbose_name=_('price at order time'))
    discount = models.DecimalField(max_digits=5, decimal_places=2, default=0, verbose_name=_('discount (%)'))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_items'
        verbose_name = _('order item')
        verbose_name_plural = _('order items')

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError()
        super().save(*args, **kwargs)

    @property
    def total_price(self):
        return self.price_at_time * self.quantity

    def __str__(self):
        return f"{self.product_variant.sku} x {self.quantity}"


class DeliverySettings(models.Model):
    """Singleton row with the delivery policy and store branding"""
    SINGLETON_ID = 1

    min_order_amount = models.DecimalField(
        max_digits=10, decimal_places=2, default=0,
        validators=[MinValueValidator(0)], verbose_name=_('free delivery threshold')
    )
    delivery_cost = models.DecimalField(
        max_digits=10, decimal_places=2, default=0,
        validators=[MinValueValidator(0)], verbose_name=_('delivery cost')
    )
    is_active = models.BooleanField(default=True, verbose_name=_('delivery fee active'))

    # Branding
    store_name = models.CharField(max_length=200, blank=True)
    logo_url = models.URLField(blank=True)
    contact_email = models.EmailField(blank=True)
    contact_phone = models.CharField(max_length=30, blank=True)
    contact_address = models.TextField(blank=True)
    store_description_en = models.TextField(blank=True)
    store_description_fr = models.TextField(blank=True)
    store_description_ar = models.TextField(blank=True)
    facebook_url = models.URLField(blank=True)
    instagram_url = models.URLField(blank=True)
    twitter_url = models.URLField(blank=True)
    tiktok_url = models.URLField(blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'delivery_settings'
        verbose_name = _('delivery settings')
        verbose_name_plural = _('delivery settings')

    def save(self, *args, **kwargs):
        self.pk = self.SINGLETON_ID
        super().save(*args, **kwargs)

    def __str__(self):
        return self.store_name or 'Delivery settings'
