"""
Catalog and order queries used by the storefront core.

Every function is a single request/response round trip to the database.
Missing rows raise the matching ``BoutiqueError`` subclass; connectivity
errors propagate unchanged, except for ``get_delivery_settings`` which fails
open and returns ``None``.
"""

import logging
import uuid
from decimal import Decimal

from django.db import DatabaseError, transaction
from django.db.models import Count, DecimalField, F, Prefetch, ProtectedError, Sum
from django.utils import timezone
from django.utils.translation import gettext as _

from .exceptions import (
    DuplicateSkuError, InsufficientStock, OrderNotFound, ProductInUse, ProductNotFound, VariantNotFound,
)
from .models import Category, DeliverySettings, Order, OrderItem, OrderStatus, Product, ProductVariant

logger = logging.getLogger(__name__)


# ==================== Products ====================

def _products_with_active_variants():
    active_variants = ProductVariant.objects.filter(is_active=True)
    return Product.objects.select_related('category').prefetch_related(
        Prefetch('variants', queryset=active_variants)
    )


def get_products(category_id=None):
    """Active products, optionally restricted to one category"""
    queryset = _products_with_active_variants().filter(is_active=True)
    if category_id:
        try:
            queryset = queryset.filter(category_id=int(category_id))
        except (TypeError, ValueError):
            return []
    return list(queryset)


def get_products_by_category(category_id):
    return get_products(category_id=category_id)


def _parse_uuid(value):
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def get_product_by_id(product_id):
    parsed = _parse_uuid(product_id)
    if parsed is None:
        raise ProductNotFound(product_id=str(product_id))
    try:
        return _products_with_active_variants().get(id=parsed)
    except Product.DoesNotExist:
        raise ProductNotFound(product_id=str(product_id))


def get_products_by_ids(product_ids):
    """Mapping of ``str(product.id)`` to product for the given ids"""
    ids = {parsed for parsed in map(_parse_uuid, product_ids) if parsed is not None}
    if not ids:
        return {}
    products = _products_with_active_variants().filter(id__in=ids)
    return {str(product.id): product for product in products}


def get_product_variants(product_id):
    """Active variants of an active product"""
    parsed = _parse_uuid(product_id)
    if parsed is None or not Product.objects.filter(id=parsed, is_active=True).exists():
        raise ProductNotFound(product_id=str(product_id))
    return list(ProductVariant.objects.filter(product_id=parsed, is_active=True).order_by('size', 'color'))


def check_skus_available(skus, product=None):
    """Raise ``DuplicateSkuError`` if any SKU belongs to another product's variant"""
    existing = ProductVariant.objects.filter(sku__in=list(skus))
    if product is not None:
        existing = existing.exclude(product=product)
    taken = sorted(existing.values_list('sku', flat=True))
    if taken:
        raise DuplicateSkuError(
            _('SKU already used by another product: %(skus)s') % {'skus': ', '.join(taken)},
            skus=taken,
        )


def delete_product(product_id):
    try:
        deleted, _details = Product.objects.filter(id=product_id).delete()
    except ProtectedError:
        raise ProductInUse(product_id=str(product_id))
    if not deleted:
        raise ProductNotFound(product_id=str(product_id))


# ==================== Categories ====================

def get_categories():
    """Categories with the number of products in each"""
    return list(Category.objects.annotate(product_count=Count('products')).order_by('name_en'))


# ==================== Stock ====================

def get_variant_stock(variant_id):
    stock = ProductVariant.objects.filter(id=variant_id).values_list('stock', flat=True).first()
    if stock is None:
        raise VariantNotFound(variant_id=str(variant_id))
    return stock


def set_variant_stock(variant_id, new_stock):
    if new_stock < 0:
        raise ValueError("Stock cannot be negative")
    updated = ProductVariant.objects.filter(id=variant_id).update(
        stock=new_stock, updated_at=timezone.now()
    )
    if not updated:
        raise VariantNotFound(variant_id=str(variant_id))


def decrement_variant_stock(variant_id, quantity):
    """
    Atomically remove ``quantity`` units from a variant.

    Runs as ``UPDATE ... SET stock = stock - quantity WHERE id = ? AND stock >= quantity``
    so two orders completing against the same variant cannot oversell it.
    """
    updated = ProductVariant.objects.filter(id=variant_id, stock__gte=quantity).update(
        stock=F('stock') - quantity, updated_at=timezone.now()
    )
    if not updated:
        if not ProductVariant.objects.filter(id=variant_id).exists():
            raise VariantNotFound(variant_id=str(variant_id))
        raise InsufficientStock(variant_id=str(variant_id), requested=quantity)
    logger.info(f"Stock of variant {variant_id} decreased by {quantity}")


def increment_variant_stock(variant_id, quantity):
    updated = ProductVariant.objects.filter(id=variant_id).update(
        stock=F('stock') + quantity, updated_at=timezone.now()
    )
    if not updated:
        raise VariantNotFound(variant_id=str(variant_id))
    logger.info(f"Stock of variant {variant_id} restored by {quantity}")


# ==================== Orders ====================

def _orders_with_items():
    return Order.objects.prefetch_related(
        Prefetch(
            'items',
            queryset=OrderItem.objects.select_related('product_variant__product'),
        )
    )


def get_orders(status=None):
    """All orders, newest first, with items, variants and products joined"""
    queryset = _orders_with_items().order_by('-created_at')
    if status:
        queryset = queryset.filter(status=status)
    return list(queryset)


def get_pending_orders():
    return get_orders(status=OrderStatus.PENDING)


def get_order(order_id):
    parsed = _parse_uuid(order_id)
    if parsed is None:
        raise OrderNotFound(order_id=str(order_id))
    try:
        return _orders_with_items().get(id=parsed)
    except Order.DoesNotExist:
        raise OrderNotFound(order_id=str(order_id))


def insert_order(**fields):
    """Create an order row and return its id"""
    fields.setdefault('status', OrderStatus.PENDING)
    order = Order.objects.create(**fields)
    return order.id


def insert_order_items(order_id, items):
    """
    Create order items; each entry is a dict with ``product_variant_id``,
    ``quantity``, ``price``, ``price_at_time`` and ``discount``.
    """
    with transaction.atomic():
        return [OrderItem.objects.create(order_id=order_id, **item) for item in items]


def update_order_status(order_id, status):
    updated = Order.objects.filter(id=order_id).update(status=status, updated_at=timezone.now())
    if not updated:
        raise OrderNotFound(order_id=str(order_id))


# ==================== Dashboard ====================

def get_total_revenue():
    """Sum of ``total_amount`` over completed orders"""
    total = Order.objects.filter(status=OrderStatus.COMPLETED).aggregate(
        total=Sum('total_amount')
    )['total']
    return total or Decimal('0')


def get_orders_count():
    return Order.objects.count()


def get_best_selling_products(limit=5):
    """
    Variants ranked by units sold across all orders, with the revenue
    they brought in (price snapshot times quantity).
    """
    rows = (
        OrderItem.objects
        .values('product_variant_id')
        .annotate(
            total_sold=Sum('quantity'),
            total_revenue=Sum(
                F('price_at_time') * F('quantity'),
                output_field=DecimalField(max_digits=14, decimal_places=2),
            ),
        )
        .order_by('-total_sold')[:limit]
    )
    rows = list(rows)
    variants = ProductVariant.objects.select_related('product').in_bulk(
        [row['product_variant_id'] for row in rows]
    )
    best_sellers = []
    for row in rows:
        variant = variants.get(row['product_variant_id'])
        if variant is None:
            continue
        best_sellers.append({
            'product_variant': variant,
            'total_sold': row['total_sold'],
            'total_revenue': row['total_revenue'] or Decimal('0'),
        })
    return best_sellers


# ==================== Delivery settings ====================

def get_delivery_settings():
    """The delivery settings row, or ``None`` if missing or unreadable"""
    try:
        return DeliverySettings.objects.filter(pk=DeliverySettings.SINGLETON_ID).first()
    except DatabaseError as e:
        logger.warning(f"Error fetching delivery settings: {str(e)}")
        return None


def save_delivery_settings(**fields):
    settings_row, created = DeliverySettings.objects.update_or_create(
        pk=DeliverySettings.SINGLETON_ID, defaults=fields
    )
    logger.info("Delivery settings created" if created else "Delivery settings updated")
    return settings_row
