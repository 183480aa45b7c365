"""
Cart totals and order placement.
"""

import logging

from django.db import transaction

from . import services
from .delivery import calculate_delivery_cost
from .exceptions import EmptyCartError, UnavailableItemError
from .pricing import ZERO, display_amount, effective_unit_price, find_variant, subtotal, to_decimal

logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = (
    'customer_name', 'customer_email', 'customer_phone', 'customer_alt_phone',
    'customer_address', 'customer_governorate', 'customer_delegation', 'customer_zip_code',
)


def summarize_cart(cart, products_by_id=None):
    """Subtotal, delivery cost and total for the cart at current catalog prices"""
    if products_by_id is None:
        products_by_id = services.get_products_by_ids(line.product_id for line in cart)
    cart_subtotal = subtotal(cart.lines, products_by_id)
    cost = calculate_delivery_cost(cart_subtotal)
    cart.remember_delivery_cost(cost)
    return {
        'subtotal': cart_subtotal,
        'delivery_cost': cost,
        'total': cart_subtotal + cost,
        'total_items': cart.total_items,
    }


def _resolve_lines(cart, products_by_id):
    resolved = []
    for line in cart:
        product = products_by_id.get(line.product_id)
        variant = find_variant(product, line.variant_id) if product else None
        if product is None or not product.is_active or variant is None:
            raise UnavailableItemError(product_id=line.product_id, variant_id=line.variant_id)
        resolved.append((line, product, variant))
    return resolved


def place_order(cart, customer):
    """
    Turn the cart into a pending order.

    Order items record the list price, the effective unit price and the
    discount at this moment; later catalog changes do not affect them.
    The cart is cleared once the order is stored.
    """
    if cart.is_empty:
        raise EmptyCartError()

    products_by_id = services.get_products_by_ids(line.product_id for line in cart)
    items = [
        {
            'product_variant_id': variant.id,
            'quantity': line.quantity,
            'price': to_decimal(product.selling_price),
            'price_at_time': display_amount(effective_unit_price(product)),
            'discount': to_decimal(product.discount),
        }
        for line, product, variant in _resolve_lines(cart, products_by_id)
    ]

    # Totals come from the stored snapshots so the order adds up to its items
    order_subtotal = sum((item['price_at_time'] * item['quantity'] for item in items), ZERO)
    fee = display_amount(calculate_delivery_cost(order_subtotal))
    cart.remember_delivery_cost(fee)
    total = order_subtotal + fee

    order_fields = {field: customer.get(field, '') for field in CUSTOMER_FIELDS}
    with transaction.atomic():
        order_id = services.insert_order(
            total_amount=total,
            delivery_fee=fee,
            **order_fields
        )
        services.insert_order_items(order_id, items)

    logger.info(f"Order {order_id} placed with {len(items)} lines, total {total}")
    cart.clear()
    return services.get_order(order_id)
