"""
Price resolution for cart lines.

Cart lines store identity only (product, variant, quantity); prices are read
from the catalog whenever a total is needed. A catalog change between
add-to-cart and checkout is therefore reflected in the cart, and only the
order item snapshot freezes the price.

Amounts are accumulated as ``Decimal`` without intermediate rounding;
``display_amount`` rounds to two places for presentation.
"""

from decimal import Decimal, ROUND_HALF_UP

ZERO = Decimal('0')
HUNDRED = Decimal('100')
CENT = Decimal('0.01')


def to_decimal(value):
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def effective_unit_price(product):
    """Selling price after the product's percentage discount, if any"""
    selling_price = to_decimal(product.selling_price)
    discount = getattr(product, 'discount', None)
    if discount is not None and to_decimal(discount) > 0:
        return selling_price * (1 - to_decimal(discount) / HUNDRED)
    return selling_price


def find_variant(product, variant_id):
    variants = getattr(product, 'variants', None)
    if variants is None:
        return None
    if hasattr(variants, 'all'):
        variants = variants.all()
    for variant in variants:
        if str(variant.id) == str(variant_id):
            return variant
    return None


def line_total(line, product):
    """Effective unit price times quantity; 0 when the line cannot be resolved"""
    if product is None or find_variant(product, line.variant_id) is None:
        return ZERO
    return effective_unit_price(product) * line.quantity


def subtotal(lines, products_by_id):
    total = ZERO
    for line in lines:
        product = products_by_id.get(str(line.product_id))
        total += line_total(line, product)
    return total


def display_amount(value):
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
