from decimal import Decimal

from boutique.models import Category, DeliverySettings, Order, OrderItem, Product, ProductVariant


def create_product(name='T-shirt', selling_price='50.00', discount=None, category=None,
                   stock=10, sku=None, **extra):
    """Product with a single active variant"""
    product = Product.objects.create(
        name_en=name,
        name_fr=f'{name} FR',
        name_ar=f'{name} AR',
        original_price=Decimal('20.00'),
        selling_price=Decimal(selling_price),
        discount=Decimal(discount) if discount is not None else None,
        category=category,
        **extra
    )
    variant = ProductVariant.objects.create(
        product=product,
        size='M',
        color='black',
        stock=stock,
        sku=sku or f'SKU-{name.upper()}-M',
    )
    return product, variant


def create_category(name='Clothing'):
    return Category.objects.create(name_en=name, name_fr=f'{name} FR', name_ar=f'{name} AR')


def create_delivery_settings(min_order_amount='100.00', delivery_cost='10.00', is_active=True):
    return DeliverySettings.objects.create(
        min_order_amount=Decimal(min_order_amount),
        delivery_cost=Decimal(delivery_cost),
        is_active=is_active,
        store_name='Test Boutique',
    )


def create_order(lines, status='pending'):
    """Order with one item per ``(variant, quantity)`` pair"""
    order = Order.objects.create(
        customer_name='Test Customer',
        customer_phone='20123456',
        customer_address='1 Test Street',
        customer_governorate='Tunis',
        customer_delegation='Carthage',
        total_amount=Decimal('0'),
        status=status,
    )
    for variant, quantity in lines:
        OrderItem.objects.create(
            order=order,
            product_variant=variant,
            quantity=quantity,
            price=variant.product.selling_price,
            price_at_time=variant.product.selling_price,
            discount=Decimal('0'),
        )
    return order
