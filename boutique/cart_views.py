# Shopping Cart API Views
# Cart lives in the client's signed-cookie session

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework import status
import logging

from . import services
from .cart import CartLine, CartStore
from .checkout import summarize_cart
from .exceptions import BoutiqueError, VariantNotFound
from .pricing import display_amount, effective_unit_price, find_variant, line_total
from .serializers import CartLineInputSerializer

logger = logging.getLogger(__name__)


class NotificationCollector:
    """Notifier that keeps the cart's messages for the response body"""

    def __init__(self):
        self.messages = []

    def __call__(self, level, message):
        self.messages.append({'level': level, 'message': str(message)})

    @property
    def last_message(self):
        return self.messages[-1]['message'] if self.messages else ''


def get_cart_store(request, notifier=None):
    return CartStore(request.session, notifier=notifier)


def cart_payload(cart):
    """Cart lines joined with current catalog data, plus totals"""
    products_by_id = services.get_products_by_ids(line.product_id for line in cart)
    items = []
    for line in cart:
        product = products_by_id.get(line.product_id)
        variant = find_variant(product, line.variant_id) if product else None
        items.append({
            'productId': line.product_id,
            'variantId': line.variant_id,
            'quantity': line.quantity,
            'size': line.size,
            'color': line.color,
            'available': variant is not None and product.is_active,
            'product': {
                'name': product.get_name(),
                'images': product.images[:1],
                'selling_price': str(product.selling_price),
                'discount': str(product.discount) if product.discount is not None else None,
                'final_price': str(display_amount(effective_unit_price(product))),
            } if product else None,
            'stock': variant.stock if variant else 0,
            'line_total': str(display_amount(line_total(line, product))),
        })

    totals = summarize_cart(cart, products_by_id)
    return {
        'items': items,
        'total_items': totals['total_items'],
        'subtotal': str(display_amount(totals['subtotal'])),
        'delivery_cost': str(display_amount(totals['delivery_cost'])),
        'total': str(display_amount(totals['total'])),
    }


def _error_response(error):
    return Response({'success': False, 'message': str(error.message)}, status=error.status_code)


@api_view(['GET'])
@permission_classes([AllowAny])
def get_cart(request):
    """Get current cart contents"""
    try:
        cart = get_cart_store(request)
        return Response(cart_payload(cart))

    except Exception as e:
        logger.error(f"Error loading cart: {str(e)}")
        return Response({'success': False, 'message': 'Error loading cart'},
                        status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['POST'])
@permission_classes([AllowAny])
def add_to_cart(request):
    """Add a product variant to the cart"""
    serializer = CartLineInputSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({'success': False, 'errors': serializer.errors},
                        status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    try:
        product = services.get_product_by_id(data['product_id'])
        variant = find_variant(product, data['variant_id'])
        if variant is None or not product.is_active:
            raise VariantNotFound()

        notifications = NotificationCollector()
        cart = get_cart_store(request, notifier=notifications)
        cart.add_item(CartLine(
            product_id=str(product.id),
            variant_id=str(variant.id),
            quantity=data['quantity'],
            size=variant.size,
            color=variant.color,
        ))

        return Response({
            'success': True,
            'message': notifications.last_message,
            'cart_total_items': cart.total_items,
        })

    except BoutiqueError as e:
        return _error_response(e)
    except Exception as e:
        logger.error(f"Error adding to cart: {str(e)}")
        return Response({'success': False, 'message': 'Error adding to cart'},
                        status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['PUT'])
@permission_classes([AllowAny])
def update_cart_item(request):
    """Update cart line quantity; a quantity below 1 removes the line"""
    serializer = CartLineInputSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({'success': False, 'errors': serializer.errors},
                        status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    notifications = NotificationCollector()
    cart = get_cart_store(request, notifier=notifications)
    cart.update_quantity(data['product_id'], data['variant_id'], data['quantity'])

    return Response({
        'success': True,
        'message': notifications.last_message,
        'cart_total_items': cart.total_items,
    })


@api_view(['DELETE'])
@permission_classes([AllowAny])
def remove_from_cart(request):
    """Remove a line from the cart"""
    product_id = request.data.get('product_id') or request.query_params.get('product_id')
    variant_id = request.data.get('variant_id') or request.query_params.get('variant_id')
    if not product_id or not variant_id:
        return Response({'success': False, 'message': 'product_id and variant_id are required'},
                        status=status.HTTP_400_BAD_REQUEST)

    notifications = NotificationCollector()
    cart = get_cart_store(request, notifier=notifications)
    cart.remove_item(product_id, variant_id)

    return Response({
        'success': True,
        'message': notifications.last_message,
        'cart_total_items': cart.total_items,
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def clear_cart(request):
    """Clear entire cart"""
    notifications = NotificationCollector()
    cart = get_cart_store(request, notifier=notifications)
    cart.clear()

    return Response({
        'success': True,
        'message': notifications.last_message,
    })
