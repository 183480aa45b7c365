from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
import logging

from . import services
from .cart_views import NotificationCollector, get_cart_store
from .checkout import place_order
from .exceptions import BoutiqueError
from .serializers import (
    CategorySerializer, CheckoutSerializer, DeliverySettingsSerializer,
    OrderSerializer, ProductSerializer, ProductVariantSerializer,
)

logger = logging.getLogger(__name__)


# ==================== Catalog ====================

@api_view(['GET'])
@permission_classes([AllowAny])
def list_products(request):
    """Active products, optionally filtered by ``?category=<id>``"""
    category_id = request.query_params.get('category')
    try:
        if category_id:
            products = services.get_products_by_category(category_id)
        else:
            products = services.get_products()
    except Exception as e:
        logger.error(f"Error fetching products: {str(e)}")
        return Response({'error': 'Error fetching products'},
                        status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response(ProductSerializer(products, many=True).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def product_detail(request, product_id):
    try:
        product = services.get_product_by_id(product_id)
    except BoutiqueError as e:
        return Response({'error': str(e.message)}, status=e.status_code)
    if not product.is_active:
        return Response({'error': 'Product not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(ProductSerializer(product).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def product_variants(request, product_id):
    """Purchasable variants of a product, for size/color pickers"""
    try:
        variants = services.get_product_variants(product_id)
    except BoutiqueError as e:
        return Response({'error': str(e.message)}, status=e.status_code)
    return Response(ProductVariantSerializer(variants, many=True).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def list_categories(request):
    categories = services.get_categories()
    return Response(CategorySerializer(categories, many=True).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def store_settings(request):
    """Delivery policy and branding shown by the storefront"""
    settings_row = services.get_delivery_settings()
    if settings_row is None:
        return Response({'is_active': False})
    return Response(DeliverySettingsSerializer(settings_row).data)


# ==================== Checkout ====================

@api_view(['POST'])
@permission_classes([AllowAny])
def checkout(request):
    """Place an order from the session cart"""
    serializer = CheckoutSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({'success': False, 'errors': serializer.errors},
                        status=status.HTTP_400_BAD_REQUEST)

    notifications = NotificationCollector()
    cart = get_cart_store(request, notifier=notifications)
    try:
        order = place_order(cart, serializer.validated_data)
    except BoutiqueError as e:
        return Response({'success': False, 'message': str(e.message)}, status=e.status_code)
    except Exception as e:
        logger.error(f"Checkout error: {str(e)}")
        return Response({'success': False, 'message': 'Order could not be placed'},
                        status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response({
        'success': True,
        'message': 'Order placed successfully',
        'order': OrderSerializer(order).data,
    }, status=status.HTTP_201_CREATED)
