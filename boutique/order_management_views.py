from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView
from django.conf import settings
from django.db.models import Count, Prefetch
from django_filters.rest_framework import DjangoFilterBackend
import logging

from . import services
from .exceptions import BoutiqueError
from .models import Category, Order, OrderItem, OrderStatus, Product, ProductVariant
from .order_lifecycle import OrderLifecycleManager
from .serializers import (
    CategorySerializer, DeliverySettingsSerializer, OrderSerializer,
    OrderStatusSerializer, ProductWriteSerializer,
)

logger = logging.getLogger(__name__)


class OrderManagementViewSet(mixins.ListModelMixin,
                             mixins.RetrieveModelMixin,
                             mixins.DestroyModelMixin,
                             viewsets.GenericViewSet):
    """Order back-office: browse, change status, delete, dashboard figures"""

    serializer_class = OrderSerializer
    permission_classes = [IsAdminUser]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_fields = ['status']
    search_fields = ['customer_name', 'customer_phone', 'customer_email']
    ordering_fields = ['created_at', 'status', 'total_amount', 'customer_name']
    ordering = ['-created_at']

    lifecycle = OrderLifecycleManager()

    def get_queryset(self):
        return Order.objects.prefetch_related(
            Prefetch('items', queryset=OrderItem.objects.select_related('product_variant__product'))
        )

    @action(detail=True, methods=['patch'])
    def update_status(self, request, pk=None):
        """Update order status, adjusting stock on completion and cancellation"""
        serializer = OrderStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({
                'success': False,
                'message': 'Invalid status',
                'errors': serializer.errors,
            }, status=status.HTTP_400_BAD_REQUEST)

        order = self.get_object()
        old_status = order.status
        new_status = serializer.validated_data['status']
        try:
            self.lifecycle.set_status(order, new_status)
        except BoutiqueError as e:
            logger.warning(f"Status change {old_status} -> {new_status} refused for order {order.pk}: {e}")
            return Response({
                'success': False,
                'message': str(e.message),
            }, status=e.status_code)
        except Exception as e:
            logger.error(f"Error updating order status: {str(e)}")
            return Response({
                'success': False,
                'message': 'Failed to update order status. Please try again.'
            }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response({
            'success': True,
            'message': f'Order status updated to {new_status}',
            'data': {
                'order_id': str(order.pk),
                'old_status': old_status,
                'new_status': new_status,
            }
        })

    def destroy(self, request, *args, **kwargs):
        order = self.get_object()
        try:
            self.lifecycle.delete_order(order.pk)
        except BoutiqueError as e:
            return Response({'success': False, 'message': str(e.message)}, status=e.status_code)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'])
    def dashboard_stats(self, request):
        """Order and revenue figures for the admin dashboard"""
        try:
            status_counts = dict(
                Order.objects.values_list('status').annotate(count=Count('id'))
            )
            stats = {
                'total_orders': services.get_orders_count(),
                'total_revenue': str(services.get_total_revenue()),
                'total_products': Product.objects.filter(is_active=True).count(),
                'total_categories': Category.objects.count(),
                'low_stock_variants': ProductVariant.objects.filter(is_active=True, stock__lte=1).count(),
                'status_distribution': {
                    value: status_counts.get(value, 0) for value in OrderStatus.values
                },
                'currency': settings.BOUTIQUE_SETTINGS['DEFAULT_CURRENCY'],
            }
            return Response({'success': True, 'data': stats})

        except Exception as e:
            logger.error(f"Error getting order stats: {str(e)}")
            return Response({
                'success': False,
                'message': 'Error loading dashboard statistics'
            }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    @action(detail=False, methods=['get'])
    def pending(self, request):
        """Orders waiting to be handled, newest first"""
        orders = services.get_pending_orders()
        return Response({
            'success': True,
            'data': OrderSerializer(orders, many=True).data,
        })

    @action(detail=False, methods=['get'])
    def best_sellers(self, request):
        limit = settings.BOUTIQUE_SETTINGS['BEST_SELLERS_LIMIT']
        try:
            limit = int(request.query_params.get('limit', limit))
        except ValueError:
            pass

        data = []
        for row in services.get_best_selling_products(limit=limit):
            variant = row['product_variant']
            data.append({
                'variant_id': str(variant.id),
                'product_id': str(variant.product_id),
                'product_name': variant.product.get_name(),
                'size': variant.size,
                'color': variant.color,
                'total_sold': row['total_sold'],
                'total_revenue': str(row['total_revenue']),
            })
        return Response({'success': True, 'data': data})


class ProductManagementViewSet(viewsets.ModelViewSet):
    """Admin product form with nested variants"""

    serializer_class = ProductWriteSerializer
    permission_classes = [IsAdminUser]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_fields = ['category', 'is_active', 'gender']
    search_fields = ['name_en', 'name_fr', 'name_ar', 'brand', 'variants__sku']
    ordering_fields = ['name_en', 'selling_price', 'created_at']
    ordering = ['-created_at']

    def get_queryset(self):
        return Product.objects.select_related('category').prefetch_related('variants')

    def destroy(self, request, *args, **kwargs):
        product = self.get_object()
        try:
            services.delete_product(product.pk)
        except BoutiqueError as e:
            return Response({'success': False, 'message': str(e.message)}, status=e.status_code)
        return Response(status=status.HTTP_204_NO_CONTENT)


class CategoryManagementViewSet(viewsets.ModelViewSet):
    serializer_class = CategorySerializer
    permission_classes = [IsAdminUser]
    filter_backends = [SearchFilter, OrderingFilter]
    search_fields = ['name_en', 'name_fr', 'name_ar']
    ordering = ['name_en']

    def get_queryset(self):
        return Category.objects.annotate(product_count=Count('products'))


class DeliverySettingsView(APIView):
    """Read and upsert the delivery settings row"""
    permission_classes = [IsAdminUser]

    def get(self, request):
        settings_row = services.get_delivery_settings()
        if settings_row is None:
            return Response({'success': False, 'message': 'Delivery settings not configured'},
                            status=status.HTTP_404_NOT_FOUND)
        return Response(DeliverySettingsSerializer(settings_row).data)

    def put(self, request):
        serializer = DeliverySettingsSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response({'success': False, 'errors': serializer.errors},
                            status=status.HTTP_400_BAD_REQUEST)
        settings_row = services.save_delivery_settings(**serializer.validated_data)
        return Response({
            'success': True,
            'message': 'Settings updated',
            'data': DeliverySettingsSerializer(settings_row).data,
        })
