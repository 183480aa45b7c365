# boutique/urls.py - Storefront and back-office API routes

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from . import cart_views, storefront_views
from .order_management_views import (
    CategoryManagementViewSet, DeliverySettingsView,
    OrderManagementViewSet, ProductManagementViewSet,
)

app_name = 'boutique'

router = DefaultRouter()
router.register(r'orders', OrderManagementViewSet, basename='admin-order')
router.register(r'products', ProductManagementViewSet, basename='admin-product')
router.register(r'categories', CategoryManagementViewSet, basename='admin-category')

urlpatterns = [
    # ==================== STOREFRONT ====================
    path('products/', storefront_views.list_products, name='products'),
    path('products/<str:product_id>/', storefront_views.product_detail, name='product_detail'),
    path('products/<str:product_id>/variants/', storefront_views.product_variants, name='product_variants'),
    path('categories/', storefront_views.list_categories, name='categories'),
    path('store-settings/', storefront_views.store_settings, name='store_settings'),

    # ==================== CART ====================
    path('cart/', cart_views.get_cart, name='cart'),
    path('cart/add/', cart_views.add_to_cart, name='cart_add'),
    path('cart/update/', cart_views.update_cart_item, name='cart_update'),
    path('cart/remove/', cart_views.remove_from_cart, name='cart_remove'),
    path('cart/clear/', cart_views.clear_cart, name='cart_clear'),

    # ==================== CHECKOUT ====================
    path('checkout/', storefront_views.checkout, name='checkout'),

    # ==================== BACK-OFFICE ====================
    path('admin/delivery-settings/', DeliverySettingsView.as_view(), name='admin_delivery_settings'),
    path('admin/', include(router.urls)),
]
