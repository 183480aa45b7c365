from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from .exceptions import BoutiqueError
from .models import Category, DeliverySettings, Order, OrderItem, OrderStatus, Product, ProductVariant
from .order_lifecycle import OrderLifecycleManager


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name_en', 'name_fr', 'name_ar', 'created_at']
    search_fields = ['name_en', 'name_fr', 'name_ar']
    readonly_fields = ['created_at', 'updated_at']


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 1
    fields = ['size', 'color', 'stock', 'sku', 'is_active']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name_en', 'category', 'selling_price', 'discount', 'is_active', 'created_at']
    list_filter = ['category', 'is_active', 'gender', 'created_at']
    search_fields = ['name_en', 'name_fr', 'name_ar', 'brand', 'variants__sku']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [ProductVariantInline]

    fieldsets = (
        (_('Names'), {
            'fields': ('name_en', 'name_fr', 'name_ar', 'category')
        }),
        (_('Descriptions'), {
            'fields': ('description_en', 'description_fr', 'description_ar'),
            'classes': ('collapse',)
        }),
        (_('Pricing'), {
            'fields': ('original_price', 'selling_price', 'discount')
        }),
        (_('Details'), {
            'fields': ('gender', 'material', 'brand', 'images', 'is_active')
        }),
        (_('Timestamps'), {
            'fields': ('id', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    fields = ['product_variant', 'quantity', 'price', 'price_at_time', 'discount', 'total_price']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'customer_name', 'customer_phone', 'status', 'total_amount', 'created_at']
    list_filter = ['status', 'customer_governorate', 'created_at']
    search_fields = ['customer_name', 'customer_phone', 'customer_email']
    # Status only changes through the actions so stock stays in step
    readonly_fields = ['id', 'status', 'total_amount', 'delivery_fee', 'created_at', 'updated_at']
    inlines = [OrderItemInline]
    actions = ['mark_processing', 'mark_delivered', 'mark_completed', 'mark_cancelled']

    fieldsets = (
        (_('Order'), {
            'fields': ('id', 'status', 'total_amount', 'delivery_fee')
        }),
        (_('Customer'), {
            'fields': ('customer_name', 'customer_email', 'customer_phone', 'customer_alt_phone')
        }),
        (_('Address'), {
            'fields': ('customer_address', 'customer_governorate', 'customer_delegation', 'customer_zip_code')
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )

    def _apply_status(self, request, queryset, new_status):
        lifecycle = OrderLifecycleManager()
        updated = 0
        for order in queryset:
            try:
                lifecycle.set_status(order, new_status)
                updated += 1
            except BoutiqueError as e:
                self.message_user(request, f'{order.pk}: {e.message}', level=messages.ERROR)
        if updated:
            self.message_user(request, _('%(count)d orders updated.') % {'count': updated})

    @admin.action(description=_('Mark selected orders as processing'))
    def mark_processing(self, request, queryset):
        self._apply_status(request, queryset, OrderStatus.PROCESSING)

    @admin.action(description=_('Mark selected orders as delivered'))
    def mark_delivered(self, request, queryset):
        self._apply_status(request, queryset, OrderStatus.DELIVERED)

    @admin.action(description=_('Mark selected orders as completed'))
    def mark_completed(self, request, queryset):
        self._apply_status(request, queryset, OrderStatus.COMPLETED)

    @admin.action(description=_('Mark selected orders as cancelled'))
    def mark_cancelled(self, request, queryset):
        self._apply_status(request, queryset, OrderStatus.CANCELLED)


@admin.register(DeliverySettings)
class DeliverySettingsAdmin(admin.ModelAdmin):
    list_display = ['store_name', 'min_order_amount', 'delivery_cost', 'is_active', 'updated_at']

    def has_add_permission(self, request):
        return not DeliverySettings.objects.exists()
