from django.db import transaction
from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

from . import services
from .exceptions import DuplicateSkuError
from .models import Category, DeliverySettings, Order, OrderItem, OrderStatus, Product, ProductVariant
from .pricing import display_amount, effective_unit_price


class CategorySerializer(serializers.ModelSerializer):
    name = serializers.SerializerMethodField()
    product_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Category
        fields = ['id', 'name', 'name_en', 'name_fr', 'name_ar',
                  'description_en', 'description_fr', 'description_ar',
                  'product_count', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_name(self, obj):
        return obj.get_name()


class ProductVariantSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(required=False)

    class Meta:
        model = ProductVariant
        fields = ['id', 'size', 'color', 'stock', 'sku', 'is_active']
        extra_kwargs = {
            # Uniqueness is checked by ProductWriteSerializer across the whole payload
            'sku': {'validators': []},
        }


class ProductSerializer(serializers.ModelSerializer):
    """Storefront product with localized text and active variants"""
    name = serializers.SerializerMethodField()
    description = serializers.SerializerMethodField()
    final_price = serializers.SerializerMethodField()
    category_name = serializers.SerializerMethodField()
    variants = ProductVariantSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'description', 'name_en', 'name_fr', 'name_ar',
                  'selling_price', 'discount', 'final_price', 'gender', 'material',
                  'brand', 'images', 'category', 'category_name', 'is_active',
                  'variants', 'created_at', 'updated_at']

    def get_name(self, obj):
        return obj.get_name()

    def get_description(self, obj):
        return obj.get_description()

    def get_final_price(self, obj):
        return str(display_amount(effective_unit_price(obj)))

    def get_category_name(self, obj):
        return obj.category.get_name() if obj.category else None


class ProductWriteSerializer(serializers.ModelSerializer):
    """Admin product form: product fields plus its full list of variants"""
    variants = ProductVariantSerializer(many=True, required=False)

    class Meta:
        model = Product
        fields = ['id', 'name_en', 'name_fr', 'name_ar',
                  'description_en', 'description_fr', 'description_ar',
                  'original_price', 'selling_price', 'discount', 'gender',
                  'material', 'brand', 'images', 'category', 'is_active', 'variants']
        read_only_fields = ['id']

    def validate_variants(self, variants):
        skus = [variant['sku'] for variant in variants]
        if len(skus) != len(set(skus)):
            raise serializers.ValidationError(_('Each variant must have a unique SKU'))
        try:
            services.check_skus_available(skus, product=self.instance)
        except DuplicateSkuError as e:
            raise serializers.ValidationError(str(e.message))
        return variants

    def create(self, validated_data):
        variants = validated_data.pop('variants', [])
        with transaction.atomic():
            product = Product.objects.create(**validated_data)
            for variant in variants:
                variant.pop('id', None)
                ProductVariant.objects.create(product=product, **variant)
        return product

    def update(self, instance, validated_data):
        variants = validated_data.pop('variants', None)
        with transaction.atomic():
            instance = super().update(instance, validated_data)
            if variants is not None:
                self._sync_variants(instance, variants)
        return instance

    def _sync_variants(self, product, variants):
        current = {variant.id: variant for variant in product.variants.all()}
        kept = set()
        for data in variants:
            variant_id = data.pop('id', None)
            variant = current.get(variant_id)
            if variant is None:
                ProductVariant.objects.create(product=product, **data)
                continue
            for field, value in data.items():
                setattr(variant, field, value)
            variant.save()
            kept.add(variant.id)

        for variant_id, variant in current.items():
            if variant_id in kept:
                continue
            if variant.order_items.exists():
                # Ordered variants stay for order history
                variant.is_active = False
                variant.save(update_fields=['is_active', 'updated_at'])
            else:
                variant.delete()

    def to_representation(self, instance):
        return ProductSerializer(instance, context=self.context).data


class OrderItemSerializer(serializers.ModelSerializer):
    product_variant_id = serializers.UUIDField(read_only=True)
    size = serializers.CharField(source='product_variant.size', read_only=True)
    color = serializers.CharField(source='product_variant.color', read_only=True)
    sku = serializers.CharField(source='product_variant.sku', read_only=True)
    product_id = serializers.UUIDField(source='product_variant.product_id', read_only=True)
    product_name = serializers.SerializerMethodField()
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'product_variant_id', 'product_id', 'product_name', 'size', 'color',
                  'sku', 'quantity', 'price', 'price_at_time', 'discount', 'total_price']

    def get_product_name(self, obj):
        return obj.product_variant.product.get_name()


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Order
        fields = ['id', 'customer_name', 'customer_email', 'customer_phone',
                  'customer_alt_phone', 'customer_address', 'customer_governorate',
                  'customer_delegation', 'customer_zip_code', 'total_amount',
                  'delivery_fee', 'status', 'status_display', 'items',
                  'created_at', 'updated_at']
        read_only_fields = fields


class CheckoutSerializer(serializers.Serializer):
    """Customer details collected at checkout"""
    customer_name = serializers.CharField(max_length=255)
    customer_email = serializers.EmailField(required=False, allow_blank=True, default='')
    customer_phone = serializers.CharField(max_length=30)
    customer_alt_phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')
    customer_address = serializers.CharField()
    customer_governorate = serializers.CharField(max_length=100)
    customer_delegation = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    customer_zip_code = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')


class CartLineInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField()
    quantity = serializers.IntegerField(default=1)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)


class DeliverySettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = DeliverySettings
        fields = ['min_order_amount', 'delivery_cost', 'is_active', 'store_name',
                  'logo_url', 'contact_email', 'contact_phone', 'contact_address',
                  'store_description_en', 'store_description_fr', 'store_description_ar',
                  'facebook_url', 'instagram_url', 'twitter_url', 'tiktok_url', 'updated_at']
        read_only_fields = ['updated_at']
