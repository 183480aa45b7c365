import json
from decimal import Decimal

from django.contrib.auth.models import User
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.test import APIClient

from boutique.cart import CartLine, CartStore, deserialize_cart, serialize_cart
from boutique.exceptions import InvalidQuantity

from .helpers import create_delivery_settings, create_product


class CartStoreTestCase(SimpleTestCase):
    def setUp(self):
        self.storage = {}
        self.notifications = []
        self.cart = CartStore(self.storage, notifier=lambda level, message: self.notifications.append((level, message)))

    def test_add_item_persists_immediately(self):
        self.cart.add_item(CartLine(product_id='p1', variant_id='v1', quantity=2, size='M', color='red'))

        stored = json.loads(self.storage['cart'])
        self.assertEqual(stored, [{
            'productId': 'p1', 'variantId': 'v1', 'quantity': 2, 'size': 'M', 'color': 'red',
        }])
        self.assertEqual(self.notifications, [('success', 'Item added to cart')])

    def test_add_same_variant_merges_quantities(self):
        self.cart.add_item(CartLine(product_id='p1', variant_id='v1', quantity=2))
        self.cart.add_item(CartLine(product_id='p1', variant_id='v1', quantity=3))

        self.assertEqual(len(self.cart), 1)
        self.assertEqual(self.cart.get_line('p1', 'v1').quantity, 5)
        self.assertEqual(self.notifications[-1], ('success', 'Cart quantity updated'))

    def test_different_variants_are_separate_lines(self):
        self.cart.add_item(CartLine(product_id='p1', variant_id='v1', quantity=1))
        self.cart.add_item(CartLine(product_id='p1', variant_id='v2', quantity=1))
        self.assertEqual(len(self.cart), 2)
        self.assertEqual(self.cart.total_items, 2)

    def test_add_rejects_non_positive_quantity(self):
        with self.assertRaises(InvalidQuantity):
            self.cart.add_item(CartLine(product_id='p1', variant_id='v1', quantity=0))
        self.assertNotIn('cart', self.storage)

    def test_update_quantity(self):
        self.cart.add_item(CartLine(product_id='p1', variant_id='v1', quantity=1))
        self.cart.update_quantity('p1', 'v1', 4)
        self.assertEqual(self.cart.get_line('p1', 'v1').quantity, 4)

    def test_update_quantity_below_one_removes_line(self):
        self.cart.add_item(CartLine(product_id='p1', variant_id='v1', quantity=3))
        self.cart.update_quantity('p1', 'v1', 0)

        self.assertTrue(self.cart.is_empty)
        self.assertEqual(json.loads(self.storage['cart']), [])
        self.assertEqual(self.notifications[-1], ('info', 'Item removed from cart'))

    def test_update_absent_line_is_noop(self):
        self.cart.add_item(CartLine(product_id='p1', variant_id='v1', quantity=1))
        stored = self.storage['cart']
        notified = len(self.notifications)

        self.cart.update_quantity('p2', 'v9', 4)

        self.assertIsNone(self.cart.get_line('p2', 'v9'))
        self.assertEqual(self.storage['cart'], stored)
        self.assertEqual(len(self.notifications), notified)

    def test_remove_absent_line_is_noop(self):
        self.cart.add_item(CartLine(product_id='p1', variant_id='v1', quantity=1))
        self.cart.remove_item('p2', 'v9')
        self.assertEqual(len(self.cart), 1)

    def test_clear(self):
        self.cart.add_item(CartLine(product_id='p1', variant_id='v1', quantity=1))
        self.cart.clear()
        self.assertTrue(self.cart.is_empty)
        self.assertEqual(self.notifications[-1], ('success', 'Cart cleared'))

    def test_cart_survives_reload(self):
        """A new store over the same storage sees the same lines"""
        self.cart.add_item(CartLine(product_id='p1', variant_id='v1', quantity=2, size='L'))
        reloaded = CartStore(self.storage)
        self.assertEqual(reloaded.lines, self.cart.lines)

    def test_storage_matches_memory_after_each_mutation(self):
        steps = [
            lambda: self.cart.add_item(CartLine(product_id='p1', variant_id='v1', quantity=2)),
            lambda: self.cart.add_item(CartLine(product_id='p2', variant_id='v7', quantity=1, color='blue')),
            lambda: self.cart.add_item(CartLine(product_id='p1', variant_id='v1', quantity=1)),
            lambda: self.cart.update_quantity('p2', 'v7', 6),
            lambda: self.cart.remove_item('p1', 'v1'),
            lambda: self.cart.update_quantity('p2', 'v7', 0),
        ]
        for step in steps:
            step()
            self.assertEqual(deserialize_cart(self.storage['cart']), self.cart.lines)

    def test_delivery_cost_is_remembered(self):
        self.assertEqual(self.cart.delivery_cost, Decimal('0'))
        self.cart.remember_delivery_cost(Decimal('7.00'))
        self.assertEqual(CartStore(self.storage).delivery_cost, Decimal('7.00'))

    def test_works_without_notifier(self):
        cart = CartStore({})
        cart.add_item(CartLine(product_id='p1', variant_id='v1', quantity=1))
        self.assertEqual(cart.total_items, 1)


class CartSerializationTestCase(SimpleTestCase):
    def test_malformed_storage_yields_empty_cart(self):
        for raw in ['not json', '{"productId": "p1"}', '[{"productId": "p1"}]',
                    '[{"productId": "p1", "variantId": "v1", "quantity": -2}]',
                    '[{"productId": "p1", "variantId": "v1", "quantity": "2"}]']:
            with self.subTest(raw=raw):
                self.assertEqual(deserialize_cart(raw), [])

    def test_missing_storage_yields_empty_cart(self):
        self.assertEqual(deserialize_cart(None), [])
        self.assertTrue(CartStore({}).is_empty)

    def test_optional_fields_default(self):
        lines = deserialize_cart('[{"productId": "p1", "variantId": "v1", "quantity": 1}]')
        self.assertEqual(lines, [CartLine(product_id='p1', variant_id='v1', quantity=1)])
        self.assertEqual(deserialize_cart(serialize_cart(lines)), lines)


class CartAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.product, self.variant = create_product(name='Dress', selling_price='40.00', stock=5)
        create_delivery_settings(min_order_amount='100.00', delivery_cost='7.00')

    def add(self, quantity=1, variant=None):
        variant = variant or self.variant
        return self.client.post('/api/cart/add/', {
            'product_id': str(variant.product_id),
            'variant_id': str(variant.id),
            'quantity': quantity,
        }, format='json')

    def test_add_and_get_cart(self):
        response = self.add(quantity=2)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['message'], 'Item added to cart')
        self.assertEqual(response.data['cart_total_items'], 2)

        response = self.client.get('/api/cart/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        cart = response.data
        self.assertEqual(cart['total_items'], 2)
        self.assertEqual(len(cart['items']), 1)
        self.assertEqual(cart['subtotal'], '80.00')
        self.assertEqual(cart['delivery_cost'], '7.00')
        self.assertEqual(cart['total'], '87.00')

    def test_adding_twice_merges(self):
        self.add(quantity=1)
        response = self.add(quantity=2)
        self.assertEqual(response.data['message'], 'Cart quantity updated')
        self.assertEqual(response.data['cart_total_items'], 3)

    def test_update_to_zero_removes(self):
        self.add(quantity=2)
        response = self.client.put('/api/cart/update/', {
            'product_id': str(self.product.id),
            'variant_id': str(self.variant.id),
            'quantity': 0,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['cart_total_items'], 0)

    def test_remove_and_clear(self):
        self.add(quantity=2)
        response = self.client.delete(
            f'/api/cart/remove/?product_id={self.product.id}&variant_id={self.variant.id}'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['cart_total_items'], 0)

        self.add(quantity=1)
        response = self.client.post('/api/cart/clear/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Cart cleared')
        self.assertEqual(self.client.get('/api/cart/').data['total_items'], 0)

    def test_remove_requires_ids(self):
        response = self.client.delete('/api/cart/remove/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_add_unknown_variant(self):
        other_product, other_variant = create_product(name='Scarf', sku='SKU-SCARF')
        response = self.client.post('/api/cart/add/', {
            'product_id': str(self.product.id),
            'variant_id': str(other_variant.id),
            'quantity': 1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.data['success'])

    def test_add_invalid_quantity(self):
        response = self.add(quantity=0)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cart_is_isolated_per_client(self):
        self.add(quantity=2)
        other = APIClient()
        response = other.get('/api/cart/')
        self.assertEqual(response.data['total_items'], 0)

    def test_staff_user_has_own_cart(self):
        user = User.objects.create_user(username='staff', password='pass12345', is_staff=True)
        self.client.force_authenticate(user=user)
        response = self.add(quantity=1)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
