from decimal import Decimal

from django.test import TestCase

from boutique import services
from boutique.exceptions import (
    ImmutableRecordError, InsufficientStock, InvalidStatusTransition, OrderNotFound,
)
from boutique.models import Order, OrderItem, OrderStatus, ProductVariant
from boutique.order_lifecycle import OrderLifecycleManager, can_transition

from .helpers import create_order, create_product


class TransitionTableTestCase(TestCase):
    def test_allowed_transitions(self):
        self.assertTrue(can_transition(OrderStatus.PENDING, OrderStatus.PROCESSING))
        self.assertTrue(can_transition(OrderStatus.PENDING, OrderStatus.COMPLETED))
        self.assertTrue(can_transition(OrderStatus.PROCESSING, OrderStatus.DELIVERED))
        self.assertTrue(can_transition(OrderStatus.DELIVERED, OrderStatus.COMPLETED))
        self.assertTrue(can_transition(OrderStatus.COMPLETED, OrderStatus.CANCELLED))

    def test_refused_transitions(self):
        self.assertFalse(can_transition(OrderStatus.CANCELLED, OrderStatus.PENDING))
        self.assertFalse(can_transition(OrderStatus.CANCELLED, OrderStatus.COMPLETED))
        self.assertFalse(can_transition(OrderStatus.COMPLETED, OrderStatus.PENDING))
        self.assertFalse(can_transition(OrderStatus.DELIVERED, OrderStatus.PROCESSING))


class OrderLifecycleTestCase(TestCase):
    def setUp(self):
        self.lifecycle = OrderLifecycleManager()
        self.product, self.variant = create_product(name='Shirt', stock=5)
        self.other_product, self.other_variant = create_product(name='Belt', stock=1)

    def stock(self, variant):
        return services.get_variant_stock(variant.id)

    def test_complete_decrements_stock(self):
        order = create_order([(self.variant, 3)])

        self.lifecycle.set_status(order, OrderStatus.COMPLETED)

        self.assertEqual(order.status, OrderStatus.COMPLETED)
        self.assertEqual(Order.objects.get(pk=order.pk).status, OrderStatus.COMPLETED)
        self.assertEqual(self.stock(self.variant), 2)

    def test_insufficient_stock_leaves_everything_unchanged(self):
        """Stock 1, order of 2: completion fails, stock and status untouched"""
        order = create_order([(self.other_variant, 2)])

        with self.assertRaises(InsufficientStock):
            self.lifecycle.set_status(order, OrderStatus.COMPLETED)

        self.assertEqual(self.stock(self.other_variant), 1)
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(Order.objects.get(pk=order.pk).status, OrderStatus.PENDING)

    def test_multi_item_failure_rolls_back_earlier_items(self):
        order = create_order([(self.variant, 2), (self.other_variant, 3)])

        with self.assertRaises(InsufficientStock):
            self.lifecycle.set_status(order, OrderStatus.COMPLETED)

        self.assertEqual(self.stock(self.variant), 5)
        self.assertEqual(self.stock(self.other_variant), 1)
        self.assertEqual(Order.objects.get(pk=order.pk).status, OrderStatus.PENDING)

    def test_cancel_completed_order_restocks(self):
        order = create_order([(self.variant, 2), (self.other_variant, 1)])
        self.lifecycle.set_status(order, OrderStatus.COMPLETED)
        self.assertEqual(self.stock(self.variant), 3)
        self.assertEqual(self.stock(self.other_variant), 0)

        self.lifecycle.set_status(order, OrderStatus.CANCELLED)

        self.assertEqual(self.stock(self.variant), 5)
        self.assertEqual(self.stock(self.other_variant), 1)
        self.assertEqual(Order.objects.get(pk=order.pk).status, OrderStatus.CANCELLED)

    def test_cancel_pending_order_restocks(self):
        """Cancelling puts the ordered quantity back whatever the previous status"""
        order = create_order([(self.variant, 2), (self.other_variant, 1)])

        self.lifecycle.set_status(order, OrderStatus.CANCELLED)

        self.assertEqual(self.stock(self.variant), 7)
        self.assertEqual(self.stock(self.other_variant), 2)

    def test_cancel_processing_order_restocks(self):
        order = create_order([(self.variant, 3)])
        self.lifecycle.set_status(order, OrderStatus.PROCESSING)

        self.lifecycle.set_status(order, OrderStatus.CANCELLED)

        self.assertEqual(self.stock(self.variant), 8)

    def test_intermediate_statuses_keep_stock(self):
        order = create_order([(self.variant, 2)])
        self.lifecycle.set_status(order, OrderStatus.PROCESSING)
        self.lifecycle.set_status(order, OrderStatus.DELIVERED)
        self.assertEqual(self.stock(self.variant), 5)

        self.lifecycle.set_status(order, OrderStatus.COMPLETED)
        self.assertEqual(self.stock(self.variant), 3)

    def test_illegal_transition(self):
        order = create_order([(self.variant, 1)], status=OrderStatus.CANCELLED)

        with self.assertRaises(InvalidStatusTransition):
            self.lifecycle.set_status(order, OrderStatus.COMPLETED)

        self.assertEqual(order.status, OrderStatus.CANCELLED)
        self.assertEqual(self.stock(self.variant), 5)

    def test_unknown_status(self):
        order = create_order([(self.variant, 1)])
        with self.assertRaises(InvalidStatusTransition):
            self.lifecycle.set_status(order, 'shipped')
        self.assertEqual(order.status, OrderStatus.PENDING)

    def test_stale_instance_is_checked_against_database(self):
        """Transition rules apply to the stored status, not the caller's copy"""
        order = create_order([(self.variant, 1)])
        Order.objects.filter(pk=order.pk).update(status=OrderStatus.CANCELLED)

        with self.assertRaises(InvalidStatusTransition):
            self.lifecycle.set_status(order, OrderStatus.COMPLETED)
        self.assertEqual(order.status, OrderStatus.PENDING)

    def test_delete_order_removes_items(self):
        order = create_order([(self.variant, 1), (self.other_variant, 1)])

        self.lifecycle.delete_order(order.pk)

        self.assertFalse(OrderItem.objects.filter(order_id=order.pk).exists())
        with self.assertRaises(OrderNotFound):
            services.get_order(order.pk)
        self.assertTrue(ProductVariant.objects.filter(pk=self.variant.pk).exists())

    def test_delete_missing_order(self):
        order = create_order([(self.variant, 1)])
        self.lifecycle.delete_order(order.pk)
        with self.assertRaises(OrderNotFound):
            self.lifecycle.delete_order(order.pk)


class StockOperationsTestCase(TestCase):
    def setUp(self):
        self.product, self.variant = create_product(stock=4)

    def test_decrement_is_conditional(self):
        services.decrement_variant_stock(self.variant.id, 4)
        self.assertEqual(services.get_variant_stock(self.variant.id), 0)
        with self.assertRaises(InsufficientStock):
            services.decrement_variant_stock(self.variant.id, 1)
        self.assertEqual(services.get_variant_stock(self.variant.id), 0)

    def test_increment(self):
        services.increment_variant_stock(self.variant.id, 3)
        self.assertEqual(services.get_variant_stock(self.variant.id), 7)

    def test_set_stock_rejects_negative(self):
        with self.assertRaises(ValueError):
            services.set_variant_stock(self.variant.id, -1)
        services.set_variant_stock(self.variant.id, 9)
        self.assertEqual(services.get_variant_stock(self.variant.id), 9)


class OrderItemImmutabilityTestCase(TestCase):
    def test_saved_item_cannot_be_changed(self):
        product, variant = create_product()
        order = create_order([(variant, 1)])
        item = order.items.get()

        item.quantity = 5
        with self.assertRaises(ImmutableRecordError):
            item.save()

        self.assertEqual(OrderItem.objects.get(pk=item.pk).quantity, 1)
        self.assertEqual(item.total_price, Decimal('250.00'))
