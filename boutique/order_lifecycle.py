"""
Order status transitions and the inventory changes tied to them.

Completing an order takes its items out of stock; cancelling an order puts
them back. Stock changes and the status write share one database
transaction, so an order is either fully applied or not at all.
"""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils.translation import gettext_lazy as _

from . import services
from .exceptions import InvalidStatusTransition, OrderNotFound
from .models import Order, OrderItem, OrderStatus

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.DELIVERED, OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: {OrderStatus.CANCELLED},
    OrderStatus.CANCELLED: set(),
}


def can_transition(current, new):
    return new in ALLOWED_TRANSITIONS.get(current, set())


def validate_transition(current, new):
    if new not in OrderStatus.values:
        raise InvalidStatusTransition(_('Invalid order status'), current=current, new=new)
    if not can_transition(current, new):
        raise InvalidStatusTransition(current=current, new=new)


class OrderLifecycleManager:
    """Applies admin status changes to orders"""

    def set_status(self, order, new_status):
        """
        Move ``order`` to ``new_status``.

        The instance is updated right away so callers can render the new
        state; if anything fails it is put back and the error is re-raised.
        """
        previous_status = order.status
        previous_updated_at = order.updated_at
        order.status = new_status
        try:
            with transaction.atomic():
                locked = self._lock(order.pk)
                validate_transition(locked.status, new_status)
                items = list(locked.items.all())

                if new_status == OrderStatus.COMPLETED:
                    self._take_from_stock(items)
                elif new_status == OrderStatus.CANCELLED:
                    self._return_to_stock(items)

                locked.status = new_status
                locked.save(update_fields=['status', 'updated_at'])
        except Exception:
            order.status = previous_status
            order.updated_at = previous_updated_at
            raise

        order.updated_at = locked.updated_at
        logger.info(f"Order {order.pk} moved from {previous_status} to {new_status}")
        return order

    def delete_order(self, order_id):
        """Delete an order and its items together"""
        with transaction.atomic():
            locked = self._lock(order_id)
            OrderItem.objects.filter(order=locked).delete()
            locked.delete()
        logger.info(f"Order {order_id} deleted")

    def _lock(self, order_id):
        try:
            return Order.objects.select_for_update().get(pk=order_id)
        except (Order.DoesNotExist, ValidationError):
            raise OrderNotFound(order_id=str(order_id))

    def _take_from_stock(self, items):
        for item in items:
            services.decrement_variant_stock(item.product_variant_id, item.quantity)

    def _return_to_stock(self, items):
        for item in items:
            services.increment_variant_stock(item.product_variant_id, item.quantity)
