# Shopping Cart Store
# Cart kept in durable client-side storage (the signed-cookie session)

import json
import logging
from dataclasses import dataclass, asdict

from django.conf import settings
from django.utils.translation import gettext as _

from .exceptions import InvalidQuantity
from .pricing import ZERO, to_decimal

logger = logging.getLogger(__name__)

# Notification levels passed to the notifier
SUCCESS = 'success'
INFO = 'info'


@dataclass
class CartLine:
    product_id: str
    variant_id: str
    quantity: int
    size: str = ''
    color: str = ''

    @property
    def key(self):
        return (self.product_id, self.variant_id)

    def to_dict(self):
        data = asdict(self)
        return {
            'productId': data['product_id'],
            'variantId': data['variant_id'],
            'quantity': data['quantity'],
            'size': data['size'],
            'color': data['color'],
        }

    @classmethod
    def from_dict(cls, data):
        quantity = data['quantity']
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValueError(f"Invalid cart quantity: {quantity!r}")
        return cls(
            product_id=str(data['productId']),
            variant_id=str(data['variantId']),
            quantity=quantity,
            size=str(data.get('size') or ''),
            color=str(data.get('color') or ''),
        )


def _storage_key(name, default):
    return getattr(settings, 'BOUTIQUE_SETTINGS', {}).get(name, default)


def serialize_cart(lines):
    return json.dumps([line.to_dict() for line in lines])


def deserialize_cart(raw):
    """
    Parse a persisted cart. Missing or malformed data yields an empty cart.
    """
    if not raw:
        return []
    try:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError("Cart payload is not a list")
        return [CartLine.from_dict(entry) for entry in data]
    except (ValueError, TypeError, KeyError) as e:
        logger.warning(f"Discarding unreadable cart: {str(e)}")
        return []


class CartStore:
    """
    Shopping cart keyed by (product id, variant id).

    ``storage`` is any mutable mapping that survives between requests; the
    views pass ``request.session``. Every mutation is written through to
    storage immediately. ``notifier`` is called as ``notifier(level, message)``
    after each mutation.
    """

    def __init__(self, storage, notifier=None):
        self.storage = storage
        self.notifier = notifier
        self.cart_key = _storage_key('CART_STORAGE_KEY', 'cart')
        self.delivery_cost_key = _storage_key('DELIVERY_COST_STORAGE_KEY', 'deliveryCost')
        self.lines = deserialize_cart(storage.get(self.cart_key))

    def __iter__(self):
        return iter(self.lines)

    def __len__(self):
        return len(self.lines)

    @property
    def is_empty(self):
        return not self.lines

    @property
    def total_items(self):
        return sum(line.quantity for line in self.lines)

    def get_line(self, product_id, variant_id):
        key = (str(product_id), str(variant_id))
        for line in self.lines:
            if line.key == key:
                return line
        return None

    def add_item(self, line):
        """Add a line, merging quantities with an existing (product, variant) line"""
        if line.quantity < 1:
            raise InvalidQuantity()
        existing = self.get_line(line.product_id, line.variant_id)
        if existing:
            existing.quantity += line.quantity
            message = _('Cart quantity updated')
        else:
            self.lines.append(CartLine(
                product_id=str(line.product_id),
                variant_id=str(line.variant_id),
                quantity=line.quantity,
                size=line.size,
                color=line.color,
            ))
            message = _('Item added to cart')
        self._save()
        self._notify(SUCCESS, message)

    def remove_item(self, product_id, variant_id):
        key = (str(product_id), str(variant_id))
        self.lines = [line for line in self.lines if line.key != key]
        self._save()
        self._notify(INFO, _('Item removed from cart'))

    def update_quantity(self, product_id, variant_id, quantity):
        if quantity < 1:
            self.remove_item(product_id, variant_id)
            return
        line = self.get_line(product_id, variant_id)
        if line is None:
            return
        line.quantity = quantity
        self._save()
        self._notify(SUCCESS, _('Cart quantity updated'))

    def clear(self):
        self.lines = []
        self._save()
        self._notify(SUCCESS, _('Cart cleared'))

    @property
    def delivery_cost(self):
        """Last delivery cost computed for this cart"""
        raw = self.storage.get(self.delivery_cost_key)
        if raw is None:
            return ZERO
        try:
            return to_decimal(json.loads(raw))
        except (ValueError, TypeError, ArithmeticError):
            return ZERO

    def remember_delivery_cost(self, cost):
        self.storage[self.delivery_cost_key] = json.dumps(str(cost))

    def _save(self):
        self.storage[self.cart_key] = serialize_cart(self.lines)

    def _notify(self, level, message):
        if self.notifier is not None:
            self.notifier(level, message)
