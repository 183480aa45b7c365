"""
Error taxonomy for the storefront core.

Every error raised by the cart, pricing, checkout and order lifecycle code is a
``BoutiqueError``: recoverable, carrying a user-facing message and the HTTP
status the API layer should answer with.
"""

from django.utils.translation import gettext_lazy as _
from rest_framework import status


class BoutiqueError(Exception):
    """Base class for recoverable storefront errors"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = _('The operation could not be completed')

    def __init__(self, message=None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(str(self.message))


class ProductNotFound(BoutiqueError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = _('Product not found')


class VariantNotFound(BoutiqueError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = _('Product variant not found')


class OrderNotFound(BoutiqueError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = _('Order not found')


class InsufficientStock(BoutiqueError):
    status_code = status.HTTP_409_CONFLICT
    default_message = _('Insufficient stock for one or more products')


class InvalidStatusTransition(BoutiqueError):
    status_code = status.HTTP_409_CONFLICT
    default_message = _('This status change is not allowed')


class EmptyCartError(BoutiqueError):
    default_message = _('Your cart is empty')


class UnavailableItemError(BoutiqueError):
    default_message = _('One or more items in your cart are no longer available')


class DuplicateSkuError(BoutiqueError):
    default_message = _('SKU must be unique')


class InvalidQuantity(BoutiqueError):
    default_message = _('Quantity must be at least 1')


class ImmutableRecordError(BoutiqueError):
    status_code = status.HTTP_409_CONFLICT
    default_message = _('Order items cannot be changed after the order is placed')


class ProductInUse(BoutiqueError):
    status_code = status.HTTP_409_CONFLICT
    default_message = _('This product has orders and can only be deactivated')
