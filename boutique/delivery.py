"""
Delivery fee policy: free above a configured order amount, a flat fee below it,
and no fee at all while the policy is switched off.
"""

import logging

from . import services
from .pricing import ZERO, to_decimal

logger = logging.getLogger(__name__)


def delivery_cost(subtotal, settings):
    if settings is None or not settings.is_active:
        return ZERO
    if to_decimal(subtotal) >= to_decimal(settings.min_order_amount):
        return ZERO
    return to_decimal(settings.delivery_cost)


def calculate_delivery_cost(subtotal):
    """
    Delivery cost for ``subtotal`` under the current settings.

    Settings are read fresh on every call. When they cannot be read the
    delivery is free rather than blocking checkout.
    """
    settings = services.get_delivery_settings()
    if settings is None:
        logger.warning("No delivery settings available, delivery is free")
    return delivery_cost(subtotal, settings)
