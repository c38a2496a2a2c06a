# domains/shipments/adapters/__init__.py
from .base import ProviderUnavailable, TrackingAdapter, TrackingObservation
from .bluedart import BluedartAdapter
from .provider import get_adapter, provider_order, public_tracking_url, register_adapter
from .shiprocket import ShiprocketAdapter

register_adapter("shiprocket", ShiprocketAdapter)
register_adapter("bluedart", BluedartAdapter)

__all__ = [
    "BluedartAdapter",
    "ProviderUnavailable",
    "ShiprocketAdapter",
    "TrackingAdapter",
    "TrackingObservation",
    "get_adapter",
    "provider_order",
    "public_tracking_url",
    "register_adapter",
]
