"""Delivery timing and the send/suppress gate."""

from smartnotify.delivery.gate import DeliveryGate
from smartnotify.delivery.timing import TimingRecommender

__all__ = [
    "DeliveryGate",
    "TimingRecommender",
]
