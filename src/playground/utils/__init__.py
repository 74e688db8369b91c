"""Utility helpers shared across the playground."""

from playground.utils.decorators import traced
from playground.utils.listeners import Unsubscribe, add_listener, notify_listeners

__all__ = [
    "traced",
    "add_listener",
    "notify_listeners",
    "Unsubscribe",
]
