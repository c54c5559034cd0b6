"""Protocol interfaces for the platform capabilities ChoreSync consumes."""

from .services import (
    DurableStore,
    NetworkSignal,
    OnlineListener,
    RequestTransport,
    Unsubscribe,
)

__all__ = [
    "DurableStore",
    "NetworkSignal",
    "OnlineListener",
    "RequestTransport",
    "Unsubscribe",
]
