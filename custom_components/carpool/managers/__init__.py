"""Manager modules for Carpool integration.

Managers orchestrate workflows against the store and coordinate engines.
They are stateful, event-aware, and handle cross-cutting concerns.
"""

from .base_manager import BaseManager
from .notification_manager import NotificationManager
from .reconciliation_manager import CommitResult, ReconciliationManager

__all__ = [
    "BaseManager",
    "CommitResult",
    "NotificationManager",
    "ReconciliationManager",
]
