"""Service layer: delivery classification and order reconciliation."""

from delivery_reconciler.services.delivery_classifier import classify, is_delivered
from delivery_reconciler.services.reconciliation import ReconciliationEngine

__all__ = [
    "classify",
    "is_delivered",
    "ReconciliationEngine",
]
