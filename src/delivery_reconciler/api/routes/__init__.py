"""FastAPI route modules."""

from delivery_reconciler.api.routes import tracking

__all__ = ["tracking"]
