"""HTTP API for the delivery reconciler."""
