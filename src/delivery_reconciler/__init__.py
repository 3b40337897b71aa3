"""Reconciles Shopify fulfillment tracking with FedEx delivery status."""
