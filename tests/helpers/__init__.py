"""Test helpers for the delivery reconciler suite."""
