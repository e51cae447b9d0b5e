"""Storefront estimation API for window-treatment workrooms."""
