"""Tatua: support ticket desk with a generic data grid and encrypted storage."""

__version__ = "1.0.0"
