"""Service module exports."""

from . import aggregator, bank_categories, categorizer, periods, savings

__all__ = [
    "aggregator",
    "bank_categories",
    "categorizer",
    "periods",
    "savings",
]
