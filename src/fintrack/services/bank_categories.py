"""Display labels for the bank feed's category hierarchy.

The feed classifies each transaction with a list such as
``["Food and Drink", "Restaurants", "Coffee Shop"]``. These helpers collapse
that hierarchy into the short labels budgets are set against.
"""

from __future__ import annotations

from typing import Sequence

OTHER = "Other"

# Primary categories whose label depends on the secondary one.
_PRIMARY_BY_SECONDARY: dict[str, dict[str, str]] = {
    "Payment": {"Rent": "Housing", "Mortgage": "Mortgage"},
    "Service": {
        "Utilities": "Bills & Utilities",
        "Telecommunication Services": "Bills & Utilities",
        "Cable": "Bills & Utilities",
        "Internet": "Bills & Utilities",
    },
    "Transfer": {"Payroll": "Income", "Deposit": "Income"},
}

# Fallback label when the secondary category gives no refinement.
_PRIMARY_DEFAULTS: dict[str, str] = {
    "Deposit": "Income",
    "Payroll": "Income",
    "Payment": "Financial",
    "Food and Drink": "Food & Dining",
    "Transportation": "Transportation",
    "Shops": "Shopping",
    "General Merchandise": "Shopping",
    "Recreation": "Entertainment",
    "Entertainment": "Entertainment",
    "Service": OTHER,
    "Healthcare": "Healthcare",
    "Medical": "Healthcare",
    "Bank Fees": "Financial",
    "Interest": "Financial",
    "Tax": "Financial",
    "Transfer": "Financial",
    "Insurance": "Insurance",
    "Travel": "Travel & Lifestyle",
    "Personal Care": "Personal Care",
    "Government and Non-Profit": "Government & Taxes",
}

_SECONDARY: dict[str, str] = {
    "Gas Stations": "Transportation",
    "Parking": "Transportation",
    "Public Transportation": "Transportation",
    "Ride Share": "Transportation",
    "Taxis": "Transportation",
    "Groceries": "Food & Dining",
    "Restaurants": "Food & Dining",
    "Fast Food": "Food & Dining",
    "Coffee": "Food & Dining",
    "Bars": "Food & Dining",
    "Utilities": "Bills & Utilities",
    "Telecommunication Services": "Bills & Utilities",
    "Cable": "Bills & Utilities",
    "Internet": "Bills & Utilities",
    "Mobile Phone": "Bills & Utilities",
    "Rent": "Housing",
    "Mortgage": "Mortgage",
    "Home Improvement": "Home Improvement",
    "Credit Card": "Financial",
    "Student Loan": "Loan Repayment",
    "Personal Loan": "Loan Repayment",
    "Auto Loan": "Loan Repayment",
    "Life Insurance": "Insurance",
    "Auto Insurance": "Insurance",
    "Health Insurance": "Insurance",
    "Home Insurance": "Insurance",
    "Clothing and Accessories": "Shopping",
    "Electronics": "Shopping",
    "General Merchandise": "Shopping",
    "Online Marketplaces": "Shopping",
    "Gym and Fitness": "Personal Care",
    "Hair and Beauty": "Personal Care",
    "Movies and DVDs": "Entertainment",
    "Music and Audio": "Entertainment",
    "TV and Movies": "Entertainment",
    "Video Games": "Entertainment",
    "Hotels": "Travel & Lifestyle",
    "Airlines and Aviation Services": "Travel & Lifestyle",
    "Pharmacy": "Healthcare",
    "Dentist": "Healthcare",
    "Doctor": "Healthcare",
    "Hospital": "Healthcare",
    "ATM": "Cash & ATM",
    "Check": "Cash & ATM",
}


def display_category(categories: Sequence[str] | None) -> str:
    """Collapse a bank category hierarchy into a display label.

    >>> display_category(["Payment", "Rent"])
    'Housing'
    >>> display_category(["Food and Drink", "Coffee"])
    'Food & Dining'
    >>> display_category([])
    'Other'
    """

    if not categories:
        return OTHER

    primary = categories[0]
    secondary = categories[1] if len(categories) > 1 else None

    refined = _PRIMARY_BY_SECONDARY.get(primary, {})
    if secondary in refined:
        return refined[secondary]
    if primary in _PRIMARY_DEFAULTS:
        return _PRIMARY_DEFAULTS[primary]

    if secondary and secondary != primary and secondary in _SECONDARY:
        return _SECONDARY[secondary]

    return primary or OTHER
