"""Assorted display helpers."""

from core import config
from sacco.calculators import nz


def format_currency(amount, currency=None):
    """Whole-unit amount with thousands separators, e.g. ``UGX 1,500,000``."""
    return f"{currency or config.CURRENCY} {nz(amount):,.0f}"


def pretty_label(key):
    """Turn an option key such as ``"savings_only"`` into ``"Savings Only"``."""
    return str(key or "").replace("_", " ").replace("-", " ").title()
