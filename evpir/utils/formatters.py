"""Number, currency and rate formatting utilities for EV PIR results."""

from typing import Optional


def format_currency(value: float, decimals: int = 2, prefix: str = "$") -> str:
    """Format a number as currency string.

    Negative values keep the sign before the symbol.

    Args:
        value: The numeric value to format.
        decimals: Number of decimal places.
        prefix: Currency symbol prefix.

    Returns:
        Formatted currency string (e.g., "$1,234.57" or "-$12.00").
    """
    sign = "-" if value < 0 else ""
    return f"{sign}{prefix}{abs(value):,.{decimals}f}"


def format_percent(value: float, decimals: int = 1) -> str:
    """Format a percentage value (already x100) as a string, e.g. 16.7 -> "16.7%"."""
    return f"{value:,.{decimals}f}%"


def format_number(value: float, decimals: int = 0) -> str:
    return f"{value:,.{decimals}f}"


def format_kwh(value: float, decimals: int = 0) -> str:
    return f"{value:,.{decimals}f} kWh"


def format_kw(value: float, decimals: int = 1) -> str:
    return f"{value:,.{decimals}f} kW"


def format_rate(value: Optional[float], unit: str = "kWh") -> str:
    """Format a utility rate.

    Energy rates ($/kWh) show 5 decimals, demand rates ($/kW) show 2.
    """
    if value is None:
        return "N/A"
    decimals = 5 if unit == "kWh" else 2
    return f"${value:.{decimals}f}/{unit}"


def get_tier_label(tier: int) -> str:
    return "Standard Rate" if tier == 0 else f"Tier {tier}"


def format_season(season: str) -> str:
    """Season name with its months, e.g. "Summer (Jun-Sep)"."""
    months = {"summer": "Jun-Sep", "winter": "Oct-May"}
    return f"{season.capitalize()} ({months.get(season, '')})"
