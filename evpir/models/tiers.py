"""Load factor and EV Phase-In Rate tier classification.

Load factor = total kWh / (capacity kW x hours in period).

Tier assignment by annual load factor:
    <= 10%         -> Tier 1 (maximum discount)
    > 10%, <= 15%  -> Tier 2
    > 15%, <= 20%  -> Tier 3
    > 20%, <= 25%  -> Tier 4 (minimum discount)
    > 25%          -> Tier 0, standard rate (not eligible)
"""

from typing import Optional, Tuple

HOURS_IN_YEAR = 8760
HOURS_IN_MONTH = 730

# Summer is June-September, winter is October-May
SUMMER_MONTHS = 4
WINTER_MONTHS = 8

STANDARD_TIER = 0

# (tier, upper load factor bound in percent)
TIER_THRESHOLDS = ((1, 10.0), (2, 15.0), (3, 20.0), (4, 25.0))

_TIER_RANGES = {
    1: (0.0, 0.10),
    2: (0.10, 0.15),
    3: (0.15, 0.20),
    4: (0.20, 0.25),
}

_TIER_DESCRIPTIONS = {
    1: "Tier 1 (<=10% load factor) - Maximum discount",
    2: "Tier 2 (10-15% load factor)",
    3: "Tier 3 (15-20% load factor)",
    4: "Tier 4 (20-25% load factor) - Minimum discount",
    0: "Standard Rate (>25% load factor) - Not eligible for EV PIR",
}


def calculate_load_factor(total_kwh: float, capacity_kw: float, hours_in_period: float = HOURS_IN_YEAR) -> float:
    r"""Calculate load factor as a fraction.

    Formula:
        LF = \frac{kWh}{kW \times hours}

    Args:
        total_kwh: Energy consumed over the period.
        capacity_kw: Capacity the load factor is measured against.
        hours_in_period: Period length in hours (default one year).

    Returns:
        Load factor as a decimal, 0 when capacity or period is not positive.
    """
    if capacity_kw <= 0 or hours_in_period <= 0:
        return 0.0
    return total_kwh / (capacity_kw * hours_in_period)


def get_capacity_for_load_factor(metering_type: str, nameplate_kw: float,
                                 max_demand_kw: Optional[float] = None) -> float:
    """Capacity basis for the load factor.

    Separately metered sites use nameplate capacity. Combined metering
    uses the 12-month max demand when it is known.
    """
    if metering_type == "separate" or max_demand_kw is None:
        return nameplate_kw
    return max_demand_kw


def determine_tier(load_factor: float) -> int:
    """Map a load factor (decimal) to a tier, 0 meaning standard rate."""
    # 0.15 * 100 is 15.000000000000002 in binary floating point
    percent = round(load_factor * 100, 9)
    for tier, upper in TIER_THRESHOLDS:
        if percent <= upper:
            return tier
    return STANDARD_TIER


def get_tier_description(tier: int) -> str:
    return _TIER_DESCRIPTIONS.get(tier, "Unknown tier")


def get_tier_load_factor_range(tier: int) -> Tuple[float, float]:
    """Return the (min, max) load factor band for a tier as decimals."""
    return _TIER_RANGES.get(tier, (0.25, 1.0))


def get_max_kwh_for_tier(tier: int, capacity_kw: float) -> float:
    """Annual kWh ceiling that keeps a site within a tier."""
    return capacity_kw * HOURS_IN_YEAR * get_tier_load_factor_range(tier)[1]


def get_min_kwh_for_tier(tier: int, capacity_kw: float) -> float:
    """Annual kWh floor of a tier's band."""
    return capacity_kw * HOURS_IN_YEAR * get_tier_load_factor_range(tier)[0]
