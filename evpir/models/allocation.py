"""Time-of-use hour allocation.

Splits the daily port-hours implied by (ports in use x hours per port)
across the TOU windows of each season. Ratio windows take a fixed share
of the total, the remainder window takes the rest, and anything above a
window's capacity overflows to the next window with headroom.

Season windows (hours per day per port):
    Summer (Jun-Sep): super-peak 4 h (2-6 PM), on-peak 12 h, off-peak 8 h
    Winter (Oct-May): on-peak 16 h, off-peak 8 h
"""

import math
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from evpir.models.project import SummerHours, UsageInputs, WinterHours

SUMMER_SUPER_PEAK_WINDOW = 4.0
SUMMER_ON_PEAK_WINDOW = 12.0
SUMMER_OFF_PEAK_WINDOW = 8.0
WINTER_ON_PEAK_WINDOW = 16.0
WINTER_OFF_PEAK_WINDOW = 8.0

SUMMER_SUPER_PEAK_RATIO = 0.30
SUMMER_ON_PEAK_RATIO = 0.50
WINTER_ON_PEAK_RATIO = 0.80

DEFAULT_HOURS_PER_PORT = 4.0

_EPSILON = 1e-9


@dataclass(frozen=True)
class TouWindow:
    """A TOU window within a season.

    Attributes:
        name: Window name ("super_peak", "on_peak", "off_peak").
        capacity_hours: Hours per day the window spans, per port.
        ratio: Target share of the daily total, or None for the
            remainder window.
    """

    name: str
    capacity_hours: float
    ratio: Optional[float] = None


@dataclass(frozen=True)
class SeasonWindows:
    """TOU windows of a season and the order in which overflow is placed."""

    season: str
    windows: Tuple[TouWindow, ...]
    overflow_order: Tuple[str, ...]

    @property
    def remainder(self) -> TouWindow:
        return next(w for w in self.windows if w.ratio is None)


SUMMER_WINDOWS = SeasonWindows(
    season="summer",
    windows=(
        TouWindow("super_peak", SUMMER_SUPER_PEAK_WINDOW, SUMMER_SUPER_PEAK_RATIO),
        TouWindow("on_peak", SUMMER_ON_PEAK_WINDOW, SUMMER_ON_PEAK_RATIO),
        TouWindow("off_peak", SUMMER_OFF_PEAK_WINDOW),
    ),
    overflow_order=("on_peak", "super_peak"),
)

WINTER_WINDOWS = SeasonWindows(
    season="winter",
    windows=(
        TouWindow("on_peak", WINTER_ON_PEAK_WINDOW, WINTER_ON_PEAK_RATIO),
        TouWindow("off_peak", WINTER_OFF_PEAK_WINDOW),
    ),
    overflow_order=("on_peak",),
)


@dataclass(frozen=True)
class TouAllocation:
    """Allocator output for both seasons."""

    summer: SummerHours
    winter: WinterHours


def round_to_quarter(value: float) -> float:
    """Round to the nearest 0.25 hour, halves rounding up."""
    return math.floor(value * 4 + 0.5) / 4


def _floor_to_quarter(value: float) -> float:
    return math.floor(value * 4 + _EPSILON) / 4


def _coerce_non_negative(value) -> float:
    """Convert a user input to a float >= 0; anything unusable becomes 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _distribute(total: float, ports: float, season: SeasonWindows) -> Dict[str, float]:
    """Unrounded split of a season's daily total across its windows."""
    caps = {w.name: ports * w.capacity_hours for w in season.windows}
    hours: Dict[str, float] = {}
    assigned = 0.0
    for window in season.windows:
        if window.ratio is not None:
            hours[window.name] = min(total * window.ratio, caps[window.name])
            assigned += hours[window.name]

    remainder = season.remainder.name
    rest = total - assigned
    if rest > caps[remainder]:
        overflow = rest - caps[remainder]
        rest = caps[remainder]
        for name in season.overflow_order:
            moved = min(max(caps[name] - hours[name], 0.0), overflow)
            hours[name] += moved
            overflow -= moved
            if overflow <= _EPSILON:
                break
    hours[remainder] = rest
    return hours


def _round_season(hours: Dict[str, float], ports: float, season: SeasonWindows) -> Dict[str, float]:
    """Quarter-round a season split while keeping the quarter-rounded total.

    Ratio windows are rounded independently and the remainder window
    absorbs the residue. If the remainder cannot absorb it, the residue
    is spread over the overflow windows in priority order.
    """
    caps = {w.name: _floor_to_quarter(ports * w.capacity_hours) for w in season.windows}
    target = round_to_quarter(sum(hours.values()))
    remainder = season.remainder.name

    rounded = {}
    for window in season.windows:
        if window.name != remainder:
            rounded[window.name] = min(round_to_quarter(hours[window.name]), caps[window.name])
    rounded[remainder] = min(max(target - sum(rounded.values()), 0.0), caps[remainder])

    residue = target - sum(rounded.values())
    if abs(residue) > _EPSILON:
        order = season.overflow_order if residue > 0 else tuple(reversed(season.overflow_order))
        for name in order:
            if residue > 0:
                step = min(caps[name] - rounded[name], residue)
            else:
                step = max(-rounded[name], residue)
            rounded[name] += step
            residue -= step
            if abs(residue) <= _EPSILON:
                break
    return rounded


def allocate_season(ports: float, hours_per_port: float, season: SeasonWindows) -> Dict[str, float]:
    """Allocate one season's daily port-hours across its TOU windows.

    Args:
        ports: Average ports in simultaneous use.
        hours_per_port: Average hours each port is used per day.
        season: Season window definition.

    Returns:
        Dict of window name -> daily hours, each a multiple of 0.25.
    """
    ports = _coerce_non_negative(ports)
    hours_per_port = _coerce_non_negative(hours_per_port)
    total = ports * hours_per_port
    if total <= 0:
        return {w.name: 0.0 for w in season.windows}
    return _round_season(_distribute(total, ports, season), ports, season)


def allocate_tou_hours(ports_in_use: float, hours_per_port: float) -> TouAllocation:
    """Derive the summer and winter TOU hour splits from the coarse inputs.

    Example:
        >>> allocate_tou_hours(2, 4).summer
        SummerHours(super_peak_hours=2.5, on_peak_hours=4.0, off_peak_hours=1.5)
    """
    summer = allocate_season(ports_in_use, hours_per_port, SUMMER_WINDOWS)
    winter = allocate_season(ports_in_use, hours_per_port, WINTER_WINDOWS)
    return TouAllocation(
        summer=SummerHours(
            super_peak_hours=summer["super_peak"],
            on_peak_hours=summer["on_peak"],
            off_peak_hours=summer["off_peak"],
        ),
        winter=WinterHours(
            on_peak_hours=winter["on_peak"],
            off_peak_hours=winter["off_peak"],
        ),
    )


def reallocate_usage(usage: UsageInputs, ports_in_use: float, hours_per_port: float) -> UsageInputs:
    """Return a copy of usage with new coarse inputs and a fresh TOU split.

    Every TOU field is replaced. Later manual edits to the split are kept
    as entered.
    """
    allocation = allocate_tou_hours(ports_in_use, hours_per_port)
    return replace(
        usage,
        avg_daily_ports_used=_coerce_non_negative(ports_in_use),
        avg_hours_per_port_per_day=_coerce_non_negative(hours_per_port),
        summer=allocation.summer,
        winter=allocation.winter,
    )


def derive_hours_per_port(usage: UsageInputs) -> float:
    """Back out hours per port from a stored TOU split.

    Used for projects saved before hours per port was an input.
    """
    ports = usage.avg_daily_ports_used
    if ports <= 0:
        return DEFAULT_HOURS_PER_PORT
    existing_total = max(usage.summer.total, usage.winter.total)
    return round_to_quarter(existing_total / ports)
