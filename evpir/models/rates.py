"""Utility rate tables and tier rate resolution.

A rate table holds, per service class, the standard demand rate and the
EV Phase-In Rate tiers 1-4. Each tier has a demand rate ($/kW-month) and
energy rates ($/kWh) for the super-peak, on-peak and off-peak windows.
The standard rate (tier 0) bills demand only.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from evpir.errors import ReferenceDataError

SUPER_PEAK = "super_peak"
ON_PEAK = "on_peak"
OFF_PEAK = "off_peak"

SUMMER = "summer"
WINTER = "winter"


@dataclass(frozen=True)
class WindowRates:
    """Demand and TOU energy rates for one discount tier."""

    demand_per_kw: float
    on_peak_per_kwh: float
    off_peak_per_kwh: float
    super_peak_per_kwh: float

    @classmethod
    def from_dict(cls, data: dict) -> "WindowRates":
        return cls(
            demand_per_kw=float(data["demand_per_kw"]),
            on_peak_per_kwh=float(data["on_peak_per_kwh"]),
            off_peak_per_kwh=float(data["off_peak_per_kwh"]),
            super_peak_per_kwh=float(data["super_peak_per_kwh"]),
        )


@dataclass(frozen=True)
class ServiceClassRates:
    """Rates and metadata for one service class.

    Attributes:
        name: Service class id (e.g., "SC-2D").
        description: Short description.
        notes: Guidance on when the class applies.
        standard_demand_rate: Standard (non-PIR) demand rate ($/kW-month).
        tiers: Tier number (1-4) -> discount rates.
        min_kw: Minimum demand for the class, if any.
        max_kw: Maximum demand for the class, if any.
    """

    name: str
    standard_demand_rate: float
    tiers: Dict[int, WindowRates]
    description: str = ""
    notes: str = ""
    min_kw: Optional[float] = None
    max_kw: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ServiceClassRates":
        return cls(
            name=data["name"],
            standard_demand_rate=float(data["standard_demand_rate"]),
            tiers={int(k): WindowRates.from_dict(v) for k, v in data.get("tiers", {}).items()},
            description=data.get("description", ""),
            notes=data.get("notes", ""),
            min_kw=data.get("min_kw"),
            max_kw=data.get("max_kw"),
        )

    def accepts_demand(self, kw: float) -> bool:
        """True if a site demand falls within the class's kW limits."""
        if self.min_kw is not None and kw < self.min_kw:
            return False
        if self.max_kw is not None and kw > self.max_kw:
            return False
        return True


@dataclass(frozen=True)
class RateTable:
    """A utility's rate table keyed by service class id."""

    utility: str
    service_classes: Dict[str, ServiceClassRates] = field(default_factory=dict)
    display_name: str = ""
    effective_date: str = ""
    source: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "RateTable":
        return cls(
            utility=data["utility"],
            service_classes={
                key: ServiceClassRates.from_dict(value)
                for key, value in data.get("service_classes", {}).items()
            },
            display_name=data.get("utility_display_name", data["utility"]),
            effective_date=data.get("effective_date", ""),
            source=data.get("source", ""),
        )

    def get_service_class(self, service_class: str) -> ServiceClassRates:
        """Look up a service class.

        Raises:
            ReferenceDataError: If the class is not in this table.
        """
        try:
            return self.service_classes[service_class]
        except KeyError:
            raise ReferenceDataError(
                f"Service class '{service_class}' not found for {self.utility}. "
                f"Available: {sorted(self.service_classes)}"
            ) from None


@dataclass(frozen=True)
class StandardRate:
    """Tier 0: demand charge only, no energy charges."""

    demand_per_kw: float
    tier: int = 0

    def energy_rate(self, window: str) -> float:
        return 0.0


@dataclass(frozen=True)
class DiscountRate:
    """Tiers 1-4: reduced demand rate plus TOU energy rates.

    super_peak_per_kwh is None when resolved for winter.
    """

    tier: int
    demand_per_kw: float
    on_peak_per_kwh: float
    off_peak_per_kwh: float
    super_peak_per_kwh: Optional[float] = None

    def energy_rate(self, window: str) -> float:
        if window == ON_PEAK:
            return self.on_peak_per_kwh
        if window == OFF_PEAK:
            return self.off_peak_per_kwh
        if window == SUPER_PEAK:
            return self.super_peak_per_kwh or 0.0
        raise ValueError(f"Unknown TOU window: {window}")


TierRate = Union[StandardRate, DiscountRate]


def resolve_tier_rates(rates: ServiceClassRates, tier: int, season: str) -> TierRate:
    """Resolve the rates billed for a tier in a season.

    Args:
        rates: Service class rates.
        tier: 0 for standard, 1-4 for EV PIR tiers.
        season: "summer" or "winter". Super-peak only applies in summer.

    Returns:
        StandardRate for tier 0, otherwise DiscountRate.

    Raises:
        ReferenceDataError: If the table has no rates for the tier.
    """
    if tier == 0:
        return StandardRate(demand_per_kw=rates.standard_demand_rate)
    if tier not in rates.tiers:
        raise ReferenceDataError(f"Tier {tier} not defined for service class '{rates.name}'")
    t = rates.tiers[tier]
    return DiscountRate(
        tier=tier,
        demand_per_kw=t.demand_per_kw,
        on_peak_per_kwh=t.on_peak_per_kwh,
        off_peak_per_kwh=t.off_peak_per_kwh,
        super_peak_per_kwh=t.super_peak_per_kwh if season == SUMMER else None,
    )
