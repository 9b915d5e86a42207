"""Data models for EV Phase-In Rate projects.

Defines dataclasses for the installed equipment inventory, usage inputs,
revenue and ownership settings, and calculation results. Input models
support JSON serialization via to_dict()/from_dict() methods.
"""

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

CHARGER_LEVELS = ("Level 2", "DCFC (Level 3)")
SITE_VOLTAGES = (208, 240, 480)
OWNERSHIP_TYPES = ("customer-owned", "site-host")
METERING_TYPES = ("separate", "combined")
GROWTH_MODES = ("constant", "manual")
INDUSTRY_TYPES = (
    "Hotel/Hospitality",
    "Multi-Unit Dwelling",
    "Restaurant",
    "Workplace",
    "Dealership",
    "Municipality",
    "Other",
)

# Y1->Y2 through Y9->Y10
PROJECTION_GROWTH_STEPS = 9


def _known_fields(cls, data: dict) -> dict:
    valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
    return {k: v for k, v in data.items() if k in valid_fields}


@dataclass(frozen=True)
class EquipmentEntry:
    """An installed charger line item.

    Entries are immutable; editing a line item replaces it in the
    project's inventory.

    Attributes:
        id: Line item identifier, unique within a project.
        evse_id: Catalog id of the charger model.
        name: Display name copied from the catalog.
        level: "Level 2" or "DCFC (Level 3)".
        site_voltage: Service voltage used to select the rated kW.
        kw_per_charger: Rated power per unit at site_voltage (kW).
        quantity: Number of units installed.
        plugs_per_unit: Number of plugs (ports) per unit.
        individual_circuits: If True, each plug has its own circuit and
            nameplate kW is multiplied by plugs_per_unit.
    """

    id: str = ""
    evse_id: str = ""
    name: str = ""
    level: str = "Level 2"
    site_voltage: int = 240
    kw_per_charger: float = 0.0
    quantity: int = 1
    plugs_per_unit: int = 1
    individual_circuits: bool = False

    def __post_init__(self):
        if self.level not in CHARGER_LEVELS:
            raise ValueError(f"level must be one of {CHARGER_LEVELS}, got {self.level!r}")
        if self.site_voltage not in SITE_VOLTAGES:
            raise ValueError(f"site_voltage must be one of {SITE_VOLTAGES}, got {self.site_voltage}")
        if self.kw_per_charger < 0:
            raise ValueError(f"kw_per_charger must be >= 0, got {self.kw_per_charger}")
        if self.quantity < 0:
            raise ValueError(f"quantity must be >= 0, got {self.quantity}")
        if self.plugs_per_unit < 1:
            raise ValueError(f"plugs_per_unit must be >= 1, got {self.plugs_per_unit}")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "evse_id": self.evse_id,
            "name": self.name,
            "level": self.level,
            "site_voltage": self.site_voltage,
            "kw_per_charger": self.kw_per_charger,
            "quantity": self.quantity,
            "plugs_per_unit": self.plugs_per_unit,
            "individual_circuits": self.individual_circuits,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EquipmentEntry":
        return cls(**_known_fields(cls, data))


@dataclass
class SummerHours:
    """Summer (June-September) daily charging hours per TOU window."""

    super_peak_hours: float = 2.5
    on_peak_hours: float = 4.0
    off_peak_hours: float = 1.5

    @property
    def total(self) -> float:
        return self.super_peak_hours + self.on_peak_hours + self.off_peak_hours

    def as_windows(self) -> Dict[str, float]:
        return {
            "super_peak": self.super_peak_hours,
            "on_peak": self.on_peak_hours,
            "off_peak": self.off_peak_hours,
        }

    def to_dict(self) -> dict:
        return {
            "super_peak_hours": self.super_peak_hours,
            "on_peak_hours": self.on_peak_hours,
            "off_peak_hours": self.off_peak_hours,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SummerHours":
        return cls(**_known_fields(cls, data))


@dataclass
class WinterHours:
    """Winter (October-May) daily charging hours per TOU window."""

    on_peak_hours: float = 6.5
    off_peak_hours: float = 1.5

    @property
    def total(self) -> float:
        return self.on_peak_hours + self.off_peak_hours

    def as_windows(self) -> Dict[str, float]:
        return {
            "on_peak": self.on_peak_hours,
            "off_peak": self.off_peak_hours,
        }

    def to_dict(self) -> dict:
        return {
            "on_peak_hours": self.on_peak_hours,
            "off_peak_hours": self.off_peak_hours,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WinterHours":
        return cls(**_known_fields(cls, data))


@dataclass
class UsageInputs:
    """Expected charging usage for the site.

    The default TOU split is the allocator output for 2 ports x 4 hours:
    summer 30/50/20 and winter 80/20, rounded to the quarter hour.

    Attributes:
        days_in_month: Days per billing month.
        avg_daily_ports_used: Average ports in simultaneous use per day.
        avg_hours_per_port_per_day: Average hours each port is used per day.
        peak_ports_used: Peak simultaneous ports, drives billed demand.
        summer: Summer TOU hour split.
        winter: Winter TOU hour split.
    """

    days_in_month: int = 30
    avg_daily_ports_used: float = 2.0
    avg_hours_per_port_per_day: float = 4.0
    peak_ports_used: float = 4.0
    summer: SummerHours = field(default_factory=SummerHours)
    winter: WinterHours = field(default_factory=WinterHours)

    @property
    def total_daily_charging_hours(self) -> float:
        """Daily port-hours implied by the two coarse inputs."""
        return self.avg_daily_ports_used * self.avg_hours_per_port_per_day

    def to_dict(self) -> dict:
        return {
            "days_in_month": self.days_in_month,
            "avg_daily_ports_used": self.avg_daily_ports_used,
            "avg_hours_per_port_per_day": self.avg_hours_per_port_per_day,
            "peak_ports_used": self.peak_ports_used,
            "summer": self.summer.to_dict(),
            "winter": self.winter.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UsageInputs":
        data = _known_fields(cls, data)
        if "summer" in data:
            data["summer"] = SummerHours.from_dict(data["summer"])
        if "winter" in data:
            data["winter"] = WinterHours.from_dict(data["winter"])
        return cls(**data)


@dataclass
class RevenueSettings:
    """Driver billing and revenue-share settings.

    Attributes:
        cost_to_driver_per_kwh: Price charged to drivers ($/kWh).
        percent_time_charging_drivers: Share of usage that is paid charging (0-100).
        network_fee_percent: Processing fee on gross revenue (0-100).
        customer_rev_share_percent: Customer's share of revenue after the
            network fee (0-100). The operator keeps the complement.
        industry_type: Customer's industry. Hotel/Hospitality enables the
            booking profit fields below.
        additional_monthly_bookings: Extra room bookings per month attributed
            to charging availability.
        booking_profit_per_booking: Profit per booking ($).
        booking_growth_mode: "constant" or "manual".
        booking_growth_rate: Additional bookings per year (constant mode).
        booking_growth_yearly_rates: Nine per-year booking increments (manual mode).
        profit_growth_mode: "constant" or "manual".
        profit_growth_rate: Profit increase per year in percent (constant mode).
        profit_growth_yearly_rates: Nine per-year percent increases (manual mode).
    """

    cost_to_driver_per_kwh: float = 0.40
    percent_time_charging_drivers: float = 100.0
    network_fee_percent: float = 9.0
    customer_rev_share_percent: float = 100.0
    industry_type: str = "Other"

    # Hotel/Hospitality
    additional_monthly_bookings: float = 20.0
    booking_profit_per_booking: float = 100.0
    booking_growth_mode: str = "constant"
    booking_growth_rate: float = 1.0
    booking_growth_yearly_rates: List[float] = field(
        default_factory=lambda: [1.0] * PROJECTION_GROWTH_STEPS
    )
    profit_growth_mode: str = "constant"
    profit_growth_rate: float = 3.0
    profit_growth_yearly_rates: List[float] = field(
        default_factory=lambda: [3.0] * PROJECTION_GROWTH_STEPS
    )

    def __post_init__(self):
        if self.industry_type not in INDUSTRY_TYPES:
            raise ValueError(f"industry_type must be one of {INDUSTRY_TYPES}, got {self.industry_type!r}")
        if self.booking_growth_mode not in GROWTH_MODES:
            raise ValueError(f"booking_growth_mode must be 'constant' or 'manual', got {self.booking_growth_mode}")
        if self.profit_growth_mode not in GROWTH_MODES:
            raise ValueError(f"profit_growth_mode must be 'constant' or 'manual', got {self.profit_growth_mode}")
        for name in ("booking_growth_yearly_rates", "profit_growth_yearly_rates"):
            rates = getattr(self, name)
            if len(rates) != PROJECTION_GROWTH_STEPS:
                raise ValueError(f"{name} must have {PROJECTION_GROWTH_STEPS} values, got {len(rates)}")

    @property
    def is_hotel(self) -> bool:
        return self.industry_type == "Hotel/Hospitality"

    def to_dict(self) -> dict:
        return {
            "cost_to_driver_per_kwh": self.cost_to_driver_per_kwh,
            "percent_time_charging_drivers": self.percent_time_charging_drivers,
            "network_fee_percent": self.network_fee_percent,
            "customer_rev_share_percent": self.customer_rev_share_percent,
            "industry_type": self.industry_type,
            "additional_monthly_bookings": self.additional_monthly_bookings,
            "booking_profit_per_booking": self.booking_profit_per_booking,
            "booking_growth_mode": self.booking_growth_mode,
            "booking_growth_rate": self.booking_growth_rate,
            "booking_growth_yearly_rates": list(self.booking_growth_yearly_rates),
            "profit_growth_mode": self.profit_growth_mode,
            "profit_growth_rate": self.profit_growth_rate,
            "profit_growth_yearly_rates": list(self.profit_growth_yearly_rates),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RevenueSettings":
        return cls(**_known_fields(cls, data))


@dataclass
class SiteHostSettings:
    """Lease terms when the operator owns the equipment on the customer's site.

    Attributes:
        lease_per_space: Monthly lease paid per parking space ($).
        additional_equipment_spaces: Spaces occupied by equipment beyond ports.
        revenue_share_percent: Customer's share of net charging revenue (0-100).
    """

    lease_per_space: float = 200.0
    additional_equipment_spaces: int = 0
    revenue_share_percent: float = 10.0

    def __post_init__(self):
        if self.lease_per_space < 0:
            raise ValueError(f"lease_per_space must be >= 0, got {self.lease_per_space}")
        if self.additional_equipment_spaces < 0:
            raise ValueError(
                f"additional_equipment_spaces must be >= 0, got {self.additional_equipment_spaces}"
            )

    def to_dict(self) -> dict:
        return {
            "lease_per_space": self.lease_per_space,
            "additional_equipment_spaces": self.additional_equipment_spaces,
            "revenue_share_percent": self.revenue_share_percent,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SiteHostSettings":
        return cls(**_known_fields(cls, data))


@dataclass
class UtilizationGrowthSettings:
    """Year-over-year utilization growth for the 10-year projection.

    Attributes:
        mode: "constant" applies constant_rate every year; "manual" uses
            yearly_rates in order.
        constant_rate: Annual growth in percent.
        yearly_rates: Nine percent rates for Y1->Y2 through Y9->Y10.
    """

    mode: str = "constant"
    constant_rate: float = 10.0
    yearly_rates: List[float] = field(
        default_factory=lambda: [10.0] * PROJECTION_GROWTH_STEPS
    )

    def __post_init__(self):
        if self.mode not in GROWTH_MODES:
            raise ValueError(f"mode must be 'constant' or 'manual', got {self.mode}")
        if len(self.yearly_rates) != PROJECTION_GROWTH_STEPS:
            raise ValueError(
                f"yearly_rates must have {PROJECTION_GROWTH_STEPS} values, got {len(self.yearly_rates)}"
            )

    def get_growth_rates(self) -> List[float]:
        """Return the nine percent growth rates in effect for the current mode."""
        if self.mode == "manual":
            return list(self.yearly_rates)
        return [self.constant_rate] * PROJECTION_GROWTH_STEPS

    def to_dict(self) -> dict:
        return {
            "mode": self.mode,
            "constant_rate": self.constant_rate,
            "yearly_rates": list(self.yearly_rates),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UtilizationGrowthSettings":
        return cls(**_known_fields(cls, data))


@dataclass
class Project:
    """Complete EV charging project: configuration, equipment and usage.

    Attributes:
        id: Unique identifier.
        name: Project name.
        customer_name: Site customer.
        project_address: Site address.
        created_at: ISO timestamp of creation.
        updated_at: ISO timestamp of last update.
        utility: Utility id used to look up the rate table.
        service_class: Service class id within the utility's rate table.
        metering_type: "separate" (dedicated EV meter) or "combined".
        ownership_type: "customer-owned" or "site-host".
        site_host_settings: Lease terms, used when ownership is site-host.
        utilization_growth: Growth settings for the 10-year projection.
        chargers: Installed equipment inventory.
        load_management_limit: Optional kW cap enforced by load management.
        usage: Usage inputs and TOU hour splits.
        supply_rate_per_kwh: Energy supply rate ($/kWh); 0.10 when None.
        revenue_settings: Driver billing settings; defaults when None.
    """

    id: str = ""
    name: str = "New Project"
    customer_name: str = ""
    project_address: str = ""
    created_at: str = ""
    updated_at: str = ""
    utility: str = "national-grid"
    service_class: str = "SC-2D"
    metering_type: str = "separate"
    ownership_type: str = "customer-owned"
    site_host_settings: Optional[SiteHostSettings] = None
    utilization_growth: Optional[UtilizationGrowthSettings] = None
    chargers: List[EquipmentEntry] = field(default_factory=list)
    load_management_limit: Optional[float] = None
    usage: UsageInputs = field(default_factory=UsageInputs)
    supply_rate_per_kwh: Optional[float] = 0.10
    revenue_settings: Optional[RevenueSettings] = None

    def __post_init__(self):
        if self.ownership_type not in OWNERSHIP_TYPES:
            raise ValueError(
                f"ownership_type must be 'customer-owned' or 'site-host', got {self.ownership_type}"
            )
        if self.metering_type not in METERING_TYPES:
            raise ValueError(f"metering_type must be 'separate' or 'combined', got {self.metering_type}")

    def is_site_host(self) -> bool:
        return self.ownership_type == "site-host"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "customer_name": self.customer_name,
            "project_address": self.project_address,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "utility": self.utility,
            "service_class": self.service_class,
            "metering_type": self.metering_type,
            "ownership_type": self.ownership_type,
            "site_host_settings": self.site_host_settings.to_dict() if self.site_host_settings else None,
            "utilization_growth": self.utilization_growth.to_dict() if self.utilization_growth else None,
            "chargers": [c.to_dict() for c in self.chargers],
            "load_management_limit": self.load_management_limit,
            "usage": self.usage.to_dict(),
            "supply_rate_per_kwh": self.supply_rate_per_kwh,
            "revenue_settings": self.revenue_settings.to_dict() if self.revenue_settings else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        site_host_data = data.get("site_host_settings")
        growth_data = data.get("utilization_growth")
        revenue_data = data.get("revenue_settings")
        return cls(
            id=data.get("id", ""),
            name=data.get("name", "New Project"),
            customer_name=data.get("customer_name", ""),
            project_address=data.get("project_address", ""),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
            utility=data.get("utility", "national-grid"),
            service_class=data.get("service_class", "SC-2D"),
            metering_type=data.get("metering_type", "separate"),
            ownership_type=data.get("ownership_type", "customer-owned"),
            site_host_settings=SiteHostSettings.from_dict(site_host_data) if site_host_data else None,
            utilization_growth=UtilizationGrowthSettings.from_dict(growth_data) if growth_data else None,
            chargers=[EquipmentEntry.from_dict(c) for c in data.get("chargers", [])],
            load_management_limit=data.get("load_management_limit"),
            usage=UsageInputs.from_dict(data["usage"]) if data.get("usage") else UsageInputs(),
            supply_rate_per_kwh=data.get("supply_rate_per_kwh"),
            revenue_settings=RevenueSettings.from_dict(revenue_data) if revenue_data else None,
        )


# ---- Calculation results ----


@dataclass
class MonthlyCalculation:
    """Average monthly usage and cost for one season.

    Super-peak fields are None for winter, which has no super-peak window.
    """

    season: str
    month: str
    total_kwh: float
    on_peak_kwh: float
    off_peak_kwh: float
    super_peak_kwh: Optional[float]
    demand_kw: float

    # EV PIR delivery cost
    demand_charge: float
    on_peak_charge: float
    off_peak_charge: float
    super_peak_charge: Optional[float]
    total_ev_pir_cost: float

    supply_charge: float
    total_with_supply: float

    # Standard rate comparison (demand only)
    standard_demand_charge: float
    total_standard_cost: float

    savings: float
    savings_percent: float


@dataclass
class SeasonalSummary:
    """Season totals: monthly figures multiplied by the season length."""

    season: str
    months: int
    total_kwh: float
    avg_monthly_kwh: float
    total_ev_pir_cost: float
    total_supply_charge: float
    total_with_supply: float
    total_standard_cost: float
    total_savings: float
    savings_percent: float


@dataclass
class YearlySummary:
    """Annual totals across both seasons."""

    total_kwh: float
    total_ev_pir_cost: float
    total_supply_charge: float
    total_with_supply: float
    total_standard_cost: float
    total_savings: float
    savings_percent: float
    summer: SeasonalSummary
    winter: SeasonalSummary
    tier: int
    load_factor: float


@dataclass
class RatesUsed:
    """Rates applied for the computed tier.

    Energy rates are 0 for the standard rate (tier 0).
    """

    tier: int
    demand_rate: float
    on_peak_rate: float
    off_peak_rate: float
    super_peak_rate: Optional[float]
    standard_demand_rate: float
    supply_rate: float


@dataclass
class RevenueCalculation:
    """Driver charging revenue and its split between customer and operator.

    All monetary values are rounded to the cent after each step.
    """

    cost_to_driver_per_kwh: float
    percent_time_charging_drivers: float
    billable_kwh: float
    gross_revenue: float
    network_fee_percent: float
    network_fee_amount: float
    revenue_after_network_fee: float
    customer_rev_share_percent: float
    operator_rev_share_percent: float
    customer_net_charging_revenue: float
    operator_net_charging_revenue: float
    total_energy_cost: float
    customer_final_revenue: float
    monthly_gross_revenue: float
    monthly_customer_final_revenue: float


@dataclass
class SiteHostCalculation:
    """Site-host settlement: the customer receives the greater of lease and share."""

    total_spaces: int
    lease_per_space: float
    monthly_base_rent: float
    annual_base_rent: float
    revenue_share_percent: float
    gross_charging_revenue: float
    processing_fees: float
    net_charging_revenue: float
    revenue_share_amount: float
    customer_annual_revenue: float
    revenue_source: str  # "base-rent" or "revenue-share"


@dataclass
class YearlyProjection:
    """One year of the 10-year site-host projection.

    Booking fields are only populated for Hotel/Hospitality customers.
    """

    year: int
    utilization_multiplier: float
    annual_kwh: float
    gross_charging_revenue: float
    revenue_share_amount: float
    base_rent: float
    customer_revenue: float
    revenue_source: str
    monthly_bookings: Optional[float] = None
    profit_per_booking: Optional[float] = None
    booking_profit: Optional[float] = None
    total_customer_profit: Optional[float] = None


@dataclass
class CalculationResult:
    """Complete engine output for one project.

    Attributes:
        project: The project the result was computed from.
        tier: Rate tier (0 = standard, 1-4 = EV PIR discount tiers).
        load_factor: Annual load factor as a fraction.
        load_factor_percent: load_factor x 100.
        nameplate_kw: Installed nameplate capacity (kW).
        effective_kw: Capacity after any load-management limit (kW).
        total_ports: Number of charging ports.
        estimated_annual_kwh: Annual energy from weighted daily hours x 365.
        estimated_monthly_kwh: Season-weighted average monthly energy.
        peak_demand_kw: Billed demand, capped at effective_kw.
        monthly: Season name -> average monthly calculation.
        yearly: Seasonal and annual totals.
        rates_used: Rates resolved for the tier.
        revenue: Driver revenue breakdown.
        site_host: Lease-vs-share settlement (site-host projects only).
        ten_year_projection: Utilization projection (site-host projects only).
    """

    project: Project
    tier: int
    load_factor: float
    load_factor_percent: float
    nameplate_kw: float
    effective_kw: float
    total_ports: int
    estimated_annual_kwh: float
    estimated_monthly_kwh: float
    peak_demand_kw: float
    monthly: Dict[str, MonthlyCalculation]
    yearly: YearlySummary
    rates_used: RatesUsed
    revenue: Optional[RevenueCalculation] = None
    site_host: Optional[SiteHostCalculation] = None
    ten_year_projection: List[YearlyProjection] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["project"] = self.project.to_dict()
        return data
