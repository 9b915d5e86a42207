"""Billing engine for EV Phase-In Rate projects.

Converts equipment and usage inputs into monthly, seasonal and annual
delivery costs under the EV PIR tier the site qualifies for, compares
them with the standard demand-only rate, and settles driver revenue.

Pipeline:
    equipment -> capacity -> load factor -> tier -> season bills
    -> annual totals -> revenue / site-host settlement
"""

import logging
from functools import lru_cache
from typing import Dict, List, Optional

from evpir.data.libraries import ReferenceData
from evpir.errors import ReferenceDataError
from evpir.models.equipment import (
    calculate_avg_kw_per_port,
    calculate_effective_kw,
    calculate_nameplate_kw,
    calculate_total_ports,
)
from evpir.models.project import (
    CalculationResult,
    EquipmentEntry,
    MonthlyCalculation,
    Project,
    RatesUsed,
    SeasonalSummary,
    YearlySummary,
)
from evpir.models.rates import OFF_PEAK, ON_PEAK, SUMMER, SUPER_PEAK, WINTER, TierRate, resolve_tier_rates
from evpir.models.settlement import (
    calculate_revenue,
    calculate_site_host,
    project_utilization,
    resolve_revenue_settings,
    resolve_site_host_settings,
    resolve_utilization_growth,
)
from evpir.models.tiers import (
    HOURS_IN_YEAR,
    SUMMER_MONTHS,
    WINTER_MONTHS,
    calculate_load_factor,
    determine_tier,
)

logger = logging.getLogger(__name__)

DEFAULT_SUPPLY_RATE = 0.10
DAYS_IN_YEAR = 365

_MONTH_LABELS = {SUMMER: "Summer (avg)", WINTER: "Winter (avg)"}


@lru_cache(maxsize=1)
def _default_reference() -> ReferenceData:
    return ReferenceData()


def calculate_weighted_daily_hours(summer_daily_hours: float, winter_daily_hours: float) -> float:
    """Average daily charging hours weighted by season length (4 summer, 8 winter months)."""
    return (summer_daily_hours * SUMMER_MONTHS + winter_daily_hours * WINTER_MONTHS) / 12


def calculate_monthly_kwh(chargers: List[EquipmentEntry], daily_hours: float, days_in_month: int) -> float:
    """Monthly energy = daily port-hours x avg kW per port x days in month."""
    return daily_hours * calculate_avg_kw_per_port(chargers) * days_in_month


def calculate_annual_kwh(chargers: List[EquipmentEntry], daily_hours: float) -> float:
    """Annual energy = daily port-hours x avg kW per port x 365."""
    return daily_hours * calculate_avg_kw_per_port(chargers) * DAYS_IN_YEAR


def calculate_load_factor_from_usage(chargers: List[EquipmentEntry], daily_hours: float,
                                     load_management_limit: Optional[float] = None) -> float:
    r"""Annual load factor implied by the usage inputs.

    Formula:
        LF = \frac{hours_{daily} \times \overline{kW}_{port} \times 365}{kW_{effective} \times 8760}

    Args:
        chargers: Installed equipment.
        daily_hours: Season-weighted daily port-hours.
        load_management_limit: Optional kW cap.

    Returns:
        Load factor as a decimal, 0 when there is no capacity.
    """
    effective_kw = calculate_effective_kw(calculate_nameplate_kw(chargers), load_management_limit)
    return calculate_load_factor(calculate_annual_kwh(chargers, daily_hours), effective_kw, HOURS_IN_YEAR)


def calculate_peak_demand_kw(chargers: List[EquipmentEntry], peak_ports_used: float,
                             load_management_limit: Optional[float] = None) -> float:
    """Billed demand: peak ports x avg kW per port, never above effective capacity."""
    effective_kw = calculate_effective_kw(calculate_nameplate_kw(chargers), load_management_limit)
    return min(peak_ports_used * calculate_avg_kw_per_port(chargers), effective_kw)


def distribute_kwh(total_kwh: float, window_hours: Dict[str, float]) -> Dict[str, float]:
    """Split energy across TOU windows in proportion to their hours.

    All windows get 0 when the season has no hours.
    """
    total_hours = sum(window_hours.values())
    if total_hours == 0:
        return {name: 0.0 for name in window_hours}
    return {name: total_kwh * hours / total_hours for name, hours in window_hours.items()}


def calculate_standard_monthly(demand_kw: float, standard_demand_rate: float) -> float:
    """Standard rate monthly cost (demand only)."""
    return demand_kw * standard_demand_rate


def calculate_season_monthly(
    season: str,
    monthly_kwh: float,
    window_hours: Dict[str, float],
    demand_kw: float,
    rate: TierRate,
    standard_demand_rate: float,
    supply_rate: float,
) -> MonthlyCalculation:
    """Bill an average month of a season under the tier rate.

    Args:
        season: "summer" or "winter".
        monthly_kwh: Energy for an average month of the season.
        window_hours: Stored TOU hours for the season, by window name.
        demand_kw: Billed peak demand.
        rate: Tier rate for the season.
        standard_demand_rate: Standard demand rate for the comparison.
        supply_rate: Energy supply rate ($/kWh).

    Returns:
        MonthlyCalculation; super-peak fields are None when the season
        has no super-peak window.
    """
    kwh = distribute_kwh(monthly_kwh, window_hours)
    charges = {name: value * rate.energy_rate(name) for name, value in kwh.items()}
    demand_charge = demand_kw * rate.demand_per_kw
    total = demand_charge + sum(charges.values())

    standard = calculate_standard_monthly(demand_kw, standard_demand_rate)
    savings = standard - total
    supply_charge = monthly_kwh * supply_rate

    return MonthlyCalculation(
        season=season,
        month=_MONTH_LABELS[season],
        total_kwh=monthly_kwh,
        on_peak_kwh=kwh[ON_PEAK],
        off_peak_kwh=kwh[OFF_PEAK],
        super_peak_kwh=kwh.get(SUPER_PEAK),
        demand_kw=demand_kw,
        demand_charge=demand_charge,
        on_peak_charge=charges[ON_PEAK],
        off_peak_charge=charges[OFF_PEAK],
        super_peak_charge=charges.get(SUPER_PEAK),
        total_ev_pir_cost=total,
        supply_charge=supply_charge,
        total_with_supply=total + supply_charge,
        standard_demand_charge=standard,
        total_standard_cost=standard,
        savings=savings,
        savings_percent=savings / standard * 100 if standard > 0 else 0.0,
    )


def summarize_season(monthly: MonthlyCalculation, months: int) -> SeasonalSummary:
    """Multiply an average month out to the whole season."""
    total_cost = monthly.total_ev_pir_cost * months
    supply = monthly.supply_charge * months
    return SeasonalSummary(
        season=monthly.season,
        months=months,
        total_kwh=monthly.total_kwh * months,
        avg_monthly_kwh=monthly.total_kwh,
        total_ev_pir_cost=total_cost,
        total_supply_charge=supply,
        total_with_supply=total_cost + supply,
        total_standard_cost=monthly.total_standard_cost * months,
        total_savings=monthly.savings * months,
        savings_percent=monthly.savings_percent,
    )


def summarize_year(summer: SeasonalSummary, winter: SeasonalSummary, tier: int,
                   load_factor: float) -> YearlySummary:
    """Add the two seasons into annual totals."""
    ev_pir_cost = summer.total_ev_pir_cost + winter.total_ev_pir_cost
    supply = summer.total_supply_charge + winter.total_supply_charge
    standard = summer.total_standard_cost + winter.total_standard_cost
    savings = standard - ev_pir_cost
    return YearlySummary(
        total_kwh=summer.total_kwh + winter.total_kwh,
        total_ev_pir_cost=ev_pir_cost,
        total_supply_charge=supply,
        total_with_supply=ev_pir_cost + supply,
        total_standard_cost=standard,
        total_savings=savings,
        savings_percent=savings / standard * 100 if standard > 0 else 0.0,
        summer=summer,
        winter=winter,
        tier=tier,
        load_factor=load_factor,
    )


def compute_result(project: Project, reference: Optional[ReferenceData] = None) -> Optional[CalculationResult]:
    """Compute the full billing and settlement result for a project.

    Billing uses the stored TOU hours as entered, even if a season does not
    add up to ports x hours per port.

    Args:
        project: Project to evaluate. Not modified.
        reference: Rate and equipment reference data. Defaults to the
            bundled resources.

    Returns:
        CalculationResult, or None when no equipment capacity is installed.

    Raises:
        ReferenceDataError: If the project's utility or service class is
            not in the reference data.
    """
    if reference is None:
        reference = _default_reference()

    try:
        sc_rates = reference.get_service_class_rates(project.utility, project.service_class)
    except ReferenceDataError as exc:
        logger.error("Cannot compute project %r: %s", project.name, exc)
        raise

    nameplate_kw = calculate_nameplate_kw(project.chargers)
    if nameplate_kw == 0:
        logger.debug("Project %r has no equipment capacity; nothing to compute", project.name)
        return None

    effective_kw = calculate_effective_kw(nameplate_kw, project.load_management_limit)
    total_ports = calculate_total_ports(project.chargers)
    usage = project.usage

    summer_hours = usage.summer.as_windows()
    winter_hours = usage.winter.as_windows()
    summer_daily = usage.summer.total
    winter_daily = usage.winter.total
    weighted_daily = calculate_weighted_daily_hours(summer_daily, winter_daily)

    summer_kwh = calculate_monthly_kwh(project.chargers, summer_daily, usage.days_in_month)
    winter_kwh = calculate_monthly_kwh(project.chargers, winter_daily, usage.days_in_month)
    estimated_monthly_kwh = (summer_kwh * SUMMER_MONTHS + winter_kwh * WINTER_MONTHS) / 12
    estimated_annual_kwh = calculate_annual_kwh(project.chargers, weighted_daily)

    load_factor = calculate_load_factor_from_usage(project.chargers, weighted_daily, project.load_management_limit)
    tier = determine_tier(load_factor)
    peak_demand_kw = calculate_peak_demand_kw(project.chargers, usage.peak_ports_used, project.load_management_limit)
    supply_rate = project.supply_rate_per_kwh if project.supply_rate_per_kwh is not None else DEFAULT_SUPPLY_RATE

    summer_rate = resolve_tier_rates(sc_rates, tier, SUMMER)
    winter_rate = resolve_tier_rates(sc_rates, tier, WINTER)

    summer_monthly = calculate_season_monthly(
        SUMMER, summer_kwh, summer_hours, peak_demand_kw, summer_rate, sc_rates.standard_demand_rate, supply_rate
    )
    winter_monthly = calculate_season_monthly(
        WINTER, winter_kwh, winter_hours, peak_demand_kw, winter_rate, sc_rates.standard_demand_rate, supply_rate
    )
    yearly = summarize_year(
        summarize_season(summer_monthly, SUMMER_MONTHS),
        summarize_season(winter_monthly, WINTER_MONTHS),
        tier,
        load_factor,
    )

    rates_used = RatesUsed(
        tier=tier,
        demand_rate=summer_rate.demand_per_kw,
        on_peak_rate=summer_rate.energy_rate(ON_PEAK),
        off_peak_rate=summer_rate.energy_rate(OFF_PEAK),
        super_peak_rate=summer_rate.energy_rate(SUPER_PEAK),
        standard_demand_rate=sc_rates.standard_demand_rate,
        supply_rate=supply_rate,
    )

    revenue_settings = resolve_revenue_settings(project.revenue_settings)
    revenue = calculate_revenue(
        yearly.total_kwh,
        yearly.total_with_supply,
        revenue_settings.cost_to_driver_per_kwh,
        revenue_settings.percent_time_charging_drivers,
        revenue_settings.network_fee_percent,
        revenue_settings.customer_rev_share_percent,
    )

    site_host = None
    projection = []
    if project.is_site_host():
        host_settings = resolve_site_host_settings(project.site_host_settings)
        growth = resolve_utilization_growth(project.utilization_growth)
        site_host = calculate_site_host(yearly.total_kwh, total_ports, revenue_settings, host_settings)
        projection = project_utilization(yearly.total_kwh, total_ports, revenue_settings, host_settings, growth)

    return CalculationResult(
        project=project,
        tier=tier,
        load_factor=load_factor,
        load_factor_percent=load_factor * 100,
        nameplate_kw=nameplate_kw,
        effective_kw=effective_kw,
        total_ports=total_ports,
        estimated_annual_kwh=estimated_annual_kwh,
        estimated_monthly_kwh=estimated_monthly_kwh,
        peak_demand_kw=peak_demand_kw,
        monthly={SUMMER: summer_monthly, WINTER: winter_monthly},
        yearly=yearly,
        rates_used=rates_used,
        revenue=revenue,
        site_host=site_host,
        ten_year_projection=projection,
    )
