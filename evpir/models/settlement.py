"""Driver revenue and ownership settlement.

Customer-owned sites bill drivers and split net revenue (after the
network fee) between the customer and the operator. On site-host
projects the operator owns the equipment and pays the customer the
greater of a parking-space lease or a share of net charging revenue.

Monetary values are rounded half-up to the cent after every step so that
gross - fee == customer share + operator share exactly.
"""

import math
from typing import List, Optional

import numpy as np

from evpir.models.project import (
    PROJECTION_GROWTH_STEPS,
    RevenueCalculation,
    RevenueSettings,
    SiteHostCalculation,
    SiteHostSettings,
    UtilizationGrowthSettings,
    YearlyProjection,
)

PROJECTION_YEARS = PROJECTION_GROWTH_STEPS + 1

BASE_RENT = "base-rent"
REVENUE_SHARE = "revenue-share"


def round_currency(value: float) -> float:
    """Round to the cent, halves rounding up (toward +inf)."""
    return math.floor(value * 100 + 0.5) / 100


def resolve_revenue_settings(settings: Optional[RevenueSettings]) -> RevenueSettings:
    return settings if settings is not None else RevenueSettings()


def resolve_site_host_settings(settings: Optional[SiteHostSettings]) -> SiteHostSettings:
    return settings if settings is not None else SiteHostSettings()


def resolve_utilization_growth(settings: Optional[UtilizationGrowthSettings]) -> UtilizationGrowthSettings:
    return settings if settings is not None else UtilizationGrowthSettings()


def calculate_revenue(
    annual_kwh: float,
    total_energy_cost: float,
    cost_to_driver_per_kwh: float,
    percent_time_charging_drivers: float,
    network_fee_percent: float,
    customer_rev_share_percent: float,
) -> RevenueCalculation:
    """Calculate driver charging revenue and the customer/operator split.

    Args:
        annual_kwh: Annual energy delivered (kWh).
        total_energy_cost: Annual delivery plus supply cost paid by the customer ($).
        cost_to_driver_per_kwh: Driver price ($/kWh).
        percent_time_charging_drivers: Share of energy billed to drivers (0-100).
        network_fee_percent: Processing fee on gross revenue (0-100).
        customer_rev_share_percent: Customer share of post-fee revenue (0-100).

    Returns:
        RevenueCalculation with every amount rounded to the cent.
    """
    billable_kwh = round_currency(annual_kwh * percent_time_charging_drivers / 100)
    gross = round_currency(billable_kwh * cost_to_driver_per_kwh)
    fee = round_currency(gross * network_fee_percent / 100)
    after_fee = round_currency(gross - fee)

    customer_net = round_currency(after_fee * customer_rev_share_percent / 100)
    # Operator keeps whatever the customer share leaves
    operator_net = round_currency(after_fee - customer_net)
    customer_final = round_currency(customer_net - total_energy_cost)

    return RevenueCalculation(
        cost_to_driver_per_kwh=cost_to_driver_per_kwh,
        percent_time_charging_drivers=percent_time_charging_drivers,
        billable_kwh=billable_kwh,
        gross_revenue=gross,
        network_fee_percent=network_fee_percent,
        network_fee_amount=fee,
        revenue_after_network_fee=after_fee,
        customer_rev_share_percent=customer_rev_share_percent,
        operator_rev_share_percent=100 - customer_rev_share_percent,
        customer_net_charging_revenue=customer_net,
        operator_net_charging_revenue=operator_net,
        total_energy_cost=total_energy_cost,
        customer_final_revenue=customer_final,
        monthly_gross_revenue=round_currency(gross / 12),
        monthly_customer_final_revenue=round_currency(customer_final / 12),
    )


def _lease_or_share(annual_base_rent: float, share_amount: float):
    if annual_base_rent >= share_amount:
        return annual_base_rent, BASE_RENT
    return share_amount, REVENUE_SHARE


def calculate_site_host(
    annual_kwh: float,
    total_ports: int,
    revenue: RevenueSettings,
    site_host: SiteHostSettings,
) -> SiteHostCalculation:
    """Settle a site-host year: the customer receives max(lease, revenue share).

    Args:
        annual_kwh: Annual energy delivered (kWh).
        total_ports: Charging ports, one parking space each.
        revenue: Driver billing settings.
        site_host: Lease terms.

    Returns:
        SiteHostCalculation tagged with the binding revenue source.
    """
    total_spaces = total_ports + site_host.additional_equipment_spaces
    monthly_base_rent = round_currency(total_spaces * site_host.lease_per_space)
    annual_base_rent = round_currency(monthly_base_rent * 12)

    billable_kwh = round_currency(annual_kwh * revenue.percent_time_charging_drivers / 100)
    gross = round_currency(billable_kwh * revenue.cost_to_driver_per_kwh)
    fees = round_currency(gross * revenue.network_fee_percent / 100)
    net = round_currency(gross - fees)
    share_amount = round_currency(net * site_host.revenue_share_percent / 100)

    customer_revenue, source = _lease_or_share(annual_base_rent, share_amount)

    return SiteHostCalculation(
        total_spaces=total_spaces,
        lease_per_space=site_host.lease_per_space,
        monthly_base_rent=monthly_base_rent,
        annual_base_rent=annual_base_rent,
        revenue_share_percent=site_host.revenue_share_percent,
        gross_charging_revenue=gross,
        processing_fees=fees,
        net_charging_revenue=net,
        revenue_share_amount=share_amount,
        customer_annual_revenue=customer_revenue,
        revenue_source=source,
    )


def growth_multipliers(rates_percent: List[float]) -> np.ndarray:
    """Cumulative utilization multipliers, 1.0 for year 1.

    Args:
        rates_percent: Year-over-year growth rates in percent, one per step.

    Returns:
        Array of len(rates_percent) + 1 multipliers.
    """
    steps = 1 + np.asarray(rates_percent, dtype=float) / 100
    return np.concatenate(([1.0], np.cumprod(steps)))


def _booking_series(revenue: RevenueSettings):
    """Monthly bookings and profit per booking for each projection year.

    Bookings grow by a fixed number per year, profit per booking by a
    percentage.
    """
    if revenue.booking_growth_mode == "manual":
        booking_steps = list(revenue.booking_growth_yearly_rates)
    else:
        booking_steps = [revenue.booking_growth_rate] * PROJECTION_GROWTH_STEPS
    if revenue.profit_growth_mode == "manual":
        profit_rates = list(revenue.profit_growth_yearly_rates)
    else:
        profit_rates = [revenue.profit_growth_rate] * PROJECTION_GROWTH_STEPS

    bookings = np.concatenate(([0.0], np.cumsum(booking_steps))) + revenue.additional_monthly_bookings
    profits = growth_multipliers(profit_rates) * revenue.booking_profit_per_booking
    return bookings, profits


def project_utilization(
    base_annual_kwh: float,
    total_ports: int,
    revenue: RevenueSettings,
    site_host: SiteHostSettings,
    growth: UtilizationGrowthSettings,
) -> List[YearlyProjection]:
    """Project site-host settlement over 10 years of utilization growth.

    Year 1 uses the base annual kWh. Each later year scales it by the
    cumulative growth multiplier and settles lease vs. revenue share again.
    Hotel/Hospitality customers also get booking profit figures.

    Args:
        base_annual_kwh: Year 1 annual energy (kWh).
        total_ports: Charging ports on site.
        revenue: Driver billing settings.
        site_host: Lease terms.
        growth: Utilization growth settings.

    Returns:
        Ten YearlyProjection entries, year 1 first.
    """
    multipliers = growth_multipliers(growth.get_growth_rates())
    if revenue.is_hotel:
        bookings, profits = _booking_series(revenue)

    projection = []
    for i, multiplier in enumerate(multipliers):
        annual_kwh = base_annual_kwh * float(multiplier)
        year = calculate_site_host(annual_kwh, total_ports, revenue, site_host)
        booking = {}
        if revenue.is_hotel:
            monthly_bookings = float(bookings[i])
            profit_per_booking = round_currency(float(profits[i]))
            booking_profit = round_currency(monthly_bookings * profit_per_booking * 12)
            booking = dict(
                monthly_bookings=monthly_bookings,
                profit_per_booking=profit_per_booking,
                booking_profit=booking_profit,
                total_customer_profit=round_currency(year.customer_annual_revenue + booking_profit),
            )
        projection.append(YearlyProjection(
            year=i + 1,
            utilization_multiplier=float(multiplier),
            annual_kwh=annual_kwh,
            gross_charging_revenue=year.gross_charging_revenue,
            revenue_share_amount=year.revenue_share_amount,
            base_rent=year.annual_base_rent,
            customer_revenue=year.customer_annual_revenue,
            revenue_source=year.revenue_source,
            **booking,
        ))
    return projection
