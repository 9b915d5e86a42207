"""
EV PIR Estimator CLI - EV Phase-In Rate bill and revenue estimates

Computes the EV Phase-In Rate tier, seasonal delivery bills, savings
against the standard demand rate, and driver revenue for an EV charging
site. Projects can be loaded from and saved to JSON, and results
exported to an Excel workbook.

Usage:
    evpir --charger l2-48a-sp-pedestal --quantity 2     # Quick estimate
    evpir --load project.json --ports 3 --hours 5       # Re-allocate usage
    evpir --load project.json --excel results.xlsx      # Export to Excel
    evpir --list-equipment                              # Show catalog
"""

import argparse
import logging
import sys
from typing import List, Optional

from evpir.data.libraries import ReferenceData
from evpir.data.storage import load_project, save_project
from evpir.data.validators import validate_project
from evpir.errors import EngineError
from evpir.models.allocation import reallocate_usage
from evpir.models.calculations import compute_result
from evpir.models.equipment import suggest_cost_to_driver
from evpir.models.project import CalculationResult, Project, RevenueSettings
from evpir.models.tiers import get_tier_description
from evpir.reports.workbook import export_results_workbook
from evpir.utils.formatters import (
    format_currency,
    format_kw,
    format_kwh,
    format_percent,
    format_rate,
    format_season,
    get_tier_label,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# ============================================================================
# FORMATTING UTILITIES
# ============================================================================

def print_header(text: str, char: str = "=") -> None:
    """Print a formatted section header."""
    width = 70
    print(f"\n{char * width}")
    print(f" {text}")
    print(f"{char * width}")


def print_subheader(text: str) -> None:
    """Print a formatted subsection header."""
    print(f"\n--- {text} ---")


def print_table(headers: List[str], rows: List[List[str]],
                col_widths: Optional[List[int]] = None) -> None:
    """Print a formatted ASCII table."""
    if col_widths is None:
        col_widths = [max(len(str(row[i])) for row in [headers] + rows) + 2
                      for i in range(len(headers))]

    header_line = "|".join(h.center(w) for h, w in zip(headers, col_widths))
    separator = "+".join("-" * w for w in col_widths)
    print(f"+{separator}+")
    print(f"|{header_line}|")
    print(f"+{separator}+")

    for row in rows:
        row_line = "|".join(str(cell).center(w) for cell, w in zip(row, col_widths))
        print(f"|{row_line}|")
    print(f"+{separator}+")


# ============================================================================
# REPORT SECTIONS
# ============================================================================

def print_project_summary(project: Project) -> None:
    """Display project configuration summary."""

    print_header("PROJECT CONFIGURATION", "=")

    print_subheader("Project")
    print(f"  Project Name:      {project.name}")
    print(f"  Customer:          {project.customer_name}")
    print(f"  Address:           {project.project_address}")
    print(f"  Utility:           {project.utility}")
    print(f"  Service Class:     {project.service_class}")
    print(f"  Metering:          {project.metering_type}")
    print(f"  Ownership:         {project.ownership_type}")

    if project.chargers:
        print_subheader("Installed EVSE")
        rows = [[c.name[:38], c.quantity, c.plugs_per_unit, f"{c.site_voltage} V", f"{c.kw_per_charger:.2f}"]
                for c in project.chargers]
        print_table(["Model", "Qty", "Plugs", "Voltage", "kW"], rows, [40, 6, 7, 9, 9])

    usage = project.usage
    print_subheader("Usage")
    print(f"  Days per Month:    {usage.days_in_month}")
    print(f"  Ports in Use:      {usage.avg_daily_ports_used:g}")
    print(f"  Hours per Port:    {usage.avg_hours_per_port_per_day:g}")
    print(f"  Peak Ports:        {usage.peak_ports_used:g}")
    print(f"  Summer TOU Hours:  super {usage.summer.super_peak_hours:g} / on {usage.summer.on_peak_hours:g}"
          f" / off {usage.summer.off_peak_hours:g}")
    print(f"  Winter TOU Hours:  on {usage.winter.on_peak_hours:g} / off {usage.winter.off_peak_hours:g}")


def print_results(result: CalculationResult) -> None:
    """Display billing and revenue results."""

    print_header("EV PHASE-IN RATE RESULTS", "=")

    print_subheader("Capacity & Tier")
    print(f"  Nameplate:         {format_kw(result.nameplate_kw)}")
    print(f"  Effective:         {format_kw(result.effective_kw)}")
    print(f"  Ports:             {result.total_ports}")
    print(f"  Peak Demand:       {format_kw(result.peak_demand_kw)}")
    print(f"  Annual Energy:     {format_kwh(result.estimated_annual_kwh)}")
    print(f"  Load Factor:       {format_percent(result.load_factor_percent)}")
    print(f"  Rate:              {get_tier_description(result.tier)}")

    rates = result.rates_used
    print_subheader("Rates Used")
    print(f"  Demand:            {format_rate(rates.demand_rate, 'kW')}")
    print(f"  Super-Peak:        {format_rate(rates.super_peak_rate)}")
    print(f"  On-Peak:           {format_rate(rates.on_peak_rate)}")
    print(f"  Off-Peak:          {format_rate(rates.off_peak_rate)}")
    print(f"  Standard Demand:   {format_rate(rates.standard_demand_rate, 'kW')}")
    print(f"  Supply:            {format_rate(rates.supply_rate)}")

    print_subheader("Average Monthly Bill")
    rows = []
    for season, m in result.monthly.items():
        rows.append([
            format_season(season),
            format_kwh(m.total_kwh),
            format_currency(m.total_ev_pir_cost),
            format_currency(m.total_standard_cost),
            format_currency(m.savings),
            format_percent(m.savings_percent),
        ])
    print_table(["Season", "Energy", get_tier_label(result.tier), "Standard", "Savings", "%"], rows)

    yearly = result.yearly
    print_subheader("Annual Totals")
    print(f"  Energy:            {format_kwh(yearly.total_kwh)}")
    print(f"  EV PIR Delivery:   {format_currency(yearly.total_ev_pir_cost)}")
    print(f"  Supply:            {format_currency(yearly.total_supply_charge)}")
    print(f"  Total with Supply: {format_currency(yearly.total_with_supply)}")
    print(f"  Standard Rate:     {format_currency(yearly.total_standard_cost)}")
    print(f"  Savings:           {format_currency(yearly.total_savings)} ({format_percent(yearly.savings_percent)})")

    rev = result.revenue
    if rev is not None:
        print_subheader("Driver Revenue (Annual)")
        print(f"  Gross Revenue:     {format_currency(rev.gross_revenue)}")
        print(f"  Network Fee:       {format_currency(rev.network_fee_amount)}")
        print(f"  Customer Share:    {format_currency(rev.customer_net_charging_revenue)}"
              f" ({format_percent(rev.customer_rev_share_percent, 0)})")
        print(f"  Operator Share:    {format_currency(rev.operator_net_charging_revenue)}"
              f" ({format_percent(rev.operator_rev_share_percent, 0)})")
        print(f"  Customer Final:    {format_currency(rev.customer_final_revenue)}"
              f" ({format_currency(rev.monthly_customer_final_revenue)}/month)")

    host = result.site_host
    if host is not None:
        print_subheader("Site Host Settlement")
        print(f"  Annual Base Rent:  {format_currency(host.annual_base_rent)} ({host.total_spaces} spaces)")
        print(f"  Revenue Share:     {format_currency(host.revenue_share_amount)}")
        print(f"  Customer Receives: {format_currency(host.customer_annual_revenue)} ({host.revenue_source})")

        rows = [[p.year, f"{p.utilization_multiplier:.2f}", format_kwh(p.annual_kwh),
                 format_currency(p.customer_revenue), p.revenue_source]
                for p in result.ten_year_projection]
        print_table(["Year", "Mult", "Energy", "Customer", "Source"], rows)


def print_equipment_catalog(reference: ReferenceData) -> None:
    print_header("EQUIPMENT CATALOG", "=")
    rows = []
    for evse_id in reference.get_equipment_ids():
        evse = reference.get_equipment(evse_id)
        kw = evse.kw_for_voltage(reference.get_default_voltage(evse.level))
        rows.append([evse.id, evse.level, evse.number_of_plugs, f"{kw:.2f}" if kw else "-"])
    print_table(["ID", "Level", "Plugs", "kW"], rows)


# ============================================================================
# MAIN CLI
# ============================================================================

def create_default_project(reference: ReferenceData, charger_id: Optional[str], quantity: int,
                           voltage: Optional[int]) -> Project:
    """Create a project with one catalog charger line item."""
    project = Project(name="EV Charging Project")
    if charger_id:
        project.chargers.append(reference.build_entry(charger_id, voltage, quantity))
        project.revenue_settings = RevenueSettings(
            cost_to_driver_per_kwh=suggest_cost_to_driver(project.chargers)
        )
    return project


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""

    parser = argparse.ArgumentParser(
        description="EV PIR Estimator - EV Phase-In Rate bill and revenue estimates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  evpir --charger l2-48a-sp-pedestal --quantity 2   # Two Level 2 chargers
  evpir --load project.json                         # Load saved project
  evpir --load project.json --ports 3 --hours 5     # New usage, TOU re-split
  evpir --load project.json --excel results.xlsx    # Export to Excel
        """
    )

    # Project configuration
    parser.add_argument("--charger", type=str,
                        help="Catalog id of the installed charger model")
    parser.add_argument("--quantity", type=int, default=1,
                        help="Number of charger units (default: 1)")
    parser.add_argument("--voltage", type=int, choices=[208, 240, 480],
                        help="Site voltage (default: level default)")
    parser.add_argument("--service-class", type=str,
                        help="Utility service class (e.g., SC-2D)")
    parser.add_argument("--ports", type=float,
                        help="Average ports in use per day; re-splits TOU hours")
    parser.add_argument("--hours", type=float,
                        help="Average hours per port per day; re-splits TOU hours")
    parser.add_argument("--peak-ports", type=float,
                        help="Peak simultaneous ports")
    parser.add_argument("--resources", type=str, default="",
                        help="Reference data directory (rates/ and equipment/)")

    # File operations
    parser.add_argument("--load", type=str,
                        help="Load project from JSON file")
    parser.add_argument("--save", type=str,
                        help="Save project to JSON file")
    parser.add_argument("--excel", type=str, nargs="?", const="EV_PIR_Estimate.xlsx",
                        help="Export results to Excel workbook")

    # Display options
    parser.add_argument("--list-equipment", action="store_true",
                        help="List the equipment catalog and exit")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Suppress detailed output")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)

    reference = ReferenceData(args.resources)

    if args.list_equipment:
        print_equipment_catalog(reference)
        return 0

    try:
        if args.load:
            logger.info("Loading project from %s", args.load)
            project = load_project(args.load)
        else:
            project = create_default_project(reference, args.charger, args.quantity, args.voltage)
    except (OSError, ValueError, EngineError) as exc:
        logger.error("Could not set up project: %s", exc)
        return 1

    if args.service_class:
        project.service_class = args.service_class
    if args.ports is not None or args.hours is not None:
        ports = args.ports if args.ports is not None else project.usage.avg_daily_ports_used
        hours = args.hours if args.hours is not None else project.usage.avg_hours_per_port_per_day
        project.usage = reallocate_usage(project.usage, ports, hours)
    if args.peak_ports is not None:
        project.usage.peak_ports_used = args.peak_ports

    _, messages = validate_project(project)
    for msg in messages:
        logger.warning(msg)

    try:
        result = compute_result(project, reference)
    except EngineError:
        return 1

    if not args.quiet:
        print_project_summary(project)
        if result is None:
            print("\n  No EVSE capacity configured. Add chargers to see results.")
        else:
            print_results(result)

    if args.save:
        save_project(project, args.save)
        print(f"\nProject saved to {args.save}")

    if args.excel and result is not None:
        path = export_results_workbook(result, args.excel)
        print(f"\nExcel workbook generated: {path}")

    if not args.quiet and result is not None:
        print_header("ESTIMATE COMPLETE", "=")
        print(f"\n  {get_tier_label(result.tier)}  |  Load Factor: {format_percent(result.load_factor_percent)}  |  "
              f"Annual Savings: {format_currency(result.yearly.total_savings)}")
        print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
