"""Excel export of EV PIR calculation results.

Writes an .xlsx workbook with:
- Summary: project, capacity, load factor, tier and rates used
- Seasons: average monthly bills per season and annual totals
- Revenue: driver revenue and the customer/operator split
- Projection: 10-year site-host settlement (site-host projects only)
"""

import logging
from pathlib import Path

import xlsxwriter

from evpir.models.project import CalculationResult
from evpir.utils.formatters import format_season, get_tier_label

logger = logging.getLogger(__name__)


def export_results_workbook(result: CalculationResult, output_path: str) -> str:
    """Write a calculation result to an Excel workbook.

    Args:
        result: Engine output to export.
        output_path: Destination path; the suffix is forced to .xlsx.

    Returns:
        The path actually written.
    """
    if not output_path.endswith('.xlsx'):
        output_path = str(Path(output_path).with_suffix('.xlsx'))
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)

    workbook = xlsxwriter.Workbook(output_path)
    fmt = _create_formats(workbook)

    _create_summary_sheet(workbook.add_worksheet('Summary'), fmt, result)
    _create_seasons_sheet(workbook.add_worksheet('Seasons'), fmt, result)
    _create_revenue_sheet(workbook.add_worksheet('Revenue'), fmt, result)
    if result.site_host is not None:
        _create_projection_sheet(workbook.add_worksheet('Projection'), fmt, result)

    workbook.close()
    logger.info("Workbook created: %s", output_path)
    return output_path


# =============================================================================
# FORMATS
# =============================================================================

def _create_formats(wb) -> dict:
    f = {}
    blue  = '#1565C0'
    lblue = '#E3F2FD'
    grn   = '#E8F5E9'

    f['title']    = wb.add_format({'bold': True, 'font_size': 16, 'font_color': blue})
    f['subtitle'] = wb.add_format({'italic': True, 'font_color': '#555555', 'font_size': 10})
    f['section']  = wb.add_format({'bold': True, 'font_size': 11, 'font_color': blue,
                                    'bg_color': lblue, 'border': 1, 'valign': 'vcenter'})
    f['header']   = wb.add_format({'bold': True, 'font_color': 'white', 'bg_color': blue,
                                    'align': 'center', 'border': 1, 'valign': 'vcenter'})
    f['label']    = wb.add_format({'border': 1})
    f['text']     = wb.add_format({'border': 1, 'align': 'right'})
    f['currency'] = wb.add_format({'num_format': '$#,##0.00', 'border': 1})
    f['cur_red']  = wb.add_format({'num_format': '$#,##0.00', 'border': 1, 'font_color': '#C62828'})
    f['rate']     = wb.add_format({'num_format': '$0.00000', 'border': 1})
    f['demand']   = wb.add_format({'num_format': '$0.00', 'border': 1})
    f['percent']  = wb.add_format({'num_format': '0.0"%"', 'border': 1})
    f['number']   = wb.add_format({'num_format': '#,##0', 'border': 1})
    f['decimal']  = wb.add_format({'num_format': '#,##0.00', 'border': 1})
    f['result']   = wb.add_format({'bold': True, 'bg_color': grn, 'border': 1, 'num_format': '$#,##0.00'})
    return f


def _write_rows(ws, start_row: int, rows, f) -> int:
    """Write (label, value, format key) rows in columns B:C; return the next free row."""
    row = start_row
    for label, value, key in rows:
        ws.write(row, 1, label, f['label'])
        if value is None:
            ws.write(row, 2, 'N/A', f['text'])
        else:
            ws.write(row, 2, value, f[key])
        row += 1
    return row


# =============================================================================
# SHEETS
# =============================================================================

def _create_summary_sheet(ws, f, result: CalculationResult) -> None:
    ws.set_column('A:A', 3)
    ws.set_column('B:B', 34)
    ws.set_column('C:C', 22)

    project = result.project
    ws.merge_range('B2:C2', 'EV Phase-In Rate Estimate', f['title'])
    ws.merge_range('B3:C3', f'{project.name}  |  {project.customer_name}  |  {project.project_address}',
                   f['subtitle'])

    ws.merge_range('B5:C5', 'PROJECT', f['section'])
    row = _write_rows(ws, 5, [
        ('Utility', project.utility, 'text'),
        ('Service class', project.service_class, 'text'),
        ('Metering', project.metering_type, 'text'),
        ('Ownership', project.ownership_type, 'text'),
    ], f)

    row += 1
    ws.merge_range(row, 1, row, 2, 'CAPACITY & USAGE', f['section'])
    row = _write_rows(ws, row + 1, [
        ('Nameplate capacity (kW)', result.nameplate_kw, 'decimal'),
        ('Effective capacity (kW)', result.effective_kw, 'decimal'),
        ('Total ports', result.total_ports, 'number'),
        ('Peak demand (kW)', result.peak_demand_kw, 'decimal'),
        ('Estimated monthly kWh', result.estimated_monthly_kwh, 'number'),
        ('Estimated annual kWh', result.estimated_annual_kwh, 'number'),
        ('Load factor', result.load_factor_percent, 'percent'),
        ('Rate', get_tier_label(result.tier), 'text'),
    ], f)

    rates = result.rates_used
    row += 1
    ws.merge_range(row, 1, row, 2, 'RATES USED', f['section'])
    _write_rows(ws, row + 1, [
        ('Demand ($/kW)', rates.demand_rate, 'demand'),
        ('Super-peak ($/kWh, summer)', rates.super_peak_rate, 'rate'),
        ('On-peak ($/kWh)', rates.on_peak_rate, 'rate'),
        ('Off-peak ($/kWh)', rates.off_peak_rate, 'rate'),
        ('Standard demand ($/kW)', rates.standard_demand_rate, 'demand'),
        ('Supply ($/kWh)', rates.supply_rate, 'rate'),
    ], f)


def _create_seasons_sheet(ws, f, result: CalculationResult) -> None:
    ws.set_column('A:A', 3)
    ws.set_column('B:B', 30)
    ws.set_column('C:D', 18)

    ws.merge_range('B2:D2', 'Average Monthly Bill by Season', f['title'])
    summer = result.monthly['summer']
    winter = result.monthly['winter']
    ws.write_row(3, 1, ['', format_season('summer'), format_season('winter')], f['header'])

    lines = [
        ('Total kWh', 'total_kwh', 'number'),
        ('Super-peak kWh', 'super_peak_kwh', 'number'),
        ('On-peak kWh', 'on_peak_kwh', 'number'),
        ('Off-peak kWh', 'off_peak_kwh', 'number'),
        ('Demand (kW)', 'demand_kw', 'decimal'),
        ('Demand charge', 'demand_charge', 'currency'),
        ('Super-peak charge', 'super_peak_charge', 'currency'),
        ('On-peak charge', 'on_peak_charge', 'currency'),
        ('Off-peak charge', 'off_peak_charge', 'currency'),
        ('EV PIR delivery cost', 'total_ev_pir_cost', 'currency'),
        ('Supply charge', 'supply_charge', 'currency'),
        ('Total with supply', 'total_with_supply', 'currency'),
        ('Standard rate cost', 'total_standard_cost', 'currency'),
        ('Savings', 'savings', 'currency'),
        ('Savings %', 'savings_percent', 'percent'),
    ]
    row = 4
    for label, attr, key in lines:
        ws.write(row, 1, label, f['label'])
        for col, monthly in ((2, summer), (3, winter)):
            value = getattr(monthly, attr)
            if value is None:
                ws.write(row, col, 'N/A', f['text'])
            else:
                ws.write(row, col, value, f[key])
        row += 1

    yearly = result.yearly
    row += 1
    ws.merge_range(row, 1, row, 3, 'ANNUAL TOTALS', f['section'])
    _write_rows(ws, row + 1, [
        ('Total kWh', yearly.total_kwh, 'number'),
        ('EV PIR delivery cost', yearly.total_ev_pir_cost, 'currency'),
        ('Supply charges', yearly.total_supply_charge, 'currency'),
        ('Total with supply', yearly.total_with_supply, 'result'),
        ('Standard rate cost', yearly.total_standard_cost, 'currency'),
        ('Savings', yearly.total_savings, 'cur_red' if yearly.total_savings < 0 else 'currency'),
        ('Savings %', yearly.savings_percent, 'percent'),
    ], f)


def _create_revenue_sheet(ws, f, result: CalculationResult) -> None:
    ws.set_column('A:A', 3)
    ws.set_column('B:B', 36)
    ws.set_column('C:C', 18)

    ws.merge_range('B2:C2', 'Charging Revenue', f['title'])
    rev = result.revenue
    if rev is None:
        ws.write(3, 1, 'No revenue settings.', f['subtitle'])
        return

    ws.merge_range('B4:C4', 'ANNUAL', f['section'])
    row = _write_rows(ws, 4, [
        ('Cost to driver ($/kWh)', rev.cost_to_driver_per_kwh, 'demand'),
        ('Paid charging (% of time)', rev.percent_time_charging_drivers, 'percent'),
        ('Billable kWh', rev.billable_kwh, 'decimal'),
        ('Gross revenue', rev.gross_revenue, 'currency'),
        ('Network fee %', rev.network_fee_percent, 'percent'),
        ('Network fee', rev.network_fee_amount, 'currency'),
        ('Revenue after network fee', rev.revenue_after_network_fee, 'currency'),
        ('Customer share %', rev.customer_rev_share_percent, 'percent'),
        ('Customer net charging revenue', rev.customer_net_charging_revenue, 'currency'),
        ('Operator share %', rev.operator_rev_share_percent, 'percent'),
        ('Operator net charging revenue', rev.operator_net_charging_revenue, 'currency'),
        ('Energy cost (delivery + supply)', rev.total_energy_cost, 'currency'),
        ('Customer final revenue', rev.customer_final_revenue,
         'cur_red' if rev.customer_final_revenue < 0 else 'result'),
    ], f)

    row += 1
    ws.merge_range(row, 1, row, 2, 'MONTHLY', f['section'])
    row = _write_rows(ws, row + 1, [
        ('Gross revenue', rev.monthly_gross_revenue, 'currency'),
        ('Customer final revenue', rev.monthly_customer_final_revenue, 'currency'),
    ], f)

    host = result.site_host
    if host is None:
        return
    row += 1
    ws.merge_range(row, 1, row, 2, 'SITE HOST SETTLEMENT', f['section'])
    _write_rows(ws, row + 1, [
        ('Parking spaces', host.total_spaces, 'number'),
        ('Lease per space ($/month)', host.lease_per_space, 'currency'),
        ('Annual base rent', host.annual_base_rent, 'currency'),
        ('Net charging revenue', host.net_charging_revenue, 'currency'),
        ('Revenue share %', host.revenue_share_percent, 'percent'),
        ('Revenue share amount', host.revenue_share_amount, 'currency'),
        ('Customer annual revenue', host.customer_annual_revenue, 'result'),
        ('Binding source', host.revenue_source, 'text'),
    ], f)


def _create_projection_sheet(ws, f, result: CalculationResult) -> None:
    ws.set_column('A:A', 3)
    ws.set_column('B:B', 8)
    ws.set_column('C:N', 16)

    ws.merge_range('B2:I2', '10-Year Site Host Projection', f['title'])
    hotel = any(p.booking_profit is not None for p in result.ten_year_projection)
    headers = ['Year', 'Multiplier', 'Annual kWh', 'Gross Revenue', 'Revenue Share',
               'Base Rent', 'Customer Revenue', 'Source']
    if hotel:
        headers += ['Bookings/Month', 'Profit/Booking', 'Booking Profit', 'Total Profit']
    ws.write_row(3, 1, headers, f['header'])

    for i, p in enumerate(result.ten_year_projection):
        row = 4 + i
        ws.write(row, 1, p.year, f['number'])
        ws.write(row, 2, p.utilization_multiplier, f['decimal'])
        ws.write(row, 3, p.annual_kwh, f['number'])
        ws.write(row, 4, p.gross_charging_revenue, f['currency'])
        ws.write(row, 5, p.revenue_share_amount, f['currency'])
        ws.write(row, 6, p.base_rent, f['currency'])
        ws.write(row, 7, p.customer_revenue, f['result'])
        ws.write(row, 8, p.revenue_source, f['text'])
        if hotel:
            ws.write(row, 9, p.monthly_bookings, f['decimal'])
            ws.write(row, 10, p.profit_per_booking, f['currency'])
            ws.write(row, 11, p.booking_profit, f['currency'])
            ws.write(row, 12, p.total_customer_profit, f['result'])
