"""Input validation functions for EV PIR projects.

Each validator returns a tuple of (is_valid: bool, message: str).
Messages describe errors or warnings for user display. Validation never
blocks calculation; the engine bills whatever hours are stored.
"""

from typing import List, Optional, Tuple

from evpir.models.allocation import round_to_quarter
from evpir.models.equipment import calculate_nameplate_kw, calculate_total_ports
from evpir.models.project import EquipmentEntry, Project, UsageInputs

TOU_TOLERANCE_HOURS = 0.01


def validate_season_hours(season: str, season_total: float, expected_total: float) -> Tuple[bool, str]:
    """Check that a season's TOU hours add up to the daily charging total.

    Args:
        season: Season name for the message.
        season_total: Sum of the season's TOU window hours.
        expected_total: Ports in use x hours per port.

    Returns:
        (is_valid, message) tuple.
    """
    if abs(season_total - expected_total) >= TOU_TOLERANCE_HOURS:
        return False, (f"{season.capitalize()} hours ({season_total:.2f}) must equal total daily "
                       f"charging hours ({expected_total:.2f}).")
    return True, ""


def validate_tou_hours(usage: UsageInputs) -> Tuple[bool, str]:
    """Validate both seasons' TOU splits against ports x hours per port.

    The expected total is quarter-hour rounded, as the allocator rounds it.
    """
    expected = round_to_quarter(usage.total_daily_charging_hours)
    messages = []
    is_valid = True
    for season, total in (("summer", usage.summer.total), ("winter", usage.winter.total)):
        valid, msg = validate_season_hours(season, total, expected)
        if not valid:
            is_valid = False
            messages.append(msg)
    return is_valid, " ".join(messages)


def validate_equipment(chargers: List[EquipmentEntry]) -> Tuple[bool, str]:
    """Validate the installed equipment inventory."""
    if not chargers:
        return False, "No EVSE equipment configured."
    if calculate_nameplate_kw(chargers) <= 0:
        return False, "Installed equipment has no rated capacity."
    return True, ""


def validate_percent(name: str, value: float) -> Tuple[bool, str]:
    """Validate a 0-100 percentage input."""
    if value < 0 or value > 100:
        return False, f"{name} must be between 0% and 100%."
    return True, ""


def validate_load_management_limit(limit: Optional[float], nameplate_kw: float) -> Tuple[bool, str]:
    """Validate a load management kW cap against nameplate capacity."""
    if limit is None:
        return True, ""
    if limit < 0:
        return False, "Load management limit must be >= 0 kW."
    if limit >= nameplate_kw > 0:
        return True, "Warning: Load management limit is not below nameplate capacity and has no effect."
    return True, ""


def validate_usage(usage: UsageInputs, total_ports: int) -> Tuple[bool, str]:
    """Validate coarse usage inputs against the installed port count."""
    if usage.days_in_month <= 0 or usage.days_in_month > 31:
        return False, "Days in month must be between 1 and 31."
    if usage.avg_hours_per_port_per_day > 24:
        return False, "Hours per port cannot exceed 24 per day."
    if total_ports and usage.avg_daily_ports_used > total_ports:
        return True, f"Warning: Ports in use ({usage.avg_daily_ports_used:g}) exceeds installed ports ({total_ports})."
    if total_ports and usage.peak_ports_used > total_ports:
        return True, f"Warning: Peak ports ({usage.peak_ports_used:g}) exceeds installed ports ({total_ports})."
    return True, ""


def validate_project(project: Project) -> Tuple[bool, List[str]]:
    """Run all validations on a complete project.

    Args:
        project: Project to validate.

    Returns:
        (is_valid, messages) where messages includes all errors and warnings.
    """
    messages = []
    is_valid = True

    checks = [
        validate_equipment(project.chargers),
        validate_usage(project.usage, calculate_total_ports(project.chargers)),
        validate_tou_hours(project.usage),
        validate_load_management_limit(project.load_management_limit, calculate_nameplate_kw(project.chargers)),
    ]

    if project.revenue_settings:
        rs = project.revenue_settings
        checks.append(validate_percent("Percent of time charging drivers", rs.percent_time_charging_drivers))
        checks.append(validate_percent("Network fee", rs.network_fee_percent))
        checks.append(validate_percent("Customer revenue share", rs.customer_rev_share_percent))

    if project.is_site_host() and project.site_host_settings:
        checks.append(validate_percent("Site host revenue share", project.site_host_settings.revenue_share_percent))

    for valid, msg in checks:
        if not valid:
            is_valid = False
        if msg:
            messages.append(msg)

    if not project.name.strip():
        messages.append("Warning: Project name is empty.")

    return is_valid, messages
