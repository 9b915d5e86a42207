"""Unit tests for the EV PIR billing engine.

Each test verifies against hand-computed values for a site with two
11.52 kW single-port Level 2 chargers on National Grid SC-2D.
"""

import pytest

from evpir.data.libraries import ReferenceData
from evpir.errors import ReferenceDataError
from evpir.models.allocation import reallocate_usage
from evpir.models.calculations import (
    calculate_peak_demand_kw,
    calculate_weighted_daily_hours,
    compute_result,
    distribute_kwh,
)
from evpir.models.project import (
    EquipmentEntry,
    Project,
    RevenueSettings,
    SiteHostSettings,
    UsageInputs,
)


@pytest.fixture(scope="module")
def reference():
    return ReferenceData()


def _project(**kwargs):
    charger = EquipmentEntry(id="c1", evse_id="l2-48a-sp-pedestal", name="48A SP", level="Level 2",
                             site_voltage=240, kw_per_charger=11.52, quantity=2, plugs_per_unit=1)
    kwargs.setdefault("chargers", [charger])
    return Project(name="Test Site", **kwargs)


# ---- Helper Tests ----

class TestHelpers:
    def test_weighted_daily_hours(self):
        """(10 x 4 + 4 x 8) / 12 = 6."""
        assert calculate_weighted_daily_hours(10, 4) == 6

    def test_distribute_by_hours(self):
        split = distribute_kwh(800, {"on_peak": 4, "off_peak": 4})
        assert split == {"on_peak": 400, "off_peak": 400}

    def test_distribute_no_hours(self):
        assert distribute_kwh(800, {"on_peak": 0, "off_peak": 0}) == {"on_peak": 0, "off_peak": 0}

    def test_peak_demand_capped_at_effective(self):
        """4 peak ports x 11.52 kW = 46.08, capped at 23.04 kW nameplate."""
        chargers = _project().chargers
        assert abs(calculate_peak_demand_kw(chargers, 4) - 23.04) < 1e-9
        assert abs(calculate_peak_demand_kw(chargers, 1) - 11.52) < 1e-9
        assert abs(calculate_peak_demand_kw(chargers, 4, 15.0) - 15.0) < 1e-9


# ---- Tier 3 Scenario ----

class TestTierThreeScenario:
    @pytest.fixture
    def result(self, reference):
        return compute_result(_project(), reference)

    def test_capacity(self, result):
        assert abs(result.nameplate_kw - 23.04) < 1e-9
        assert abs(result.effective_kw - 23.04) < 1e-9
        assert result.total_ports == 2
        assert abs(result.peak_demand_kw - 23.04) < 1e-9

    def test_load_factor_and_tier(self, result):
        """8 h x 11.52 kW x 365 = 33,638.4 kWh on 23.04 kW -> 16.7% -> Tier 3."""
        assert abs(result.estimated_annual_kwh - 33638.4) < 1e-6
        assert abs(result.load_factor - 1 / 6) < 1e-9
        assert abs(result.load_factor_percent - 16.6667) < 1e-3
        assert result.tier == 3
        assert result.yearly.tier == 3

    def test_summer_month(self, result):
        """2,764.8 kWh split 2.5/4/1.5 of 8 h and billed at SC-2D tier 3."""
        m = result.monthly["summer"]
        assert abs(m.total_kwh - 2764.8) < 1e-6
        assert abs(m.super_peak_kwh - 864.0) < 1e-6
        assert abs(m.on_peak_kwh - 1382.4) < 1e-6
        assert abs(m.off_peak_kwh - 518.4) < 1e-6
        assert abs(m.demand_charge - 195.84) < 1e-6
        assert abs(m.super_peak_charge - 48.0816) < 1e-6
        assert abs(m.on_peak_charge - 51.28704) < 1e-6
        assert abs(m.off_peak_charge - 9.61632) < 1e-6
        assert abs(m.total_ev_pir_cost - 304.82496) < 1e-6
        assert abs(m.total_standard_cost - 391.4496) < 1e-6
        assert abs(m.savings - 86.62464) < 1e-6
        assert abs(m.supply_charge - 276.48) < 1e-6

    def test_winter_month(self, result):
        """Winter has no super-peak window."""
        m = result.monthly["winter"]
        assert m.super_peak_kwh is None
        assert m.super_peak_charge is None
        assert abs(m.on_peak_kwh - 2246.4) < 1e-6
        assert abs(m.total_ev_pir_cost - 288.79776) < 1e-6

    def test_yearly_totals(self, result):
        y = result.yearly
        assert abs(y.total_kwh - 33177.6) < 1e-6
        assert abs(y.summer.total_kwh - 2764.8 * 4) < 1e-6
        assert abs(y.total_ev_pir_cost - 3529.68192) < 1e-6
        assert abs(y.total_standard_cost - 4697.3952) < 1e-6
        assert abs(y.total_supply_charge - 3317.76) < 1e-6
        assert abs(y.total_with_supply - 6847.44192) < 1e-6
        assert abs(y.total_savings - (4697.3952 - 3529.68192)) < 1e-6
        assert abs(y.savings_percent - y.total_savings / y.total_standard_cost * 100) < 1e-9

    def test_seasonal_savings_percent_matches_monthly(self, result):
        assert result.yearly.summer.savings_percent == result.monthly["summer"].savings_percent

    def test_rates_used(self, result):
        r = result.rates_used
        assert r.tier == 3
        assert r.demand_rate == 8.50
        assert r.super_peak_rate == 0.05565
        assert r.standard_demand_rate == 16.99
        assert r.supply_rate == 0.10

    def test_revenue(self, result):
        rev = result.revenue
        assert rev.gross_revenue == 13271.04
        assert abs(rev.customer_final_revenue - 5229.21) < 1e-9

    def test_discount_demand_below_standard(self, result):
        """Setting energy charges aside, the discount tier always saves on demand."""
        for m in result.monthly.values():
            assert m.standard_demand_charge - m.demand_charge > 0

    def test_customer_owned_has_no_site_host(self, result):
        assert result.site_host is None
        assert result.ten_year_projection == []


class TestComputeResult:
    def test_idempotent(self, reference):
        """Repeated evaluation of the same project gives identical output."""
        project = _project()
        assert compute_result(project, reference).to_dict() == compute_result(project, reference).to_dict()

    def test_does_not_modify_project(self, reference):
        project = _project()
        before = project.to_dict()
        compute_result(project, reference)
        assert project.to_dict() == before

    def test_no_equipment_returns_none(self, reference):
        assert compute_result(_project(chargers=[]), reference) is None

    def test_unknown_utility_raises(self, reference):
        with pytest.raises(ReferenceDataError):
            compute_result(_project(utility="nowhere-power"), reference)

    def test_unknown_service_class_raises(self, reference):
        with pytest.raises(ReferenceDataError):
            compute_result(_project(service_class="SC-99"), reference)

    def test_default_reference(self):
        assert compute_result(_project()).tier == 3

    def test_zero_ports_in_use(self, reference):
        """No usage: load factor 0, tier 1, no energy or demand cost."""
        usage = reallocate_usage(UsageInputs(), 0, 4)
        result = compute_result(_project(usage=usage), reference)
        assert result is not None
        assert result.load_factor == 0
        assert result.tier == 1
        assert result.yearly.total_kwh == 0
        assert result.yearly.total_ev_pir_cost == 0
        assert result.monthly["summer"].on_peak_kwh == 0

    def test_standard_rate_when_load_factor_high(self, reference):
        """2 ports x 8 h -> 33.3% load factor -> standard demand-only rate."""
        usage = reallocate_usage(UsageInputs(), 2, 8)
        result = compute_result(_project(usage=usage), reference)
        assert result.tier == 0
        m = result.monthly["summer"]
        assert m.on_peak_charge == 0
        assert m.super_peak_charge == 0
        assert abs(m.total_ev_pir_cost - 23.04 * 16.99) < 1e-9
        assert m.savings == 0
        assert result.rates_used.on_peak_rate == 0

    def test_load_management_limit(self, reference):
        """Capping at 11.52 kW doubles the load factor to 33% and caps demand."""
        result = compute_result(_project(load_management_limit=11.52), reference)
        assert result.effective_kw == 11.52
        assert abs(result.load_factor - 1 / 3) < 1e-9
        assert result.tier == 0
        assert result.peak_demand_kw == 11.52

    def test_supply_rate(self, reference):
        result = compute_result(_project(supply_rate_per_kwh=0.12), reference)
        assert result.rates_used.supply_rate == 0.12
        result = compute_result(_project(supply_rate_per_kwh=None), reference)
        assert result.rates_used.supply_rate == 0.10

    def test_inconsistent_split_still_billed(self, reference):
        """A TOU split that does not add up to ports x hours is billed as entered."""
        usage = UsageInputs()
        usage.summer.off_peak_hours = 5.5
        result = compute_result(_project(usage=usage), reference)
        assert abs(result.monthly["summer"].total_kwh - 12 * 11.52 * 30) < 1e-6

    def test_site_host_project(self, reference):
        project = _project(ownership_type="site-host", site_host_settings=SiteHostSettings())
        result = compute_result(project, reference)
        assert result.site_host is not None
        assert result.site_host.annual_base_rent == 4800
        assert len(result.ten_year_projection) == 10
        assert result.ten_year_projection[0].annual_kwh == result.yearly.total_kwh

    def test_site_host_defaults_when_settings_missing(self, reference):
        result = compute_result(_project(ownership_type="site-host"), reference)
        assert result.site_host.lease_per_space == 200

    def test_revenue_settings_used(self, reference):
        settings = RevenueSettings(cost_to_driver_per_kwh=0.50, customer_rev_share_percent=50)
        result = compute_result(_project(revenue_settings=settings), reference)
        assert result.revenue.cost_to_driver_per_kwh == 0.50
        assert result.revenue.operator_rev_share_percent == 50
