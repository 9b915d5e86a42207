"""Unit tests for driver revenue and site-host settlement."""

import pytest

from evpir.models.project import (
    RevenueSettings,
    SiteHostSettings,
    UtilizationGrowthSettings,
)
from evpir.models.settlement import (
    calculate_revenue,
    calculate_site_host,
    growth_multipliers,
    project_utilization,
    resolve_revenue_settings,
    resolve_site_host_settings,
    resolve_utilization_growth,
    round_currency,
)


# ---- Rounding Tests ----

class TestRoundCurrency:
    def test_half_cent_rounds_up(self):
        assert round_currency(0.125) == 0.13
        assert round_currency(0.124) == 0.12

    def test_negative_half_rounds_toward_positive(self):
        assert round_currency(-0.125) == -0.12

    def test_whole_cents_unchanged(self):
        assert round_currency(13271.04) == 13271.04


# ---- Revenue Tests ----

class TestCalculateRevenue:
    def test_default_scenario(self):
        """33,177.6 kWh at $0.40 with a 9% fee and 100% customer share."""
        rev = calculate_revenue(33177.6, 6847.44192, 0.40, 100, 9, 100)
        assert rev.billable_kwh == 33177.6
        assert rev.gross_revenue == 13271.04
        assert rev.network_fee_amount == 1194.39
        assert abs(rev.revenue_after_network_fee - 12076.65) < 1e-9
        assert abs(rev.customer_net_charging_revenue - 12076.65) < 1e-9
        assert rev.operator_net_charging_revenue == 0
        assert rev.operator_rev_share_percent == 0
        assert abs(rev.customer_final_revenue - 5229.21) < 1e-9
        assert abs(rev.monthly_gross_revenue - 1105.92) < 1e-9

    def test_paid_share_of_time(self):
        """Only 50% of the energy is billed to drivers."""
        rev = calculate_revenue(1000, 0, 0.50, 50, 0, 100)
        assert rev.billable_kwh == 500
        assert rev.gross_revenue == 250

    def test_operator_share_is_complement(self):
        rev = calculate_revenue(1000, 0, 1.0, 100, 10, 70)
        assert rev.operator_rev_share_percent == 30
        assert abs(rev.customer_net_charging_revenue - 630) < 1e-9
        assert abs(rev.operator_net_charging_revenue - 270) < 1e-9

    def test_negative_final_revenue(self):
        """Energy cost above the customer share leaves a loss."""
        rev = calculate_revenue(1000, 500, 0.40, 100, 0, 100)
        assert rev.customer_final_revenue == -100

    @pytest.mark.parametrize("kwh,price,fee,share", [
        (12345.67, 0.37, 9, 37.5),
        (98765.43, 0.55, 7.5, 62.5),
        (1.11, 0.33, 3, 33.3),
        (50000, 0.45, 12, 85),
    ])
    def test_split_adds_up_to_the_cent(self, kwh, price, fee, share):
        """gross - fee == customer + operator, exactly at cent precision."""
        rev = calculate_revenue(kwh, 0, price, 100, fee, share)
        residual = rev.gross_revenue - rev.network_fee_amount - (
            rev.customer_net_charging_revenue + rev.operator_net_charging_revenue)
        assert abs(residual) < 1e-6


# ---- Site Host Tests ----

class TestSiteHost:
    def test_base_rent_binding(self):
        """2 spaces x $200 x 12 = $4,800 beats a 10% share of ~$12k."""
        host = calculate_site_host(33177.6, 2, RevenueSettings(), SiteHostSettings())
        assert host.total_spaces == 2
        assert host.monthly_base_rent == 400
        assert host.annual_base_rent == 4800
        assert abs(host.net_charging_revenue - 12076.65) < 1e-9
        assert host.customer_annual_revenue == 4800
        assert host.revenue_source == "base-rent"

    def test_revenue_share_binding(self):
        host = calculate_site_host(33177.6, 2, RevenueSettings(), SiteHostSettings(lease_per_space=10))
        assert host.annual_base_rent == 240
        assert host.revenue_source == "revenue-share"
        assert host.customer_annual_revenue == host.revenue_share_amount
        assert host.revenue_share_amount > 1200

    def test_additional_spaces(self):
        host = calculate_site_host(0, 4, RevenueSettings(), SiteHostSettings(additional_equipment_spaces=2))
        assert host.total_spaces == 6
        assert host.annual_base_rent == 6 * 200 * 12

    def test_tie_goes_to_base_rent(self):
        host = calculate_site_host(0, 2, RevenueSettings(),
                                   SiteHostSettings(lease_per_space=0, revenue_share_percent=0))
        assert host.customer_annual_revenue == 0
        assert host.revenue_source == "base-rent"


# ---- Projection Tests ----

class TestProjection:
    def test_growth_multipliers(self):
        """10% a year compounds: year 10 = 1.1^9."""
        m = growth_multipliers([10.0] * 9)
        assert len(m) == 10
        assert m[0] == 1.0
        assert abs(m[1] - 1.1) < 1e-12
        assert abs(m[9] - 1.1 ** 9) < 1e-9

    def test_constant_growth(self):
        years = project_utilization(10000, 2, RevenueSettings(), SiteHostSettings(),
                                    UtilizationGrowthSettings(constant_rate=10))
        assert [y.year for y in years] == list(range(1, 11))
        assert years[0].annual_kwh == 10000
        assert abs(years[2].annual_kwh - 12100) < 1e-6
        assert years[0].booking_profit is None

    def test_manual_growth(self):
        rates = [0, 0, 0, 0, 0, 0, 0, 0, 100]
        years = project_utilization(10000, 2, RevenueSettings(), SiteHostSettings(),
                                    UtilizationGrowthSettings(mode="manual", yearly_rates=rates))
        assert all(y.utilization_multiplier == 1.0 for y in years[:9])
        assert years[9].utilization_multiplier == 2.0

    def test_share_overtakes_rent(self):
        """Strong growth eventually makes the revenue share binding."""
        years = project_utilization(33177.6, 2, RevenueSettings(), SiteHostSettings(),
                                    UtilizationGrowthSettings(constant_rate=50))
        assert years[0].revenue_source == "base-rent"
        assert years[-1].revenue_source == "revenue-share"
        for y in years:
            assert y.customer_revenue == max(y.base_rent, y.revenue_share_amount)

    def test_hotel_booking_profit(self):
        """Bookings grow by +1/year, profit per booking by 3%/year."""
        settings = RevenueSettings(industry_type="Hotel/Hospitality")
        years = project_utilization(10000, 2, settings, SiteHostSettings(), UtilizationGrowthSettings())
        assert years[0].monthly_bookings == 20
        assert years[0].profit_per_booking == 100
        assert years[0].booking_profit == 24000
        assert years[1].monthly_bookings == 21
        assert years[1].profit_per_booking == 103
        assert years[1].booking_profit == 21 * 103 * 12
        assert years[0].total_customer_profit == pytest.approx(years[0].customer_revenue + 24000)

    def test_invalid_manual_rate_count(self):
        with pytest.raises(ValueError):
            UtilizationGrowthSettings(mode="manual", yearly_rates=[5.0] * 8)

    @pytest.mark.parametrize("field_name", ["booking_growth_yearly_rates", "profit_growth_yearly_rates"])
    @pytest.mark.parametrize("count", [3, 10])
    def test_invalid_booking_rate_count(self, field_name, count):
        """Booking and profit growth need one rate per projection step."""
        with pytest.raises(ValueError):
            RevenueSettings(industry_type="Hotel/Hospitality", booking_growth_mode="manual",
                            profit_growth_mode="manual", **{field_name: [1.0] * count})

    def test_manual_booking_growth(self):
        """Manual steps add to monthly bookings year by year."""
        settings = RevenueSettings(industry_type="Hotel/Hospitality", booking_growth_mode="manual",
                                   booking_growth_yearly_rates=[2.0] * 9)
        years = project_utilization(10000, 2, settings, SiteHostSettings(), UtilizationGrowthSettings())
        assert len(years) == 10
        assert [y.monthly_bookings for y in years] == [20.0 + 2 * i for i in range(10)]


class TestResolveDefaults:
    def test_missing_settings_get_defaults(self):
        assert resolve_revenue_settings(None) == RevenueSettings()
        assert resolve_site_host_settings(None) == SiteHostSettings()
        assert resolve_utilization_growth(None) == UtilizationGrowthSettings()

    def test_present_settings_kept(self):
        settings = RevenueSettings(cost_to_driver_per_kwh=0.55)
        assert resolve_revenue_settings(settings) is settings
