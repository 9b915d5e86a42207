"""Unit tests for equipment aggregation."""

import pytest

from evpir.models.equipment import (
    EVSEEquipment,
    calculate_avg_kw_per_port,
    calculate_effective_kw,
    calculate_nameplate_kw,
    calculate_total_ports,
    calculate_total_units,
    suggest_cost_to_driver,
)
from evpir.models.project import EquipmentEntry


def _l2(quantity=1, plugs=1, individual=False, kw=11.52):
    return EquipmentEntry(id="x", evse_id="l2", name="L2", level="Level 2", site_voltage=240,
                          kw_per_charger=kw, quantity=quantity, plugs_per_unit=plugs,
                          individual_circuits=individual)


def _dcfc(quantity=1, kw=60.0):
    return EquipmentEntry(id="y", evse_id="dc", name="DCFC", level="DCFC (Level 3)", site_voltage=480,
                          kw_per_charger=kw, quantity=quantity, plugs_per_unit=2)


class TestNameplate:
    def test_sum_of_units(self):
        """Two 11.52 kW single-port units -> 23.04 kW."""
        assert abs(calculate_nameplate_kw([_l2(quantity=2)]) - 23.04) < 1e-9

    def test_shared_circuit_dual_port(self):
        """Dual-port unit on one circuit counts its rating once."""
        assert abs(calculate_nameplate_kw([_l2(quantity=2, plugs=2)]) - 23.04) < 1e-9

    def test_individual_circuits_multiply_by_plugs(self):
        """Dual-port unit with individual circuits counts its rating per plug."""
        assert abs(calculate_nameplate_kw([_l2(quantity=2, plugs=2, individual=True)]) - 46.08) < 1e-9

    def test_mixed_inventory(self):
        total = calculate_nameplate_kw([_l2(quantity=2), _dcfc(quantity=1)])
        assert abs(total - 83.04) < 1e-9

    def test_empty(self):
        assert calculate_nameplate_kw([]) == 0


class TestPortsAndUnits:
    def test_ports_count_plugs(self):
        """2 dual-port + 1 single-port = 5 ports over 3 units."""
        chargers = [_l2(quantity=2, plugs=2), _l2(quantity=1)]
        assert calculate_total_ports(chargers) == 5
        assert calculate_total_units(chargers) == 3

    def test_avg_kw_per_port(self):
        """Nameplate / ports: 23.04 kW over 2 ports -> 11.52."""
        assert abs(calculate_avg_kw_per_port([_l2(quantity=2)]) - 11.52) < 1e-9

    def test_avg_kw_per_port_no_ports(self):
        assert calculate_avg_kw_per_port([]) == 0


class TestEffectiveCapacity:
    def test_no_limit(self):
        assert calculate_effective_kw(100.0, None) == 100.0

    def test_limit_below_nameplate_applies(self):
        assert calculate_effective_kw(100.0, 60.0) == 60.0

    def test_limit_at_or_above_nameplate_ignored(self):
        assert calculate_effective_kw(100.0, 100.0) == 100.0
        assert calculate_effective_kw(100.0, 150.0) == 100.0

    def test_zero_or_negative_limit_ignored(self):
        assert calculate_effective_kw(100.0, 0) == 100.0
        assert calculate_effective_kw(100.0, -5) == 100.0


class TestSuggestCostToDriver:
    def test_level2_only(self):
        assert suggest_cost_to_driver([_l2(quantity=4)]) == 0.40

    def test_dcfc_only(self):
        assert suggest_cost_to_driver([_dcfc()]) == 0.55

    def test_weighted_by_kw(self):
        """(11.52 x 0.40 + 60 x 0.55) / 71.52 = 0.5258 -> $0.53."""
        assert suggest_cost_to_driver([_l2(), _dcfc()]) == pytest.approx(0.53)

    def test_empty_defaults_to_level2(self):
        assert suggest_cost_to_driver([]) == 0.40


class TestEquipmentModels:
    def test_invalid_level_rejected(self):
        with pytest.raises(ValueError):
            EquipmentEntry(level="Level 1")

    def test_invalid_voltage_rejected(self):
        with pytest.raises(ValueError):
            EquipmentEntry(site_voltage=120)

    def test_zero_plugs_rejected(self):
        with pytest.raises(ValueError):
            EquipmentEntry(plugs_per_unit=0)

    def test_catalog_kw_for_voltage(self):
        evse = EVSEEquipment(id="a", level="Level 2", name="A", kw_208v=9.98, kw_240v=11.52)
        assert evse.kw_for_voltage(208) == 9.98
        assert evse.kw_for_voltage(240) == 11.52
        assert evse.kw_for_voltage(480) is None

    def test_entry_round_trip(self):
        entry = _l2(quantity=3, plugs=2, individual=True)
        assert EquipmentEntry.from_dict(entry.to_dict()) == entry
