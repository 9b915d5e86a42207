"""Tests for formatters, workbook export and the command-line interface."""

import json
import zipfile

import pytest

from evpir.cli import main
from evpir.models.calculations import compute_result
from evpir.models.project import EquipmentEntry, Project, RevenueSettings
from evpir.reports.workbook import export_results_workbook
from evpir.utils.formatters import (
    format_currency,
    format_kw,
    format_kwh,
    format_number,
    format_percent,
    format_rate,
    format_season,
    get_tier_label,
)


def _project(**kwargs):
    charger = EquipmentEntry(id="c1", evse_id="l2-48a-sp-pedestal", name="48A SP", level="Level 2",
                             kw_per_charger=11.52, quantity=2)
    return Project(name="Report Site", chargers=[charger], **kwargs)


def _sheet_names(path):
    with zipfile.ZipFile(path) as zf:
        workbook_xml = zf.read("xl/workbook.xml").decode("utf-8")
    return workbook_xml


# ---- Formatter Tests ----

class TestFormatters:
    def test_currency(self):
        assert format_currency(1234.567) == "$1,234.57"
        assert format_currency(-12) == "-$12.00"
        assert format_currency(5000, decimals=0) == "$5,000"

    def test_percent(self):
        assert format_percent(16.6667) == "16.7%"
        assert format_percent(100, 0) == "100%"

    def test_energy_and_power(self):
        assert format_kwh(33638.4) == "33,638 kWh"
        assert format_kw(23.04) == "23.0 kW"
        assert format_kw(23.04, 2) == "23.04 kW"
        assert format_number(1234567) == "1,234,567"

    def test_rates(self):
        """Energy rates show 5 decimals, demand rates 2."""
        assert format_rate(0.0371) == "$0.03710/kWh"
        assert format_rate(8.5, "kW") == "$8.50/kW"
        assert format_rate(None) == "N/A"

    def test_tier_label(self):
        assert get_tier_label(0) == "Standard Rate"
        assert get_tier_label(3) == "Tier 3"

    def test_season(self):
        assert format_season("summer") == "Summer (Jun-Sep)"
        assert format_season("winter") == "Winter (Oct-May)"


# ---- Workbook Tests ----

class TestWorkbook:
    def test_customer_owned_sheets(self, tmp_path):
        result = compute_result(_project())
        path = export_results_workbook(result, str(tmp_path / "estimate.xlsx"))
        names = _sheet_names(path)
        for sheet in ("Summary", "Seasons", "Revenue"):
            assert f'name="{sheet}"' in names
        assert 'name="Projection"' not in names

    def test_site_host_adds_projection(self, tmp_path):
        result = compute_result(_project(
            ownership_type="site-host",
            revenue_settings=RevenueSettings(industry_type="Hotel/Hospitality"),
        ))
        path = export_results_workbook(result, str(tmp_path / "host.xlsx"))
        assert 'name="Projection"' in _sheet_names(path)

    def test_suffix_forced(self, tmp_path):
        result = compute_result(_project())
        path = export_results_workbook(result, str(tmp_path / "estimate.out"))
        assert path.endswith(".xlsx")


# ---- CLI Tests ----

class TestCLI:
    def test_quick_estimate(self, capsys):
        """Two 48A Level 2 chargers at default usage land in Tier 3."""
        assert main(["--charger", "l2-48a-sp-pedestal", "--quantity", "2"]) == 0
        out = capsys.readouterr().out
        assert "Tier 3" in out
        assert "ESTIMATE COMPLETE" in out

    def test_save_and_reload_with_new_usage(self, tmp_path, capsys):
        path = tmp_path / "site.json"
        assert main(["--charger", "l2-48a-sp-pedestal", "--quantity", "2", "--quiet",
                     "--save", str(path)]) == 0
        assert main(["--load", str(path), "--ports", "2", "--hours", "8", "--quiet",
                     "--save", str(path)]) == 0
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["usage"]["avg_hours_per_port_per_day"] == 8
        assert data["usage"]["summer"]["super_peak_hours"] + data["usage"]["summer"]["on_peak_hours"] \
            + data["usage"]["summer"]["off_peak_hours"] == 16

    def test_excel_export(self, tmp_path):
        path = tmp_path / "out.xlsx"
        assert main(["--charger", "l2-48a-sp-pedestal", "--quiet", "--excel", str(path)]) == 0
        assert path.exists()

    def test_missing_project_file(self, tmp_path):
        assert main(["--load", str(tmp_path / "missing.json"), "--quiet"]) == 1

    def test_unknown_service_class(self):
        assert main(["--charger", "l2-48a-sp-pedestal", "--service-class", "SC-99", "--quiet"]) == 1

    def test_no_equipment(self, capsys):
        assert main([]) == 0
        assert "No EVSE capacity configured" in capsys.readouterr().out

    def test_list_equipment(self, capsys):
        assert main(["--list-equipment"]) == 0
        assert "dcfc-320kw-ccs-nacs" in capsys.readouterr().out

    def test_bad_voltage_rejected(self):
        with pytest.raises(SystemExit):
            main(["--voltage", "120"])
