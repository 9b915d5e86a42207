"""Reference data loader for the EV PIR engine.

Loads utility rate tables and the EVSE equipment catalog from JSON
files and provides lookups by key. Unknown keys raise
ReferenceDataError rather than falling back to a default.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Dict, List, Optional

from evpir.errors import ReferenceDataError
from evpir.models.equipment import EVSEEquipment
from evpir.models.project import EquipmentEntry
from evpir.models.rates import RateTable, ServiceClassRates

logger = logging.getLogger(__name__)

_DEFAULT_RESOURCE_DIR = Path(__file__).resolve().parent.parent / "resources"

_LEVEL_VOLTAGES = {
    "Level 2": [240, 208],
    "DCFC (Level 3)": [480],
}


class ReferenceData:
    """Manages loading and looking up rate tables and equipment.

    Scans <resource_dir>/rates/*.json and <resource_dir>/equipment/*.json.
    Files that fail to parse are skipped with a warning.

    Args:
        resource_dir: Directory containing rates/ and equipment/ folders.
            Defaults to the package's resources/ directory.
    """

    def __init__(self, resource_dir: str = ""):
        self.resource_dir = Path(resource_dir) if resource_dir else _DEFAULT_RESOURCE_DIR
        self._rate_tables: Dict[str, RateTable] = {}
        self._equipment: Dict[str, EVSEEquipment] = {}
        self._load_all()

    def _read_json_files(self, subdir: str):
        folder = self.resource_dir / subdir
        if not folder.exists():
            logger.warning("Reference directory %s does not exist", folder)
            return
        for path in sorted(folder.glob("*.json")):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    yield path, json.load(f)
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Skipping unreadable reference file %s: %s", path, exc)

    def _load_all(self) -> None:
        """Load all rate tables and equipment catalogs."""
        for path, data in self._read_json_files("rates"):
            try:
                table = RateTable.from_dict(data)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping invalid rate table %s: %s", path, exc)
                continue
            self._rate_tables[table.utility] = table

        for path, data in self._read_json_files("equipment"):
            for item in data.get("equipment", []):
                try:
                    evse = EVSEEquipment.from_dict(item)
                except (KeyError, TypeError, ValueError) as exc:
                    logger.warning("Skipping invalid equipment entry in %s: %s", path, exc)
                    continue
                self._equipment[evse.id] = evse

        logger.debug(
            "Loaded %d rate tables and %d equipment models from %s",
            len(self._rate_tables), len(self._equipment), self.resource_dir,
        )

    # ---- Rates ----

    def get_utility_names(self) -> List[str]:
        """Return sorted list of available utility ids."""
        return sorted(self._rate_tables.keys())

    def get_rate_table(self, utility: str) -> RateTable:
        """Look up a utility's rate table.

        Raises:
            ReferenceDataError: If the utility is not loaded.
        """
        try:
            return self._rate_tables[utility]
        except KeyError:
            raise ReferenceDataError(
                f"Rate table not found for utility '{utility}'. Available: {self.get_utility_names()}"
            ) from None

    def get_service_class_rates(self, utility: str, service_class: str) -> ServiceClassRates:
        return self.get_rate_table(utility).get_service_class(service_class)

    def get_service_class_info(self, utility: str, service_class: str) -> Dict[str, Optional[str]]:
        """Return display metadata for a service class.

        Returns:
            Dict with keys: name, description, notes, min_kw, max_kw.
        """
        sc = self.get_service_class_rates(utility, service_class)
        return {
            "name": sc.name,
            "description": sc.description,
            "notes": sc.notes,
            "min_kw": sc.min_kw,
            "max_kw": sc.max_kw,
        }

    def get_service_classes_for_demand(self, utility: str, demand_kw: float) -> List[str]:
        """Service classes whose kW limits admit a site demand, in table order."""
        table = self.get_rate_table(utility)
        return [key for key, sc in table.service_classes.items() if sc.accepts_demand(demand_kw)]

    # ---- Equipment ----

    def get_equipment_ids(self) -> List[str]:
        return list(self._equipment.keys())

    def get_equipment(self, evse_id: str) -> EVSEEquipment:
        """Look up a charger model by catalog id.

        Raises:
            ReferenceDataError: If the id is not in the catalog.
        """
        try:
            return self._equipment[evse_id]
        except KeyError:
            raise ReferenceDataError(f"Equipment '{evse_id}' not found in catalog") from None

    def get_equipment_by_level(self, level: str) -> List[EVSEEquipment]:
        return [e for e in self._equipment.values() if e.level == level]

    @staticmethod
    def get_available_voltages(level: str) -> List[int]:
        """Site voltages a charger level supports, default first."""
        return list(_LEVEL_VOLTAGES.get(level, [480]))

    @staticmethod
    def get_default_voltage(level: str) -> int:
        return ReferenceData.get_available_voltages(level)[0]

    def build_entry(self, evse_id: str, voltage: Optional[int] = None, quantity: int = 1,
                    individual_circuits: bool = False) -> EquipmentEntry:
        """Create an inventory line item from a catalog model.

        Args:
            evse_id: Catalog id.
            voltage: Site voltage; the level's default when None.
            quantity: Units installed.
            individual_circuits: Each plug on its own circuit.

        Returns:
            A new EquipmentEntry with rated kW for the voltage.

        Raises:
            ReferenceDataError: If the id is not in the catalog.
            ValueError: If the model has no rating at the voltage.
        """
        evse = self.get_equipment(evse_id)
        if voltage is None:
            voltage = self.get_default_voltage(evse.level)
        kw = evse.kw_for_voltage(voltage)
        if kw is None:
            raise ValueError(f"{evse.name} has no rating at {voltage} V")
        return EquipmentEntry(
            id=uuid.uuid4().hex,
            evse_id=evse.id,
            name=evse.name,
            level=evse.level,
            site_voltage=voltage,
            kw_per_charger=kw,
            quantity=quantity,
            plugs_per_unit=evse.number_of_plugs,
            individual_circuits=individual_circuits,
        )
