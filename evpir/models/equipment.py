"""Equipment aggregation for EV charging sites.

Reduces the installed charger inventory to the capacity figures the rest
of the engine consumes: nameplate kW, effective kW after load management,
port count and average kW per port.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from evpir.models.project import CHARGER_LEVELS, EquipmentEntry

# Default driver pricing by charger level ($/kWh)
LEVEL2_DRIVER_RATE = 0.40
DCFC_DRIVER_RATE = 0.55


@dataclass(frozen=True)
class EVSEEquipment:
    """A charger model from the equipment catalog.

    Attributes:
        id: Catalog id.
        level: "Level 2" or "DCFC (Level 3)".
        name: Model description.
        manufacturer: Manufacturer name.
        number_of_plugs: Plugs per unit.
        amperage: Output current (A), None for DCFC.
        kw_208v: Rated kW at 208 V, None if unsupported.
        kw_240v: Rated kW at 240 V, None if unsupported.
        kw_480v: Rated kW at 480 V, None if unsupported.
    """

    id: str
    level: str
    name: str
    manufacturer: str = ""
    number_of_plugs: int = 1
    amperage: Optional[float] = None
    kw_208v: Optional[float] = None
    kw_240v: Optional[float] = None
    kw_480v: Optional[float] = None

    def __post_init__(self):
        if self.level not in CHARGER_LEVELS:
            raise ValueError(f"level must be one of {CHARGER_LEVELS}, got {self.level!r}")

    def kw_for_voltage(self, voltage: int) -> Optional[float]:
        """Return the rated kW at a site voltage, or None if unsupported."""
        return {208: self.kw_208v, 240: self.kw_240v, 480: self.kw_480v}.get(voltage)

    @classmethod
    def from_dict(cls, data: dict) -> "EVSEEquipment":
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        return cls(**{k: v for k, v in data.items() if k in valid_fields})


def calculate_nameplate_kw(chargers: Iterable[EquipmentEntry]) -> float:
    r"""Total installed capacity.

    Formula:
        kW_{nameplate} = \sum kW_i \times qty_i \times (plugs_i \text{ if individual circuits else } 1)

    Args:
        chargers: Installed equipment entries.

    Returns:
        Nameplate capacity in kW.
    """
    total = 0.0
    for c in chargers:
        multiplier = c.plugs_per_unit if c.individual_circuits else 1
        total += c.kw_per_charger * c.quantity * multiplier
    return total


def calculate_total_ports(chargers: Iterable[EquipmentEntry]) -> int:
    """Total charging ports across the inventory."""
    return sum(c.plugs_per_unit * c.quantity for c in chargers)


def calculate_total_units(chargers: Iterable[EquipmentEntry]) -> int:
    """Total charger units across the inventory."""
    return sum(c.quantity for c in chargers)


def calculate_effective_kw(nameplate_kw: float, load_management_limit: Optional[float] = None) -> float:
    """Capacity after load management.

    The limit only applies when it is set, positive and below nameplate.

    Args:
        nameplate_kw: Installed nameplate capacity (kW).
        load_management_limit: Optional kW cap.

    Returns:
        Effective capacity in kW.
    """
    if load_management_limit is not None and 0 < load_management_limit < nameplate_kw:
        return load_management_limit
    return nameplate_kw


def calculate_avg_kw_per_port(chargers: List[EquipmentEntry]) -> float:
    """Average nameplate kW per port, 0 when there are no ports.

    Converts hour-based usage inputs into energy.
    """
    total_ports = calculate_total_ports(chargers)
    if total_ports <= 0:
        return 0.0
    return calculate_nameplate_kw(chargers) / total_ports


def suggest_cost_to_driver(chargers: Iterable[EquipmentEntry]) -> float:
    """Suggest a driver price weighted by installed kW per charger level.

    Level 2 capacity is priced at $0.40/kWh and DCFC at $0.55/kWh.
    Returns the Level 2 price when no capacity is installed.
    """
    l2_kw = 0.0
    dcfc_kw = 0.0
    for c in chargers:
        kw = c.kw_per_charger * c.quantity
        if c.level == "Level 2":
            l2_kw += kw
        else:
            dcfc_kw += kw
    total_kw = l2_kw + dcfc_kw
    if total_kw <= 0:
        return LEVEL2_DRIVER_RATE
    weighted = (l2_kw * LEVEL2_DRIVER_RATE + dcfc_kw * DCFC_DRIVER_RATE) / total_kw
    # Nearest cent, half up
    return int(weighted * 100 + 0.5) / 100
