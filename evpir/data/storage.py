"""Project save/load functionality using JSON serialization.

Saved projects from earlier versions are upgraded by
migrate_project_data() on load; the engine only sees the current shape.
"""

import copy
import json
import logging
from pathlib import Path

from evpir.models.allocation import derive_hours_per_port
from evpir.models.project import Project, UsageInputs

logger = logging.getLogger(__name__)

LEGACY_SERVICE_CLASSES = {
    "SC-1": "SC-2D",
    "SC-2": "SC-2D",
    "SC-2-MRP": "SC-2D",
    "SC-3": "SC-3 Secondary",
}


def migrate_project_data(data: dict) -> dict:
    """Upgrade saved project data to the current format.

    - Legacy service classes map to their current ids.
    - Missing ownership type becomes customer-owned.
    - Legacy bookingProfit becomes booking_profit_per_booking and
      bookingMargin is dropped.
    - Missing hours per port is derived from the stored TOU split.

    Args:
        data: Project dict as read from JSON. Not modified.

    Returns:
        A migrated copy.
    """
    data = copy.deepcopy(data)

    service_class = data.get("service_class")
    if service_class in LEGACY_SERVICE_CLASSES:
        data["service_class"] = LEGACY_SERVICE_CLASSES[service_class]
        logger.info("Migrated service class %s -> %s", service_class, data["service_class"])

    if not data.get("ownership_type"):
        data["ownership_type"] = "customer-owned"

    revenue = data.get("revenue_settings")
    if revenue:
        if "bookingProfit" in revenue and "booking_profit_per_booking" not in revenue:
            revenue["booking_profit_per_booking"] = revenue["bookingProfit"]
        revenue.pop("bookingProfit", None)
        revenue.pop("bookingMargin", None)

    usage = data.get("usage")
    if usage and usage.get("avg_hours_per_port_per_day") is None:
        usage["avg_hours_per_port_per_day"] = derive_hours_per_port(UsageInputs.from_dict(usage))

    return data


def save_project(project: Project, filepath: str) -> None:
    """Save a project to a JSON file.

    Args:
        project: Project object to save.
        filepath: Output file path (should end in .json).

    Raises:
        OSError: If file cannot be written.
    """
    data = project.to_dict()
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)


def load_project(filepath: str) -> Project:
    """Load a project from a JSON file, migrating older formats.

    Args:
        filepath: Path to the JSON project file.

    Returns:
        Reconstructed Project object.

    Raises:
        FileNotFoundError: If file does not exist.
        json.JSONDecodeError: If file is not valid JSON.
        ValueError: If a field holds an invalid value.
    """
    with open(filepath, "r", encoding="utf-8") as f:
        data = json.load(f)
    return Project.from_dict(migrate_project_data(data))
