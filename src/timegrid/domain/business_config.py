"""Business configuration: projects, tools and charge codes.

The cascade rules of the grid live here so that validators, the normalizer and
paste ingestion all read the same lists.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from timegrid.domain.errors import ConfigError


PROJECTS_WITHOUT_TOOLS = ("ERT", "PTO/RTO", "SWFL-CHEM/GAS", "Training")

TOOLS_WITHOUT_CHARGES = (
    "Internal Meeting",
    "DECA Meeting",
    "Logistics",
    "Meeting",
    "Non Tool Related",
    "Admin",
    "Training",
    "N/A",
)

PROJECTS = (
    "FL-Carver Techs",
    "FL-Carver Tools",
    "OSC-BBB",
    "PTO/RTO",
    "SWFL-CHEM/GAS",
    "SWFL-EQUIP",
    "Training",
)

CHARGE_CODES = (
    "Admin",
    "EPR1",
    "EPR2",
    "EPR3",
    "EPR4",
    "Repair",
    "Meeting",
    "Other",
    "PM",
    "Training",
    "Upgrade",
)

_CARVER_TOOLS = (
    "Internal Meeting", "DECA Meeting", "Logistics", "Peripherals",
    "#1 Rinse and 2D marker", "#2 Sputter", "#3 Laminator 300mm",
    "#4 Laminator 200mm", "#5 LDI", "#5B LDI", "#6 Decover", "#7 Develop",
    "#8 Optical Metrology", "#9 Scope", "#10 Plate", "#11 Strip for dry film",
    "#12 Solvent strip RDL resist, Cu/Ti Etch", "#13 Automated Inspection",
    "#14 Probe", "#15 Shear", "#16 Laminator", "#17 Backgrind/Mount/Detape",
    "#18 Laser groove", "#19 Saw", "#20 UV treatment", "#21 Carrier Laminator",
    "#22 Die Attach", "#23 Die Position Metrology", "#24 Pre Bake Oven #1",
    "#25 Compression Mold", "#26 Integrated Bond/Debond",
    "#27 Post Mold Cure Oven #2", "#28 CSAM102", "#29 Top Grind",
    "#30 Panelization Metrology", "#31 O2 Plasma Clean", "#32 VIAX Spin Coater",
    "#33 VIAX Developer", "#34 VIAX Cure Oven #3", "#35 Ball Attach",
    "#36 Reflow", "#37 Flux Rinse", "#38 Laser Marker", "#39 Tape and Reel",
    "#40 FOUP Cleaner", "#41 Wafer Transfer System", "#42 Lead Reflow",
    "#43 Cure Oven Loader", "#44 Conveyor Indexers", "#45 Manual Bonder",
    "#46 Manual Debonder", "#47 SEM w/EDX", "#48 Surface Profiler",
    "#49 FTIR Spectrometer", "#52 High Power Microscope", "#56 Filmetrics",
    "#59 Auto Titrator", "#60 Cyclic Voltametry", "#62 XRF",
    "Backgrind Abatement", "PLATE101 3rd HSP Chamber", "eFocus Rapid Cure",
    "PGV Load Cart / FOUP racks",
)

TOOLS_BY_PROJECT = {
    "FL-Carver Techs": _CARVER_TOOLS,
    "FL-Carver Tools": _CARVER_TOOLS,
    "OSC-BBB": (
        "Meeting", "Non Tool Related", "#1 CSAM101", "#2 BOND Pull Tester",
        "#3 Defect Measurement", "#4 AMICRA101", "#5 POLYCURE101", "#6 SAW101",
        "#7 BOND103", "#8 PLASMA101", "#9 Wafer or Die Ball Attach",
        "#10 Reflow Oven", "#11 Leak Detector", "#12 Lid Attach",
        "#13 Environmental Chamber", "#14 FEMTO101", "#15 Compression Mold Tool",
        "#16 LMARK101", "#17 Wire Bonder",
    ),
    "SWFL-EQUIP": (
        "Meeting", "Non Tool Related", "Training", "AFM101", "ALD101",
        "ALIGN101", "ANL101", "ASET101", "ASH101", "BLUEM101", "BOLD101",
        "BOND101", "BOND102", "CLN101", "COAT101", "COAT102", "DEBOND101",
        "DEBOND102", "DPS101", "DPS102", "DSM8101", "DSS101", "ECI101",
        "ENDURA101", "ENDURA102", "ETEST101", "EVAP101", "FIB101", "GAS101",
        "GONI101", "JST101", "JST102", "KLA101", "KLA102", "MIRRA102",
        "MIRRAC101", "NADA101", "NADA102", "NIKON101", "NOV101", "OVLY101",
        "OXID101", "PLATE101", "PROBE101", "PROBE102", "PROFIL101", "SCOPE101",
        "SCOPE102", "SCOPE103", "SCOPE113", "SCOPE114", "SCRIB101", "SEM101",
        "SRD102", "SRD103", "STORM101", "TAPE101", "TRAK101", "TRAK102",
        "TRENCH101",
    ),
}


@dataclass(frozen=True)
class ReferenceData:
    """Allowed values and cascade rules for one deployment."""

    projects: tuple[str, ...] = PROJECTS
    charge_codes: tuple[str, ...] = CHARGE_CODES
    tools_by_project: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(TOOLS_BY_PROJECT)
    )
    projects_without_tools: frozenset[str] = frozenset(PROJECTS_WITHOUT_TOOLS)
    tools_without_charges: frozenset[str] = frozenset(TOOLS_WITHOUT_CHARGES)

    def project_needs_tools(self, project: Optional[str]) -> bool:
        """Check if a project requires a tool selection."""
        return bool(project) and project not in self.projects_without_tools

    def tool_needs_charge_code(self, tool: Optional[str]) -> bool:
        """Check if a tool requires a charge code."""
        return bool(tool) and tool not in self.tools_without_charges

    def tools_for_project(self, project: Optional[str]) -> tuple[str, ...]:
        """Get the tools offered for a project (empty when tools are N/A)."""
        if not self.project_needs_tools(project):
            return ()
        return tuple(self.tools_by_project.get(project, ()))

    def is_valid_project(self, project: str) -> bool:
        return project in self.projects

    def is_valid_tool_for_project(self, tool: str, project: str) -> bool:
        return tool in self.tools_for_project(project)

    def is_valid_charge_code(self, charge_code: str) -> bool:
        return charge_code in self.charge_codes


DEFAULT_REFERENCE_DATA = ReferenceData()


def _string_list(raw: dict[str, Any], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{key} must be a list of strings.")
    return tuple(value)


def load_reference_data(path: Path) -> ReferenceData:
    """Load reference data from a YAML file.

    Keys that are missing from the file fall back to the built-in business
    configuration.

    Args:
        path: Path to a YAML mapping with any of ``projects``, ``charge_codes``,
            ``tools_by_project``, ``projects_without_tools`` and
            ``tools_without_charges``

    Returns:
        ReferenceData instance

    Raises:
        ConfigError: If the file is missing or malformed
    """
    if not path.exists():
        raise ConfigError(f"Reference data file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse reference data file {path}: {e}")
    if not isinstance(raw, dict):
        raise ConfigError("Reference data root must be a mapping (YAML dict).")

    tools_raw = raw.get("tools_by_project")
    if tools_raw is None:
        tools_by_project = dict(TOOLS_BY_PROJECT)
    else:
        if not isinstance(tools_raw, dict):
            raise ConfigError("tools_by_project must be a mapping.")
        tools_by_project = {}
        for project, tools in tools_raw.items():
            if not isinstance(tools, list):
                raise ConfigError(f"tools_by_project[{project}] must be a list.")
            tools_by_project[str(project)] = tuple(str(t) for t in tools)

    return ReferenceData(
        projects=_string_list(raw, "projects", PROJECTS),
        charge_codes=_string_list(raw, "charge_codes", CHARGE_CODES),
        tools_by_project=tools_by_project,
        projects_without_tools=frozenset(
            _string_list(raw, "projects_without_tools", PROJECTS_WITHOUT_TOOLS)
        ),
        tools_without_charges=frozenset(
            _string_list(raw, "tools_without_charges", TOOLS_WITHOUT_CHARGES)
        ),
    )
