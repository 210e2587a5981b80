"""Efficiency analysis and result formatting."""

from .efficiency import EfficiencyAnalyzer, EfficiencyReport, analyze, generate_report
from .formatters import (
    conflicts_table,
    efficiency_panel,
    format_slot_list,
    placements_table,
    render_text,
    save_json,
    slots_table,
    to_json,
)

__all__ = [
    # Efficiency
    "EfficiencyAnalyzer",
    "EfficiencyReport",
    "analyze",
    "generate_report",
    # Formatters
    "conflicts_table",
    "efficiency_panel",
    "format_slot_list",
    "placements_table",
    "render_text",
    "save_json",
    "slots_table",
    "to_json",
]
