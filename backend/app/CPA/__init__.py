from .cpa_core import run_cpa_calc
from .formatting import format_schedule
from .gantt_builder import build_gantt_data, calculate_duration

__all__ = [
    "build_gantt_data",
    "calculate_duration",
    "run_cpa_calc",
    "format_schedule",
]
