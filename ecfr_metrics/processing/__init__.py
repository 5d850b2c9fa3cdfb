"""
Transformations from raw eCFR payloads to storable agency data and metrics.
"""

from .agency_flattener import flatten_agencies
from .structure_walker import extract_parts, get_parts_for_chapter
from .text_metrics import AgencyTextAggregator, compute_text_metrics, strip_markup

__all__ = [
    "flatten_agencies",
    "extract_parts",
    "get_parts_for_chapter",
    "AgencyTextAggregator",
    "compute_text_metrics",
    "strip_markup",
]
