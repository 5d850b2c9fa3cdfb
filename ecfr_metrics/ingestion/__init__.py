"""
Data ingestion module for the eCFR API.
"""

from .ecfr_client import EcfrClient
from .date_resolver import resolve_structure_date

__all__ = ["EcfrClient", "resolve_structure_date"]
