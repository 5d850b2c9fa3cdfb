"""
PostgreSQL storage for agencies and their metric time series.
"""

from .database import EcfrDatabase

__all__ = ["EcfrDatabase"]
