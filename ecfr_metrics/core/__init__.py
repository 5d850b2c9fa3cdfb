"""
Core module for the eCFR agency metrics system.
"""

from .config import Settings, settings
from .models import *

__all__ = ["Settings", "settings"]
