"""
Pipeline orchestration module for eCFR agency metrics.
"""

from .pipeline import EcfrMetricsPipeline

__all__ = ["EcfrMetricsPipeline"]
