"""
eCFR Agency Metrics

Syncs the federal agency hierarchy from the eCFR API, measures the regulation
text each agency is responsible for, and records the results as a time series.
"""

__version__ = "1.0.0"
