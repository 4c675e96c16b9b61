"""
Analysis modules for the Transit Redesign Comparison Project
"""

from .travel_time import (
    aggregate_scenario,
    compare_scenarios,
    relative_change,
    summarize_comparison
)
