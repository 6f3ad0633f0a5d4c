"""
Processing package for the Outbreak Case Maps

Loads the case and boundary data and turns them into the per-region table
the choropleth is drawn from.
"""

__version__ = "0.1.0"

from .aggregate import RegionCaseAggregator
from .bins import ColorBin, assign_bins, build_color_bins
from .errors import FetchFailure, OutbreakMapError, UnmatchedRegionError
from .models import RenderResult, RenderSpec
from .regions import normalize_region_name
from .sources import load_case_records, load_lga_boundaries

__all__ = [
    "RegionCaseAggregator",
    "ColorBin",
    "assign_bins",
    "build_color_bins",
    "FetchFailure",
    "OutbreakMapError",
    "UnmatchedRegionError",
    "RenderResult",
    "RenderSpec",
    "normalize_region_name",
    "load_case_records",
    "load_lga_boundaries",
]
