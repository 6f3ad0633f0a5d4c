#!/usr/bin/env python3
"""
data_utils.py - Shared Data Processing Utilities

Column checks, geometry cleanup and output helpers shared by the loaders,
the aggregator and the map renderer.
"""

from pathlib import Path
from typing import Iterable, List

import geopandas as gpd
import pandas as pd
from loguru import logger


def missing_columns(df: pd.DataFrame, required: Iterable[str]) -> List[str]:
    """Return the required column names absent from ``df``, in order."""
    return [col for col in required if col not in df.columns]


def clean_and_validate(gdf: gpd.GeoDataFrame, data_type: str = "geodata") -> gpd.GeoDataFrame:
    """Reproject to WGS84 and repair invalid geometries.

    Args:
        gdf: GeoDataFrame to clean and validate
        data_type: Type of data for context ("boundary", "region", etc.)

    Returns:
        Cleaned and validated GeoDataFrame (a new object; the input is untouched)
    """
    logger.debug(f"🧹 Cleaning and validating {data_type} data...")

    # Ensure WGS84 for output (web standard)
    if gdf.crs is None:
        logger.warning("  ⚠️ No CRS found, assuming WGS84")
        gdf = gdf.set_crs("EPSG:4326")
    elif gdf.crs.to_epsg() != 4326:
        logger.debug(f"  🔄 Reprojecting from {gdf.crs} to WGS84")
        gdf = gdf.to_crs("EPSG:4326")
    else:
        gdf = gdf.copy()

    original_count = len(gdf)
    gdf = gdf[gdf.geometry.notna()].copy()
    if len(gdf) < original_count:
        logger.warning(f"  ⚠️ Removed {original_count - len(gdf)} features without geometry")

    invalid_count = int((~gdf.geometry.is_valid).sum())
    if invalid_count > 0:
        logger.warning(f"  ⚠️ Found {invalid_count} invalid geometries, fixing...")
        gdf["geometry"] = gdf.geometry.buffer(0)  # Fix topology errors
        logger.debug("  🔧 Fixed invalid geometries")

    logger.debug(f"  ✅ {data_type.title()} data cleaned and validated")
    return gdf


def ensure_output_directory(output_path: str | Path) -> Path:
    """Ensure output directory exists and return Path object.

    Args:
        output_path: Output file path (string or Path)

    Returns:
        Path object with directory created
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    return output_path
