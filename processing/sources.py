#!/usr/bin/env python3
"""
Case and boundary loaders.

Both sources are read once per render. Any problem reading or validating them
raises FetchFailure; there is no partial load and no retry.

Loaded frames use the internal column names:
- cases: ``region_name``, ``notification_date``, ``source_of_infection``
- boundaries: ``region_name``, ``geometry``
"""

from pathlib import Path
from typing import Union

import geopandas as gpd
import pandas as pd
from loguru import logger

from ops import Config

from .data_utils import clean_and_validate, missing_columns
from .errors import FetchFailure


def read_case_csv(
    source: Union[str, Path],
    region_column: str = "lga_name19",
    date_column: str = "notification_date",
    source_column: str = "likely_source_of_infection",
    dayfirst: bool = False,
) -> pd.DataFrame:
    """
    Read the case CSV from a URL or path and standardize its columns.

    Args:
        source: URL or local path of the CSV
        region_column: Column holding the region name
        date_column: Column holding the notification date
        source_column: Column holding the likely source of infection
        dayfirst: Parse ambiguous dates as day/month/year

    Returns:
        DataFrame with the internal case columns
    """
    logger.info(f"📊 Loading case records from {source}")

    try:
        raw = pd.read_csv(source, dtype=str, keep_default_na=False, na_values=[""])
    except (OSError, ValueError, pd.errors.ParserError) as e:
        raise FetchFailure(source, e) from e

    mapping = {
        region_column: "region_name",
        date_column: "notification_date",
        source_column: "source_of_infection",
    }
    missing = missing_columns(raw, mapping)
    if missing:
        logger.debug(f"   Available columns: {list(raw.columns)}")
        raise FetchFailure(source, f"missing required columns {missing}")

    df = raw[list(mapping)].rename(columns=mapping)

    dates = pd.to_datetime(df["notification_date"], errors="coerce", dayfirst=dayfirst)
    bad_dates = dates.isna()
    if bad_dates.any():
        examples = df.loc[bad_dates, "notification_date"].head(3).tolist()
        raise FetchFailure(
            source, f"{int(bad_dates.sum())} rows with unparseable notification_date, e.g. {examples}"
        )
    df["notification_date"] = dates.dt.normalize()

    logger.success(f"  ✅ Loaded {len(df):,} case records")
    if not df.empty:
        logger.debug(
            f"     Notification dates {df['notification_date'].min():%Y-%m-%d} "
            f"to {df['notification_date'].max():%Y-%m-%d}"
        )
    return df


def read_boundaries(source: Union[str, Path], name_column: str = "NSW_LGA__3") -> gpd.GeoDataFrame:
    """
    Read LGA boundary polygons and standardize them for the web map.

    Args:
        source: URL or path of any vector format geopandas reads
        name_column: Attribute holding the region name

    Returns:
        GeoDataFrame with ``region_name`` and ``geometry`` in WGS84
    """
    logger.info(f"🗺️ Loading LGA boundaries from {source}")

    try:
        gdf = gpd.read_file(source)
    except Exception as e:
        # geopandas surfaces driver errors from pyogrio/fiona with their own types
        raise FetchFailure(source, e) from e

    if name_column not in gdf.columns:
        logger.debug(f"   Available columns: {list(gdf.columns)}")
        raise FetchFailure(source, f"missing boundary name column '{name_column}'")

    gdf = gdf[[name_column, "geometry"]].rename(columns={name_column: "region_name"})
    gdf = gpd.GeoDataFrame(gdf, geometry="geometry", crs=gdf.crs)
    gdf = clean_and_validate(gdf, "boundary")

    logger.success(f"  ✅ Loaded {len(gdf):,} boundary polygons")
    return gdf


def load_case_records(config: Config) -> pd.DataFrame:
    """Load the configured case CSV."""
    return read_case_csv(
        config.get_input_path("cases_csv"),
        region_column=config.get_column_name("region_name"),
        date_column=config.get_column_name("notification_date"),
        source_column=config.get_column_name("source_of_infection"),
        dayfirst=bool(config.get_analysis_setting("dayfirst")),
    )


def load_lga_boundaries(config: Config) -> gpd.GeoDataFrame:
    """Load the configured LGA boundary file."""
    return read_boundaries(
        config.get_input_path("lga_boundaries"),
        name_column=config.get_column_name("boundary_name"),
    )
