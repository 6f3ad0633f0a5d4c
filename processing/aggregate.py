#!/usr/bin/env python3
"""
Region case aggregation

Turns raw case records and LGA boundary polygons into the per-region table the
choropleth is drawn from.

Steps:
1. Filter to the outbreak window and drop overseas-acquired cases
2. Count cases and find the most recent notification per raw region name
3. Normalize region names and merge rows that collapse to the same name
4. Set aside sentinel and missing regions, keeping their case total
5. Join to boundary polygons on the normalized name
6. Assign each count a color bin and build its hover label

Every step returns a new frame; inputs are never modified.
"""

import html
from datetime import date
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

import geopandas as gpd
import pandas as pd
from loguru import logger

from ops import Config

from .bins import DEFAULT_BREAKS, ColorBin, assign_bins, build_color_bins
from .errors import UnmatchedRegionError
from .models import RenderResult, format_date
from .regions import is_unmatched, normalize_region_names

AGGREGATE_COLUMNS = ["region_name", "case_count", "most_recent_date"]
UNMATCHED_POLICIES = ("warn", "raise")


def _empty_aggregates() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "region_name": pd.Series(dtype=object),
            "case_count": pd.Series(dtype="int64"),
            "most_recent_date": pd.Series(dtype="datetime64[ns]"),
        }
    )


def filter_cases(cases: pd.DataFrame, threshold: date, excluded_source: str = "Overseas") -> pd.DataFrame:
    """Keep cases notified on or after ``threshold`` that were not acquired from ``excluded_source``."""
    in_window = cases["notification_date"] >= pd.Timestamp(threshold)
    local = cases["source_of_infection"] != excluded_source
    filtered = cases.loc[in_window & local].copy()

    logger.debug(
        f"  🔎 {len(filtered):,} of {len(cases):,} records on or after {threshold} "
        f"and not '{excluded_source}'"
    )
    return filtered


def aggregate_by_region(cases: pd.DataFrame) -> pd.DataFrame:
    """Case count and most recent notification date per raw region name.

    Records without a region name form their own group so they are still
    counted.
    """
    if cases.empty:
        return _empty_aggregates()

    return (
        cases.groupby("region_name", dropna=False, sort=True)
        .agg(
            case_count=("notification_date", "size"),
            most_recent_date=("notification_date", "max"),
        )
        .reset_index()
    )


def normalize_aggregates(
    aggregates: pd.DataFrame, aliases: Optional[Mapping[str, str]] = None
) -> pd.DataFrame:
    """Normalize region names and merge aggregates that now share a name."""
    if aggregates.empty:
        return _empty_aggregates()

    normalized = aggregates.assign(
        region_name=normalize_region_names(aggregates["region_name"], aliases)
    )
    merged = (
        normalized.groupby("region_name", dropna=False, sort=True)
        .agg(case_count=("case_count", "sum"), most_recent_date=("most_recent_date", "max"))
        .reset_index()
    )
    merged["region_name"] = [None if pd.isna(name) else name for name in merged["region_name"]]

    collapsed = len(aggregates) - len(merged)
    if collapsed:
        logger.debug(f"  🔗 Merged {collapsed} raw region name(s) into existing normalized names")
    return merged


def split_unmatched(
    aggregates: pd.DataFrame, sentinels: Iterable[str]
) -> Tuple[pd.DataFrame, int]:
    """Separate sentinel and missing regions from the rows that take part in the join.

    Returns:
        (joinable aggregates, total cases in the separated rows)
    """
    sentinels = list(sentinels)
    unmatched = aggregates["region_name"].map(lambda name: is_unmatched(name, sentinels)).astype(bool)
    unmatched_case_count = int(aggregates.loc[unmatched, "case_count"].sum())

    if unmatched.any():
        names = ["<missing>" if pd.isna(n) else n for n in aggregates.loc[unmatched, "region_name"]]
        logger.info(f"  📍 {unmatched_case_count:,} cases have no fixed LGA ({', '.join(names)})")

    return aggregates.loc[~unmatched].reset_index(drop=True), unmatched_case_count


def prepare_boundaries(boundaries: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Normalize boundary names and dissolve multi-part regions to one row per name."""
    keyed = boundaries[["region_name", "geometry"]].copy()
    keyed["region_name"] = normalize_region_names(keyed["region_name"])
    keyed = keyed[keyed["region_name"].notna()]

    if keyed["region_name"].duplicated().any():
        duplicates = keyed.loc[keyed["region_name"].duplicated(), "region_name"].unique()
        logger.debug(f"  🧩 Dissolving multi-part boundaries: {list(duplicates)}")
        keyed = keyed.dissolve(by="region_name", as_index=False)

    return gpd.GeoDataFrame(keyed, geometry="geometry", crs=boundaries.crs)


def join_boundaries(
    aggregates: pd.DataFrame, boundaries: gpd.GeoDataFrame
) -> Tuple[gpd.GeoDataFrame, pd.DataFrame]:
    """Inner-join aggregates to boundary polygons on normalized name.

    Returns:
        (joined GeoDataFrame, aggregates with no polygon)
    """
    keyed = prepare_boundaries(boundaries)

    joined = keyed.merge(aggregates, on="region_name", how="inner", validate="one_to_one")
    joined = gpd.GeoDataFrame(joined, geometry="geometry", crs=keyed.crs)
    joined = joined.sort_values("region_name").reset_index(drop=True)

    unjoined = aggregates.loc[~aggregates["region_name"].isin(keyed["region_name"])]
    return joined, unjoined.reset_index(drop=True)


def build_label(region_name: str, case_count: int, most_recent_date) -> str:
    """Hover label for one region."""
    noun = "case" if case_count == 1 else "cases"
    return (
        f"<strong>{html.escape(region_name)}</strong><br/>"
        f"{case_count:,} {noun}<br/>"
        f"Most recent: {format_date(most_recent_date)}"
    )


def color_regions(joined: gpd.GeoDataFrame, bins: Sequence[ColorBin]) -> gpd.GeoDataFrame:
    """Attach bin index, fill color and label to each joined region."""
    colored = joined.copy()
    colored["bin_index"] = assign_bins(colored["case_count"], bins)
    colored["color"] = [bins[i].color for i in colored["bin_index"]]
    colored["label_html"] = [
        build_label(name, int(count), latest)
        for name, count, latest in zip(
            colored["region_name"], colored["case_count"], colored["most_recent_date"]
        )
    ]
    return colored


class RegionCaseAggregator:
    """Filter, aggregate, normalize, join and bin case records for one render."""

    def __init__(
        self,
        threshold: date,
        excluded_source: str = "Overseas",
        sentinel_regions: Iterable[str] = ("CORRECTIONAL SETTINGS",),
        region_aliases: Optional[Mapping[str, str]] = None,
        bins: Optional[Sequence[ColorBin]] = None,
        unmatched_policy: str = "warn",
    ):
        if unmatched_policy not in UNMATCHED_POLICIES:
            raise ValueError(
                f"unmatched_policy must be one of {UNMATCHED_POLICIES}, got {unmatched_policy!r}"
            )

        self.threshold = threshold
        self.excluded_source = excluded_source
        self.sentinel_regions: List[str] = [s.upper() for s in sentinel_regions]
        self.region_aliases = {k.upper(): v.upper() for k, v in (region_aliases or {}).items()}
        self.bins = tuple(bins) if bins is not None else build_color_bins(DEFAULT_BREAKS)
        self.unmatched_policy = unmatched_policy

    @classmethod
    def from_config(cls, config: Config, threshold: Optional[date] = None) -> "RegionCaseAggregator":
        """Build an aggregator from the analysis and visualization settings."""
        return cls(
            threshold=threshold or config.get_threshold_date(),
            excluded_source=config.get_analysis_setting("excluded_source"),
            sentinel_regions=config.get_sentinel_regions(),
            region_aliases=config.get_region_aliases(),
            bins=build_color_bins(
                config.get_bin_breaks(), config.get_visualization_setting("palette")
            ),
            unmatched_policy=config.get_analysis_setting("unmatched_policy"),
        )

    def run(self, cases: pd.DataFrame, boundaries: gpd.GeoDataFrame) -> RenderResult:
        """
        Build the render result for the map.

        Args:
            cases: Case records with the internal case columns
            boundaries: Boundary polygons with ``region_name`` and ``geometry``

        Returns:
            RenderResult with one row per joined region

        Raises:
            UnmatchedRegionError: a region has no polygon and the policy is ``raise``
        """
        logger.info("🧮 Aggregating cases by region...")

        filtered = filter_cases(cases, self.threshold, self.excluded_source)
        aggregates = normalize_aggregates(aggregate_by_region(filtered), self.region_aliases)
        joinable, unmatched_case_count = split_unmatched(aggregates, self.sentinel_regions)
        joined, unjoined = join_boundaries(joinable, boundaries)

        unjoined_regions = sorted(unjoined["region_name"])
        unjoined_case_count = int(unjoined["case_count"].sum())
        if unjoined_regions:
            if self.unmatched_policy == "raise":
                raise UnmatchedRegionError(unjoined_regions, unjoined_case_count)
            logger.warning(
                f"  ⚠️ {len(unjoined_regions)} region(s) with {unjoined_case_count:,} cases "
                f"have no boundary polygon: {', '.join(unjoined_regions)}"
            )
            logger.info("   💡 Add an entry to analysis.region_aliases to map them")

        colored = color_regions(joined, self.bins)
        most_recent = colored["most_recent_date"].max() if not colored.empty else None

        result = RenderResult(
            regions=colored,
            bins=self.bins,
            threshold=self.threshold,
            total_case_count=len(filtered),
            unmatched_case_count=unmatched_case_count,
            unjoined_case_count=unjoined_case_count,
            unjoined_regions=unjoined_regions,
            most_recent_date=pd.Timestamp(most_recent).date() if most_recent is not None else None,
        )

        logger.success(
            f"  ✅ {len(colored):,} regions with {result.mapped_case_count:,} cases ready to map"
        )
        if result.is_empty:
            logger.warning("  ⚠️ No regions to draw; the map will only show the legend and caption")
        return result
