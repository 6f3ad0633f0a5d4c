"""Result types handed from the aggregator to the map renderer."""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple

import geopandas as gpd
import pandas as pd

from .bins import ColorBin

DATE_LABEL_FORMAT = "%d %b %Y"


def format_date(value) -> str:
    """Format a date as ``DD Mon YYYY``, e.g. ``25 Jun 2021``."""
    return pd.Timestamp(value).strftime(DATE_LABEL_FORMAT)


@dataclass(frozen=True)
class RenderSpec:
    """Everything the map needs to draw one region, apart from its geometry."""

    region_name: str
    case_count: int
    most_recent_date: date
    color: str
    label_html: str


@dataclass
class RenderResult:
    """
    Output of one aggregation run.

    ``regions`` holds one row per joined region with its own polygon:
    ``region_name``, ``case_count``, ``most_recent_date``, ``bin_index``,
    ``color``, ``label_html`` and ``geometry``.
    """

    regions: gpd.GeoDataFrame
    bins: Tuple[ColorBin, ...]
    threshold: date
    total_case_count: int
    unmatched_case_count: int
    unjoined_case_count: int = 0
    unjoined_regions: List[str] = field(default_factory=list)
    most_recent_date: Optional[date] = None

    @property
    def excluded_case_count(self) -> int:
        """Cases counted in the total but not drawn on the map."""
        return self.unmatched_case_count + self.unjoined_case_count

    @property
    def mapped_case_count(self) -> int:
        return int(self.regions["case_count"].sum()) if not self.regions.empty else 0

    @property
    def is_empty(self) -> bool:
        return self.regions.empty

    def render_specs(self) -> List[RenderSpec]:
        """One RenderSpec per joined region, in the order of ``regions``."""
        return [
            RenderSpec(
                region_name=row.region_name,
                case_count=int(row.case_count),
                most_recent_date=pd.Timestamp(row.most_recent_date).date(),
                color=row.color,
                label_html=row.label_html,
            )
            for row in self.regions.itertuples(index=False)
        ]

    def summary_frame(self) -> pd.DataFrame:
        """Joined regions without geometry, largest counts first."""
        columns = ["region_name", "case_count", "most_recent_date", "color"]
        summary = pd.DataFrame(self.regions[columns])
        return summary.sort_values(
            ["case_count", "region_name"], ascending=[False, True]
        ).reset_index(drop=True)

    def caption_text(self) -> str:
        """Plain-text date range and excluded-case note for the map caption."""
        if self.most_recent_date is None:
            window = f"No locally acquired cases notified since {format_date(self.threshold)}."
        else:
            window = (
                f"Cases notified {format_date(self.threshold)} to "
                f"{format_date(self.most_recent_date)}."
            )
        excluded = (
            f"{self.excluded_case_count:,} of {self.total_case_count:,} cases "
            "have no mapped LGA and are not shown."
        )
        return f"{window} {excluded}"
