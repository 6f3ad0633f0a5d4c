"""
Color bins for the choropleth.

Counts are assigned to half-open ``[lower, upper)`` intervals; the last bin is
open-ended. Colors come from a named matplotlib colormap sampled at one point
per bin, or from an explicit list of hex colors.
"""

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

import matplotlib
import numpy as np
import pandas as pd
from matplotlib import colors as mpl_colors

DEFAULT_BREAKS: Tuple[float, ...] = (0, 100, 500, 1000, 5000, 10000, math.inf)


@dataclass(frozen=True)
class ColorBin:
    """A half-open count interval and the color it is drawn with."""

    lower: float
    upper: float
    color: str

    @property
    def label(self) -> str:
        if math.isinf(self.upper):
            return f"{self.lower:,.0f}+"
        return f"{self.lower:,.0f} – {self.upper:,.0f}"


def palette_colors(palette: Union[str, Sequence[str]], n_colors: int) -> List[str]:
    """Resolve a palette name or an explicit color list to ``n_colors`` hex strings."""
    if isinstance(palette, str):
        cmap = matplotlib.colormaps[palette].resampled(n_colors)
        return [mpl_colors.to_hex(cmap(i)) for i in range(n_colors)]

    resolved = [mpl_colors.to_hex(c) for c in palette]
    if len(resolved) != n_colors:
        raise ValueError(f"Palette has {len(resolved)} colors but {n_colors} bins are configured")
    return resolved


def build_color_bins(
    breaks: Sequence[float] = DEFAULT_BREAKS, palette: Union[str, Sequence[str]] = "YlOrRd"
) -> Tuple[ColorBin, ...]:
    """Pair consecutive break points with palette colors.

    Breaks must start at 0, increase strictly and end at infinity so that the
    bins cover every non-negative count exactly once.
    """
    breaks = [float(b) for b in breaks]
    if len(breaks) < 2:
        raise ValueError("At least two bin breaks are required")
    if breaks[0] != 0 or not math.isinf(breaks[-1]):
        raise ValueError(f"Bin breaks must run from 0 to infinity, got {breaks}")
    if any(lo >= hi for lo, hi in zip(breaks, breaks[1:])):
        raise ValueError(f"Bin breaks must be strictly increasing, got {breaks}")

    colors = palette_colors(palette, len(breaks) - 1)
    return tuple(ColorBin(lo, hi, color) for lo, hi, color in zip(breaks, breaks[1:], colors))


def assign_bins(counts: pd.Series, bins: Sequence[ColorBin]) -> pd.Series:
    """Index of the bin each count falls in (lower-inclusive, upper-exclusive)."""
    if counts.empty:
        return pd.Series([], index=counts.index, dtype=int, name="bin_index")
    if (counts < 0).any():
        raise ValueError("Case counts must be non-negative")

    edges = [b.lower for b in bins] + [bins[-1].upper]
    # right=False gives [lower, upper) intervals
    codes = pd.cut(counts, bins=edges, right=False, labels=False)
    return pd.Series(np.asarray(codes, dtype=int), index=counts.index, name="bin_index")
