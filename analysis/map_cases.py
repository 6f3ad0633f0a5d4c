#!/usr/bin/env python3
"""
Outbreak Case Choropleth

Draws locally acquired cases per Local Government Area as an interactive
Leaflet map:

- one filled polygon per LGA with cases, colored by case-count bin
- a hover label with the LGA name, case count and most recent notification
- a legend with the bin colors
- a caption with the date range and the cases that could not be mapped

LGAs without cases are not drawn. The map is written as a standalone HTML
file that the blog post embeds.
"""

import html
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence, Union

import folium
from loguru import logger
from shapely.geometry import mapping

from ops import Config
from processing.aggregate import RegionCaseAggregator
from processing.bins import ColorBin
from processing.data_utils import ensure_output_directory
from processing.models import RenderResult
from processing.sources import load_case_records, load_lga_boundaries

CONTROL_POSITIONS = {
    "topleft": "top: 80px; left: 10px;",
    "topright": "top: 10px; right: 10px;",
    "bottomleft": "bottom: 30px; left: 10px;",
    "bottomright": "bottom: 30px; right: 10px;",
}

CONTROL_STYLE = """
    position: fixed; {position}
    z-index: 9999;
    background-color: white;
    border: 1px solid #999999;
    border-radius: 5px;
    box-shadow: 0 0 10px rgba(0,0,0,0.2);
    padding: 8px 10px;
    font-family: Arial, sans-serif;
    font-size: 12px;
"""


def control_css(position: str) -> str:
    """Inline CSS pinning a control to one corner of the map."""
    if position not in CONTROL_POSITIONS:
        raise ValueError(f"Unknown control position {position!r}, use one of {list(CONTROL_POSITIONS)}")
    return " ".join(CONTROL_STYLE.format(position=CONTROL_POSITIONS[position]).split())


def legend_html(bins: Sequence[ColorBin], title: str, position: str) -> str:
    """HTML for the bin legend."""
    rows = "".join(
        f'<div><i style="background:{b.color}; width:18px; height:12px; '
        f'display:inline-block; margin-right:6px; opacity:0.8;"></i>{html.escape(b.label)}</div>'
        for b in bins
    )
    return (
        f'<div class="case-map-legend" style="{control_css(position)}">'
        f"<strong>{html.escape(title)}</strong>{rows}</div>"
    )


def caption_html(result: RenderResult, position: str) -> str:
    """HTML for the date range / excluded cases caption."""
    return (
        f'<div class="case-map-caption" style="{control_css(position)} max-width: 260px;">'
        f"{html.escape(result.caption_text())}</div>"
    )


def map_center(result: RenderResult, default_center: List[float]) -> List[float]:
    """Centre of the joined regions, or the configured centre when there are none."""
    if result.is_empty:
        return list(default_center)

    bounds = result.regions.total_bounds
    return [(bounds[1] + bounds[3]) / 2, (bounds[0] + bounds[2]) / 2]


def create_case_map(result: RenderResult, config: Config) -> folium.Map:
    """
    Build the interactive choropleth for one render result.

    Args:
        result: Output of RegionCaseAggregator.run
        config: Configuration instance

    Returns:
        folium.Map ready to save
    """
    logger.info("🗺️ Creating interactive case map...")

    outline = dict(config.get_visualization_setting("outline"))
    center = map_center(result, config.get_visualization_setting("center"))
    logger.debug(f"  📍 Map center: {center[0]:.4f}, {center[1]:.4f}")

    m = folium.Map(
        location=center,
        zoom_start=config.get_visualization_setting("zoom_start"),
        tiles=config.get_visualization_setting("tiles"),
        prefer_canvas=True,
    )

    layer = folium.FeatureGroup(name="Cases by LGA")
    # specs and geometries come from the same rows, so each polygon keeps its own label
    for spec, geometry in zip(result.render_specs(), result.regions.geometry):
        feature = {
            "type": "Feature",
            "properties": {"region_name": spec.region_name, "case_count": spec.case_count},
            "geometry": mapping(geometry),
        }
        folium.GeoJson(
            data=feature,
            name=spec.region_name,
            style_function=lambda _feature, color=spec.color: {**outline, "fillColor": color},
            highlight_function=lambda _feature: {"weight": 4, "color": "#666666", "dashArray": ""},
            tooltip=folium.Tooltip(spec.label_html, sticky=True),
        ).add_to(layer)
    layer.add_to(m)

    if not result.is_empty:
        minx, miny, maxx, maxy = result.regions.total_bounds
        m.fit_bounds([[miny, minx], [maxy, maxx]])

    root = m.get_root()
    root.html.add_child(
        folium.Element(
            legend_html(
                result.bins,
                config.get_visualization_setting("legend_title"),
                config.get_visualization_setting("legend_position"),
            )
        )
    )
    root.html.add_child(
        folium.Element(caption_html(result, config.get_visualization_setting("caption_position")))
    )

    logger.success(f"  ✅ Drew {len(result.regions):,} regions")
    return m


def save_case_map(m: folium.Map, output_path: Union[str, Path]) -> Path:
    """Write the map to a standalone HTML file."""
    output_path = ensure_output_directory(output_path)
    m.save(str(output_path))
    logger.success(f"  ✅ Interactive case map saved: {output_path}")
    return output_path


def build_render_result(config: Config, threshold: Optional[date] = None) -> RenderResult:
    """Fetch both sources and aggregate them. Raises on any failure."""
    cases = load_case_records(config)
    boundaries = load_lga_boundaries(config)
    return RegionCaseAggregator.from_config(config, threshold).run(cases, boundaries)


def render_case_map(
    config: Config,
    threshold: Optional[date] = None,
    output_path: Optional[Union[str, Path]] = None,
) -> RenderResult:
    """
    Run the whole render: load, aggregate, draw and save.

    Args:
        config: Configuration instance
        threshold: Override for analysis.threshold_date
        output_path: Override for output_files.case_map_html

    Returns:
        The RenderResult the map was drawn from
    """
    result = build_render_result(config, threshold)
    m = create_case_map(result, config)
    save_case_map(m, output_path or config.get_output_path("case_map_html"))

    logger.info("📊 Summary:")
    logger.info(f"   📍 Regions mapped: {len(result.regions):,}")
    logger.info(f"   🦠 Cases mapped: {result.mapped_case_count:,} of {result.total_case_count:,}")
    logger.info(f"   🚫 Cases with no fixed LGA: {result.unmatched_case_count:,}")
    if result.unjoined_regions:
        logger.info(f"   ⚠️ Cases in regions without a polygon: {result.unjoined_case_count:,}")
    return result
