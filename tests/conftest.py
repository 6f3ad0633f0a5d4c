"""Shared fixtures: small in-memory case tables, square LGA polygons and a local config."""

from datetime import date

import geopandas as gpd
import pandas as pd
import pytest
import yaml
from loguru import logger
from shapely.geometry import box

from ops import Config

THRESHOLD = date(2021, 6, 16)


def make_cases(records):
    """Case frame from (region_name, 'YYYY-MM-DD', source) tuples."""
    df = pd.DataFrame(records, columns=["region_name", "notification_date", "source_of_infection"])
    df["notification_date"] = pd.to_datetime(df["notification_date"])
    return df


def make_boundaries(names, crs="EPSG:4326"):
    """One unit square per name, laid out left to right near Sydney."""
    geometries = [box(150.0 + i, -34.0, 150.9 + i, -33.1) for i in range(len(names))]
    return gpd.GeoDataFrame({"region_name": list(names)}, geometry=geometries, crs=crs)


@pytest.fixture(autouse=True)
def reset_logger():
    """Drop sinks added by the CLI so later tests never log to a closed stream."""
    yield
    logger.remove()


@pytest.fixture
def log_messages():
    """Collect formatted loguru messages at WARNING and above."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="WARNING")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def scenario_cases():
    return make_cases(
        [
            ("Foo(A)", "2021-06-20", "Local"),
            ("FOO", "2021-06-25", "Local"),
            ("Bar", "2021-06-10", "Overseas"),
        ]
    )


@pytest.fixture
def scenario_boundaries():
    return make_boundaries(["FOO", "BAR"])


@pytest.fixture
def project_dir(tmp_path):
    """A project directory holding a case CSV, a GeoJSON boundary file and config.yaml."""
    cases = pd.DataFrame(
        {
            "notification_date": ["2021-06-18", "2021-06-17", "2021-06-20", "2021-06-21", "2021-06-22"],
            "postcode": ["2640", "2026", "2026", "2000", "2800"],
            "likely_source_of_infection": [
                "Locally acquired - linked to known case or cluster",
                "Locally acquired - linked to known case or cluster",
                "Overseas",
                "Locally acquired - investigation ongoing",
                "Locally acquired - linked to known case or cluster",
            ],
            "lga_name19": [
                "Albury (C)",
                "Waverley (A)",
                "Waverley (A)",
                "Sydney (C)",
                "Correctional settings",
            ],
        }
    )
    cases.to_csv(tmp_path / "cases.csv", index=False)

    boundaries = make_boundaries(["ALBURY CITY", "WAVERLEY", "SYDNEY"]).rename(
        columns={"region_name": "LGA_NAME"}
    )
    boundaries.to_file(tmp_path / "lga.geojson", driver="GeoJSON")

    settings = {
        "project_name": "Test outbreak",
        "input_files": {"cases_csv": "cases.csv", "lga_boundaries": "lga.geojson"},
        "columns": {"boundary_name": "LGA_NAME"},
        "analysis": {
            "threshold_date": "2021-06-16",
            "region_aliases": {"Albury": "Albury City"},
        },
        "output_files": {"case_map_html": "html/case_map.html"},
    }
    with open(tmp_path / "config.yaml", "w") as f:
        yaml.safe_dump(settings, f)

    return tmp_path


@pytest.fixture
def config(project_dir):
    return Config(project_dir / "config.yaml", project_root_override=project_dir)
