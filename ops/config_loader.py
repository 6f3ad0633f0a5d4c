"""
Configuration Loader for the Outbreak Case Maps

This module provides a centralized way to load and access configuration
settings from the config.yaml file.

Usage:
    from ops.config_loader import Config

    config = Config()
    cases_csv = config.get_input_path('cases_csv')
    map_html = config.get_output_path('case_map_html')
"""

import os
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd
import yaml  # type: ignore[import-untyped]
from loguru import logger

PACKAGED_CONFIG = Path(__file__).parent / "config.yaml"


class Config:
    """Configuration manager for the outbreak case maps."""

    # Default values that can be overridden in config
    DEFAULTS: Dict[str, Any] = {
        "columns": {
            "region_name": "lga_name19",
            "notification_date": "notification_date",
            "source_of_infection": "likely_source_of_infection",
            "boundary_name": "NSW_LGA__3",
        },
        "analysis": {
            "threshold_date": "2021-06-16",
            "excluded_source": "Overseas",
            "sentinel_regions": ["CORRECTIONAL SETTINGS"],
            "region_aliases": {},
            "unmatched_policy": "warn",
            "dayfirst": False,
        },
        "visualization": {
            "bins": [0, 100, 500, 1000, 5000, 10000, None],
            "palette": "YlOrRd",
            "outline": {
                "weight": 2,
                "opacity": 1,
                "color": "white",
                "dashArray": "3",
                "fillOpacity": 0.7,
            },
            "legend_title": "Cases",
            "legend_position": "bottomright",
            "caption_position": "topright",
            "tiles": "OpenStreetMap",
            "center": [-33.87, 151.21],
            "zoom_start": 9,
        },
        "output_files": {"case_map_html": "html/case_map.html"},
    }

    def __init__(
        self,
        config_file: Optional[Union[str, Path]] = None,
        project_root_override: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to config file. If None, looks for:
                        1. Environment variable OUTBREAK_MAPS_CONFIG
                        2. config.yaml in current directory
                        3. the config.yaml shipped with the ops package
            project_root_override: Override project root detection
        """
        if config_file is None:
            env_config = os.environ.get("OUTBREAK_MAPS_CONFIG")
            if env_config and Path(env_config).exists():
                config_file = env_config
                logger.debug(f"Using config from environment: {config_file}")
            elif Path("config.yaml").exists():
                config_file = "config.yaml"
            elif PACKAGED_CONFIG.exists():
                config_file = PACKAGED_CONFIG
                logger.debug("Using packaged ops/config.yaml")
            else:
                raise FileNotFoundError(
                    "No config.yaml found. Check current directory or set OUTBREAK_MAPS_CONFIG"
                )

        self.config_path = Path(config_file).resolve()
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        if project_root_override:
            self.project_root = Path(project_root_override).resolve()
            logger.debug(f"Using project root override: {self.project_root}")
        else:
            self.project_root = self._find_project_root()

        logger.debug(f"Loading config from: {self.config_path}")
        logger.debug(f"Project root: {self.project_root}")

        with open(self.config_path, "r") as f:
            self.data = yaml.safe_load(f) or {}

        if not isinstance(self.data, dict):
            raise ValueError(f"Config file must contain a mapping: {self.config_path}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation with intelligent defaults.

        Args:
            key_path: Dot-separated path to the configuration value
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key_path.split(".")

        # Try to get from config first
        value: Any = self.data
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                value = None
                break

        # If not found in config, try defaults
        if value is None:
            value = self.DEFAULTS
            for key in keys:
                if isinstance(value, dict) and key in value:
                    value = value[key]
                else:
                    return default

        return value

    def get_input_path(self, filename_key: str) -> Union[str, Path]:
        """
        Get the location of an input source.

        URLs are returned unchanged; relative paths are joined with the
        project root.
        """
        location = self.data.get("input_files", {}).get(filename_key)
        if not location:
            raise ValueError(f"Input file key '{filename_key}' not found in config: input_files")

        location = str(location)
        if location.startswith(("http://", "https://")):
            return location

        path = Path(location)
        if path.is_absolute():
            return path
        return self.project_root / path

    def get_output_path(self, filename_key: str) -> Path:
        """Get full path to an output file, creating its directory."""
        relative_path = self.get(f"output_files.{filename_key}")
        if not relative_path:
            raise ValueError(f"Unknown output file key: {filename_key}")

        output_path = Path(relative_path)
        if not output_path.is_absolute():
            output_path = self.project_root / output_path
        output_path.parent.mkdir(parents=True, exist_ok=True)
        return output_path

    def get_column_name(self, column_key: str) -> str:
        """Get column name with intelligent defaults."""
        result = self.get(f"columns.{column_key}")
        if isinstance(result, str):
            return result
        raise ValueError(f"Column name not found or not a string: {column_key}")

    def get_analysis_setting(self, setting_key: str) -> Any:
        """Get analysis setting with intelligent defaults."""
        return self.get(f"analysis.{setting_key}")

    def get_visualization_setting(self, setting_key: str) -> Any:
        """Get visualization setting with intelligent defaults."""
        return self.get(f"visualization.{setting_key}")

    def get_threshold_date(self) -> date:
        """Start of the outbreak window as a date."""
        raw = self.get_analysis_setting("threshold_date")
        try:
            return pd.Timestamp(raw).date()
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid analysis.threshold_date: {raw!r}") from e

    def get_sentinel_regions(self) -> List[str]:
        """Region names that have no polygon by design."""
        return [str(name).upper() for name in self.get_analysis_setting("sentinel_regions") or []]

    def get_region_aliases(self) -> Dict[str, str]:
        """Case-data name -> boundary-data name corrections, both uppercased."""
        aliases = self.get_analysis_setting("region_aliases") or {}
        return {str(k).upper(): str(v).upper() for k, v in aliases.items()}

    def get_bin_breaks(self) -> List[float]:
        """Bin edges with an open upper end mapped to infinity."""
        breaks = self.get_visualization_setting("bins")
        return [float("inf") if b is None else float(b) for b in breaks]

    def print_config_summary(self) -> None:
        """Log a summary of the current configuration."""
        logger.debug("📋 Configuration Summary")
        logger.debug("=" * 50)
        logger.debug(f"Project: {self.get('project_name', 'Unknown')}")
        logger.debug(f"Description: {self.get('description', 'No description')}")
        logger.debug(f"Config file: {self.config_path}")
        logger.debug(f"Project root: {self.project_root}")

        logger.debug("📊 Input Files:")
        for key in self.data.get("input_files", {}):
            logger.debug(f"  {key}: {self.get_input_path(key)}")

        logger.debug(f"📅 Threshold date: {self.get_threshold_date()}")
        logger.debug(f"🎨 Bins: {self.get_bin_breaks()}")

    def _find_project_root(self) -> Path:
        """Find the project root directory by looking for characteristic files/directories."""
        # The packaged config lives inside site-packages when installed
        if self.config_path == PACKAGED_CONFIG.resolve():
            return Path.cwd()

        current = self.config_path.parent
        project_markers = ["data", "html", "ops", "pyproject.toml", ".git"]

        for _ in range(5):  # Limit to 5 levels up
            markers_found = sum(1 for marker in project_markers if (current / marker).exists())
            if markers_found >= 2:
                return current

            parent = current.parent
            if parent == current:
                break
            current = parent

        logger.warning(
            f"Could not reliably detect project root, using config directory: {self.config_path.parent}"
        )
        return self.config_path.parent
