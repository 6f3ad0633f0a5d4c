#!/usr/bin/env python3
"""
Outbreak Case Map CLI

Renders the cases-by-LGA choropleth with the ability to override
configuration values from the command line instead of editing config.yaml.

Usage:
    outbreak-maps [OPTIONS] [COMMAND]

    # Render with the configured sources and window:
    outbreak-maps render

    # Different outbreak window or output file:
    outbreak-maps render --threshold 2021-08-01 --output html/august.html

    # Local copies of the sources:
    outbreak-maps render --cases-csv data/cases.csv --boundaries data/lga.geojson

    # Any config key in dot notation:
    outbreak-maps --config visualization.palette=Reds render

    # Per-region table without writing the map:
    outbreak-maps summary

    # Verbose logging:
    outbreak-maps --verbose render
"""

import os
import sys
from datetime import date
from typing import Any, Dict, Optional, Tuple

import click
import yaml  # type: ignore[import-untyped]
from loguru import logger

from analysis.map_cases import build_render_result, render_case_map
from ops.config_loader import Config
from processing.errors import OutbreakMapError


def apply_override(data: Dict[str, Any], key: str, value: Any) -> None:
    """Set a nested config value using dot notation."""
    keys = key.split(".")
    current = data
    for k in keys[:-1]:
        if not isinstance(current.get(k), dict):
            current[k] = {}
        current = current[k]
    current[keys[-1]] = value
    logger.debug(f"Added override: {key} = {value}")


# Custom Click types for better validation
class ConfigOverride(click.ParamType):
    """Custom parameter type for config overrides."""

    name = "config_override"

    def convert(self, value, param, ctx) -> Tuple[str, Any]:
        if "=" not in value:
            self.fail(f"Invalid format: {value}. Use KEY=VALUE", param, ctx)

        key, val = value.split("=", 1)

        # Auto-parse value type
        if val.lower() in ("true", "false"):
            parsed_val: Any = val.lower() == "true"
        elif val.isdigit():
            parsed_val = int(val)
        elif "." in val and val.replace(".", "").isdigit():
            parsed_val = float(val)
        else:
            parsed_val = val

        return key, parsed_val


def setup_logging(verbose: bool = False, enable_trace: bool = False) -> None:
    """
    Configure loguru logging with appropriate levels.

    Args:
        verbose: If True, set log level to DEBUG
        enable_trace: If True, enable TRACE level logging for deep debugging
    """
    # Remove default logger
    logger.remove()

    if enable_trace:
        log_level = "TRACE"
        log_format = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>"
    elif verbose:
        log_level = "DEBUG"
        log_format = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>"
    else:
        log_level = "INFO"
        log_format = (
            "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
        )

    logger.add(
        sys.stderr,
        format=log_format,
        level=log_level,
        colorize=True,
        backtrace=enable_trace,
        diagnose=enable_trace,
    )

    os.environ["LOGURU_LEVEL"] = log_level

    if verbose:
        logger.debug("🔧 Verbose logging enabled (DEBUG level)")
    if enable_trace:
        logger.trace("🔍 Trace logging enabled - maximum detail mode")


def handle_critical_error(error: Exception, context: str = "") -> None:
    """
    Log a fatal error, with the full traceback in TRACE mode.

    Args:
        error: The exception that occurred
        context: Additional context about where the error occurred
    """
    enable_trace = os.environ.get("LOGURU_LEVEL", "INFO") == "TRACE"

    if enable_trace:
        logger.trace(f"Error context: {context}")
        logger.trace(f"Error type: {type(error).__name__}")
        import traceback

        logger.trace("Full traceback:")
        logger.trace(traceback.format_exc())

    logger.critical(f"💥 CRITICAL ERROR: {context}")
    logger.critical(f"Exception: {type(error).__name__}: {error}")

    if not enable_trace:
        logger.info("💡 For detailed debugging, run with --trace flag")


@click.group(invoke_without_command=True)
@click.option(
    "--config-file",
    type=click.Path(exists=True, dir_okay=False),
    help="Config file to use instead of the default lookup",
)
@click.option(
    "--config",
    "config_overrides",
    multiple=True,
    type=ConfigOverride(),
    help="Set config values using dot notation (e.g., visualization.palette=Reds)",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable DEBUG level logging")
@click.option(
    "--trace", is_flag=True, help="Enable TRACE level logging for deep debugging (maximum detail)"
)
@click.option("--log-file", type=str, help="Also log to specified file")
@click.pass_context
def cli(ctx, config_file, config_overrides, verbose, trace, log_file):
    """
    Outbreak case maps: locally acquired cases by LGA as an interactive choropleth.

    Runs `render` when no command is given.
    """
    setup_logging(verbose=verbose, enable_trace=trace)

    if log_file:
        logger.add(
            log_file,
            level="TRACE" if trace else ("DEBUG" if verbose else "INFO"),
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}",
            rotation="10 MB",
            retention="7 days",
        )
        logger.info(f"📄 Also logging to file: {log_file}")

    try:
        config = Config(config_file)
        for key, value in config_overrides:
            apply_override(config.data, key, value)
        config.print_config_summary()
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        handle_critical_error(e, "Configuration error")
        ctx.exit(1)

    logger.info(f"📋 Project: {config.get('project_name')}")
    ctx.obj = config

    if ctx.invoked_subcommand is None:
        ctx.invoke(render)


def _apply_source_options(
    config: Config,
    cases_csv: Optional[str],
    boundaries: Optional[str],
    strict: bool,
) -> None:
    if cases_csv:
        apply_override(config.data, "input_files.cases_csv", cases_csv)
    if boundaries:
        apply_override(config.data, "input_files.lga_boundaries", boundaries)
    if strict:
        apply_override(config.data, "analysis.unmatched_policy", "raise")


def _threshold(value) -> Optional[date]:
    return value.date() if value is not None else None


source_options = [
    click.option(
        "--threshold",
        type=click.DateTime(formats=["%Y-%m-%d"]),
        help="First notification date to include (YYYY-MM-DD)",
    ),
    click.option("--cases-csv", type=str, help="Override the case CSV URL or path"),
    click.option("--boundaries", type=str, help="Override the LGA boundary file"),
    click.option(
        "--strict", is_flag=True, help="Fail when a region has no boundary polygon"
    ),
]


def with_source_options(func):
    for option in reversed(source_options):
        func = option(func)
    return func


@cli.command()
@with_source_options
@click.option(
    "--output", type=click.Path(dir_okay=False), help="Override the HTML output path"
)
@click.pass_context
def render(ctx, threshold, cases_csv, boundaries, strict, output):
    """Load the sources, aggregate and save the interactive map."""
    config: Config = ctx.obj
    _apply_source_options(config, cases_csv, boundaries, strict)

    logger.info("🦠 Outbreak Case Map")
    logger.info("=" * 50)

    try:
        render_case_map(config, threshold=_threshold(threshold), output_path=output)
    except (OutbreakMapError, ValueError) as e:
        handle_critical_error(e, "Render failed")
        ctx.exit(1)

    logger.success("🎉 Case map complete")


@cli.command()
@with_source_options
@click.pass_context
def summary(ctx, threshold, cases_csv, boundaries, strict):
    """Log the per-region case table without writing the map."""
    config: Config = ctx.obj
    _apply_source_options(config, cases_csv, boundaries, strict)

    try:
        result = build_render_result(config, threshold=_threshold(threshold))
    except (OutbreakMapError, ValueError) as e:
        handle_critical_error(e, "Aggregation failed")
        ctx.exit(1)

    table = result.summary_frame()
    if table.empty:
        logger.info("No regions with cases in the window")
    else:
        table["most_recent_date"] = table["most_recent_date"].dt.strftime("%d %b %Y")
        logger.info("\n" + table.to_string(index=False))
    logger.info(result.caption_text())


if __name__ == "__main__":
    cli()
