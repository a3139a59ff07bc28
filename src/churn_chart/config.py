# ABOUTME: Chart defaults loaded from a TOML file.
# ABOUTME: Resolves the config path from CLI flag, environment variable or default location.

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .git_history import normalize_extensions
from .percentile import InvalidPercentileError, validate_percentile

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CHURN_CHART_CONFIG"


@dataclass(frozen=True)
class ChartConfig:
    """Defaults for chart rendering and history extraction."""

    percentile: int = 95
    scale_width: int = 50
    include_merges: bool = True
    ignore: tuple[str, ...] = ()


def _default_config_path() -> Path:
    """Return the default config location."""
    return Path.home() / ".config" / "churn-chart" / "config.toml"


def resolve_config_path(cli_config: Optional[str]) -> Path:
    """Resolve the config path.

    Priority:
    1. CLI --config flag (if provided)
    2. CHURN_CHART_CONFIG environment variable
    3. ~/.config/churn-chart/config.toml
    """
    if cli_config is not None:
        return Path(cli_config).expanduser()

    env_config = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if env_config:
        return Path(env_config).expanduser()

    return _default_config_path()


def load_config(config_path: Optional[Path] = None) -> ChartConfig:
    """Load chart defaults from TOML.

    Returns defaults when the file doesn't exist or can't be parsed. Invalid
    individual values are reported and replaced by their default.
    """
    if config_path is None:
        config_path = _default_config_path()

    if not config_path.exists():
        return ChartConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e)
        return ChartConfig()

    defaults = ChartConfig()

    percentile = defaults.percentile
    if "percentile" in data:
        try:
            percentile = validate_percentile(data["percentile"])
        except InvalidPercentileError as e:
            logger.warning("%s: %s; using %d", config_path, e, defaults.percentile)

    scale_width = defaults.scale_width
    raw_width = data.get("scale_width", defaults.scale_width)
    if isinstance(raw_width, int) and not isinstance(raw_width, bool) and raw_width > 0:
        scale_width = raw_width
    else:
        logger.warning("%s: invalid scale_width %r; using %d", config_path, raw_width, scale_width)

    include_merges = data.get("include_merges", defaults.include_merges)
    if not isinstance(include_merges, bool):
        logger.warning("%s: include_merges must be true or false", config_path)
        include_merges = defaults.include_merges

    ignore_raw = data.get("ignore", [])
    if isinstance(ignore_raw, str):
        ignore_raw = ignore_raw.split(",")
    if not isinstance(ignore_raw, list) or not all(isinstance(e, str) for e in ignore_raw):
        logger.warning("%s: ignore must be a list of extensions", config_path)
        ignore_raw = []

    return ChartConfig(
        percentile=percentile,
        scale_width=scale_width,
        include_merges=include_merges,
        ignore=normalize_extensions(ignore_raw),
    )
