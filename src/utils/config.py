"""Configuration utilities for the NCAA Matchup Models.

This module provides functionality for loading, validating, and accessing configuration
settings from YAML files. It covers the input data location, the chronological split,
stepwise selection, threshold tuning, prediction intervals and report output.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
import yaml

# Initialize logger
logger = structlog.get_logger(__name__)

CONFIG_FILE_NAME = "analysis.yaml"
VALID_CRITERIA = ("aic", "bic")


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    file: str | None = None
    json_format: bool = False


@dataclass
class DataConfig:
    """Input data configuration."""

    matchups_path: str = "data/NCAA_mbb_matchup_metrics_2024.csv"
    date_format: str = "%Y-%m-%d"


@dataclass
class SplitConfig:
    """Chronological train/test split configuration."""

    train_fraction: float = 0.8


@dataclass
class SelectionConfig:
    """Stepwise feature selection configuration."""

    criterion: str = "aic"


@dataclass
class ThresholdConfig:
    """Decision threshold grid for the winner model."""

    start: float = 0.30
    stop: float = 0.70
    step: float = 0.01

    def grid(self) -> list[float]:
        """Build the inclusive threshold grid.

        Returns:
            Thresholds from start to stop (inclusive), rounded to avoid float drift
        """
        count = int(round((self.stop - self.start) / self.step)) + 1
        return [round(self.start + i * self.step, 6) for i in range(count)]


@dataclass
class IntervalConfig:
    """Prediction interval configuration for the score differential model."""

    level: float = 0.95


@dataclass
class OutputConfig:
    """Report output configuration."""

    dir: str = "data/reports"


@dataclass
class Config:
    """Main configuration object."""

    logging: LoggingConfig
    data: DataConfig
    split: SplitConfig
    selection: SelectionConfig
    threshold: ThresholdConfig
    intervals: IntervalConfig
    output: OutputConfig


def get_default_config() -> dict[str, Any]:
    """Get default configuration settings.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "logging": {
            "level": "INFO",
            "file": None,
            "json_format": False,
        },
        "data": {
            "matchups_path": "data/NCAA_mbb_matchup_metrics_2024.csv",
            "date_format": "%Y-%m-%d",
        },
        "split": {
            "train_fraction": 0.8,
        },
        "selection": {
            "criterion": "aic",
        },
        "threshold": {
            "start": 0.30,
            "stop": 0.70,
            "step": 0.01,
        },
        "intervals": {
            "level": 0.95,
        },
        "output": {
            "dir": "data/reports",
        },
    }


def deep_merge(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries recursively.

    Args:
        target: Target dictionary to merge into
        source: Source dictionary to merge from

    Returns:
        Merged dictionary
    """
    for key, value in source.items():
        if key in target and isinstance(target[key], dict) and isinstance(value, dict):
            deep_merge(target[key], value)
        else:
            target[key] = value
    return target


def get_config(config_dir: Path) -> Config:
    """Load configuration from YAML files.

    Args:
        config_dir: Path to configuration directory

    Returns:
        Config object with merged configuration

    Raises:
        FileNotFoundError: If configuration directory or file not found
        ValueError: If configuration YAML or a configured value is invalid
        KeyError: If required configuration key is missing
    """
    # Ensure config directory exists
    if not config_dir.exists():
        raise FileNotFoundError(f"Configuration directory not found: {config_dir}")

    analysis_file = config_dir / CONFIG_FILE_NAME
    if not analysis_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {CONFIG_FILE_NAME}")

    # Initialize with default config
    config_data = get_default_config()

    # Load all YAML files
    try:
        for yaml_file in sorted(config_dir.glob("*.yaml")):
            with open(yaml_file) as f:
                file_config = yaml.safe_load(f)
                if file_config:
                    deep_merge(config_data, file_config)
    except yaml.YAMLError as e:
        raise ValueError(f"Configuration error in YAML: {e}") from e

    validate_config(config_data)

    data_section = config_data["data"]
    if not data_section.get("matchups_path"):
        raise KeyError("Missing required configuration key: data.matchups_path")

    try:
        config = Config(
            logging=LoggingConfig(**config_data["logging"]),
            data=DataConfig(**data_section),
            split=SplitConfig(**config_data["split"]),
            selection=SelectionConfig(**config_data["selection"]),
            threshold=ThresholdConfig(**config_data["threshold"]),
            intervals=IntervalConfig(**config_data["intervals"]),
            output=OutputConfig(**config_data["output"]),
        )
    except TypeError as e:
        raise ValueError(f"Configuration error: {e}") from e

    validate_values(config)
    logger.debug("Loaded configuration", config_dir=str(config_dir))
    return config


def validate_config(config_data: dict[str, Any]) -> None:
    """Validate configuration data.

    Args:
        config_data: Configuration data dictionary

    Raises:
        KeyError: If required configuration key is missing
    """
    required_sections = ["data", "split", "selection", "threshold", "intervals", "output"]
    for section in required_sections:
        if not isinstance(config_data.get(section), dict):
            raise KeyError(f"Missing required configuration key: {section}")


def validate_values(config: Config) -> None:
    """Validate configured values that the analysis depends on.

    Args:
        config: Parsed configuration

    Raises:
        ValueError: If a value is outside its valid range
    """
    if not 0.0 < config.split.train_fraction < 1.0:
        raise ValueError(
            f"split.train_fraction must be between 0 and 1, got {config.split.train_fraction}"
        )

    if not 0.0 < config.intervals.level < 1.0:
        raise ValueError(f"intervals.level must be between 0 and 1, got {config.intervals.level}")

    if config.selection.criterion.lower() not in VALID_CRITERIA:
        raise ValueError(
            f"selection.criterion must be one of {VALID_CRITERIA}, "
            f"got {config.selection.criterion}"
        )

    threshold = config.threshold
    if threshold.step <= 0:
        raise ValueError("threshold.step must be positive")
    if not 0.0 < threshold.start <= threshold.stop < 1.0:
        raise ValueError(
            f"threshold range must satisfy 0 < start <= stop < 1, "
            f"got {threshold.start}..{threshold.stop}"
        )
