"""Report storage utilities for the NCAA Matchup Models.

This module stores analysis outputs under the configured report directory. Test-set
predictions are written as partitioned Parquet files, one partition per feature set
and target, and the evaluation summary is written as JSON.
"""

import json
import math
import os
import tempfile
from pathlib import Path
from typing import Any

import polars as pl
import structlog

# Initialize logger
logger = structlog.get_logger(__name__)

SUMMARY_FILE_NAME = "summary.json"


class ReportStorage:
    """Utility class for writing and reading analysis reports."""

    def __init__(self: "ReportStorage", base_dir: str = "data/reports") -> None:
        """Initialize report storage.

        Directories are created on first write, so failures surface in the write
        result rather than here.

        Args:
            base_dir: Base directory for report files
        """
        self.base_dir = Path(base_dir)
        logger.debug("Initialized report storage", base_dir=str(self.base_dir))

    def partition_dir(self: "ReportStorage", feature_set: str, target: str) -> Path:
        """Get the prediction partition directory for a feature set and target."""
        return self.base_dir / "predictions" / f"feature_set={feature_set}" / f"target={target}"

    def write_predictions(
        self: "ReportStorage",
        feature_set: str,
        target: str,
        predictions: pl.DataFrame,
    ) -> dict[str, Any]:
        """Write test-set predictions to a partitioned Parquet file.

        Existing predictions for the same partition are replaced.

        Args:
            feature_set: Feature set name
            target: Target name
            predictions: Per-game predictions

        Returns:
            Dict containing success status and file information
        """
        partition_dir = self.partition_dir(feature_set, target)
        file_path = partition_dir / "data.parquet"

        try:
            partition_dir.mkdir(parents=True, exist_ok=True)
            self._write_dataframe_safely(predictions, file_path)
        except (OSError, pl.exceptions.PolarsError) as e:
            logger.error(
                "Error writing predictions Parquet file",
                file=str(file_path),
                error=str(e),
            )
            return {"success": False, "error": str(e)}

        logger.info(
            "Wrote predictions",
            feature_set=feature_set,
            target=target,
            rows=predictions.height,
            file=str(file_path),
        )
        return {
            "success": True,
            "file_path": str(file_path),
            "partition_dir": str(partition_dir),
            "rows": predictions.height,
        }

    def read_predictions(
        self: "ReportStorage", feature_set: str, target: str
    ) -> pl.DataFrame | None:
        """Read stored predictions for a feature set and target.

        Returns:
            DataFrame of predictions or None if not found
        """
        file_path = self.partition_dir(feature_set, target) / "data.parquet"
        if not file_path.exists():
            logger.warning(
                "Predictions file does not exist",
                feature_set=feature_set,
                target=target,
                file_path=str(file_path),
            )
            return None

        return pl.read_parquet(file_path)

    def list_partitions(self: "ReportStorage") -> list[tuple[str, str]]:
        """List stored (feature_set, target) prediction partitions."""
        predictions_dir = self.base_dir / "predictions"
        if not predictions_dir.exists():
            return []

        partitions = []
        for feature_dir in sorted(predictions_dir.glob("feature_set=*")):
            for target_dir in sorted(feature_dir.glob("target=*")):
                if (target_dir / "data.parquet").exists():
                    partitions.append(
                        (feature_dir.name.split("=", 1)[1], target_dir.name.split("=", 1)[1])
                    )
        return partitions

    def write_summary(self: "ReportStorage", summary: dict[str, Any]) -> dict[str, Any]:
        """Write the analysis summary as JSON.

        NaN metrics are stored as null.

        Args:
            summary: JSON-serialisable summary

        Returns:
            Dict containing success status and file information
        """
        file_path = self.base_dir / SUMMARY_FILE_NAME
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(_replace_nan(summary), indent=2, default=str)
            with open(file_path, "w") as f:
                f.write(payload)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Error writing summary", file=str(file_path), error=str(e))
            return {"success": False, "error": str(e)}

        logger.info("Wrote analysis summary", file=str(file_path))
        return {"success": True, "file_path": str(file_path)}

    def read_summary(self: "ReportStorage") -> dict[str, Any] | None:
        """Read the analysis summary, or None if it has not been written."""
        file_path = self.base_dir / SUMMARY_FILE_NAME
        if not file_path.exists():
            return None
        with open(file_path) as f:
            return json.load(f)

    def _write_dataframe_safely(
        self, df: pl.DataFrame, file_path: Path, compression: str = "zstd"
    ) -> None:
        """Write a DataFrame through a temporary file so readers never see partial output.

        Args:
            df: The DataFrame to write
            file_path: Path to write the file to
            compression: Compression algorithm to use
        """
        fd, temp_name = tempfile.mkstemp(dir=file_path.parent, suffix=".parquet")
        os.close(fd)
        temp_path = Path(temp_name)

        try:
            df.write_parquet(temp_path, compression=compression)
            os.replace(temp_path, file_path)
        finally:
            if temp_path.exists():
                temp_path.unlink()


def _replace_nan(value: Any) -> Any:
    """Recursively replace float NaN values with None."""
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, dict):
        return {key: _replace_nan(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_replace_nan(item) for item in value]
    return value
