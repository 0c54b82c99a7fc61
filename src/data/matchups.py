"""Matchup metrics loading for the NCAA Matchup Models.

This module reads the per-game matchup metrics CSV, derives the modelling targets
(score differential and home-win indicator) and partitions the metric columns into
opponent-strength ranking predictors (suffix ``_r``) and the remaining predictors.
"""

from enum import Enum
from pathlib import Path

import polars as pl
import structlog

from src.utils.date_utils import SEASON_START_MONTH

# Initialize logger
logger = structlog.get_logger(__name__)

RANK_SUFFIX = "_r"

# Tokens read as missing values, including R-style NA
NULL_VALUES = ["NA", ""]

REQUIRED_COLUMNS = [
    "date",
    "home_team",
    "away_team",
    "home_team_score",
    "away_team_score",
    "neutral_game",
]

SCORE_COLUMNS = ["home_team_score", "away_team_score"]

# Columns that are never used as predictors; neutral_game is a predictor
META_COLUMNS = [
    "date",
    "home_team",
    "away_team",
    "home_team_score",
    "away_team_score",
    "score_diff",
    "winner",
    "season",
]


class FeatureSet(str, Enum):
    """Predictor sets the models are fit on."""

    WITH_RANKINGS = "with_rankings"
    WITHOUT_RANKINGS = "without_rankings"


class Target(str, Enum):
    """Modelling targets."""

    WINNER = "winner"
    SCORE_DIFF = "score_diff"

    @property
    def is_binary(self) -> bool:
        return self is Target.WINNER


def load_matchups(path: str | Path, date_format: str = "%Y-%m-%d") -> pl.DataFrame:
    """Load matchup metrics and derive modelling targets.

    Args:
        path: Path to the matchup metrics CSV file
        date_format: strptime format of the ``date`` column

    Returns:
        Chronologically sorted DataFrame with ``score_diff``, ``winner`` and ``season``

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file cannot be parsed, required columns are missing or
            non-numeric, dates are malformed or no games remain
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Matchup data not found: {path}")

    logger.info("Loading matchup metrics", path=str(path))
    try:
        df = pl.read_csv(path, infer_schema_length=10000, null_values=NULL_VALUES)
    except pl.exceptions.PolarsError as e:
        raise ValueError(f"Could not read matchup data from {path}: {e}") from e

    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(f"Matchup data is missing required columns: {missing}")

    try:
        df = df.with_columns(_parse_dates(df, date_format))
    except pl.exceptions.PolarsError as e:
        raise ValueError(f"Invalid date format in matchup data. Expected {date_format}.") from e

    # Booleans are modelled as 0/1 indicators
    bool_columns = [name for name, dtype in df.schema.items() if dtype == pl.Boolean]
    if bool_columns:
        df = df.with_columns(pl.col(bool_columns).cast(pl.Int8))

    non_numeric = [column for column in SCORE_COLUMNS if not df.schema[column].is_numeric()]
    if non_numeric:
        raise ValueError(f"Score columns must be numeric: {non_numeric}")

    try:
        df = df.with_columns(
            (pl.col("home_team_score") - pl.col("away_team_score")).alias("score_diff")
        )
        df = df.with_columns(_winner_expression(df))
    except pl.exceptions.PolarsError as e:
        raise ValueError(f"Could not derive targets from matchup data: {e}") from e

    season_start = (
        pl.when(pl.col("date").dt.month() >= SEASON_START_MONTH)
        .then(pl.col("date").dt.year())
        .otherwise(pl.col("date").dt.year() - 1)
    )
    df = df.with_columns(
        (
            season_start.cast(pl.Utf8)
            + pl.lit("-")
            + ((season_start + 1) % 100).cast(pl.Utf8).str.zfill(2)
        ).alias("season")
    )

    model_columns = ["date", "score_diff", "winner", *rank_predictors(df), *non_rank_predictors(df)]
    float_columns = [c for c in model_columns if df.schema[c] in (pl.Float32, pl.Float64)]
    if float_columns:
        df = df.with_columns(pl.col(float_columns).fill_nan(None))

    row_count = df.height
    df = df.drop_nulls(subset=model_columns)
    dropped = row_count - df.height
    if dropped:
        logger.warning("Dropped games with missing values", dropped=dropped, remaining=df.height)

    if df.height == 0:
        raise ValueError(f"No complete games found in {path}")

    df = df.sort("date", maintain_order=True)

    logger.info(
        "Loaded matchup metrics",
        games=df.height,
        first_date=str(df["date"].min()),
        last_date=str(df["date"].max()),
        rank_predictors=len(rank_predictors(df)),
        non_rank_predictors=len(non_rank_predictors(df)),
    )
    return df


def _parse_dates(df: pl.DataFrame, date_format: str) -> pl.Expr:
    """Build the expression converting the ``date`` column to ``pl.Date``."""
    dtype = df.schema["date"]
    if dtype == pl.Date:
        return pl.col("date")
    if dtype == pl.Datetime:
        return pl.col("date").dt.date()
    return pl.col("date").cast(pl.Utf8).str.strptime(pl.Date, date_format, strict=True)


def _winner_expression(df: pl.DataFrame) -> pl.Expr:
    """Build the home-win indicator expression.

    An existing ``winner`` column may hold 0/1 flags or the winning team's name;
    otherwise the indicator is derived from the score differential.
    """
    if "winner" not in df.columns:
        return (pl.col("score_diff") > 0).cast(pl.Int8).alias("winner")

    dtype = df.schema["winner"]
    if dtype.is_numeric():
        return (pl.col("winner") > 0).cast(pl.Int8).alias("winner")
    if dtype == pl.Utf8:
        logger.debug("Deriving home-win indicator from winner team names")
        return (pl.col("winner") == pl.col("home_team")).cast(pl.Int8).alias("winner")

    raise ValueError(f"Unsupported type for winner column: {dtype}")


def _is_numeric_predictor(df: pl.DataFrame, column: str) -> bool:
    return column not in META_COLUMNS and df.schema[column].is_numeric()


def rank_predictors(df: pl.DataFrame) -> list[str]:
    """Get the opponent-strength ranking predictors.

    Args:
        df: Matchup DataFrame

    Returns:
        Numeric columns ending in ``_r``, in file order
    """
    return [
        column
        for column in df.columns
        if column.endswith(RANK_SUFFIX) and _is_numeric_predictor(df, column)
    ]


def non_rank_predictors(df: pl.DataFrame) -> list[str]:
    """Get the predictors that are not ranking metrics.

    Args:
        df: Matchup DataFrame

    Returns:
        Numeric, non-metadata columns not ending in ``_r`` (includes ``neutral_game``)
    """
    return [
        column
        for column in df.columns
        if not column.endswith(RANK_SUFFIX) and _is_numeric_predictor(df, column)
    ]


def predictors_for(df: pl.DataFrame, feature_set: FeatureSet) -> list[str]:
    """Get the ordered predictor list for a feature set.

    Args:
        df: Matchup DataFrame
        feature_set: Feature set to build

    Returns:
        Predictor column names

    Raises:
        ValueError: If the feature set has no predictors in this data
    """
    feature_set = FeatureSet(feature_set)
    predictors = non_rank_predictors(df)
    if feature_set is FeatureSet.WITH_RANKINGS:
        predictors = predictors + rank_predictors(df)

    if not predictors:
        raise ValueError(f"No predictors available for feature set {feature_set.value}")

    return predictors
