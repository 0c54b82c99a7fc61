"""Chronological train/test splitting and predictor scaling.

Games are split by date so that every test game is played after every training
game, emulating forecasting without look-ahead. Predictors are standardised with
statistics from the training segment only.
"""

import math
from dataclasses import dataclass
from datetime import date

import numpy as np
import pandas as pd
import polars as pl
import structlog
from sklearn.preprocessing import StandardScaler

from src.utils.date_utils import get_season_for_date

# Initialize logger
logger = structlog.get_logger(__name__)


@dataclass
class DataSplit:
    """Chronological partition of the matchup data."""

    train: pl.DataFrame
    test: pl.DataFrame
    boundary_date: date

    @property
    def train_size(self) -> int:
        return self.train.height

    @property
    def test_size(self) -> int:
        return self.test.height


def chronological_split(df: pl.DataFrame, train_fraction: float = 0.8) -> DataSplit:
    """Split games into an earlier training segment and a later test segment.

    Args:
        df: Matchup DataFrame with a ``date`` column
        train_fraction: Approximate share of games used for training

    Returns:
        DataSplit whose test segment starts at ``boundary_date``. Games played on the
        boundary date all go to the test segment.

    Raises:
        ValueError: If the fraction is outside (0, 1) or a segment would be empty
    """
    if not 0.0 < train_fraction < 1.0:
        raise ValueError(f"train_fraction must be between 0 and 1, got {train_fraction}")

    ordered = df.sort("date", maintain_order=True)
    cut = math.floor(ordered.height * train_fraction)
    if cut == 0 or cut >= ordered.height:
        raise ValueError(
            f"Cannot split {ordered.height} games with train_fraction={train_fraction}"
        )

    boundary_date = ordered["date"][cut]
    train = ordered.filter(pl.col("date") < boundary_date)
    test = ordered.filter(pl.col("date") >= boundary_date)

    if train.height == 0:
        raise ValueError(
            f"No games before boundary date {boundary_date}; training segment would be empty"
        )

    logger.info(
        "Split matchups chronologically",
        train_games=train.height,
        test_games=test.height,
        boundary_date=str(boundary_date),
        train_seasons=sorted({get_season_for_date(d) for d in train["date"].unique()}),
        test_seasons=sorted({get_season_for_date(d) for d in test["date"].unique()}),
    )
    return DataSplit(train=train, test=test, boundary_date=boundary_date)


class Standardizer:
    """Center and scale predictors using training-segment statistics."""

    def __init__(self, features: list[str]) -> None:
        self.features = list(features)
        self.scaler = StandardScaler()
        self._fitted = False

    def fit(self, train: pl.DataFrame) -> "Standardizer":
        """Learn per-predictor means and standard deviations from training games."""
        self.scaler.fit(self._matrix(train))
        self._fitted = True

        constant = [
            feature
            for feature, variance in zip(self.features, self.scaler.var_, strict=True)
            if variance == 0
        ]
        if constant:
            logger.debug("Predictors left unscaled", features=constant)
        return self

    def transform(self, df: pl.DataFrame) -> pd.DataFrame:
        """Standardise predictors.

        Args:
            df: Matchup DataFrame containing every configured predictor

        Returns:
            pandas DataFrame of standardised predictors with a 0..n-1 index

        Raises:
            RuntimeError: If called before ``fit``
        """
        if not self._fitted:
            raise RuntimeError("Standardizer must be fit before transform")

        return pd.DataFrame(self.scaler.transform(self._matrix(df)), columns=self.features)

    def fit_transform(self, train: pl.DataFrame) -> pd.DataFrame:
        return self.fit(train).transform(train)

    def _matrix(self, df: pl.DataFrame) -> np.ndarray:
        return df.select(self.features).cast(pl.Float64).to_numpy()


def target_series(df: pl.DataFrame, column: str) -> pd.Series:
    """Extract a target column as a float pandas Series aligned with ``Standardizer`` output."""
    return pd.Series(df[column].cast(pl.Float64).to_numpy(), name=column)
