"""Score differential linear regression model.

Predicts home score minus away score with ordinary least squares and reports
observation-level prediction intervals.
"""

from dataclasses import asdict, dataclass

import pandas as pd
import structlog

from src.models.base import BaseMatchupModel
from src.models.metrics import RegressionMetrics, interval_coverage, regression_metrics
from src.models.selection import FitFunction, fit_ols

# Initialize logger
logger = structlog.get_logger(__name__)


@dataclass
class SpreadEvaluation:
    """Test-segment evaluation of the score differential model."""

    metrics: RegressionMetrics
    interval_level: float
    coverage: float
    mean_interval_width: float
    train_r_squared: float
    train_adj_r_squared: float

    def to_dict(self) -> dict:
        return asdict(self)


class SpreadModel(BaseMatchupModel):
    """Linear regression for the score differential."""

    def __init__(self, criterion: str = "aic", interval_level: float = 0.95) -> None:
        """Initialize the score differential model.

        Args:
            criterion: Information criterion used for selection
            interval_level: Coverage level of prediction intervals
        """
        super().__init__(criterion)
        if not 0.0 < interval_level < 1.0:
            raise ValueError(f"interval_level must be between 0 and 1, got {interval_level}")
        self.interval_level = interval_level

    @property
    def fit_function(self) -> FitFunction:
        return fit_ols

    def _after_fit(self, X: pd.DataFrame, y: pd.Series) -> None:
        logger.info(
            "Fitted score differential model",
            features=len(self.features),
            r_squared=round(float(self.results.rsquared), 4),
        )

    def predict(self, X: pd.DataFrame):
        """Predict score differentials."""
        return self._predict_mean(X)

    def prediction_intervals(self, X: pd.DataFrame) -> pd.DataFrame:
        """Compute prediction intervals for new games.

        Args:
            X: Standardised predictors

        Returns:
            DataFrame with ``prediction``, ``lower`` and ``upper`` columns
        """
        design = self._design(X)
        frame = self.results.get_prediction(design).summary_frame(alpha=1.0 - self.interval_level)
        return pd.DataFrame(
            {
                "prediction": frame["mean"].to_numpy(),
                "lower": frame["obs_ci_lower"].to_numpy(),
                "upper": frame["obs_ci_upper"].to_numpy(),
            }
        )

    def evaluate(self, X: pd.DataFrame, y: pd.Series) -> SpreadEvaluation:
        """Evaluate the model on held-out games.

        Args:
            X: Standardised test predictors
            y: Observed score differentials

        Returns:
            SpreadEvaluation with point metrics and interval coverage
        """
        intervals = self.prediction_intervals(X)
        metrics = regression_metrics(y, intervals["prediction"])
        coverage, width = interval_coverage(y, intervals["lower"], intervals["upper"])

        evaluation = SpreadEvaluation(
            metrics=metrics,
            interval_level=self.interval_level,
            coverage=coverage,
            mean_interval_width=width,
            train_r_squared=float(self.results.rsquared),
            train_adj_r_squared=float(self.results.rsquared_adj),
        )
        logger.info(
            "Evaluated score differential model",
            games=len(X),
            r_squared=round(metrics.r_squared, 4),
            rmse=round(metrics.rmse, 3),
            mae=round(metrics.mae, 3),
            coverage=round(coverage, 3),
        )
        return evaluation
