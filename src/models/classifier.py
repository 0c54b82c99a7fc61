"""Home-win logistic regression model.

Predicts whether the home team wins from standardised matchup metrics. The decision
threshold is tuned for accuracy on the training segment and then applied unchanged
to the test segment.
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import pandas as pd
import structlog

from src.models.base import BaseMatchupModel
from src.models.metrics import (
    DEFAULT_THRESHOLD,
    ClassificationMetrics,
    classification_metrics,
    tune_threshold,
)
from src.models.selection import FitFunction, fit_logit
from src.utils.config import ThresholdConfig

# Initialize logger
logger = structlog.get_logger(__name__)


@dataclass
class WinnerEvaluation:
    """Test-segment evaluation of the winner model."""

    default: ClassificationMetrics
    tuned: ClassificationMetrics

    def to_dict(self) -> dict:
        return {"default": self.default.to_dict(), "tuned": self.tuned.to_dict()}


class WinnerModel(BaseMatchupModel):
    """Logistic regression for the home-win indicator."""

    def __init__(
        self,
        criterion: str = "aic",
        threshold_grid: Sequence[float] | None = None,
    ) -> None:
        """Initialize the winner model.

        Args:
            criterion: Information criterion used for selection
            threshold_grid: Candidate decision thresholds (0.30 to 0.70 by 0.01 if omitted)
        """
        super().__init__(criterion)
        self.threshold_grid = (
            list(threshold_grid) if threshold_grid is not None else ThresholdConfig().grid()
        )
        if not self.threshold_grid:
            raise ValueError("Threshold grid is empty")
        self.threshold = DEFAULT_THRESHOLD

    @property
    def fit_function(self) -> FitFunction:
        return fit_logit

    def _validate_target(self, y: pd.Series) -> None:
        values = set(np.unique(np.asarray(y)))
        if not values <= {0, 1}:
            raise ValueError(f"Winner target must be 0/1, got values {sorted(values)}")
        if len(values) < 2:
            raise ValueError("Winner target needs both home wins and home losses to fit")

    def _after_fit(self, X: pd.DataFrame, y: pd.Series) -> None:
        train_probabilities = self.predict_proba(X)
        self.threshold = tune_threshold(y, train_probabilities, self.threshold_grid)
        logger.info(
            "Fitted winner model",
            features=len(self.features),
            threshold=self.threshold,
        )

    def predict_proba(self, X: pd.DataFrame) -> np.ndarray:
        """Predict home-win probabilities."""
        return self._predict_mean(X)

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Predict home wins (1) and losses (0) at the tuned threshold."""
        return (self.predict_proba(X) >= self.threshold).astype(int)

    def evaluate(self, X: pd.DataFrame, y: pd.Series) -> WinnerEvaluation:
        """Evaluate the model on held-out games.

        Args:
            X: Standardised test predictors
            y: Observed 0/1 outcomes

        Returns:
            Metrics at the 0.5 threshold and at the tuned threshold
        """
        probabilities = self.predict_proba(X)
        evaluation = WinnerEvaluation(
            default=classification_metrics(y, probabilities, DEFAULT_THRESHOLD),
            tuned=classification_metrics(y, probabilities, self.threshold),
        )
        logger.info(
            "Evaluated winner model",
            games=len(X),
            accuracy=round(evaluation.tuned.accuracy, 4),
            auc=round(evaluation.tuned.auc, 4),
            threshold=self.threshold,
        )
        return evaluation
