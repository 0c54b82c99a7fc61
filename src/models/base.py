"""Base class for stepwise-selected regression models.

This module provides the common foundation for the winner and score differential
models: backward stepwise selection on the training segment, refitting the selected
predictors, and access to the fitted coefficients.
"""

from abc import ABC, abstractmethod
from typing import Any

import numpy as np
import pandas as pd
import structlog

from src.models.selection import (
    CRITERIA,
    FitFunction,
    SelectionResult,
    backward_stepwise,
    design_matrix,
)

# Initialize logger
logger = structlog.get_logger(__name__)


class BaseMatchupModel(ABC):
    """Abstract base class for models fit with backward stepwise selection."""

    def __init__(self, criterion: str = "aic") -> None:
        """Initialize the model.

        Args:
            criterion: Information criterion used for selection (``aic`` or ``bic``)
        """
        criterion = criterion.lower()
        if criterion not in CRITERIA:
            raise ValueError(f"Unsupported criterion: {criterion}. Expected one of {CRITERIA}")

        self.criterion = criterion
        self.selection: SelectionResult | None = None
        self.results: Any = None
        self.features: list[str] = []

    @property
    @abstractmethod
    def fit_function(self) -> FitFunction:
        """Function fitting the underlying statsmodels model."""

    def _validate_target(self, y: pd.Series) -> None:  # noqa: B027
        """Check the target before fitting. Subclasses narrow this."""

    def _after_fit(self, X: pd.DataFrame, y: pd.Series) -> None:  # noqa: B027
        """Hook run after the selected model has been refit."""

    @property
    def is_fitted(self) -> bool:
        return self.results is not None

    def fit(self, X: pd.DataFrame, y: pd.Series, features: list[str]) -> "BaseMatchupModel":
        """Select predictors and fit the final model on training data.

        Args:
            X: Standardised training predictors
            y: Training target values aligned with ``X``
            features: Candidate predictors

        Returns:
            The fitted model

        Raises:
            ValueError: If inputs are misaligned or the target is invalid
        """
        if len(X) != len(y):
            raise ValueError(f"Predictor and target lengths differ: {len(X)} != {len(y)}")
        if len(X) == 0:
            raise ValueError("Cannot fit a model without training games")
        self._validate_target(y)

        logger.info(
            f"Fitting {self.__class__.__name__}",
            games=len(X),
            candidate_features=len(features),
            criterion=self.criterion,
        )

        self.selection = backward_stepwise(self.fit_function, y, X, features, self.criterion)
        self.features = list(self.selection.selected)
        self.results = self.fit_function(y, X[self.features])
        self._after_fit(X, y)
        return self

    def _check_fitted(self) -> None:
        if not self.is_fitted:
            raise RuntimeError(f"{self.__class__.__name__} must be fit before use")

    def _design(self, X: pd.DataFrame) -> pd.DataFrame:
        self._check_fitted()
        return design_matrix(X, self.features)

    def _predict_mean(self, X: pd.DataFrame) -> np.ndarray:
        return np.asarray(self.results.predict(self._design(X)), dtype=float)

    def coefficients(self) -> dict[str, float]:
        """Get the fitted coefficients, intercept included as ``const``."""
        self._check_fitted()
        return {name: float(value) for name, value in self.results.params.items()}

    def coefficient_table(self) -> dict[str, dict[str, float]]:
        """Get estimates with their standard errors and p-values.

        Returns:
            Mapping of coefficient name to ``estimate``, ``std_error`` and ``p_value``
        """
        self._check_fitted()
        return {
            name: {
                "estimate": float(self.results.params[name]),
                "std_error": float(self.results.bse[name]),
                "p_value": float(self.results.pvalues[name]),
            }
            for name in self.results.params.index
        }
