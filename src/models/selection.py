"""Backward stepwise feature selection.

Starting from the full model, each step refits the model once per remaining
predictor with that predictor removed and drops the one whose removal gives the
lowest information criterion. Selection stops when no single removal improves
the criterion of the current model.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
import statsmodels.api as sm
import structlog

# Initialize logger
logger = structlog.get_logger(__name__)

CRITERIA = ("aic", "bic")

FitFunction = Callable[[pd.Series, pd.DataFrame], Any]


@dataclass
class SelectionStep:
    """A single predictor removal."""

    removed: str
    score: float


@dataclass
class SelectionResult:
    """Outcome of backward stepwise selection."""

    selected: list[str]
    dropped: list[str]
    criterion: str
    score: float
    initial_score: float
    steps: list[SelectionStep] = field(default_factory=list)


def design_matrix(X: pd.DataFrame, features: list[str] | None = None) -> pd.DataFrame:
    """Build a design matrix with a leading intercept column.

    Args:
        X: Predictor frame
        features: Predictors to include; all columns of ``X`` when omitted

    Returns:
        DataFrame with a ``const`` column followed by the predictors
    """
    if features is None:
        features = list(X.columns)
    design = pd.DataFrame({"const": np.ones(len(X))}, index=X.index)
    if features:
        design = pd.concat([design, X[features]], axis=1)
    return design


def fit_ols(y: pd.Series, X: pd.DataFrame):
    """Fit an ordinary least squares model with an intercept."""
    return sm.OLS(y, design_matrix(X)).fit()


def fit_logit(y: pd.Series, X: pd.DataFrame):
    """Fit a logistic regression (binomial GLM) with an intercept."""
    return sm.GLM(y, design_matrix(X), family=sm.families.Binomial()).fit()


def information_criterion(results, criterion: str = "aic") -> float:
    """Compute an information criterion from fitted statsmodels results.

    Both criteria count every estimated coefficient, intercept included, so OLS and
    GLM fits are scored the same way.

    Args:
        results: Fitted statsmodels results exposing ``llf``, ``params`` and ``nobs``
        criterion: ``aic`` or ``bic``

    Returns:
        Criterion value (lower is better)

    Raises:
        ValueError: If the criterion is not supported
    """
    criterion = criterion.lower()
    k = len(results.params)
    if criterion == "aic":
        penalty = 2.0 * k
    elif criterion == "bic":
        penalty = math.log(results.nobs) * k
    else:
        raise ValueError(f"Unsupported criterion: {criterion}. Expected one of {CRITERIA}")
    return float(-2.0 * results.llf + penalty)


def backward_stepwise(
    fit: FitFunction,
    y: pd.Series,
    X: pd.DataFrame,
    features: list[str],
    criterion: str = "aic",
) -> SelectionResult:
    """Select predictors by backward elimination.

    Args:
        fit: Function fitting a model to ``y`` and a predictor frame
        y: Target values
        X: Predictor frame containing every feature
        features: Candidate predictors, in priority order for tie-breaking
        criterion: ``aic`` or ``bic``

    Returns:
        SelectionResult with the retained predictors in their original order

    Raises:
        ValueError: If the criterion is unsupported or features are unknown/duplicated
    """
    criterion = criterion.lower()
    if criterion not in CRITERIA:
        raise ValueError(f"Unsupported criterion: {criterion}. Expected one of {CRITERIA}")

    unknown = [f for f in features if f not in X.columns]
    if unknown:
        raise ValueError(f"Features not present in predictor frame: {unknown}")
    if len(set(features)) != len(features):
        raise ValueError("Duplicate features passed to stepwise selection")

    def score(subset: list[str]) -> float:
        return information_criterion(fit(y, X[subset]), criterion)

    current = list(features)
    current_score = score(current)
    initial_score = current_score
    steps: list[SelectionStep] = []

    logger.debug(
        "Starting backward selection",
        criterion=criterion,
        features=len(current),
        score=round(current_score, 3),
    )

    while current:
        best_feature = None
        best_score = math.inf
        for feature in current:
            candidate_score = score([f for f in current if f != feature])
            if candidate_score < best_score:
                best_feature, best_score = feature, candidate_score

        if best_score >= current_score:
            break

        current.remove(best_feature)
        current_score = best_score
        steps.append(SelectionStep(removed=best_feature, score=best_score))
        logger.debug("Removed predictor", feature=best_feature, score=round(best_score, 3))

    dropped = [f for f in features if f not in current]
    logger.info(
        "Backward selection finished",
        criterion=criterion,
        kept=len(current),
        dropped=len(dropped),
        initial_score=round(initial_score, 3),
        final_score=round(current_score, 3),
    )
    return SelectionResult(
        selected=current,
        dropped=dropped,
        criterion=criterion,
        score=current_score,
        initial_score=initial_score,
        steps=steps,
    )
