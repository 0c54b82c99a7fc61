"""Modelling package for NCAA basketball matchups.

This package contains backward stepwise selection, the home-win logistic model,
the score differential linear model, evaluation metrics and the analysis pipeline.
"""

from .classifier import WinnerEvaluation, WinnerModel
from .metrics import (
    ClassificationMetrics,
    RegressionMetrics,
    classification_metrics,
    interval_coverage,
    regression_metrics,
    tune_threshold,
)
from .pipeline import AnalysisConfig, AnalysisReport, ModelResult, run_analysis
from .regression import SpreadEvaluation, SpreadModel
from .selection import SelectionResult, backward_stepwise, fit_logit, fit_ols

__all__ = [
    "AnalysisConfig",
    "AnalysisReport",
    "ClassificationMetrics",
    "ModelResult",
    "RegressionMetrics",
    "SelectionResult",
    "SpreadEvaluation",
    "SpreadModel",
    "WinnerEvaluation",
    "WinnerModel",
    "backward_stepwise",
    "classification_metrics",
    "fit_logit",
    "fit_ols",
    "interval_coverage",
    "regression_metrics",
    "run_analysis",
    "tune_threshold",
]
