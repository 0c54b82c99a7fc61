"""Matchup data package for NCAA basketball models.

This package contains modules for loading matchup metrics, partitioning predictors
into feature sets and splitting games chronologically for evaluation.
"""

from .matchups import (
    FeatureSet,
    Target,
    load_matchups,
    non_rank_predictors,
    predictors_for,
    rank_predictors,
)
from .split import DataSplit, Standardizer, chronological_split, target_series

__all__ = [
    "DataSplit",
    "FeatureSet",
    "Standardizer",
    "Target",
    "chronological_split",
    "load_matchups",
    "non_rank_predictors",
    "predictors_for",
    "rank_predictors",
    "target_series",
]
