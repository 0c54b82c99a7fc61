"""End-to-end matchup analysis.

Loads the matchup metrics, splits them chronologically once, and for every
combination of feature set and target standardises the predictors, selects and
fits the model on the training segment, evaluates it on the test segment and
optionally persists predictions and a summary.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

import pandas as pd
import polars as pl
import structlog

from src.data.matchups import FeatureSet, Target, load_matchups, predictors_for
from src.data.split import DataSplit, Standardizer, chronological_split, target_series
from src.models.base import BaseMatchupModel
from src.models.classifier import WinnerEvaluation, WinnerModel
from src.models.regression import SpreadEvaluation, SpreadModel
from src.models.selection import SelectionResult
from src.utils.config import Config
from src.utils.report_storage import ReportStorage

# Initialize logger
logger = structlog.get_logger(__name__)


@dataclass
class AnalysisConfig:
    """Configuration for a full analysis run."""

    data_path: str
    date_format: str = "%Y-%m-%d"
    feature_sets: list[FeatureSet] = field(default_factory=lambda: list(FeatureSet))
    targets: list[Target] = field(default_factory=lambda: list(Target))
    train_fraction: float = 0.8
    criterion: str = "aic"
    threshold_grid: list[float] | None = None
    interval_level: float = 0.95
    output_dir: str = "data/reports"
    save: bool = True

    def __post_init__(self):
        """Normalise feature set and target names."""
        self.feature_sets = [FeatureSet(fs) for fs in self.feature_sets]
        self.targets = [Target(t) for t in self.targets]
        if not self.feature_sets or not self.targets:
            raise ValueError("At least one feature set and one target are required")

    @classmethod
    def from_config(cls, config: Config, **overrides: Any) -> "AnalysisConfig":
        """Build an analysis configuration from the loaded YAML configuration.

        Args:
            config: Loaded configuration
            **overrides: Values replacing the configured ones (None values are ignored)

        Returns:
            AnalysisConfig
        """
        values: dict[str, Any] = {
            "data_path": config.data.matchups_path,
            "date_format": config.data.date_format,
            "train_fraction": config.split.train_fraction,
            "criterion": config.selection.criterion,
            "threshold_grid": config.threshold.grid(),
            "interval_level": config.intervals.level,
            "output_dir": config.output.dir,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


@dataclass
class ModelResult:
    """Fitted model and its evaluation for one feature set and target."""

    feature_set: FeatureSet
    target: Target
    candidate_features: list[str]
    selection: SelectionResult
    coefficients: dict[str, float]
    coefficient_table: dict[str, dict[str, float]]
    train_games: int
    test_games: int
    boundary_date: date
    evaluation: WinnerEvaluation | SpreadEvaluation

    def summary_row(self) -> dict[str, Any]:
        """Flatten the headline metrics into a single row."""
        row: dict[str, Any] = {
            "feature_set": self.feature_set.value,
            "target": self.target.value,
            "candidates": len(self.candidate_features),
            "selected": len(self.selection.selected),
            "train_games": self.train_games,
            "test_games": self.test_games,
            "accuracy": None,
            "accuracy_at_0_5": None,
            "sensitivity": None,
            "specificity": None,
            "auc": None,
            "threshold": None,
            "r_squared": None,
            "rmse": None,
            "mae": None,
            "interval_coverage": None,
        }

        if isinstance(self.evaluation, WinnerEvaluation):
            tuned = self.evaluation.tuned
            row.update(
                accuracy=tuned.accuracy,
                accuracy_at_0_5=self.evaluation.default.accuracy,
                sensitivity=tuned.sensitivity,
                specificity=tuned.specificity,
                auc=tuned.auc,
                threshold=tuned.threshold,
            )
        else:
            metrics = self.evaluation.metrics
            row.update(
                r_squared=metrics.r_squared,
                rmse=metrics.rmse,
                mae=metrics.mae,
                interval_coverage=self.evaluation.coverage,
            )
        return row

    def to_dict(self) -> dict[str, Any]:
        return {
            "feature_set": self.feature_set.value,
            "target": self.target.value,
            "criterion": self.selection.criterion,
            "criterion_initial": self.selection.initial_score,
            "criterion_final": self.selection.score,
            "selected_features": self.selection.selected,
            "dropped_features": self.selection.dropped,
            "coefficients": self.coefficients,
            "coefficient_table": self.coefficient_table,
            "train_games": self.train_games,
            "test_games": self.test_games,
            "boundary_date": self.boundary_date.isoformat(),
            "evaluation": self.evaluation.to_dict(),
        }


@dataclass
class AnalysisReport:
    """All model results from one analysis run."""

    data_path: str
    games: int
    boundary_date: date
    results: list[ModelResult] = field(default_factory=list)

    def get(self, feature_set: FeatureSet, target: Target) -> ModelResult:
        """Get the result for a feature set and target.

        Raises:
            KeyError: If that combination was not run
        """
        for result in self.results:
            if result.feature_set == FeatureSet(feature_set) and result.target == Target(target):
                return result
        raise KeyError(f"No result for feature set {feature_set} and target {target}")

    def summary_rows(self) -> list[dict[str, Any]]:
        return [result.summary_row() for result in self.results]

    def to_dict(self) -> dict[str, Any]:
        return {
            "data_path": self.data_path,
            "games": self.games,
            "boundary_date": self.boundary_date.isoformat(),
            "summary": self.summary_rows(),
            "models": [result.to_dict() for result in self.results],
        }


def create_model(target: Target, config: AnalysisConfig) -> BaseMatchupModel:
    """Create the unfitted model for a target."""
    if Target(target) is Target.WINNER:
        return WinnerModel(criterion=config.criterion, threshold_grid=config.threshold_grid)
    return SpreadModel(criterion=config.criterion, interval_level=config.interval_level)


def build_predictions(
    test: pl.DataFrame,
    model: BaseMatchupModel,
    target: Target,
    X_test: pd.DataFrame,
) -> pl.DataFrame:
    """Assemble per-game test predictions.

    Args:
        test: Test segment of the matchup data
        model: Fitted model
        target: Target the model predicts
        X_test: Standardised test predictors

    Returns:
        DataFrame with game identifiers, the observed target and model outputs
    """
    games = test.select(["date", "home_team", "away_team", target.value]).rename(
        {target.value: "actual"}
    )

    if isinstance(model, WinnerModel):
        probabilities = model.predict_proba(X_test)
        outputs = pl.DataFrame(
            {
                "probability": probabilities,
                "predicted": (probabilities >= model.threshold).astype(int),
            }
        )
    else:
        intervals = model.prediction_intervals(X_test)
        outputs = pl.DataFrame(
            {
                "predicted": intervals["prediction"].to_numpy(),
                "lower": intervals["lower"].to_numpy(),
                "upper": intervals["upper"].to_numpy(),
            }
        )

    return pl.concat([games, outputs], how="horizontal")


def run_analysis(config: AnalysisConfig) -> AnalysisReport:
    """Run the full analysis.

    Args:
        config: Analysis configuration

    Returns:
        AnalysisReport with one ModelResult per feature set and target

    Raises:
        FileNotFoundError: If the matchup data is missing
        ValueError: If the data cannot be split or modelled
    """
    df = load_matchups(config.data_path, config.date_format)
    split = chronological_split(df, config.train_fraction)

    report = AnalysisReport(
        data_path=str(config.data_path),
        games=df.height,
        boundary_date=split.boundary_date,
    )
    storage = ReportStorage(config.output_dir) if config.save else None

    for feature_set in config.feature_sets:
        features = predictors_for(df, feature_set)
        logger.info("Preparing feature set", feature_set=feature_set.value, features=len(features))

        standardizer = Standardizer(features)
        X_train = standardizer.fit_transform(split.train)
        X_test = standardizer.transform(split.test)

        for target in config.targets:
            result = _fit_and_evaluate(
                split, feature_set, target, features, X_train, X_test, config, storage
            )
            report.results.append(result)

    if storage is not None:
        storage.write_summary(report.to_dict())

    return report


def _fit_and_evaluate(
    split: DataSplit,
    feature_set: FeatureSet,
    target: Target,
    features: list[str],
    X_train: pd.DataFrame,
    X_test: pd.DataFrame,
    config: AnalysisConfig,
    storage: ReportStorage | None,
) -> ModelResult:
    """Fit, evaluate and optionally persist one model."""
    log = logger.bind(feature_set=feature_set.value, target=target.value)
    log.info("Fitting model")

    y_train = target_series(split.train, target.value)
    y_test = target_series(split.test, target.value)

    model = create_model(target, config)
    model.fit(X_train, y_train, features)
    evaluation = model.evaluate(X_test, y_test)

    if storage is not None:
        predictions = build_predictions(split.test, model, target, X_test)
        storage.write_predictions(feature_set.value, target.value, predictions)

    log.info(
        "Model complete",
        selected=len(model.features),
        dropped=len(model.selection.dropped),
    )
    return ModelResult(
        feature_set=feature_set,
        target=target,
        candidate_features=list(features),
        selection=model.selection,
        coefficients=model.coefficients(),
        coefficient_table=model.coefficient_table(),
        train_games=split.train_size,
        test_games=split.test_size,
        boundary_date=split.boundary_date,
        evaluation=evaluation,
    )
