"""Model quality metrics for the winner and score differential models."""

from collections.abc import Sequence
from dataclasses import asdict, dataclass

import numpy as np
import structlog
from sklearn.metrics import confusion_matrix, roc_auc_score

# Initialize logger
logger = structlog.get_logger(__name__)

DEFAULT_THRESHOLD = 0.5


@dataclass
class ClassificationMetrics:
    """Binary classification metrics at a single decision threshold."""

    threshold: float
    accuracy: float
    sensitivity: float
    specificity: float
    auc: float
    tn: int
    fp: int
    fn: int
    tp: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RegressionMetrics:
    """Point-prediction metrics for a continuous target."""

    r_squared: float
    rmse: float
    mae: float
    n: int

    def to_dict(self) -> dict:
        return asdict(self)


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else float("nan")


def confusion_counts(y_true: Sequence[int], y_pred: Sequence[int]) -> tuple[int, int, int, int]:
    """Count true negatives, false positives, false negatives and true positives.

    Args:
        y_true: Observed 0/1 outcomes
        y_pred: Predicted 0/1 outcomes

    Returns:
        Tuple of (tn, fp, fn, tp)
    """
    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
    return int(tn), int(fp), int(fn), int(tp)


def classification_metrics(
    y_true: Sequence[int],
    probabilities: Sequence[float],
    threshold: float = DEFAULT_THRESHOLD,
) -> ClassificationMetrics:
    """Evaluate predicted home-win probabilities.

    A game is predicted as a home win when its probability is at least ``threshold``.
    Ratios with an empty denominator, and AUC when only one outcome is observed,
    are reported as NaN.

    Args:
        y_true: Observed 0/1 outcomes
        probabilities: Predicted probabilities of outcome 1
        threshold: Decision threshold

    Returns:
        ClassificationMetrics

    Raises:
        ValueError: If inputs are empty or of different lengths
    """
    y_true = np.asarray(y_true, dtype=int)
    probabilities = np.asarray(probabilities, dtype=float)
    if y_true.size == 0:
        raise ValueError("Cannot compute classification metrics without observations")
    if y_true.shape != probabilities.shape:
        raise ValueError(
            f"Outcome and probability lengths differ: {y_true.size} != {probabilities.size}"
        )

    y_pred = (probabilities >= threshold).astype(int)
    tn, fp, fn, tp = confusion_counts(y_true, y_pred)

    if np.unique(y_true).size < 2:
        logger.warning("AUC undefined with a single observed outcome", n=int(y_true.size))
        auc = float("nan")
    else:
        auc = float(roc_auc_score(y_true, probabilities))

    return ClassificationMetrics(
        threshold=float(threshold),
        accuracy=(tp + tn) / y_true.size,
        sensitivity=_ratio(tp, tp + fn),
        specificity=_ratio(tn, tn + fp),
        auc=auc,
        tn=tn,
        fp=fp,
        fn=fn,
        tp=tp,
    )


def tune_threshold(
    y_true: Sequence[int],
    probabilities: Sequence[float],
    grid: Sequence[float],
) -> float:
    """Find the decision threshold that maximises accuracy.

    Ties are resolved in favour of the threshold closest to 0.5, then the lowest.

    Args:
        y_true: Observed 0/1 outcomes
        probabilities: Predicted probabilities of outcome 1
        grid: Candidate thresholds

    Returns:
        Best threshold from the grid

    Raises:
        ValueError: If the grid is empty or inputs are of different lengths
    """
    if len(grid) == 0:
        raise ValueError("Threshold grid is empty")

    y_true = np.asarray(y_true, dtype=int)
    probabilities = np.asarray(probabilities, dtype=float)
    if y_true.shape != probabilities.shape:
        raise ValueError(
            f"Outcome and probability lengths differ: {y_true.size} != {probabilities.size}"
        )

    best_key = None
    best_threshold = None
    for threshold in grid:
        accuracy = float(np.mean((probabilities >= threshold).astype(int) == y_true))
        # Distances are rounded so symmetric thresholds tie exactly
        distance = round(abs(threshold - DEFAULT_THRESHOLD), 9)
        key = (-accuracy, distance, threshold)
        if best_key is None or key < best_key:
            best_key, best_threshold = key, float(threshold)

    logger.debug("Tuned decision threshold", threshold=best_threshold, accuracy=-best_key[0])
    return best_threshold


def regression_metrics(actual: Sequence[float], predicted: Sequence[float]) -> RegressionMetrics:
    """Evaluate score differential predictions.

    ``r_squared`` is the squared Pearson correlation between actual and predicted
    values, NaN when either side is constant.

    Args:
        actual: Observed values
        predicted: Predicted values

    Returns:
        RegressionMetrics

    Raises:
        ValueError: If inputs are empty or of different lengths
    """
    actual = np.asarray(actual, dtype=float)
    predicted = np.asarray(predicted, dtype=float)
    if actual.size == 0:
        raise ValueError("Cannot compute regression metrics without observations")
    if actual.shape != predicted.shape:
        raise ValueError(f"Actual and predicted lengths differ: {actual.size} != {predicted.size}")

    if np.std(actual) == 0 or np.std(predicted) == 0:
        r_squared = float("nan")
    else:
        r_squared = float(np.corrcoef(actual, predicted)[0, 1] ** 2)

    errors = predicted - actual
    return RegressionMetrics(
        r_squared=r_squared,
        rmse=float(np.sqrt(np.mean(errors**2))),
        mae=float(np.mean(np.abs(errors))),
        n=int(actual.size),
    )


def interval_coverage(
    actual: Sequence[float],
    lower: Sequence[float],
    upper: Sequence[float],
) -> tuple[float, float]:
    """Measure how well prediction intervals capture observed values.

    Args:
        actual: Observed values
        lower: Interval lower bounds
        upper: Interval upper bounds

    Returns:
        Tuple of (fraction of observations inside their interval, mean interval width)
    """
    actual = np.asarray(actual, dtype=float)
    lower = np.asarray(lower, dtype=float)
    upper = np.asarray(upper, dtype=float)
    if actual.size == 0:
        raise ValueError("Cannot compute interval coverage without observations")

    inside = (actual >= lower) & (actual <= upper)
    return float(np.mean(inside)), float(np.mean(upper - lower))
