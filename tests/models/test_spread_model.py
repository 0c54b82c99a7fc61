"""Tests for the score differential linear regression model."""

import numpy as np
import pandas as pd
import pytest

from src.models.regression import SpreadModel


@pytest.fixture
def games():
    """Standardised predictors with a linear score differential."""
    rng = np.random.default_rng(5)
    X = pd.DataFrame(rng.normal(size=(600, 3)), columns=["margin", "rank", "noise"])
    y = pd.Series(3.0 + 8.0 * X["margin"] - 4.0 * X["rank"] + rng.normal(0, 3, len(X)))

    train_X, test_X = X.iloc[:400].reset_index(drop=True), X.iloc[400:].reset_index(drop=True)
    train_y, test_y = y.iloc[:400].reset_index(drop=True), y.iloc[400:].reset_index(drop=True)
    return train_X, train_y, test_X, test_y


class TestSpreadModel:
    """Tests for SpreadModel."""

    def test_fit_keeps_strong_predictors(self, games):
        train_X, train_y, _, _ = games

        model = SpreadModel().fit(train_X, train_y, ["margin", "rank", "noise"])

        assert "margin" in model.features
        assert "rank" in model.features
        assert model.coefficients()["margin"] == pytest.approx(8.0, abs=1.0)
        assert model.coefficients()["rank"] == pytest.approx(-4.0, abs=1.0)

    def test_prediction_intervals_bracket_predictions(self, games):
        # Arrange
        train_X, train_y, test_X, _ = games
        model = SpreadModel().fit(train_X, train_y, ["margin", "rank", "noise"])

        # Act
        intervals = model.prediction_intervals(test_X)

        # Assert
        assert list(intervals.columns) == ["prediction", "lower", "upper"]
        assert len(intervals) == len(test_X)
        assert (intervals["lower"] < intervals["prediction"]).all()
        assert (intervals["prediction"] < intervals["upper"]).all()
        np.testing.assert_allclose(intervals["prediction"], model.predict(test_X))

    def test_wider_level_gives_wider_intervals(self, games):
        train_X, train_y, test_X, _ = games
        narrow = SpreadModel(interval_level=0.5).fit(train_X, train_y, ["margin", "rank"])
        wide = SpreadModel(interval_level=0.99).fit(train_X, train_y, ["margin", "rank"])

        narrow_width = narrow.prediction_intervals(test_X).eval("upper - lower")
        wide_width = wide.prediction_intervals(test_X).eval("upper - lower")

        assert (wide_width > narrow_width).all()

    def test_evaluate_reports_fit_quality_and_coverage(self, games):
        # Arrange
        train_X, train_y, test_X, test_y = games
        model = SpreadModel().fit(train_X, train_y, ["margin", "rank", "noise"])

        # Act
        evaluation = model.evaluate(test_X, test_y)

        # Assert
        assert evaluation.metrics.n == len(test_y)
        assert evaluation.metrics.r_squared > 0.8
        assert evaluation.metrics.rmse < 4.5
        assert evaluation.metrics.mae <= evaluation.metrics.rmse
        assert 0.85 <= evaluation.coverage <= 1.0
        assert evaluation.interval_level == 0.95
        assert evaluation.mean_interval_width > 0
        assert evaluation.train_adj_r_squared <= evaluation.train_r_squared

    def test_evaluate_before_fit_raises_runtime_error(self, games):
        _, _, test_X, test_y = games

        with pytest.raises(RuntimeError, match="must be fit"):
            SpreadModel().evaluate(test_X, test_y)

    @pytest.mark.parametrize("level", [0.0, 1.0, 1.5])
    def test_invalid_interval_level_raises_value_error(self, level):
        with pytest.raises(ValueError, match="interval_level"):
            SpreadModel(interval_level=level)
