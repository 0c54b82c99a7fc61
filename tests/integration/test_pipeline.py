import json
import math

import polars as pl
import pytest

from src.data.matchups import FeatureSet, Target
from src.models.pipeline import AnalysisConfig, run_analysis
from src.utils.config import get_config
from src.utils.report_storage import ReportStorage


class TestPipelineIntegration:
    """End-to-end tests of the analysis on synthetic matchup data."""

    @pytest.fixture()
    def analysis_config(self, matchups_csv, tmp_path):
        return AnalysisConfig(
            data_path=str(matchups_csv),
            threshold_grid=[0.4, 0.45, 0.5, 0.55, 0.6],
            output_dir=str(tmp_path / "reports"),
        )

    def test_run_analysis_fits_every_combination(self, analysis_config):
        # Act
        report = run_analysis(analysis_config)

        # Assert
        assert report.games == 240
        assert len(report.results) == 4
        combinations = {(r.feature_set, r.target) for r in report.results}
        assert combinations == {(fs, t) for fs in FeatureSet for t in Target}

        for result in report.results:
            assert result.train_games + result.test_games == 240
            assert set(result.selection.selected) <= set(result.candidate_features)

    def test_feature_sets_differ_only_by_ranking_predictors(self, analysis_config):
        report = run_analysis(analysis_config)

        with_rankings = report.get(FeatureSet.WITH_RANKINGS, Target.SCORE_DIFF)
        without_rankings = report.get(FeatureSet.WITHOUT_RANKINGS, Target.SCORE_DIFF)

        assert without_rankings.candidate_features == [
            "neutral_game",
            "adj_margin",
            "tempo",
            "noise",
        ]
        assert with_rankings.candidate_features == [
            *without_rankings.candidate_features,
            "strength_r",
            "noise_r",
        ]

    def test_models_find_the_signal(self, analysis_config):
        report = run_analysis(analysis_config)

        spread = report.get("with_rankings", "score_diff")
        winner = report.get("with_rankings", "winner")

        assert "adj_margin" in spread.selection.selected
        assert spread.evaluation.metrics.r_squared > 0.4
        assert 0.7 <= spread.evaluation.coverage <= 1.0
        assert winner.evaluation.tuned.threshold in analysis_config.threshold_grid
        assert winner.evaluation.tuned.auc > 0.7

    def test_run_analysis_writes_reports(self, analysis_config):
        # Act
        report = run_analysis(analysis_config)

        # Assert
        storage = ReportStorage(analysis_config.output_dir)
        assert len(storage.list_partitions()) == 4

        winner = storage.read_predictions("without_rankings", "winner")
        assert winner.columns == [
            "date",
            "home_team",
            "away_team",
            "actual",
            "probability",
            "predicted",
        ]
        assert winner.height == report.results[0].test_games
        assert winner["date"].min() >= report.boundary_date

        spread = storage.read_predictions("with_rankings", "score_diff")
        assert (spread["lower"] <= spread["upper"]).all()

        summary = storage.read_summary()
        assert summary["games"] == 240
        assert summary["boundary_date"] == report.boundary_date.isoformat()
        assert len(summary["summary"]) == 4
        assert len(summary["models"]) == 4

    def test_results_carry_boundary_date_and_coefficient_table(self, analysis_config):
        # Act
        report = run_analysis(analysis_config)

        # Assert
        storage = ReportStorage(analysis_config.output_dir)
        models = storage.read_summary()["models"]
        for result, saved in zip(report.results, models, strict=True):
            assert result.boundary_date == report.boundary_date
            assert saved["boundary_date"] == report.boundary_date.isoformat()
            assert set(result.coefficient_table) == {"const", *result.selection.selected}
            for name, row in result.coefficient_table.items():
                assert row["estimate"] == pytest.approx(result.coefficients[name])
                assert row["std_error"] > 0
                assert 0.0 <= row["p_value"] <= 1.0
            assert set(saved["coefficient_table"]["const"]) == {"estimate", "std_error", "p_value"}

    def test_summary_is_valid_json_without_nan(self, analysis_config):
        run_analysis(analysis_config)

        with open(f"{analysis_config.output_dir}/summary.json") as f:
            text = f.read()

        assert "NaN" not in text
        json.loads(text)

    def test_no_save_writes_nothing(self, analysis_config, tmp_path):
        analysis_config.save = False

        report = run_analysis(analysis_config)

        assert len(report.results) == 4
        assert not (tmp_path / "reports").exists()

    def test_summary_rows_split_metrics_by_target(self, analysis_config):
        analysis_config.feature_sets = [FeatureSet.WITHOUT_RANKINGS]
        analysis_config.save = False

        report = run_analysis(analysis_config)
        rows = {row["target"]: row for row in report.summary_rows()}

        assert rows["winner"]["rmse"] is None
        assert 0.0 <= rows["winner"]["accuracy"] <= 1.0
        assert rows["score_diff"]["accuracy"] is None
        assert not math.isnan(rows["score_diff"]["rmse"])

    def test_get_unknown_combination_raises_key_error(self, analysis_config):
        analysis_config.targets = [Target.WINNER]
        analysis_config.save = False

        report = run_analysis(analysis_config)

        with pytest.raises(KeyError):
            report.get(FeatureSet.WITH_RANKINGS, Target.SCORE_DIFF)

    def test_missing_data_raises_file_not_found(self, tmp_path):
        config = AnalysisConfig(data_path=str(tmp_path / "missing.csv"), save=False)

        with pytest.raises(FileNotFoundError):
            run_analysis(config)

    def test_data_without_predictors_raises_value_error(self, tmp_path):
        path = tmp_path / "bare.csv"
        pl.DataFrame(
            {
                "date": ["2024-01-01", "2024-01-02", "2024-01-03"],
                "home_team": ["A", "B", "C"],
                "away_team": ["D", "E", "F"],
                "home_team_score": ["70", "60", "65"],
                "away_team_score": ["60", "70", "64"],
                "neutral_game": ["no", "no", "yes"],
            }
        ).write_csv(path)
        config = AnalysisConfig(data_path=str(path), save=False)

        with pytest.raises(ValueError):
            run_analysis(config)


class TestAnalysisConfig:
    """Tests for AnalysisConfig."""

    def test_from_config_uses_configured_values(self, config_dir):
        config = get_config(config_dir)

        analysis_config = AnalysisConfig.from_config(config)

        assert analysis_config.data_path == config.data.matchups_path
        assert analysis_config.train_fraction == 0.8
        assert analysis_config.threshold_grid[0] == pytest.approx(0.3)
        assert analysis_config.threshold_grid[-1] == pytest.approx(0.7)
        assert analysis_config.output_dir == config.output.dir

    def test_from_config_applies_overrides_and_ignores_none(self, config_dir):
        config = get_config(config_dir)

        analysis_config = AnalysisConfig.from_config(
            config,
            criterion="bic",
            train_fraction=None,
            feature_sets=["without_rankings"],
        )

        assert analysis_config.criterion == "bic"
        assert analysis_config.train_fraction == 0.8
        assert analysis_config.feature_sets == [FeatureSet.WITHOUT_RANKINGS]
        assert analysis_config.targets == list(Target)

    def test_unknown_feature_set_raises_value_error(self):
        with pytest.raises(ValueError):
            AnalysisConfig(data_path="data.csv", feature_sets=["everything"])

    def test_empty_targets_raise_value_error(self):
        with pytest.raises(ValueError, match="At least one"):
            AnalysisConfig(data_path="data.csv", targets=[])
