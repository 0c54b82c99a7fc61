"""Shared fixtures providing synthetic matchup metrics."""

import logging
from datetime import date, timedelta

import numpy as np
import polars as pl
import pytest
import yaml


@pytest.fixture(autouse=True)
def _reset_warning_capture():
    """Undo ``logging.captureWarnings`` left enabled by CLI runs between tests."""
    yield
    logging.captureWarnings(False)


def build_matchups(n_games: int = 240, seed: int = 7) -> pl.DataFrame:
    """Build synthetic matchup metrics with two games per day.

    The score differential depends strongly on ``adj_margin`` and ``strength_r``;
    ``tempo``, ``noise`` and ``noise_r`` carry no signal.
    """
    rng = np.random.default_rng(seed)
    start = date(2023, 11, 6)

    adj_margin = rng.normal(0, 1, n_games)
    tempo = rng.normal(0, 1, n_games)
    noise = rng.normal(0, 1, n_games)
    neutral = (rng.random(n_games) < 0.1).astype(int)
    strength_r = 0.8 * adj_margin + rng.normal(0, 0.6, n_games)
    noise_r = rng.normal(0, 1, n_games)

    score_diff = np.round(
        8 * adj_margin + 4 * strength_r + 3 * (1 - neutral) + rng.normal(0, 8, n_games)
    ).astype(int)
    score_diff[score_diff == 0] = 1
    away_score = rng.integers(60, 80, n_games)
    home_score = away_score + score_diff

    return pl.DataFrame(
        {
            "date": [start + timedelta(days=i // 2) for i in range(n_games)],
            "home_team": [f"Home {i % 30}" for i in range(n_games)],
            "away_team": [f"Away {i % 25}" for i in range(n_games)],
            "home_team_score": home_score,
            "away_team_score": away_score,
            "neutral_game": neutral,
            "adj_margin": adj_margin,
            "tempo": tempo,
            "noise": noise,
            "strength_r": strength_r,
            "noise_r": noise_r,
        }
    )


@pytest.fixture
def matchups_csv(tmp_path):
    """Write synthetic matchup metrics to a CSV file and return its path."""
    path = tmp_path / "matchups.csv"
    build_matchups().write_csv(path)
    return path


@pytest.fixture
def config_dir(tmp_path, matchups_csv):
    """Create a configuration directory pointing at the synthetic data."""
    directory = tmp_path / "config"
    directory.mkdir()
    config = {
        "logging": {"level": "WARNING", "file": None, "json_format": False},
        "data": {"matchups_path": str(matchups_csv), "date_format": "%Y-%m-%d"},
        "split": {"train_fraction": 0.8},
        "selection": {"criterion": "aic"},
        "threshold": {"start": 0.3, "stop": 0.7, "step": 0.05},
        "intervals": {"level": 0.95},
        "output": {"dir": str(tmp_path / "reports")},
    }
    with open(directory / "analysis.yaml", "w") as f:
        yaml.dump(config, f)
    return directory
