#!/usr/bin/env python3
"""NCAA Matchup Models - Runner Script.

A simple entry point to run commands for the NCAA Matchup Models.
Run from the project root with: python run.py [command] [subcommand] [options]
"""

import math
import sys
from pathlib import Path
from typing import Any

import structlog
import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

# Add src directory to path
src_dir = Path(__file__).resolve().parent / "src"
sys.path.insert(0, str(src_dir))

from src.data.matchups import (  # noqa: E402
    FeatureSet,
    Target,
    load_matchups,
    non_rank_predictors,
    rank_predictors,
)
from src.utils.config import get_config  # noqa: E402
from src.utils.logging import configure_logging  # noqa: E402

# Initialize logger
logger = structlog.get_logger(__name__)
console = Console()

# Create Typer app
app = typer.Typer(
    help="NCAA Matchup Models. "
    "Fit and evaluate home-win and score differential models from matchup metrics."
)

# Create sub-apps
features_app = typer.Typer(help="Commands for inspecting predictors.")
model_app = typer.Typer(help="Commands for model fitting and evaluation.")

# Add sub-apps to main app
app.add_typer(features_app, name="features")
app.add_typer(model_app, name="model")


# Global state
class State:
    config: Any = None
    log_level: str = "INFO"
    config_dir: str = "config"


state = State()


@app.callback()
def main(
    log_level: str | None = typer.Option(None, help="Override logging level"),
    config_dir: str = typer.Option("config", help="Configuration directory"),
):
    """NCAA Matchup Models.

    Fit and evaluate home-win and score differential models from matchup metrics.
    """
    config = get_config(Path(config_dir))
    state.config = config

    state.log_level = log_level or config.logging.level
    configure_logging(
        log_level=state.log_level,
        json_logs=config.logging.json_format,
        log_file=config.logging.file,
    )

    state.config_dir = config_dir


def _format_metric(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return "nan" if math.isnan(value) else f"{value:.3f}"
    return str(value)


def _print_summary(rows: list[dict[str, Any]]) -> None:
    """Print report summary rows as a rich table."""
    table = Table(title="Model evaluation (test segment)")
    columns = [
        ("feature_set", "Feature set"),
        ("target", "Target"),
        ("selected", "Kept"),
        ("candidates", "Of"),
        ("accuracy", "Accuracy"),
        ("sensitivity", "Sens."),
        ("specificity", "Spec."),
        ("auc", "AUC"),
        ("threshold", "Thresh."),
        ("r_squared", "R²"),
        ("rmse", "RMSE"),
        ("mae", "MAE"),
        ("interval_coverage", "PI cover"),
    ]
    for _, header in columns:
        table.add_column(header)

    for row in rows:
        table.add_row(*(_format_metric(row[key]) for key, _ in columns))

    console.print(table)


# ======================================================================
# Features Commands
# ======================================================================

DATA_OPTION = typer.Option(None, help="Path to matchup metrics CSV (overrides configuration)")


@features_app.command("list")
def list_features(
    data: str | None = DATA_OPTION,
):
    """List ranking and non-ranking predictors in the matchup data."""
    data_path = data or state.config.data.matchups_path
    logger.info("Listing features", data=data_path)

    try:
        df = load_matchups(data_path, state.config.data.date_format)
    except (FileNotFoundError, ValueError) as e:
        logger.exception("Failed to load matchup data", error=str(e))
        console.print(f"[bold red]Failed to load matchup data: {e!s}[/bold red]")
        sys.exit(1)

    ranking = rank_predictors(df)
    non_ranking = non_rank_predictors(df)

    console.print(f"[bold blue]Ranking predictors ({len(ranking)}):[/bold blue]")
    for name in ranking:
        console.print(f"  {name}")

    console.print(f"[bold blue]Non-ranking predictors ({len(non_ranking)}):[/bold blue]")
    for name in non_ranking:
        console.print(f"  {name}")


# ======================================================================
# Model Commands
# ======================================================================

# Options for model commands
TARGET_OPTION = typer.Option(..., help="Target to model")
FEATURE_SET_OPTION = typer.Option(..., help="Feature set to use for training")
CRITERION_OPTION = typer.Option(None, help="Selection criterion: aic or bic")
TRAIN_FRACTION_OPTION = typer.Option(None, help="Share of games used for training")
NO_SAVE_OPTION = typer.Option(False, help="Do not write predictions and summary")


def _run(
    description: str,
    feature_sets: list[FeatureSet],
    targets: list[Target],
    data: str | None,
    criterion: str | None,
    train_fraction: float | None,
    no_save: bool,
) -> None:
    from src.models.pipeline import AnalysisConfig, run_analysis

    try:
        analysis_config = AnalysisConfig.from_config(
            state.config,
            data_path=data,
            criterion=criterion,
            train_fraction=train_fraction,
            feature_sets=feature_sets,
            targets=targets,
            save=not no_save,
        )

        with Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            task = progress.add_task(f"[green]{description}...", total=None)
            report = run_analysis(analysis_config)
            progress.update(task, completed=True)

    except Exception as e:
        logger.exception("Analysis failed", error=str(e))
        console.print(f"[bold red]Analysis failed: {e!s}[/bold red]")
        sys.exit(1)

    _print_summary(report.summary_rows())
    for result in report.results:
        console.print(
            f"[blue]{result.feature_set.value} / {result.target.value}[/blue] "
            f"selected: {', '.join(result.selection.selected) or '(intercept only)'}"
        )

    if analysis_config.save:
        console.print(f"Reports written to {analysis_config.output_dir}")
    console.print("[bold green]Analysis completed successfully[/bold green]")


@model_app.command("train")
def train_model(
    target: Target = TARGET_OPTION,
    feature_set: FeatureSet = FEATURE_SET_OPTION,
    data: str | None = DATA_OPTION,
    criterion: str | None = CRITERION_OPTION,
    train_fraction: float | None = TRAIN_FRACTION_OPTION,
    no_save: bool = NO_SAVE_OPTION,
):
    """Fit and evaluate one model."""
    logger.info("Training model", target=target.value, feature_set=feature_set.value)
    _run(
        "Training model",
        [feature_set],
        [target],
        data,
        criterion,
        train_fraction,
        no_save,
    )


@model_app.command("report")
def report(
    data: str | None = DATA_OPTION,
    criterion: str | None = CRITERION_OPTION,
    train_fraction: float | None = TRAIN_FRACTION_OPTION,
    no_save: bool = NO_SAVE_OPTION,
):
    """Fit and evaluate every feature set and target combination."""
    logger.info("Running full analysis")
    _run(
        "Fitting all models",
        list(FeatureSet),
        list(Target),
        data,
        criterion,
        train_fraction,
        no_save,
    )


# ======================================================================
# Run the CLI
# ======================================================================

if __name__ == "__main__":
    app()
