"""Date utility functions for the NCAA Matchup Models.

This module provides date parsing and NCAA season helpers. An NCAA basketball
season spans two calendar years (November to April), so a game is assigned to
the season that started in the most recent summer.
"""

from datetime import date, datetime

# Games before this month belong to the season that started the previous year
SEASON_START_MONTH = 7


def parse_game_date(date_str: str, date_format: str = "%Y-%m-%d") -> date:
    """Parse a game date string.

    Args:
        date_str: Date string
        date_format: strptime format of the date string

    Returns:
        Parsed date

    Raises:
        ValueError: If the date string does not match the format
    """
    try:
        return datetime.strptime(date_str, date_format).date()
    except (TypeError, ValueError) as err:
        error_msg = f"Invalid date format: {date_str}. Expected {date_format}."
        raise ValueError(error_msg) from err


def format_season(start_year: int) -> str:
    """Format a season label from its starting year.

    Args:
        start_year: Calendar year in which the season starts

    Returns:
        Season label in YYYY-YY format (e.g., "2023-24")
    """
    return f"{start_year}-{(start_year + 1) % 100:02d}"


def get_season_start_year(game_date: date) -> int:
    """Get the starting calendar year of the season a game belongs to."""
    if game_date.month >= SEASON_START_MONTH:
        return game_date.year
    return game_date.year - 1


def get_season_for_date(game_date: date) -> str:
    """Get the season label for a game date.

    Args:
        game_date: Date of the game

    Returns:
        Season label in YYYY-YY format
    """
    return format_season(get_season_start_year(game_date))
