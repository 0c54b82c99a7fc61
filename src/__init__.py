"""NCAA Matchup Models.

This package provides tools for loading NCAA men's basketball matchup metrics and
fitting home-win and score differential models with and without ranking metrics.
"""

__version__ = "0.1.0"
