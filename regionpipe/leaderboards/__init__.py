"""
Regional Leaderboards - Leaderboards

Top-N net score boards per (region, venue).
"""

from regionpipe.leaderboards.builder import (
    BuildOutcome,
    LeaderboardBuilder,
    LeaderboardEntry,
    TopEntry,
)
from regionpipe.leaderboards.phase import LeaderboardPhase

__all__ = [
    "BuildOutcome",
    "LeaderboardBuilder",
    "LeaderboardEntry",
    "LeaderboardPhase",
    "TopEntry",
]
