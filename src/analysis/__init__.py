"""
Analysis module for ranked-ballot runoff tabulation.

This module provides the runoff engine and the tools around it:
- BallotMatrix: Dense rank table that runs the round-by-round runoff
- RunoffRound: Result of a single round
- RunoffVerifier: Audit checks over a completed trace

Note that each round removes the candidate with the MOST first-place votes,
so the overall winner is reported first. Textbook instant-runoff drops the
last-place candidate instead; this package deliberately does not.
"""

from .report import export_round_summary, format_rounds, format_winners, round_summary
from .runoff import BallotConstructionError, BallotMatrix, RunoffRound, run_runoff
from .verification import RunoffVerifier

__all__ = [
    "BallotMatrix",  # Rank table + runoff engine
    "BallotConstructionError",  # Rejected labels/votes
    "RunoffRound",  # Shared data structure
    "run_runoff",  # Eager convenience wrapper
    "RunoffVerifier",  # Verification utilities
    "format_rounds",
    "format_winners",
    "round_summary",
    "export_round_summary",
]
