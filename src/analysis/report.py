import logging
from pathlib import Path
from typing import List, Union

import pandas as pd

from .runoff import RunoffRound

logger = logging.getLogger(__name__)


def format_rounds(rounds: List[RunoffRound]) -> str:
    """
    Render the round-by-round breakdown.

    Each round lists the selected candidate followed by every other
    continuing candidate, highest tally first.
    """
    lines = []
    for round_obj in rounds:
        lines.append(
            f"Winner #{round_obj.round_number}: {round_obj.winner} "
            f"with {round_obj.votes} votes"
        )

        # sorted() is stable, so equal tallies keep label order
        others = sorted(round_obj.others.items(), key=lambda item: -item[1])
        for label, count in others:
            lines.append(f"{label}: {count}")

        lines.append("")
        lines.append("")

    return "\n".join(lines)


def format_winners(rounds: List[RunoffRound]) -> str:
    """Winner labels only, one per line."""
    return "\n".join(str(round_obj.winner) for round_obj in rounds)


def round_summary(rounds: List[RunoffRound]) -> pd.DataFrame:
    """
    Get summary of all rounds as a DataFrame.

    Returns:
        DataFrame with one row per (round, candidate)
    """
    if not rounds:
        return pd.DataFrame(columns=["round", "candidate", "votes", "status"])

    summary_data = []
    for round_obj in rounds:
        summary_data.append(
            {
                "round": round_obj.round_number,
                "candidate": round_obj.winner,
                "votes": round_obj.votes,
                "status": "selected",
            }
        )
        for label, count in round_obj.others.items():
            summary_data.append(
                {
                    "round": round_obj.round_number,
                    "candidate": label,
                    "votes": count,
                    "status": "continuing",
                }
            )

    return pd.DataFrame(summary_data)


def export_round_summary(rounds: List[RunoffRound], path: Union[str, Path]) -> Path:
    """
    Write the round summary to CSV.

    Args:
        rounds: Rounds to export
        path: Destination file; a ``.csv`` suffix is applied

    Returns:
        Path that was written
    """
    export_path = Path(path).with_suffix(".csv")
    round_summary(rounds).to_csv(export_path, index=False)
    logger.info(f"Round summary exported to: {export_path}")
    return export_path
