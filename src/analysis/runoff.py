"""
Instant-runoff tabulation over a dense rank matrix.

Each round removes the candidate with the most first-place votes, so the
overall winner is produced FIRST. This is the reverse of textbook IRV (which
drops the last-place candidate each round) and is the intended behavior:
the trace reads as "who would win, then who would win among the rest".
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterator, List, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class BallotConstructionError(ValueError):
    """Raised when labels and votes do not form a valid rank matrix.

    The rejected inputs are kept unchanged on the exception.
    """

    def __init__(self, labels, votes, reason: str):
        super().__init__(reason)
        self.labels = labels
        self.votes = votes
        self.reason = reason


@dataclass
class RunoffRound:
    """Represents one round of runoff tabulation."""

    round_number: int
    winner: Hashable
    votes: int
    others: Dict[Hashable, int] = field(default_factory=dict)

    @property
    def total_votes(self) -> int:
        return self.votes + sum(self.others.values())

    def as_tuple(self) -> Tuple[Hashable, int, Dict[Hashable, int]]:
        return self.winner, self.votes, dict(self.others)


class BallotMatrix:
    """
    Ranked ballots stored as a flat row-major table of ranks.

    Row ``v`` holds voter ``v``'s rank for every remaining candidate, where
    ``0`` is the most preferred. The matrix is consumed by a single call to
    ``runoff``.
    """

    def __init__(self, labels: Sequence[Hashable], votes: Sequence[int]):
        """
        Validate and build a ballot matrix.

        Args:
            labels: Candidate labels, one per column
            votes: ``V * C`` zero-based ranks, one row per voter

        Raises:
            BallotConstructionError: If labels are not unique and hashable,
                the vote count is not a multiple of the label count or any
                rank falls outside ``0..C``
        """
        count = len(labels)
        if count == 0:
            raise BallotConstructionError(labels, votes, "no candidate labels given")

        # Round tallies are keyed by label
        try:
            distinct = len(set(labels))
        except TypeError as e:
            raise BallotConstructionError(
                labels, votes, f"candidate labels must be hashable: {e}"
            ) from e
        if distinct != count:
            raise BallotConstructionError(
                labels, votes, "candidate labels must be unique"
            )

        try:
            raw = np.asarray(votes)
        except (TypeError, ValueError, OverflowError) as e:
            raise BallotConstructionError(
                labels, votes, f"votes are not integer ranks: {e}"
            ) from e

        if raw.ndim != 1 or (raw.size and raw.dtype.kind not in "iu"):
            raise BallotConstructionError(
                labels, votes, "votes must be a flat sequence of integer ranks"
            )
        ranks = raw.astype(np.int64)

        if ranks.size % count != 0:
            raise BallotConstructionError(
                labels,
                votes,
                f"{ranks.size} votes is not a multiple of {count} candidates",
            )
        if ranks.size and (ranks.min() < 0 or ranks.max() >= count):
            raise BallotConstructionError(
                labels, votes, f"every rank must be in the range 0..{count - 1}"
            )

        self._labels: List[Hashable] = list(labels)
        self._votes = ranks
        self._consumed = False

    @property
    def labels(self) -> List[Hashable]:
        return list(self._labels)

    @property
    def candidate_count(self) -> int:
        return len(self._labels)

    @property
    def voter_count(self) -> int:
        if not self._labels:
            return 0
        return self._votes.size // len(self._labels)

    def _table(self) -> np.ndarray:
        # Reshaping a contiguous buffer yields a view, so row edits land in _votes
        return self._votes.reshape(self.voter_count, self.candidate_count)

    def rows(self) -> Iterator[np.ndarray]:
        """Iterate mutable rows of length ``candidate_count`` in voter order."""
        return iter(self._table())

    def columns(self) -> Iterator[np.ndarray]:
        """Iterate read-only rank columns, one per candidate in label order."""
        table = self._table()
        for i in range(self.candidate_count):
            column = table[:, i]
            column.flags.writeable = False
            yield column

    def tally(self) -> List[int]:
        """Count first-place (rank 0) votes for every remaining candidate."""
        return [int(np.count_nonzero(column == 0)) for column in self.columns()]

    def _rerank(self, leader: int):
        """Close the gap the leader leaves in every row."""
        table = self._table()
        leader_ranks = table[:, leader][:, np.newaxis]
        table -= (table > leader_ranks).astype(np.int64)

    def _remove_column(self, col: int) -> Hashable:
        table = self._table()
        self._votes = np.delete(table, col, axis=1).ravel()
        return self._labels.pop(col)

    def runoff(self) -> Iterator[RunoffRound]:
        """
        Calculate each round of the runoff lazily.

        Every round selects the first-place leader (leftmost candidate wins
        ties), re-ranks each ballot around it and removes it. Exactly one
        round is produced per initial candidate.

        Returns:
            Iterator of RunoffRound objects in selection order

        Raises:
            RuntimeError: If this matrix has already been run
        """
        if self._consumed:
            raise RuntimeError("Ballot matrix has already been consumed by runoff()")
        self._consumed = True
        return self._rounds()

    def _rounds(self) -> Iterator[RunoffRound]:
        total_rounds = self.candidate_count
        logger.info(
            f"Starting runoff: {total_rounds} candidates, {self.voter_count} ballots"
        )

        for round_number in range(1, total_rounds + 1):
            tier = self.tally()
            leader = tier.index(max(tier))

            self._rerank(leader)
            winner = self._remove_column(leader)
            winner_votes = tier.pop(leader)
            others = dict(zip(self._labels, tier))

            logger.debug(f"Round {round_number} tallies: {others}")
            logger.info(
                f"Round {round_number}: {winner} selected with {winner_votes} votes"
            )

            yield RunoffRound(
                round_number=round_number,
                winner=winner,
                votes=winner_votes,
                others=others,
            )

        logger.info(f"Runoff complete after {total_rounds} rounds")


def run_runoff(labels: Sequence[Hashable], votes: Sequence[int]) -> List[RunoffRound]:
    """
    Run a complete runoff and collect every round.

    Args:
        labels: Candidate labels
        votes: Flat row-major zero-based ranks

    Returns:
        List of RunoffRound objects, overall winner first
    """
    return list(BallotMatrix(labels, votes).runoff())
