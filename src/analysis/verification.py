import logging
from collections import Counter
from typing import Dict, List

from .runoff import RunoffRound

logger = logging.getLogger(__name__)


class RunoffVerifier:
    """
    Audits a completed runoff trace against the ballot totals it came from.
    """

    def __init__(self, voter_count: int, candidate_count: int):
        """
        Initialize verifier.

        Args:
            voter_count: Number of ballots in the matrix
            candidate_count: Number of candidates before the first round
        """
        self.voter_count = voter_count
        self.candidate_count = candidate_count

    def verify_rounds(self, rounds: List[RunoffRound]) -> Dict:
        """
        Verify the round-by-round trace.

        Args:
            rounds: Every round produced by the runoff, in order

        Returns:
            Verification report dictionary
        """
        logger.info(f"Verifying {len(rounds)} runoff rounds")

        round_count_matches = len(rounds) == self.candidate_count

        round_numbers_consecutive = [r.round_number for r in rounds] == list(
            range(1, len(rounds) + 1)
        )

        # Every ballot ranks exactly one remaining candidate first
        tally_mismatches = [
            r.round_number for r in rounds if r.total_votes != self.voter_count
        ]

        others_size_mismatches = [
            r.round_number
            for r in rounds
            if len(r.others) != self.candidate_count - r.round_number
        ]

        winner_counts = Counter(r.winner for r in rounds)
        duplicate_winners = [label for label, n in winner_counts.items() if n > 1]

        verification_passed = (
            round_count_matches
            and round_numbers_consecutive
            and not tally_mismatches
            and not others_size_mismatches
            and not duplicate_winners
        )

        if not verification_passed:
            logger.warning("Runoff trace failed verification")

        return {
            "verification_passed": verification_passed,
            "round_count_matches": round_count_matches,
            "expected_rounds": self.candidate_count,
            "actual_rounds": len(rounds),
            "round_numbers_consecutive": round_numbers_consecutive,
            "voter_count": self.voter_count,
            "tally_mismatches": tally_mismatches,
            "others_size_mismatches": others_size_mismatches,
            "duplicate_winners": duplicate_winners,
        }

    def generate_verification_report(self, verification_results: Dict) -> str:
        """
        Generate a human-readable verification report.

        Args:
            verification_results: Results from verify_rounds()

        Returns:
            Formatted verification report string
        """
        report = []
        report.append("=" * 60)
        report.append("RUNOFF TRACE VERIFICATION REPORT")
        report.append("=" * 60)

        if verification_results["verification_passed"]:
            report.append("✅ VERIFICATION PASSED - Trace is consistent")
        else:
            report.append("❌ VERIFICATION FAILED - Discrepancies found")

        report.append("")

        report.append("ROUND COUNT:")
        report.append(
            f"Expected {verification_results['expected_rounds']} rounds, "
            f"got {verification_results['actual_rounds']}"
        )
        if not verification_results["round_numbers_consecutive"]:
            report.append("❌ Round numbers are not consecutive")

        report.append("")

        report.append("TALLY CONSERVATION:")
        report.append(f"Ballots per round: {verification_results['voter_count']}")
        if verification_results["tally_mismatches"]:
            rounds = ", ".join(map(str, verification_results["tally_mismatches"]))
            report.append(f"❌ Tallies do not sum to the ballot count in rounds: {rounds}")
        else:
            report.append("✅ Every round accounts for every ballot")

        if verification_results["others_size_mismatches"]:
            rounds = ", ".join(map(str, verification_results["others_size_mismatches"]))
            report.append(f"❌ Wrong number of continuing candidates in rounds: {rounds}")

        if verification_results["duplicate_winners"]:
            names = ", ".join(map(str, verification_results["duplicate_winners"]))
            report.append(f"❌ Candidates selected more than once: {names}")

        return "\n".join(report)
