#!/usr/bin/env python3
"""
Calculate the results of an instant-runoff vote.

Pipe a CSV file (with headers) to stdin, or pass --file. Ranks must sit in
contiguous columns. Each round selects the candidate with the most
first-place votes and removes it, so the overall winner is listed first.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from analysis.report import (  # noqa: E402
    export_round_summary,
    format_rounds,
    format_winners,
)
from analysis.runoff import BallotConstructionError  # noqa: E402
from analysis.verification import RunoffVerifier  # noqa: E402
from data.ballot_reader import (  # noqa: E402
    BallotFormatError,
    ReaderOptions,
    read_ballots,
)

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "len",
        type=int,
        nargs="?",
        default=None,
        help="Number of columns the ranks occupy (default: all columns from --start)",
    )
    parser.add_argument(
        "-s",
        "--start",
        type=int,
        default=0,
        help="Column the ranks start at, indexed at 0 (default: 0)",
    )
    parser.add_argument(
        "-i",
        "--indexed-at",
        type=int,
        default=1,
        help="Value that corresponds to the highest rank (default: 1)",
    )
    parser.add_argument(
        "-r",
        "--raw",
        action="store_true",
        help="Output the winners only, delimited by newlines",
    )
    parser.add_argument(
        "-f", "--file", help="Read ballots from a CSV file instead of stdin"
    )
    parser.add_argument("--export", help="Export the round summary to a CSV file")
    parser.add_argument(
        "--verify", action="store_true", help="Run audit checks on the round trace"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log every round's tallies"
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.file and not Path(args.file).exists():
        logger.error(f"CSV file not found: {args.file}")
        sys.exit(1)

    options = ReaderOptions(
        start=args.start, indexed_at=args.indexed_at, length=args.len
    )

    try:
        ballot = read_ballots(args.file or sys.stdin, options)
    except (BallotFormatError, BallotConstructionError) as e:
        logger.error(f"Error reading ballots: {e}")
        sys.exit(1)

    verifier = RunoffVerifier(ballot.voter_count, ballot.candidate_count)
    rounds = list(ballot.runoff())

    if args.raw:
        print(format_winners(rounds))
    else:
        print(format_rounds(rounds))

    if args.export:
        export_path = export_round_summary(rounds, args.export)
        print(f"✓ Round summary exported to: {export_path}", file=sys.stderr)

    if args.verify:
        results = verifier.verify_rounds(rounds)
        print(verifier.generate_verification_report(results), file=sys.stderr)
        if not results["verification_passed"]:
            sys.exit(1)


if __name__ == "__main__":
    main()
