import csv
import io
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import IO, List, Optional, Union

import numpy as np
import pandas as pd

try:
    from ..analysis.runoff import BallotMatrix
except ImportError:
    from analysis.runoff import BallotMatrix

logger = logging.getLogger(__name__)


class BallotFormatError(ValueError):
    """Base class for problems in ballot CSV input."""


class HeaderReadError(BallotFormatError):
    def __init__(self, detail: str):
        super().__init__(f"headers issue: {detail}")


class MalformedRecordError(BallotFormatError):
    def __init__(self, row: Optional[int], detail: str):
        self.row = row
        where = f"bad record {row}" if row is not None else "bad record"
        super().__init__(f"{where}: {detail}")


class RankParseError(BallotFormatError):
    def __init__(self, row: int, column: int, value: str):
        self.row = row
        self.column = column
        self.value = value
        super().__init__(f"invalid rank, record {row}, value {column}: {value!r}")


class RankCountError(BallotFormatError):
    def __init__(self, row: int, expected: int, actual: int):
        self.row = row
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"invalid number of ranks, record {row} (expected {expected}, got {actual})"
        )


class IndexBaseError(BallotFormatError):
    def __init__(self, row: int, column: int, value: int, indexed_at: int):
        self.row = row
        self.column = column
        self.value = value
        self.indexed_at = indexed_at
        super().__init__(
            f"bad index-at argument: record {row}, value {column} is {value}, "
            f"lower than the index {indexed_at}"
        )


@dataclass
class ReaderOptions:
    """Which CSV columns hold ranks and what value the top rank is."""

    start: int = 0
    indexed_at: int = 1
    length: Optional[int] = None


# ASCII digits only
RANK_PATTERN = r"\+?[0-9]+"

# Longest rank that fits an int64
MAX_RANK_DIGITS = 18


def _load_text(source: Union[str, Path, IO[str]]) -> str:
    if hasattr(source, "read"):
        return source.read()
    return Path(source).read_text()


def _field_counts(text: str) -> List[int]:
    """
    Count fields in every CSV record, header first.

    pandas pads short records with empty cells, so the raw width has to be
    taken from the text. Blank lines are skipped the same way pandas skips
    them.
    """
    return [len(fields) for fields in csv.reader(io.StringIO(text)) if fields]


def _read_frame(text: str, field_counts: List[int]) -> pd.DataFrame:
    try:
        frame = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as e:
        raise HeaderReadError(str(e)) from e
    except pd.errors.ParserError as e:
        # pandas reports 1-based file lines, including the header line
        match = re.search(r"line (\d+)", str(e))
        row = int(match.group(1)) - 2 if match else None
        raise MalformedRecordError(row, str(e)) from e

    # Extra fields in the first record make pandas promote them to an index
    if len(frame) and not frame.index.equals(pd.RangeIndex(len(frame))):
        header_width = field_counts[0]
        row = next(
            (i for i, n in enumerate(field_counts[1:]) if n > header_width), None
        )
        raise MalformedRecordError(row, "record has more fields than the header")

    return frame


def _check_rank_counts(field_counts: List[int], window: slice, expected: int):
    for row, width in enumerate(field_counts[1:]):
        actual = len(range(width)[window])
        if actual != expected:
            raise RankCountError(row, expected, actual)


def _parse_ranks(ranks: pd.DataFrame, indexed_at: int) -> List[int]:
    """
    Convert raw rank cells into zero-based ranks, row-major.

    Args:
        ranks: String cells, one column per candidate
        indexed_at: Raw value of the most preferred rank

    Returns:
        Flat list of zero-based ranks
    """
    if ranks.empty:
        return []

    text = ranks.apply(lambda col: col.str.strip())
    well_formed = text.apply(lambda col: col.str.fullmatch(RANK_PATTERN))
    digits = text.apply(lambda col: col.str.lstrip("+").str.lstrip("0").str.len())
    valid = well_formed.to_numpy(dtype=bool) & (
        digits.to_numpy(dtype=np.int64) <= MAX_RANK_DIGITS
    )

    bad_cells = np.argwhere(~valid)
    if bad_cells.size:
        row, col = (int(i) for i in bad_cells[0])
        raise RankParseError(row, col, text.iat[row, col])

    unsigned = text.apply(lambda col: col.str.lstrip("+"))
    raw = unsigned.apply(pd.to_numeric).to_numpy(dtype=np.int64)

    underflow = np.argwhere(raw < indexed_at)
    if underflow.size:
        row, col = (int(i) for i in underflow[0])
        raise IndexBaseError(row, col, int(raw[row, col]), indexed_at)

    return (raw - indexed_at).ravel().tolist()


def read_ballots(
    source: Union[str, Path, IO[str]], options: Optional[ReaderOptions] = None
) -> BallotMatrix:
    """
    Load ranked ballots from CSV into a ballot matrix.

    The header row supplies candidate labels. Each record is one voter; the
    rank columns start at ``options.start`` and span ``options.length``
    columns (all remaining columns when unset).

    Record numbers in errors are 0-based and count data records only.
    Blank lines are skipped before numbering, so in a file with blank lines
    a record number is not a line offset. The one exception is a tokenizer
    failure, where pandas reports the physical file line (blank lines
    included) and the record number is derived from it.

    Args:
        source: CSV file path or open text stream
        options: Column selection and rank base

    Returns:
        BallotMatrix ready for runoff

    Raises:
        BallotFormatError: If the header, a record or a rank is malformed
    """
    options = options or ReaderOptions()
    logger.info(f"Loading ballots from: {getattr(source, 'name', source)}")

    text = _load_text(source)
    field_counts = _field_counts(text)
    frame = _read_frame(text, field_counts)

    stop = None if options.length is None else options.start + options.length
    window = slice(options.start, stop)
    ranks = frame.iloc[:, window]
    labels = [str(label) for label in ranks.columns]

    _check_rank_counts(field_counts, window, len(labels))
    votes = _parse_ranks(ranks, options.indexed_at)

    logger.info(f"Loaded {len(frame)} ballots ranking {len(labels)} candidates")

    return BallotMatrix(labels, votes)
