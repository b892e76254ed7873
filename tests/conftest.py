"""
Shared pytest configuration and fixtures for ranked-elections-runoff.

This module provides common test fixtures and utilities used across
all test modules.
"""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def three_candidate_ballots():
    """Nine full ballots over candidates 0, 1, 2 (hand-checked winners 0, 2, 1)."""
    labels = [0, 1, 2]
    rows = [
        [0, 1, 2],
        [0, 2, 1],
        [1, 2, 0],
        [1, 0, 2],
        [2, 0, 1],
        [2, 1, 0],
        [0, 2, 1],
        [0, 2, 1],
        [2, 0, 1],
    ]
    votes = [rank for row in rows for rank in row]
    return labels, votes


@pytest.fixture
def sample_csv():
    """Ballot CSV with an ID column before four rank columns, ranks from 1."""
    return (
        "BallotID,Alice,Bob,Charlie,Diana\n"
        "B001,1,2,3,4\n"
        "B002,2,1,3,4\n"
        "B003,3,4,1,2\n"
        "B004,1,3,2,4\n"
        "B005,4,1,2,3\n"
    )


@pytest.fixture
def csv_file(tmp_path, sample_csv):
    """Write the sample CSV to a temporary file."""
    path = tmp_path / "ballots.csv"
    path.write_text(sample_csv)
    return path


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (CSV input through CLI output)",
    )
    config.addinivalue_line(
        "markers",
        "golden: marks tests as golden dataset validation (hand-computed results)",
    )
    config.addinivalue_line(
        "markers", "invariant: marks tests as mathematical invariant validation"
    )
    config.addinivalue_line(
        "markers", "smoke: marks tests as smoke tests (basic functionality check)"
    )
