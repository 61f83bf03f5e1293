"""Shared fixtures for the conduit connector tests."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from conduit_connector.line_segment import LineSegment  # noqa: E402


@pytest.fixture
def parallel_pair():
    """Two +X runs two units apart in Y."""
    return LineSegment([0, 0, 0], [10, 0, 0]), LineSegment([0, 2, 0], [10, 2, 0])


@pytest.fixture
def corner_pair():
    """Run along +X meeting a run along +Y at (5, 0, 0)."""
    return LineSegment([0, 0, 0], [5, 0, 0]), LineSegment([5, 0, 0], [5, 5, 0])


@pytest.fixture
def skew_pair():
    """Run along +X and a riser along +Z, three units apart in Y."""
    return LineSegment([0, 0, 0], [5, 0, 0]), LineSegment([5, 3, 0], [5, 3, 5])


@pytest.fixture
def job_yaml(tmp_path):
    """Write a skew connection job and return its path."""
    path = tmp_path / "skew_job.yaml"
    path.write_text(
        "parameters:\n"
        "  tolerance: 0.001\n"
        "conduits:\n"
        "  - id: run\n"
        "    start: [0, 0, 0]\n"
        "    end: [5, 0, 0]\n"
        "    free_end: end\n"
        "    diameter: 0.75\n"
        "  - id: riser\n"
        "    start: [5, 3, 0]\n"
        "    end: [5, 3, 5]\n"
        "    free_end: start\n"
    )
    return path
