"""Shared fixtures for the MarkGrid test suite."""

import os
import random

import pytest

from markgrid.annotations import AnnotationEngine
from markgrid.highlight import HighlightManager
from markgrid.table import TableData

# Qt tests run headless.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def table() -> TableData:
    """A 4x3 table with distinct values per cell."""
    return TableData.from_rows(
        ["name", "amount", "email"],
        [
            ["alice", "10", "alice@example.com"],
            ["bob", "7", "bob-at-example"],
            ["carol", "", "carol@example.org"],
            ["dave", "42", " "],
        ],
    )


@pytest.fixture
def highlights() -> HighlightManager:
    return HighlightManager(rng=random.Random(1234))


@pytest.fixture
def engine(table: TableData, highlights: HighlightManager) -> AnnotationEngine:
    return AnnotationEngine(table, highlights)
