"""Shared fixtures for criteria tests."""

from __future__ import annotations

import pytest

from cqrs_ddd_criteria import SpecificationEvaluator


@pytest.fixture
def evaluator() -> SpecificationEvaluator:
    """In-memory evaluator with default options."""
    return SpecificationEvaluator()
