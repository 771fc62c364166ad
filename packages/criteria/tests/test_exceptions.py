"""Tests for exceptions module."""

from __future__ import annotations

import pytest

from cqrs_ddd_criteria.exceptions import (
    EmptyGroupError,
    FieldNotFoundError,
    InvalidCompositionError,
    InvalidIncludeError,
    InvalidPagingError,
    MissingArgumentError,
    MissingCriteriaError,
    SortChainError,
    SpecificationError,
)

# -- MissingArgumentError ----------------------------------------------------


def test_missing_argument_default_message():
    err = MissingArgumentError("predicate")
    assert str(err) == "Argument 'predicate' is required and cannot be None."
    assert isinstance(err, ValueError)
    assert err.to_dict() == {
        "error": "MISSING_ARGUMENT",
        "argument": "predicate",
        "message": str(err),
    }


def test_missing_argument_custom_message():
    err = MissingArgumentError("specifications", "At least one specification is required.")
    assert str(err) == "At least one specification is required."


# -- Composition errors ------------------------------------------------------


def test_empty_group_message():
    err = EmptyGroupError("Where clause")
    assert str(err).startswith("Where clause cannot be empty.")
    assert isinstance(err, InvalidCompositionError)
    assert err.to_dict()["error"] == "EMPTY_GROUP"
    assert err.to_dict()["group"] == "Where clause"


def test_empty_group_default_label():
    assert "Group cannot be empty" in str(EmptyGroupError())


@pytest.mark.parametrize(
    ("operand", "expected"),
    [
        ("left", "Left specification must have criteria. Type: ActiveProducts"),
        ("right", "Right specification must have criteria. Type: ActiveProducts"),
        ("operand", "Cannot negate a specification without criteria. Type: ActiveProducts"),
    ],
)
def test_missing_criteria_messages(operand: str, expected: str):
    err = MissingCriteriaError(operand, "ActiveProducts")
    assert str(err) == expected
    d = err.to_dict()
    assert d["error"] == "MISSING_CRITERIA"
    assert d["operand"] == operand
    assert d["entity_type"] == "ActiveProducts"


def test_missing_criteria_without_type():
    assert str(MissingCriteriaError("left")) == "Left specification must have criteria."


def test_invalid_composition_to_dict():
    d = InvalidCompositionError("Invalid group builder.").to_dict()
    assert d == {"error": "INVALID_COMPOSITION", "message": "Invalid group builder."}


def test_invalid_include_error():
    err = InvalidIncludeError("  ")
    assert str(err) == "Include cannot be empty."
    assert isinstance(err, InvalidCompositionError)
    assert isinstance(err, ValueError)
    assert err.to_dict() == {
        "error": "INVALID_INCLUDE",
        "path": "  ",
        "message": "Include cannot be empty.",
    }


# -- Sorting & paging --------------------------------------------------------


def test_sort_chain_error():
    err = SortChainError("then_by")
    assert "order_by or order_by_descending first" in str(err)
    assert err.to_dict()["method"] == "then_by"


def test_invalid_paging_error():
    err = InvalidPagingError("Page size must be greater than zero.", field="page_size")
    assert isinstance(err, ValueError)
    d = err.to_dict()
    assert d["error"] == "INVALID_PAGING"
    assert d["field"] == "page_size"


# -- FieldNotFoundError ------------------------------------------------------


def test_field_not_found_fuzzy():
    err = FieldNotFoundError(
        invalid_field="revews",
        model_name="Product",
        available_fields=["reviews", "price", "supplier"],
    )
    assert "revews" in str(err)
    assert "reviews" in str(err)


def test_field_not_found_to_dict():
    err = FieldNotFoundError(
        invalid_field="suplier",
        model_name="Product",
        available_fields=["supplier", "name"],
        full_path="suplier.name",
    )
    d = err.to_dict()
    assert d["field"] == "suplier"
    assert d["full_path"] == "suplier.name"
    assert "supplier" in d["suggestions"]


def test_field_not_found_no_matches():
    err = FieldNotFoundError("zzzz", "Product", ["id", "name"])
    assert err.suggestions == []
    assert "Did you mean" not in str(err)


# -- Hierarchy ---------------------------------------------------------------


@pytest.mark.parametrize(
    "err",
    [
        MissingArgumentError("x"),
        InvalidCompositionError("x"),
        EmptyGroupError(),
        InvalidIncludeError(""),
        MissingCriteriaError("left"),
        SortChainError("nulls_first"),
        InvalidPagingError("x"),
        FieldNotFoundError("x", "M", []),
    ],
)
def test_all_errors_share_base(err: SpecificationError):
    assert isinstance(err, SpecificationError)
    assert "message" in err.to_dict() or "field" in err.to_dict()
