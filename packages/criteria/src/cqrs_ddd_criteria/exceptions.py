"""
Criteria composition exception hierarchy.

All exceptions inherit from ``SpecificationError`` and provide
``to_dict()`` for API-friendly error responses.  Every error here is a
programming-time contract violation raised synchronously while a tree is
being composed; none of them is retryable.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class SpecificationError(Exception):
    """Base exception for all specification errors."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class MissingArgumentError(SpecificationError, ValueError):
    """A required predicate, callback, specification or node was ``None``."""

    def __init__(self, argument: str, message: str | None = None) -> None:
        self.argument = argument
        super().__init__(
            message or f"Argument '{argument}' is required and cannot be None."
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "MISSING_ARGUMENT",
            "argument": self.argument,
            "message": str(self),
        }


class InvalidCompositionError(SpecificationError):
    """The criteria tree cannot be composed the way it was asked to."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "INVALID_COMPOSITION",
            "message": str(self),
        }


class EmptyGroupError(InvalidCompositionError):
    """A ``group`` / ``or_group`` / ``where_group`` callback added no condition."""

    def __init__(self, group: str = "Group") -> None:
        self.group = group
        super().__init__(
            f"{group} cannot be empty. At least one condition must be added."
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "EMPTY_GROUP",
            "group": self.group,
            "message": str(self),
        }


class MissingCriteriaError(InvalidCompositionError):
    """
    A combinator operand carries no criteria.

    Combining (or negating) an unconstrained specification is rejected:
    absorbing and propagating "match everything" give different results.
    """

    def __init__(self, operand: str, entity_type: str | None = None) -> None:
        self.operand = operand
        self.entity_type = entity_type
        if operand == "operand":
            message = "Cannot negate a specification without criteria."
        else:
            message = f"{operand.capitalize()} specification must have criteria."
        if entity_type:
            message += f" Type: {entity_type}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "MISSING_CRITERIA",
            "operand": self.operand,
            "entity_type": self.entity_type,
            "message": str(self),
        }


class InvalidIncludeError(InvalidCompositionError, ValueError):
    """An include directive is blank."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__("Include cannot be empty.")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "INVALID_INCLUDE",
            "path": self.path,
            "message": str(self),
        }


class SortChainError(SpecificationError):
    """A secondary sort or null ordering was requested before a primary sort."""

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(
            f"Call order_by or order_by_descending first before using {method}."
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "SORT_CHAIN_ERROR",
            "method": self.method,
            "message": str(self),
        }


class InvalidPagingError(SpecificationError, ValueError):
    """Paging values are out of range."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "INVALID_PAGING",
            "message": self.message,
            "field": self.field,
        }


class FieldNotFoundError(SpecificationError):
    """
    Invalid include path with helpful suggestions.

    Uses fuzzy matching to suggest similar valid attribute names.

    Example error message::

        Invalid field 'reviwes' on 'Product'.
        Did you mean one of these?
          • reviews

        Available fields: id, name, price, reviews, ...
    """

    def __init__(
        self,
        invalid_field: str,
        model_name: str,
        available_fields: list[str],
        full_path: str | None = None,
        cutoff: float = 0.6,
    ) -> None:
        self.invalid_field = invalid_field
        self.model_name = model_name
        self.available_fields = available_fields
        self.full_path = full_path or invalid_field

        self.suggestions = get_close_matches(
            invalid_field, available_fields, n=5, cutoff=cutoff
        )

        message = self._build_message()
        super().__init__(message)

    def _build_message(self) -> str:
        lines = [f"Invalid field '{self.invalid_field}' on '{self.model_name}'."]
        if self.suggestions:
            lines.append("Did you mean one of these?")
            for s in self.suggestions:
                lines.append(f"  • {s}")

        sorted_fields = sorted(self.available_fields)
        preview = ", ".join(sorted_fields[:15])
        if len(sorted_fields) > 15:
            preview += ", ..."
        lines.append(f"Available fields: {preview}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "FIELD_NOT_FOUND",
            "field": self.invalid_field,
            "model": self.model_name,
            "full_path": self.full_path,
            "suggestions": self.suggestions,
            "available_fields": sorted(self.available_fields),
        }
