"""Skip / take paging value object."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .exceptions import InvalidPagingError


class Paging(BaseModel):
    """
    Immutable skip / take window.

    ``take=None`` means "no upper bound", which happens when only
    ``skip_by()`` was applied to a specification.
    """

    model_config = ConfigDict(frozen=True)

    skip: int = Field(default=0, ge=0)
    take: int | None = Field(default=None, gt=0)

    @classmethod
    def create(cls, skip: int, take: int | None) -> Paging:
        """
        Validate and build a window.

        Raises:
            InvalidPagingError: If ``skip`` is negative or ``take`` is not
                strictly positive.
        """
        try:
            return cls(skip=skip, take=take)
        except PydanticValidationError as exc:
            error = exc.errors()[0]
            field = ".".join(str(p) for p in error.get("loc", ()))
            raise InvalidPagingError(
                f"Invalid paging value for '{field}': {error.get('msg')}",
                field=field or None,
            ) from exc

    @classmethod
    def from_page(cls, page_number: int, page_size: int) -> Paging:
        """Window for the 1-based page *page_number* of *page_size* items."""
        if page_number < 1:
            raise InvalidPagingError(
                "Page number must be greater than zero.", field="page_number"
            )
        if page_size < 1:
            raise InvalidPagingError(
                "Page size must be greater than zero.", field="page_size"
            )
        return cls.create((page_number - 1) * page_size, page_size)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"skip": self.skip}
        if self.take is not None:
            result["take"] = self.take
        return result
