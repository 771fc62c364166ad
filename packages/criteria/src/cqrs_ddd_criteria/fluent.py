"""
Ad-hoc specifications without subclassing.

Example::

    spec = (
        FluentSpecificationBuilder[Product]()
        .where(lambda p: p.active)
        .where_group(lambda c: c.or_(lambda p: p.stock > 0).or_(lambda p: p.backorder))
        .order_by(lambda p: p.name)
        .page(1, 25)
        .build()
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .exceptions import MissingArgumentError
from .specification import Specification

if TYPE_CHECKING:
    from collections.abc import Callable

    from .chain import CriteriaChain

T = TypeVar("T")


class FluentSpecificationBuilder(Generic[T]):
    """
    Builds a :class:`~cqrs_ddd_criteria.specification.Specification` step by
    step.  Consecutive ``where`` calls are ANDed.
    """

    def __init__(self) -> None:
        self._spec: Specification[T] = Specification()

    def where(self, predicate: Callable[[T], bool]) -> FluentSpecificationBuilder[T]:
        if predicate is None:
            raise MissingArgumentError("predicate")
        self._spec.where(predicate)
        return self

    def where_group(
        self, build: Callable[[CriteriaChain[T]], CriteriaChain[T] | None]
    ) -> FluentSpecificationBuilder[T]:
        if build is None:
            raise MissingArgumentError("build")
        self._spec.where_group(build)
        return self

    def include(self, *includes: Callable[[T], Any] | str) -> FluentSpecificationBuilder[T]:
        self._spec.include(*includes)
        return self

    def order_by(self, key: Callable[[T], Any]) -> FluentSpecificationBuilder[T]:
        self._spec.order_by(key)
        return self

    def order_by_descending(
        self, key: Callable[[T], Any]
    ) -> FluentSpecificationBuilder[T]:
        self._spec.order_by_descending(key)
        return self

    def then_by(self, key: Callable[[T], Any]) -> FluentSpecificationBuilder[T]:
        self._spec.then_by(key)
        return self

    def then_by_descending(
        self, key: Callable[[T], Any]
    ) -> FluentSpecificationBuilder[T]:
        self._spec.then_by_descending(key)
        return self

    def page(self, page_number: int, page_size: int) -> FluentSpecificationBuilder[T]:
        self._spec.page(page_number, page_size)
        return self

    def build(self) -> Specification[T]:
        return self._spec
