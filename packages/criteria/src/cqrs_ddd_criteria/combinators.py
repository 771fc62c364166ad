"""
Cross-specification combinators.

``and_`` / ``or_`` join two specifications' compiled criteria after
rebinding the right operand to the left operand's variable; ``not_``
negates one.  Operands must carry criteria: an unconstrained
specification is rejected rather than absorbed or propagated.

The result is a new specification; operands are left untouched.  Query
shaping is carried over so that combining never silently drops it:

* includes and include paths from both operands (left first, no duplicates);
* sorts from the left operand if it has any, otherwise from the right;
* paging from the left operand if enabled, otherwise from the right.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

from .exceptions import MissingArgumentError, MissingCriteriaError
from .expressions import AndAlso, CriteriaLambda, Negation, OrElse
from .nodes import ExpressionNode
from .specification import Specification
from .unifier import unify

if TYPE_CHECKING:
    from collections.abc import Callable

    from .expressions import ConditionExpression
    from .specification import ISpecification

T = TypeVar("T")

logger = logging.getLogger(__name__)


class CombinedSpecification(Specification[T]):
    """Specification produced by a combinator from one or two sources."""

    def __init__(
        self,
        criteria: CriteriaLambda[T],
        *sources: ISpecification[T],
    ) -> None:
        super().__init__()
        self.merge_into_tree(ExpressionNode(criteria))

        for source in sources:
            for include in source.includes:
                if include not in self._includes:
                    self._includes.append(include)
            for path in source.include_paths:
                if path not in self._include_paths:
                    self._include_paths.append(path)
            if not self._sorts and source.sorts:
                self._sorts = list(source.sorts)
            if self._paging is None and source.paging is not None:
                self._paging = source.paging


def and_(left: ISpecification[T], right: ISpecification[T]) -> Specification[T]:
    """Both specifications must be satisfied."""
    if left is None:
        raise MissingArgumentError("left")
    if right is None:
        raise MissingArgumentError("right")
    return _combine(left, right, AndAlso)


def or_(left: ISpecification[T], right: ISpecification[T]) -> Specification[T]:
    """At least one specification must be satisfied."""
    if left is None:
        raise MissingArgumentError("left")
    if right is None:
        raise MissingArgumentError("right")
    return _combine(left, right, OrElse)


def not_(spec: ISpecification[T]) -> Specification[T]:
    """The specification must not be satisfied."""
    if spec is None:
        raise MissingArgumentError("spec")
    criteria = spec.criteria
    if criteria is None:
        raise MissingCriteriaError("operand", type(spec).__name__)
    negated = CriteriaLambda(Negation(criteria.body), criteria.parameter)
    return CombinedSpecification(negated, spec)


def and_where(
    spec: ISpecification[T], predicate: Callable[[T], bool]
) -> Specification[T]:
    """AND a bare predicate onto *spec*."""
    return and_(spec, _from_predicate(predicate))


def or_where(
    spec: ISpecification[T], predicate: Callable[[T], bool]
) -> Specification[T]:
    """OR a bare predicate onto *spec*."""
    return or_(spec, _from_predicate(predicate))


def all_of(*specifications: ISpecification[T]) -> ISpecification[T]:
    """Fold *specifications* with AND.  A single one is returned as-is."""
    return _fold(specifications, and_)


def any_of(*specifications: ISpecification[T]) -> ISpecification[T]:
    """Fold *specifications* with OR.  A single one is returned as-is."""
    return _fold(specifications, or_)


# -- internals ---------------------------------------------------------------


def _combine(
    left: ISpecification[T],
    right: ISpecification[T],
    join: Callable[[ConditionExpression, ConditionExpression], ConditionExpression],
) -> Specification[T]:
    left_criteria = left.criteria
    if left_criteria is None:
        raise MissingCriteriaError("left", type(left).__name__)
    right_criteria = right.criteria
    if right_criteria is None:
        raise MissingCriteriaError("right", type(right).__name__)

    parameter = left_criteria.parameter
    body = join(left_criteria.body, unify(right_criteria, parameter))
    logger.debug(
        "Combined %s with %s: %s",
        type(left).__name__,
        type(right).__name__,
        body.describe(),
    )
    return CombinedSpecification(CriteriaLambda(body, parameter), left, right)


def _from_predicate(predicate: Callable[[T], bool]) -> Specification[T]:
    if predicate is None:
        raise MissingArgumentError("predicate")
    spec: Specification[T] = Specification()
    spec.where(predicate)
    return spec


def _fold(
    specifications: tuple[ISpecification[T], ...],
    combinator: Callable[[ISpecification[T], ISpecification[T]], Any],
) -> ISpecification[T]:
    if not specifications:
        raise MissingArgumentError(
            "specifications", "At least one specification is required."
        )
    current = specifications[0]
    if current is None:
        raise MissingArgumentError("specifications[0]")
    for index, spec in enumerate(specifications[1:], start=1):
        if spec is None:
            raise MissingArgumentError(
                f"specifications[{index}]",
                f"Specification at index {index} is None.",
            )
        current = combinator(current, spec)
    return current
