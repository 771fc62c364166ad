"""
Parameter unification.

Trees built independently (inside a group, or by two different
specifications) bind their predicates to different variables.  Before
they can be joined into one body, every predicate must read from the same
:class:`~cqrs_ddd_criteria.expressions.BoundVariable`.  ``ParameterReplacer``
rewrites a body from one variable to another; sub-trees with nothing to
rewrite are returned unchanged, so rewriting is cheap on shared trees.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .exceptions import MissingArgumentError
from .expressions import AndAlso, Negation, OrElse, PredicateCall

if TYPE_CHECKING:
    from .expressions import BoundVariable, ConditionExpression, CriteriaLambda


class ParameterReplacer:
    """Expression visitor replacing one bound variable by another."""

    def __init__(self, source: BoundVariable, target: BoundVariable) -> None:
        if source is None:
            raise MissingArgumentError("source")
        if target is None:
            raise MissingArgumentError("target")
        self._source = source
        self._target = target

    def visit(self, node: ConditionExpression) -> ConditionExpression:
        if isinstance(node, PredicateCall):
            return self._visit_predicate(node)
        if isinstance(node, AndAlso):
            left, right = self.visit(node.left), self.visit(node.right)
            if left is node.left and right is node.right:
                return node
            return AndAlso(left, right)
        if isinstance(node, OrElse):
            left, right = self.visit(node.left), self.visit(node.right)
            if left is node.left and right is node.right:
                return node
            return OrElse(left, right)
        if isinstance(node, Negation):
            operand = self.visit(node.operand)
            return node if operand is node.operand else Negation(operand)
        raise TypeError(f"Unsupported expression node: {type(node).__name__}")

    def _visit_predicate(self, node: PredicateCall) -> ConditionExpression:
        if node.variable is self._source:
            return PredicateCall(node.predicate, self._target)
        return node


def replace_parameter(
    body: ConditionExpression,
    source: BoundVariable,
    target: BoundVariable,
) -> ConditionExpression:
    """Return *body* with every reference to *source* bound to *target*."""
    if body is None:
        raise MissingArgumentError("body")
    if source is target:
        return body
    return ParameterReplacer(source, target).visit(body)


def unify(
    compiled: CriteriaLambda[Any], target: BoundVariable
) -> ConditionExpression:
    """Return the body of *compiled* rebound to *target*."""
    if compiled is None:
        raise MissingArgumentError("compiled")
    return replace_parameter(compiled.body, compiled.parameter, target)
