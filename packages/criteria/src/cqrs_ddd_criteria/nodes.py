"""
Criteria tree nodes.

A criteria tree is made of ``PredicateNode`` leaves joined by ``AndNode``,
``OrNode`` and ``NotNode``.  Nodes are immutable; composing never rewrites
an existing node, it wraps it.  ``materialize(shared)`` compiles a
(sub-)tree into an expression body in which every leaf reads from the
single ``shared`` variable.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .exceptions import MissingArgumentError
from .expressions import (
    AndAlso,
    BoundVariable,
    Negation,
    OrElse,
    PredicateCall,
    predicate_name,
)
from .unifier import replace_parameter, unify

if TYPE_CHECKING:
    from collections.abc import Callable

    from .expressions import ConditionExpression, CriteriaLambda

T = TypeVar("T")


def _parameter_name(predicate: Callable[..., Any]) -> str:
    try:
        params = list(inspect.signature(predicate).parameters)
    except (TypeError, ValueError):
        return "x"
    return params[0] if params else "x"


class CriteriaNode(ABC, Generic[T]):
    """Base class for criteria tree nodes."""

    __slots__ = ()

    @abstractmethod
    def materialize(self, shared: BoundVariable) -> ConditionExpression:
        """Compile this node into a body bound to *shared*."""
        ...

    @abstractmethod
    def describe(self) -> str: ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.describe()}>"


class PredicateNode(CriteriaNode[T]):
    """Leaf wrapping one predicate together with its own bound variable."""

    __slots__ = ("predicate", "variable")

    def __init__(self, predicate: Callable[[T], bool]) -> None:
        if predicate is None:
            raise MissingArgumentError("predicate")
        if not callable(predicate):
            raise TypeError(
                f"predicate must be callable, got {type(predicate).__name__}"
            )
        self.predicate = predicate
        self.variable = BoundVariable(_parameter_name(predicate))

    def materialize(self, shared: BoundVariable) -> ConditionExpression:
        body = PredicateCall(self.predicate, self.variable)
        return replace_parameter(body, self.variable, shared)

    def describe(self) -> str:
        return f"{predicate_name(self.predicate)}({self.variable.name})"


class ExpressionNode(CriteriaNode[T]):
    """Leaf wrapping an already compiled predicate (e.g. a combined specification)."""

    __slots__ = ("compiled",)

    def __init__(self, compiled: CriteriaLambda[T]) -> None:
        if compiled is None:
            raise MissingArgumentError("compiled")
        self.compiled = compiled

    def materialize(self, shared: BoundVariable) -> ConditionExpression:
        return unify(self.compiled, shared)

    def describe(self) -> str:
        return self.compiled.body.describe()


class AndNode(CriteriaNode[T]):
    __slots__ = ("left", "right")

    def __init__(self, left: CriteriaNode[T], right: CriteriaNode[T]) -> None:
        if left is None:
            raise MissingArgumentError("left")
        if right is None:
            raise MissingArgumentError("right")
        self.left = left
        self.right = right

    def materialize(self, shared: BoundVariable) -> ConditionExpression:
        return AndAlso(self.left.materialize(shared), self.right.materialize(shared))

    def describe(self) -> str:
        return f"({self.left.describe()} AND {self.right.describe()})"


class OrNode(CriteriaNode[T]):
    __slots__ = ("left", "right")

    def __init__(self, left: CriteriaNode[T], right: CriteriaNode[T]) -> None:
        if left is None:
            raise MissingArgumentError("left")
        if right is None:
            raise MissingArgumentError("right")
        self.left = left
        self.right = right

    def materialize(self, shared: BoundVariable) -> ConditionExpression:
        return OrElse(self.left.materialize(shared), self.right.materialize(shared))

    def describe(self) -> str:
        return f"({self.left.describe()} OR {self.right.describe()})"


class NotNode(CriteriaNode[T]):
    __slots__ = ("inner",)

    def __init__(self, inner: CriteriaNode[T]) -> None:
        if inner is None:
            raise MissingArgumentError("inner")
        self.inner = inner

    def materialize(self, shared: BoundVariable) -> ConditionExpression:
        return Negation(self.inner.materialize(shared))

    def describe(self) -> str:
        return f"NOT {self.inner.describe()}"


# -- tree helpers ------------------------------------------------------------


def combine(
    root: CriteriaNode[T] | None,
    node: CriteriaNode[T],
    *,
    combine_as_or: bool = False,
) -> CriteriaNode[T]:
    """
    Join *node* onto *root*.

    An empty tree simply adopts *node*, whichever combinator was asked for.
    """
    if node is None:
        raise MissingArgumentError("node")
    if root is None:
        return node
    return OrNode(root, node) if combine_as_or else AndNode(root, node)


def replace_node(
    current: CriteriaNode[T],
    old: CriteriaNode[T],
    new: CriteriaNode[T],
) -> CriteriaNode[T]:
    """
    Return *current* with every occurrence of *old* (by identity) swapped
    for *new*.  Branches that do not contain *old* keep their identity.
    """
    if current is old:
        return new
    if isinstance(current, (AndNode, OrNode)):
        left = replace_node(current.left, old, new)
        right = replace_node(current.right, old, new)
        if left is current.left and right is current.right:
            return current
        return type(current)(left, right)
    if isinstance(current, NotNode):
        inner = replace_node(current.inner, old, new)
        return current if inner is current.inner else NotNode(inner)
    return current


def contains_node(current: CriteriaNode[Any], target: CriteriaNode[Any]) -> bool:
    """True if *target* is *current* or one of its descendants."""
    if current is target:
        return True
    if isinstance(current, (AndNode, OrNode)):
        return contains_node(current.left, target) or contains_node(
            current.right, target
        )
    if isinstance(current, NotNode):
        return contains_node(current.inner, target)
    return False
