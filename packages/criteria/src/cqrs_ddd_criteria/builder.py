"""
Fluent builder for standalone criteria trees.

Example::

    predicate = (
        CriteriaBuilder[Product]()
        .and_(lambda p: p.active)
        .and_(lambda p: p.price < 100)
        .build()
    )
    # → x => (active AND price < 100)

    predicate = (
        CriteriaBuilder[Product]()
        .and_(lambda p: p.active)
        .or_group(
            lambda g: g.or_(lambda p: p.category == "A").or_(lambda p: p.price > 500)
        )
        .build()
    )
    # → x => (active OR (category == "A" OR price > 500))

The first predicate added becomes the root whichever method added it, so
``or_(P).and_(Q)`` and ``and_(P).and_(Q)`` both build ``P AND Q``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic, TypeVar

from .exceptions import EmptyGroupError, InvalidCompositionError, MissingArgumentError
from .expressions import BoundVariable, CriteriaLambda
from .nodes import NotNode, PredicateNode, combine

if TYPE_CHECKING:
    from collections.abc import Callable

    from .nodes import CriteriaNode

T = TypeVar("T")


class CriteriaBuilder(Generic[T]):
    """
    Detached fluent builder.

    Each call wraps the predicate in a leaf and folds it into the current
    root with the matching combinator.  ``build()`` compiles the tree into
    one :class:`~cqrs_ddd_criteria.expressions.CriteriaLambda`.
    """

    def __init__(self) -> None:
        self._root: CriteriaNode[T] | None = None

    # -- leaf conditions -----------------------------------------------------

    def where(self, predicate: Callable[[T], bool]) -> CriteriaBuilder[T]:
        """Start a new tree with *predicate*, discarding any previous root."""
        if predicate is None:
            raise MissingArgumentError("predicate")
        self._root = PredicateNode(predicate)
        return self

    def and_(self, predicate: Callable[[T], bool]) -> CriteriaBuilder[T]:
        if predicate is None:
            raise MissingArgumentError("predicate")
        self._root = combine(self._root, PredicateNode(predicate))
        return self

    def or_(self, predicate: Callable[[T], bool]) -> CriteriaBuilder[T]:
        if predicate is None:
            raise MissingArgumentError("predicate")
        self._root = combine(self._root, PredicateNode(predicate), combine_as_or=True)
        return self

    def not_(self, predicate: Callable[[T], bool]) -> CriteriaBuilder[T]:
        """AND the negation of *predicate* into the tree."""
        if predicate is None:
            raise MissingArgumentError("predicate")
        self._root = combine(self._root, NotNode(PredicateNode(predicate)))
        return self

    # -- grouping ------------------------------------------------------------

    def group(
        self, build: Callable[[CriteriaBuilder[T]], CriteriaBuilder[T] | None]
    ) -> CriteriaBuilder[T]:
        """Build a sub-tree on a fresh builder and AND it into the tree."""
        self._root = combine(self._root, _build_group(build, "Group"))
        return self

    def or_group(
        self, build: Callable[[CriteriaBuilder[T]], CriteriaBuilder[T] | None]
    ) -> CriteriaBuilder[T]:
        """Build a sub-tree on a fresh builder and OR it into the tree."""
        self._root = combine(
            self._root, _build_group(build, "Group"), combine_as_or=True
        )
        return self

    # -- build ---------------------------------------------------------------

    def build(self) -> CriteriaLambda[T] | None:
        """
        Compile the tree against one fresh bound variable.

        Returns ``None`` when no predicate was ever added.
        """
        if self._root is None:
            return None
        parameter = BoundVariable("x")
        return CriteriaLambda(self._root.materialize(parameter), parameter)

    def build_node(self) -> CriteriaNode[T] | None:
        """Return the root node of the tree, or ``None`` if it is empty."""
        return self._root

    def reset(self) -> CriteriaBuilder[T]:
        """Clear the tree and return ``self`` for reuse."""
        self._root = None
        return self


def _build_group(
    build: Callable[[CriteriaBuilder[T]], CriteriaBuilder[T] | None],
    label: str,
) -> CriteriaNode[T]:
    """Run a group callback on a fresh builder and return its non-empty root."""
    if build is None:
        raise MissingArgumentError("build")
    fresh: CriteriaBuilder[T] = CriteriaBuilder()
    built = build(fresh)
    if built is None:
        built = fresh
    if not isinstance(built, CriteriaBuilder):
        raise InvalidCompositionError("Invalid group builder.")
    root = built.build_node()
    if root is None:
        raise EmptyGroupError(label)
    return root
