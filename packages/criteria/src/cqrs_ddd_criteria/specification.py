"""
Specification: a criteria tree plus query-shaping directives.

Subclass and compose in ``__init__``::

    class ActiveCheapProducts(Specification[Product]):
        def __init__(self, max_price: float) -> None:
            super().__init__()
            self.where(lambda p: p.active).and_(lambda p: p.price < max_price)
            self.order_by(lambda p: p.price).page(1, 20)

or use :class:`~cqrs_ddd_criteria.fluent.FluentSpecificationBuilder` for
ad-hoc specifications.  A specification is single-writer: compose it on
one thread, then hand it to an evaluator, which only reads it.
"""

from __future__ import annotations

import logging
from typing import (
    TYPE_CHECKING,
    Any,
    Generic,
    Protocol,
    TypeVar,
    runtime_checkable,
)

from .chain import CriteriaChain, build_detached
from .exceptions import (
    InvalidCompositionError,
    InvalidIncludeError,
    MissingArgumentError,
    SortChainError,
)
from .expressions import AndAlso, BoundVariable, CriteriaLambda, predicate_name
from .nodes import PredicateNode, combine, contains_node, replace_node
from .paging import Paging
from .sorting import NullSort, SortDescriptor, SortDirection

if TYPE_CHECKING:
    from collections.abc import Callable

    from .expressions import ConditionExpression
    from .nodes import CriteriaNode

T = TypeVar("T")
T_contra = TypeVar("T_contra", contravariant=True)

logger = logging.getLogger(__name__)


@runtime_checkable
class ISpecification(Protocol, Generic[T_contra]):
    """
    Read-only view of a specification consumed by data-access layers.
    """

    @property
    def criteria(self) -> CriteriaLambda[Any] | None:
        """Compiled filter predicate; ``None`` matches everything."""
        ...

    @property
    def includes(self) -> tuple[Callable[[Any], Any], ...]: ...

    @property
    def include_paths(self) -> tuple[str, ...]: ...

    @property
    def sorts(self) -> tuple[SortDescriptor[Any], ...]: ...

    @property
    def paging(self) -> Paging | None: ...

    def is_satisfied_by(self, candidate: T_contra) -> bool: ...

    def to_dict(self) -> dict[str, Any]: ...


class Specification(Generic[T]):
    """
    Base class owning a criteria tree and its secondary query concerns.

    The tree has zero or one root (``None`` = match everything) and is
    mutated only through :meth:`where`, :meth:`where_group`, the chains
    they return, and the two primitives :meth:`merge_into_tree` and
    :meth:`replace_in_tree`.
    """

    def __init__(self) -> None:
        self._criteria_and: list[Callable[[T], bool]] = []
        self._tree: CriteriaNode[T] | None = None
        self._compiled: CriteriaLambda[T] | None = None
        self._includes: list[Callable[[T], Any]] = []
        self._include_paths: list[str] = []
        self._sorts: list[SortDescriptor[T]] = []
        self._paging: Paging | None = None

    # -- criteria ------------------------------------------------------------

    @property
    def criteria_tree(self) -> CriteriaNode[T] | None:
        return self._tree

    @property
    def criteria(self) -> CriteriaLambda[T] | None:
        """
        The compiled filter.

        Predicates added with :meth:`add_criteria` are ANDed together, then
        ANDed with the tree; all of them share one bound variable.
        """
        if self._compiled is None:
            self._compiled = self._compile()
        return self._compiled

    def to_expression(self) -> CriteriaLambda[T] | None:
        return self.criteria

    def is_satisfied_by(self, candidate: T) -> bool:
        if candidate is None:
            raise MissingArgumentError("candidate")
        criteria = self.criteria
        if criteria is None:
            return True
        return criteria(candidate)

    def where(self, start: Callable[[T], bool]) -> CriteriaChain[T]:
        """Start a chain attached to this specification; ANDed into the tree."""
        if start is None:
            raise MissingArgumentError("start")
        return CriteriaChain.start_attached(self, start, combine_as_or=False)

    def where_group(
        self, build: Callable[[CriteriaChain[T]], CriteriaChain[T] | None]
    ) -> CriteriaChain[T]:
        """
        Build a sub-tree through *build* on a detached chain, AND it into the
        tree and return a chain attached on the resulting tree.

        Raises:
            EmptyGroupError: If *build* adds no condition.
        """
        if build is None:
            raise MissingArgumentError("build")
        root = build_detached(build, "Where clause")
        self.merge_into_tree(root, combine_as_or=False)
        return CriteriaChain.attach_on_existing(self)

    def add_criteria(self, predicate: Callable[[T], bool]) -> Specification[T]:
        """Append a predicate to the plain AND list kept beside the tree."""
        if predicate is None:
            raise MissingArgumentError("predicate")
        self._criteria_and.append(predicate)
        self._compiled = None
        return self

    # -- tree mutation primitives -------------------------------------------

    def merge_into_tree(
        self, node: CriteriaNode[T], *, combine_as_or: bool = False
    ) -> None:
        """Adopt *node* as root, or join it onto the current root."""
        if node is None:
            raise MissingArgumentError("node")
        self._tree = combine(self._tree, node, combine_as_or=combine_as_or)
        self._compiled = None
        logger.debug(
            "Merged %s into %s tree: %s",
            node.describe(),
            type(self).__name__,
            self._tree.describe(),
        )

    def replace_in_tree(self, old: CriteriaNode[T], new: CriteriaNode[T]) -> None:
        """
        Swap *old* for *new*.

        *old* is normally the current root.  When another chain has wrapped
        it since, it is found inside the tree and replaced there.

        Raises:
            InvalidCompositionError: If *old* is not part of the tree.
        """
        if old is None:
            raise MissingArgumentError("old")
        if new is None:
            raise MissingArgumentError("new")

        if self._tree is None or self._tree is old:
            self._tree = new
        elif contains_node(self._tree, old):
            self._tree = replace_node(self._tree, old, new)
        else:
            raise InvalidCompositionError(
                "The node to replace is not part of this specification's criteria tree."
            )
        self._compiled = None
        logger.debug(
            "Replaced subtree in %s tree: %s", type(self).__name__, self._tree.describe()
        )

    def _compile(self) -> CriteriaLambda[T] | None:
        parameter = BoundVariable("x")
        bodies: list[ConditionExpression] = [
            PredicateNode(predicate).materialize(parameter)
            for predicate in self._criteria_and
        ]
        if self._tree is not None:
            bodies.append(self._tree.materialize(parameter))
        if not bodies:
            return None
        body = bodies[0]
        for other in bodies[1:]:
            body = AndAlso(body, other)
        return CriteriaLambda(body, parameter)

    # -- includes ------------------------------------------------------------

    @property
    def includes(self) -> tuple[Callable[[T], Any], ...]:
        return tuple(self._includes)

    @property
    def include_paths(self) -> tuple[str, ...]:
        return tuple(self._include_paths)

    def include(self, *includes: Callable[[T], Any] | str) -> Specification[T]:
        """
        Add eager-inclusion directives: typed accessors or dotted paths.
        """
        for item in includes:
            if item is None:
                raise MissingArgumentError("include")
            if isinstance(item, str):
                self._add_include_path(item)
            elif callable(item):
                self._includes.append(item)
            else:
                raise TypeError(
                    f"include expects a callable or a path, got {type(item).__name__}"
                )
        return self

    def _add_include_path(self, path: str) -> None:
        if path is None:
            raise MissingArgumentError("path")
        if not path.strip():
            raise InvalidIncludeError(path)
        self._include_paths.append(path)

    # -- sorting -------------------------------------------------------------

    @property
    def sorts(self) -> tuple[SortDescriptor[T], ...]:
        return tuple(self._sorts)

    @property
    def primary_sort(self) -> SortDescriptor[T] | None:
        return self._sorts[0] if self._sorts else None

    def order_by(self, key: Callable[[T], Any]) -> Specification[T]:
        """Start a new sort chain, ascending on *key*."""
        return self._start_sort(key, SortDirection.ASCENDING)

    def order_by_descending(self, key: Callable[[T], Any]) -> Specification[T]:
        """Start a new sort chain, descending on *key*."""
        return self._start_sort(key, SortDirection.DESCENDING)

    def then_by(self, key: Callable[[T], Any]) -> Specification[T]:
        return self._then_sort(key, SortDirection.ASCENDING, "then_by")

    def then_by_descending(self, key: Callable[[T], Any]) -> Specification[T]:
        return self._then_sort(key, SortDirection.DESCENDING, "then_by_descending")

    def nulls_first(self) -> Specification[T]:
        """Place ``None`` keys of the last sort level first."""
        return self._set_nulls(NullSort.NULLS_FIRST, "nulls_first")

    def nulls_last(self) -> Specification[T]:
        """Place ``None`` keys of the last sort level last."""
        return self._set_nulls(NullSort.NULLS_LAST, "nulls_last")

    def _start_sort(
        self, key: Callable[[T], Any], direction: SortDirection
    ) -> Specification[T]:
        if key is None:
            raise MissingArgumentError("key")
        self._sorts = [SortDescriptor(key, direction)]
        return self

    def _then_sort(
        self, key: Callable[[T], Any], direction: SortDirection, method: str
    ) -> Specification[T]:
        if key is None:
            raise MissingArgumentError("key")
        if not self._sorts:
            raise SortChainError(method)
        self._sorts.append(SortDescriptor(key, direction))
        return self

    def _set_nulls(self, nulls: NullSort, method: str) -> Specification[T]:
        if not self._sorts:
            raise SortChainError(method)
        self._sorts[-1] = self._sorts[-1].with_nulls(nulls)
        return self

    # -- paging --------------------------------------------------------------

    @property
    def paging(self) -> Paging | None:
        return self._paging

    @property
    def is_paging_enabled(self) -> bool:
        return self._paging is not None

    @property
    def skip(self) -> int:
        return self._paging.skip if self._paging is not None else 0

    @property
    def take(self) -> int | None:
        return self._paging.take if self._paging is not None else None

    def apply_paging(self, skip: int, take: int | None) -> Specification[T]:
        self._paging = Paging.create(skip, take)
        return self

    def page(self, page_number: int, page_size: int) -> Specification[T]:
        """Restrict results to the 1-based page *page_number*."""
        self._paging = Paging.from_page(page_number, page_size)
        return self

    def skip_by(self, skip: int) -> Specification[T]:
        """Skip *skip* results, keeping the current take (if any)."""
        return self.apply_paging(skip, self.take)

    def take_by(self, take: int) -> Specification[T]:
        """Take at most *take* results, keeping the current skip."""
        if take is None:
            raise MissingArgumentError("take")
        return self.apply_paging(self.skip, take)

    # -- combinators ---------------------------------------------------------

    def __and__(self, other: Specification[T]) -> Specification[T]:
        from .combinators import and_

        return and_(self, other)

    def __or__(self, other: Specification[T]) -> Specification[T]:
        from .combinators import or_

        return or_(self, other)

    def __invert__(self) -> Specification[T]:
        from .combinators import not_

        return not_(self)

    # -- serialisation -------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible description of the specification."""
        result: dict[str, Any] = {}
        criteria = self.criteria
        if criteria is not None:
            result["criteria"] = criteria.to_dict()
        if self._includes:
            result["includes"] = [predicate_name(i) for i in self._includes]
        if self._include_paths:
            result["include_paths"] = list(self._include_paths)
        if self._sorts:
            result["sorts"] = [s.to_dict() for s in self._sorts]
        if self._paging is not None:
            result["paging"] = self._paging.to_dict()
        return result

    def __repr__(self) -> str:
        tree = self._tree.describe() if self._tree is not None else "<all>"
        return f"<{type(self).__name__} {tree}>"


class CountSpecification(Generic[T]):
    """
    View of a specification carrying only its criteria.

    Used for counting: includes, sorting and paging are dropped.
    """

    def __init__(self, spec: ISpecification[T]) -> None:
        if spec is None:
            raise MissingArgumentError("spec")
        self._spec = spec

    @property
    def criteria(self) -> CriteriaLambda[Any] | None:
        return self._spec.criteria

    @property
    def includes(self) -> tuple[Callable[[Any], Any], ...]:
        return ()

    @property
    def include_paths(self) -> tuple[str, ...]:
        return ()

    @property
    def sorts(self) -> tuple[SortDescriptor[Any], ...]:
        return ()

    @property
    def paging(self) -> Paging | None:
        return None

    def is_satisfied_by(self, candidate: T) -> bool:
        return self._spec.is_satisfied_by(candidate)

    def to_dict(self) -> dict[str, Any]:
        criteria = self.criteria
        return {"criteria": criteria.to_dict()} if criteria is not None else {}
