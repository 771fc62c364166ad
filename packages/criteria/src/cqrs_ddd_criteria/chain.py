"""
Stateful criteria chains.

A chain offers the same fluent surface as
:class:`~cqrs_ddd_criteria.builder.CriteriaBuilder`, but can be *attached*
to a live :class:`~cqrs_ddd_criteria.specification.Specification`: every
call then pushes the equivalent mutation into the specification's tree.

Because AND/OR fold left, each call wraps the chain's previous root.  The
first node of an attached chain is merged into the specification's tree;
every later call replaces the chain's old root inside that tree with the
new one, so nodes are never duplicated or lost when several chains
compose the same specification.

A chain is a short-lived session: it runs to completion inside the
synchronous call chain that created it and holds a single non-owning
reference to its specification.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Generic, TypeVar

from .exceptions import EmptyGroupError, InvalidCompositionError, MissingArgumentError
from .expressions import BoundVariable, CriteriaLambda
from .nodes import NotNode, PredicateNode, combine

if TYPE_CHECKING:
    from collections.abc import Callable

    from .nodes import CriteriaNode
    from .specification import Specification

T = TypeVar("T")

logger = logging.getLogger(__name__)


class CriteriaChain(Generic[T]):
    """
    Fluent criteria session, attached to a specification or detached.

    Use the class-method constructors:

    * :meth:`start_attached`: begin a new chain on a specification with a
      first predicate.
    * :meth:`attach_on_existing`: continue composing on top of the
      specification's current tree.
    * :meth:`start_detached`: standalone chain, used for groups.
    """

    __slots__ = ("_root", "_spec")

    def __init__(self, attached: Specification[T] | None = None) -> None:
        self._spec = attached
        self._root: CriteriaNode[T] | None = None

    # -- construction --------------------------------------------------------

    @classmethod
    def start_attached(
        cls,
        spec: Specification[T],
        start: Callable[[T], bool],
        *,
        combine_as_or: bool = False,
    ) -> CriteriaChain[T]:
        """Create the first node and merge it into *spec*'s tree."""
        if start is None:
            raise MissingArgumentError("start")
        if spec is None:
            raise MissingArgumentError("spec")

        chain = cls(spec)
        node = PredicateNode(start)
        chain._root = node
        spec.merge_into_tree(node, combine_as_or=combine_as_or)
        logger.debug("Started attached chain with %s", node.describe())
        return chain

    @classmethod
    def attach_on_existing(cls, spec: Specification[T]) -> CriteriaChain[T]:
        """Adopt *spec*'s current root as the chain's starting root."""
        if spec is None:
            raise MissingArgumentError("spec")
        chain = cls(spec)
        chain._root = spec.criteria_tree
        return chain

    @classmethod
    def start_detached(cls) -> CriteriaChain[T]:
        return cls(None)

    # -- state ---------------------------------------------------------------

    @property
    def root(self) -> CriteriaNode[T] | None:
        return self._root

    @property
    def is_attached(self) -> bool:
        return self._spec is not None

    # -- fluent calls --------------------------------------------------------

    def and_(self, predicate: Callable[[T], bool]) -> CriteriaChain[T]:
        if predicate is None:
            raise MissingArgumentError("predicate")
        return self._extend(PredicateNode(predicate), combine_as_or=False)

    def or_(self, predicate: Callable[[T], bool]) -> CriteriaChain[T]:
        if predicate is None:
            raise MissingArgumentError("predicate")
        return self._extend(PredicateNode(predicate), combine_as_or=True)

    def not_(self, predicate: Callable[[T], bool]) -> CriteriaChain[T]:
        """AND the negation of *predicate* into the chain."""
        if predicate is None:
            raise MissingArgumentError("predicate")
        return self._extend(NotNode(PredicateNode(predicate)), combine_as_or=False)

    def group(
        self, build: Callable[[CriteriaChain[T]], CriteriaChain[T] | None]
    ) -> CriteriaChain[T]:
        """Build a sub-tree on a detached chain and AND it in."""
        return self._extend(build_detached(build, "Group"), combine_as_or=False)

    def or_group(
        self, build: Callable[[CriteriaChain[T]], CriteriaChain[T] | None]
    ) -> CriteriaChain[T]:
        """Build a sub-tree on a detached chain and OR it in."""
        return self._extend(build_detached(build, "Group"), combine_as_or=True)

    def build(self) -> CriteriaLambda[T] | None:
        """Compile the chain's local root, or ``None`` if it is empty."""
        if self._root is None:
            return None
        parameter = BoundVariable("x")
        return CriteriaLambda(self._root.materialize(parameter), parameter)

    # -- internals -----------------------------------------------------------

    def _extend(self, node: CriteriaNode[T], *, combine_as_or: bool) -> CriteriaChain[T]:
        old_root = self._root
        self._root = combine(old_root, node, combine_as_or=combine_as_or)

        if self._spec is not None:
            if old_root is None:
                self._spec.merge_into_tree(node, combine_as_or=combine_as_or)
            else:
                self._spec.replace_in_tree(old_root, self._root)

        logger.debug(
            "%s chain extended with %s %s",
            "Attached" if self._spec is not None else "Detached",
            "OR" if combine_as_or else "AND",
            node.describe(),
        )
        return self

    def __repr__(self) -> str:
        state = "attached" if self._spec is not None else "detached"
        root = self._root.describe() if self._root is not None else "<empty>"
        return f"<CriteriaChain {state} {root}>"


def build_detached(
    build: Callable[[CriteriaChain[T]], CriteriaChain[T] | None],
    label: str,
) -> CriteriaNode[T]:
    """Run *build* on a detached chain and return its non-empty root."""
    if build is None:
        raise MissingArgumentError("build")
    detached: CriteriaChain[T] = CriteriaChain.start_detached()
    built = build(detached)
    if built is None:
        built = detached
    if not isinstance(built, CriteriaChain):
        raise InvalidCompositionError("Invalid group builder.")
    if built.root is None:
        raise EmptyGroupError(label)
    return built.root
