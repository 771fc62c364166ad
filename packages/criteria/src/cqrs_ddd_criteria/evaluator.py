"""
In-memory specification evaluator.

Applies a specification to any iterable of records, in the order a
query-backed evaluator would:

1. filter with the compiled criteria;
2. sort (multi-level, stable, honouring null placement), or fall back to a
   stable sort on the id attribute when no sort is configured;
3. skip / take paging;
4. eager inclusion of related data, for the returned page only.

Records may be plain objects (attribute access) or mappings.

Inclusion is pluggable through an :class:`IncludeHook`.  A hook receives an
:class:`IncludeContext` and returns a :class:`HookResult`; a handled result
for a dotted path is attached to the record at that path.  Without a hook
(or when the hook skips), dotted paths are resolved to make sure they
exist and typed accessors are called.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar, cast

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import FieldNotFoundError, MissingArgumentError
from .expressions import predicate_name
from .specification import CountSpecification

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .sorting import SortDescriptor
    from .specification import ISpecification

T = TypeVar("T")
V = TypeVar("V")

logger = logging.getLogger(__name__)

_MISSING = object()
_NO_DEFAULT = object()


class EvaluationOptions(BaseModel):
    """
    Immutable switches for one evaluation.

    Attributes:
        stable_sort_by_id_when_missing: Sort by ``id_attribute`` when the
            specification has no sort, so paging is deterministic.
        id_attribute: Name of the identifier attribute.
        apply_includes: Run include directives.
        query_tag: Label emitted with the evaluation log line.
    """

    model_config = ConfigDict(frozen=True)

    stable_sort_by_id_when_missing: bool = True
    id_attribute: str = Field(default="id", min_length=1)
    apply_includes: bool = True
    query_tag: str | None = None


# -- include hooks -----------------------------------------------------------


@dataclass
class HookResult(Generic[V]):
    """
    Result from an include hook.

    Attributes:
        value: The loaded related data.
        handled: If ``True``, skip default resolution.
            If ``False``, continue with default.
    """

    value: V
    handled: bool = True

    @classmethod
    def skip(cls) -> HookResult[None]:
        """Return to let default resolution handle it."""
        result = cls(value=None, handled=False)  # type: ignore[arg-type]
        return cast("HookResult[None]", result)


@dataclass
class IncludeContext:
    """
    What an include hook is asked to load.

    Attributes:
        record: The record being shaped.
        directive: The include directive (dotted path or typed accessor).
        parts: Split path parts; empty for typed accessors.
    """

    record: Any
    directive: str | Callable[[Any], Any]
    parts: list[str] = field(default_factory=list)

    @property
    def path(self) -> str | None:
        return self.directive if isinstance(self.directive, str) else None

    @classmethod
    def from_directive(
        cls, record: Any, directive: str | Callable[[Any], Any]
    ) -> IncludeContext:
        parts = directive.split(".") if isinstance(directive, str) else []
        return cls(record=record, directive=directive, parts=parts)


class IncludeHook(Protocol):
    """
    Protocol for include hooks.

    If ``result.handled`` is ``True`` the default resolution is skipped.
    """

    def __call__(self, ctx: IncludeContext) -> HookResult[Any]: ...


# -- field access ------------------------------------------------------------


def read_attribute(obj: Any, name: str, default: Any = _NO_DEFAULT) -> Any:
    """
    Read *name* from a mapping key or an attribute.

    Without *default*, a missing name raises ``KeyError`` or
    ``AttributeError``; with one, *default* is returned instead.
    """
    if isinstance(obj, Mapping):
        return obj[name] if default is _NO_DEFAULT else obj.get(name, default)
    if default is _NO_DEFAULT:
        return getattr(obj, name)
    return getattr(obj, name, default)


def _available_fields(obj: Any) -> list[str]:
    if isinstance(obj, Mapping):
        return [str(k) for k in obj]
    model_fields = getattr(type(obj), "model_fields", None)
    if isinstance(model_fields, dict):
        return list(model_fields)
    return [name for name in dir(obj) if not name.startswith("_")]


def resolve_path(obj: Any, path: str) -> Any:
    """
    Resolve a dotted *path* on *obj*.

    ``None`` along the way short-circuits to ``None``; lists are traversed
    element-wise.

    Raises:
        FieldNotFoundError: If a part of the path does not exist.
    """
    parts = path.split(".")
    return _resolve_parts(obj, parts, path)


def _resolve_parts(obj: Any, parts: list[str], full_path: str) -> Any:
    for index, part in enumerate(parts):
        if obj is None:
            return None
        if isinstance(obj, list | tuple):
            rest = parts[index:]
            return [_resolve_parts(item, rest, full_path) for item in obj]
        value = read_attribute(obj, part, _MISSING)
        if value is _MISSING:
            model_name = "dict" if isinstance(obj, Mapping) else type(obj).__name__
            raise FieldNotFoundError(
                part, model_name, _available_fields(obj), full_path=full_path
            )
        obj = value
    return obj


# -- sorting -----------------------------------------------------------------


def _sort_key(descriptor: SortDescriptor[Any]) -> Callable[[Any], tuple[int, Any]]:
    # reverse=True also flips the rank order.
    none_rank = 0 if descriptor.nulls_come_first != descriptor.descending else 1
    value_rank = 1 - none_rank

    def key(record: Any) -> tuple[int, Any]:
        value = descriptor.key(record)
        if value is None:
            return (none_rank, 0)
        return (value_rank, value)

    return key


class SpecificationEvaluator(Generic[T]):
    """
    Evaluates specifications against in-memory record collections.

    Usage::

        evaluator = SpecificationEvaluator[Product]()
        page = evaluator.get_query(products, spec)
        total = evaluator.count(products, spec)
    """

    def __init__(
        self,
        include_hook: IncludeHook | None = None,
        options: EvaluationOptions | None = None,
    ) -> None:
        self._include_hook = include_hook
        self._options = options if options is not None else EvaluationOptions()

    # -- public API ----------------------------------------------------------

    def get_query(
        self,
        source: Iterable[T],
        spec: ISpecification[T],
        options: EvaluationOptions | None = None,
    ) -> list[T]:
        """Filter, sort, include and page *source* according to *spec*."""
        if source is None:
            raise MissingArgumentError("source")
        if spec is None:
            raise MissingArgumentError("spec")
        opts = options if options is not None else self._options

        records = self._filter(source, spec)
        matched = len(records)

        if spec.sorts:
            records = self._apply_sorts(records, spec.sorts)
        elif opts.stable_sort_by_id_when_missing:
            records = self._sort_by_id(records, opts.id_attribute)

        paging = spec.paging
        if paging is not None:
            end = None if paging.take is None else paging.skip + paging.take
            records = records[paging.skip : end]

        if opts.apply_includes and (spec.includes or spec.include_paths):
            for record in records:
                self._apply_includes(record, spec)

        logger.debug(
            "Evaluated %s%s: %d matched, %d returned",
            type(spec).__name__,
            f" [{opts.query_tag}]" if opts.query_tag else "",
            matched,
            len(records),
        )
        return records

    def count(self, source: Iterable[T], spec: ISpecification[T]) -> int:
        """Number of records satisfying the criteria (sorting/paging ignored)."""
        if source is None:
            raise MissingArgumentError("source")
        if spec is None:
            raise MissingArgumentError("spec")
        return len(self._filter(source, CountSpecification(spec)))

    def exists(self, source: Iterable[T], spec: ISpecification[T]) -> bool:
        """True if at least one record satisfies the criteria."""
        if source is None:
            raise MissingArgumentError("source")
        if spec is None:
            raise MissingArgumentError("spec")
        criteria = spec.criteria
        if criteria is None:
            return any(True for _ in source)
        return any(criteria(record) for record in source)

    def first(
        self,
        source: Iterable[T],
        spec: ISpecification[T],
        options: EvaluationOptions | None = None,
    ) -> T | None:
        """First record of the shaped result, or ``None``."""
        records = self.get_query(source, spec, options)
        return records[0] if records else None

    # -- steps ---------------------------------------------------------------

    @staticmethod
    def _filter(source: Iterable[T], spec: ISpecification[T]) -> list[T]:
        criteria = spec.criteria
        if criteria is None:
            return list(source)
        return [record for record in source if criteria(record)]

    @staticmethod
    def _apply_sorts(
        records: list[T], sorts: tuple[SortDescriptor[Any], ...]
    ) -> list[T]:
        ordered = list(records)
        # Stable sorts applied from the least to the most significant level.
        for descriptor in reversed(sorts):
            ordered.sort(key=_sort_key(descriptor), reverse=descriptor.descending)
        return ordered

    @staticmethod
    def _sort_by_id(records: list[T], id_attribute: str) -> list[T]:
        if any(read_attribute(r, id_attribute, _MISSING) is _MISSING for r in records):
            logger.debug(
                "Skipping fallback sort: records lack attribute '%s'", id_attribute
            )
            return records
        return sorted(
            records,
            key=lambda r: (
                (0, 0)
                if read_attribute(r, id_attribute) is None
                else (1, read_attribute(r, id_attribute))
            ),
        )

    def _apply_includes(self, record: T, spec: ISpecification[T]) -> None:
        directives: list[str | Callable[[Any], Any]] = [
            *spec.includes,
            *spec.include_paths,
        ]
        for directive in directives:
            ctx = IncludeContext.from_directive(record, directive)
            if self._include_hook is not None:
                result = self._include_hook(ctx)
                if result.handled:
                    if ctx.path is not None:
                        self._attach(record, ctx, result.value)
                    continue
            if ctx.path is not None:
                resolve_path(record, ctx.path)
            else:
                logger.debug("Including %s", predicate_name(directive))
                cast("Callable[[Any], Any]", directive)(record)

    @staticmethod
    def _attach(record: Any, ctx: IncludeContext, value: Any) -> None:
        *parents, last = ctx.parts
        target = _resolve_parts(record, parents, ctx.path or last) if parents else record
        if target is None:
            return
        if isinstance(target, MutableMapping):
            target[last] = value
        else:
            setattr(target, last, value)
