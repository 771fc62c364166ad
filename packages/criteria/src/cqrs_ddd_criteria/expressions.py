"""
Materialized criteria expressions.

A criteria tree is compiled into a small immutable expression tree whose
leaves are ``PredicateCall``s reading their candidate from a
:class:`BoundVariable`.  ``CriteriaLambda`` closes such a body over one
bound variable and is the callable handed to data-access layers::

    x = BoundVariable("x")
    body = AndAlso(PredicateCall(is_active, x), PredicateCall(is_cheap, x))
    predicate = CriteriaLambda(body, x)
    predicate(product)  # → is_active(product) and is_cheap(product)

Expressions never change after construction, so a compiled predicate can
be shared freely between threads and re-used across query executions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .exceptions import InvalidCompositionError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

T = TypeVar("T")


class BoundVariable:
    """
    Placeholder a predicate body reads its candidate from.

    Compared by identity: two variables with the same name are still
    different variables.
    """

    __slots__ = ("name",)

    def __init__(self, name: str = "x") -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"BoundVariable({self.name!r})"


def predicate_name(predicate: Callable[..., Any]) -> str:
    """Human-readable name of a predicate callable."""
    name = getattr(predicate, "__name__", None)
    return name if isinstance(name, str) else type(predicate).__name__


class ConditionExpression(ABC):
    """Base class of materialized boolean expression bodies."""

    @abstractmethod
    def evaluate(self, scope: Mapping[BoundVariable, Any]) -> bool:
        """Evaluate the body with candidates taken from *scope*."""
        ...

    @abstractmethod
    def describe(self) -> str: ...

    @abstractmethod
    def to_dict(self) -> dict[str, Any]: ...

    def __str__(self) -> str:
        return self.describe()


@dataclass(frozen=True)
class PredicateCall(ConditionExpression):
    """Leaf: apply ``predicate`` to the candidate bound to ``variable``."""

    predicate: Callable[[Any], bool]
    variable: BoundVariable

    def evaluate(self, scope: Mapping[BoundVariable, Any]) -> bool:
        try:
            candidate = scope[self.variable]
        except KeyError as exc:
            raise InvalidCompositionError(
                f"Variable '{self.variable.name}' is not bound in this scope; "
                "the predicate was not unified with the shared parameter."
            ) from exc
        return bool(self.predicate(candidate))

    def describe(self) -> str:
        return f"{predicate_name(self.predicate)}({self.variable.name})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "op": "predicate",
            "name": predicate_name(self.predicate),
            "param": self.variable.name,
        }


@dataclass(frozen=True)
class AndAlso(ConditionExpression):
    """Short-circuit conjunction."""

    left: ConditionExpression
    right: ConditionExpression

    def evaluate(self, scope: Mapping[BoundVariable, Any]) -> bool:
        return self.left.evaluate(scope) and self.right.evaluate(scope)

    def describe(self) -> str:
        return f"({self.left.describe()} AND {self.right.describe()})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "op": "and",
            "conditions": [self.left.to_dict(), self.right.to_dict()],
        }


@dataclass(frozen=True)
class OrElse(ConditionExpression):
    """Short-circuit disjunction."""

    left: ConditionExpression
    right: ConditionExpression

    def evaluate(self, scope: Mapping[BoundVariable, Any]) -> bool:
        return self.left.evaluate(scope) or self.right.evaluate(scope)

    def describe(self) -> str:
        return f"({self.left.describe()} OR {self.right.describe()})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "op": "or",
            "conditions": [self.left.to_dict(), self.right.to_dict()],
        }


@dataclass(frozen=True)
class Negation(ConditionExpression):
    """Logical NOT."""

    operand: ConditionExpression

    def evaluate(self, scope: Mapping[BoundVariable, Any]) -> bool:
        return not self.operand.evaluate(scope)

    def describe(self) -> str:
        return f"NOT {self.operand.describe()}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "op": "not",
            "conditions": [self.operand.to_dict()],
        }


@dataclass(frozen=True)
class CriteriaLambda(Generic[T]):
    """
    A compiled predicate: ``body`` closed over the single ``parameter``.

    Calling it binds the candidate to ``parameter`` and evaluates the body.
    """

    body: ConditionExpression
    parameter: BoundVariable

    def __call__(self, candidate: T) -> bool:
        return self.body.evaluate({self.parameter: candidate})

    def describe(self) -> str:
        return f"{self.parameter.name} => {self.body.describe()}"

    def to_dict(self) -> dict[str, Any]:
        return self.body.to_dict()

    def __str__(self) -> str:
        return self.describe()
