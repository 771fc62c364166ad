from .builder import CriteriaBuilder
from .chain import CriteriaChain
from .combinators import (
    CombinedSpecification,
    all_of,
    and_,
    and_where,
    any_of,
    not_,
    or_,
    or_where,
)
from .evaluator import (
    EvaluationOptions,
    HookResult,
    IncludeContext,
    IncludeHook,
    SpecificationEvaluator,
    resolve_path,
)
from .exceptions import (
    EmptyGroupError,
    FieldNotFoundError,
    InvalidCompositionError,
    InvalidIncludeError,
    InvalidPagingError,
    MissingArgumentError,
    MissingCriteriaError,
    SortChainError,
    SpecificationError,
)
from .expressions import (
    AndAlso,
    BoundVariable,
    ConditionExpression,
    CriteriaLambda,
    Negation,
    OrElse,
    PredicateCall,
)
from .fluent import FluentSpecificationBuilder
from .nodes import (
    AndNode,
    CriteriaNode,
    ExpressionNode,
    NotNode,
    OrNode,
    PredicateNode,
)
from .paging import Paging
from .sorting import NullSort, SortDescriptor, SortDirection
from .specification import CountSpecification, ISpecification, Specification
from .unifier import ParameterReplacer, replace_parameter, unify

__all__ = [
    # Criteria tree
    "CriteriaNode",
    "PredicateNode",
    "ExpressionNode",
    "AndNode",
    "OrNode",
    "NotNode",
    # Materialized expressions
    "BoundVariable",
    "ConditionExpression",
    "PredicateCall",
    "AndAlso",
    "OrElse",
    "Negation",
    "CriteriaLambda",
    # Unifier
    "ParameterReplacer",
    "replace_parameter",
    "unify",
    # Builders
    "CriteriaBuilder",
    "CriteriaChain",
    "FluentSpecificationBuilder",
    # Specification
    "ISpecification",
    "Specification",
    "CountSpecification",
    "CombinedSpecification",
    "SortDescriptor",
    "SortDirection",
    "NullSort",
    "Paging",
    # Combinators
    "and_",
    "or_",
    "not_",
    "and_where",
    "or_where",
    "all_of",
    "any_of",
    # Evaluator
    "SpecificationEvaluator",
    "EvaluationOptions",
    "HookResult",
    "IncludeContext",
    "IncludeHook",
    "resolve_path",
    # Exceptions
    "SpecificationError",
    "MissingArgumentError",
    "InvalidCompositionError",
    "InvalidIncludeError",
    "EmptyGroupError",
    "MissingCriteriaError",
    "SortChainError",
    "InvalidPagingError",
    "FieldNotFoundError",
]
