"""Tests for criteria nodes, materialized expressions and the unifier."""

from __future__ import annotations

import pytest
from pydantic import BaseModel

from cqrs_ddd_criteria import (
    AndAlso,
    AndNode,
    BoundVariable,
    CriteriaLambda,
    InvalidCompositionError,
    MissingArgumentError,
    Negation,
    NotNode,
    OrElse,
    OrNode,
    PredicateCall,
    PredicateNode,
    replace_parameter,
    unify,
)
from cqrs_ddd_criteria.nodes import combine, contains_node, replace_node


class Product(BaseModel):
    id: int
    active: bool
    price: float


def is_active(p: Product) -> bool:
    return p.active


def is_cheap(p: Product) -> bool:
    return p.price < 100


@pytest.fixture
def lamp() -> Product:
    return Product(id=1, active=True, price=10)


@pytest.fixture
def desk() -> Product:
    return Product(id=2, active=False, price=10)


# -- PredicateNode -----------------------------------------------------------


def test_predicate_node_names_variable_after_parameter():
    node = PredicateNode(lambda product: product.active)
    assert node.variable.name == "product"


def test_predicate_node_rejects_none():
    with pytest.raises(MissingArgumentError):
        PredicateNode(None)  # type: ignore[arg-type]


def test_predicate_node_rejects_non_callable():
    with pytest.raises(TypeError):
        PredicateNode("active")  # type: ignore[arg-type]


def test_materialize_binds_leaf_to_shared_variable(lamp: Product):
    node = PredicateNode(is_active)
    shared = BoundVariable("x")

    body = node.materialize(shared)

    assert isinstance(body, PredicateCall)
    assert body.variable is shared
    assert body.variable is not node.variable
    assert body.evaluate({shared: lamp}) is True


def test_materialize_is_referentially_transparent(lamp: Product, desk: Product):
    tree = AndNode(PredicateNode(is_active), NotNode(PredicateNode(is_cheap)))
    shared = BoundVariable("x")

    first = tree.materialize(shared)
    second = tree.materialize(shared)

    assert first == second
    assert first is not second
    for candidate in (lamp, desk):
        assert first.evaluate({shared: candidate}) == second.evaluate(
            {shared: candidate}
        )


def test_materialize_composite_shapes():
    shared = BoundVariable("x")
    body = OrNode(
        AndNode(PredicateNode(is_active), PredicateNode(is_cheap)),
        NotNode(PredicateNode(is_active)),
    ).materialize(shared)

    assert isinstance(body, OrElse)
    assert isinstance(body.left, AndAlso)
    assert isinstance(body.right, Negation)


def test_composite_nodes_reject_missing_children():
    leaf = PredicateNode(is_active)
    with pytest.raises(MissingArgumentError):
        AndNode(leaf, None)  # type: ignore[arg-type]
    with pytest.raises(MissingArgumentError):
        OrNode(None, leaf)  # type: ignore[arg-type]
    with pytest.raises(MissingArgumentError):
        NotNode(None)  # type: ignore[arg-type]


def test_describe_renders_tree():
    tree = AndNode(PredicateNode(is_active), NotNode(PredicateNode(is_cheap)))
    assert tree.describe() == "(is_active(p) AND NOT is_cheap(p))"


# -- expressions -------------------------------------------------------------


def test_unbound_variable_is_a_composition_error(lamp: Product):
    body = PredicateCall(is_active, BoundVariable("p"))
    with pytest.raises(InvalidCompositionError):
        body.evaluate({BoundVariable("p"): lamp})


def test_criteria_lambda_is_callable(lamp: Product, desk: Product):
    x = BoundVariable("x")
    compiled = CriteriaLambda(
        AndAlso(PredicateCall(is_active, x), PredicateCall(is_cheap, x)), x
    )
    assert compiled(lamp) is True
    assert compiled(desk) is False
    assert compiled.describe() == "x => (is_active(x) AND is_cheap(x))"


def test_expression_to_dict():
    x = BoundVariable("x")
    body = Negation(OrElse(PredicateCall(is_active, x), PredicateCall(is_cheap, x)))
    assert body.to_dict() == {
        "op": "not",
        "conditions": [
            {
                "op": "or",
                "conditions": [
                    {"op": "predicate", "name": "is_active", "param": "x"},
                    {"op": "predicate", "name": "is_cheap", "param": "x"},
                ],
            }
        ],
    }


def test_short_circuit_and_skips_right_side(desk: Product):
    x = BoundVariable("x")
    calls: list[int] = []

    def tracking(p: Product) -> bool:
        calls.append(p.id)
        return True

    AndAlso(PredicateCall(is_active, x), PredicateCall(tracking, x)).evaluate(
        {x: desk}
    )
    assert calls == []


# -- unifier -----------------------------------------------------------------


def test_replace_parameter_rebinds_only_source_variable(lamp: Product):
    a, b, target = BoundVariable("a"), BoundVariable("b"), BoundVariable("x")
    body = AndAlso(PredicateCall(is_active, a), PredicateCall(is_cheap, b))

    rewritten = replace_parameter(body, a, target)

    assert isinstance(rewritten, AndAlso)
    assert rewritten.left.variable is target  # type: ignore[attr-defined]
    assert rewritten.right is body.right


def test_replace_parameter_returns_same_tree_when_nothing_to_rewrite():
    a, other = BoundVariable("a"), BoundVariable("b")
    body = Negation(PredicateCall(is_active, a))
    assert replace_parameter(body, other, BoundVariable("x")) is body
    assert replace_parameter(body, a, a) is body


def test_unify_rebinds_compiled_lambda(lamp: Product, desk: Product):
    p = BoundVariable("p")
    compiled = CriteriaLambda(PredicateCall(is_active, p), p)
    target = BoundVariable("x")

    body = unify(compiled, target)

    assert body.evaluate({target: lamp}) is True
    assert body.evaluate({target: desk}) is False


def test_replace_parameter_rejects_unknown_node():
    with pytest.raises(TypeError):
        replace_parameter(object(), BoundVariable(), BoundVariable())  # type: ignore[arg-type]


# -- tree helpers ------------------------------------------------------------


def test_combine_on_empty_root_adopts_node():
    node = PredicateNode(is_active)
    assert combine(None, node, combine_as_or=True) is node


def test_combine_wraps_existing_root():
    root, node = PredicateNode(is_active), PredicateNode(is_cheap)
    combined = combine(root, node, combine_as_or=True)
    assert isinstance(combined, OrNode)
    assert combined.left is root
    assert combined.right is node


def test_replace_node_keeps_untouched_branches():
    target, untouched = PredicateNode(is_active), PredicateNode(is_cheap)
    tree = AndNode(NotNode(target), untouched)
    replacement = PredicateNode(is_cheap)

    new_tree = replace_node(tree, target, replacement)

    assert isinstance(new_tree, AndNode)
    assert new_tree.right is untouched
    assert isinstance(new_tree.left, NotNode)
    assert new_tree.left.inner is replacement
    assert contains_node(new_tree, replacement)
    assert not contains_node(new_tree, target)


def test_replace_node_returns_same_tree_when_absent():
    tree = AndNode(PredicateNode(is_active), PredicateNode(is_cheap))
    assert replace_node(tree, PredicateNode(is_active), PredicateNode(is_cheap)) is tree
