"""Tests for the CriteriaBuilder fluent API."""

from __future__ import annotations

import pytest
from pydantic import BaseModel

from cqrs_ddd_criteria import (
    AndNode,
    CriteriaBuilder,
    CriteriaLambda,
    EmptyGroupError,
    InvalidCompositionError,
    MissingArgumentError,
    NotNode,
    OrNode,
    PredicateNode,
)


class Product(BaseModel):
    id: int
    active: bool
    price: float
    category: str = "B"


@pytest.fixture
def products() -> list[Product]:
    return [
        Product(id=1, active=True, price=10),
        Product(id=2, active=False, price=10),
        Product(id=3, active=True, price=999),
    ]


def matching(predicate: CriteriaLambda[Product] | None, items: list[Product]) -> set[int]:
    assert predicate is not None
    return {p.id for p in items if predicate(p)}


# -- Empty builder -----------------------------------------------------------


def test_build_without_predicates_returns_none():
    assert CriteriaBuilder[Product]().build() is None
    assert CriteriaBuilder[Product]().build_node() is None


# -- Single condition --------------------------------------------------------


def test_single_and(products: list[Product]):
    predicate = CriteriaBuilder[Product]().and_(lambda p: p.active).build()
    assert isinstance(predicate, CriteriaLambda)
    assert matching(predicate, products) == {1, 3}


def test_single_not(products: list[Product]):
    predicate = CriteriaBuilder[Product]().not_(lambda p: p.active).build()
    assert matching(predicate, products) == {2}


# -- First call becomes root -------------------------------------------------


def test_first_or_call_is_equivalent_to_first_and(products: list[Product]):
    def active(p: Product) -> bool:
        return p.active

    def cheap(p: Product) -> bool:
        return p.price < 100

    via_or = CriteriaBuilder[Product]().or_(active).and_(cheap)
    via_and = CriteriaBuilder[Product]().and_(active).and_(cheap)

    for builder in (via_or, via_and):
        root = builder.build_node()
        assert isinstance(root, AndNode)
        assert isinstance(root.left, PredicateNode)
        assert root.left.predicate is active
    assert matching(via_or.build(), products) == matching(via_and.build(), products)
    assert matching(via_or.build(), products) == {1}


def test_first_not_call_becomes_root():
    root = CriteriaBuilder[Product]().not_(lambda p: p.active).build_node()
    assert isinstance(root, NotNode)


# -- Combinators -------------------------------------------------------------


def test_and_or_fold_left(products: list[Product]):
    builder = (
        CriteriaBuilder[Product]()
        .and_(lambda p: p.active)
        .and_(lambda p: p.price < 100)
        .or_(lambda p: p.id == 2)
    )
    root = builder.build_node()
    assert isinstance(root, OrNode)
    assert isinstance(root.left, AndNode)
    assert matching(builder.build(), products) == {1, 2}


def test_not_combines_with_and(products: list[Product]):
    predicate = (
        CriteriaBuilder[Product]()
        .and_(lambda p: p.active)
        .not_(lambda p: p.price > 500)
        .build()
    )
    assert matching(predicate, products) == {1}


def test_where_restarts_tree(products: list[Product]):
    predicate = (
        CriteriaBuilder[Product]()
        .and_(lambda p: p.active)
        .where(lambda p: p.id == 2)
        .build()
    )
    assert matching(predicate, products) == {2}


# -- Groups ------------------------------------------------------------------


def test_group_ands_sub_tree(products: list[Product]):
    predicate = (
        CriteriaBuilder[Product]()
        .and_(lambda p: p.price < 100)
        .group(lambda g: g.or_(lambda p: p.active).or_(lambda p: p.id == 3))
        .build()
    )
    assert matching(predicate, products) == {1}


def test_or_group_ors_sub_tree(products: list[Product]):
    predicate = (
        CriteriaBuilder[Product]()
        .and_(lambda p: p.active)
        .or_group(
            lambda g: g.or_(lambda p: p.category == "A").or_(lambda p: p.price > 500)
        )
        .build()
    )
    assert matching(predicate, products) == {1, 3}


def test_group_on_empty_builder_becomes_root():
    root = (
        CriteriaBuilder[Product]()
        .or_group(lambda g: g.and_(lambda p: p.active).and_(lambda p: p.price > 1))
        .build_node()
    )
    assert isinstance(root, AndNode)


def test_nested_groups(products: list[Product]):
    # active AND (price < 50 OR (id == 3 AND NOT category == "A"))
    predicate = (
        CriteriaBuilder[Product]()
        .and_(lambda p: p.active)
        .group(
            lambda g: g.and_(lambda p: p.price < 50).or_group(
                lambda inner: inner.and_(lambda p: p.id == 3).not_(
                    lambda p: p.category == "A"
                )
            )
        )
        .build()
    )
    assert matching(predicate, products) == {1, 3}


def test_group_callback_without_return_uses_fresh_builder(products: list[Product]):
    def build(g: CriteriaBuilder[Product]) -> None:
        g.and_(lambda p: p.id == 3)

    predicate = CriteriaBuilder[Product]().group(build).build()
    assert matching(predicate, products) == {3}


def test_empty_group_raises():
    with pytest.raises(EmptyGroupError, match="Group cannot be empty"):
        CriteriaBuilder[Product]().and_(lambda p: p.active).group(lambda g: g)


def test_empty_or_group_raises():
    with pytest.raises(EmptyGroupError):
        CriteriaBuilder[Product]().or_group(lambda g: g)


def test_group_returning_foreign_object_raises():
    with pytest.raises(InvalidCompositionError, match="Invalid group builder"):
        CriteriaBuilder[Product]().group(lambda g: "not a builder")  # type: ignore[arg-type,return-value]


# -- Null arguments ----------------------------------------------------------


@pytest.mark.parametrize("method", ["where", "and_", "or_", "not_", "group", "or_group"])
def test_none_argument_raises(method: str):
    builder = CriteriaBuilder[Product]()
    with pytest.raises(MissingArgumentError):
        getattr(builder, method)(None)


# -- Build -------------------------------------------------------------------


def test_build_is_idempotent(products: list[Product]):
    builder = (
        CriteriaBuilder[Product]()
        .and_(lambda p: p.active)
        .or_group(lambda g: g.and_(lambda p: p.price < 50))
    )
    first, second = builder.build(), builder.build()
    assert first is not None and second is not None
    for product in products:
        assert first(product) == second(product)


def test_build_uses_single_shared_variable():
    predicate = (
        CriteriaBuilder[Product]()
        .and_(lambda a: a.active)
        .and_(lambda b: b.price < 100)
        .build()
    )
    assert predicate is not None
    assert predicate.describe() == "x => (<lambda>(x) AND <lambda>(x))"


def test_reset_clears_tree():
    builder = CriteriaBuilder[Product]().and_(lambda p: p.active)
    assert builder.reset().build() is None
