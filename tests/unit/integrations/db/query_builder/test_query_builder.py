"""
목적: 쿼리 조건 빌더의 절 생성과 파라미터 바인딩을 검증한다.
설명: 파라미터 이름 유일성, 결합 순서, 빈 IN 처리, 불변성, 세션 간 재바인딩, 필드 경로 인용을 확인한다.
디자인 패턴: 상태 기반 단위 테스트
참조: src/cosmos_odm/integrations/db/query_builder/query_builder.py
"""

from __future__ import annotations

import re

import pytest

from cosmos_odm.integrations.db.base import FieldDescriptor
from cosmos_odm.integrations.db.query_builder import (
    ParamSession,
    QueryBuilder,
    asc,
    desc,
    field_path,
    is_identifier,
    order,
    parse_order,
    qb,
)
from cosmos_odm.shared.exceptions import InvalidArgumentError

_PLACEHOLDER = re.compile(r"@param\d+")


def _names(builder: QueryBuilder) -> list:
    return [param.name for param in builder.build().params]


def test_comparison_binds_single_parameter() -> None:
    """비교 결합자는 파라미터를 하나만 발급한다."""

    built = qb().eq("status", "active").build()

    assert built.query == "c.status = @param1"
    assert [(param.name, param.value) for param in built.params] == [("@param1", "active")]
    assert built.has_params()


@pytest.mark.parametrize(
    ("method", "operator"),
    [("ne", "!="), ("gt", ">"), ("gte", ">="), ("lt", "<"), ("lte", "<=")],
)
def test_comparison_operators(method: str, operator: str) -> None:
    built = getattr(qb(), method)("age", 30).build()

    assert built.query == f"c.age {operator} @param1"


def test_and_concatenates_parameters_in_order() -> None:
    """결합 결과의 파라미터는 입력 조각 순서대로 이어 붙여진다."""

    root = qb()
    left = root.eq("status", "active").or_(root.in_array("role", ["admin", "owner"]))
    right = root.gte("age", 20)

    combined = left.and_(right)

    assert combined.build().params == left.build().params + right.build().params
    assert combined.build().query == (
        "((c.status = @param1) OR (c.role IN (@param2, @param3))) AND (c.age >= @param4)"
    )


def test_root_and_skips_empty_fragments() -> None:
    root = qb()
    first = root.eq("a", 1)
    second = root.eq("b", 2)

    built = root.and_(first, qb(root.session), second).build()

    assert built.query == "(c.a = @param1) AND (c.b = @param2)"
    assert _names(root.and_(first, second)) == ["@param1", "@param2"]


def test_composed_parameters_are_unique_and_referenced() -> None:
    """어떤 결합 순서에서도 이름 중복이 없고 모든 자리표시자가 바인딩된다."""

    root = qb()
    status = root.eq("status", "active")
    age = root.gt("age", 18).and_(root.lt("age", 65))
    tags = root.array_contains("tags", "vip")
    name = root.ilike("name", "KIM")

    built = status.or_(age.and_(tags), name.not_()).and_(root.in_array("city", ["Seoul", "Busan"])).build()

    names = [param.name for param in built.params]
    assert len(names) == len(set(names))
    assert set(_PLACEHOLDER.findall(built.query)) == set(names)


def test_in_array_empty_matches_nothing() -> None:
    """빈 목록은 파라미터 없는 상수 거짓 절이 된다."""

    built = qb().in_array("status", []).build()

    assert built.query == "false"
    assert built.params == []
    assert not built.has_params()


def test_in_array_binds_each_value() -> None:
    built = qb().in_array("age", (10, 20)).build()

    assert built.query == "c.age IN (@param1, @param2)"
    assert [param.value for param in built.params] == [10, 20]


def test_in_array_rejects_non_sequence() -> None:
    with pytest.raises(InvalidArgumentError):
        qb().in_array("status", "active")


def test_case_insensitive_matchers_lower_the_value() -> None:
    root = qb()

    ieq = root.ieq("name", "HeLLo").build()
    ilike = root.ilike("name", "WoRlD").build()

    assert ieq.query == "LOWER(c.name) = @param1"
    assert ieq.params[0].value == "hello"
    assert ilike.query == "CONTAINS(LOWER(c.name), @param2)"
    assert ilike.params[0].value == "world"


def test_case_insensitive_matchers_require_string() -> None:
    with pytest.raises(InvalidArgumentError):
        qb().ieq("name", 10)


def test_array_contains_and_is_defined() -> None:
    root = qb()

    assert root.array_contains("tags", "vip").build().query == "ARRAY_CONTAINS(c.tags, @param1)"
    assert root.is_defined("address.city").build().query == "IS_DEFINED(c.address.city)"


def test_not_wraps_clause() -> None:
    root = qb()
    positive = root.eq("status", "deleted")

    assert positive.not_().build().query == "NOT (c.status = @param1)"
    assert root.not_(positive).build().query == "NOT (c.status = @param1)"
    with pytest.raises(InvalidArgumentError):
        root.not_()


def test_builder_is_immutable() -> None:
    """결합자는 새 인스턴스를 반환하고 원본과 build 결과는 바뀌지 않는다."""

    root = qb()
    base = root.eq("status", "active")
    before = base.build()

    extended = base.and_(root.eq("age", 30))

    assert extended is not base
    assert base.build() == before
    assert base.build() == base.build()
    assert root.is_empty()


def test_fragments_from_different_sessions_are_rebound() -> None:
    """다른 세션에서 만든 조각의 충돌 이름은 새 이름으로 바뀐다."""

    left = qb().eq("a", 1)
    right = qb().eq("b", 2)

    built = left.and_(right).build()

    assert built.query == "(c.a = @param1) AND (c.b = @param2)"
    assert [(param.name, param.value) for param in built.params] == [("@param1", 1), ("@param2", 2)]
    assert right.build().query == "c.b = @param1"


def test_rebinding_ignores_quoted_field_names() -> None:
    """따옴표로 감싼 필드 이름 안의 '@param'은 치환하지 않는다."""

    left = qb().eq("x", 1)
    right = qb().eq("@param1", 2)

    built = left.and_(right).build()

    assert built.query == '(c.x = @param1) AND (c["@param1"] = @param2)'


def test_shared_session_issues_monotonic_names() -> None:
    session = ParamSession()

    assert [session.next_name() for _ in range(3)] == ["@param1", "@param2", "@param3"]
    assert qb(session).eq("a", 1).build().params[0].name == "@param4"


def test_field_path_quotes_unsafe_segments() -> None:
    assert field_path("address.city") == "c.address.city"
    assert field_path("first-name") == 'c["first-name"]'
    assert field_path("select") == 'c["select"]'
    assert field_path('a"b') == 'c["a\\"b"]'
    assert field_path(FieldDescriptor(name="address.zipCode")) == "c.address.zipCode"


@pytest.mark.parametrize("bad", ["", "  ", "a..b", None])
def test_field_path_rejects_invalid_names(bad) -> None:
    with pytest.raises(InvalidArgumentError):
        field_path(bad)


def test_order_joins_sort_clauses() -> None:
    assert asc("name") == "c.name ASC"
    assert desc("age") == "c.age DESC"
    assert order(asc("name"), desc("age")) == "ORDER BY c.name ASC, c.age DESC"
    assert QueryBuilder.order(QueryBuilder.asc("name")) == "ORDER BY c.name ASC"
    assert order() == ""


def test_order_rejects_raw_text() -> None:
    with pytest.raises(InvalidArgumentError):
        order("c.name ASC; DROP")


def test_parse_order_returns_sort_clauses() -> None:
    quoted = asc("a, b")

    assert quoted == 'c["a, b"] ASC'
    assert parse_order(order(desc("age"), quoted)) == ("c.age DESC", 'c["a, b"] ASC')
    assert order(*parse_order("ORDER BY c.name ASC")) == "ORDER BY c.name ASC"


@pytest.mark.parametrize(
    "text",
    [
        "ORDER BY c.x ASC OFFSET 0 LIMIT 999999",
        "ORDER BY c.x ASC\n",
        "ORDER BY c.x",
        "ORDER BY ",
        "c.x ASC",
        None,
    ],
)
def test_parse_order_rejects_other_text(text) -> None:
    with pytest.raises(InvalidArgumentError):
        parse_order(text)


def test_is_identifier_excludes_reserved_and_digit_names() -> None:
    assert is_identifier("status")
    assert is_identifier("_value")
    assert not is_identifier("value")
    assert not is_identifier("ORDER")
    assert not is_identifier("1st")
    assert not is_identifier("a-b")
