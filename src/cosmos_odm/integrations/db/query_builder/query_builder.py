"""
목적: 파라미터 바인딩 기반 쿼리 조건 빌더를 제공한다.
설명: 비교/포함/패턴/논리 결합자로 불변 조건 조각을 만들고 WHERE 절과 파라미터 목록으로 빌드한다.
디자인 패턴: 빌더 패턴, 불변 값 객체
참조: src/cosmos_odm/integrations/db/base/models.py, src/cosmos_odm/integrations/db/model/model.py
"""

from __future__ import annotations

import itertools
import json
import re
import threading
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from cosmos_odm.integrations.db.base.models import BuiltQuery, FieldDescriptor, SqlParameter
from cosmos_odm.shared.const import OdmConst
from cosmos_odm.shared.exceptions import InvalidArgumentError

FieldRef = Union[str, FieldDescriptor]

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
# 문자열 리터럴을 먼저 소비해 따옴표 안의 '@'는 치환하지 않는다.
_PLACEHOLDER_RE = re.compile(r'"(?:[^"\\]|\\.)*"|@[A-Za-z_][A-Za-z0-9_]*')
_SORT_ITEM = r'[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*|\["(?:[^"\\]|\\.)*"\])+ (?:ASC|DESC)'
_SORT_ITEM_RE = re.compile(_SORT_ITEM)
_ORDER_BY_RE = re.compile(rf"ORDER BY {_SORT_ITEM}(?:, {_SORT_ITEM})*")
ORDER_BY_PREFIX = "ORDER BY "
_RESERVED_WORDS = frozenset(
    {
        "and", "array", "as", "asc", "between", "by", "desc", "distinct", "escape",
        "exists", "false", "from", "group", "in", "join", "like", "limit", "not",
        "null", "offset", "or", "order", "select", "top", "true", "undefined",
        "value", "where",
    }
)


class ParamSession:
    """파라미터 이름 발급기.

    같은 세션에서 파생된 조각끼리는 이름이 겹치지 않는다.
    """

    def __init__(self, prefix: str = OdmConst.PARAM_PREFIX) -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def prefix(self) -> str:
        return self._prefix

    def next_name(self) -> str:
        with self._lock:
            return f"{self._prefix}{next(self._counter)}"


def is_identifier(name: str) -> bool:
    """따옴표 없이 쓸 수 있는 식별자(예약어 제외)인지 검사한다."""

    return bool(_IDENTIFIER_RE.fullmatch(name)) and name.lower() not in _RESERVED_WORDS


def field_path(field: FieldRef, alias: str = OdmConst.COLLECTION_ALIAS) -> str:
    """필드 참조를 `c.a.b` 형태의 경로 식으로 변환한다.

    식별자가 아니거나 예약어인 세그먼트는 `c["..."]`로 감싼다.
    """

    name = field.name if isinstance(field, FieldDescriptor) else field
    if not isinstance(name, str) or not name.strip():
        raise InvalidArgumentError("필드 이름은 비어 있지 않은 문자열이어야 합니다.")
    rendered = alias
    for segment in name.split("."):
        if not segment:
            raise InvalidArgumentError(f"필드 경로에 빈 세그먼트가 있습니다: {name}")
        if is_identifier(segment):
            rendered += f".{segment}"
        else:
            rendered += f"[{json.dumps(segment)}]"
    return rendered


def asc(field: FieldRef) -> str:
    """오름차순 정렬 절을 반환한다."""

    return f"{field_path(field)} ASC"


def desc(field: FieldRef) -> str:
    """내림차순 정렬 절을 반환한다."""

    return f"{field_path(field)} DESC"


def order(*clauses: str) -> str:
    """정렬 절을 ORDER BY 구문으로 합친다. 절이 없으면 빈 문자열."""

    if not clauses:
        return ""
    for clause in clauses:
        if not isinstance(clause, str) or not _SORT_ITEM_RE.fullmatch(clause):
            raise InvalidArgumentError(
                f"asc()/desc()로 만든 정렬 절만 사용할 수 있습니다: {clause!r}"
            )
    return ORDER_BY_PREFIX + ", ".join(clauses)


def parse_order(text: str) -> Tuple[str, ...]:
    """`order()`가 만든 ORDER BY 구문을 정렬 절 목록으로 되돌린다.

    asc()/desc() 절만으로 이루어지지 않은 구문은 거부한다.
    """

    if not isinstance(text, str) or not _ORDER_BY_RE.fullmatch(text):
        raise InvalidArgumentError(f"허용되지 않는 ORDER BY 구문입니다: {text!r}")
    return tuple(_SORT_ITEM_RE.findall(text[len(ORDER_BY_PREFIX):]))


class QueryBuilder:
    """불변 쿼리 조건 조각.

    모든 결합자는 새 인스턴스를 반환하며, 비교/포함/패턴 결합자는 수신 빌더의
    절을 포함하지 않는 새 조각을 만든다. 조각 결합은 `and_`/`or_`를 쓴다.
    파라미터 이름은 세션이 발급하므로 같은 세션의 조각은 그대로 이어 붙인다.
    """

    __slots__ = ("_clause", "_params", "_session")

    def __init__(
        self,
        clause: str = "",
        params: Iterable[SqlParameter] = (),
        session: Optional[ParamSession] = None,
    ) -> None:
        self._clause = clause
        self._params: Tuple[SqlParameter, ...] = tuple(params)
        self._session = session or ParamSession()

    asc = staticmethod(asc)
    desc = staticmethod(desc)
    order = staticmethod(order)

    @property
    def clause(self) -> str:
        return self._clause

    @property
    def params(self) -> Tuple[SqlParameter, ...]:
        return self._params

    @property
    def session(self) -> ParamSession:
        return self._session

    def is_empty(self) -> bool:
        return not self._clause

    def eq(self, field: FieldRef, value: Any) -> "QueryBuilder":
        return self._compare(field, "=", value)

    def ne(self, field: FieldRef, value: Any) -> "QueryBuilder":
        return self._compare(field, "!=", value)

    def gt(self, field: FieldRef, value: Any) -> "QueryBuilder":
        return self._compare(field, ">", value)

    def gte(self, field: FieldRef, value: Any) -> "QueryBuilder":
        return self._compare(field, ">=", value)

    def lt(self, field: FieldRef, value: Any) -> "QueryBuilder":
        return self._compare(field, "<", value)

    def lte(self, field: FieldRef, value: Any) -> "QueryBuilder":
        return self._compare(field, "<=", value)

    def in_array(self, field: FieldRef, values: Sequence[Any]) -> "QueryBuilder":
        """값 목록 포함 조건. 빈 목록은 어떤 문서와도 일치하지 않는 상수 절이 된다."""

        if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple)):
            raise InvalidArgumentError("in_array 값은 리스트 또는 튜플이어야 합니다.")
        path = field_path(field)
        if not values:
            return self._derive(OdmConst.EMPTY_IN_CLAUSE, ())
        params = [self._bind(value) for value in values]
        placeholders = ", ".join(param.name for param in params)
        return self._derive(f"{path} IN ({placeholders})", params)

    def ieq(self, field: FieldRef, value: str) -> "QueryBuilder":
        """대소문자 무시 동등 조건."""

        param = self._bind(self._lowered(value))
        return self._derive(f"LOWER({field_path(field)}) = {param.name}", [param])

    def ilike(self, field: FieldRef, value: str) -> "QueryBuilder":
        """대소문자 무시 부분 문자열 포함 조건."""

        param = self._bind(self._lowered(value))
        return self._derive(f"CONTAINS(LOWER({field_path(field)}), {param.name})", [param])

    def array_contains(self, field: FieldRef, value: Any) -> "QueryBuilder":
        """배열 필드가 값을 포함하는지 검사한다."""

        param = self._bind(value)
        return self._derive(f"ARRAY_CONTAINS({field_path(field)}, {param.name})", [param])

    def is_defined(self, field: FieldRef) -> "QueryBuilder":
        return self._derive(f"IS_DEFINED({field_path(field)})", ())

    def and_(self, *fragments: "QueryBuilder") -> "QueryBuilder":
        return self._combine("AND", fragments)

    def or_(self, *fragments: "QueryBuilder") -> "QueryBuilder":
        return self._combine("OR", fragments)

    def not_(self, fragment: Optional["QueryBuilder"] = None) -> "QueryBuilder":
        """조각을 부정한다. 인자가 없으면 수신 빌더 자신을 부정한다."""

        target = self if fragment is None else fragment
        self._check_fragment(target)
        if target.is_empty():
            raise InvalidArgumentError("빈 조건은 부정할 수 없습니다.")
        clause, params = self._adopt(target, set())
        return self._derive(f"NOT ({clause})", params)

    def build(self) -> BuiltQuery:
        """절 텍스트와 파라미터 목록을 반환한다. 빌더 상태는 바뀌지 않는다."""

        return BuiltQuery(query=self._clause, params=list(self._params))

    def __repr__(self) -> str:
        names = ", ".join(param.name for param in self._params)
        return f"QueryBuilder(clause={self._clause!r}, params=[{names}])"

    def _compare(self, field: FieldRef, operator: str, value: Any) -> "QueryBuilder":
        path = field_path(field)
        param = self._bind(value)
        return self._derive(f"{path} {operator} {param.name}", [param])

    def _combine(self, operator: str, fragments: Sequence["QueryBuilder"]) -> "QueryBuilder":
        for fragment in fragments:
            self._check_fragment(fragment)
        parts = [self] if not self.is_empty() else []
        parts.extend(fragment for fragment in fragments if not fragment.is_empty())
        clauses: List[str] = []
        params: List[SqlParameter] = []
        used: Set[str] = set()
        for part in parts:
            clause, part_params = self._adopt(part, used)
            clauses.append(f"({clause})")
            params.extend(part_params)
            used.update(param.name for param in part_params)
        return self._derive(f" {operator} ".join(clauses), params)

    def _adopt(
        self, fragment: "QueryBuilder", used: Set[str]
    ) -> Tuple[str, List[SqlParameter]]:
        """이미 사용된 이름과 겹치는 파라미터를 새 이름으로 재바인딩한다."""

        own_names = {param.name for param in fragment.params}
        collisions = [param.name for param in fragment.params if param.name in used]
        if not collisions:
            return fragment.clause, list(fragment.params)
        renames: Dict[str, str] = {}
        taken = used | own_names
        for name in collisions:
            fresh = self._session.next_name()
            while fresh in taken:
                fresh = self._session.next_name()
            renames[name] = fresh
            taken.add(fresh)
        clause = _PLACEHOLDER_RE.sub(
            lambda match: renames.get(match.group(0), match.group(0)),
            fragment.clause,
        )
        params = [
            SqlParameter(name=renames.get(param.name, param.name), value=param.value)
            for param in fragment.params
        ]
        return clause, params

    def _bind(self, value: Any) -> SqlParameter:
        return SqlParameter(name=self._session.next_name(), value=value)

    def _derive(self, clause: str, params: Iterable[SqlParameter]) -> "QueryBuilder":
        return QueryBuilder(clause=clause, params=params, session=self._session)

    @staticmethod
    def _lowered(value: Any) -> str:
        if not isinstance(value, str):
            raise InvalidArgumentError("대소문자 무시 비교 값은 문자열이어야 합니다.")
        return value.lower()

    @staticmethod
    def _check_fragment(fragment: Any) -> None:
        if not isinstance(fragment, QueryBuilder):
            raise InvalidArgumentError("QueryBuilder 조각만 결합할 수 있습니다.")


def qb(session: Optional[ParamSession] = None) -> QueryBuilder:
    """빈 루트 빌더를 만든다."""

    return QueryBuilder(session=session)
