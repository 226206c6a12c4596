"""
목적: 인메모리 저장소용 쿼리 실행기를 제공한다.
설명: ODM이 생성하는 SQL 방언(SELECT/WHERE/ORDER BY/OFFSET LIMIT, 이름 파라미터)을 파싱해 문서 목록에 적용한다.
디자인 패턴: 인터프리터 패턴
참조: src/cosmos_odm/integrations/db/engines/memory/engine.py, src/cosmos_odm/integrations/db/query_builder/query_builder.py
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from cosmos_odm.shared.exceptions import StoreOperationError


class _Undefined:
    """존재하지 않는 속성 값을 나타내는 센티널."""

    _instance: Optional["_Undefined"] = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"


UNDEFINED = _Undefined()

Params = Mapping[str, Any]
Evaluator = Callable[[Any, Params], Any]

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<number>\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)
    |(?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
    |(?P<param>@[A-Za-z_][A-Za-z0-9_]*)
    |(?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    |(?P<op><=|>=|!=|<>|=|<|>)
    |(?P<punct>[(),.\[\]*])
    """,
    re.VERBOSE,
)

_KEYWORDS = frozenset(
    {
        "select", "value", "from", "where", "order", "by", "asc", "desc", "offset",
        "limit", "and", "or", "not", "in", "as", "true", "false", "null", "count",
    }
)


def query_error(message: str) -> StoreOperationError:
    return StoreOperationError(message, metadata={"status_code": 400})


@dataclass(frozen=True)
class Token:
    kind: str
    value: str


@dataclass
class SelectStatement:
    """파싱된 SELECT 문."""

    alias: str
    value: bool = False
    star: bool = False
    count: Optional[Evaluator] = None
    projections: List[Tuple[Evaluator, str]] = field(default_factory=list)
    where: Optional[Evaluator] = None
    order_by: List[Tuple[Evaluator, bool]] = field(default_factory=list)
    offset: Optional[int] = None
    limit: Optional[int] = None


def tokenize(text: str) -> List[Token]:
    tokens: List[Token] = []
    position = 0
    while position < len(text):
        match = _TOKEN_RE.match(text, position)
        if match is None:
            raise query_error(f"쿼리 구문 오류: 위치 {position} 근처 '{text[position:position + 10]}'")
        position = match.end()
        kind = match.lastgroup or ""
        if kind == "ws":
            continue
        value = match.group(kind)
        if kind == "ident" and value.lower() in _KEYWORDS:
            tokens.append(Token("keyword", value.lower()))
            continue
        tokens.append(Token(kind, value))
    return tokens


class _Parser:
    """재귀 하강 파서. 식은 (문서, 파라미터) -> 값 클로저로 컴파일된다."""

    def __init__(self, text: str) -> None:
        self._tokens = tokenize(text)
        self._position = 0
        self._alias = ""

    def parse(self) -> SelectStatement:
        self._expect_keyword("select")
        value = self._accept_keyword("value")
        projection = self._parse_projection()
        self._expect_keyword("from")
        self._alias = self._expect("ident").value
        statement = SelectStatement(alias=self._alias, value=value)
        # 별칭은 FROM 이후에 확정되므로 투영은 지연 컴파일한다.
        projection(statement)
        if self._accept_keyword("where"):
            statement.where = self._parse_or()
        if self._accept_keyword("order"):
            self._expect_keyword("by")
            statement.order_by = self._parse_sort_list()
        if self._accept_keyword("offset"):
            statement.offset = self._parse_int()
            self._expect_keyword("limit")
            statement.limit = self._parse_int()
        if self._peek() is not None:
            raise query_error(f"예상하지 못한 토큰: {self._peek().value}")
        return statement

    def _parse_projection(self) -> Callable[[SelectStatement], None]:
        if self._accept("punct", "*"):
            def apply_star(statement: SelectStatement) -> None:
                statement.star = True

            return apply_star
        if self._accept_keyword("count"):
            self._expect("punct", "(")
            start = self._position
            self._skip_balanced()
            count_tokens = self._tokens[start:self._position]
            self._expect("punct", ")")

            def apply_count(statement: SelectStatement) -> None:
                statement.count = self._compile_fragment(count_tokens)

            return apply_count
        items: List[Tuple[List[Token], Optional[str]]] = []
        while True:
            start = self._position
            self._skip_expression()
            expression_tokens = self._tokens[start:self._position]
            alias = self._expect("ident", keyword_ok=True).value if self._accept_keyword("as") else None
            items.append((expression_tokens, alias))
            if not self._accept("punct", ","):
                break

        def apply_items(statement: SelectStatement) -> None:
            for index, (expression_tokens, alias) in enumerate(items, start=1):
                name = alias or self._default_name(expression_tokens, index)
                statement.projections.append((self._compile_fragment(expression_tokens), name))

        return apply_items

    def _compile_fragment(self, tokens: List[Token]) -> Evaluator:
        parser = _Parser.__new__(_Parser)
        parser._tokens = tokens
        parser._position = 0
        parser._alias = self._alias
        evaluator = parser._parse_or()
        if parser._peek() is not None:
            raise query_error(f"예상하지 못한 토큰: {parser._peek().value}")
        return evaluator

    def _default_name(self, tokens: List[Token], index: int) -> str:
        last = tokens[-1] if tokens else None
        if last is not None and last.kind == "ident" and len(tokens) > 1:
            return last.value
        if last is not None and last.kind == "punct" and last.value == "]" and len(tokens) >= 2:
            literal = tokens[-2]
            if literal.kind == "string":
                return str(_string_literal(literal.value))
        return f"${index}"

    def _skip_balanced(self) -> None:
        depth = 0
        while True:
            token = self._peek()
            if token is None:
                raise query_error("괄호가 닫히지 않았습니다.")
            if token.kind == "punct" and token.value in "([":
                depth += 1
            elif token.kind == "punct" and token.value in ")]":
                if depth == 0:
                    return
                depth -= 1
            self._position += 1

    def _skip_expression(self) -> None:
        depth = 0
        while True:
            token = self._peek()
            if token is None:
                return
            if depth == 0 and (
                (token.kind == "punct" and token.value == ",")
                or (token.kind == "keyword" and token.value in {"as", "from"})
            ):
                return
            if token.kind == "punct" and token.value in "([":
                depth += 1
            elif token.kind == "punct" and token.value in ")]":
                depth -= 1
            self._position += 1

    def _parse_sort_list(self) -> List[Tuple[Evaluator, bool]]:
        items: List[Tuple[Evaluator, bool]] = []
        while True:
            expression = self._parse_primary()
            descending = False
            if self._accept_keyword("desc"):
                descending = True
            else:
                self._accept_keyword("asc")
            items.append((expression, descending))
            if not self._accept("punct", ","):
                return items

    def _parse_int(self) -> int:
        token = self._expect("number")
        if not token.value.isdigit():
            raise query_error(f"정수가 필요합니다: {token.value}")
        return int(token.value)

    def _parse_or(self) -> Evaluator:
        left = self._parse_and()
        while self._accept_keyword("or"):
            right = self._parse_and()
            left = _logical_or(left, right)
        return left

    def _parse_and(self) -> Evaluator:
        left = self._parse_not()
        while self._accept_keyword("and"):
            right = self._parse_not()
            left = _logical_and(left, right)
        return left

    def _parse_not(self) -> Evaluator:
        if self._accept_keyword("not"):
            operand = self._parse_not()

            def negate(doc: Any, params: Params) -> Any:
                value = operand(doc, params)
                return (not value) if isinstance(value, bool) else UNDEFINED

            return negate
        return self._parse_comparison()

    def _parse_comparison(self) -> Evaluator:
        left = self._parse_primary()
        token = self._peek()
        if token is not None and token.kind == "op":
            self._position += 1
            right = self._parse_primary()
            return _comparison(token.value, left, right)
        negated = False
        if token is not None and token.kind == "keyword" and token.value == "not":
            following = self._peek(1)
            if following is not None and following.kind == "keyword" and following.value == "in":
                self._position += 1
                negated = True
        if self._accept_keyword("in"):
            self._expect("punct", "(")
            options = [self._parse_primary()]
            while self._accept("punct", ","):
                options.append(self._parse_primary())
            self._expect("punct", ")")
            return _membership(left, options, negated)
        return left

    def _parse_primary(self) -> Evaluator:
        token = self._peek()
        if token is None:
            raise query_error("식이 필요합니다.")
        if token.kind == "punct" and token.value == "(":
            self._position += 1
            inner = self._parse_or()
            self._expect("punct", ")")
            return inner
        if token.kind == "param":
            self._position += 1
            return _parameter(token.value)
        if token.kind == "number":
            self._position += 1
            number = float(token.value) if any(ch in token.value for ch in ".eE") else int(token.value)
            return lambda doc, params: number
        if token.kind == "string":
            self._position += 1
            literal = _string_literal(token.value)
            return lambda doc, params: literal
        if token.kind == "keyword" and token.value in {"true", "false", "null"}:
            self._position += 1
            constant = {"true": True, "false": False, "null": None}[token.value]
            return lambda doc, params: constant
        if token.kind == "ident":
            following = self._peek(1)
            if following is not None and following.kind == "punct" and following.value == "(":
                return self._parse_function()
            return self._parse_path()
        raise query_error(f"예상하지 못한 토큰: {token.value}")

    def _parse_function(self) -> Evaluator:
        name = self._expect("ident").value.upper()
        self._expect("punct", "(")
        args: List[Evaluator] = []
        if not self._accept("punct", ")"):
            args.append(self._parse_or())
            while self._accept("punct", ","):
                args.append(self._parse_or())
            self._expect("punct", ")")
        factory = _FUNCTIONS.get(name)
        if factory is None:
            raise query_error(f"지원하지 않는 함수입니다: {name}")
        return factory(args)

    def _parse_path(self) -> Evaluator:
        root = self._expect("ident").value
        if root != self._alias:
            raise query_error(f"알 수 없는 식별자입니다: {root}")
        segments: List[Any] = []
        while True:
            if self._accept("punct", "."):
                segments.append(self._expect("ident", keyword_ok=True).value)
                continue
            if self._accept("punct", "["):
                token = self._peek()
                if token is not None and token.kind == "string":
                    self._position += 1
                    segments.append(_string_literal(token.value))
                else:
                    segments.append(self._parse_int())
                self._expect("punct", "]")
                continue
            break
        return _path(tuple(segments))

    def _peek(self, offset: int = 0) -> Optional[Token]:
        index = self._position + offset
        return self._tokens[index] if index < len(self._tokens) else None

    def _accept(self, kind: str, value: Optional[str] = None) -> bool:
        token = self._peek()
        if token is None or token.kind != kind or (value is not None and token.value != value):
            return False
        self._position += 1
        return True

    def _accept_keyword(self, value: str) -> bool:
        return self._accept("keyword", value)

    def _expect(self, kind: str, value: Optional[str] = None, keyword_ok: bool = False) -> Token:
        token = self._peek()
        if token is not None and keyword_ok and token.kind == "keyword":
            self._position += 1
            return token
        if token is None or token.kind != kind or (value is not None and token.value != value):
            found = token.value if token else "<끝>"
            raise query_error(f"'{value or kind}'가 필요하지만 '{found}'를 만났습니다.")
        self._position += 1
        return token

    def _expect_keyword(self, value: str) -> None:
        self._expect("keyword", value)


def _string_literal(raw: str) -> str:
    if raw.startswith('"'):
        return json.loads(raw)
    return raw[1:-1].replace("\\'", "'").replace("\\\\", "\\")


def _parameter(name: str) -> Evaluator:
    def resolve(doc: Any, params: Params) -> Any:
        if name not in params:
            raise query_error(f"바인딩되지 않은 파라미터입니다: {name}")
        return params[name]

    return resolve


def _path(segments: Tuple[Any, ...]) -> Evaluator:
    def resolve(doc: Any, params: Params) -> Any:
        current = doc
        for segment in segments:
            if isinstance(segment, int):
                if isinstance(current, list) and 0 <= segment < len(current):
                    current = current[segment]
                    continue
                return UNDEFINED
            if isinstance(current, dict) and segment in current:
                current = current[segment]
                continue
            return UNDEFINED
        return current

    return resolve


def _kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "other"


def _equals(left: Any, right: Any) -> Any:
    if left is UNDEFINED or right is UNDEFINED:
        return UNDEFINED
    if _kind(left) != _kind(right):
        return False
    return left == right


def _comparison(operator: str, left_eval: Evaluator, right_eval: Evaluator) -> Evaluator:
    def compare(doc: Any, params: Params) -> Any:
        left = left_eval(doc, params)
        right = right_eval(doc, params)
        if operator == "=":
            return _equals(left, right)
        if operator in {"!=", "<>"}:
            result = _equals(left, right)
            return (not result) if isinstance(result, bool) else UNDEFINED
        if left is UNDEFINED or right is UNDEFINED:
            return UNDEFINED
        kind = _kind(left)
        if kind != _kind(right) or kind not in {"number", "string"}:
            return UNDEFINED
        if operator == "<":
            return left < right
        if operator == "<=":
            return left <= right
        if operator == ">":
            return left > right
        return left >= right

    return compare


def _membership(left_eval: Evaluator, options: Sequence[Evaluator], negated: bool) -> Evaluator:
    def contains(doc: Any, params: Params) -> Any:
        left = left_eval(doc, params)
        if left is UNDEFINED:
            return UNDEFINED
        found = any(_equals(left, option(doc, params)) is True for option in options)
        return not found if negated else found

    return contains


def _logical_and(left_eval: Evaluator, right_eval: Evaluator) -> Evaluator:
    def conjunction(doc: Any, params: Params) -> Any:
        left = left_eval(doc, params)
        if left is False:
            return False
        right = right_eval(doc, params)
        if right is False:
            return False
        if left is True and right is True:
            return True
        return UNDEFINED

    return conjunction


def _logical_or(left_eval: Evaluator, right_eval: Evaluator) -> Evaluator:
    def disjunction(doc: Any, params: Params) -> Any:
        left = left_eval(doc, params)
        if left is True:
            return True
        right = right_eval(doc, params)
        if right is True:
            return True
        if left is False and right is False:
            return False
        return UNDEFINED

    return disjunction


def _require_args(name: str, args: List[Evaluator], minimum: int, maximum: int) -> None:
    if not minimum <= len(args) <= maximum:
        raise query_error(f"{name} 인자 수가 올바르지 않습니다: {len(args)}")


def _fn_lower(args: List[Evaluator]) -> Evaluator:
    _require_args("LOWER", args, 1, 1)

    def lower(doc: Any, params: Params) -> Any:
        value = args[0](doc, params)
        return value.lower() if isinstance(value, str) else UNDEFINED

    return lower


def _fn_upper(args: List[Evaluator]) -> Evaluator:
    _require_args("UPPER", args, 1, 1)

    def upper(doc: Any, params: Params) -> Any:
        value = args[0](doc, params)
        return value.upper() if isinstance(value, str) else UNDEFINED

    return upper


def _fn_contains(args: List[Evaluator]) -> Evaluator:
    _require_args("CONTAINS", args, 2, 3)

    def contains(doc: Any, params: Params) -> Any:
        haystack = args[0](doc, params)
        needle = args[1](doc, params)
        if not isinstance(haystack, str) or not isinstance(needle, str):
            return UNDEFINED
        if len(args) == 3 and args[2](doc, params) is True:
            return needle.lower() in haystack.lower()
        return needle in haystack

    return contains


def _fn_array_contains(args: List[Evaluator]) -> Evaluator:
    _require_args("ARRAY_CONTAINS", args, 2, 3)

    def array_contains(doc: Any, params: Params) -> Any:
        array = args[0](doc, params)
        target = args[1](doc, params)
        if not isinstance(array, list):
            return UNDEFINED
        partial = len(args) == 3 and args[2](doc, params) is True
        for item in array:
            if partial and isinstance(item, dict) and isinstance(target, dict):
                if all(_equals(item.get(key, UNDEFINED), value) is True for key, value in target.items()):
                    return True
            elif _equals(item, target) is True:
                return True
        return False

    return array_contains


def _fn_is_defined(args: List[Evaluator]) -> Evaluator:
    _require_args("IS_DEFINED", args, 1, 1)
    return lambda doc, params: args[0](doc, params) is not UNDEFINED


_FUNCTIONS: Dict[str, Callable[[List[Evaluator]], Evaluator]] = {
    "LOWER": _fn_lower,
    "UPPER": _fn_upper,
    "CONTAINS": _fn_contains,
    "ARRAY_CONTAINS": _fn_array_contains,
    "IS_DEFINED": _fn_is_defined,
}

_KIND_RANK = {"undefined": 0, "null": 1, "bool": 2, "number": 3, "string": 4, "array": 5, "object": 6, "other": 7}


def _sort_key(value: Any) -> Tuple[int, Any]:
    if value is UNDEFINED:
        return (_KIND_RANK["undefined"], 0)
    kind = _kind(value)
    if kind in {"bool", "number", "string"}:
        return (_KIND_RANK[kind], value)
    if kind == "null":
        return (_KIND_RANK[kind], 0)
    return (_KIND_RANK[kind], json.dumps(value, sort_keys=True, default=str))


@lru_cache(maxsize=256)
def parse_query(text: str) -> SelectStatement:
    """쿼리 텍스트를 파싱한다. 같은 텍스트는 캐시된 결과를 재사용한다."""

    return _Parser(text).parse()


def execute_query(
    text: str,
    documents: Sequence[Dict[str, Any]],
    parameters: Optional[Sequence[Mapping[str, Any]]] = None,
) -> List[Any]:
    """문서 목록에 쿼리를 적용한 결과를 반환한다."""

    statement = parse_query(text)
    params: Dict[str, Any] = {}
    for parameter in parameters or ():
        params[parameter["name"]] = parameter.get("value")
    matched = [
        doc
        for doc in documents
        if statement.where is None or statement.where(doc, params) is True
    ]
    if statement.count is not None:
        total = sum(1 for doc in matched if statement.count(doc, params) is not UNDEFINED)
        return [total] if statement.value else [{"$1": total}]
    for expression, descending in reversed(statement.order_by):
        matched.sort(key=lambda doc: _sort_key(expression(doc, params)), reverse=descending)
    if statement.offset is not None:
        matched = matched[statement.offset:statement.offset + (statement.limit or 0)]
    return [_project(statement, doc, params) for doc in matched]


def _project(statement: SelectStatement, doc: Dict[str, Any], params: Params) -> Any:
    if statement.star:
        return json.loads(json.dumps(doc))
    if statement.value:
        expression, _ = statement.projections[0]
        value = expression(doc, params)
        return None if value is UNDEFINED else value
    projected: Dict[str, Any] = {}
    for expression, name in statement.projections:
        value = expression(doc, params)
        if value is not UNDEFINED:
            projected[name] = value
    return projected
