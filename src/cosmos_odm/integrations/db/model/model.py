"""
목적: 스키마 검증 기반 범용 CRUD 모델을 제공한다.
설명: 하나의 컬렉션 핸들에 대해 조회/생성/병합 갱신/삭제/카운트를 수행하고 결과를 엔벨로프로 정규화한다.
디자인 패턴: 리포지토리 패턴, 템플릿 메서드
참조: src/cosmos_odm/integrations/db/query_builder/query_builder.py, src/cosmos_odm/integrations/db/base/models.py
"""

from __future__ import annotations

import asyncio
import re
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from pydantic import BaseModel

from cosmos_odm.integrations.db.base.engine import BaseCollectionHandle, Document
from cosmos_odm.integrations.db.base.field_map import FieldMap
from cosmos_odm.integrations.db.base.models import (
    BatchMode,
    FieldDescriptor,
    ItemError,
    QuerySpec,
    ResultEnvelope,
    SqlParameter,
)
from cosmos_odm.integrations.db.base.schema import DocumentSchema, ValidationOutcome, ensure_schema
from cosmos_odm.integrations.db.query_builder import (
    QueryBuilder,
    field_path,
    is_identifier,
    order,
    parse_order,
)
from cosmos_odm.shared.const import OdmConst
from cosmos_odm.shared.exceptions import (
    BaseAppException,
    DocumentNotFoundError,
    ErrorCode,
    ExceptionDetail,
    InvalidArgumentError,
    PreconditionError,
    SchemaValidationError,
)
from cosmos_odm.shared.logging import LogContext, Logger, create_default_logger

TModel = TypeVar("TModel", bound=BaseModel)
T = TypeVar("T")

FieldSelector = Union[str, FieldDescriptor]
OrderBy = Union[str, Sequence[str], None]
Parameters = Union[Sequence[Union[SqlParameter, Mapping[str, Any]]], Mapping[str, Any], None]

_ALIAS_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_]")


class Model(Generic[TModel]):
    """컬렉션 단위 CRUD 모델.

    모든 연산은 코루틴이며 `ResultEnvelope`를 반환한다. 저장소/검증 오류는
    엔벨로프의 `error`로 전달되고, 전제 조건 위반(`Nothing To Update`,
    `Filter is required`)만 즉시 `PreconditionError`로 올라간다.

    Args:
        schema: pydantic 모델 클래스 또는 DocumentSchema.
        collection: 입출력 대상 컬렉션 핸들.
        logger: 주입 가능한 로거.
        batch_mode: 배치 부분 실패 처리 방식.
        default_limit: find 기본 조회 수.
        partition_key_field: 문서에서 파티션 키 값을 읽을 필드. 생략하면
            컬렉션의 파티션 키 경로에서 값을 읽는다.
    """

    def __init__(
        self,
        schema: Union[Type[TModel], DocumentSchema[TModel]],
        collection: BaseCollectionHandle,
        logger: Optional[Logger] = None,
        batch_mode: Union[BatchMode, str] = BatchMode.LENIENT,
        default_limit: int = OdmConst.DEFAULT_LIMIT,
        partition_key_field: Optional[str] = None,
    ) -> None:
        resolved = ensure_schema(schema)
        if resolved is None:
            raise InvalidArgumentError("Model에는 schema가 필요합니다.")
        if collection is None:
            raise InvalidArgumentError("Model에는 collection 핸들이 필요합니다.")
        if default_limit < 1:
            raise InvalidArgumentError("default_limit는 1 이상이어야 합니다.")
        self._schema: DocumentSchema[TModel] = resolved
        self._collection = collection
        self._logger = logger or create_default_logger("Model")
        self._batch_mode = BatchMode(batch_mode)
        self._default_limit = default_limit
        self._partition_key_field = partition_key_field
        self._partition_segments = tuple(
            segment for segment in collection.partition_key_path.split("/") if segment
        )
        self._field_map = FieldMap(resolved.model)

    @property
    def schema(self) -> DocumentSchema[TModel]:
        return self._schema

    @property
    def collection(self) -> BaseCollectionHandle:
        return self._collection

    @property
    def batch_mode(self) -> BatchMode:
        return self._batch_mode

    def fields(self) -> FieldMap:
        """스키마 필드 맵을 반환한다."""

        return self._field_map

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    async def find_by_id(self, item_id: str, partition_key: Any = None) -> ResultEnvelope:
        """id로 문서를 조회한다. 파티션 키를 생략하면 id를 사용한다."""

        context = self._context("find_by_id")
        try:
            document = await self._collection.read_item(
                item_id, item_id if partition_key is None else partition_key
            )
        except BaseAppException as exc:
            return self._failure(exc, context)
        return ResultEnvelope.ok(resource=document, count=0 if document is None else 1)

    async def find(
        self,
        filter: Optional[QueryBuilder] = None,
        fields: Optional[Sequence[FieldSelector]] = None,
        limit: Optional[int] = None,
        offset: int = OdmConst.DEFAULT_OFFSET,
        order_by: OrderBy = None,
    ) -> ResultEnvelope:
        """조건에 맞는 문서를 OFFSET/LIMIT 페이지 단위로 조회한다.

        일치하는 문서가 없어도 성공이며 `resources`는 빈 목록이다.
        """

        context = self._context("find")
        try:
            spec = self._select_spec(
                filter,
                fields,
                order_by,
                offset,
                self._default_limit if limit is None else limit,
            )
            resources = await self._collection.query_items(spec)
        except BaseAppException as exc:
            return self._failure(exc, context)
        return ResultEnvelope.ok(resources=list(resources), query_spec=spec)

    async def find_one(
        self,
        filter: Optional[QueryBuilder] = None,
        fields: Optional[Sequence[FieldSelector]] = None,
        order_by: OrderBy = None,
    ) -> ResultEnvelope:
        """첫 번째 일치 문서를 `resource`로 반환한다."""

        result = await self.find(filter=filter, fields=fields, limit=1, order_by=order_by)
        if not result.success:
            return result
        resources = result.resources or []
        return ResultEnvelope.ok(
            resource=resources[0] if resources else None,
            query_spec=result.query_spec,
        )

    async def count(
        self,
        filter: Optional[QueryBuilder] = None,
        field: Optional[FieldSelector] = None,
    ) -> ResultEnvelope:
        context = self._context("count")
        try:
            target = "1" if field is None else field_path(field)
            where, params = self._where(filter)
            spec = self._spec(f"SELECT VALUE COUNT({target}) FROM {OdmConst.COLLECTION_ALIAS}{where}", params)
            rows = await self._collection.query_items(spec)
        except BaseAppException as exc:
            return self._failure(exc, context)
        total = int(rows[0]) if rows else 0
        return ResultEnvelope.ok(count=total, query_spec=spec)

    async def find_by_query(self, query: str, parameters: Parameters = None) -> ResultEnvelope:
        """미리 만든 쿼리 텍스트와 파라미터로 조회한다."""

        context = self._context("find_by_query")
        try:
            if not isinstance(query, str) or not query.strip():
                raise InvalidArgumentError("query는 비어 있지 않은 문자열이어야 합니다.")
            spec = self._spec(query, self._normalize_parameters(parameters))
            resources = await self._collection.query_items(spec)
        except BaseAppException as exc:
            return self._failure(exc, context)
        return ResultEnvelope.ok(resources=list(resources), query_spec=spec)

    # ------------------------------------------------------------------
    # 쓰기
    # ------------------------------------------------------------------

    async def insert(self, doc: Any) -> ResultEnvelope:
        """문서를 검증한 뒤 생성한다. 검증 실패는 엔벨로프로 반환한다."""

        context = self._context("insert")
        outcome = self._schema.validate(doc)
        if not outcome.ok:
            return self._validation_failure(outcome, context)
        try:
            created = await self._collection.create_item(outcome.data)
        except BaseAppException as exc:
            return self._failure(exc, context)
        self._logger.info(f"문서 생성 완료: {created.get('id')}", context)
        return ResultEnvelope.ok(resource=created, items_updated=1)

    async def insert_many(
        self,
        docs: Sequence[Any],
        batch_mode: Union[BatchMode, str, None] = None,
    ) -> ResultEnvelope:
        """문서 배열을 한 번에 검증한 뒤 문서별로 병렬 생성한다.

        배열 검증이 실패하면 아무것도 쓰지 않고 `items_failed`는 전체 건수다.
        개별 생성 실패는 항목별로 집계되며 이미 생성된 문서는 되돌리지 않는다.
        """

        context = self._context("insert_many")
        docs = list(docs)
        if not docs:
            return ResultEnvelope.ok(resources=[], items_updated=0, items_failed=0)
        outcome = self._schema.validate_many(docs)
        if not outcome.ok:
            return self._validation_failure(
                outcome, context, items_updated=0, items_failed=len(docs)
            )
        created, errors = await self._run_batch(outcome.data, self._collection.create_item)
        return self._batch_result(created, errors, batch_mode, context)

    async def update_by_id(
        self,
        doc: Any,
        item_id: str,
        partition_key: Any = None,
    ) -> ResultEnvelope:
        """기존 문서에 최상위 필드를 병합하고 재검증한 뒤 저장한다."""

        patch = self._patch(doc)
        context = self._context("update_by_id")
        if "id" in patch and patch["id"] != item_id:
            return self._failure(
                InvalidArgumentError(
                    "Patch id does not match the target id.",
                    metadata={"target_id": item_id, "patch_id": patch["id"]},
                ),
                context,
            )
        try:
            existing = await self._collection.read_item(
                item_id, item_id if partition_key is None else partition_key
            )
            if existing is None:
                raise DocumentNotFoundError("Document not found", metadata={"id": item_id})
        except BaseAppException as exc:
            return self._failure(exc, context)
        outcome = self._schema.validate(self._merge(existing, patch))
        if not outcome.ok:
            return self._validation_failure(outcome, context)
        try:
            updated = await self._collection.upsert_item(outcome.data)
        except BaseAppException as exc:
            return self._failure(exc, context)
        self._logger.info(f"문서 갱신 완료: {item_id}", context)
        return ResultEnvelope.ok(resource=updated, items_updated=1)

    async def update(
        self,
        doc: Any,
        filter: Optional[QueryBuilder],
        batch_mode: Union[BatchMode, str, None] = None,
    ) -> ResultEnvelope:
        """조건에 맞는 모든 문서에 병합 갱신을 적용한다."""

        patch = self._patch(doc)
        self._require_filter(filter)
        context = self._context("update")
        try:
            matches = await self._collection.query_items(self._match_spec(filter))
            if not matches:
                raise DocumentNotFoundError("Documents not found")
        except BaseAppException as exc:
            return self._failure(exc, context)
        if "id" in patch and any(match.get("id") != patch["id"] for match in matches):
            return self._failure(
                InvalidArgumentError(
                    "Patch id does not match every matched document.",
                    metadata={"patch_id": patch["id"]},
                ),
                context,
            )
        outcome = self._schema.validate_many([self._merge(match, patch) for match in matches])
        if not outcome.ok:
            return self._validation_failure(
                outcome, context, items_updated=0, items_failed=len(matches)
            )
        updated, errors = await self._run_batch(outcome.data, self._collection.upsert_item)
        return self._batch_result(updated, errors, batch_mode, context)

    async def upsert_one(
        self,
        doc: Any,
        filter: Optional[QueryBuilder],
        batch_mode: Union[BatchMode, str, None] = None,
    ) -> ResultEnvelope:
        """일치 문서가 없으면 생성하고, 있으면 병합 갱신한다."""

        self._require_filter(filter)
        existing = await self.find_one(filter=filter)
        if not existing.success:
            return existing
        if existing.resource is None:
            return await self.insert(doc)
        result = await self.update(doc, filter, batch_mode=batch_mode)
        resources = result.resources or []
        return ResultEnvelope(
            success=result.success,
            error=result.error,
            resource=resources[0] if resources else None,
            items_updated=result.items_updated,
            items_failed=result.items_failed,
            item_errors=result.item_errors,
        )

    async def delete_by_id(self, item_id: str, partition_key: Any = None) -> ResultEnvelope:
        context = self._context("delete_by_id")
        try:
            await self._collection.delete_item(
                item_id, item_id if partition_key is None else partition_key
            )
        except BaseAppException as exc:
            return self._failure(exc, context, deleted=False)
        self._logger.info(f"문서 삭제 완료: {item_id}", context)
        return ResultEnvelope.ok(deleted=True)

    async def delete_by_filter(
        self,
        filter: Optional[QueryBuilder],
        batch_mode: Union[BatchMode, str, None] = None,
    ) -> ResultEnvelope:
        """조건에 맞는 문서를 문서별로 병렬 삭제한다. 일치 문서가 없으면 실패다."""

        self._require_filter(filter)
        context = self._context("delete_by_filter")
        try:
            matches = await self._collection.query_items(self._match_spec(filter))
            if not matches:
                raise DocumentNotFoundError("Documents not found")
        except BaseAppException as exc:
            return self._failure(exc, context, deleted=False)

        async def remove(document: Document) -> Document:
            await self._collection.delete_item(document["id"], self._partition_key_of(document))
            return document

        removed, errors = await self._run_batch(matches, remove)
        result = self._batch_result(removed, errors, batch_mode, context, include_resources=False)
        result.deleted = bool(removed)
        return result

    # ------------------------------------------------------------------
    # 내부 도우미
    # ------------------------------------------------------------------

    def _select_spec(
        self,
        filter: Optional[QueryBuilder],
        fields: Optional[Sequence[FieldSelector]],
        order_by: OrderBy,
        offset: int,
        limit: int,
    ) -> QuerySpec:
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
            raise InvalidArgumentError("limit는 1 이상의 정수여야 합니다.", metadata={"limit": limit})
        if not isinstance(offset, int) or isinstance(offset, bool) or offset < 0:
            raise InvalidArgumentError("offset은 0 이상의 정수여야 합니다.", metadata={"offset": offset})
        where, params = self._where(filter)
        sort = self._order_clause(order_by)
        query = f"SELECT {self._projection(fields)} FROM {OdmConst.COLLECTION_ALIAS}{where}"
        if sort:
            query += f" {sort}"
        query += f" OFFSET {offset} LIMIT {limit}"
        return self._spec(query, params)

    def _match_spec(self, filter: QueryBuilder) -> QuerySpec:
        where, params = self._where(filter)
        return self._spec(f"SELECT * FROM {OdmConst.COLLECTION_ALIAS}{where}", params)

    @staticmethod
    def _spec(query: str, params: Sequence[SqlParameter]) -> QuerySpec:
        return QuerySpec(query=query, parameters=list(params) or None)

    @staticmethod
    def _where(filter: Optional[QueryBuilder]) -> Tuple[str, List[SqlParameter]]:
        if filter is None:
            return "", []
        if not isinstance(filter, QueryBuilder):
            raise InvalidArgumentError("filter는 QueryBuilder여야 합니다.")
        built = filter.build()
        if not built.query:
            return "", []
        return f" WHERE {built.query}", list(built.params)

    @staticmethod
    def _projection(fields: Optional[Sequence[FieldSelector]]) -> str:
        if not fields:
            return "*"
        if isinstance(fields, (str, FieldDescriptor)):
            fields = [fields]
        columns = []
        aliases: Dict[str, str] = {}
        for selector in fields:
            name = selector.name if isinstance(selector, FieldDescriptor) else selector
            path = field_path(selector)
            alias = _ALIAS_UNSAFE_RE.sub("_", str(name).replace(".", "_"))
            if not is_identifier(alias):
                alias = f"_{alias}"
            if alias in aliases:
                raise InvalidArgumentError(
                    f"투영 별칭이 중복됩니다: {alias}",
                    metadata={"fields": [aliases[alias], str(name)]},
                )
            aliases[alias] = str(name)
            columns.append(f"{path} AS {alias}")
        return ", ".join(columns)

    @staticmethod
    def _order_clause(order_by: OrderBy) -> str:
        if not order_by:
            return ""
        if isinstance(order_by, str):
            if order_by.startswith("ORDER BY"):
                return order(*parse_order(order_by))
            return order(order_by)
        return order(*order_by)

    @staticmethod
    def _normalize_parameters(parameters: Parameters) -> List[SqlParameter]:
        if not parameters:
            return []
        if isinstance(parameters, Mapping):
            return [SqlParameter(name=name, value=value) for name, value in parameters.items()]
        normalized = []
        for parameter in parameters:
            if isinstance(parameter, SqlParameter):
                normalized.append(parameter)
            elif isinstance(parameter, Mapping) and "name" in parameter:
                normalized.append(SqlParameter(name=parameter["name"], value=parameter.get("value")))
            else:
                raise InvalidArgumentError(
                    "parameters 항목은 {'name', 'value'} 형태여야 합니다.",
                    metadata={"parameter": repr(parameter)},
                )
        return normalized

    def _patch(self, doc: Any) -> Dict[str, Any]:
        patch = self._schema.to_patch(doc) if doc is not None else {}
        if not patch:
            raise PreconditionError("Nothing To Update")
        return patch

    @staticmethod
    def _require_filter(filter: Optional[QueryBuilder]) -> None:
        if filter is None or (isinstance(filter, QueryBuilder) and filter.is_empty()):
            raise PreconditionError("Filter is required")

    @staticmethod
    def _merge(existing: Document, patch: Mapping[str, Any]) -> Document:
        # 최상위 키만 덮어쓴다. 중첩 객체는 통째로 교체된다.
        return {**existing, **patch}

    def _partition_key_of(self, document: Document) -> Any:
        """문서의 파티션 키 값. 지정 필드가 우선이고, 없으면 컬렉션 경로를 따른다."""

        if self._partition_key_field:
            value = document.get(self._partition_key_field)
            if value is not None:
                return value
        current: Any = document
        for segment in self._partition_segments:
            if not isinstance(current, dict) or segment not in current:
                return None
            current = current[segment]
        return current

    async def _run_batch(
        self,
        items: Sequence[Document],
        action: Callable[[Document], Awaitable[T]],
    ) -> Tuple[List[T], List[ItemError]]:
        async def attempt(item: Document) -> Tuple[Optional[T], Optional[ItemError]]:
            try:
                return await action(item), None
            except BaseAppException as exc:
                item_id = item.get(OdmConst.ID_FIELD)
                return None, ItemError(
                    item_id=None if item_id is None else str(item_id),
                    error=exc.detail,
                )

        outcomes = await asyncio.gather(*(attempt(item) for item in items))
        succeeded = [value for value, error in outcomes if error is None]
        failed = [error for _, error in outcomes if error is not None]
        return succeeded, failed

    def _batch_result(
        self,
        succeeded: List[Any],
        errors: List[ItemError],
        batch_mode: Union[BatchMode, str, None],
        context: LogContext,
        include_resources: bool = True,
    ) -> ResultEnvelope:
        mode = self._batch_mode if batch_mode is None else BatchMode(batch_mode)
        total = len(succeeded) + len(errors)
        fields: Dict[str, Any] = {
            "items_updated": len(succeeded),
            "items_failed": len(errors),
            "item_errors": errors or None,
        }
        if include_resources:
            fields["resources"] = succeeded
        self._logger.info(
            f"배치 처리 결과: 성공 {len(succeeded)}건, 실패 {len(errors)}건",
            context,
            metadata={"batch_mode": mode.value},
        )
        if errors and mode is BatchMode.STRICT:
            detail = ExceptionDetail(
                code=ErrorCode.BATCH_PARTIAL_FAILURE,
                cause=f"{len(errors)} of {total} items failed",
                metadata={"failed_ids": [error.item_id for error in errors]},
            )
            return ResultEnvelope.fail(detail, **fields)
        return ResultEnvelope.ok(**fields)

    def _validation_failure(
        self,
        outcome: ValidationOutcome,
        context: LogContext,
        **fields: Any,
    ) -> ResultEnvelope:
        error = SchemaValidationError(
            f"Schema validation failed: {outcome.summary()}",
            metadata={"errors": outcome.errors},
        )
        return self._failure(error, context, **fields)

    def _failure(
        self,
        exc: BaseAppException,
        context: LogContext,
        **fields: Any,
    ) -> ResultEnvelope:
        self._logger.error(f"{context.operation} 실패: {exc.message}", context)
        return ResultEnvelope.fail(exc.detail, **fields)

    def _context(self, operation: str) -> LogContext:
        return LogContext(collection=self._collection.id, operation=operation)
