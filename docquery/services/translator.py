from __future__ import annotations

from collections.abc import Mapping

from google.cloud.firestore_v1.types import (
    CreateDocumentRequest,
    Cursor,
    DeleteDocumentRequest,
    Document,
    GetDocumentRequest,
    RunQueryRequest,
    StructuredQuery,
    UpdateDocumentRequest,
    Value,
)

from docquery.core.config import settings
from docquery.schemas.query import CursorState, Direction, FieldFilter, Operator, OrderClause, QueryState
from docquery.services.errors import MalformedCursorError, QueryNotInitializedError

_WIRE_OPERATORS = {
    Operator.LESS_THAN: StructuredQuery.FieldFilter.Operator.LESS_THAN,
    Operator.LESS_THAN_OR_EQUAL: StructuredQuery.FieldFilter.Operator.LESS_THAN_OR_EQUAL,
    Operator.GREATER_THAN: StructuredQuery.FieldFilter.Operator.GREATER_THAN,
    Operator.GREATER_THAN_OR_EQUAL: StructuredQuery.FieldFilter.Operator.GREATER_THAN_OR_EQUAL,
    Operator.EQUAL: StructuredQuery.FieldFilter.Operator.EQUAL,
    Operator.NOT_EQUAL: StructuredQuery.FieldFilter.Operator.NOT_EQUAL,
    Operator.ARRAY_CONTAINS: StructuredQuery.FieldFilter.Operator.ARRAY_CONTAINS,
    Operator.IN: StructuredQuery.FieldFilter.Operator.IN,
    Operator.ARRAY_CONTAINS_ANY: StructuredQuery.FieldFilter.Operator.ARRAY_CONTAINS_ANY,
    Operator.NOT_IN: StructuredQuery.FieldFilter.Operator.NOT_IN,
}

_WIRE_DIRECTIONS = {
    Direction.ASCENDING: StructuredQuery.Direction.ASCENDING,
    Direction.DESCENDING: StructuredQuery.Direction.DESCENDING,
}


def _require_project(state: QueryState) -> str:
    project_id = str(state.project_id or "").strip()
    if not project_id:
        raise QueryNotInitializedError("init(project_id) must be called before a terminal operation")
    return project_id


def database_root(state: QueryState) -> str:
    database = str(settings.FIRESTORE_DATABASE or "").strip() or "(default)"
    return f"projects/{_require_project(state)}/databases/{database}"


def document_parent(state: QueryState) -> str:
    return f"{database_root(state)}/documents"


def document_name(state: QueryState, document_id: str | None = None) -> str:
    doc_id = state.document if document_id is None else document_id
    return f"{document_parent(state)}/{state.collection}/{doc_id}"


def _wire_filter(item: FieldFilter) -> StructuredQuery.Filter:
    return StructuredQuery.Filter(
        field_filter=StructuredQuery.FieldFilter(
            field=StructuredQuery.FieldReference(field_path=item.field),
            op=_WIRE_OPERATORS[item.op],
            value=item.value,
        )
    )


def _wire_order(clause: OrderClause) -> StructuredQuery.Order:
    return StructuredQuery.Order(
        field=StructuredQuery.FieldReference(field_path=clause.field),
        direction=_WIRE_DIRECTIONS[clause.direction],
    )


def _wire_cursor(cursor: CursorState, expected: int, label: str) -> Cursor:
    if len(cursor.values) != expected:
        raise MalformedCursorError(
            f"{label} cursor has {len(cursor.values)} values but the query orders by {expected} fields"
        )
    return Cursor(values=list(cursor.values), before=cursor.before)


def build_structured_query(state: QueryState) -> StructuredQuery:
    ordering = state.effective_order_by()
    query = StructuredQuery(
        from_=[StructuredQuery.CollectionSelector(collection_id=state.collection)],
        order_by=[_wire_order(clause) for clause in ordering],
    )
    if state.filters:
        query.where = StructuredQuery.Filter(
            composite_filter=StructuredQuery.CompositeFilter(
                op=StructuredQuery.CompositeFilter.Operator.AND,
                filters=[_wire_filter(item) for item in state.filters],
            )
        )
    if state.start_at is not None:
        query.start_at = _wire_cursor(state.start_at, len(ordering), "start")
    if state.end_at is not None:
        query.end_at = _wire_cursor(state.end_at, len(ordering), "end")
    if state.limit is not None:
        query.limit = int(state.limit)
    return query


def build_get_document_request(state: QueryState, document_id: str | None = None) -> GetDocumentRequest:
    return GetDocumentRequest(name=document_name(state, document_id))


def build_run_query_request(state: QueryState) -> RunQueryRequest:
    return RunQueryRequest(parent=document_parent(state), structured_query=build_structured_query(state))


def build_create_document_request(
    state: QueryState,
    document_id: str,
    fields: Mapping[str, Value],
) -> CreateDocumentRequest:
    return CreateDocumentRequest(
        parent=document_parent(state),
        collection_id=state.collection,
        document_id=document_id,
        document=Document(fields=dict(fields)),
    )


def build_update_document_request(
    state: QueryState,
    document_id: str,
    fields: Mapping[str, Value],
) -> UpdateDocumentRequest:
    # No update mask: the stored document is overwritten.
    return UpdateDocumentRequest(document=Document(name=document_name(state, document_id), fields=dict(fields)))


def build_delete_document_request(state: QueryState) -> DeleteDocumentRequest:
    return DeleteDocumentRequest(name=document_name(state))
