from __future__ import annotations

import logging
from collections.abc import Mapping

from google.cloud.firestore_v1.types import Document, Value

from docquery.core.config import settings
from docquery.schemas.query import (
    DOCUMENT_ID_FIELD,
    CursorState,
    Direction,
    FieldFilter,
    Operator,
    OrderClause,
    QueryState,
)
from docquery.services import translator
from docquery.services.errors import CursorFieldMissingError, DocumentNotFoundError, DocumentStoreError
from docquery.services.transport import FirestoreRpc, FirestoreTransport
from docquery.services.values import reference, to_value, value_kind

_LOG = logging.getLogger("docquery.query")


def _lookup_field(fields: Mapping[str, Value], field_path: str) -> Value | None:
    # Dotted paths always address nested map values, never a literal top-level key.
    current: Mapping[str, Value] | None = fields
    value: Value | None = None
    for part in field_path.split("."):
        if current is None or part not in current:
            return None
        value = current[part]
        current = value.map_value.fields if value_kind(value) == "map_value" else None
    return value


class DocumentQuery:
    """Fluent builder over a single document or collection query.

    Configuration calls mutate the builder and return it; the ``async``
    terminal calls read the accumulated state and issue one RPC each
    (``set_document`` issues two). A builder is not safe to configure from
    several tasks at once.
    """

    def __init__(self, client: FirestoreRpc | None = None, *, set_create_on: str | None = None):
        self.state = QueryState()
        self._transport = FirestoreTransport(client)
        self._set_create_on = set_create_on

    def init(self, project_id: str, token: str | None = None) -> "DocumentQuery":
        self.state.project_id = project_id
        self.state.token = token
        return self

    def collection(self, name: str) -> "DocumentQuery":
        self.state.collection = name
        return self

    def document(self, doc_id: str) -> "DocumentQuery":
        self.state.document = doc_id
        return self

    def where_field(self, field_path: str, operator: Operator | int | str, value: Value | object) -> "DocumentQuery":
        self.state.filters.append(FieldFilter(field=field_path, op=Operator.parse(operator), value=to_value(value)))
        return self

    def order_by(self, field_path: str, direction: Direction | int | str = Direction.ASCENDING) -> "DocumentQuery":
        self.state.order_by.append(OrderClause(field=field_path, direction=Direction.parse(direction)))
        return self

    def limit(self, limit: int) -> "DocumentQuery":
        self.state.limit = int(limit)
        return self

    def _cursor(self, document: Document, *, before: bool) -> CursorState:
        values: list[Value] = []
        for clause in self.state.ordering_with_tie_break():
            if clause.field == DOCUMENT_ID_FIELD:
                values.append(reference(document.name))
                continue
            value = _lookup_field(document.fields, clause.field)
            if value is None:
                raise CursorFieldMissingError(clause.field, document.name)
            values.append(value)
        self.state.tie_break = True
        return CursorState(values=values, before=before)

    def start_at(self, document: Document) -> "DocumentQuery":
        self.state.start_at = self._cursor(document, before=True)
        return self

    def start_after(self, document: Document) -> "DocumentQuery":
        self.state.start_at = self._cursor(document, before=False)
        return self

    def end_before(self, document: Document) -> "DocumentQuery":
        self.state.end_at = self._cursor(document, before=True)
        return self

    def end_at(self, document: Document) -> "DocumentQuery":
        self.state.end_at = self._cursor(document, before=False)
        return self

    def clear_cursors(self) -> "DocumentQuery":
        self.state.start_at = None
        self.state.end_at = None
        self.state.tie_break = False
        return self

    async def get_document(self) -> Document:
        request = translator.build_get_document_request(self.state)
        return await self._transport.get_document(request, token=self.state.token)

    async def get_documents(self) -> list[Document]:
        request = translator.build_run_query_request(self.state)
        return await self._transport.run_query(request, token=self.state.token)

    def _create_on(self) -> str:
        mode = str(self._set_create_on or "").strip().lower()
        return mode if mode in {"any_error", "not_found"} else settings.set_create_on

    async def _exists(self, document_id: str) -> bool:
        request = translator.build_get_document_request(self.state, document_id)
        try:
            await self._transport.get_document(request, token=self.state.token)
        except DocumentNotFoundError:
            return False
        except DocumentStoreError as exc:
            if self._create_on() == "not_found":
                raise
            _LOG.warning("Existence check for %s failed (%s); treating document as missing", request.name, exc)
            return False
        return True

    async def set_document(self, document_id: str, fields: Mapping[str, Value]) -> Document:
        # Check-then-write is not atomic: a concurrent create between the two calls is not detected.
        if await self._exists(document_id):
            request = translator.build_update_document_request(self.state, document_id, fields)
            return await self._transport.update_document(request, token=self.state.token)
        request = translator.build_create_document_request(self.state, document_id, fields)
        return await self._transport.create_document(request, token=self.state.token)

    async def add_document(self, fields: Mapping[str, Value]) -> Document:
        request = translator.build_create_document_request(self.state, "", fields)
        return await self._transport.create_document(request, token=self.state.token)

    async def delete(self) -> str:
        request = translator.build_delete_document_request(self.state)
        await self._transport.delete_document(request, token=self.state.token)
        return self.state.document


def db(client: FirestoreRpc | None = None) -> DocumentQuery:
    return DocumentQuery(client)
