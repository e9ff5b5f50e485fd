from __future__ import annotations


class DocumentStoreError(Exception):
    pass


class QueryNotInitializedError(DocumentStoreError):
    pass


class CursorFieldMissingError(DocumentStoreError):
    def __init__(self, field_path: str, document_name: str):
        super().__init__(f'cursor field missing from reference document: "{field_path}" ({document_name or "-"})')
        self.field_path = field_path
        self.document_name = document_name


class MalformedCursorError(DocumentStoreError):
    pass


class DocumentNotFoundError(DocumentStoreError):
    pass


class RequestRejectedError(DocumentStoreError):
    pass


class TransportError(DocumentStoreError):
    pass
