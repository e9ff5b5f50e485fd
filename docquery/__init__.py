from docquery.core.config import configure_logging, settings
from docquery.schemas.query import Direction, Operator
from docquery.services import values
from docquery.services.errors import (
    CursorFieldMissingError,
    DocumentNotFoundError,
    DocumentStoreError,
    MalformedCursorError,
    QueryNotInitializedError,
    RequestRejectedError,
    TransportError,
)
from docquery.services.query_builder import DocumentQuery, db

__all__ = [
    "CursorFieldMissingError",
    "Direction",
    "DocumentNotFoundError",
    "DocumentQuery",
    "DocumentStoreError",
    "MalformedCursorError",
    "Operator",
    "QueryNotInitializedError",
    "RequestRejectedError",
    "TransportError",
    "configure_logging",
    "db",
    "settings",
    "values",
]
