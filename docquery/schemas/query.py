from __future__ import annotations

import enum
from typing import List, Optional

from google.cloud.firestore_v1.types import Value
from pydantic import BaseModel, ConfigDict, Field

DOCUMENT_ID_FIELD = "__name__"


class Operator(enum.IntEnum):
    LESS_THAN = 1
    LESS_THAN_OR_EQUAL = 2
    GREATER_THAN = 3
    GREATER_THAN_OR_EQUAL = 4
    EQUAL = 5
    NOT_EQUAL = 6
    ARRAY_CONTAINS = 7
    IN = 8
    ARRAY_CONTAINS_ANY = 9
    NOT_IN = 10

    @classmethod
    def parse(cls, raw: "Operator | int | str") -> "Operator":
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, int) and not isinstance(raw, bool):
            return cls(raw)
        text = str(raw or "").strip()
        if text in _OPERATOR_ALIASES:
            return _OPERATOR_ALIASES[text]
        try:
            return cls[text.upper().replace("-", "_")]
        except KeyError:
            raise ValueError(f'unknown filter operator "{raw}"') from None


_OPERATOR_ALIASES = {
    "<": Operator.LESS_THAN,
    "<=": Operator.LESS_THAN_OR_EQUAL,
    ">": Operator.GREATER_THAN,
    ">=": Operator.GREATER_THAN_OR_EQUAL,
    "=": Operator.EQUAL,
    "==": Operator.EQUAL,
    "!=": Operator.NOT_EQUAL,
    "array-contains": Operator.ARRAY_CONTAINS,
    "in": Operator.IN,
    "array-contains-any": Operator.ARRAY_CONTAINS_ANY,
    "not-in": Operator.NOT_IN,
}


class Direction(enum.IntEnum):
    ASCENDING = 1
    DESCENDING = 2

    @classmethod
    def parse(cls, raw: "Direction | int | str") -> "Direction":
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, int) and not isinstance(raw, bool):
            return cls(raw)
        text = str(raw or "").strip().lower()
        if text in {"asc", "ascending"}:
            return cls.ASCENDING
        if text in {"desc", "descending"}:
            return cls.DESCENDING
        raise ValueError(f'unknown order direction "{raw}"')


class FieldFilter(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    field: str = Field(min_length=1)
    op: Operator
    value: Value


class OrderClause(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str = Field(min_length=1)
    direction: Direction = Direction.ASCENDING


class CursorState(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    values: List[Value]
    before: bool


TIE_BREAK_CLAUSE = OrderClause(field=DOCUMENT_ID_FIELD, direction=Direction.ASCENDING)


class QueryState(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    token: Optional[str] = None
    project_id: str = ""
    collection: str = ""
    document: str = ""
    filters: List[FieldFilter] = []
    order_by: List[OrderClause] = []
    tie_break: bool = False
    start_at: Optional[CursorState] = None
    end_at: Optional[CursorState] = None
    limit: Optional[int] = None

    def ordering_with_tie_break(self) -> List[OrderClause]:
        clauses = list(self.order_by)
        if not any(clause.field == DOCUMENT_ID_FIELD for clause in clauses):
            clauses.append(TIE_BREAK_CLAUSE)
        return clauses

    def effective_order_by(self) -> List[OrderClause]:
        if self.tie_break:
            return self.ordering_with_tie_break()
        return list(self.order_by)
