from pydantic import BaseModel
from typing import Any, Literal, Optional


class TableData(BaseModel):
    columns: list[str] = []
    records: list[dict[str, Any]] = []


class MergeRequest(BaseModel):
    left: list[dict[str, Any]]
    right: list[dict[str, Any]]
    on: str
    how: Literal["inner", "left", "right", "outer"] = "inner"


class ReshapeRequest(BaseModel):
    records: list[dict[str, Any]]
    direction: Literal["long", "wide"]
    id_columns: list[str]
    value_columns: Optional[list[str]] = None
    var_name: str = "variable"
    value_name: str = "value"
    # Only used for direction="wide"
    columns: Optional[str] = None
    values: Optional[str] = None


class NodeAttributeRequest(BaseModel):
    records: list[dict[str, Any]]
    key: str = "id"
