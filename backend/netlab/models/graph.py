from pydantic import BaseModel
from typing import Any, Optional


class GraphNode(BaseModel):
    id: str
    name: Optional[str] = None
    properties: dict[str, Any] = {}


class GraphEdge(BaseModel):
    source: str
    target: str
    weight: Optional[float] = None
    properties: dict[str, Any] = {}


class GraphData(BaseModel):
    directed: bool = False
    nodes: list[GraphNode]
    edges: list[GraphEdge]
