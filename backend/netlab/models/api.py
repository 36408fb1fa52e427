from pydantic import BaseModel
from typing import Any, Literal, Optional


class NetworkSummary(BaseModel):
    node_count: int
    edge_count: int
    directed: bool
    weighted: bool
    density: float
    reciprocity: float
    transitivity: float
    component_count: int
    largest_component_size: int
    mean_distance: Optional[float] = None
    diameter: int


class MeasureResponse(BaseModel):
    status: str
    measure: str
    values: dict[str, float] = {}
    top: list[dict[str, Any]] = []


class CommunityRequest(BaseModel):
    algorithm: Literal[
        "louvain", "label_propagation", "fast_greedy", "edge_betweenness", "connected_components"
    ] = "louvain"
    seed: Optional[int] = None
    resolution: float = 1.0


class CommunityResponse(BaseModel):
    algorithm: str
    membership: dict[str, int]
    sizes: list[int]
    modularity: Optional[float] = None


class CoreResponse(BaseModel):
    k: int
    coreness: dict[str, int]
    core_nodes: list[str]


class StyleRequest(BaseModel):
    size_by: Optional[str] = None
    color_by: Optional[str] = None
    width_by: Optional[str] = "weight"
    min_size: float = 5.0
    max_size: float = 25.0
    width_factor: float = 1.0


class PathResponse(BaseModel):
    source: str
    target: str
    path: list[str]
    length: int


class NeighborhoodResponse(BaseModel):
    node_id: str
    order: int
    neighbors: list[str]


class AssortativityResponse(BaseModel):
    attribute: Optional[str] = None
    coefficient: Optional[float] = None
