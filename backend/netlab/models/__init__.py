from .graph import GraphNode, GraphEdge, GraphData
from .style import StyleDef
from .network import Metadata, NetworkConfig
from .api import (
    NetworkSummary, MeasureResponse, CommunityRequest, CommunityResponse, CoreResponse,
    StyleRequest, PathResponse, NeighborhoodResponse, AssortativityResponse,
)
from .tables import TableData, MergeRequest, ReshapeRequest, NodeAttributeRequest
