from pydantic import BaseModel
from typing import Optional
from .graph import GraphData
from .style import StyleDef


class Metadata(BaseModel):
    name: str
    version: Optional[str] = None
    description: Optional[str] = None


class NetworkConfig(BaseModel):
    metadata: Metadata
    graph_data: GraphData
    style_def: StyleDef = StyleDef()
