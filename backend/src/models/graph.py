"""Knowledge graph data models."""

from typing import List, Optional
from pydantic import BaseModel, Field

class GraphNode(BaseModel):
    """Represents a single saved item in the graph."""
    id: str = Field(..., description="Item id")
    label: str = Field(..., description="Display title of the item")
    val: int = Field(default=1, description="Weight/Size of the node (degree + 1)")
    group: str = Field(..., description="Grouping category (first tag)")

class GraphLink(BaseModel):
    """Represents an undirected connection between two items."""
    source: str = Field(..., description="ID of one endpoint")
    target: str = Field(..., description="ID of the other endpoint")
    reason: Optional[str] = Field(None, description="Why the items are connected")

class GraphData(BaseModel):
    """The top-level payload returned by the API."""
    nodes: List[GraphNode]
    links: List[GraphLink]
