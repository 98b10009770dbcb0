"""Schema for the graph JSON produced by the diagram editor.

Only the fields the engine consumes are modelled. Rendering fields such as
coordinates, text labels or edge waypoints are accepted and ignored.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from flowengine.utils.errors import GraphValidationError


class GraphNode(BaseModel):
    """Schema for a node in editor JSON."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    id: str
    type: str
    properties: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("properties", mode="before")
    @classmethod
    def normalize_properties(cls, value: Any) -> Dict[str, Any]:
        return value if isinstance(value, dict) else {}


class GraphEdge(BaseModel):
    """Schema for an edge in editor JSON."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    id: str
    source_node_id: str = Field(alias="sourceNodeId")
    target_node_id: str = Field(alias="targetNodeId")
    properties: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("properties", mode="before")
    @classmethod
    def normalize_properties(cls, value: Any) -> Dict[str, Any]:
        return value if isinstance(value, dict) else {}


class GraphJSON(BaseModel):
    """Schema for a whole ``{nodes, edges}`` document."""

    model_config = ConfigDict(extra="ignore")

    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)


def parse_graph_json(graph_data: Union[Dict[str, Any], GraphJSON, None]) -> GraphJSON:
    """Validate raw graph data.

    Args:
        graph_data: ``{nodes, edges}`` mapping (``None`` means an empty graph)

    Returns:
        GraphJSON model

    Raises:
        GraphValidationError: If the document does not match the schema
    """
    if isinstance(graph_data, GraphJSON):
        return graph_data
    try:
        return GraphJSON.model_validate(graph_data or {})
    except ValidationError as e:
        raise GraphValidationError(f"Invalid graph JSON: {e}") from e


def get_condition_expression(properties: Optional[Dict[str, Any]]) -> Optional[str]:
    """Return the edge condition stored in ``properties``, if any."""
    if not properties:
        return None
    expression = properties.get("conditionExpression")
    if expression is None or expression == "":
        return None
    return str(expression)
