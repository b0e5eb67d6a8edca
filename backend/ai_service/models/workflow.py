"""
Generated workflow models: the engine-consumable output of the translator.

The wire shape (node `type`/`parameters`/`position`/`credentials`, and the
`node`/`type`/`index` connection keys) is what the persistence and sandbox
services read, so field aliases here must not change.

Models are frozen at the attribute level only. Each compilation builds fresh
`parameters` and `credentials` dicts, so editing a returned node never
reaches the Blueprint, the connector registry or another workflow.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


DifficultyTier = Literal["beginner", "intermediate", "advanced"]


class GraphNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: str
    position: tuple[int, int]
    parameters: dict[str, Any] = Field(default_factory=dict)
    credentials: dict[str, str] | None = None


class GraphEdge(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_node_id: str = Field(alias="from")
    to_node_id: str = Field(alias="node")
    port_type: Literal["main"] = Field(default="main", alias="type")
    from_port_index: int = Field(default=0, alias="index")


class WorkflowMetadata(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    category: str
    difficulty_tier: DifficultyTier = Field(alias="difficultyTier")
    estimated_execution_ms: int = Field(alias="estimatedExecutionMs")
    required_credential_keys: list[str] = Field(default_factory=list, alias="requiredCredentialKeys")
    setup_instructions: list[str] = Field(default_factory=list, alias="setupInstructions")


class GeneratedWorkflow(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    description: str
    nodes: list[GraphNode]
    edges: list[GraphEdge] = Field(alias="connections")
    metadata: WorkflowMetadata

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON object handed to persistence and the sandbox."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def engine_connections(self) -> dict[str, dict[str, list[list[dict[str, Any]]]]]:
        """
        Render edges as the engine's native connection map, keyed by node name:

            {"Webhook Trigger": {"main": [[{"node": "Filter", "type": "main", "index": 0}]]}}
        """
        names = {node.id: node.name for node in self.nodes}
        out: dict[str, dict[str, list[list[dict[str, Any]]]]] = {}
        for edge in self.edges:
            outputs = out.setdefault(names[edge.from_node_id], {}).setdefault(edge.port_type, [])
            while len(outputs) <= edge.from_port_index:
                outputs.append([])
            outputs[edge.from_port_index].append({
                "node": names[edge.to_node_id],
                "type": edge.port_type,
                "index": 0,
            })
        return out


class ValidationReport(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ValidationAdvisory(BaseModel):
    level: Literal["error", "warning"]
    message: str
