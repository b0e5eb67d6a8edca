"""
Graph compiler — lowers a Blueprint into engine nodes and a directed edge chain.

Pipeline: Source node → Transform nodes → Destination nodes → Edge chain

Edges run source → transform_1 → ... → transform_n, and the tail of that
chain feeds every destination in parallel. Node ids are allocated from a
counter local to each call, so a compiler is safe to reuse concurrently.
"""

from __future__ import annotations

import copy
import itertools
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from ai_service.models.blueprint import (
    Blueprint,
    BlueprintDestination,
    BlueprintSource,
    BlueprintTransform,
)
from ai_service.models.connector_registry import (
    CONNECTOR_REGISTRY,
    ConnectorDescriptor,
    lookup,
    resolve_destination_connector,
)
from ai_service.models.workflow import GeneratedWorkflow, GraphEdge, GraphNode
from ai_service.services.metadata_synthesizer import synthesize_metadata


SOURCE_POSITION = (200, 300)
TRANSFORM_X = 400
DESTINATION_X = 600
LAYOUT_START_Y = 300
LAYOUT_STEP_Y = 200

SOURCE_NAMES = {
    "webhook": "Webhook Trigger",
    "cron": "Schedule Trigger",
    "manual": "Manual Trigger",
}

# Routing keys that select a connector but are not engine parameters
ROUTING_KEYS = ("service",)


class BlueprintError(Exception):
    """Base class for errors raised while translating a Blueprint."""


class UnknownSourceType(BlueprintError):
    """Raised when the Blueprint's trigger has no registered connector."""

    def __init__(self, source_kind: str):
        self.source_kind = source_kind
        super().__init__(f"Unknown source type: {source_kind}")


@dataclass(frozen=True)
class CompiledGraph:
    nodes: list[GraphNode]
    edges: list[GraphEdge]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def compile_blueprint(blueprint: Blueprint) -> CompiledGraph:
    """
    Compile a Blueprint into nodes and edges.

    Raises UnknownSourceType when the source kind is not in the registry.
    Transforms and destinations always compile; unknown destination services
    degrade to a generic HTTP node.
    """
    node_ids = _node_id_sequence()
    names = _NameAllocator()
    nodes: list[GraphNode] = []

    source_node = _create_source_node(blueprint.source, next(node_ids), names)
    nodes.append(source_node)

    y_position = LAYOUT_START_Y
    transform_nodes: list[GraphNode] = []
    for transform in blueprint.transforms:
        node = _create_transform_node(transform, next(node_ids), names, y_position)
        transform_nodes.append(node)
        y_position += LAYOUT_STEP_Y

    destination_nodes: list[GraphNode] = []
    for destination in blueprint.destinations:
        node = _create_destination_node(destination, next(node_ids), names, y_position)
        destination_nodes.append(node)
        y_position += LAYOUT_STEP_Y

    nodes.extend(transform_nodes)
    nodes.extend(destination_nodes)

    edges = _build_edges(source_node, transform_nodes, destination_nodes)
    return CompiledGraph(nodes=nodes, edges=edges)


def build_workflow(blueprint: Blueprint) -> GeneratedWorkflow:
    """Compile a Blueprint and attach synthesized metadata."""
    graph = compile_blueprint(blueprint)
    return GeneratedWorkflow(
        name=blueprint.metadata.name,
        description=blueprint.metadata.description,
        nodes=graph.nodes,
        edges=graph.edges,
        metadata=synthesize_metadata(blueprint),
    )


# ---------------------------------------------------------------------------
# Node construction
# ---------------------------------------------------------------------------

def _node_id_sequence() -> Iterator[str]:
    return (f"node_{n}" for n in itertools.count(1))


class _NameAllocator:
    """Hands out display names, suffixing repeats the way the engine does (Slack, Slack1, ...)."""

    def __init__(self) -> None:
        self._used: set[str] = set()

    def allocate(self, name: str) -> str:
        candidate = name
        for n in itertools.count(1):
            if candidate not in self._used:
                break
            candidate = f"{name}{n}"
        self._used.add(candidate)
        return candidate


def _merge_params(defaults: dict[str, Any], config: dict[str, Any]) -> dict[str, Any]:
    params = copy.deepcopy(defaults)
    params.update(copy.deepcopy({k: v for k, v in config.items() if k not in ROUTING_KEYS}))
    return params


def _create_source_node(
    source: BlueprintSource,
    node_id: str,
    names: _NameAllocator,
) -> GraphNode:
    connector = lookup(source.kind)
    if connector is None:
        raise UnknownSourceType(source.kind)

    return GraphNode(
        id=node_id,
        name=names.allocate(SOURCE_NAMES.get(source.kind, connector.display_name)),
        type=connector.node_type,
        position=SOURCE_POSITION,
        parameters=_merge_params(connector.default_params, source.config),
    )


def _filter_node(transform: BlueprintTransform) -> tuple[ConnectorDescriptor, dict[str, Any]]:
    return CONNECTOR_REGISTRY["if"], {
        "conditions": {
            "boolean": [{
                "leftValue": transform.config.get("condition") or "",
                "operation": "equal",
                "rightValue": "true",
            }],
        },
    }


def _map_node(transform: BlueprintTransform) -> tuple[ConnectorDescriptor, dict[str, Any]]:
    return CONNECTOR_REGISTRY["set"], {
        "values": {"string": copy.deepcopy(transform.config.get("mappings") or [])},
    }


def _split_node(transform: BlueprintTransform) -> tuple[ConnectorDescriptor, dict[str, Any]]:
    params: dict[str, Any] = {"options": {"batchSize": 1}}
    if transform.config.get("fieldName"):
        params["fieldName"] = copy.deepcopy(transform.config["fieldName"])
    return CONNECTOR_REGISTRY["batches"], params


TRANSFORM_BUILDERS: dict[str, Callable[[BlueprintTransform], tuple[ConnectorDescriptor, dict[str, Any]]]] = {
    "filter": _filter_node,
    "map": _map_node,
    "split": _split_node,
}


def _create_transform_node(
    transform: BlueprintTransform,
    node_id: str,
    names: _NameAllocator,
    y_position: int,
) -> GraphNode:
    builder = TRANSFORM_BUILDERS.get(transform.kind)
    if builder is None:
        connector, params = CONNECTOR_REGISTRY["set"], {"values": {"string": []}}
    else:
        connector, params = builder(transform)

    return GraphNode(
        id=node_id,
        name=names.allocate(connector.display_name),
        type=connector.node_type,
        position=(TRANSFORM_X, y_position),
        parameters=params,
    )


def _create_destination_node(
    destination: BlueprintDestination,
    node_id: str,
    names: _NameAllocator,
    y_position: int,
) -> GraphNode:
    key, connector = resolve_destination_connector(destination)
    config = destination.config

    if key == "email":
        params = _merge_params(connector.default_params, {
            "toEmail": config.get("to") or "",
            "subject": config.get("subject") or "",
            "text": config.get("body") or "",
        })
    else:
        params = _merge_params(connector.default_params, config)

    credentials = {cred: cred for cred in connector.required_credentials}

    return GraphNode(
        id=node_id,
        name=names.allocate(connector.display_name),
        type=connector.node_type,
        position=(DESTINATION_X, y_position),
        parameters=params,
        credentials=credentials or None,
    )


# ---------------------------------------------------------------------------
# Edges
# ---------------------------------------------------------------------------

def _build_edges(
    source_node: GraphNode,
    transform_nodes: list[GraphNode],
    destination_nodes: list[GraphNode],
) -> list[GraphEdge]:
    edges: list[GraphEdge] = []
    tail = source_node
    for node in transform_nodes:
        edges.append(GraphEdge(from_node_id=tail.id, to_node_id=node.id))
        tail = node
    for node in destination_nodes:
        edges.append(GraphEdge(from_node_id=tail.id, to_node_id=node.id))
    return edges
