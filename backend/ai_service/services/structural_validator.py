"""
Structural validation of compiled workflow graphs.

The translator only depends on the StructuralValidator protocol; its verdict
is advisory. GraphStructureValidator is the default, rule-based
implementation used when no other validator is injected.
"""

from __future__ import annotations

import json
from collections import defaultdict, deque
from typing import Protocol, Sequence

from ai_service.config import TranslatorConfig
from ai_service.models.connector_registry import TRIGGER_NODE_TYPES
from ai_service.models.workflow import GraphEdge, GraphNode, ValidationReport


class StructuralValidator(Protocol):
    def validate(self, nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> ValidationReport:
        ...


class GraphStructureValidator:
    """Checks well-formedness: ids, trigger presence, edge endpoints, cycles and orphans."""

    def __init__(self, max_nodes: int | None = None):
        self.max_nodes = max_nodes if max_nodes is not None else TranslatorConfig.MAX_WORKFLOW_NODES

    def validate(self, nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> ValidationReport:
        errors: list[str] = []
        warnings: list[str] = []

        if not nodes:
            errors.append("Workflow must contain at least one node")
            return ValidationReport(valid=False, errors=errors, warnings=warnings)

        node_ids: set[str] = set()
        has_trigger = False
        for index, node in enumerate(nodes):
            if not node.id:
                errors.append(f"Node at index {index} missing id")
            elif node.id in node_ids:
                errors.append(f"Duplicate node id: {node.id}")
            else:
                node_ids.add(node.id)

            if not node.type:
                errors.append(f"Node {node.id} missing type")
            if not node.name:
                warnings.append(f"Node {node.id} missing name")
            if node.type in TRIGGER_NODE_TYPES:
                has_trigger = True
            if len(node.position) != 2:
                warnings.append(f"Node {node.id} has invalid position")

            for cred_type, cred_ref in (node.credentials or {}).items():
                if not cred_ref:
                    errors.append(f"Node {node.id} has an empty credential binding for '{cred_type}'")

        if not has_trigger:
            errors.append("Workflow must have at least one trigger node")

        connected: set[str] = set()
        for edge in edges:
            if edge.from_node_id not in node_ids:
                errors.append(f"Edge references unknown source node '{edge.from_node_id}'")
                continue
            if edge.to_node_id not in node_ids:
                errors.append(f"Edge references unknown target node '{edge.to_node_id}'")
                continue
            connected.add(edge.to_node_id)

        orphaned = [
            node.id for node in nodes
            if node.id not in connected and node.type not in TRIGGER_NODE_TYPES
        ]
        if orphaned:
            warnings.append(f"Orphaned nodes detected: {', '.join(orphaned)}")

        cycle_nodes = _find_cycle_nodes(node_ids, edges)
        if cycle_nodes:
            errors.append(f"Cycle detected involving nodes: {', '.join(cycle_nodes)}")

        serialized = json.dumps([node.model_dump(mode="json") for node in nodes])
        if "<script>" in serialized.lower():
            errors.append("Workflow contains potentially malicious script content")

        if len(nodes) > self.max_nodes:
            warnings.append(
                f"Workflow is very complex (>{self.max_nodes} nodes) - consider breaking into smaller workflows"
            )

        return ValidationReport(valid=not errors, errors=errors, warnings=warnings)


def _find_cycle_nodes(node_ids: set[str], edges: Sequence[GraphEdge]) -> list[str]:
    """
    Nodes that lie on a cycle, sorted.

    Kahn's algorithm leaves every node on or downstream of a cycle with a
    positive in-degree; of those, only nodes that can reach themselves are
    reported.
    """
    in_degree: dict[str, int] = {nid: 0 for nid in node_ids}
    adjacency: dict[str, list[str]] = defaultdict(list)

    for edge in edges:
        if edge.from_node_id in node_ids and edge.to_node_id in node_ids:
            adjacency[edge.from_node_id].append(edge.to_node_id)
            in_degree[edge.to_node_id] += 1

    queue: deque[str] = deque(nid for nid, deg in in_degree.items() if deg == 0)
    visited = 0
    while queue:
        nid = queue.popleft()
        visited += 1
        for neighbor in adjacency[nid]:
            in_degree[neighbor] -= 1
            if in_degree[neighbor] == 0:
                queue.append(neighbor)

    if visited == len(node_ids):
        return []
    stuck = {nid for nid, deg in in_degree.items() if deg > 0}
    return sorted(nid for nid in stuck if _reaches(nid, nid, adjacency, stuck))


def _reaches(start: str, target: str, adjacency: dict[str, list[str]], within: set[str]) -> bool:
    seen: set[str] = set()
    stack = [n for n in adjacency[start] if n in within]
    while stack:
        nid = stack.pop()
        if nid == target:
            return True
        if nid in seen:
            continue
        seen.add(nid)
        stack.extend(n for n in adjacency[nid] if n in within)
    return False
