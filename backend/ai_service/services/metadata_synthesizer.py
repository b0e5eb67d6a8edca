"""
Metadata synthesizer: derives workflow metadata from a Blueprint.

All functions read the Blueprint, never the compiled graph, and use the same
connector resolution as the graph compiler so credential requirements match
the nodes that were emitted.
"""

from __future__ import annotations

from ai_service.models.blueprint import Blueprint
from ai_service.models.connector_registry import resolve_destination_connector
from ai_service.models.workflow import DifficultyTier, WorkflowMetadata


BASE_EXECUTION_MS = 1000
TRANSFORM_EXECUTION_MS = 500
DESTINATION_EXECUTION_MS = 1000


def synthesize_metadata(blueprint: Blueprint) -> WorkflowMetadata:
    return WorkflowMetadata(
        category=determine_category(blueprint),
        difficulty_tier=determine_difficulty(blueprint),
        estimated_execution_ms=estimate_execution_ms(blueprint),
        required_credential_keys=required_credential_keys(blueprint),
        setup_instructions=setup_instructions(blueprint),
    )


def determine_category(blueprint: Blueprint) -> str:
    if any(d.kind == "email" for d in blueprint.destinations):
        return "communication"
    if any(d.service == "crm" for d in blueprint.destinations):
        return "crm"
    if any(d.service == "spreadsheet" for d in blueprint.destinations):
        return "data"
    return "automation"


def determine_difficulty(blueprint: Blueprint) -> DifficultyTier:
    complexity = len(blueprint.transforms) + len(blueprint.destinations)
    if complexity <= 2:
        return "beginner"
    if complexity <= 4:
        return "intermediate"
    return "advanced"


def estimate_execution_ms(blueprint: Blueprint) -> int:
    """Linear cost model: a fixed base plus a flat cost per transform and destination."""
    return (
        BASE_EXECUTION_MS
        + TRANSFORM_EXECUTION_MS * len(blueprint.transforms)
        + DESTINATION_EXECUTION_MS * len(blueprint.destinations)
    )


def required_credential_keys(blueprint: Blueprint) -> list[str]:
    """Deduplicated credential keys of every resolved destination connector, first-seen order."""
    keys: dict[str, None] = {}
    for destination in blueprint.destinations:
        _, connector = resolve_destination_connector(destination)
        for key in connector.required_credentials:
            keys.setdefault(key, None)
    return list(keys)


def setup_instructions(blueprint: Blueprint) -> list[str]:
    steps = ["Import this workflow into your n8n instance"]

    credentials = required_credential_keys(blueprint)
    if credentials:
        steps.append(f"Configure credentials: {', '.join(credentials)}")

    if blueprint.source.kind == "webhook":
        steps.append("Copy the webhook URL and configure your external system")

    steps.append("Test the workflow with sample data")
    steps.append("Activate the workflow when ready")

    return [f"{index}. {step}" for index, step in enumerate(steps, start=1)]
