"""
Blueprint translator API endpoints.

Turns natural-language automation requests into n8n workflow JSON. Budget
checks, persistence and sandbox dry-runs happen in the calling services;
these endpoints only expose the translator.
"""

import logging
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from ai_service.config import TranslatorConfig
from ai_service.models.blueprint import Blueprint
from ai_service.models.connector_registry import CONNECTOR_REGISTRY
from ai_service.services.blueprint_translator import blueprint_translator
from ai_service.services.graph_compiler import UnknownSourceType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blueprints", tags=["blueprints"])


class PromptRequest(BaseModel):
    prompt: str = Field(
        ...,
        min_length=TranslatorConfig.PROMPT_MIN_LENGTH,
        max_length=TranslatorConfig.PROMPT_MAX_LENGTH,
        description="Natural-language description of the automation",
    )


class AdvisoryResponse(BaseModel):
    level: str
    message: str


class GenerateResponse(BaseModel):
    blueprint: Dict[str, Any]
    workflow: Dict[str, Any]
    advisories: List[AdvisoryResponse] = []


class CompileResponse(BaseModel):
    workflow: Dict[str, Any]
    advisories: List[AdvisoryResponse] = []


class ConnectorResponse(BaseModel):
    key: str
    node_type: str
    display_name: str
    required_credentials: List[str]
    operations: Optional[Dict[str, List[str]]] = None


def _unknown_source(exc: UnknownSourceType) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"message": "Workflow generation failed", "error": str(exc)},
    )


@router.post("/generate", response_model=GenerateResponse)
async def generate_workflow(request: PromptRequest):
    """
    Generate a workflow from a prompt.

    Returns the intermediate Blueprint, the workflow JSON and any structural
    advisories (advisories never block generation).
    """
    try:
        result = blueprint_translator.generate(request.prompt)
    except UnknownSourceType as e:
        raise _unknown_source(e)
    except Exception as e:
        logger.exception("Workflow generation failed")
        raise HTTPException(status_code=500, detail=f"Failed to generate workflow: {str(e)}")

    return GenerateResponse(**result.to_wire())


@router.post("/parse", response_model=Blueprint)
async def parse_prompt(request: PromptRequest):
    """Extract the Blueprint for a prompt without compiling it."""
    return blueprint_translator.parse_prompt(request.prompt)


@router.post("/compile", response_model=CompileResponse)
async def compile_blueprint(blueprint: Blueprint):
    """Compile an (optionally hand-edited) Blueprint into workflow JSON."""
    try:
        result = blueprint_translator.translate(blueprint)
    except UnknownSourceType as e:
        raise _unknown_source(e)
    except Exception as e:
        logger.exception("Blueprint compilation failed")
        raise HTTPException(status_code=500, detail=f"Failed to compile blueprint: {str(e)}")

    wire = result.to_wire()
    return CompileResponse(workflow=wire["workflow"], advisories=wire["advisories"])


@router.get("/connectors", response_model=List[ConnectorResponse])
async def list_connectors():
    """List the registered connectors and the credentials each one needs."""
    return [
        ConnectorResponse(
            key=key,
            node_type=connector.node_type,
            display_name=connector.display_name,
            required_credentials=list(connector.required_credentials),
            operations=connector.operations,
        )
        for key, connector in CONNECTOR_REGISTRY.items()
    ]
