"""
Blueprint translator: natural-language prompt to engine workflow.

Flow:
1) Extract a Blueprint from the prompt (intent_extractor)
2) Compile nodes + edges and synthesize metadata (graph_compiler)
3) Run the structural validator; failures are logged and returned as
   advisories, never raised

Only UnknownSourceType escapes; every other problem ends up in the result.
"""

from __future__ import annotations

import logging
import random

from pydantic import BaseModel, Field

from ai_service.models.blueprint import Blueprint
from ai_service.models.workflow import GeneratedWorkflow, ValidationAdvisory, ValidationReport
from ai_service.services.graph_compiler import build_workflow
from ai_service.services.intent_extractor import extract_blueprint
from ai_service.services.structural_validator import GraphStructureValidator, StructuralValidator

logger = logging.getLogger(__name__)


class TranslationResult(BaseModel):
    blueprint: Blueprint
    workflow: GeneratedWorkflow
    advisories: list[ValidationAdvisory] = Field(default_factory=list)

    def to_wire(self) -> dict:
        return {
            "blueprint": self.blueprint.model_dump(mode="json"),
            "workflow": self.workflow.to_wire(),
            "advisories": [a.model_dump() for a in self.advisories],
        }


class BlueprintTranslator:
    """
    Stateless facade over extraction, compilation and validation.

    Holds only collaborators (validator, random source), so one instance can
    serve concurrent requests.
    """

    def __init__(
        self,
        validator: StructuralValidator | None = None,
        rng: random.Random | None = None,
    ):
        self.validator = validator or GraphStructureValidator()
        self.rng = rng

    def parse_prompt(self, prompt: str) -> Blueprint:
        return extract_blueprint(prompt, rng=self.rng)

    def translate(self, blueprint: Blueprint) -> TranslationResult:
        workflow = build_workflow(blueprint)
        report = self.validator.validate(workflow.nodes, workflow.edges)

        if not report.valid:
            logger.warning(
                f"Generated workflow '{workflow.name}' has validation issues: "
                f"errors={report.errors} warnings={report.warnings}"
            )
        elif report.warnings:
            logger.info(f"Generated workflow '{workflow.name}' has warnings: {report.warnings}")

        return TranslationResult(
            blueprint=blueprint,
            workflow=workflow,
            advisories=_advisories_from_report(report),
        )

    def generate(self, prompt: str) -> TranslationResult:
        blueprint = self.parse_prompt(prompt)
        result = self.translate(blueprint)
        logger.info(
            f"Generated workflow '{result.workflow.name}' with "
            f"{len(result.workflow.nodes)} nodes, {len(result.workflow.edges)} edges"
        )
        return result


def _advisories_from_report(report: ValidationReport) -> list[ValidationAdvisory]:
    advisories = [ValidationAdvisory(level="error", message=m) for m in report.errors]
    advisories.extend(ValidationAdvisory(level="warning", message=m) for m in report.warnings)
    return advisories


blueprint_translator = BlueprintTranslator()
