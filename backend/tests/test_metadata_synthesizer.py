"""
Tests for metadata synthesis from Blueprints.
"""

import sys
from pathlib import Path

backend_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_root))

from ai_service.models.blueprint import (
    Blueprint,
    BlueprintDestination,
    BlueprintMetadata,
    BlueprintSource,
    BlueprintTransform,
)
from ai_service.services.metadata_synthesizer import (
    determine_category,
    determine_difficulty,
    estimate_execution_ms,
    required_credential_keys,
    setup_instructions,
)


def _blueprint(*destinations, transforms=0, source="manual"):
    return Blueprint(
        source=BlueprintSource(kind=source),
        transforms=tuple(BlueprintTransform(kind="map") for _ in range(transforms)),
        destinations=tuple(destinations),
        metadata=BlueprintMetadata(name="Test", description="Test"),
    )


EMAIL = BlueprintDestination(kind="email")
CRM = BlueprintDestination(kind="http", config={"service": "crm"})
SHEETS = BlueprintDestination(kind="http", config={"service": "spreadsheet"})
SLACK = BlueprintDestination(kind="http", config={"service": "slack"})
HTTP = BlueprintDestination(kind="http", config={"url": "https://x.test"})
UNKNOWN = BlueprintDestination(kind="http", config={"service": "salesforce"})


class TestCategory:
    def test_priority_order(self):
        assert determine_category(_blueprint(SHEETS, CRM, EMAIL)) == "communication"
        assert determine_category(_blueprint(SHEETS, CRM)) == "crm"
        assert determine_category(_blueprint(SHEETS, SLACK)) == "data"
        assert determine_category(_blueprint(SLACK)) == "automation"


class TestDifficulty:
    def test_tiers(self):
        assert determine_difficulty(_blueprint(EMAIL, transforms=1)) == "beginner"
        assert determine_difficulty(_blueprint(EMAIL, transforms=2)) == "intermediate"
        assert determine_difficulty(_blueprint(EMAIL, SLACK, transforms=2)) == "intermediate"
        assert determine_difficulty(_blueprint(EMAIL, SLACK, transforms=3)) == "advanced"


def test_execution_estimate_is_linear():
    assert estimate_execution_ms(_blueprint(HTTP)) == 2000
    assert estimate_execution_ms(_blueprint(EMAIL, SLACK, transforms=3)) == 1000 + 1500 + 2000


class TestRequiredCredentials:
    def test_union_is_deduplicated(self):
        keys = required_credential_keys(_blueprint(EMAIL, SLACK, EMAIL, CRM))
        assert keys == ["smtp", "slackApi", "hubspotApi"]

    def test_empty_without_credentialed_connectors(self):
        assert required_credential_keys(_blueprint(HTTP)) == []
        assert required_credential_keys(_blueprint(UNKNOWN, HTTP)) == []


class TestSetupInstructions:
    def test_minimal_checklist(self):
        assert setup_instructions(_blueprint(HTTP)) == [
            "1. Import this workflow into your n8n instance",
            "2. Test the workflow with sample data",
            "3. Activate the workflow when ready",
        ]

    def test_webhook_and_credentials(self):
        steps = setup_instructions(_blueprint(EMAIL, SLACK, source="webhook"))
        assert steps == [
            "1. Import this workflow into your n8n instance",
            "2. Configure credentials: smtp, slackApi",
            "3. Copy the webhook URL and configure your external system",
            "4. Test the workflow with sample data",
            "5. Activate the workflow when ready",
        ]
