"""
Connector registry — source of truth for how a logical service becomes an engine node.

Maps service keys used in Blueprints ("http", "crm", "slack", ...) to the
target engine node type, default parameters and the credential types the
node needs. Built once at import and exposed read-only.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

from ai_service.models.blueprint import BlueprintDestination


class ConnectorDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    node_type: str = Field(min_length=1)
    display_name: str
    default_params: dict[str, Any] = Field(default_factory=dict)
    required_credentials: tuple[str, ...] = ()
    operations: dict[str, list[str]] | None = None


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
# Node type strings are n8n's; credential keys are n8n credential type names.

_CONNECTORS: dict[str, ConnectorDescriptor] = {
    # ---- Generic ----
    "http": ConnectorDescriptor(
        node_type="n8n-nodes-base.httpRequest",
        display_name="HTTP Request",
        default_params={"url": "", "method": "GET", "options": {}},
    ),

    # ---- Named integrations ----
    "crm": ConnectorDescriptor(
        node_type="n8n-nodes-base.hubspot",
        display_name="HubSpot",
        default_params={"resource": "contact", "operation": "get"},
        required_credentials=("hubspotApi",),
        operations={
            "contact": ["create", "update", "get", "getAll", "delete"],
            "company": ["create", "update", "get", "getAll", "delete"],
            "deal": ["create", "update", "get", "getAll", "delete"],
        },
    ),
    "spreadsheet": ConnectorDescriptor(
        node_type="n8n-nodes-base.googleSheets",
        display_name="Google Sheets",
        default_params={"operation": "append", "resource": "spreadsheet"},
        required_credentials=("googleSheetsOAuth2Api",),
        operations={
            "spreadsheet": ["append", "read", "update", "clear"],
            "sheet": ["create", "delete", "get"],
        },
    ),
    "whatsapp": ConnectorDescriptor(
        node_type="n8n-nodes-base.whatsapp",
        display_name="WhatsApp",
        default_params={"resource": "message", "operation": "send"},
        required_credentials=("whatsappApi",),
        operations={"message": ["send", "sendLocation", "sendMedia"]},
    ),
    "email": ConnectorDescriptor(
        node_type="n8n-nodes-base.emailSend",
        display_name="Send Email",
        default_params={"toEmail": "", "subject": "", "text": ""},
        required_credentials=("smtp",),
    ),
    "slack": ConnectorDescriptor(
        node_type="n8n-nodes-base.slack",
        display_name="Slack",
        default_params={"resource": "message", "operation": "post"},
        required_credentials=("slackApi",),
        operations={
            "message": ["post", "update", "delete"],
            "channel": ["create", "get", "getAll"],
        },
    ),

    # ---- Triggers ----
    "webhook": ConnectorDescriptor(
        node_type="n8n-nodes-base.webhook",
        display_name="Webhook Trigger",
        default_params={"httpMethod": "POST", "path": "", "responseMode": "responseNode"},
    ),
    "cron": ConnectorDescriptor(
        node_type="n8n-nodes-base.cron",
        display_name="Schedule Trigger",
        default_params={"triggerTimes": {"item": [{"mode": "everyMinute"}]}},
    ),
    "manual": ConnectorDescriptor(
        node_type="n8n-nodes-base.manualTrigger",
        display_name="Manual Trigger",
    ),

    # ---- Flow / transform ----
    "if": ConnectorDescriptor(
        node_type="n8n-nodes-base.if",
        display_name="Filter",
        default_params={
            "conditions": {
                "boolean": [{"leftValue": "", "operation": "equal", "rightValue": ""}],
            },
        },
    ),
    "set": ConnectorDescriptor(
        node_type="n8n-nodes-base.set",
        display_name="Transform Data",
        default_params={"values": {"string": []}},
    ),
    "batches": ConnectorDescriptor(
        node_type="n8n-nodes-base.splitInBatches",
        display_name="Split Items",
        default_params={"options": {"batchSize": 1}},
    ),
}

CONNECTOR_REGISTRY: Mapping[str, ConnectorDescriptor] = MappingProxyType(_CONNECTORS)

TRIGGER_NODE_TYPES: frozenset[str] = frozenset(
    CONNECTOR_REGISTRY[key].node_type for key in ("webhook", "cron", "manual")
) | {"n8n-nodes-base.start"}


def lookup(key: str) -> ConnectorDescriptor | None:
    """Look up a connector, returning None if the key is not registered."""
    if not isinstance(key, str):
        return None
    return CONNECTOR_REGISTRY.get(key)


def resolve_destination_connector(
    destination: BlueprintDestination,
) -> tuple[str, ConnectorDescriptor]:
    """
    Pick the connector a destination compiles to.

    Email destinations use the email connector. HTTP destinations naming a
    registered `service` use it; anything else degrades to generic HTTP.
    """
    if destination.kind == "email":
        return "email", CONNECTOR_REGISTRY["email"]
    service = destination.service
    if service:
        connector = lookup(service)
        if connector is not None:
            return service, connector
    return "http", CONNECTOR_REGISTRY["http"]
