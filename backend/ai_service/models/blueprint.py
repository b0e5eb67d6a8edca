"""
Blueprint models — the intermediate representation of an automation request.

A Blueprint is produced by the intent extractor from free text and lowered
by the graph compiler into engine nodes and edges. It has exactly one
source (the entry trigger), zero or more transforms and at least one
destination. Blueprints are frozen once built. Freezing is shallow: the
`config` dicts are plain dicts, and the compiler deep-copies them into node
parameters so nothing it emits aliases a Blueprint.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


SourceKind = Literal["webhook", "cron", "manual"]
TransformKind = Literal["filter", "map", "split"]
DestinationKind = Literal["email", "http"]


class BlueprintSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: SourceKind
    config: dict[str, Any] = Field(default_factory=dict)


class BlueprintTransform(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: TransformKind
    config: dict[str, Any] = Field(default_factory=dict)


class BlueprintDestination(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: DestinationKind
    config: dict[str, Any] = Field(default_factory=dict)

    @property
    def service(self) -> str | None:
        service = self.config.get("service")
        return service if isinstance(service, str) else None


class BlueprintMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    tags: list[str] = Field(default_factory=list)


class Blueprint(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: BlueprintSource
    transforms: tuple[BlueprintTransform, ...] = ()
    destinations: tuple[BlueprintDestination, ...] = Field(min_length=1)
    metadata: BlueprintMetadata
