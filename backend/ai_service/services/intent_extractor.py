"""
Intent extractor: turns a natural-language automation request into a Blueprint.

Extraction is keyword driven:
1) Source: trigger groups are tried in priority order (webhook, schedule);
   the first hit wins, otherwise the workflow starts manually.
2) Transforms: every matching group (filter, map, split) adds one transform,
   always in that order.
3) Destinations: every matching group adds one destination in declaration
   order; with no match a generic HTTP destination is added.
4) Metadata: name, description and tags derived from the prompt.

Field-level rules (schedule, condition, recipients, ...) fall back to
templated placeholders the user edits later, so extraction never fails.
"""

from __future__ import annotations

import logging
import random
import re
import string
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Generic, TypeVar

from ai_service.config import TranslatorConfig
from ai_service.models.blueprint import (
    Blueprint,
    BlueprintDestination,
    BlueprintMetadata,
    BlueprintSource,
    BlueprintTransform,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

WEBHOOK_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
WEBHOOK_SUFFIX_LENGTH = 9

NAME_MAX_WORDS = 6
DESCRIPTION_MAX_LENGTH = 100

DEFAULT_CONDITION = '{{ $json.status === "active" }}'
DEFAULT_RECIPIENT = '{{ $json.email || "user@example.com" }}'
DEFAULT_PHONE = '{{ $json.phone || "+1234567890" }}'
DEFAULT_EMAIL_BODY = "Your workflow has been executed successfully."
DEFAULT_SPLIT_FIELD = "items"
DEFAULT_SLACK_CHANNEL = "#general"
SPREADSHEET_ID_PLACEHOLDER = "SPREADSHEET_ID_HERE"

# Words that never name a field in "<field> is <value>" or "each <field>"
FIELD_STOPWORDS = {
    "a", "an", "and", "by", "in", "into", "it", "of", "one", "that", "the",
    "there", "this", "time", "to", "what", "which", "who",
}

RECORD_NOUNS = (
    "records", "items", "rows", "entries", "contacts", "leads", "orders",
    "users", "customers", "tickets", "deals",
)

# Short tokens that collide with ordinary words ("was", "ifs", "mails")
EXACT_KEYWORDS = frozenset({"if", "wa", "each", "mail"})
VOWELS = "aeiou"

WEEKDAYS = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

_EMAIL_ADDRESS = re.compile(r"[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}", re.IGNORECASE)
_PHONE_NUMBER = re.compile(r"\+\d[\d\s-]{6,}\d")
_SLACK_CHANNEL = re.compile(r"#([a-z0-9][a-z0-9_-]*)")
_TIME_OF_DAY = re.compile(r"\bat\s+(\d{1,2})(?::(\d{2}))?\s*(am|pm)?\b")
_FIELD_COMPARISON = re.compile(
    r"\b([a-z_][a-z0-9_]*)\s+(?:is|equals|==|=)\s+[\"']?([a-z0-9_@.\-]+)[\"']?"
)
_STATUS_FILTER = re.compile(
    r"\b(?:filter(?:s|ed|ing)?|only)\s+(?:the\s+)?([a-z]+)\s+(?:" + "|".join(RECORD_NOUNS) + r")\b"
)
_FIELD_MAPPING = re.compile(
    r"\b(?:map(?:s|ped|ping)?|renam(?:e|es|ed|ing)|convert(?:s|ed|ing)?)\s+(?:the\s+)?([a-z_][a-z0-9_]*)\s+(?:field\s+)?(?:to|into|as)\s+([a-z_][a-z0-9_]*)"
)
_SPLIT_FIELD = re.compile(
    r"\b(?:split(?:s|ting)?|for each|each|iterat(?:e|es|ing) over|loop(?:s|ing)? (?:over|through))\s+(?:the\s+)?([a-z_][a-z0-9_]*)"
)
_QUOTED_SUBJECT = re.compile(r"\bsubject\s*[:=]?\s*[\"']([^\"']+)[\"']", re.IGNORECASE)
_QUOTED_MESSAGE = re.compile(r"\b(?:message|saying|say)\s*[:=]?\s*[\"']([^\"']+)[\"']", re.IGNORECASE)


@dataclass(frozen=True)
class PromptText:
    """The raw prompt plus its normalized (lowercased, trimmed) form."""

    raw: str
    text: str

    @classmethod
    def from_prompt(cls, prompt: str) -> "PromptText":
        raw = (prompt or "").strip()
        return cls(raw=raw, text=raw.lower())


@dataclass(frozen=True)
class KeywordRule(Generic[T]):
    """One entry of a dispatch table: a keyword predicate and the builder it selects."""

    name: str
    keywords: tuple[str, ...]
    build: Callable[[PromptText, random.Random], T]

    def matches(self, text: str) -> bool:
        return any(contains_phrase(text, keyword) for keyword in self.keywords)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_blueprint(prompt: str, *, rng: random.Random | None = None) -> Blueprint:
    """
    Parse a natural-language prompt into a Blueprint.

    `rng` feeds the generated webhook path; pass a seeded `random.Random`
    to make the output reproducible.
    """
    rng = rng or random.Random()
    parsed = PromptText.from_prompt(prompt)

    source = extract_source(parsed, rng)
    transforms = extract_transforms(parsed, rng)
    destinations = extract_destinations(parsed, rng)
    metadata = BlueprintMetadata(
        name=extract_workflow_name(parsed.raw),
        description=extract_workflow_description(parsed.raw),
        tags=extract_tags(source, transforms, destinations),
    )

    logger.debug(
        f"Extracted blueprint: source={source.kind} "
        f"transforms={[t.kind for t in transforms]} "
        f"destinations={[d.service or d.kind for d in destinations]}"
    )
    return Blueprint(
        source=source,
        transforms=tuple(transforms),
        destinations=tuple(destinations),
        metadata=metadata,
    )


def contains_phrase(text: str, phrase: str) -> bool:
    """
    Match a keyword at a word start, accepting its common inflections
    ("filtering", "emailed", "scheduling", "splitting").

    Tokens in EXACT_KEYWORDS only match as whole words.
    """
    return _phrase_pattern(phrase).search(text) is not None


@lru_cache(maxsize=None)
def _phrase_pattern(phrase: str) -> re.Pattern[str]:
    if phrase in EXACT_KEYWORDS:
        body = re.escape(phrase)
    elif phrase.endswith("e"):
        # schedule -> scheduled, scheduling, scheduler
        body = re.escape(phrase[:-1]) + r"(?:e|es|ed|ing|er|ers)"
    else:
        doubled = re.escape(phrase[-1]) + "?" if _doubles_final_consonant(phrase) else ""
        body = re.escape(phrase) + r"(?:s|es|ly|" + doubled + r"(?:ed|ing|er|ers))?"
    return re.compile(r"(?<![a-z0-9])" + body + r"(?![a-z0-9])")


def _doubles_final_consonant(word: str) -> bool:
    """split -> splitting, map -> mapped"""
    if len(word) < 3:
        return False
    a, b, c = word[-3:]
    return a not in VOWELS and b in VOWELS and c not in VOWELS and c not in "wxy"


def _contains_any(text: str, *phrases: str) -> bool:
    return any(contains_phrase(text, phrase) for phrase in phrases)


# ---------------------------------------------------------------------------
# Source
# ---------------------------------------------------------------------------

def _build_webhook_source(prompt: PromptText, rng: random.Random) -> BlueprintSource:
    return BlueprintSource(
        kind="webhook",
        config={
            "httpMethod": "POST",
            "path": generate_webhook_path(rng),
            "responseMode": "responseNode",
        },
    )


def _build_cron_source(prompt: PromptText, rng: random.Random) -> BlueprintSource:
    return BlueprintSource(kind="cron", config={"triggerTimes": extract_schedule(prompt.text)})


SOURCE_RULES: tuple[KeywordRule[BlueprintSource], ...] = (
    KeywordRule(
        name="webhook",
        keywords=("webhook", "api call", "http request", "incoming request", "endpoint"),
        build=_build_webhook_source,
    ),
    KeywordRule(
        name="cron",
        keywords=("every", "daily", "hourly", "weekly", "schedule", "scheduled", "cron"),
        build=_build_cron_source,
    ),
)


def extract_source(prompt: PromptText, rng: random.Random) -> BlueprintSource:
    for rule in SOURCE_RULES:
        if rule.matches(prompt.text):
            return rule.build(prompt, rng)
    return BlueprintSource(kind="manual", config={})


def generate_webhook_path(rng: random.Random) -> str:
    suffix = "".join(rng.choice(WEBHOOK_SUFFIX_ALPHABET) for _ in range(WEBHOOK_SUFFIX_LENGTH))
    return f"/webhook-{suffix}"


def extract_schedule(text: str) -> dict[str, Any]:
    """Map cadence phrases onto cron trigger items; unrecognised cadence runs every minute."""
    hour, minute = _extract_time_of_day(text)

    if _contains_any(text, "daily", "every day", "each day"):
        return {"item": [{"mode": "everyDay", "hour": hour, "minute": minute}]}
    if _contains_any(text, "hourly", "every hour"):
        return {"item": [{"mode": "everyHour", "minute": minute}]}

    weekday = next(
        (index for index, day in enumerate(WEEKDAYS) if contains_phrase(text, f"every {day}")),
        None,
    )
    if weekday is not None or _contains_any(text, "weekly", "every week"):
        return {
            "item": [{
                "mode": "everyWeek",
                "hour": hour,
                "minute": minute,
                "weekday": str(1 if weekday is None else weekday),
            }]
        }

    # "every morning at 7am" still names a daily time
    if _TIME_OF_DAY.search(text):
        return {"item": [{"mode": "everyDay", "hour": hour, "minute": minute}]}
    return {"item": [{"mode": "everyMinute"}]}


def _extract_time_of_day(text: str) -> tuple[int, int]:
    match = _TIME_OF_DAY.search(text)
    if not match:
        return 9, 0
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    meridiem = match.group(3)
    if meridiem == "pm" and hour < 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0
    if hour > 23 or minute > 59:
        return 9, 0
    return hour, minute


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------

TRANSFORM_RULES: tuple[KeywordRule[BlueprintTransform], ...] = (
    KeywordRule(
        name="filter",
        keywords=("if", "when", "only", "filter", "where", "unless"),
        build=lambda prompt, rng: BlueprintTransform(
            kind="filter", config={"condition": extract_condition(prompt.text)}
        ),
    ),
    KeywordRule(
        name="map",
        keywords=("map", "transform", "convert", "format", "rename"),
        build=lambda prompt, rng: BlueprintTransform(
            kind="map", config={"mappings": extract_mappings(prompt.text)}
        ),
    ),
    KeywordRule(
        name="split",
        keywords=("split", "each", "loop", "iterate", "batch"),
        build=lambda prompt, rng: BlueprintTransform(
            kind="split", config={"fieldName": extract_split_field(prompt.text)}
        ),
    ),
)


def extract_transforms(prompt: PromptText, rng: random.Random) -> list[BlueprintTransform]:
    return [rule.build(prompt, rng) for rule in TRANSFORM_RULES if rule.matches(prompt.text)]


def extract_condition(text: str) -> str:
    for match in _FIELD_COMPARISON.finditer(text):
        field, value = match.group(1), match.group(2)
        if field not in FIELD_STOPWORDS:
            return f'{{{{ $json.{field} === "{value}" }}}}'

    match = _STATUS_FILTER.search(text)
    if match and match.group(1) not in FIELD_STOPWORDS:
        return f'{{{{ $json.status === "{match.group(1)}" }}}}'

    return DEFAULT_CONDITION


def extract_mappings(text: str) -> list[dict[str, str]]:
    match = _FIELD_MAPPING.search(text)
    if match:
        source_field, target_field = match.group(1), match.group(2)
        return [{"name": target_field, "value": f"{{{{ $json.{source_field} }}}}"}]
    return [{"name": "processed_data", "value": "{{ $json }}"}]


def extract_split_field(text: str) -> str:
    for match in _SPLIT_FIELD.finditer(text):
        field = match.group(1)
        if field not in FIELD_STOPWORDS:
            return field
    return DEFAULT_SPLIT_FIELD


# ---------------------------------------------------------------------------
# Destinations
# ---------------------------------------------------------------------------

def _build_email_destination(prompt: PromptText, rng: random.Random) -> BlueprintDestination:
    return BlueprintDestination(
        kind="email",
        config={
            "to": extract_email_recipients(prompt.raw),
            "subject": extract_email_subject(prompt.raw),
            "body": DEFAULT_EMAIL_BODY,
        },
    )


def _build_crm_destination(prompt: PromptText, rng: random.Random) -> BlueprintDestination:
    return BlueprintDestination(
        kind="http",
        config={
            "service": "crm",
            "operation": extract_crm_operation(prompt.text),
            "resource": extract_crm_resource(prompt.text),
        },
    )


def _build_spreadsheet_destination(prompt: PromptText, rng: random.Random) -> BlueprintDestination:
    return BlueprintDestination(
        kind="http",
        config={
            "service": "spreadsheet",
            "operation": extract_sheets_operation(prompt.text),
            "spreadsheetId": SPREADSHEET_ID_PLACEHOLDER,
        },
    )


def _build_whatsapp_destination(prompt: PromptText, rng: random.Random) -> BlueprintDestination:
    return BlueprintDestination(
        kind="http",
        config={
            "service": "whatsapp",
            "operation": "send",
            "phoneNumber": extract_phone_number(prompt.raw),
            "message": extract_message(prompt.raw, default=f"Message from {TranslatorConfig.NOTIFICATION_LABEL}"),
        },
    )


def _build_slack_destination(prompt: PromptText, rng: random.Random) -> BlueprintDestination:
    return BlueprintDestination(
        kind="http",
        config={
            "service": "slack",
            "operation": "post",
            "channel": extract_slack_channel(prompt.text),
            "message": extract_message(prompt.raw, default=TranslatorConfig.notification_subject()),
        },
    )


DESTINATION_RULES: tuple[KeywordRule[BlueprintDestination], ...] = (
    KeywordRule(
        name="email",
        keywords=("email", "mail", "send email"),
        build=_build_email_destination,
    ),
    KeywordRule(
        name="crm",
        keywords=("hubspot", "crm"),
        build=_build_crm_destination,
    ),
    KeywordRule(
        name="spreadsheet",
        keywords=("sheets", "sheet", "spreadsheet", "google sheets", "excel"),
        build=_build_spreadsheet_destination,
    ),
    KeywordRule(
        name="whatsapp",
        keywords=("whatsapp", "wa"),
        build=_build_whatsapp_destination,
    ),
    KeywordRule(
        name="slack",
        keywords=("slack",),
        build=_build_slack_destination,
    ),
)


def extract_destinations(prompt: PromptText, rng: random.Random) -> list[BlueprintDestination]:
    destinations = [
        rule.build(prompt, rng) for rule in DESTINATION_RULES if rule.matches(prompt.text)
    ]
    if not destinations:
        destinations.append(fallback_destination())
    return destinations


def fallback_destination() -> BlueprintDestination:
    return BlueprintDestination(
        kind="http",
        config={
            "method": "POST",
            "url": TranslatorConfig.FALLBACK_URL,
            "headers": {},
            "body": "{}",
        },
    )


def extract_email_recipients(raw: str) -> str:
    match = _EMAIL_ADDRESS.search(raw)
    return match.group(0) if match else DEFAULT_RECIPIENT


def extract_email_subject(raw: str) -> str:
    match = _QUOTED_SUBJECT.search(raw)
    return match.group(1).strip() if match else TranslatorConfig.notification_subject()


def extract_crm_operation(text: str) -> str:
    if contains_phrase(text, "create"):
        return "create"
    if contains_phrase(text, "update"):
        return "update"
    return "create"


def extract_crm_resource(text: str) -> str:
    for resource in ("contact", "company", "deal"):
        if contains_phrase(text, resource):
            return resource
    if contains_phrase(text, "companies"):
        return "company"
    return "contact"


def extract_sheets_operation(text: str) -> str:
    if contains_phrase(text, "read"):
        return "read"
    if contains_phrase(text, "update"):
        return "update"
    return "append"


def extract_phone_number(raw: str) -> str:
    match = _PHONE_NUMBER.search(raw)
    if not match:
        return DEFAULT_PHONE
    return re.sub(r"[\s-]", "", match.group(0))


def extract_slack_channel(text: str) -> str:
    match = _SLACK_CHANNEL.search(text)
    return f"#{match.group(1)}" if match else DEFAULT_SLACK_CHANNEL


def extract_message(raw: str, *, default: str) -> str:
    match = _QUOTED_MESSAGE.search(raw)
    return match.group(1).strip() if match else default


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

def extract_workflow_name(raw: str) -> str:
    first_sentence = raw.split(".")[0]
    words = " ".join(first_sentence.split()[:NAME_MAX_WORDS])
    if not words:
        return "Untitled Workflow"
    return words[0].upper() + words[1:]


def extract_workflow_description(raw: str) -> str:
    if len(raw) > DESCRIPTION_MAX_LENGTH:
        return raw[: DESCRIPTION_MAX_LENGTH - 3] + "..."
    return raw


def extract_tags(
    source: BlueprintSource,
    transforms: list[BlueprintTransform],
    destinations: list[BlueprintDestination],
) -> list[str]:
    tags = ["ai-generated"]
    services = {d.service for d in destinations}

    if source.kind == "webhook":
        tags.append("webhook")
    if source.kind == "cron":
        tags.append("scheduled")
    if any(t.kind == "filter" for t in transforms):
        tags.append("conditional")
    if any(d.kind == "email" for d in destinations):
        tags.append("email")
    if "crm" in services:
        tags.append("crm")
    if "spreadsheet" in services:
        tags.append("spreadsheet")
    if services & {"whatsapp", "slack"}:
        tags.append("messaging")
    return tags
