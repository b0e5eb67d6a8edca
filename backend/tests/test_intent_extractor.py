"""
Tests for the intent extractor: keyword dispatch, field sub-rules and metadata.
"""

import random

import sys
from pathlib import Path

backend_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_root))

from ai_service.config import TranslatorConfig
from ai_service.services.intent_extractor import (
    DEFAULT_CONDITION,
    DEFAULT_PHONE,
    DEFAULT_RECIPIENT,
    WEBHOOK_SUFFIX_ALPHABET,
    contains_phrase,
    extract_blueprint,
    extract_condition,
    extract_mappings,
    extract_schedule,
    extract_split_field,
    extract_workflow_description,
    extract_workflow_name,
    generate_webhook_path,
)


def _kinds(items):
    return [item.kind for item in items]


class TestKeywordMatching:
    def test_whole_word_match(self):
        assert contains_phrase("send a whatsapp message", "whatsapp")
        assert contains_phrase("update hubspot contacts", "contact")

    def test_substring_does_not_match(self):
        """Short keywords like "wa" or "if" must not fire inside other words."""
        assert not contains_phrase("i want a notification", "wa")
        assert not contains_phrase("notify everyone", "if")
        assert not contains_phrase("do everything", "every")

    def test_multi_word_phrase(self):
        assert contains_phrase("make an http request to the api", "http request")

    def test_inflected_forms_match(self):
        assert contains_phrase("filtering active users", "filter")
        assert contains_phrase("emailing the results", "email")
        assert contains_phrase("scheduling it", "schedule")
        assert contains_phrase("mapping the fields", "map")
        assert contains_phrase("converted dates", "convert")
        assert contains_phrase("looping over rows", "loop")
        assert contains_phrase("splitting the rows", "split")
        assert contains_phrase("batches of ten", "batch")

    def test_short_tokens_stay_whole_word(self):
        assert not contains_phrase("it was late", "wa")
        assert not contains_phrase("no ifs", "if")
        assert not contains_phrase("reach out", "each")
        assert not contains_phrase("maple syrup", "map")

    def test_inflected_prompt_keeps_trigger_transforms_and_destinations(self):
        blueprint = extract_blueprint(
            "filtering active users and emailing the results, scheduling it"
        )
        assert blueprint.source.kind == "cron"
        assert _kinds(blueprint.transforms) == ["filter"]
        assert blueprint.transforms[0].config["condition"] == '{{ $json.status === "active" }}'
        assert _kinds(blueprint.destinations) == ["email"]

    def test_inflected_field_rules(self):
        assert extract_mappings("mapped email to contact_email") == [
            {"name": "contact_email", "value": "{{ $json.email }}"}
        ]
        assert extract_split_field("splitting the orders") == "orders"
        assert extract_split_field("looping through contacts") == "contacts"
        assert extract_condition("filtered paid invoices") == DEFAULT_CONDITION
        assert extract_condition("filtering paid orders") == '{{ $json.status === "paid" }}'


class TestSourceExtraction:
    def test_webhook_wins_over_schedule(self):
        blueprint = extract_blueprint(
            "when a webhook arrives every day, log it", rng=random.Random(1)
        )
        assert blueprint.source.kind == "webhook"
        assert blueprint.source.config["httpMethod"] == "POST"
        assert blueprint.source.config["responseMode"] == "responseNode"

    def test_schedule_source(self):
        blueprint = extract_blueprint("every day at 9am send an email to the team")
        assert blueprint.source.kind == "cron"
        assert blueprint.source.config["triggerTimes"] == {
            "item": [{"mode": "everyDay", "hour": 9, "minute": 0}]
        }

    def test_manual_is_default(self):
        blueprint = extract_blueprint("do something")
        assert blueprint.source.kind == "manual"
        assert blueprint.source.config == {}

    def test_webhook_path_uses_injected_random_source(self):
        first = generate_webhook_path(random.Random(42))
        second = generate_webhook_path(random.Random(42))
        assert first == second
        assert first.startswith("/webhook-")
        suffix = first[len("/webhook-"):]
        assert len(suffix) == 9
        assert all(ch in WEBHOOK_SUFFIX_ALPHABET for ch in suffix)


class TestScheduleExtraction:
    def test_daily_with_pm_time(self):
        assert extract_schedule("daily at 5pm") == {
            "item": [{"mode": "everyDay", "hour": 17, "minute": 0}]
        }

    def test_daily_with_24h_time(self):
        assert extract_schedule("every day at 14:30") == {
            "item": [{"mode": "everyDay", "hour": 14, "minute": 30}]
        }

    def test_hourly(self):
        assert extract_schedule("run this hourly") == {
            "item": [{"mode": "everyHour", "minute": 0}]
        }

    def test_named_weekday(self):
        assert extract_schedule("every monday at 8:15am") == {
            "item": [{"mode": "everyWeek", "hour": 8, "minute": 15, "weekday": "1"}]
        }

    def test_weekly_defaults_to_monday_morning(self):
        assert extract_schedule("weekly digest") == {
            "item": [{"mode": "everyWeek", "hour": 9, "minute": 0, "weekday": "1"}]
        }

    def test_unknown_cadence_runs_every_minute(self):
        assert extract_schedule("schedule a sync") == {"item": [{"mode": "everyMinute"}]}


class TestTransformExtraction:
    def test_fixed_category_order(self):
        """Transforms follow filter -> map -> split no matter how the prompt orders them."""
        blueprint = extract_blueprint(
            "split the rows, then convert dates, and only keep paid invoices"
        )
        assert _kinds(blueprint.transforms) == ["filter", "map", "split"]

    def test_no_transforms(self):
        blueprint = extract_blueprint("every day at 9am send an email to the team")
        assert blueprint.transforms == ()

    def test_condition_from_comparison(self):
        assert extract_condition("if status is paid") == '{{ $json.status === "paid" }}'
        assert extract_condition("when priority equals high") == '{{ $json.priority === "high" }}'

    def test_condition_from_record_filter(self):
        assert extract_condition("filter active records") == '{{ $json.status === "active" }}'

    def test_condition_skips_pronouns(self):
        assert extract_condition("if it is urgent") == DEFAULT_CONDITION

    def test_mappings(self):
        assert extract_mappings("map email to contact_email") == [
            {"name": "contact_email", "value": "{{ $json.email }}"}
        ]
        assert extract_mappings("transform the payload") == [
            {"name": "processed_data", "value": "{{ $json }}"}
        ]

    def test_split_field(self):
        assert extract_split_field("for each order send a message") == "order"
        assert extract_split_field("split the rows") == "rows"
        assert extract_split_field("loop") == "items"


class TestDestinationExtraction:
    def test_fallback_http_destination(self):
        blueprint = extract_blueprint("do something")
        assert len(blueprint.destinations) == 1
        destination = blueprint.destinations[0]
        assert destination.kind == "http"
        assert destination.service is None
        assert destination.config == {
            "method": "POST",
            "url": TranslatorConfig.FALLBACK_URL,
            "headers": {},
            "body": "{}",
        }

    def test_crm_destination(self):
        blueprint = extract_blueprint(
            "when a webhook arrives, filter active records and update hubspot contacts"
        )
        assert len(blueprint.destinations) == 1
        assert blueprint.destinations[0].config == {
            "service": "crm",
            "operation": "update",
            "resource": "contact",
        }

    def test_declaration_order(self):
        blueprint = extract_blueprint("post to slack, add a row to the spreadsheet and email me")
        assert [d.service or d.kind for d in blueprint.destinations] == [
            "email", "spreadsheet", "slack",
        ]

    def test_email_literals(self):
        blueprint = extract_blueprint('Email ops@example.com with subject "Daily Report"')
        config = blueprint.destinations[0].config
        assert config["to"] == "ops@example.com"
        assert config["subject"] == "Daily Report"

    def test_email_defaults(self):
        blueprint = extract_blueprint("send an email")
        config = blueprint.destinations[0].config
        assert config["to"] == DEFAULT_RECIPIENT
        assert config["subject"] == TranslatorConfig.notification_subject()

    def test_whatsapp_phone_number(self):
        blueprint = extract_blueprint("send a whatsapp to +1 555 123 4567")
        config = blueprint.destinations[0].config
        assert config["service"] == "whatsapp"
        assert config["phoneNumber"] == "+15551234567"

    def test_whatsapp_not_triggered_by_want(self):
        blueprint = extract_blueprint("i want to send an email")
        assert [d.kind for d in blueprint.destinations] == ["email"]
        assert extract_blueprint("text them on whatsapp").destinations[0].config["phoneNumber"] == DEFAULT_PHONE

    def test_slack_channel_and_sheets_operation(self):
        blueprint = extract_blueprint("update the spreadsheet and post to slack #sales")
        sheets, slack = blueprint.destinations
        assert sheets.config["operation"] == "update"
        assert sheets.config["spreadsheetId"] == "SPREADSHEET_ID_HERE"
        assert slack.config["channel"] == "#sales"


class TestMetadataExtraction:
    def test_name_is_first_six_words_capitalized(self):
        assert extract_workflow_name("every day at 9am send an email to the team") == (
            "Every day at 9am send an"
        )

    def test_name_uses_first_sentence(self):
        assert extract_workflow_name("sync leads. then notify sales") == "Sync leads"

    def test_empty_prompt_name(self):
        assert extract_workflow_name("") == "Untitled Workflow"

    def test_description_truncation(self):
        long_prompt = "x" * 150
        description = extract_workflow_description(long_prompt)
        assert len(description) == 100
        assert description.endswith("...")
        assert extract_workflow_description("short") == "short"

    def test_tags(self):
        blueprint = extract_blueprint(
            "when a webhook arrives, filter active records and update hubspot contacts"
        )
        assert blueprint.metadata.tags == ["ai-generated", "webhook", "conditional", "crm"]

        blueprint = extract_blueprint("every day at 9am send an email to the team")
        assert blueprint.metadata.tags == ["ai-generated", "scheduled", "email"]


def test_extraction_never_raises_on_odd_input():
    for prompt in ["", "   ", "!!!", "🤖🤖🤖", "at 99:99 every"]:
        blueprint = extract_blueprint(prompt)
        assert blueprint.destinations
        assert blueprint.source.kind in {"webhook", "cron", "manual"}
