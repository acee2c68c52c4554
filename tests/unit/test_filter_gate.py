"""Unit tests for the request/response filter gate."""

import json
import logging
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from kidguard.api.filter_gate import (
    GENERAL_REDIRECT_MESSAGE,
    SAFETY_REDIRECT_MESSAGE,
    STRICT_FALLBACK_MESSAGE,
    FilterGate,
    GateRequest,
    create_filter_gate,
    redirect_message,
)
from kidguard.core.config import settings
from kidguard.core.types import (
    AgeGroup,
    ContentFilterResult,
    Severity,
    Violation,
    ViolationType,
)
from kidguard.services.content_filter import ContentFilterService

pytestmark = pytest.mark.unit

A6, A10, A14 = AgeGroup.AGES_6_TO_9, AgeGroup.AGES_10_TO_13, AgeGroup.AGES_14_TO_16

LONG_SENTENCE = (
    "This is a very long sentence that has many words and keeps going on "
    "and on without any breaks, which makes it hard to read."
)


def broken_service() -> Mock:
    service = Mock(spec=ContentFilterService)
    service.filter_content.side_effect = RuntimeError("engine offline")
    return service


class TestAgeResolution:
    def test_explicit_value_wins(self):
        request = GateRequest(
            body={"ageGroup": "ages10to13"},
            query={"ageGroup": "ages14to16"},
            age_group="ages6to9",
            user={"age_group": "ages10to13"},
        )

        assert request.resolve_age_group() is A6

    def test_profile_before_body(self):
        request = GateRequest(
            body={"ageGroup": "ages6to9"}, user=SimpleNamespace(age_group="ages14to16")
        )

        assert request.resolve_age_group() is A14

    def test_profile_mapping_with_camel_case_key(self):
        request = GateRequest(user={"ageGroup": "ages10to13"})

        assert request.resolve_age_group() is A10

    def test_body_before_query(self):
        request = GateRequest(body={"ageGroup": "ages10to13"}, query={"ageGroup": "ages6to9"})

        assert request.resolve_age_group() is A10

    def test_invalid_values_are_skipped(self):
        request = GateRequest(
            body={"ageGroup": "adults"}, query={"ageGroup": "ages14to16"}, age_group=7
        )

        assert request.resolve_age_group() is A14

    def test_nothing_resolves_to_none(self):
        assert GateRequest().resolve_age_group() is None

    def test_context_comes_from_body(self):
        request = GateRequest(body={"subject": "History", "learningObjective": "Rome"})

        assert request.context.subject == "History"
        assert request.context.learning_objective == "Rome"


class TestUserInput:
    def test_message_is_replaced_with_filtered_text(self, gate):
        request = GateRequest(body={"message": "This homework is stupid"}, age_group=A6)

        decision = gate.filter_user_input(request)

        assert decision.allowed is True
        assert request.body["message"] == "This homework is silly"
        assert isinstance(request.state["content_filter"], ContentFilterResult)

    def test_inappropriate_message_is_blocked(self, gate):
        request = GateRequest(body={"message": "I will fight you"}, age_group=A6)

        decision = gate.filter_user_input(request)

        assert decision.allowed is False
        assert decision.status_code == 400
        assert decision.payload["error"] == "inappropriate_content"
        assert decision.payload["ageGroup"] == "ages6to9"
        assert decision.payload["violations"] == [
            {
                "type": "violence",
                "severity": "high",
                "description": "Threatening or harmful language detected",
            }
        ]
        assert request.body["message"] == "I will fight you"
        assert "content_filter" not in request.state

    def test_violations_hidden_when_warnings_disabled(self, filter_service):
        quiet = FilterGate(service=filter_service, include_warnings=False)

        decision = quiet.filter_user_input(
            GateRequest(body={"message": "I will fight you"}, age_group=A6)
        )

        assert decision.status_code == 400
        assert "violations" not in decision.payload

    def test_missing_message_passes(self, gate):
        assert gate.filter_user_input(GateRequest(body={}, age_group=A6)).allowed is True

    def test_missing_age_group_passes_with_warning(self, gate, caplog):
        request = GateRequest(body={"message": "I will fight you"})

        with caplog.at_level(logging.WARNING, logger="kidguard.api.filter_gate"):
            decision = gate.filter_user_input(request)

        assert decision.allowed is True
        assert request.body["message"] == "I will fight you"
        assert "No age group available" in caplog.text

    def test_internal_error_permissive_allows(self):
        gate = FilterGate(service=broken_service())
        request = GateRequest(body={"message": "Hello"}, age_group=A10)

        decision = gate.filter_user_input(request)

        assert decision.allowed is True
        assert request.body["message"] == "Hello"

    def test_internal_error_strict_blocks(self):
        gate = FilterGate(service=broken_service(), mode="strict")

        decision = gate.filter_user_input(
            GateRequest(body={"message": "Hello"}, age_group=A10)
        )

        assert decision.allowed is False
        assert decision.status_code == 500
        assert decision.payload == {
            "error": "content_filtering_error",
            "message": "Unable to process your message right now. Please try again.",
            "ageGroup": "ages10to13",
        }

    def test_decision_renders_json_response(self, gate):
        decision = gate.filter_user_input(
            GateRequest(body={"message": "I will fight you"}, age_group=A6)
        )

        response = decision.to_response()

        assert response.status_code == 400
        assert json.loads(response.body)["error"] == "inappropriate_content"


class TestResponseFilter:
    def test_clean_response(self, gate):
        response_filter = gate.filter_ai_response(GateRequest(age_group=A10))

        output = response_filter.apply({"content": "Plants need sun and water to grow."})

        assert output["content"] == "Plants need sun and water to grow."
        assert output["filtered"] is False
        assert output["ageAppropriate"] is True
        assert output["filterConfidence"] == 1.0
        assert "filterWarnings" not in output

    def test_softened_response_carries_warnings(self, gate):
        output = gate.filter_ai_response(GateRequest(age_group=A14)).apply(
            {"content": "That is a stupid idea.", "model": "stub"}
        )

        assert output["content"] == "That is a silly idea."
        assert output["filtered"] is True
        assert output["model"] == "stub"
        assert output["filterWarnings"] == ["Inappropriate language detected: stupid"]

    def test_unsafe_response_gets_safety_redirect(self, gate):
        output = gate.filter_ai_response(GateRequest(age_group=A10)).apply(
            {"content": "I will fight you"}
        )

        assert output["content"] == SAFETY_REDIRECT_MESSAGE
        assert output["filtered"] is True
        assert output["ageAppropriate"] is False
        assert output["filterViolations"][0]["type"] == "violence"
        assert output["filterViolations"][0]["originalText"] in "I will fight you"

    def test_profane_response_gets_general_redirect(self, gate):
        output = gate.filter_ai_response(GateRequest(age_group=A14)).apply(
            {"content": "That is shit."}
        )

        assert output["content"] == GENERAL_REDIRECT_MESSAGE

    def test_language_validation_adjusts_content(self, gate):
        response_filter = gate.filter_ai_response(
            GateRequest(age_group=A6), validate_language=True
        )

        output = response_filter.apply({"content": LONG_SENTENCE})

        assert output["ageAppropriate"] is True
        assert output["languageAdjusted"] is True
        assert output["filtered"] is True
        assert output["complexityLevel"] == "medium"
        assert output["readabilityScore"] == pytest.approx(79.94)
        assert output["content"].startswith(
            "This is a very long sentence that has many words."
        )

    def test_non_text_payload_is_untouched(self, gate):
        payload = {"content": {"cards": []}}

        assert gate.filter_ai_response(GateRequest(age_group=A6)).apply(payload) is payload

    def test_missing_age_group_is_untouched(self, gate, caplog):
        payload = {"content": "I will fight you"}

        with caplog.at_level(logging.WARNING, logger="kidguard.api.filter_gate"):
            response_filter = gate.filter_ai_response(GateRequest())

        assert response_filter.apply(payload) is payload
        assert "No age group available" in caplog.text

    def test_error_permissive_returns_payload(self):
        gate = FilterGate(service=broken_service())
        payload = {"content": "anything"}

        assert gate.filter_ai_response(GateRequest(age_group=A6)).apply(payload) is payload

    def test_error_strict_returns_fallback(self):
        gate = FilterGate(service=broken_service(), mode="strict")

        output = gate.filter_ai_response(GateRequest(age_group=A6)).apply(
            {"content": "anything"}
        )

        assert output["content"] == STRICT_FALLBACK_MESSAGE
        assert output["filterError"] is True
        assert output["ageAppropriate"] is False


class TestAccessValidation:
    def test_substance_topic_denied_for_middle_band(self, gate):
        decision = gate.validate_age_appropriate_access(
            GateRequest(body={"topic": "alcohol"}, age_group=A10)
        )

        assert decision.status_code == 403
        assert decision.payload["error"] == "age_inappropriate_topic"
        assert decision.payload["blockedContent"] == "alcohol"
        assert decision.payload["ageGroup"] == "ages10to13"

    def test_substance_topic_allowed_for_teens(self, gate):
        decision = gate.validate_age_appropriate_access(
            GateRequest(body={"topic": "alcohol"}, age_group=A14)
        )

        assert decision.allowed is True

    def test_ordinary_lesson_allowed(self, gate):
        decision = gate.validate_age_appropriate_access(
            GateRequest(body={"topic": "fractions", "subject": "math"}, age_group=A6)
        )

        assert decision.allowed is True

    def test_nothing_requested_passes(self, gate):
        assert gate.validate_age_appropriate_access(GateRequest(age_group=A6)).allowed

    def test_error_strict_blocks(self):
        gate = FilterGate(service=broken_service(), mode="strict")

        decision = gate.validate_age_appropriate_access(
            GateRequest(body={"topic": "volcanoes"}, age_group=A6)
        )

        assert decision.status_code == 500


def test_redirect_message_prefers_blocking_violations():
    result = ContentFilterResult(
        is_appropriate=False,
        filtered_content="",
        violations=(
            Violation(ViolationType.ADULT_TOPICS, Severity.MEDIUM, "topic", "war"),
            Violation(ViolationType.INAPPROPRIATE_LANGUAGE, Severity.HIGH, "lang", "shit"),
        ),
    )

    assert redirect_message(result) == GENERAL_REDIRECT_MESSAGE


def test_redirect_message_without_high_violations():
    result = ContentFilterResult(
        is_appropriate=False,
        filtered_content="",
        violations=(Violation(ViolationType.ADULT_TOPICS, Severity.MEDIUM, "topic", "war"),),
    )

    assert redirect_message(result) == SAFETY_REDIRECT_MESSAGE


def test_unknown_mode_is_rejected():
    with pytest.raises(ValueError):
        FilterGate(mode="lenient")


def test_violation_logging_can_be_disabled(filter_service, caplog):
    quiet = FilterGate(service=filter_service, log_violations=False)

    with caplog.at_level(logging.WARNING, logger="kidguard.api.filter_gate"):
        quiet.filter_user_input(GateRequest(body={"message": "You are stupid"}, age_group=A14))

    assert "User input violations" not in caplog.text


def test_stats(gate):
    stats = gate.stats()

    assert stats["mode"] == "permissive"
    assert stats["ageGroupsSupported"] == 3
    assert stats["includeWarnings"] is True


class TestFactory:
    def test_services_share_tables(self):
        gate = create_filter_gate()

        assert gate.service.tables is gate.language_service.tables
        assert gate.mode == settings.FILTER_MODE

    def test_explicit_arguments_override_settings(self):
        gate = create_filter_gate(mode="strict", log_violations=False, include_warnings=False)

        assert gate.strict is True
        assert gate.log_violations_enabled is False
        assert gate.include_warnings is False

    def test_policy_tables_path_is_honoured(self, tmp_path, monkeypatch):
        overlay = tmp_path / "tables.json"
        overlay.write_text(json.dumps({"profanity": {"bogus": "high"}}))
        monkeypatch.setattr(settings, "POLICY_TABLES_PATH", str(overlay))

        gate = create_filter_gate()

        assert gate.service.tables.source == str(overlay)
        result = gate.service.filter_content("That is bogus", A14)
        assert result.is_appropriate is False
