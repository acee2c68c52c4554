"""
Integration tests for the HTTP filtering pipeline.

Exercises the FastAPI app end to end with a stub AI response generator:
- input gate (block, clean, missing age group)
- response filter (redirects, readability adjustment)
- lesson access checks
- direct content endpoints, stats and health
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from kidguard.api.filter_gate import (
    GENERAL_REDIRECT_MESSAGE,
    SAFETY_REDIRECT_MESSAGE,
    FilterGate,
    create_filter_gate,
)
from kidguard.api.main import create_app
from kidguard.core.exceptions import ResponseGeneratorError
from kidguard.services.content_filter import ContentFilterService

pytestmark = pytest.mark.integration

CHAT = "/api/v1/chat"

LONG_SENTENCE = (
    "This is a very long sentence that has many words and keeps going on "
    "and on without any breaks, which makes it hard to read."
)


class FailingGenerator:
    async def generate(self, message, age_group, context):
        raise ResponseGeneratorError("AI generator request failed: connection refused")


class TestChatInput:
    """Input side of the chat pipeline."""

    def test_blocked_message_never_reaches_generator(self, client, stub_generator):
        """An inappropriate message is rejected with 400."""
        response = client.post(CHAT, json={"message": "I will fight you", "ageGroup": "ages6to9"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "inappropriate_content"
        assert data["ageGroup"] == "ages6to9"
        assert data["violations"][0]["type"] == "violence"
        assert stub_generator.calls == []

    def test_clean_message(self, client, stub_generator):
        """A clean message is answered and the reply passes the filter."""
        response = client.post(
            CHAT, json={"message": "What do plants need?", "ageGroup": "ages6to9"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["content"] == "Plants need sun and water to grow."
        assert data["ageGroup"] == "ages6to9"
        assert data["filtered"] is False
        assert data["ageAppropriate"] is True
        assert data["filterConfidence"] == 1.0
        assert stub_generator.calls[0][0] == "What do plants need?"

    def test_mild_profanity_is_softened_before_generation(self, client, stub_generator):
        """The generator only ever sees the filtered message."""
        response = client.post(
            CHAT, json={"message": "This homework is stupid", "ageGroup": "ages6to9"}
        )

        assert response.status_code == 200
        assert stub_generator.calls[0][0] == "This homework is silly"

    def test_context_is_forwarded(self, client, stub_generator):
        """Subject and learning objective reach the generator."""
        client.post(
            CHAT,
            json={
                "message": "How do I save money?",
                "ageGroup": "ages6to9",
                "subject": "Math",
                "learningObjective": "Counting coins",
            },
        )

        _, age_group, context = stub_generator.calls[0]
        assert age_group.value == "ages6to9"
        assert context.subject == "Math"
        assert context.learning_objective == "Counting coins"

    def test_age_group_from_query_string(self, client):
        """The query string is the last place the age group is looked up."""
        response = client.post(f"{CHAT}?ageGroup=ages10to13", json={"message": "Hello!"})

        assert response.json()["ageGroup"] == "ages10to13"

    def test_missing_age_group_passes_through(self, client, stub_generator):
        """Without an age group the gate cannot decide and lets traffic through."""
        stub_generator.reply = "I will fight you"

        response = client.post(CHAT, json={"message": "I will fight you"})

        assert response.status_code == 200
        data = response.json()
        assert data["content"] == "I will fight you"
        assert data["ageGroup"] is None
        assert "filterConfidence" not in data
        assert stub_generator.calls[0][0] == "I will fight you"

    def test_empty_message_is_rejected(self, client):
        """Request validation happens before filtering."""
        response = client.post(CHAT, json={"message": "", "ageGroup": "ages6to9"})

        assert response.status_code == 422


class TestChatResponse:
    """Output side of the chat pipeline."""

    def test_unsafe_reply_is_redirected(self, client, stub_generator):
        """Violent replies are replaced by the safety redirect."""
        stub_generator.reply = "I will fight you"

        data = client.post(CHAT, json={"message": "Hi", "ageGroup": "ages10to13"}).json()

        assert data["content"] == SAFETY_REDIRECT_MESSAGE
        assert data["filtered"] is True
        assert data["ageAppropriate"] is False
        assert data["filterViolations"][0]["severity"] == "high"

    def test_profane_reply_gets_general_redirect(self, client, stub_generator):
        stub_generator.reply = "That is shit."

        data = client.post(CHAT, json={"message": "Hi", "ageGroup": "ages14to16"}).json()

        assert data["content"] == GENERAL_REDIRECT_MESSAGE

    def test_softened_reply_has_warnings(self, client, stub_generator):
        stub_generator.reply = "That is a stupid idea."

        data = client.post(CHAT, json={"message": "Hi", "ageGroup": "ages14to16"}).json()

        assert data["content"] == "That is a silly idea."
        assert data["filtered"] is True
        assert data["filterWarnings"] == ["Inappropriate language detected: stupid"]

    def test_language_validation_on_request(self, client, stub_generator):
        """validateLanguage adds readability fields and adjusts the reply."""
        stub_generator.reply = LONG_SENTENCE

        data = client.post(
            CHAT,
            json={"message": "Tell me a story", "ageGroup": "ages6to9", "validateLanguage": True},
        ).json()

        assert data["languageAdjusted"] is True
        assert data["complexityLevel"] == "medium"
        assert data["readabilityScore"] == pytest.approx(79.94)
        assert data["content"].startswith("This is a very long sentence that has many words.")

    def test_generator_failure_is_bad_gateway(self, stub_generator):
        app = create_app(gate=create_filter_gate(), generator=FailingGenerator())

        with TestClient(app) as client:
            response = client.post(CHAT, json={"message": "Hi", "ageGroup": "ages10to13"})

        assert response.status_code == 502
        assert response.json()["error"] == "AI_GENERATOR_ERROR"


class TestStrictMode:
    """Strict mode blocks on internal faults."""

    def test_filter_fault_blocks_input(self, stub_generator):
        service = MagicMock(spec=ContentFilterService)
        service.filter_content.side_effect = RuntimeError("engine offline")
        service.filtering_stats.return_value = {"patternsLoaded": 0}
        app = create_app(
            gate=FilterGate(service=service, mode="strict"), generator=stub_generator
        )

        with TestClient(app) as client:
            response = client.post(CHAT, json={"message": "Hi", "ageGroup": "ages6to9"})

        assert response.status_code == 500
        assert response.json()["error"] == "content_filtering_error"
        assert stub_generator.calls == []


class TestLessons:
    """Topic access checks."""

    def test_inappropriate_topic_is_denied(self, client):
        response = client.post(
            "/api/v1/lessons/start", json={"topic": "alcohol", "ageGroup": "ages10to13"}
        )

        assert response.status_code == 403
        assert response.json()["error"] == "age_inappropriate_topic"
        assert response.json()["blockedContent"] == "alcohol"

    def test_same_topic_allowed_for_teens(self, client):
        response = client.post(
            "/api/v1/lessons/start", json={"topic": "alcohol", "ageGroup": "ages14to16"}
        )

        assert response.status_code == 200
        assert response.json()["started"] is True

    def test_regular_lesson(self, client):
        response = client.post(
            "/api/v1/lessons/start",
            json={"topic": "fractions", "subject": "math", "ageGroup": "ages6to9"},
        )

        assert response.json() == {
            "started": True,
            "topic": "fractions",
            "subject": "math",
            "ageGroup": "ages6to9",
        }


class TestContentEndpoints:
    """Direct access to the safety and readability stages."""

    def test_filter(self, client):
        response = client.post(
            "/api/v1/content/filter",
            json={"text": "Math is stupid and boring. I hate it!", "ageGroup": "ages6to9"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["filteredContent"] == "Math is silly and not exciting. I dislike it!"
        assert data["isAppropriate"] is True
        assert data["confidence"] == pytest.approx(0.8)
        assert len(data["violations"]) == 3

    def test_filter_with_context(self, client):
        data = client.post(
            "/api/v1/content/filter",
            json={"text": "Tell me about the war", "ageGroup": "ages10to13", "subject": "History"},
        ).json()

        assert data["isAppropriate"] is True

    def test_unknown_age_group_is_rejected(self, client):
        response = client.post(
            "/api/v1/content/filter", json={"text": "Hello", "ageGroup": "adults"}
        )

        assert response.status_code == 422

    def test_validate(self, client):
        response = client.post(
            "/api/v1/content/validate",
            json={
                "text": "We went to the park and we saw a dog and a cat and a bird and a frog.",
                "ageGroup": "ages6to9",
                "subject": "Science",
            },
        )

        data = response.json()
        assert data["isAppropriate"] is True
        assert data["complexityLevel"] == "very_easy"
        assert data["adjustedContent"] == (
            "We went to the park and we saw a dog. A cat and a bird and a frog."
        )
        assert data["metrics"]["wordCount"] == 19

    def test_stats(self, client):
        data = client.get("/api/v1/content/stats").json()

        assert data["mode"] == "permissive"
        assert data["ageGroupsSupported"] == 3
        assert data["patternsLoaded"] > 0


class TestHealthAndHeaders:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Process-Time" in response.headers

    def test_request_id_is_generated(self, client):
        assert client.get("/health").headers["X-Request-ID"]

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "trace-42"})

        assert response.headers["X-Request-ID"] == "trace-42"
