"""
Shared test fixtures.

Environment variables are set before any kidguard module is imported so
the settings object and logging pick up the test configuration.
"""

import os

import pytest
from fastapi.testclient import TestClient

# Set test environment BEFORE importing modules
os.environ["ENVIRONMENT"] = "test"
os.environ["FILTER_MODE"] = "permissive"
os.environ["LOG_LEVEL"] = "DEBUG"

# Import after environment setup
from kidguard.api.filter_gate import FilterGate, create_filter_gate
from kidguard.api.main import create_app
from kidguard.core.policy import PolicyTables
from kidguard.core.types import AgeGroup, FilterContext
from kidguard.services.complexity_analyzer import ComplexityAnalyzer
from kidguard.services.content_filter import ContentFilterService
from kidguard.services.content_rewriter import ContentRewriter
from kidguard.services.language_validation import LanguageValidationService
from kidguard.services.violation_scanner import ViolationScanner

# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line(
        "markers", "integration: Integration tests (HTTP pipeline, stub generator)"
    )


ALL_AGE_GROUPS = list(AgeGroup)

# =============================================================================
# ENGINE FIXTURES
# =============================================================================


@pytest.fixture(scope="session")
def tables() -> PolicyTables:
    return PolicyTables.default()


@pytest.fixture
def analyzer(tables) -> ComplexityAnalyzer:
    return ComplexityAnalyzer(tables)


@pytest.fixture
def scanner(tables) -> ViolationScanner:
    return ViolationScanner(tables)


@pytest.fixture
def rewriter(tables) -> ContentRewriter:
    return ContentRewriter(tables)


@pytest.fixture
def filter_service(tables) -> ContentFilterService:
    return ContentFilterService(tables)


@pytest.fixture
def language_service(tables) -> LanguageValidationService:
    return LanguageValidationService(tables)


@pytest.fixture
def gate(filter_service, language_service) -> FilterGate:
    return FilterGate(service=filter_service, language_service=language_service)


@pytest.fixture
def strict_gate(filter_service, language_service) -> FilterGate:
    return FilterGate(
        service=filter_service, language_service=language_service, mode="strict"
    )


@pytest.fixture
def math_context() -> FilterContext:
    return FilterContext(subject="Mathematics", learning_objective="Counting coins")


# =============================================================================
# HTTP FIXTURES
# =============================================================================


class StubGenerator:
    """Response generator that records calls and returns a canned reply."""

    def __init__(self, reply: str = "Plants need sun and water to grow."):
        self.reply = reply
        self.calls: list[tuple[str, AgeGroup | None, FilterContext]] = []

    async def generate(self, message, age_group, context) -> str:
        self.calls.append((message, age_group, context))
        return self.reply


@pytest.fixture
def stub_generator() -> StubGenerator:
    return StubGenerator()


@pytest.fixture
def app(stub_generator):
    return create_app(gate=create_filter_gate(), generator=stub_generator)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
