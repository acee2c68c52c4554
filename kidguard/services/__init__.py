"""
KidGuard Services Module
========================

The filtering engine, leaves first:
- complexity_analyzer.py: readability metrics
- violation_scanner.py: per-category safety passes
- content_rewriter.py: substitution and sentence splitting
- content_filter.py: safety stage
- language_validation.py: readability stage
- response_generator.py: client for the external AI generator
"""

from .complexity_analyzer import ComplexityAnalyzer
from .content_filter import ContentFilterService, get_content_filter_service
from .content_rewriter import ContentRewriter
from .language_validation import (
    LanguageValidationService,
    get_language_validation_service,
)
from .violation_scanner import ViolationScanner

__all__ = [
    "ComplexityAnalyzer",
    "ContentFilterService",
    "ContentRewriter",
    "LanguageValidationService",
    "ViolationScanner",
    "get_content_filter_service",
    "get_language_validation_service",
]
