"""Pydantic request schemas."""

from .filtering import (
    ChatRequest,
    ContextFields,
    FilterRequest,
    LessonStartRequest,
    ValidateLanguageRequest,
)

__all__ = [
    "ChatRequest",
    "ContextFields",
    "FilterRequest",
    "LessonStartRequest",
    "ValidateLanguageRequest",
]
