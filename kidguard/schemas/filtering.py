"""Filtering request schemas."""

from pydantic import BaseModel, ConfigDict, Field

from ..core.types import AgeGroup, FilterContext


class ContextFields(BaseModel):
    """Optional educational context carried with a request."""

    model_config = ConfigDict(populate_by_name=True)

    subject: str | None = Field(default=None, max_length=200)
    learning_objective: str | None = Field(
        default=None, alias="learningObjective", max_length=500
    )

    def filter_context(self) -> FilterContext:
        return FilterContext(
            subject=self.subject, learning_objective=self.learning_objective
        )


class ChatRequest(ContextFields):
    """Chat message from a child."""

    message: str = Field(..., min_length=1, max_length=8000)
    # Unknown values are ignored so the profile can still supply the band
    age_group: str | None = Field(default=None, alias="ageGroup")
    validate_language: bool = Field(default=False, alias="validateLanguage")


class LessonStartRequest(BaseModel):
    """Topic/subject selection before a lesson starts."""

    model_config = ConfigDict(populate_by_name=True)

    topic: str | None = Field(default=None, max_length=200)
    subject: str | None = Field(default=None, max_length=200)
    age_group: str | None = Field(default=None, alias="ageGroup")


class FilterRequest(ContextFields):
    """Direct safety-stage request."""

    text: str = Field(..., max_length=50000)
    age_group: AgeGroup = Field(..., alias="ageGroup")


class ValidateLanguageRequest(ContextFields):
    """Direct readability-stage request."""

    text: str = Field(..., max_length=50000)
    age_group: AgeGroup = Field(..., alias="ageGroup")
