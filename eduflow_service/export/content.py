"""Pydantic shapes for generated study content.

Content is validated against the artifact kind before it reaches a
serializer and is never repaired: invalid content is an error.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from eduflow_service.errors import InvalidArtifactContentError
from eduflow_service.export.types import ArtifactKind

# -- Flashcards ---------------------------------------------------------------


class Flashcard(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str = Field(..., alias="front")
    answer: str = Field(..., alias="back")
    hint: str | None = None
    tags: list[str] = Field(default_factory=list)
    difficulty: str | None = Field(None, description="e.g. easy, medium, hard")


# -- Quiz ---------------------------------------------------------------------


class QuizQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    options: list[str] = Field(..., min_length=2)
    correct_index: int = Field(..., ge=0, alias="correctIndex")
    explanation: str | None = None

    @model_validator(mode="after")
    def _correct_index_in_range(self) -> QuizQuestion:
        if self.correct_index >= len(self.options):
            raise ValueError(
                f"correct_index {self.correct_index} out of range for {len(self.options)} options"
            )
        return self


# -- Slides -------------------------------------------------------------------


class SlideEntry(BaseModel):
    title: str
    bullets: list[str] = Field(default_factory=list)


_ADAPTERS: dict[ArtifactKind, TypeAdapter[Any]] = {
    ArtifactKind.NOTES: TypeAdapter(str),
    ArtifactKind.FLASHCARDS: TypeAdapter(list[Flashcard]),
    ArtifactKind.QUIZ: TypeAdapter(list[QuizQuestion]),
    ArtifactKind.SLIDES: TypeAdapter(list[SlideEntry]),
}


def parse_artifact_content(kind: ArtifactKind, raw: Any) -> Any:
    """Validate ``raw`` against the shape for ``kind`` and return typed content."""
    try:
        return _ADAPTERS[kind].validate_python(raw)
    except ValidationError as e:
        raise InvalidArtifactContentError(
            f"{kind.value} content is malformed ({e.error_count()} validation errors)"
        ) from e
