"""Models for assistant replies and LLM-generated recipes."""

from dataclasses import dataclass, field

from pydantic import BaseModel, Field


class GeneratedRecipe(BaseModel):
    """Structured recipe returned by the completion model."""

    title: str = Field(min_length=1)
    summary: str | None = None
    ingredients: list[str]
    instructions: list[str]
    prep_time: int | None = Field(default=None, ge=0)
    cook_time: int | None = Field(default=None, ge=0)
    servings: int | None = Field(default=None, ge=1)
    cuisine: str | None = None
    course: str | None = None
    tags: list[str] = Field(default_factory=list)
    calories: float | None = Field(default=None, ge=0)


@dataclass(frozen=True)
class RecipeGenerationResult:
    """Outcome of a generation request; ``recipe`` is None on failure."""

    recipe: GeneratedRecipe | None
    message: str


@dataclass(frozen=True)
class AssistantReply:
    """Spoken/written response from the cooking assistant."""

    text: str
    intent: str
    fallback: bool = False
    timer_minutes: int | None = None
    timer_label: str | None = None
    items: list[str] = field(default_factory=list)
    unit_system: str | None = None
    step: int | None = None
