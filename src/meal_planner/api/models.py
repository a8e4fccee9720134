"""Pydantic models for API request payloads."""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from meal_planner.domain.recipes import Recipe, parse_tags


class ApiModel(BaseModel):
    """Accepts camelCase or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecipePayload(ApiModel):
    """Recipe the user is currently cooking."""

    id: str = "current"
    title: str = Field(min_length=1)
    ingredients: str = ""
    instructions: str = ""
    tags: list[str] = Field(default_factory=list)

    def to_recipe(self) -> Recipe:
        return Recipe(
            id=self.id,
            title=self.title,
            ingredients=self.ingredients,
            instructions=self.instructions,
            tags=parse_tags(self.tags),
        )


class AssistantRequest(ApiModel):
    """Spoken or typed assistant command."""

    command: str = Field(min_length=1, max_length=500)
    user_id: str | None = None
    recipe: RecipePayload | None = None
    unit_system: Literal["imperial", "metric"] = "imperial"
    current_step: int = Field(default=0, ge=0)


class RecipeGenerationRequest(ApiModel):
    """Free-text request for a new recipe."""

    prompt: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=1000)
    ]
    user_id: str | None = None
