"""Recipe generation using LLM structured outputs."""

import asyncio
import logging
from dataclasses import dataclass

from meal_planner.domain.assistant import GeneratedRecipe, RecipeGenerationResult
from meal_planner.domain.errors import ConfigurationError
from meal_planner.services.assistant import TextCompletionClient

_logger = logging.getLogger(__name__)

_NULLABLE_STRING = {"anyOf": [{"type": "string"}, {"type": "null"}]}


def _nullable_integer(minimum: int) -> dict[str, object]:
    return {"anyOf": [{"type": "integer", "minimum": minimum}, {"type": "null"}]}


RECIPE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "summary": _NULLABLE_STRING,
        "ingredients": {"type": "array", "items": {"type": "string"}},
        "instructions": {"type": "array", "items": {"type": "string"}},
        "prep_time": _nullable_integer(0),
        "cook_time": _nullable_integer(0),
        "servings": _nullable_integer(1),
        "cuisine": _NULLABLE_STRING,
        "course": _NULLABLE_STRING,
        "tags": {"type": "array", "items": {"type": "string"}},
        "calories": {"anyOf": [{"type": "number", "minimum": 0}, {"type": "null"}]},
    },
    "required": [
        "title",
        "summary",
        "ingredients",
        "instructions",
        "prep_time",
        "cook_time",
        "servings",
        "cuisine",
        "course",
        "tags",
        "calories",
    ],
    "additionalProperties": False,
}

FAILURE_MESSAGE = (
    "Sorry, I couldn't generate a recipe right now. "
    "Please try again in a moment or rephrase your request."
)


@dataclass
class RecipeGenerationService:
    """Service that prompts for a recipe and validates the result."""

    client: TextCompletionClient | None
    timeout_seconds: float = 30.0

    async def generate(self, prompt: str) -> RecipeGenerationResult:
        """Generate a recipe for a free-text request."""
        if self.client is None:
            raise ConfigurationError("OpenAI API key is not configured")
        request = prompt.strip()
        if not request:
            raise ValueError("Recipe prompt must not be empty")

        instructions = (
            "You are a creative chef. Generate a realistic recipe that home "
            f"cooks can achieve for this request: {request}\n"
            "List each ingredient with its quantity, give step-by-step "
            "instructions, times in minutes, a short summary, the cuisine, "
            "the course (breakfast, appetizer, main, side, dessert), a few "
            "descriptive tags, and estimated calories per serving."
        )
        try:
            raw = await asyncio.wait_for(
                self.client.complete_json(
                    instructions, schema=RECIPE_SCHEMA, name="generated_recipe"
                ),
                timeout=self.timeout_seconds,
            )
            recipe = GeneratedRecipe.model_validate(raw)
        except Exception as exc:
            _logger.warning("Recipe generation failed: %s", exc)
            return RecipeGenerationResult(recipe=None, message=FAILURE_MESSAGE)

        _logger.info("Recipe generated: title=%s", recipe.title)
        return RecipeGenerationResult(
            recipe=recipe, message=f"Here's a recipe for {recipe.title}."
        )
