import asyncio

import pytest

from meal_planner.domain.errors import ConfigurationError
from meal_planner.services.recipe_generation import (
    FAILURE_MESSAGE,
    RecipeGenerationService,
)
from tests.conftest import FakeCompletionClient

RECIPE_PAYLOAD = {
    "title": "Chilled Cucumber Soup",
    "summary": "A no-cook soup for hot days.",
    "ingredients": ["2 cucumbers", "1 cup yogurt", "1 clove garlic"],
    "instructions": ["Blend everything.", "Chill for an hour."],
    "prep_time": 10,
    "cook_time": None,
    "servings": 2,
    "cuisine": "Greek",
    "course": "appetizer",
    "tags": ["no-cook", "chilled"],
    "calories": 180,
}


def test_generate_validates_structured_output() -> None:
    client = FakeCompletionClient(json_payload=RECIPE_PAYLOAD)
    service = RecipeGenerationService(client=client)

    result = asyncio.run(service.generate("  something cold for a heatwave "))

    assert result.recipe is not None
    assert result.recipe.title == "Chilled Cucumber Soup"
    assert result.recipe.cook_time is None
    assert result.message == "Here's a recipe for Chilled Cucumber Soup."
    prompt, name = client.prompts[0]
    assert name == "generated_recipe"
    assert "something cold for a heatwave" in prompt


def test_generate_returns_failure_message_on_client_error() -> None:
    service = RecipeGenerationService(client=FakeCompletionClient())

    result = asyncio.run(service.generate("pasta"))

    assert result.recipe is None
    assert result.message == FAILURE_MESSAGE


def test_generate_rejects_invalid_payload() -> None:
    payload = {**RECIPE_PAYLOAD, "servings": 0}
    service = RecipeGenerationService(client=FakeCompletionClient(json_payload=payload))

    result = asyncio.run(service.generate("pasta"))

    assert result.recipe is None
    assert result.message == FAILURE_MESSAGE


def test_generate_requires_client() -> None:
    service = RecipeGenerationService(client=None)

    with pytest.raises(ConfigurationError):
        asyncio.run(service.generate("pasta"))


def test_generate_requires_prompt() -> None:
    service = RecipeGenerationService(client=FakeCompletionClient())

    with pytest.raises(ValueError):
        asyncio.run(service.generate("   "))
