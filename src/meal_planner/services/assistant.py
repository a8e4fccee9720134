"""Hands-free cooking assistant: command routing and LLM answers."""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from meal_planner.domain.assistant import AssistantReply
from meal_planner.domain.recipes import Recipe

_logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are Chef Assistant, a helpful AI cooking companion designed to help "
    "people while they cook. You are especially helpful when someone has dirty "
    "hands and needs voice assistance. Keep responses concise but informative, "
    "ideal for speaking aloud. You can help with cooking techniques and tips, "
    "ingredient substitutions, recipe modifications, food safety advice, timing "
    "and temperature guidance, kitchen equipment questions and dietary "
    "alternatives. Keep responses under 100 words when possible, and always "
    "prioritize food safety. Be encouraging and friendly."
)

HELP_TEXT = (
    "I'm your cooking assistant! I can help with timers, reading recipes, "
    "unit conversions, and cooking tips. What would you like help with?"
)
MISSING_KEY_TEXT = (
    "I need an OpenAI API key to help you. "
    "Please configure your API key in Settings."
)
BUSY_TEXT = "I'm experiencing high demand right now. Please try again in a moment."

# (keyword, answer) checked in order when the completion model is unavailable
FALLBACK_ANSWERS: tuple[tuple[str, str], ...] = (
    (
        "substitute",
        "Common substitutions include: butter for oil in baking, milk for "
        "buttermilk with lemon juice, or egg with applesauce. What ingredient "
        "do you need to substitute?",
    ),
    (
        "temperature",
        "Most ovens should be preheated. Chicken should reach 165°F internal "
        "temperature, and beef varies by preference. What are you cooking?",
    ),
    (
        "how long",
        "Cooking times vary by method and thickness. Check for doneness signs "
        "like color, texture, or use a thermometer. What dish are you preparing?",
    ),
)
DEFAULT_FALLBACK = (
    "I'm having trouble with that question right now. Try asking about cooking "
    "techniques, ingredient substitutions, or timing help."
)

# Short answers get a follow-up offer so the conversation keeps going.
_FOLLOW_UPS: tuple[tuple[str, str], ...] = (
    ("substitute", " Would you like suggestions for specific ingredients?"),
    ("temperature", " Need help with timing too?"),
    ("how to", " Want me to break that down into steps?"),
)
_SHORT_ANSWER_LENGTH = 50

_TIMER_LABELS: tuple[tuple[str, str], ...] = (
    ("pasta", "Pasta Timer"),
    ("oven", "Oven Timer"),
    ("boil", "Boiling Timer"),
)

_NO_RETRY_STATUS_CODES = frozenset({401, 403, 429})

_NUMBER_PATTERN = re.compile(r"(\d+)")
_SHOPPING_ADD_PATTERN = re.compile(r"add (.+) to shopping", re.IGNORECASE)
_ITEM_SEPARATOR = re.compile(r",| and ")
_CONVERSION_KEYWORDS = ("convert", "how many", "cups", "tablespoon")


class TextCompletionClient(Protocol):
    """Interface for LLM text completion."""

    async def complete(self, prompt: str, system: str | None = None) -> str:
        """Return free-form text for a prompt."""

    async def complete_json(
        self, prompt: str, schema: dict[str, object], name: str
    ) -> dict[str, object]:
        """Return structured output validated against a JSON schema."""


@dataclass
class CookingAssistantService:
    """Routes spoken commands and answers cooking questions."""

    client: TextCompletionClient | None = None
    timeout_seconds: float = 15.0
    retry_attempts: int = 1
    retry_delay_seconds: float = 1.0

    async def handle_command(  # noqa: PLR0911
        self,
        command: str,
        recipe: Recipe | None = None,
        unit_system: str = "imperial",
        current_step: int = 0,
    ) -> AssistantReply:
        """Dispatch a command to the first matching handler."""
        lower = command.lower().strip()

        if "timer" in lower or (
            "set" in lower and ("minute" in lower or "hour" in lower)
        ):
            return _timer_reply(lower)
        if "read" in lower and ("ingredients" in lower or "recipe" in lower):
            return _read_recipe_reply(lower, recipe)
        if any(keyword in lower for keyword in _CONVERSION_KEYWORDS):
            return _conversion_reply(lower, unit_system)
        if any(keyword in lower for keyword in ("how to", "what is", "substitute")):
            context = f"Currently cooking: {recipe.title}" if recipe else None
            return await self.ask(command, context)
        if any(
            keyword in lower for keyword in ("next step", "previous step", "repeat")
        ):
            return _navigation_reply(lower, recipe, current_step)
        if "shopping list" in lower or ("add" in lower and "shopping" in lower):
            return _shopping_list_reply(command)
        if "switch to" in lower and ("metric" in lower or "imperial" in lower):
            return _unit_preference_reply(lower)

        if self.client is None:
            return AssistantReply(text=HELP_TEXT, intent="general")
        reply = await self.ask(command)
        return AssistantReply(
            text=reply.text, intent="general", fallback=reply.fallback
        )

    async def ask(self, question: str, context: str | None = None) -> AssistantReply:
        """Answer a cooking question; never raises."""
        if self.client is None:
            return AssistantReply(
                text=MISSING_KEY_TEXT, intent="question", fallback=True
            )

        system = SYSTEM_PROMPT
        if context:
            system = (
                f"{system}\n\nContext: The user is currently working with: {context}"
            )

        client = self.client
        try:
            raw = await self._call_with_retry(
                lambda: client.complete(question, system=system)
            )
        except Exception as exc:
            status_code = _status_code_from_exception(exc)
            _logger.warning(
                "Assistant completion failed (status=%s): %s",
                status_code or "n/a",
                exc,
            )
            return AssistantReply(
                text=_fallback_for_error(question, status_code),
                intent="question",
                fallback=True,
            )

        answer = _with_follow_up(question, clean_for_speech(raw))
        return AssistantReply(text=answer, intent="question")

    async def _call_with_retry(
        self, func: Callable[[], Awaitable[str]]
    ) -> str:
        """Call the completion client with a timeout and linear backoff."""
        attempt = 0
        while True:
            try:
                return await asyncio.wait_for(func(), timeout=self.timeout_seconds)
            except Exception as exc:
                attempt += 1
                status_code = _status_code_from_exception(exc)
                if status_code in _NO_RETRY_STATUS_CODES:
                    raise
                if attempt > self.retry_attempts:
                    raise
                _logger.info(
                    "Assistant completion retry %s/%s after: %s",
                    attempt,
                    self.retry_attempts,
                    exc,
                )
                await asyncio.sleep(self.retry_delay_seconds * attempt)


def clean_for_speech(text: str) -> str:
    """Strip markdown emphasis and join lines into sentences."""
    cleaned = text.replace("**", "").replace("*", "")
    cleaned = re.sub(r"\n+", ". ", cleaned)
    return cleaned.strip()


def fallback_answer(question: str) -> str:
    lower = question.lower()
    for keyword, answer in FALLBACK_ANSWERS:
        if keyword in lower:
            return answer
    return DEFAULT_FALLBACK


def _fallback_for_error(question: str, status_code: int | None) -> str:
    if status_code in (401, 403):
        return MISSING_KEY_TEXT
    if status_code == 429:
        return BUSY_TEXT
    return fallback_answer(question)


def _with_follow_up(question: str, answer: str) -> str:
    if len(answer) >= _SHORT_ANSWER_LENGTH:
        return answer
    lower = question.lower()
    for keyword, follow_up in _FOLLOW_UPS:
        if keyword in lower:
            return answer + follow_up
    return answer


def _timer_reply(command: str) -> AssistantReply:
    match = _NUMBER_PATTERN.search(command)
    if match is None:
        return AssistantReply(
            text=(
                "I couldn't understand the timer duration. "
                "Try saying 'set timer for 10 minutes'."
            ),
            intent="timer",
        )
    minutes = int(match.group(1))
    label = next(
        (label for keyword, label in _TIMER_LABELS if keyword in command),
        "Cooking Timer",
    )
    return AssistantReply(
        text=f"Timer set for {minutes} minutes. I'll let you know when it's done!",
        intent="timer",
        timer_minutes=minutes,
        timer_label=label,
    )


def _read_recipe_reply(command: str, recipe: Recipe | None) -> AssistantReply:
    if recipe is None:
        return AssistantReply(
            text=(
                "No recipe is currently selected. "
                "Choose a recipe first, then I can read it to you."
            ),
            intent="read_recipe",
        )
    if "ingredients" in command:
        ingredients = _lines(recipe.ingredients)
        return AssistantReply(
            text=(
                f"Here are the ingredients for {recipe.title}: "
                f"{', '.join(ingredients)}"
            ),
            intent="read_recipe",
            items=ingredients,
        )
    steps = _lines(recipe.instructions)
    if not steps:
        return AssistantReply(
            text=f"{recipe.title} doesn't have any instructions yet.",
            intent="read_recipe",
        )
    return AssistantReply(
        text=(
            f"Here are the cooking instructions: {steps[0]}. "
            "Say 'next step' for the next instruction."
        ),
        intent="read_recipe",
        step=0,
    )


def _conversion_table(unit_system: str) -> dict[str, str]:
    metric = unit_system == "metric"
    return {
        "1 cup to tablespoons": "1 cup equals 16 tablespoons",
        "1 tablespoon to teaspoons": "1 tablespoon equals 3 teaspoons",
        "1 pound to ounces": "1 pound equals 16 ounces",
        "1 cup flour to grams": (
            "1 cup of flour equals about 120 grams"
            if metric
            else "1 cup of flour equals about 4.25 ounces"
        ),
        "1 cup sugar to grams": (
            "1 cup of sugar equals about 200 grams"
            if metric
            else "1 cup of sugar equals about 7 ounces"
        ),
        "1 liter to cups": "1 liter equals about 4.2 cups",
        "350 fahrenheit to celsius": "350°F equals 175°C",
        "180 celsius to fahrenheit": "180°C equals 355°F",
    }


def _conversion_reply(command: str, unit_system: str) -> AssistantReply:
    for key, answer in _conversion_table(unit_system).items():
        source, _, target = key.partition(" to ")
        if source in command and target in command:
            return AssistantReply(
                text=f"{answer}. Your current unit system is set to {unit_system}.",
                intent="conversion",
                unit_system=unit_system,
            )
    return AssistantReply(
        text=(
            "I can help with common cooking conversions. "
            f"Your current unit system is {unit_system}. Try asking "
            "'how many tablespoons in a cup' or 'convert 1 cup flour to grams'."
        ),
        intent="conversion",
        unit_system=unit_system,
    )


def _navigation_reply(
    command: str, recipe: Recipe | None, current_step: int
) -> AssistantReply:
    steps = _lines(recipe.instructions) if recipe else []
    if not steps:
        return AssistantReply(
            text=(
                "Choose a recipe with instructions first, "
                "then I can walk you through it."
            ),
            intent="navigation",
        )
    if "next step" in command:
        step = current_step + 1
    elif "previous step" in command:
        step = current_step - 1
    else:
        step = current_step
    if step >= len(steps):
        return AssistantReply(
            text="That was the last step. Enjoy your meal!",
            intent="navigation",
            step=len(steps) - 1,
        )
    step = max(step, 0)
    return AssistantReply(
        text=f"Step {step + 1}: {steps[step]}",
        intent="navigation",
        step=step,
    )


def _shopping_list_reply(command: str) -> AssistantReply:
    match = _SHOPPING_ADD_PATTERN.search(command)
    if match is None:
        return AssistantReply(
            text=(
                "I can help you add items to your shopping list. "
                "Try saying 'add milk to shopping list'."
            ),
            intent="shopping_list",
        )
    items = [
        item.strip() for item in _ITEM_SEPARATOR.split(match.group(1)) if item.strip()
    ]
    return AssistantReply(
        text=f"Added {', '.join(items)} to your shopping list.",
        intent="shopping_list",
        items=items,
    )


def _unit_preference_reply(command: str) -> AssistantReply:
    if "metric" in command:
        return AssistantReply(
            text="Switched to metric units. I'll now use grams, liters, and Celsius.",
            intent="unit_preference",
            unit_system="metric",
        )
    return AssistantReply(
        text="Switched to imperial units. I'll now use cups, ounces, and Fahrenheit.",
        intent="unit_preference",
        unit_system="imperial",
    )


def _lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def _status_code_from_exception(exc: Exception) -> int | None:
    """Extract an HTTP status code from an SDK or httpx exception."""
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    return None
