"""Recipe domain models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class Course(StrEnum):
    """Course a recipe is served as."""

    APPETIZER = "Appetizer"
    MAIN = "Main"
    SIDE = "Side"
    DESSERT = "Dessert"
    BREAKFAST = "Breakfast"
    BEVERAGE = "Beverage"

    @classmethod
    def parse(cls, raw: object) -> "Course | None":
        """Parse a stored course string, returning None when unrecognised."""
        return _parse_loose(cls, raw)


class Difficulty(StrEnum):
    """Recipe difficulty."""

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

    @classmethod
    def parse(cls, raw: object) -> "Difficulty | None":
        """Parse a stored difficulty string, returning None when unrecognised."""
        return _parse_loose(cls, raw)


@dataclass(frozen=True)
class NutritionFacts:
    """Per-recipe nutrition; ``None`` means the value was never recorded."""

    calories: float | None = None
    protein_g: float | None = None
    carbs_g: float | None = None
    fat_g: float | None = None
    fiber_g: float | None = None
    sugar_g: float | None = None
    sodium_mg: float | None = None


@dataclass(frozen=True)
class Recipe:
    """A user's recipe."""

    id: str
    title: str
    ingredients: str = ""
    instructions: str = ""
    user_id: str | None = None
    tags: frozenset[str] = field(default_factory=frozenset)
    prep_time: int | None = None
    cook_time: int | None = None
    servings: int | None = None
    nutrition: NutritionFacts = field(default_factory=NutritionFacts)
    course: Course | None = None
    cuisine: str | None = None
    difficulty: Difficulty | None = None
    summary: str | None = None
    created_at: datetime | None = None


def parse_tags(raw: object) -> frozenset[str]:
    """Normalise stored tags (list or comma separated string) to a set."""
    if raw is None:
        return frozenset()
    if isinstance(raw, str):
        chunks = raw.split(",")
    elif isinstance(raw, list | tuple | set | frozenset):
        chunks = [str(chunk) for chunk in raw]
    else:
        return frozenset()
    return frozenset(chunk.strip().lower() for chunk in chunks if chunk.strip())


def _parse_loose(enum_cls, raw: object):  # type: ignore[no-untyped-def]
    if not isinstance(raw, str) or not raw.strip():
        return None
    cleaned = raw.strip().lower()
    for member in enum_cls:
        if member.value.lower() == cleaned or member.name.lower() == cleaned:
            return member
    return None
