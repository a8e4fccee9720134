"""Safe math helpers that never return NaN or infinity."""

import math
from collections.abc import Iterable
from dataclasses import dataclass

PROTEIN_CAL_PER_G = 4
CARBS_CAL_PER_G = 4
FAT_CAL_PER_G = 9


@dataclass(frozen=True)
class MacroRatios:
    """Share of calories from each macronutrient, summing to 100."""

    protein_percent: float
    carbs_percent: float
    fat_percent: float


def safe_div(numerator: float, denominator: float, fallback: float = 0) -> float:
    """Divide, returning ``fallback`` for zero or non-finite operands."""
    if not math.isfinite(numerator) or not math.isfinite(denominator):
        return fallback
    if denominator == 0:
        return fallback
    result = numerator / denominator
    return result if math.isfinite(result) else fallback


def safe_percentage(value: float, total: float) -> float:
    """Return ``value`` as a percentage of ``total`` (0 on invalid input)."""
    return safe_div(value, total, 0) * 100


def safe_average(values: Iterable[float]) -> float:
    """Average the finite entries of ``values``; 0 when none are valid."""
    valid = [value for value in values if math.isfinite(value)]
    if not valid:
        return 0
    return safe_div(sum(valid), len(valid), 0)


def safe_sum(values: Iterable[float]) -> float:
    """Sum the finite entries of ``values``."""
    return sum(value for value in values if math.isfinite(value))


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Bound ``value`` to the closed range [minimum, maximum]."""
    return max(minimum, min(maximum, value))


def clamp_time_delta(minutes: float) -> float:
    """Clamp a time delta to be non-negative."""
    return max(0, minutes)


def round_to_dp(value: float, decimal_places: int) -> float:
    """Round for display; non-finite values become 0."""
    if not math.isfinite(value):
        return 0
    multiplier = 10**decimal_places
    return math.floor(value * multiplier + 0.5) / multiplier


def format_number(value: float, decimal_places: int = 0) -> float:
    """Format a number for display with a fixed precision."""
    return round_to_dp(value, decimal_places)


def cap_progress(current: float, target: float, max_percent: float = 100) -> float:
    """Return progress toward ``target`` capped at ``max_percent``."""
    return min(safe_percentage(current, target), max_percent)


def has_minimum_sample_size(data_points: int, minimum: int = 4) -> bool:
    """Return whether enough data points exist to compute a trend."""
    return data_points >= minimum


def safe_weeks_from_days(days: float) -> float:
    """Convert a day span to weeks, never below one week."""
    return max(1, days / 7)


def normalize_macro_percentages(
    protein: float, carbs: float, fat: float, total_calories: float
) -> MacroRatios:
    """Split calories across macros so the three shares sum to exactly 100.

    Protein and carbs are computed from their calorie contribution and fat
    takes the remainder. ``total_calories`` is accepted for call-site symmetry;
    the split uses the calories implied by the macros themselves.
    """
    protein_calories = protein * PROTEIN_CAL_PER_G
    carbs_calories = carbs * CARBS_CAL_PER_G
    fat_calories = fat * FAT_CAL_PER_G
    calculated_total = safe_sum([protein_calories, carbs_calories, fat_calories])

    if calculated_total <= 0 or total_calories <= 0:
        return MacroRatios(protein_percent=0, carbs_percent=0, fat_percent=0)

    protein_percent = round_to_dp(
        safe_percentage(protein_calories, calculated_total), 0
    )
    carbs_percent = min(
        round_to_dp(safe_percentage(carbs_calories, calculated_total), 0),
        100 - protein_percent,
    )
    fat_percent = 100 - (protein_percent + carbs_percent)

    return MacroRatios(
        protein_percent=clamp(protein_percent, 0, 100),
        carbs_percent=clamp(carbs_percent, 0, 100),
        fat_percent=clamp(fat_percent, 0, 100),
    )
