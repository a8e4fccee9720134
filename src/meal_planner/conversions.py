"""Unit conversion constants and helpers.

Constants keep full precision. The ``*_to_*`` display helpers round once, at
the end of the computation.
"""

from meal_planner.safe_math import round_to_dp

# Temperature
KELVIN_TO_CELSIUS_OFFSET = 273.15
FAHRENHEIT_TO_CELSIUS_MULTIPLIER = 5 / 9
CELSIUS_TO_FAHRENHEIT_MULTIPLIER = 9 / 5
FAHRENHEIT_TO_CELSIUS_OFFSET = 32

# Speed and distance
METERS_PER_SECOND_TO_MPH = 2.23694
METERS_PER_SECOND_TO_KPH = 3.6
MPH_TO_METERS_PER_SECOND = 0.44704
METERS_PER_MILE = 1609.344

# Volume
CUPS_PER_LITER = 4.22675
LITERS_PER_QUART = 0.946353
LITERS_PER_GALLON = 3.78541
TABLESPOONS_PER_CUP = 16
TEASPOONS_PER_TABLESPOON = 3
MILLILITERS_PER_CUP = 236.588
MILLILITERS_PER_TABLESPOON = 14.7868
MILLILITERS_PER_TEASPOON = 4.92892

# Weight
GRAMS_PER_OUNCE = 28.3495
GRAMS_PER_POUND = 453.592
KILOGRAMS_PER_POUND = 0.453592
OUNCES_PER_POUND = 16

# Nutrition
CALORIES_PER_GRAM_PROTEIN = 4
CALORIES_PER_GRAM_CARBS = 4
CALORIES_PER_GRAM_FAT = 9
CALORIES_PER_GRAM_ALCOHOL = 7

# US EPA AQI category midpoints
AQI_CATEGORIES = {
    "good": 25,
    "moderate": 75,
    "unhealthy_sensitive": 125,
    "unhealthy": 175,
    "very_unhealthy": 250,
    "hazardous": 400,
}

# OpenWeather reports AQI as an index 1-5
_OWM_AQI_TO_US = (0, 50, 100, 150, 200, 300)
DEFAULT_AQI = 50


def kelvin_to_fahrenheit(kelvin: float) -> float:
    """Convert Kelvin to Fahrenheit, rounded to one decimal place."""
    celsius = kelvin - KELVIN_TO_CELSIUS_OFFSET
    fahrenheit = (
        celsius * CELSIUS_TO_FAHRENHEIT_MULTIPLIER + FAHRENHEIT_TO_CELSIUS_OFFSET
    )
    return round_to_dp(fahrenheit, 1)


def celsius_to_fahrenheit(celsius: float) -> float:
    """Convert Celsius to Fahrenheit, rounded to one decimal place."""
    return round_to_dp(
        celsius * CELSIUS_TO_FAHRENHEIT_MULTIPLIER + FAHRENHEIT_TO_CELSIUS_OFFSET, 1
    )


def fahrenheit_to_celsius(fahrenheit: float) -> float:
    """Convert Fahrenheit to Celsius, rounded to one decimal place."""
    return round_to_dp(
        (fahrenheit - FAHRENHEIT_TO_CELSIUS_OFFSET) * FAHRENHEIT_TO_CELSIUS_MULTIPLIER,
        1,
    )


def meters_per_second_to_mph(mps: float) -> float:
    """Convert m/s to miles per hour, rounded to one decimal place."""
    return round_to_dp(mps * METERS_PER_SECOND_TO_MPH, 1)


def meters_per_second_to_kph(mps: float) -> float:
    """Convert m/s to kilometers per hour, rounded to one decimal place."""
    return round_to_dp(mps * METERS_PER_SECOND_TO_KPH, 1)


def meters_to_miles(meters: float) -> float:
    return meters / METERS_PER_MILE


def cups_to_milliliters(cups: float) -> float:
    return cups * MILLILITERS_PER_CUP


def ounces_to_grams(ounces: float) -> float:
    return ounces * GRAMS_PER_OUNCE


def pounds_to_grams(pounds: float) -> float:
    return pounds * GRAMS_PER_POUND


def map_aqi_to_midpoint(aqi: float) -> int:
    """Map a raw AQI reading to its US EPA category midpoint."""
    if aqi <= 50:  # noqa: PLR2004
        return AQI_CATEGORIES["good"]
    if aqi <= 100:  # noqa: PLR2004
        return AQI_CATEGORIES["moderate"]
    if aqi <= 150:  # noqa: PLR2004
        return AQI_CATEGORIES["unhealthy_sensitive"]
    if aqi <= 200:  # noqa: PLR2004
        return AQI_CATEGORIES["unhealthy"]
    if aqi <= 300:  # noqa: PLR2004
        return AQI_CATEGORIES["very_unhealthy"]
    return AQI_CATEGORIES["hazardous"]


def owm_aqi_to_us_scale(index: int) -> int:
    """Convert an OpenWeather AQI index (1-5) to the US EPA scale."""
    if 1 <= index < len(_OWM_AQI_TO_US):
        return _OWM_AQI_TO_US[index]
    return DEFAULT_AQI
