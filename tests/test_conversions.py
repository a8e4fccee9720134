"""Tests for unit conversions."""

from meal_planner.conversions import (
    DEFAULT_AQI,
    celsius_to_fahrenheit,
    cups_to_milliliters,
    fahrenheit_to_celsius,
    kelvin_to_fahrenheit,
    map_aqi_to_midpoint,
    meters_per_second_to_kph,
    meters_per_second_to_mph,
    meters_to_miles,
    owm_aqi_to_us_scale,
    pounds_to_grams,
)


def test_temperature_conversions() -> None:
    assert kelvin_to_fahrenheit(273.15) == 32
    assert kelvin_to_fahrenheit(300) == 80.3
    assert celsius_to_fahrenheit(100) == 212
    assert fahrenheit_to_celsius(350) == 176.7


def test_speed_and_distance() -> None:
    assert meters_per_second_to_mph(10) == 22.4
    assert meters_per_second_to_kph(10) == 36
    assert round(meters_to_miles(10000), 2) == 6.21


def test_kitchen_units() -> None:
    assert round(cups_to_milliliters(2), 3) == 473.176
    assert round(pounds_to_grams(1), 3) == 453.592


def test_aqi_mapping() -> None:
    assert map_aqi_to_midpoint(30) == 25
    assert map_aqi_to_midpoint(101) == 125
    assert map_aqi_to_midpoint(500) == 400
    assert owm_aqi_to_us_scale(1) == 50
    assert owm_aqi_to_us_scale(5) == 300
    assert owm_aqi_to_us_scale(9) == DEFAULT_AQI
