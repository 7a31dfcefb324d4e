"""WMO weather code tables and pure unit conversions.

Pure lookups with no external dependencies. Codes follow Open-Meteo's
WMO Weather Interpretation Codes (https://open-meteo.com/en/docs).
"""

from __future__ import annotations

WMO_CONDITIONS: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}

# Birding score per code: 5 = clear, 1 = heavy precipitation / storms.
BIRDING_SCORES: dict[int, int] = {
    # Clear
    0: 5,
    1: 5,
    # Partly cloudy / overcast
    2: 4,
    3: 4,
    # Light precipitation
    51: 3,
    61: 3,
    71: 3,
    80: 3,
    85: 3,
    # Moderate precipitation, fog, freezing drizzle
    45: 2,
    48: 2,
    53: 2,
    56: 2,
    57: 2,
    63: 2,
    66: 2,
    73: 2,
    77: 2,
    81: 2,
    # Heavy precipitation, thunderstorms
    55: 1,
    65: 1,
    67: 1,
    75: 1,
    82: 1,
    86: 1,
    95: 1,
    96: 1,
    99: 1,
}

NEUTRAL_BIRDING_SCORE = 3
MIN_BIRDING_SCORE = 1
MAX_BIRDING_SCORE = 5

_COMPASS = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]


def wmo_code_to_conditions(code: int) -> str:
    """Convert a WMO weather code to a human-readable condition string."""
    return WMO_CONDITIONS.get(code, f"Unknown ({code})")


def birding_score(code: int) -> int:
    """Birding score (1-5) for a WMO code; unknown codes are neutral."""
    return BIRDING_SCORES.get(code, NEUTRAL_BIRDING_SCORE)


def c_to_f(celsius: float) -> float:
    """Convert Celsius to Fahrenheit."""
    return celsius * 9 / 5 + 32


def wind_direction_to_compass(degrees: float) -> str:
    """Convert a wind bearing in degrees to an 8-point compass label."""
    return _COMPASS[round(degrees / 45) % 8]
