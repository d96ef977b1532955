"""Reference tables for classical Jyotish rulership and dignity.

Sign lords follow the Parasara scheme of *Brihat Parashara Hora Shastra*
(chapters 4-6). Exaltation and debilitation signs match the table compiled
by B. V. Raman in *Graha and Bhava Balas* (1984, Chapter 3); the nodes use
the common Taurus/Scorpio convention.
"""

from __future__ import annotations

from collections.abc import Mapping

__all__ = [
    "DEBILITATION_SIGNS",
    "EXALTATION_SIGNS",
    "OWN_SIGNS",
    "PLANETS",
    "SIGNS",
    "SIGN_LORDS",
    "sign_index",
]

PLANETS: tuple[str, ...] = (
    "Sun",
    "Moon",
    "Mars",
    "Mercury",
    "Jupiter",
    "Venus",
    "Saturn",
    "Rahu",
    "Ketu",
)

SIGNS: tuple[str, ...] = (
    "Aries",
    "Taurus",
    "Gemini",
    "Cancer",
    "Leo",
    "Virgo",
    "Libra",
    "Scorpio",
    "Sagittarius",
    "Capricorn",
    "Aquarius",
    "Pisces",
)

SIGN_LORDS: Mapping[str, str] = {
    "Aries": "Mars",
    "Taurus": "Venus",
    "Gemini": "Mercury",
    "Cancer": "Moon",
    "Leo": "Sun",
    "Virgo": "Mercury",
    "Libra": "Venus",
    "Scorpio": "Mars",
    "Sagittarius": "Jupiter",
    "Capricorn": "Saturn",
    "Aquarius": "Saturn",
    "Pisces": "Jupiter",
}

EXALTATION_SIGNS: Mapping[str, str] = {
    "Sun": "Aries",
    "Moon": "Taurus",
    "Mars": "Capricorn",
    "Mercury": "Virgo",
    "Jupiter": "Cancer",
    "Venus": "Pisces",
    "Saturn": "Libra",
    "Rahu": "Taurus",
    "Ketu": "Scorpio",
}

DEBILITATION_SIGNS: Mapping[str, str] = {
    "Sun": "Libra",
    "Moon": "Scorpio",
    "Mars": "Cancer",
    "Mercury": "Pisces",
    "Jupiter": "Capricorn",
    "Venus": "Virgo",
    "Saturn": "Aries",
    "Rahu": "Scorpio",
    "Ketu": "Taurus",
}


def _own_signs() -> dict[str, tuple[str, ...]]:
    mapping: dict[str, list[str]] = {}
    for sign, lord in SIGN_LORDS.items():
        mapping.setdefault(lord, []).append(sign)
    return {planet: tuple(signs) for planet, signs in mapping.items()}


OWN_SIGNS: Mapping[str, tuple[str, ...]] = _own_signs()


def sign_index(sign: str) -> int:
    """Return the zero-based zodiac index of ``sign``."""

    return SIGNS.index(sign)
