"""Ephemeris adapter contract consumed by attribute resolution."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from ..lang.values import Entity, Value
from .data import PLANETS, SIGNS

__all__ = [
    "CHART_FACTS",
    "CONSTANTS",
    "EphemerisAdapter",
    "EphemerisError",
    "HOUSE_FACTS",
    "PERSON_FACTS",
    "PLANET_FACTS",
    "SIGN_FACTS",
    "StaticEphemeris",
    "constant_entity",
]


class EphemerisError(RuntimeError):
    """Raised when an adapter cannot answer a fact or constant query."""

    def __init__(
        self,
        message: str,
        *,
        fact: str | None = None,
        entity: Entity | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.fact = fact
        self.entity = entity
        self.context = dict(context or {})


class EphemerisAdapter(Protocol):
    """Narrow query interface over raw astronomical facts."""

    def provides(self, name: str, entity_type: str) -> bool:
        """Return True when ``name`` is a built-in fact for ``entity_type``."""

        ...

    def fact_of(self, name: str, entity: Entity, context: Entity | None = None) -> Value:
        """Return built-in fact ``name`` of ``entity``, optionally within chart ``context``."""

        ...

    def entity_by_constant(self, name: str) -> Entity:
        """Resolve an upper-case constant such as ``SUN`` or ``HOUSE4``."""

        ...


def _constants() -> dict[str, Entity]:
    table: dict[str, Entity] = {}
    for planet in PLANETS:
        table[planet.upper()] = Entity("planet", planet)
    for number in range(1, 13):
        table[f"HOUSE{number}"] = Entity("house", number)
    for sign in SIGNS:
        table[sign.upper()] = Entity("sign", sign)
    return table


CONSTANTS: Mapping[str, Entity] = _constants()

PLANET_CONSTANTS = frozenset(planet.upper() for planet in PLANETS)
HOUSE_CONSTANTS = frozenset(f"HOUSE{number}" for number in range(1, 13))

CHART_FACTS = PLANET_CONSTANTS | HOUSE_CONSTANTS | {"SIGN", "ASCENDANT"}
PLANET_FACTS = frozenset(
    {
        "sign",
        "house",
        "retrograde",
        "combust",
        "exalted",
        "debilitated",
        "own_sign",
        "dispositor",
        "longitude",
        "degree",
    }
)
HOUSE_FACTS = frozenset({"sign", "lord", "occupants", "number"})
SIGN_FACTS = frozenset({"lord", "number"})
PERSON_FACTS = frozenset({"name", "natal"})


def constant_entity(name: str) -> Entity:
    try:
        return CONSTANTS[name]
    except KeyError:
        raise EphemerisError(f"Unknown constant {name!r}", fact=name) from None


from .static import StaticEphemeris  # noqa: E402
