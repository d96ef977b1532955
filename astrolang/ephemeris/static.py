"""In-memory ephemeris adapter backed by a validated fact sheet."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..lang.values import Entity, Value
from . import (
    CHART_FACTS,
    HOUSE_FACTS,
    PERSON_FACTS,
    PLANET_CONSTANTS,
    PLANET_FACTS,
    SIGN_FACTS,
    EphemerisError,
    constant_entity,
)
from .data import DEBILITATION_SIGNS, EXALTATION_SIGNS, OWN_SIGNS, PLANETS, SIGN_LORDS, SIGNS, sign_index

LOG = logging.getLogger(__name__)

__all__ = ["ChartFacts", "FactSheet", "PersonFacts", "PlanetPlacement", "StaticEphemeris"]

_FACTS_BY_TYPE: Mapping[str, frozenset[str]] = {
    "chart": frozenset(CHART_FACTS),
    "planet": PLANET_FACTS,
    "house": HOUSE_FACTS,
    "sign": SIGN_FACTS,
    "person": PERSON_FACTS,
}


def _normalize(value: str, allowed: tuple[str, ...], label: str) -> str:
    candidate = str(value).strip().capitalize()
    if candidate not in allowed:
        raise ValueError(f"Unknown {label} {value!r}")
    return candidate


class PlanetPlacement(BaseModel):
    """Placement of one planet within a chart."""

    house: int = Field(ge=1, le=12)
    sign: str
    retrograde: bool = False
    combust: bool = False
    longitude: float | None = Field(default=None, ge=0.0, lt=360.0)

    @field_validator("sign", mode="before")
    @classmethod
    def _validate_sign(cls, value: str) -> str:
        return _normalize(value, SIGNS, "sign")

    @model_validator(mode="after")
    def _check_longitude_sign(self) -> "PlanetPlacement":
        if self.longitude is not None and SIGNS[int(self.longitude // 30)] != self.sign:
            raise ValueError(f"Longitude {self.longitude} does not fall in {self.sign}")
        return self


class ChartFacts(BaseModel):
    """Ascendant and planetary placements for one chart."""

    ascendant: str
    planets: Dict[str, PlanetPlacement] = Field(default_factory=dict)

    @field_validator("ascendant", mode="before")
    @classmethod
    def _validate_ascendant(cls, value: str) -> str:
        return _normalize(value, SIGNS, "sign")

    @field_validator("planets", mode="before")
    @classmethod
    def _validate_planets(cls, value: Mapping[str, Any]) -> dict[str, Any]:
        return {_normalize(name, PLANETS, "planet"): placement for name, placement in value.items()}


class PersonFacts(BaseModel):
    name: str
    chart: str


class FactSheet(BaseModel):
    """Charts and persons known to a :class:`StaticEphemeris`."""

    charts: Dict[str, ChartFacts] = Field(default_factory=dict)
    persons: Dict[str, PersonFacts] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_person_charts(self) -> "FactSheet":
        for person_id, person in self.persons.items():
            if person.chart not in self.charts:
                raise ValueError(f"Person {person_id!r} references unknown chart {person.chart!r}")
        return self


class StaticEphemeris:
    """Answer fact queries from a pre-computed :class:`FactSheet`.

    Planet and house facts are chart dependent and require the chart context
    of the evaluation; house signs use whole-sign houses from the ascendant.
    """

    def __init__(self, facts: FactSheet | Mapping[str, Any]) -> None:
        if not isinstance(facts, FactSheet):
            facts = FactSheet.model_validate(facts)
        self.facts = facts

    @classmethod
    def from_yaml(cls, path: str | Path) -> "StaticEphemeris":
        source = Path(path)
        try:
            payload = yaml.safe_load(source.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise EphemerisError(f"Invalid YAML in {source}: {exc}") from exc
        try:
            sheet = FactSheet.model_validate(payload)
        except ValidationError as exc:
            raise EphemerisError(f"Invalid fact sheet {source}: {exc}") from exc
        LOG.debug("Loaded %d charts and %d persons from %s", len(sheet.charts), len(sheet.persons), source)
        return cls(sheet)

    def chart(self, chart_id: str) -> Entity:
        if chart_id not in self.facts.charts:
            raise EphemerisError(f"Unknown chart {chart_id!r}")
        return Entity("chart", chart_id)

    def person(self, person_id: str) -> Entity:
        if person_id not in self.facts.persons:
            raise EphemerisError(f"Unknown person {person_id!r}")
        return Entity("person", person_id)

    # Adapter protocol ---------------------------------------------------

    def provides(self, name: str, entity_type: str) -> bool:
        return name in _FACTS_BY_TYPE.get(entity_type, frozenset())

    def entity_by_constant(self, name: str) -> Entity:
        return constant_entity(name)

    def fact_of(self, name: str, entity: Entity, context: Entity | None = None) -> Value:
        if not self.provides(name, entity.type):
            raise EphemerisError(f"No fact {name!r} for {entity.type}", fact=name, entity=entity)
        handler = getattr(self, f"_{entity.type}_fact")
        return handler(name, entity, context)

    # Fact handlers ------------------------------------------------------

    def _chart_facts(self, chart: Entity | None, name: str, entity: Entity) -> ChartFacts:
        if chart is None or chart.type != "chart":
            raise EphemerisError(
                f"{name!r} of {entity} requires a chart context", fact=name, entity=entity
            )
        try:
            return self.facts.charts[str(chart.identity)]
        except KeyError:
            raise EphemerisError(f"Unknown chart {chart.identity!r}", fact=name, entity=chart) from None

    def _placement(self, chart: ChartFacts, planet: str, name: str, entity: Entity) -> PlanetPlacement:
        placement = chart.planets.get(planet)
        if placement is None:
            raise EphemerisError(f"{planet} is not placed in this chart", fact=name, entity=entity)
        return placement

    def _chart_fact(self, name: str, entity: Entity, context: Entity | None) -> Value:
        chart = self._chart_facts(entity, name, entity)
        if name in PLANET_CONSTANTS:
            planet = constant_entity(name).identity
            return Entity("house", self._placement(chart, str(planet), name, entity).house)
        if name in {"SIGN", "ASCENDANT"}:
            return Entity("sign", chart.ascendant)
        return constant_entity(name)

    def _planet_fact(self, name: str, entity: Entity, context: Entity | None) -> Value:
        chart = self._chart_facts(context, name, entity)
        planet = str(entity.identity)
        placement = self._placement(chart, planet, name, entity)
        if name == "sign":
            return Entity("sign", placement.sign)
        if name == "house":
            return Entity("house", placement.house)
        if name == "retrograde":
            return placement.retrograde
        if name == "combust":
            return placement.combust
        if name == "exalted":
            return EXALTATION_SIGNS.get(planet) == placement.sign
        if name == "debilitated":
            return DEBILITATION_SIGNS.get(planet) == placement.sign
        if name == "own_sign":
            return placement.sign in OWN_SIGNS.get(planet, ())
        if name == "dispositor":
            return Entity("planet", SIGN_LORDS[placement.sign])
        if placement.longitude is None:
            raise EphemerisError(f"No longitude recorded for {planet}", fact=name, entity=entity)
        if name == "longitude":
            return placement.longitude
        return placement.longitude % 30.0

    def _house_sign(self, chart: ChartFacts, number: int) -> str:
        return SIGNS[(sign_index(chart.ascendant) + number - 1) % 12]

    def _house_fact(self, name: str, entity: Entity, context: Entity | None) -> Value:
        number = int(entity.identity)  # type: ignore[call-overload]
        if name == "number":
            return number
        chart = self._chart_facts(context, name, entity)
        if name == "sign":
            return Entity("sign", self._house_sign(chart, number))
        if name == "lord":
            return Entity("planet", SIGN_LORDS[self._house_sign(chart, number)])
        return frozenset(
            Entity("planet", planet)
            for planet, placement in chart.planets.items()
            if placement.house == number
        )

    def _sign_fact(self, name: str, entity: Entity, context: Entity | None) -> Value:
        sign = str(entity.identity)
        if name == "lord":
            return Entity("planet", SIGN_LORDS[sign])
        return sign_index(sign) + 1

    def _person_fact(self, name: str, entity: Entity, context: Entity | None) -> Value:
        try:
            person = self.facts.persons[str(entity.identity)]
        except KeyError:
            raise EphemerisError(f"Unknown person {entity.identity!r}", fact=name, entity=entity) from None
        if name == "name":
            return person.name
        return Entity("chart", person.chart)
