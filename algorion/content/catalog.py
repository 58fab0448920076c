"""
Content Catalog - Static game content and its read APIs.

The catalog is loaded once at startup from a JSON seed file and validated.
Missing or incomplete content is a ContentError: startup must abort rather
than let a match begin that cannot hand out all its hints.

Read APIs consumed by the engine:
- fragment_text(index, tier) -> Fragment
- house_card_front(house_id) -> str
- base_cost(house_id) -> int
"""

from __future__ import annotations
from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
from typing import Any

from ..engine_core.board import HOUSE_IDS, HINT_HOUSES
from ..engine_core.errors import ContentError
from ..engine_core.events import EventCard, EventModifiers
from ..engine_core.state import FRAGMENT_COUNT, DEFAULT_INITIAL_PH, HeroType, HintTier

logger = logging.getLogger(__name__)

DEFAULT_SEED_PATH = Path(__file__).parent / "seed.json"


@dataclass(frozen=True)
class Fragment:
    text: str
    citation: str


@dataclass
class HouseContent:
    house_id: str
    name: str
    base_cost: int
    riddle_theme: str = ""
    front_source: str | None = None


@dataclass
class HeroContent:
    hero: HeroType
    name: str
    skill: str
    description: str


@dataclass
class FinalChallenge:
    name: str
    description: str
    answer: str
    success_outcome: str
    failure_outcome: str


@dataclass
class ContentCatalog:
    """
    Read-only game content.

    Usage:
        content = ContentCatalog.load()
        fragment = content.fragment_text(3, HintTier.EASY)
    """
    houses: dict[str, HouseContent] = field(default_factory=dict)
    fragments: dict[int, dict[HintTier, Fragment]] = field(default_factory=dict)
    events: list[EventCard] = field(default_factory=list)
    heroes: dict[HeroType, HeroContent] = field(default_factory=dict)
    final_challenge: FinalChallenge | None = None
    initial_ph: int = DEFAULT_INITIAL_PH
    source: str | None = None

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def load(cls, path: str | Path | None = None) -> ContentCatalog:
        """Load and validate content from a JSON seed file."""
        seed_path = Path(path) if path else DEFAULT_SEED_PATH
        try:
            with open(seed_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ContentError([f"Content file not found: {seed_path}"])
        except json.JSONDecodeError as e:
            raise ContentError([f"Content file is not valid JSON: {e}"])

        catalog = cls.from_dict(data)
        catalog.source = str(seed_path)
        catalog.validate()
        logger.info(
            "Loaded game content from %s (%d houses, %d fragments, %d events)",
            seed_path, len(catalog.houses), len(catalog.fragments), len(catalog.events),
        )
        return catalog

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentCatalog:
        """Build a catalog from seed data. Does not validate."""
        errors: list[str] = []

        houses = {}
        for h in data.get("houses", []):
            houses[h["id"]] = HouseContent(
                house_id=h["id"],
                name=h.get("name", ""),
                base_cost=h.get("base_cost", -1),
                riddle_theme=h.get("riddle_theme", ""),
                front_source=h.get("tip_front_source"),
            )

        fragments: dict[int, dict[HintTier, Fragment]] = {}
        for f in data.get("final_riddle_fragments", []):
            variants = f.get("variants") or {}
            fragments[f["index"]] = {
                tier: Fragment(
                    text=(variants.get(tier.value) or {}).get("text") or "",
                    citation=(variants.get(tier.value) or {}).get("source") or "",
                )
                for tier in HintTier
            }

        events = []
        for e in data.get("events", []):
            effects = e.get("effects") or {}
            try:
                modifiers = EventModifiers(**effects)
            except TypeError:
                errors.append(f"Event {e.get('name')} has unknown effects: {sorted(effects)}")
                continue
            events.append(EventCard(
                name=e["name"],
                description=e.get("fluff", ""),
                modifiers=modifiers,
            ))

        heroes = {}
        for h in data.get("heroes", []):
            try:
                hero_type = HeroType(h["id"])
            except ValueError:
                errors.append(f"Unknown hero: {h['id']}")
                continue
            heroes[hero_type] = HeroContent(
                hero=hero_type,
                name=h.get("name", hero_type.value.title()),
                skill=h.get("skill", ""),
                description=h.get("description", ""),
            )

        final = data.get("final_challenge")
        final_challenge = FinalChallenge(
            name=final.get("name", ""),
            description=final.get("description", ""),
            answer=final.get("answer", ""),
            success_outcome=final.get("success_outcome", ""),
            failure_outcome=final.get("failure_outcome", ""),
        ) if final else None

        if errors:
            raise ContentError(errors)

        return cls(
            houses=houses,
            fragments=fragments,
            events=events,
            heroes=heroes,
            final_challenge=final_challenge,
            initial_ph=(data.get("game_config") or {}).get("initial_ph", DEFAULT_INITIAL_PH),
        )

    def validate(self) -> None:
        """Raise ContentError listing everything that is missing."""
        errors: list[str] = []

        for house_id in HOUSE_IDS:
            house = self.houses.get(house_id)
            if house is None:
                errors.append(f"House {house_id} is not configured")
                continue
            if not 0 <= house.base_cost <= 3:
                errors.append(f"House {house_id} has base cost {house.base_cost}, expected 0..3")
        for house_id in HINT_HOUSES:
            house = self.houses.get(house_id)
            if house is not None and not house.front_source:
                errors.append(f"Hint card front not configured for house {house_id}")

        if len(self.fragments) != FRAGMENT_COUNT:
            errors.append(
                f"Expected {FRAGMENT_COUNT} final riddle fragments, found {len(self.fragments)}"
            )
        for index, variants in sorted(self.fragments.items()):
            if not 1 <= index <= FRAGMENT_COUNT:
                errors.append(f"Fragment index {index} out of range 1..{FRAGMENT_COUNT}")
            for tier, fragment in variants.items():
                if not fragment.text or not fragment.citation:
                    errors.append(f"Fragment {index} has an incomplete {tier.value} variant")

        if not self.events:
            errors.append("No event cards configured")
        names = [e.name for e in self.events]
        if len(set(names)) != len(names):
            errors.append("Event card names must be distinct")

        if self.final_challenge is None or not self.final_challenge.answer:
            errors.append("Final challenge answer is not configured")

        if self.initial_ph < 0:
            errors.append(f"Initial PH must be non-negative, got {self.initial_ph}")

        if errors:
            raise ContentError(errors)

    # =========================================================================
    # Read APIs
    # =========================================================================

    def fragment_text(self, index: int, tier: HintTier) -> Fragment:
        variants = self.fragments.get(index)
        if variants is None:
            raise ContentError([f"Fragment not found: index={index}"])
        return variants[HintTier(tier)]

    def house_card_front(self, house_id: str) -> str:
        house = self.houses.get(house_id)
        if house is None or not house.front_source:
            raise ContentError([f"Hint card front not configured for house {house_id}"])
        return house.front_source

    def base_cost(self, house_id: str) -> int:
        house = self.houses.get(house_id)
        if house is None:
            raise ContentError([f"House {house_id} is not configured"])
        return house.base_cost

    def cost_table(self) -> dict[str, int]:
        return {house_id: self.base_cost(house_id) for house_id in HOUSE_IDS}

    def house_names(self) -> dict[str, str]:
        return {house_id: h.name for house_id, h in self.houses.items()}

    @property
    def final_answer(self) -> str:
        if self.final_challenge is None:
            raise ContentError(["Final challenge answer is not configured"])
        return self.final_challenge.answer
