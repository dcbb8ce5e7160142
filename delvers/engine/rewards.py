"""Reward scaling by depth, encounter type and random variance."""

from __future__ import annotations

from dataclasses import dataclass, replace
import logging
import math
import random
from typing import Iterable
import uuid

from delvers.engine.models import CollectedItem, CollectionType, EncounterReward, EncounterType

logger = logging.getLogger(__name__)

MIN_SCALAR = 1.0
MAX_SCALAR = 10.0
BASE_VARIANCE = 0.2
VARIANCE_PER_DEPTH = 0.02
MAX_VARIANCE = 0.5

ENCOUNTER_TYPE_MULTIPLIERS: dict[EncounterType, float] = {
    EncounterType.PUZZLE_CHAMBER: 1.0,
    EncounterType.TRADE_OPPORTUNITY: 1.2,
    EncounterType.DISCOVERY_SITE: 1.1,
    EncounterType.RISK_EVENT: 1.5,
    EncounterType.HAZARD: 0.8,
    EncounterType.REST_SITE: 0.5,
}


@dataclass(frozen=True)
class CollectionSetInfo:
    id: str
    name: str
    type: CollectionType
    items: tuple[str, ...]


COLLECTION_SETS: tuple[CollectionSetInfo, ...] = (
    CollectionSetInfo("silk_road_set", "Silk Road Collection", CollectionType.TRADE_GOOD,
                      ("Silk Fabric", "Fine Silk", "Royal Silk")),
    CollectionSetInfo("spice_trade_set", "Spice Trade Collection", CollectionType.TRADE_GOOD,
                      ("Spice Blend", "Rare Spice", "Legendary Spice")),
    CollectionSetInfo("gem_merchant_set", "Gem Merchant Collection", CollectionType.TRADE_GOOD,
                      ("Common Gem", "Precious Gem", "Dragon Gem")),
    CollectionSetInfo("exotic_goods_set", "Exotic Goods Collection", CollectionType.TRADE_GOOD,
                      ("Basic Potion", "Elixir", "Phoenix Elixir")),
    CollectionSetInfo("ancient_ruins_set", "Ancient Ruins Collection", CollectionType.DISCOVERY,
                      ("Ancient Artifact", "Ruined Relic", "Lost Treasure")),
    CollectionSetInfo("crystal_caverns_set", "Crystal Caverns Collection", CollectionType.DISCOVERY,
                      ("Crystal Shard", "Prismatic Gem", "Luminous Stone")),
    CollectionSetInfo("shadow_realm_set", "Shadow Realm Collection", CollectionType.DISCOVERY,
                      ("Shadow Essence", "Dark Fragment", "Void Crystal")),
    CollectionSetInfo("ethereal_plains_set", "Ethereal Plains Collection", CollectionType.DISCOVERY,
                      ("Ethereal Fragment", "Void Stone", "Mystic Orb")),
    CollectionSetInfo("dragon_hoard_set", "Dragon Hoard Collection", CollectionType.LEGENDARY,
                      ("Dragon Scale", "Dragon Heart", "Dragon Crown")),
    CollectionSetInfo("phoenix_nest_set", "Phoenix Nest Collection", CollectionType.LEGENDARY,
                      ("Phoenix Feather", "Phoenix Ash", "Phoenix Egg")),
    CollectionSetInfo("void_treasure_set", "Void Treasure Collection", CollectionType.LEGENDARY,
                      ("Void Crystal", "Void Essence", "Void Crown")),
    CollectionSetInfo("eternal_flame_set", "Eternal Flame Collection", CollectionType.LEGENDARY,
                      ("Eternal Ember", "Flame Core", "Inferno Stone")),
)

_COLLECTION_BASE_VALUES: dict[CollectionType, int] = {
    CollectionType.TRADE_GOOD: 50,
    CollectionType.DISCOVERY: 75,
    CollectionType.LEGENDARY: 150,
}

_COLLECTION_ENCOUNTER_TYPES: dict[CollectionType, EncounterType] = {
    CollectionType.TRADE_GOOD: EncounterType.TRADE_OPPORTUNITY,
    CollectionType.DISCOVERY: EncounterType.DISCOVERY_SITE,
    CollectionType.LEGENDARY: EncounterType.RISK_EVENT,
}


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def clamp_scalar(value: float) -> float:
    """Clamp a difficulty or quality scalar to the 1-10 scale."""
    return max(MIN_SCALAR, min(MAX_SCALAR, value))


def power_scale(coefficient: float, scalar: float, exponent: float) -> int:
    """Return round(coefficient * scalar ** exponent), the option generation law."""
    return round_half_up(coefficient * math.pow(scalar, exponent))


def depth_multiplier(depth: int, exponent: float) -> float:
    return math.pow(max(1, depth), exponent)


def depth_adjusted_scalar(scalar: float, depth: int, exponent: float) -> float:
    return clamp_scalar(scalar * depth_multiplier(depth, exponent))


def modify_reward(reward: EncounterReward, modifier: float) -> EncounterReward:
    """Scale energy, xp and every item quantity of a reward independently."""
    return EncounterReward(
        energy=round_half_up(reward.energy * modifier),
        items=tuple(replace(item, quantity=round_half_up(item.quantity * modifier)) for item in reward.items),
        xp=round_half_up(reward.xp * modifier),
    )


def encounter_type_multiplier(encounter_type: EncounterType | str) -> float:
    try:
        return ENCOUNTER_TYPE_MULTIPLIERS[EncounterType(encounter_type)]
    except ValueError:
        logger.debug(f"Unknown encounter type {encounter_type!r}, using multiplier 1.0")
        return 1.0


class RewardCalculator:
    """Pure reward math; the only state is the scaling factor and random source."""

    def __init__(self, depth_scaling_factor: float = 0.2, rng: random.Random | None = None) -> None:
        self._depth_scaling_factor = depth_scaling_factor
        self._rng = rng if rng is not None else random.Random()

    def get_depth_scaling_factor(self) -> float:
        return self._depth_scaling_factor

    def get_encounter_type_multipliers(self) -> dict[EncounterType, float]:
        return dict(ENCOUNTER_TYPE_MULTIPLIERS)

    def get_encounter_type_multiplier(self, encounter_type: EncounterType | str) -> float:
        return encounter_type_multiplier(encounter_type)

    def calculate_depth_scaling(self, depth: int) -> float:
        return 1 + max(0, depth) * self._depth_scaling_factor

    def scale_reward_by_depth(self, base_reward: float, depth: int) -> int:
        return round_half_up(base_reward * self.calculate_depth_scaling(depth))

    def random_factor(self, depth: int) -> float:
        """Draw a variance factor centred on 1.0 that widens with depth."""
        spread = min(MAX_VARIANCE, BASE_VARIANCE + max(0, depth - 1) * VARIANCE_PER_DEPTH)
        return self._rng.uniform(1 - spread, 1 + spread)

    def calculate_final_reward(self, base_reward: float, encounter_type: EncounterType | str, depth: int) -> int:
        scaled = base_reward * encounter_type_multiplier(encounter_type) * self.calculate_depth_scaling(depth)
        return round_half_up(max(1, scaled * self.random_factor(depth)))

    def generate_random_reward_variation(self, base_reward: float, depth: int) -> int:
        scaled = base_reward * self.calculate_depth_scaling(depth)
        return round_half_up(max(1, scaled * self.random_factor(depth)))

    def get_collection_sets_for_type(self, collection_type: CollectionType | str) -> list[CollectionSetInfo]:
        return [info for info in COLLECTION_SETS if info.type == CollectionType(collection_type)]

    def generate_collection_reward(self, collection_type: CollectionType | str, depth: int) -> CollectedItem:
        kind = CollectionType(collection_type)
        selected_set = self._rng.choice(self.get_collection_sets_for_type(kind))
        item_name = self._rng.choice(selected_set.items)
        # No variance here: value strictly increases with depth.
        value = round_half_up(
            _COLLECTION_BASE_VALUES[kind]
            * encounter_type_multiplier(_COLLECTION_ENCOUNTER_TYPES[kind])
            * self.calculate_depth_scaling(depth)
        )
        return CollectedItem(
            id=f"{kind.value}-{selected_set.id}-{uuid.uuid4().hex[:12]}",
            type=kind,
            set_id=selected_set.id,
            value=value,
            name=item_name,
            description=f"A {kind.value.replace('_', ' ')} item from the {selected_set.name}",
        )

    def process_encounter_rewards(
        self,
        items: Iterable[CollectedItem],
        encounter_type: EncounterType | str,
        depth: int,
    ) -> list[CollectedItem]:
        return [
            replace(item, value=self.calculate_final_reward(item.value, encounter_type, depth))
            for item in items
        ]
