"""Domain models for encounter resolution, rewards and failure consequences."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Generic, Literal, TypeVar


class EncounterType(str, Enum):
    PUZZLE_CHAMBER = "puzzle_chamber"
    TRADE_OPPORTUNITY = "trade_opportunity"
    DISCOVERY_SITE = "discovery_site"
    RISK_EVENT = "risk_event"
    HAZARD = "hazard"
    REST_SITE = "rest_site"


BASIC_ENCOUNTER_TYPES: tuple[EncounterType, ...] = (
    EncounterType.PUZZLE_CHAMBER,
    EncounterType.TRADE_OPPORTUNITY,
    EncounterType.DISCOVERY_SITE,
)


class FailureKind(str, Enum):
    ENERGY_EXHAUSTED = "energy_exhausted"
    OBJECTIVE_FAILED = "objective_failed"
    FORCED_RETREAT = "forced_retreat"
    ENCOUNTER_LOCKOUT = "encounter_lockout"


class CollectionType(str, Enum):
    TRADE_GOOD = "trade_good"
    DISCOVERY = "discovery"
    LEGENDARY = "legendary"


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class ObstacleType(str, Enum):
    COLLAPSED_PASSAGE = "collapsed_passage"
    TREACHEROUS_BRIDGE = "treacherous_bridge"
    ANCIENT_GUARDIAN = "ancient_guardian"
    ENERGY_DRAIN = "energy_drain"
    MAZE_OF_MIRRORS = "maze_of_mirrors"


class RestSiteType(str, Enum):
    ANCIENT_SHRINE = "ancient_shrine"
    CRYSTAL_CAVE = "crystal_cave"
    MYSTIC_GROVE = "mystic_grove"
    ENERGY_WELL = "energy_well"
    GUARDIAN_SANCTUARY = "guardian_sanctuary"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"


EncounterStatus = Literal["active", "completed", "failed"]
OutcomeType = Literal["success", "failure"]


@dataclass(frozen=True)
class CollectedItem:
    id: str
    type: CollectionType
    set_id: str
    value: int
    name: str
    description: str


@dataclass(frozen=True)
class AdvancedEncounterItem:
    id: str
    name: str
    quantity: int
    rarity: Rarity
    type: CollectionType
    set_id: str
    value: int
    description: str


@dataclass(frozen=True)
class EncounterReward:
    energy: int
    items: tuple[AdvancedEncounterItem, ...]
    xp: int


@dataclass(frozen=True)
class FailureConsequences:
    energy_loss: int
    item_loss_risk: float
    forced_retreat: bool
    encounter_lockout: bool
    description: str = ""


@dataclass(frozen=True)
class EncounterOutcome:
    success: bool
    rewards: tuple[CollectedItem, ...] = ()
    energy_used: int = 0
    items_gained: tuple[CollectedItem, ...] = ()
    items_lost: tuple[CollectedItem, ...] = ()
    failure_type: FailureKind | None = None
    additional_effects: dict[str, Any] | None = None
    total_reward_value: int | None = None
    consequences: FailureConsequences | None = None


@dataclass
class EncounterState:
    id: str
    type: EncounterType
    node_id: str
    depth: int
    energy_cost: float
    status: EncounterStatus
    start_time: datetime
    progress: dict[str, Any] | None = None
    outcome: EncounterOutcome | None = None
    end_time: datetime | None = None


@dataclass(frozen=True)
class FailureStatistics:
    total_failures: int
    total_successes: int
    failure_rate: float
    current_severity_multiplier: float


@dataclass(frozen=True)
class EncounterStatistics:
    total_encounters: int
    successful_encounters: int
    failed_encounters: int
    total_reward_value: int
    average_reward_value: float


@dataclass(frozen=True)
class AdvancedEncounterOutcome:
    type: OutcomeType
    message: str
    reward: EncounterReward | None = None
    consequence: FailureConsequences | None = None


# Advanced encounter configuration


@dataclass(frozen=True)
class StrategicIntel:
    map_reveals: int
    shortcut_hints: int
    hazard_warnings: int


@dataclass(frozen=True)
class EnergyReserve:
    max_capacity: int
    current_capacity: int
    regeneration_rate: int


@dataclass(frozen=True)
class HazardConfig:
    obstacle_type: ObstacleType
    difficulty: float
    base_reward: EncounterReward
    failure_consequence: FailureConsequences


@dataclass(frozen=True)
class RestSiteConfig:
    rest_site_type: RestSiteType
    quality: float
    base_reward: EncounterReward
    energy_reserve: EnergyReserve
    strategic_intel: StrategicIntel
    failure_consequence: FailureConsequences


@dataclass(frozen=True)
class RiskLevelConfig:
    risk_level: RiskLevel
    difficulty: float
    success_rate: float
    base_reward: EncounterReward
    failure_consequence: FailureConsequences
    legendary_reward: EncounterReward | None = None


@dataclass(frozen=True, kw_only=True)
class EncounterOption:
    id: str
    name: str
    description: str
    energy_cost: int
    success_rate: float
    reward_modifier: float
    consequence_modifier: float
    special_effect: str | None = None


@dataclass(frozen=True, kw_only=True)
class SolutionPath(EncounterOption):
    pass


@dataclass(frozen=True, kw_only=True)
class RestAction(EncounterOption):
    energy_gain: int
    intel_gain: StrategicIntel
    success_rate: float = 1.0
    reward_modifier: float = 1.0
    consequence_modifier: float = 0.0


@dataclass(frozen=True, kw_only=True)
class RiskChoice(EncounterOption):
    success_rate_modifier: float


ConfigT = TypeVar("ConfigT")
OptionT = TypeVar("OptionT", bound=EncounterOption)


@dataclass(frozen=True)
class AdvancedEncounterState(Generic[ConfigT, OptionT]):
    encounter_id: str
    encounter_type: EncounterType
    config: ConfigT
    available_options: tuple[OptionT, ...]
    selected_option: OptionT | None = None
    is_resolved: bool = False
    outcome: AdvancedEncounterOutcome | None = None
