"""Lifecycle of basic encounters: start, track progress, complete."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from concurrent.futures import Executor
from dataclasses import dataclass, replace
from datetime import datetime
import logging
import numbers
from typing import Any

from delvers.engine.config import DEFAULT_ACTIVE_ENCOUNTER_KEY, EngineSettings, load_settings
from delvers.engine.engine import coerce_outcome, process_encounter_outcome, validate_encounter_outcome
from delvers.engine.errors import EncounterProtocolError, InvalidEncounterDataError
from delvers.engine.failures import FailureConsequenceManager
from delvers.engine.models import (
    BASIC_ENCOUNTER_TYPES,
    EncounterOutcome,
    EncounterState,
    EncounterStatistics,
    EncounterType,
    FailureConsequences,
    FailureKind,
)
from delvers.engine.rewards import RewardCalculator
from delvers.engine.rng import create_rng
from delvers.engine.state import build_initial_state, parse_state, serialize_state, utc_now
from delvers.engine.store import KeyValueStore, PersistenceAdapter, create_store

logger = logging.getLogger(__name__)

ENCOUNTER_HANDLERS: dict[EncounterType, str | None] = {
    EncounterType.PUZZLE_CHAMBER: "puzzle_chamber_handler",
    EncounterType.TRADE_OPPORTUNITY: "trade_opportunity_handler",
    EncounterType.DISCOVERY_SITE: "discovery_site_handler",
    # Advanced types run on their own state machines.
    EncounterType.RISK_EVENT: None,
    EncounterType.HAZARD: None,
    EncounterType.REST_SITE: None,
}


@dataclass
class _StatisticsTally:
    total: int = 0
    successful: int = 0
    failed: int = 0
    reward_value: int = 0

    def record(self, outcome: EncounterOutcome) -> None:
        self.total += 1
        if outcome.success:
            self.successful += 1
        else:
            self.failed += 1
        if outcome.total_reward_value is not None:
            self.reward_value += outcome.total_reward_value
        else:
            self.reward_value += sum(item.value for item in outcome.rewards)


def _coerce_basic_type(value: Any) -> EncounterType | None:
    try:
        encounter_type = EncounterType(value)
    except ValueError:
        return None
    return encounter_type if encounter_type in BASIC_ENCOUNTER_TYPES else None


class EncounterResolver:
    """Holds at most one active basic encounter and an append-only history."""

    def __init__(
        self,
        store: KeyValueStore | None = None,
        *,
        reward_calculator: RewardCalculator | None = None,
        failure_manager: FailureConsequenceManager | None = None,
        executor: Executor | None = None,
        storage_key: str = DEFAULT_ACTIVE_ENCOUNTER_KEY,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._persistence = PersistenceAdapter(store if store is not None else create_store(None), executor)
        self._reward_calculator = reward_calculator if reward_calculator is not None else RewardCalculator()
        self._failure_manager = failure_manager if failure_manager is not None else FailureConsequenceManager()
        self._storage_key = storage_key
        self._clock = clock if clock is not None else utc_now
        self._current: EncounterState | None = None
        self._history: list[EncounterState] = []
        self._tally = _StatisticsTally()
        self._current_counted = False

        restored = self.load_persisted_state()
        if restored is not None and restored.status == "active":
            self._current = restored
            logger.info(f"Restored active encounter {restored.id}")

    @property
    def reward_calculator(self) -> RewardCalculator:
        return self._reward_calculator

    @property
    def failure_manager(self) -> FailureConsequenceManager:
        return self._failure_manager

    # Lifecycle

    def get_current_state(self) -> EncounterState | None:
        return self._current

    def is_encounter_active(self) -> bool:
        return self._current is not None and self._current.status == "active"

    def can_start_encounter(self) -> bool:
        return not self.is_encounter_active()

    def can_update_progress(self) -> bool:
        return self.is_encounter_active()

    def can_complete_encounter(self) -> bool:
        return self.is_encounter_active()

    def start_encounter(
        self,
        encounter_type: EncounterType | str,
        node_id: str,
        depth: int,
        energy_cost: float,
    ) -> EncounterState:
        if self.is_encounter_active():
            raise EncounterProtocolError("Encounter is already active")

        resolved_type = _coerce_basic_type(encounter_type)
        if resolved_type is None:
            raise InvalidEncounterDataError("Invalid encounter type")
        if not isinstance(node_id, str) or node_id.strip() == "":
            raise InvalidEncounterDataError("Invalid node ID")
        if isinstance(depth, bool) or not isinstance(depth, int) or depth < 1:
            raise InvalidEncounterDataError("Invalid depth value")
        if isinstance(energy_cost, bool) or not isinstance(energy_cost, numbers.Real) or energy_cost <= 0:
            raise InvalidEncounterDataError("Invalid energy cost")

        self._current = build_initial_state(
            encounter_type=resolved_type,
            node_id=node_id,
            depth=depth,
            energy_cost=energy_cost,
            now=self._clock(),
        )
        self._current_counted = False
        logger.info(f"Started {resolved_type.value} encounter {self._current.id} at depth {depth}")
        self.save_encounter_state()
        return self._current

    def update_encounter_progress(self, progress: Mapping[str, Any]) -> None:
        if not self.is_encounter_active() or self._current is None:
            raise EncounterProtocolError("No active encounter")
        if not isinstance(progress, Mapping):
            raise InvalidEncounterDataError("Invalid progress data")

        self._current.progress = dict(progress)
        self.save_encounter_state()

    def complete_encounter(self, result: str, outcome: EncounterOutcome | Mapping[str, Any]) -> EncounterState:
        if not self.is_encounter_active() or self._current is None:
            raise EncounterProtocolError("No active encounter")
        resolved_outcome = coerce_outcome(outcome)
        if resolved_outcome is None:
            raise InvalidEncounterDataError("Invalid encounter outcome")

        current = self._current
        current.status = "completed" if result == "success" else "failed"
        current.outcome = resolved_outcome
        current.end_time = self._clock()

        snapshot = replace(current, progress=dict(current.progress) if current.progress is not None else None)
        self._history.append(snapshot)
        if not self._current_counted:
            self._tally.record(resolved_outcome)

        self._current = None
        self._current_counted = False
        self.clear_persisted_state()
        logger.info(f"Encounter {snapshot.id} finished with status {snapshot.status}")
        return snapshot

    def get_encounter_history(self) -> list[EncounterState]:
        return list(self._history)

    def clear_encounter_state(self) -> None:
        self._current = None
        self._current_counted = False

    def get_encounter_start_time(self) -> datetime | None:
        return self._current.start_time if self._current is not None else None

    def get_encounter_duration(self) -> float | None:
        """Seconds spent in the active encounter, or in the last finished one."""
        if self._current is not None:
            return (self._clock() - self._current.start_time).total_seconds()
        if self._history and self._history[-1].end_time is not None:
            last = self._history[-1]
            return (last.end_time - last.start_time).total_seconds()
        return None

    # Routing

    def get_encounter_type(self) -> EncounterType | None:
        return self._current.type if self._current is not None else None

    def get_encounter_handler(self) -> str | None:
        if self._current is None:
            return None
        return ENCOUNTER_HANDLERS.get(self._current.type)

    def is_valid_encounter_type(self, encounter_type: Any) -> bool:
        return _coerce_basic_type(encounter_type) is not None

    # Persistence

    def save_encounter_state(self) -> None:
        if self._current is None:
            return
        self._persistence.write(self._storage_key, self._current, encode=serialize_state)

    def load_persisted_state(self) -> EncounterState | None:
        raw = self._persistence.read(self._storage_key)
        if raw is None:
            return None
        return parse_state(raw)

    def load_encounter_state(self, raw: Any) -> EncounterState | None:
        state = parse_state(raw)
        if state is None:
            self._current = None
            return None
        self._current = state
        self._current_counted = False
        return state

    def clear_persisted_state(self) -> None:
        self._persistence.write(self._storage_key, None)

    # Outcomes and scaling

    def validate_encounter_outcome(self, raw: Any) -> bool:
        return validate_encounter_outcome(raw)

    def process_encounter_outcome(self, outcome: EncounterOutcome | Mapping[str, Any]) -> EncounterOutcome:
        if not self.is_encounter_active() or self._current is None:
            raise EncounterProtocolError("No active encounter")
        resolved_outcome = coerce_outcome(outcome)
        if resolved_outcome is None:
            raise InvalidEncounterDataError("Invalid encounter outcome")

        processed = process_encounter_outcome(
            state=self._current,
            outcome=resolved_outcome,
            reward_calculator=self._reward_calculator,
            failure_manager=self._failure_manager,
        )
        if not self._current_counted:
            self._tally.record(processed)
            self._current_counted = True
        return processed

    def get_encounter_statistics(self) -> EncounterStatistics:
        tally = self._tally
        average = tally.reward_value / tally.total if tally.total > 0 else 0.0
        return EncounterStatistics(
            total_encounters=tally.total,
            successful_encounters=tally.successful,
            failed_encounters=tally.failed,
            total_reward_value=tally.reward_value,
            average_reward_value=average,
        )

    def calculate_reward_scaling(self, depth: int) -> float:
        return self._reward_calculator.calculate_depth_scaling(depth)

    def scale_reward_by_depth(self, base_reward: float, depth: int) -> int:
        return self._reward_calculator.scale_reward_by_depth(base_reward, depth)

    def get_encounter_type_multiplier(self, encounter_type: EncounterType | str) -> float:
        return self._reward_calculator.get_encounter_type_multiplier(encounter_type)

    def calculate_final_reward(self, base_reward: float, encounter_type: EncounterType | str, depth: int) -> int:
        return self._reward_calculator.calculate_final_reward(base_reward, encounter_type, depth)

    def generate_random_reward_variation(self, base_reward: float, depth: int) -> int:
        return self._reward_calculator.generate_random_reward_variation(base_reward, depth)

    def calculate_failure_consequences(self, kind: FailureKind | str, depth: int) -> FailureConsequences:
        """Preview a failure's consequences without recording it."""
        manager = self._failure_manager
        return FailureConsequences(
            energy_loss=manager.calculate_energy_loss(kind, depth),
            item_loss_risk=manager.calculate_item_loss_risk(kind, depth),
            forced_retreat=manager.should_force_retreat(kind),
            encounter_lockout=manager.should_lockout_encounter(kind),
            description=manager.describe_failure(kind, depth),
        )


def create_resolver(
    settings: EngineSettings | None = None,
    store: KeyValueStore | None = None,
    executor: Executor | None = None,
) -> EncounterResolver:
    local_settings = settings if settings is not None else load_settings()
    return EncounterResolver(
        store if store is not None else create_store(local_settings.storage_path),
        reward_calculator=RewardCalculator(
            depth_scaling_factor=local_settings.depth_scaling_factor,
            rng=create_rng(local_settings.rng_seed, "rewards"),
        ),
        failure_manager=FailureConsequenceManager(
            initial_severity_multiplier=local_settings.initial_severity_multiplier,
        ),
        executor=executor,
        storage_key=local_settings.active_encounter_key,
    )
