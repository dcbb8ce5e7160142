"""Outcome validation and processing for basic encounters."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from pydantic import TypeAdapter, ValidationError

from delvers.engine.failures import FailureConsequenceManager
from delvers.engine.models import EncounterOutcome, EncounterState, FailureKind
from delvers.engine.rewards import RewardCalculator

REQUIRED_OUTCOME_FIELDS = ("success", "rewards", "energy_used", "items_gained", "items_lost")

_OUTCOME_ADAPTER = TypeAdapter(EncounterOutcome)


def coerce_outcome(raw: Any) -> EncounterOutcome | None:
    """Return an EncounterOutcome for a valid outcome or mapping, else None."""
    if isinstance(raw, EncounterOutcome):
        return raw
    if not isinstance(raw, Mapping):
        return None
    if any(field_name not in raw for field_name in REQUIRED_OUTCOME_FIELDS):
        return None
    try:
        return _OUTCOME_ADAPTER.validate_python(dict(raw))
    except ValidationError:
        return None


def validate_encounter_outcome(raw: Any) -> bool:
    return coerce_outcome(raw) is not None


def process_encounter_outcome(
    state: EncounterState,
    outcome: EncounterOutcome,
    reward_calculator: RewardCalculator,
    failure_manager: FailureConsequenceManager,
) -> EncounterOutcome:
    """Scale a successful outcome's rewards or attach a failure's consequences."""
    if outcome.success:
        rewards = reward_calculator.process_encounter_rewards(outcome.rewards, state.type, state.depth)
        failure_manager.record_success(state.id)
        return replace(
            outcome,
            rewards=tuple(rewards),
            total_reward_value=sum(item.value for item in rewards),
        )

    failure_kind = outcome.failure_type or FailureKind.OBJECTIVE_FAILED
    consequences = failure_manager.process_failure_consequences(failure_kind, state.depth, state.id)
    return replace(
        outcome,
        failure_type=failure_kind,
        total_reward_value=0,
        consequences=consequences,
    )
