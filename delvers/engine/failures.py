"""Failure consequences with escalating severity and encounter lockouts."""

from __future__ import annotations

from dataclasses import dataclass
import logging

from delvers.engine.models import FailureConsequences, FailureKind, FailureStatistics
from delvers.engine.rewards import round_half_up

logger = logging.getLogger(__name__)

MIN_SEVERITY = 1.0
MAX_SEVERITY = 3.0
SEVERITY_STEP = 0.2
SEVERITY_RELIEF = 0.1
FORCED_RETREAT_THRESHOLD = 1.5
LOCKOUT_THRESHOLD = 2.0


@dataclass(frozen=True)
class FailureTier:
    energy_loss: int
    item_loss_risk: float
    description: str


FAILURE_TIERS: dict[FailureKind, FailureTier] = {
    FailureKind.ENERGY_EXHAUSTED: FailureTier(
        5, 0.1, "Ran out of energy at depth {depth}. Must retreat carefully."
    ),
    FailureKind.OBJECTIVE_FAILED: FailureTier(
        10, 0.2, "Failed to complete objective at depth {depth}. Lost valuable time and resources."
    ),
    FailureKind.FORCED_RETREAT: FailureTier(
        15, 0.3, "Forced to retreat from depth {depth}. Encountered dangerous obstacles."
    ),
    FailureKind.ENCOUNTER_LOCKOUT: FailureTier(
        20, 0.4, "Encounter at depth {depth} became inaccessible. Must find alternative route."
    ),
}


def clamp_probability(value: float) -> float:
    return max(0.0, min(1.0, value))


def coerce_failure_kind(kind: FailureKind | str | None) -> FailureKind | None:
    try:
        return FailureKind(kind)
    except ValueError:
        return None


def scale_consequence(consequence: FailureConsequences, modifier: float) -> FailureConsequences:
    """Scale a base consequence by an option's consequence modifier.

    Modifiers above 1.5 always force a retreat and above 2.0 always lock the
    encounter, whatever the base consequence says.
    """
    return FailureConsequences(
        energy_loss=round_half_up(consequence.energy_loss * modifier),
        item_loss_risk=clamp_probability(consequence.item_loss_risk * modifier),
        forced_retreat=consequence.forced_retreat or modifier > FORCED_RETREAT_THRESHOLD,
        encounter_lockout=consequence.encounter_lockout or modifier > LOCKOUT_THRESHOLD,
        description=consequence.description,
    )


class FailureConsequenceManager:
    """Tracks failure history across encounters and derives penalties from it."""

    def __init__(self, initial_severity_multiplier: float = 1.0) -> None:
        self._severity_multiplier = initial_severity_multiplier
        self._failure_counts: dict[str, int] = {}
        self._locked_out: set[str] = set()
        self._total_failures = 0
        self._total_successes = 0

    def get_failure_severity_multiplier(self) -> float:
        return self._severity_multiplier

    def get_failure_types(self) -> list[FailureKind]:
        return list(FailureKind)

    def get_consecutive_failures(self, encounter_id: str) -> int:
        return self._failure_counts.get(encounter_id, 0)

    def _tier(self, kind: FailureKind | str) -> FailureTier:
        resolved = coerce_failure_kind(kind)
        if resolved is None:
            return FAILURE_TIERS[FailureKind.OBJECTIVE_FAILED]
        return FAILURE_TIERS[resolved]

    def calculate_energy_loss(self, kind: FailureKind | str, depth: int) -> int:
        depth_factor = 1 + depth * 0.1
        return round_half_up(self._tier(kind).energy_loss * depth_factor * self._severity_multiplier)

    def calculate_item_loss_risk(self, kind: FailureKind | str, depth: int) -> float:
        depth_factor = 1 + depth * 0.05
        return min(1.0, self._tier(kind).item_loss_risk * depth_factor * self._severity_multiplier)

    def should_force_retreat(self, kind: FailureKind | str) -> bool:
        return coerce_failure_kind(kind) in (FailureKind.FORCED_RETREAT, FailureKind.ENCOUNTER_LOCKOUT)

    def should_lockout_encounter(self, kind: FailureKind | str) -> bool:
        return coerce_failure_kind(kind) is FailureKind.ENCOUNTER_LOCKOUT

    def lockout_encounter(self, encounter_id: str) -> None:
        if encounter_id not in self._locked_out:
            logger.info(f"Encounter {encounter_id} locked out")
        self._locked_out.add(encounter_id)

    def is_encounter_locked_out(self, encounter_id: str) -> bool:
        return encounter_id in self._locked_out

    def get_locked_out_encounters(self) -> list[str]:
        return sorted(self._locked_out)

    def record_failure(self, encounter_id: str) -> None:
        count = self._failure_counts.get(encounter_id, 0) + 1
        self._failure_counts[encounter_id] = count
        self._total_failures += 1
        escalated = min(MAX_SEVERITY, MIN_SEVERITY + count * SEVERITY_STEP)
        self._severity_multiplier = max(self._severity_multiplier, escalated)

    def record_success(self, encounter_id: str) -> None:
        self._failure_counts[encounter_id] = 0
        self._total_successes += 1
        self._severity_multiplier = max(MIN_SEVERITY, self._severity_multiplier - SEVERITY_RELIEF)

    def describe_failure(self, kind: FailureKind | str, depth: int) -> str:
        resolved = coerce_failure_kind(kind)
        if resolved is None:
            return f"Unknown failure at depth {depth}"
        return FAILURE_TIERS[resolved].description.format(depth=depth)

    def process_failure_consequences(
        self,
        kind: FailureKind | str,
        depth: int,
        encounter_id: str,
    ) -> FailureConsequences:
        energy_loss = self.calculate_energy_loss(kind, depth)
        item_loss_risk = self.calculate_item_loss_risk(kind, depth)
        forced_retreat = self.should_force_retreat(kind)
        encounter_lockout = self.should_lockout_encounter(kind)

        if encounter_lockout:
            self.lockout_encounter(encounter_id)

        self.record_failure(encounter_id)

        return FailureConsequences(
            energy_loss=energy_loss,
            item_loss_risk=item_loss_risk,
            forced_retreat=forced_retreat,
            encounter_lockout=encounter_lockout,
            description=self.describe_failure(kind, depth),
        )

    def get_failure_statistics(self) -> FailureStatistics:
        attempts = self._total_failures + self._total_successes
        failure_rate = self._total_failures / attempts if attempts > 0 else 0.0
        return FailureStatistics(
            total_failures=self._total_failures,
            total_successes=self._total_successes,
            failure_rate=failure_rate,
            current_severity_multiplier=self._severity_multiplier,
        )
