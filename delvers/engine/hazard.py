"""Hazard encounters: obstacles crossed by choosing a solution path."""

from __future__ import annotations

from delvers.engine.advanced import AdvancedEncounter
from delvers.engine.failures import scale_consequence
from delvers.engine.models import (
    AdvancedEncounterItem,
    AdvancedEncounterOutcome,
    CollectionType,
    EncounterReward,
    EncounterType,
    FailureConsequences,
    HazardConfig,
    ObstacleType,
    Rarity,
    SolutionPath,
)
from delvers.engine.rewards import clamp_scalar, depth_adjusted_scalar, depth_multiplier, modify_reward, power_scale, round_half_up


def _generic_paths(difficulty: float) -> list[SolutionPath]:
    return [
        SolutionPath(
            id="pay_toll",
            name="Pay Energy Toll",
            description="Spend energy to safely bypass the obstacle",
            energy_cost=power_scale(10, difficulty, 0.8),
            success_rate=1.0,
            reward_modifier=0.8,
            consequence_modifier=0.0,
        ),
        SolutionPath(
            id="alternate_route",
            name="Find Alternate Route",
            description="Look for a safer way around",
            energy_cost=power_scale(5, difficulty, 0.6),
            success_rate=max(0.3, 0.9 - difficulty * 0.08),
            reward_modifier=1.0,
            consequence_modifier=1.0,
        ),
        SolutionPath(
            id="risky_gamble",
            name="Risky Gamble",
            description="Attempt a dangerous but potentially rewarding approach",
            energy_cost=0,
            success_rate=max(0.1, 0.6 - difficulty * 0.06),
            reward_modifier=1.5 + difficulty * 0.1,
            consequence_modifier=1.5 + difficulty * 0.1,
        ),
    ]


def _obstacle_paths(obstacle_type: ObstacleType, difficulty: float) -> list[SolutionPath]:
    if obstacle_type is ObstacleType.COLLAPSED_PASSAGE:
        return [
            SolutionPath(
                id="excavate",
                name="Excavate Passage",
                description="Carefully dig through the collapsed area",
                energy_cost=power_scale(15, difficulty, 0.7),
                success_rate=max(0.4, 0.8 - difficulty * 0.05),
                reward_modifier=1.2,
                consequence_modifier=1.3,
                special_effect="May discover hidden treasures",
            ),
        ]
    if obstacle_type is ObstacleType.TREACHEROUS_BRIDGE:
        return [
            SolutionPath(
                id="repair_bridge",
                name="Repair Bridge",
                description="Attempt to stabilize the bridge structure",
                energy_cost=power_scale(20, difficulty, 0.8),
                success_rate=max(0.3, 0.7 - difficulty * 0.06),
                reward_modifier=1.3,
                consequence_modifier=1.4,
                special_effect="Creates permanent shortcut for future runs",
            ),
        ]
    if obstacle_type is ObstacleType.ANCIENT_GUARDIAN:
        return [
            SolutionPath(
                id="negotiate",
                name="Negotiate with Guardian",
                description="Attempt to reason with the ancient being",
                energy_cost=0,
                success_rate=max(0.2, 0.5 - difficulty * 0.04),
                reward_modifier=2.0,
                consequence_modifier=2.0,
                special_effect="May gain guardian's blessing",
            ),
            SolutionPath(
                id="outsmart",
                name="Outsmart Guardian",
                description="Use cunning to bypass the guardian",
                energy_cost=power_scale(8, difficulty, 0.5),
                success_rate=max(0.3, 0.6 - difficulty * 0.05),
                reward_modifier=1.4,
                consequence_modifier=1.6,
            ),
        ]
    if obstacle_type is ObstacleType.ENERGY_DRAIN:
        return [
            SolutionPath(
                id="resist_drain",
                name="Resist Energy Drain",
                description="Focus your willpower to resist the draining effect",
                energy_cost=power_scale(12, difficulty, 0.6),
                success_rate=max(0.4, 0.8 - difficulty * 0.06),
                reward_modifier=1.1,
                consequence_modifier=0.8,
                special_effect="Gains resistance to future energy drains",
            ),
        ]
    if obstacle_type is ObstacleType.MAZE_OF_MIRRORS:
        return [
            SolutionPath(
                id="solve_puzzle",
                name="Solve Mirror Puzzle",
                description="Use logic to navigate the maze",
                energy_cost=power_scale(6, difficulty, 0.4),
                success_rate=max(0.5, 0.9 - difficulty * 0.04),
                reward_modifier=1.3,
                consequence_modifier=1.2,
                special_effect="May reveal hidden passages",
            ),
            SolutionPath(
                id="break_mirrors",
                name="Break the Mirrors",
                description="Force your way through by breaking mirrors",
                energy_cost=power_scale(25, difficulty, 0.9),
                success_rate=max(0.6, 0.95 - difficulty * 0.03),
                reward_modifier=0.9,
                consequence_modifier=1.5,
                special_effect="Creates noise that may attract other hazards",
            ),
        ]
    raise ValueError(f"Invalid obstacle type: {obstacle_type}")


def _obstacle_label(obstacle_type: ObstacleType) -> str:
    return obstacle_type.value.replace("_", " ")


class HazardEncounter(AdvancedEncounter[HazardConfig, SolutionPath]):
    encounter_type = EncounterType.HAZARD
    no_selection_message = "No path selected for hazard encounter"

    def _generate_options(self) -> list[SolutionPath]:
        difficulty = clamp_scalar(self._config.difficulty)
        return _generic_paths(difficulty) + _obstacle_paths(ObstacleType(self._config.obstacle_type), difficulty)

    def select_path(self, path_id: str) -> bool:
        return self._select(path_id)

    def _build_outcome(self, option: SolutionPath, roll: float) -> AdvancedEncounterOutcome:
        label = _obstacle_label(ObstacleType(self._config.obstacle_type))
        if roll < option.success_rate:
            message = f"Successfully navigated the {label}!"
            if option.special_effect:
                message += f" {option.special_effect}"
            return AdvancedEncounterOutcome(
                type="success",
                message=message,
                reward=modify_reward(self._config.base_reward, option.reward_modifier),
            )

        consequence = scale_consequence(self._config.failure_consequence, option.consequence_modifier)
        return AdvancedEncounterOutcome(
            type="failure",
            message=f"Failed to overcome the {label}. You lost {consequence.energy_loss} energy.",
            consequence=consequence,
        )

    @staticmethod
    def create_hazard_config(
        obstacle_type: ObstacleType | str,
        difficulty: float = 5,
        depth: int = 1,
    ) -> HazardConfig:
        obstacle = ObstacleType(obstacle_type)
        scaled_difficulty = depth_adjusted_scalar(difficulty, depth, 0.3)
        multiplier = depth_multiplier(depth, 1.1)

        base_reward = EncounterReward(
            energy=0,
            items=(
                AdvancedEncounterItem(
                    id="hazard_loot",
                    name="Hazard Loot",
                    quantity=1,
                    rarity=Rarity.COMMON,
                    type=CollectionType.TRADE_GOOD,
                    set_id="hazard_set",
                    value=10,
                    description="Loot from hazard",
                ),
            ),
            xp=round_half_up(30 * multiplier),
        )
        failure_consequence = FailureConsequences(
            energy_loss=round_half_up(12 * multiplier),
            item_loss_risk=0.2,
            forced_retreat=scaled_difficulty >= 7,
            encounter_lockout=scaled_difficulty >= 8,
        )
        return HazardConfig(
            obstacle_type=obstacle,
            difficulty=scaled_difficulty,
            base_reward=base_reward,
            failure_consequence=failure_consequence,
        )


create_hazard_config = HazardEncounter.create_hazard_config
