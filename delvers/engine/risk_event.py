"""Risk events: push-your-luck gambles resolved by picking an approach."""

from __future__ import annotations

from dataclasses import dataclass

from delvers.engine.advanced import AdvancedEncounter
from delvers.engine.failures import clamp_probability, scale_consequence
from delvers.engine.models import (
    AdvancedEncounterItem,
    AdvancedEncounterOutcome,
    CollectionType,
    EncounterReward,
    EncounterType,
    FailureConsequences,
    Rarity,
    RiskChoice,
    RiskLevel,
    RiskLevelConfig,
)
from delvers.engine.rewards import clamp_scalar, depth_adjusted_scalar, depth_multiplier, modify_reward, power_scale, round_half_up

DIFFICULTY_PENALTY = 0.03
LEGENDARY_BAND = 0.25


@dataclass(frozen=True)
class _RewardTemplate:
    energy: float
    xp: float
    items: tuple[tuple[str, str, Rarity, CollectionType, str, int, str], ...]

    def build(self, multiplier: float) -> EncounterReward:
        return EncounterReward(
            energy=round_half_up(self.energy * multiplier),
            items=tuple(
                AdvancedEncounterItem(
                    id=item_id,
                    name=name,
                    quantity=1,
                    rarity=rarity,
                    type=kind,
                    set_id=set_id,
                    value=value,
                    description=description,
                )
                for item_id, name, rarity, kind, set_id, value, description in self.items
            ),
            xp=round_half_up(self.xp * multiplier),
        )


@dataclass(frozen=True)
class _LevelTemplate:
    success_rate: float
    reward: _RewardTemplate
    energy_loss: float
    item_loss_risk: float
    forced_retreat: bool
    encounter_lockout: bool
    legendary: _RewardTemplate | None = None


_LEVELS: dict[RiskLevel, _LevelTemplate] = {
    RiskLevel.LOW: _LevelTemplate(
        success_rate=0.8,
        reward=_RewardTemplate(10, 25, (
            ("common_gem", "Common Gem", Rarity.COMMON, CollectionType.TRADE_GOOD, "gem_set", 10, "A common gem"),
        )),
        energy_loss=5,
        item_loss_risk=0.1,
        forced_retreat=False,
        encounter_lockout=False,
    ),
    RiskLevel.MEDIUM: _LevelTemplate(
        success_rate=0.6,
        reward=_RewardTemplate(20, 50, (
            ("rare_crystal", "Rare Crystal", Rarity.RARE, CollectionType.TRADE_GOOD, "crystal_set", 25,
             "A rare crystal"),
        )),
        energy_loss=15,
        item_loss_risk=0.3,
        forced_retreat=False,
        encounter_lockout=False,
    ),
    RiskLevel.HIGH: _LevelTemplate(
        success_rate=0.4,
        reward=_RewardTemplate(35, 100, (
            ("epic_artifact", "Epic Artifact", Rarity.EPIC, CollectionType.LEGENDARY, "artifact_set", 50,
             "An epic artifact"),
        )),
        legendary=_RewardTemplate(50, 150, (
            ("legendary_relic", "Legendary Relic", Rarity.LEGENDARY, CollectionType.LEGENDARY, "relic_set", 100,
             "A legendary relic"),
        )),
        energy_loss=25,
        item_loss_risk=0.5,
        forced_retreat=True,
        encounter_lockout=False,
    ),
    RiskLevel.EXTREME: _LevelTemplate(
        success_rate=0.2,
        reward=_RewardTemplate(60, 200, (
            ("mythic_treasure", "Mythic Treasure", Rarity.LEGENDARY, CollectionType.LEGENDARY, "mythic_set", 200,
             "A mythic treasure"),
        )),
        legendary=_RewardTemplate(100, 300, (
            ("divine_artifact", "Divine Artifact", Rarity.LEGENDARY, CollectionType.LEGENDARY, "divine_set", 500,
             "A divine artifact"),
            ("ancient_power", "Ancient Power", Rarity.LEGENDARY, CollectionType.LEGENDARY, "power_set", 300,
             "Ancient power"),
        )),
        energy_loss=40,
        item_loss_risk=0.7,
        forced_retreat=True,
        encounter_lockout=True,
    ),
}

# Signature gamble offered only at the two highest risk levels.
_SIGNATURE_CHOICES: dict[RiskLevel, str] = {
    RiskLevel.HIGH: "high_stakes",
    RiskLevel.EXTREME: "all_or_nothing",
}


def _choice(
    config: RiskLevelConfig,
    difficulty: float,
    choice_id: str,
    name: str,
    description: str,
    cost: tuple[float, float],
    success_rate_modifier: float,
    reward_modifier: float,
    consequence_modifier: float,
) -> RiskChoice:
    success_rate = clamp_probability(
        (config.success_rate + success_rate_modifier) * (1 - (difficulty - 1) * DIFFICULTY_PENALTY)
    )
    return RiskChoice(
        id=choice_id,
        name=name,
        description=description,
        energy_cost=power_scale(cost[0], difficulty, cost[1]),
        success_rate=success_rate,
        success_rate_modifier=success_rate_modifier,
        reward_modifier=reward_modifier,
        consequence_modifier=consequence_modifier,
    )


class RiskEventEncounter(AdvancedEncounter[RiskLevelConfig, RiskChoice]):
    encounter_type = EncounterType.RISK_EVENT
    no_selection_message = "No choice selected for risk event"

    def _generate_options(self) -> list[RiskChoice]:
        config = self._config
        difficulty = clamp_scalar(config.difficulty)
        choices = [
            _choice(config, difficulty, "conservative", "Conservative", "Take a conservative approach",
                    cost=(4, 0.6), success_rate_modifier=0.2, reward_modifier=0.7, consequence_modifier=0.5),
            _choice(config, difficulty, "standard", "Standard", "Use standard tactics",
                    cost=(2, 0.5), success_rate_modifier=0.0, reward_modifier=1.0, consequence_modifier=1.0),
            _choice(config, difficulty, "aggressive", "Aggressive", "Take an aggressive approach",
                    cost=(1, 0.4), success_rate_modifier=-0.2, reward_modifier=1.5, consequence_modifier=1.5),
        ]
        level = RiskLevel(config.risk_level)
        if level is RiskLevel.HIGH:
            choices.append(
                _choice(config, difficulty, "high_stakes", "High Stakes", "High stakes gamble",
                        cost=(5, 0.5), success_rate_modifier=-0.15, reward_modifier=2.0, consequence_modifier=1.8)
            )
        elif level is RiskLevel.EXTREME:
            choices.append(
                _choice(config, difficulty, "all_or_nothing", "All or Nothing", "Go all or nothing!",
                        cost=(10, 0.5), success_rate_modifier=-0.1, reward_modifier=3.0, consequence_modifier=2.5)
            )
        return choices

    def select_choice(self, choice_id: str) -> bool:
        return self._select(choice_id)

    def is_legendary_success(self, choice: RiskChoice, roll: float) -> bool:
        """A signature gamble that lands in the best quarter of its success band."""
        level = RiskLevel(self._config.risk_level)
        return (
            self._config.legendary_reward is not None
            and _SIGNATURE_CHOICES.get(level) == choice.id
            and roll < choice.success_rate * LEGENDARY_BAND
        )

    def _build_outcome(self, option: RiskChoice, roll: float) -> AdvancedEncounterOutcome:
        if roll < option.success_rate:
            legendary = self.is_legendary_success(option, roll)
            source = self._config.legendary_reward if legendary else self._config.base_reward
            reward = modify_reward(source, option.reward_modifier)
            if legendary:
                message = "LEGENDARY SUCCESS! You discovered incredible treasures!"
            else:
                message = f"Risk paid off! You gained {reward.energy} energy and valuable items."
            return AdvancedEncounterOutcome(type="success", message=message, reward=reward)

        consequence = scale_consequence(self._config.failure_consequence, option.consequence_modifier)
        return AdvancedEncounterOutcome(
            type="failure",
            message=f"The risk didn't pay off. You lost {consequence.energy_loss} energy.",
            consequence=consequence,
        )

    @staticmethod
    def create_risk_level_config(
        risk_level: RiskLevel | str,
        difficulty: float = 5,
        depth: int = 1,
    ) -> RiskLevelConfig:
        try:
            level = RiskLevel(risk_level)
        except ValueError:
            raise ValueError(f"Invalid risk level: {risk_level}") from None

        template = _LEVELS[level]
        multiplier = depth_multiplier(depth, 1.2)
        return RiskLevelConfig(
            risk_level=level,
            difficulty=depth_adjusted_scalar(difficulty, depth, 0.25),
            success_rate=template.success_rate,
            base_reward=template.reward.build(multiplier),
            legendary_reward=template.legendary.build(multiplier) if template.legendary else None,
            failure_consequence=FailureConsequences(
                energy_loss=round_half_up(template.energy_loss * multiplier),
                item_loss_risk=template.item_loss_risk,
                forced_retreat=template.forced_retreat,
                encounter_lockout=template.encounter_lockout,
            ),
        )


create_risk_level_config = RiskEventEncounter.create_risk_level_config
