"""Rest site encounters: safe stops that restore energy and yield map intel."""

from __future__ import annotations

from delvers.engine.advanced import AdvancedEncounter
from delvers.engine.models import (
    AdvancedEncounterItem,
    AdvancedEncounterOutcome,
    CollectionType,
    EncounterReward,
    EncounterType,
    EnergyReserve,
    FailureConsequences,
    Rarity,
    RestAction,
    RestSiteConfig,
    RestSiteType,
    StrategicIntel,
)
from delvers.engine.rewards import clamp_scalar, depth_adjusted_scalar, depth_multiplier, modify_reward, power_scale, round_half_up

# (item id, name, rarity, xp per unit, description)
_INTEL_ITEMS = (
    ("map_reveal", "Map Information", Rarity.COMMON, 5, "Reveals map information"),
    ("shortcut_hint", "Shortcut Hint", Rarity.RARE, 10, "Provides shortcut information"),
    ("hazard_warning", "Hazard Warning", Rarity.UNCOMMON, 8, "Warns about hazards"),
)


def _intel(quality: float, reveals: float, hints: float, warnings: float) -> StrategicIntel:
    return StrategicIntel(
        map_reveals=round_half_up(quality * reveals),
        shortcut_hints=round_half_up(quality * hints),
        hazard_warnings=round_half_up(quality * warnings),
    )


def _rest_action(
    quality: float,
    action_id: str,
    name: str,
    description: str,
    cost: tuple[float, float],
    gain: tuple[float, float],
    intel: tuple[float, float, float],
    special_effect: str | None = None,
) -> RestAction:
    return RestAction(
        id=action_id,
        name=name,
        description=description,
        energy_cost=power_scale(cost[0], quality, cost[1]),
        energy_gain=power_scale(gain[0], quality, gain[1]),
        intel_gain=_intel(quality, *intel),
        special_effect=special_effect,
    )


def _generic_actions(quality: float) -> list[RestAction]:
    return [
        _rest_action(quality, "quick_rest", "Quick Rest", "Take a brief rest to recover some energy",
                     cost=(0, 0), gain=(5, 0.5), intel=(0, 0, 0)),
        _rest_action(quality, "thorough_rest", "Thorough Rest", "Take time to fully recover and gather information",
                     cost=(2, 0.3), gain=(10, 0.7), intel=(0.3, 0.2, 0.1)),
        _rest_action(quality, "meditation", "Meditation", "Focus your mind to gain deeper insights",
                     cost=(5, 0.4), gain=(3, 0.6), intel=(0.5, 0.4, 0.3),
                     special_effect="Gains enhanced perception for future encounters"),
    ]


def _site_actions(site_type: RestSiteType, quality: float) -> list[RestAction]:
    if site_type is RestSiteType.ANCIENT_SHRINE:
        return [
            _rest_action(quality, "prayer", "Prayer", "Offer prayers to the ancient spirits",
                         cost=(0, 0), gain=(8, 0.6), intel=(0.4, 0.3, 0.2),
                         special_effect="May receive divine guidance"),
            _rest_action(quality, "offering", "Make Offering", "Leave an offering to gain favor",
                         cost=(3, 0.3), gain=(15, 0.8), intel=(0.6, 0.5, 0.4),
                         special_effect="Gains blessing that reduces future energy costs"),
        ]
    if site_type is RestSiteType.CRYSTAL_CAVE:
        return [
            _rest_action(quality, "crystal_harvest", "Harvest Crystals", "Gather energy from the crystals",
                         cost=(4, 0.4), gain=(12, 0.7), intel=(0.3, 0.2, 0.1),
                         special_effect="May discover rare crystal formations"),
            _rest_action(quality, "crystal_resonance", "Crystal Resonance", "Harmonize with the crystal frequencies",
                         cost=(6, 0.5), gain=(6, 0.6), intel=(0.7, 0.6, 0.5),
                         special_effect="Gains enhanced spatial awareness"),
        ]
    if site_type is RestSiteType.MYSTIC_GROVE:
        return [
            _rest_action(quality, "nature_bond", "Nature Bond", "Connect with the natural energies",
                         cost=(2, 0.3), gain=(7, 0.6), intel=(0.4, 0.3, 0.2),
                         special_effect="Gains ability to sense natural hazards"),
        ]
    if site_type is RestSiteType.ENERGY_WELL:
        return [
            _rest_action(quality, "well_draw", "Draw from Well", "Draw pure energy from the well",
                         cost=(1, 0.2), gain=(20, 0.8), intel=(0.2, 0.1, 0.1),
                         special_effect="May discover ancient energy patterns"),
        ]
    if site_type is RestSiteType.GUARDIAN_SANCTUARY:
        return [
            _rest_action(quality, "guardian_counsel", "Guardian Counsel", "Seek wisdom from the guardian",
                         cost=(5, 0.4), gain=(5, 0.5), intel=(0.8, 0.7, 0.6),
                         special_effect="Gains ancient knowledge and warnings"),
        ]
    raise ValueError(f"Invalid rest site type: {site_type}")


def calculate_intel_reward(intel: StrategicIntel) -> EncounterReward:
    """Turn an action's intel gain into discovery items plus their xp value."""
    counts = (intel.map_reveals, intel.shortcut_hints, intel.hazard_warnings)
    items: list[AdvancedEncounterItem] = []
    xp = 0
    for count, (item_id, name, rarity, xp_each, description) in zip(counts, _INTEL_ITEMS):
        if count <= 0:
            continue
        items.append(
            AdvancedEncounterItem(
                id=item_id,
                name=name,
                quantity=count,
                rarity=rarity,
                type=CollectionType.DISCOVERY,
                set_id="intel_set",
                value=xp_each,
                description=description,
            )
        )
        xp += count * xp_each
    return EncounterReward(energy=0, items=tuple(items), xp=xp)


class RestSiteEncounter(AdvancedEncounter[RestSiteConfig, RestAction]):
    encounter_type = EncounterType.REST_SITE
    no_selection_message = "No action selected for rest site encounter"

    def _generate_options(self) -> list[RestAction]:
        quality = clamp_scalar(self._config.quality)
        return _generic_actions(quality) + _site_actions(RestSiteType(self._config.rest_site_type), quality)

    def select_action(self, action_id: str) -> bool:
        return self._select(action_id)

    def _build_outcome(self, option: RestAction, roll: float) -> AdvancedEncounterOutcome:
        # Resting never fails, the draw is ignored.
        net_energy = option.energy_gain - option.energy_cost
        energy = min(net_energy, self._config.energy_reserve.current_capacity)

        base = modify_reward(self._config.base_reward, option.reward_modifier)
        intel = calculate_intel_reward(option.intel_gain)
        reward = EncounterReward(energy=energy, items=base.items + intel.items, xp=base.xp + intel.xp)

        message = f"Rest completed at the {RestSiteType(self._config.rest_site_type).value.replace('_', ' ')}."
        if energy > 0:
            message += f" You gained {energy} energy."
        if intel.items:
            message += " You discovered valuable information."
        if option.special_effect:
            message += f" {option.special_effect}"
        return AdvancedEncounterOutcome(type="success", message=message, reward=reward)

    @staticmethod
    def create_rest_site_config(
        rest_site_type: RestSiteType | str,
        quality: float = 5,
        depth: int = 1,
    ) -> RestSiteConfig:
        site = RestSiteType(rest_site_type)
        scaled_quality = depth_adjusted_scalar(quality, depth, 0.2)
        multiplier = depth_multiplier(depth, 1.0)
        capacity = round_half_up(50 * scaled_quality**0.8 * multiplier)

        return RestSiteConfig(
            rest_site_type=site,
            quality=scaled_quality,
            base_reward=EncounterReward(
                energy=0,
                items=(
                    AdvancedEncounterItem(
                        id="rest_site_loot",
                        name="Rest Site Loot",
                        quantity=1,
                        rarity=Rarity.COMMON,
                        type=CollectionType.TRADE_GOOD,
                        set_id="rest_set",
                        value=10,
                        description="Loot from rest site",
                    ),
                ),
                xp=round_half_up(20 * multiplier),
            ),
            energy_reserve=EnergyReserve(
                max_capacity=capacity,
                current_capacity=capacity,
                regeneration_rate=power_scale(5, scaled_quality, 0.6),
            ),
            strategic_intel=_intel(scaled_quality, 0.5, 0.3, 0.2),
            failure_consequence=FailureConsequences(
                energy_loss=round_half_up(8 * multiplier),
                item_loss_risk=0.1,
                forced_retreat=False,
                encounter_lockout=False,
            ),
        )


create_rest_site_config = RestSiteEncounter.create_rest_site_config
