import random
from dataclasses import replace

import pytest

from delvers.engine.errors import EncounterProtocolError
from delvers.engine.models import EnergyReserve, RestSiteType, StrategicIntel
from delvers.engine.rest_site import RestSiteEncounter, calculate_intel_reward, create_rest_site_config


class FixedRandom(random.Random):
    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


def test_create_rest_site_config_builds_reserve_and_intel() -> None:
    config = create_rest_site_config("energy_well", 5, 1)

    assert config.rest_site_type == RestSiteType.ENERGY_WELL
    assert config.quality == 5.0
    assert config.base_reward.xp == 20
    assert config.energy_reserve.max_capacity == 181
    assert config.energy_reserve.current_capacity == config.energy_reserve.max_capacity
    assert config.strategic_intel == StrategicIntel(map_reveals=3, shortcut_hints=2, hazard_warnings=1)
    assert config.failure_consequence.energy_loss == 8


def test_create_rest_site_config_scales_with_depth() -> None:
    shallow = create_rest_site_config(RestSiteType.MYSTIC_GROVE, 5, 1)
    deep = create_rest_site_config(RestSiteType.MYSTIC_GROVE, 5, 3)

    assert deep.quality > shallow.quality
    assert deep.energy_reserve.max_capacity > shallow.energy_reserve.max_capacity
    assert deep.base_reward.xp > shallow.base_reward.xp
    assert deep.failure_consequence.energy_loss > shallow.failure_consequence.energy_loss


def test_options_include_generic_and_site_actions() -> None:
    encounter = RestSiteEncounter("rest-1", create_rest_site_config("crystal_cave"))

    assert [option.id for option in encounter.get_state().available_options] == [
        "quick_rest",
        "thorough_rest",
        "meditation",
        "crystal_harvest",
        "crystal_resonance",
    ]


@pytest.mark.parametrize("site_type", list(RestSiteType))
def test_every_action_resolves_to_success(site_type: RestSiteType) -> None:
    config = create_rest_site_config(site_type, 6, 2)
    action_ids = [option.id for option in RestSiteEncounter("rest-1", config).get_state().available_options]

    for action_id in action_ids:
        encounter = RestSiteEncounter(f"rest-{action_id}", config, rng=FixedRandom(0.999))
        encounter.select_action(action_id)

        outcome = encounter.resolve()

        assert outcome.type == "success"
        assert outcome.consequence is None
        assert outcome.reward.energy <= config.energy_reserve.current_capacity


def test_energy_award_is_capped_by_reserve() -> None:
    config = replace(
        create_rest_site_config("energy_well", 5, 1),
        energy_reserve=EnergyReserve(max_capacity=5, current_capacity=5, regeneration_rate=1),
    )
    encounter = RestSiteEncounter("rest-1", config)
    encounter.select_action("well_draw")

    outcome = encounter.resolve()

    assert outcome.reward.energy == 5


def test_quick_rest_grants_energy_without_intel() -> None:
    encounter = RestSiteEncounter("rest-1", create_rest_site_config("ancient_shrine", 5, 1))
    encounter.select_action("quick_rest")

    outcome = encounter.resolve()

    assert outcome.reward.energy == 11
    assert outcome.reward.xp == 20
    assert [item.id for item in outcome.reward.items] == ["rest_site_loot"]
    assert outcome.message == "Rest completed at the ancient shrine. You gained 11 energy."


def test_meditation_adds_intel_items_and_xp() -> None:
    encounter = RestSiteEncounter("rest-1", create_rest_site_config("ancient_shrine", 5, 1))
    encounter.select_action("meditation")

    outcome = encounter.resolve()

    assert [item.id for item in outcome.reward.items] == [
        "rest_site_loot",
        "map_reveal",
        "shortcut_hint",
        "hazard_warning",
    ]
    assert outcome.reward.xp == 20 + 3 * 5 + 2 * 10 + 2 * 8
    assert "You discovered valuable information." in outcome.message
    assert outcome.message.endswith("Gains enhanced perception for future encounters")


def test_calculate_intel_reward_skips_empty_counts() -> None:
    reward = calculate_intel_reward(StrategicIntel(map_reveals=0, shortcut_hints=1, hazard_warnings=0))

    assert [item.id for item in reward.items] == ["shortcut_hint"]
    assert reward.xp == 10
    assert reward.energy == 0


def test_resolve_without_selection_raises() -> None:
    encounter = RestSiteEncounter("rest-1", create_rest_site_config("mystic_grove"))

    with pytest.raises(EncounterProtocolError, match="No action selected for rest site encounter"):
        encounter.resolve()


def test_select_unknown_action_returns_false() -> None:
    encounter = RestSiteEncounter("rest-1", create_rest_site_config("mystic_grove"))

    assert not encounter.select_action("bogus-id")
    assert encounter.get_state().selected_option is None


def test_repeated_resolve_returns_same_outcome() -> None:
    encounter = RestSiteEncounter("rest-1", create_rest_site_config("guardian_sanctuary"))
    encounter.select_action("guardian_counsel")

    assert encounter.resolve() == encounter.resolve()
