import random

import pytest

from delvers.engine.errors import EncounterProtocolError
from delvers.engine.hazard import HazardEncounter, create_hazard_config
from delvers.engine.models import EncounterType, ObstacleType


class FixedRandom(random.Random):
    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value
        self.draws = 0

    def random(self) -> float:
        self.draws += 1
        return self.value


def _option(encounter: HazardEncounter, option_id: str):
    return next(option for option in encounter.get_state().available_options if option.id == option_id)


def test_create_hazard_config_scales_with_depth() -> None:
    shallow = create_hazard_config("collapsed_passage", 5, 1)
    deep = create_hazard_config("collapsed_passage", 5, 3)

    assert shallow.difficulty == 5.0
    assert shallow.base_reward.xp == 30
    assert shallow.failure_consequence.energy_loss == 12
    assert deep.base_reward.xp > shallow.base_reward.xp
    assert deep.failure_consequence.energy_loss > shallow.failure_consequence.energy_loss
    assert deep.difficulty > shallow.difficulty


def test_create_hazard_config_clamps_difficulty() -> None:
    assert create_hazard_config(ObstacleType.ENERGY_DRAIN, 10, 5).difficulty == 10.0
    assert create_hazard_config(ObstacleType.ENERGY_DRAIN, -3, 1).difficulty == 1.0


def test_create_hazard_config_sets_retreat_and_lockout_by_difficulty() -> None:
    moderate = create_hazard_config("treacherous_bridge", 7, 1)
    severe = create_hazard_config("treacherous_bridge", 8, 1)

    assert moderate.failure_consequence.forced_retreat
    assert not moderate.failure_consequence.encounter_lockout
    assert severe.failure_consequence.encounter_lockout


def test_options_include_generic_and_obstacle_paths() -> None:
    passage = HazardEncounter("hazard-1", create_hazard_config("collapsed_passage"))
    guardian = HazardEncounter("hazard-2", create_hazard_config("ancient_guardian"))

    assert [option.id for option in passage.get_state().available_options] == [
        "pay_toll",
        "alternate_route",
        "risky_gamble",
        "excavate",
    ]
    assert [option.id for option in guardian.get_state().available_options][3:] == ["negotiate", "outsmart"]


def test_harder_obstacles_cost_more_and_succeed_less() -> None:
    easy = HazardEncounter("hazard-1", create_hazard_config("maze_of_mirrors", 2))
    hard = HazardEncounter("hazard-2", create_hazard_config("maze_of_mirrors", 9))

    for option_id in ("pay_toll", "alternate_route", "solve_puzzle", "break_mirrors"):
        assert _option(hard, option_id).energy_cost >= _option(easy, option_id).energy_cost
        assert _option(hard, option_id).success_rate <= _option(easy, option_id).success_rate
    assert _option(hard, "pay_toll").energy_cost > _option(easy, "pay_toll").energy_cost


def test_select_unknown_path_returns_false() -> None:
    encounter = HazardEncounter("hazard-1", create_hazard_config("collapsed_passage"))

    assert not encounter.select_path("bogus-id")
    assert encounter.get_state().selected_option is None


def test_resolve_without_selection_raises() -> None:
    encounter = HazardEncounter("hazard-1", create_hazard_config("collapsed_passage"))

    with pytest.raises(EncounterProtocolError, match="No path selected for hazard encounter"):
        encounter.resolve()


def test_pay_toll_always_succeeds_with_reduced_reward() -> None:
    encounter = HazardEncounter("hazard-1", create_hazard_config("collapsed_passage"), rng=FixedRandom(0.99))
    encounter.select_path("pay_toll")

    outcome = encounter.resolve()

    assert outcome.type == "success"
    assert outcome.message == "Successfully navigated the collapsed passage!"
    assert outcome.reward is not None
    assert outcome.reward.xp == 24
    assert outcome.reward.items[0].quantity == 1
    assert outcome.consequence is None


def test_special_effect_is_appended_to_success_message() -> None:
    encounter = HazardEncounter("hazard-1", create_hazard_config("collapsed_passage"), rng=FixedRandom(0.0))
    encounter.select_path("excavate")

    outcome = encounter.resolve()

    assert outcome.message.endswith("May discover hidden treasures")


def test_failure_scales_consequence_by_path_modifier() -> None:
    encounter = HazardEncounter("hazard-1", create_hazard_config("collapsed_passage"), rng=FixedRandom(0.99))
    encounter.select_path("risky_gamble")

    outcome = encounter.resolve()

    assert outcome.type == "failure"
    assert outcome.reward is None
    assert outcome.consequence is not None
    assert outcome.consequence.energy_loss == 24
    assert outcome.consequence.item_loss_risk == pytest.approx(0.4)
    assert outcome.consequence.forced_retreat
    assert not outcome.consequence.encounter_lockout
    assert outcome.message == "Failed to overcome the collapsed passage. You lost 24 energy."


def test_resolve_is_memoized() -> None:
    rng = FixedRandom(0.1)
    encounter = HazardEncounter("hazard-1", create_hazard_config("energy_drain"), rng=rng)
    encounter.select_path("alternate_route")

    first = encounter.resolve()
    second = encounter.resolve()

    assert first is second
    assert rng.draws == 1
    state = encounter.get_state()
    assert state.is_resolved
    assert state.outcome is first
    assert state.encounter_type == EncounterType.HAZARD


def test_selection_after_resolution_keeps_cached_outcome() -> None:
    rng = FixedRandom(0.1)
    encounter = HazardEncounter("hazard-1", create_hazard_config("energy_drain"), rng=rng)
    encounter.select_path("pay_toll")
    outcome = encounter.resolve()

    assert encounter.select_path("alternate_route")
    assert encounter.get_state().selected_option.id == "alternate_route"
    assert encounter.resolve() is outcome
    assert rng.draws == 1
