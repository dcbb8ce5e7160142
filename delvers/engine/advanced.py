"""Shared state machine for option-based advanced encounters."""

from __future__ import annotations

import logging
import random
from typing import Generic

from delvers.engine.errors import EncounterProtocolError
from delvers.engine.models import (
    AdvancedEncounterOutcome,
    AdvancedEncounterState,
    ConfigT,
    EncounterType,
    OptionT,
)

logger = logging.getLogger(__name__)


class AdvancedEncounter(Generic[ConfigT, OptionT]):
    """One encounter instance: generate options, take one selection, resolve once.

    Subclasses provide ``_generate_options`` and ``_build_outcome``. The
    outcome is computed from a single uniform draw on the first ``resolve``
    call and returned unchanged on every later call, even if another option
    is selected in between.
    """

    encounter_type: EncounterType
    no_selection_message = "No option selected"

    def __init__(self, encounter_id: str, config: ConfigT, rng: random.Random | None = None) -> None:
        self._encounter_id = encounter_id
        self._config = config
        self._rng = rng if rng is not None else random.Random()
        self._options: tuple[OptionT, ...] = tuple(self._generate_options())
        self._selected: OptionT | None = None
        self._outcome: AdvancedEncounterOutcome | None = None

    def _generate_options(self) -> list[OptionT]:
        raise NotImplementedError

    def _build_outcome(self, option: OptionT, roll: float) -> AdvancedEncounterOutcome:
        raise NotImplementedError

    def get_state(self) -> AdvancedEncounterState[ConfigT, OptionT]:
        return AdvancedEncounterState(
            encounter_id=self._encounter_id,
            encounter_type=self.encounter_type,
            config=self._config,
            available_options=self._options,
            selected_option=self._selected,
            is_resolved=self._outcome is not None,
            outcome=self._outcome,
        )

    def _select(self, option_id: str) -> bool:
        for option in self._options:
            if option.id == option_id:
                self._selected = option
                return True
        logger.debug(f"{self._encounter_id}: unknown option {option_id!r}")
        return False

    def resolve(self) -> AdvancedEncounterOutcome:
        if self._selected is None:
            raise EncounterProtocolError(self.no_selection_message)
        if self._outcome is not None:
            return self._outcome

        roll = self._rng.random()
        self._outcome = self._build_outcome(self._selected, roll)
        logger.info(
            f"{self.encounter_type.value} {self._encounter_id} resolved via "
            f"{self._selected.id}: {self._outcome.type}"
        )
        return self._outcome
