"""State builders and persisted-state codecs for basic encounters."""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
import secrets
from typing import Any

from pydantic import TypeAdapter, ValidationError

from delvers.engine.models import BASIC_ENCOUNTER_TYPES, EncounterState, EncounterType

logger = logging.getLogger(__name__)

ID_SUFFIX_LENGTH = 9

_STATE_ADAPTER = TypeAdapter(EncounterState)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_encounter_id(now: datetime | None = None) -> str:
    """Return a unique id of the form ``encounter-<epoch ms>-<random suffix>``."""
    moment = now if now is not None else utc_now()
    suffix = secrets.token_hex(ID_SUFFIX_LENGTH)[:ID_SUFFIX_LENGTH]
    return f"encounter-{int(moment.timestamp() * 1000)}-{suffix}"


def build_initial_state(
    encounter_type: EncounterType,
    node_id: str,
    depth: int,
    energy_cost: float,
    now: datetime | None = None,
) -> EncounterState:
    started_at = now if now is not None else utc_now()
    return EncounterState(
        id=generate_encounter_id(started_at),
        type=encounter_type,
        node_id=node_id,
        depth=depth,
        energy_cost=energy_cost,
        status="active",
        start_time=started_at,
    )


def serialize_state(state: EncounterState) -> dict[str, Any]:
    return _STATE_ADAPTER.dump_python(state, mode="json")


def parse_state(raw: Any) -> EncounterState | None:
    """Validate a stored state's shape, returning None for anything malformed.

    Validation is strict against the JSON form: ids and tags must be strings,
    depth and energy cost integers, timestamps ISO strings. Nothing is coerced.
    """
    try:
        document = json.dumps(serialize_state(raw) if isinstance(raw, EncounterState) else raw)
    except (TypeError, ValueError):
        logger.warning("Discarding encounter state that is not JSON data")
        return None
    try:
        state = _STATE_ADAPTER.validate_json(document, strict=True)
    except ValidationError as exc:
        logger.warning(f"Discarding malformed encounter state: {exc.error_count()} validation error(s)")
        return None
    if state.type not in BASIC_ENCOUNTER_TYPES:
        logger.warning(f"Discarding encounter state with unsupported type {state.type.value!r}")
        return None
    return state
