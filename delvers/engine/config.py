"""Configuration helpers for the encounter engine runtime."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os

DEFAULT_ACTIVE_ENCOUNTER_KEY = "delvers_descent_active_encounter"


@dataclass(frozen=True)
class EngineSettings:
    storage_path: str | None
    active_encounter_key: str
    depth_scaling_factor: float
    initial_severity_multiplier: float
    rng_seed: int | None
    log_level: str


def load_settings() -> EngineSettings:
    seed_raw = os.getenv("DELVERS_RNG_SEED")
    return EngineSettings(
        storage_path=os.getenv("DELVERS_STORAGE_PATH"),
        active_encounter_key=os.getenv("DELVERS_ACTIVE_ENCOUNTER_KEY", DEFAULT_ACTIVE_ENCOUNTER_KEY),
        depth_scaling_factor=float(os.getenv("DELVERS_DEPTH_SCALING_FACTOR", "0.2")),
        initial_severity_multiplier=float(os.getenv("DELVERS_INITIAL_SEVERITY", "1.0")),
        rng_seed=int(seed_raw) if seed_raw else None,
        log_level=os.getenv("DELVERS_LOG_LEVEL", "INFO").upper(),
    )


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the engine."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
