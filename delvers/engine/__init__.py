"""Encounter engine for the Delver's Descent dungeon run."""

from .config import EngineSettings, load_settings, setup_logging
from .errors import EncounterError, EncounterProtocolError, InvalidEncounterDataError
from .failures import FailureConsequenceManager
from .hazard import HazardEncounter, create_hazard_config
from .rest_site import RestSiteEncounter, create_rest_site_config
from .resolver import EncounterResolver, create_resolver
from .rewards import RewardCalculator
from .risk_event import RiskEventEncounter, create_risk_level_config
from .store import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore, create_store

__all__ = [
    "create_hazard_config",
    "create_resolver",
    "create_rest_site_config",
    "create_risk_level_config",
    "create_store",
    "EncounterError",
    "EncounterProtocolError",
    "EncounterResolver",
    "EngineSettings",
    "FailureConsequenceManager",
    "HazardEncounter",
    "InMemoryKeyValueStore",
    "InvalidEncounterDataError",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "load_settings",
    "RestSiteEncounter",
    "RewardCalculator",
    "RiskEventEncounter",
    "setup_logging",
]
