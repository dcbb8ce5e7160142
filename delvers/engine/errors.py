"""Exceptions raised when callers sequence encounter operations incorrectly."""

from __future__ import annotations


class EncounterError(Exception):
    """Base class for encounter engine errors."""


class EncounterProtocolError(EncounterError):
    """Raised when an operation is called in the wrong lifecycle state."""


class InvalidEncounterDataError(EncounterError, ValueError):
    """Raised when caller-supplied encounter data is malformed."""
