"""Observation objects delivered to seats."""

from __future__ import annotations

from dataclasses import dataclass

from .serialize import digest
from .state import Record


@dataclass(frozen=True)
class Observation(Record):
    """Seat-specific view of a state."""

    def observation_digest(self) -> str:
        """Return a deterministic digest for event logs."""
        return digest(self.to_dict())
