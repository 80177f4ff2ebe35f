"""Immutable, serializable records used for game states and observations."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Self

from .serialize import digest, to_serializable


@dataclass(frozen=True)
class Record:
    """Frozen dataclass base with field-wise serialization."""

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable dictionary of the dataclass fields."""
        return {field.name: to_serializable(getattr(self, field.name)) for field in fields(self)}

    def evolve(self, **changes: Any) -> Self:
        """Return a copy with `changes` applied."""
        return replace(self, **changes)


@dataclass(frozen=True)
class State(Record):
    """Base immutable state object with serialization helpers."""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build a state instance from serialized data."""
        return cls(**data)  # type: ignore[misc]

    def state_digest(self) -> str:
        """Return a deterministic digest for event logs and replay checks."""
        return digest(self.to_dict())
