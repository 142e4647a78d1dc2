"""
Session State - Immutable snapshots of narrative progress.

Design principles:
- Immutable: every transition returns a new Session, never mutates one
- Serializable: snapshots round-trip through plain JSON-compatible dicts
- Storage-agnostic: where snapshots live between requests is the caller's concern

WorkingState is the only mutable view, and it exists only for the duration
of a single apply_choice call.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import ValidationError

from ..errors import DocumentError
from ..story_schema.document import SessionDocument
from ..story_schema.types import Number, Scalar


def _frozen(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class Session:
    """
    A snapshot of one play-through.

    ``time`` counts applied choices. Maps are read-only views; use
    copy_with to derive a changed snapshot.
    """
    node_id: str
    flags: Mapping[str, bool] = field(default_factory=dict)
    resources: Mapping[str, Number] = field(default_factory=dict)
    variables: Mapping[str, Scalar] = field(default_factory=dict)
    time: int = 0

    def __post_init__(self):
        object.__setattr__(self, "flags", _frozen(self.flags))
        object.__setattr__(self, "resources", _frozen(self.resources))
        object.__setattr__(self, "variables", _frozen(self.variables))

    def copy_with(self, **changes: Any) -> Session:
        """Return a new snapshot with the given fields replaced."""
        values = {
            "node_id": self.node_id,
            "flags": self.flags,
            "resources": self.resources,
            "variables": self.variables,
            "time": self.time,
        }
        values.update(changes)
        return Session(**values)

    def flag(self, key: str) -> bool:
        return bool(self.flags.get(key, False))

    def resource(self, key: str) -> Number:
        return self.resources.get(key, 0)

    def to_dict(self) -> dict[str, Any]:
        return session_to_dict(self)


@dataclass
class WorkingState:
    """Mutable copy of session state that effects are applied against."""
    flags: dict[str, bool] = field(default_factory=dict)
    resources: dict[str, Number] = field(default_factory=dict)
    variables: dict[str, Scalar] = field(default_factory=dict)
    time: int = 0
    goto_target: str | None = None

    @classmethod
    def from_session(cls, session: Session) -> WorkingState:
        return cls(
            flags=dict(session.flags),
            resources=dict(session.resources),
            variables=dict(session.variables),
            time=session.time,
        )


def session_to_dict(session: Session) -> dict[str, Any]:
    """Encode a snapshot as a JSON-compatible dict (camelCase keys)."""
    return {
        "nodeId": session.node_id,
        "flags": dict(session.flags),
        "resources": dict(session.resources),
        "variables": dict(session.variables),
        "time": session.time,
    }


def session_from_dict(data: Mapping[str, Any]) -> Session:
    """Decode a snapshot produced by session_to_dict."""
    try:
        doc = SessionDocument.model_validate(data)
    except ValidationError as e:
        details = [
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        ]
        raise DocumentError("Session snapshot is malformed", details) from e
    return Session(
        node_id=doc.node_id,
        flags=doc.flags,
        resources=doc.resources,
        variables=doc.variables,
        time=doc.time,
    )
