# faceattend/data/models.py
"""
Domain records: enrolled identities, attendance events and per-tick
recognition results.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

import numpy as np


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EventType(Enum):
    """Attendance event kind."""
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"


@dataclass(frozen=True)
class BoundingBox:
    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    def to_dict(self) -> dict:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}


@dataclass(eq=False)
class Identity:
    """
    An enrolled employee.

    `descriptor` is None when enrollment had no usable capture; such
    identities stay in the registry but are never matched.
    """
    id: str
    name: str
    department: str
    descriptor: Optional[np.ndarray] = None
    photo: str = ""
    registered_at: datetime = field(default_factory=utc_now)

    @property
    def has_descriptor(self) -> bool:
        return self.descriptor is not None

    def __eq__(self, other):
        if not isinstance(other, Identity):
            return NotImplemented
        if (self.id, self.name, self.department, self.photo, self.registered_at) != \
                (other.id, other.name, other.department, other.photo, other.registered_at):
            return False
        if self.descriptor is None or other.descriptor is None:
            return self.descriptor is None and other.descriptor is None
        return np.array_equal(self.descriptor, other.descriptor)

    __hash__ = None

    def to_dict(self) -> dict:
        """Public view, without the descriptor."""
        return {
            'id': self.id,
            'name': self.name,
            'department': self.department,
            'has_descriptor': self.has_descriptor,
            'photo': self.photo,
            'registered_at': self.registered_at.isoformat(),
        }


@dataclass(frozen=True)
class AttendanceRecord:
    """One attendance event. Append-only, never mutated."""
    id: str
    employee_id: str
    employee_name: str
    timestamp: datetime
    type: EventType = EventType.CHECK_IN
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'employee_id': self.employee_id,
            'employee_name': self.employee_name,
            'timestamp': self.timestamp.isoformat(),
            'type': self.type.value,
            'confidence': self.confidence,
        }


@dataclass
class MatchResult:
    """Result of one sampling tick."""
    detected: bool
    employee: Optional[Identity] = None
    confidence: float = 0.0
    box: Optional[BoundingBox] = None

    @classmethod
    def no_face(cls) -> "MatchResult":
        return cls(detected=False)

    @property
    def is_known(self) -> bool:
        return self.detected and self.employee is not None

    @property
    def confidence_percent(self) -> int:
        # Not clamped: poor matches can go below 0
        return round(self.confidence * 100)

    def to_dict(self) -> dict:
        return {
            'detected': self.detected,
            'employee': self.employee.to_dict() if self.employee else None,
            'confidence': self.confidence,
            'confidence_percent': self.confidence_percent,
            'box': self.box.to_dict() if self.box else None,
        }
