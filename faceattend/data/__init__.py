# faceattend/data/__init__.py
"""
Data layer - domain records, registry and storage.
"""
from .models import (
    AttendanceRecord,
    BoundingBox,
    EventType,
    Identity,
    MatchResult,
    utc_now,
)
from .registry import Registry
from .storage import MemoryKeyValueStore, SqliteKeyValueStore

__all__ = [
    'AttendanceRecord',
    'BoundingBox',
    'EventType',
    'Identity',
    'MatchResult',
    'utc_now',
    'Registry',
    'MemoryKeyValueStore',
    'SqliteKeyValueStore',
]
