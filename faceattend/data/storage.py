# faceattend/data/storage.py
"""
Persistence for identities and attendance records.

Both collections live in a key-value store as JSON documents and are
rewritten in full on every mutation. Descriptors are stored as plain
lists of floats, timestamps as ISO-8601 with offset.

Thread-safe: writes to SQLite go through a module lock, a fresh
connection is opened for every call (SQLite allows many readers, one writer).
"""
import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

import numpy as np

from .models import AttendanceRecord, EventType, Identity

logger = logging.getLogger(__name__)

EMPLOYEES_KEY = 'face-attendance-employees'
RECORDS_KEY = 'face-attendance-records'


class MemoryKeyValueStore:
    """Dict-backed store, used in tests and for throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str):
        self._data[key] = value


class SqliteKeyValueStore:
    """Key-value table in a SQLite file."""

    def __init__(self, db_path: str = "attendance.db"):
        self.db_path = db_path
        self._lock = threading.Lock()
        self._init_db()

    def _connect(self):
        conn = sqlite3.connect(self.db_path, timeout=10.0)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        conn = self._connect()
        try:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
            ''')
            conn.commit()
        finally:
            conn.close()

    def get(self, key: str) -> Optional[str]:
        conn = self._connect()
        try:
            row = conn.execute('SELECT value FROM kv WHERE key = ?', (key,)).fetchone()
        finally:
            conn.close()
        return row['value'] if row else None

    def set(self, key: str, value: str):
        with self._lock:
            conn = self._connect()
            try:
                conn.execute('''
                    INSERT INTO kv (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                                   updated_at = excluded.updated_at
                ''', (key, value))
                conn.commit()
            finally:
                conn.close()


# ============================================================================
# SERIALIZATION
# ============================================================================

def parse_timestamp(value: str) -> datetime:
    """ISO-8601 to an aware datetime. A trailing Z and naive values are read as UTC."""
    if isinstance(value, str) and value.endswith('Z'):
        value = value[:-1] + '+00:00'
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def serialize_identity(identity: Identity) -> dict:
    descriptor = None
    if identity.descriptor is not None:
        descriptor = np.asarray(identity.descriptor, dtype=np.float32).tolist()
    return {
        'id': identity.id,
        'name': identity.name,
        'department': identity.department,
        'faceDescriptor': descriptor,
        'photoUrl': identity.photo,
        'registeredAt': identity.registered_at.isoformat(),
    }


def deserialize_identity(data: dict) -> Identity:
    descriptor = data.get('faceDescriptor')
    return Identity(
        id=data['id'],
        name=data['name'],
        department=data.get('department', ''),
        descriptor=np.asarray(descriptor, dtype=np.float32) if descriptor else None,
        photo=data.get('photoUrl') or '',
        registered_at=parse_timestamp(data['registeredAt']),
    )


def serialize_record(record: AttendanceRecord) -> dict:
    return {
        'id': record.id,
        'employeeId': record.employee_id,
        'employeeName': record.employee_name,
        'timestamp': record.timestamp.isoformat(),
        'type': record.type.value,
        'confidence': record.confidence,
    }


def deserialize_record(data: dict) -> AttendanceRecord:
    return AttendanceRecord(
        id=data['id'],
        employee_id=data['employeeId'],
        employee_name=data['employeeName'],
        timestamp=parse_timestamp(data['timestamp']),
        type=EventType(data.get('type', EventType.CHECK_IN.value)),
        confidence=float(data.get('confidence', 0.0)),
    )


def _load_collection(store, key, parse) -> list:
    raw = store.get(key)
    if not raw:
        return []
    try:
        items = json.loads(raw)
        if not isinstance(items, list):
            raise ValueError(f"expected a list, got {type(items).__name__}")
        return [parse(item) for item in items]
    except (ValueError, KeyError, TypeError) as e:
        logger.warning(f"Failed to parse {key}, starting empty: {e}")
        return []


def load_identities(store) -> List[Identity]:
    return _load_collection(store, EMPLOYEES_KEY, deserialize_identity)


def save_identities(store, identities: List[Identity]):
    store.set(EMPLOYEES_KEY, json.dumps([serialize_identity(i) for i in identities]))


def load_records(store) -> List[AttendanceRecord]:
    return _load_collection(store, RECORDS_KEY, deserialize_record)


def save_records(store, records: List[AttendanceRecord]):
    store.set(RECORDS_KEY, json.dumps([serialize_record(r) for r in records]))
