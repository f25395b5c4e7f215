# faceattend/data/registry.py
"""
Registry of enrolled identities and their attendance records.

Thread-safe: all reads and writes go through one RLock. Observers are
called after the lock is released, once both collections are consistent,
so nobody sees a record whose identity is already gone.

Usage:
    registry = Registry(SqliteKeyValueStore("attendance.db"))
    alice = registry.add("Alice", "R&D", descriptor)
    registry.record_attendance(alice, confidence=0.62)
    registry.remove(alice.id)   # also drops Alice's records
"""
import logging
import threading
import uuid
from datetime import datetime
from typing import Callable, List, Optional

import numpy as np

from .models import AttendanceRecord, EventType, Identity, utc_now
from .storage import (
    MemoryKeyValueStore,
    load_identities,
    load_records,
    save_identities,
    save_records,
)

logger = logging.getLogger(__name__)


class Registry:
    """Identities plus attendance history, persisted through a key-value store."""

    def __init__(self, store=None):
        self.store = store if store is not None else MemoryKeyValueStore()
        self._lock = threading.RLock()
        self._observers: List[Callable] = []

        self._identities = {i.id: i for i in load_identities(self.store)}
        # Most-recent-first
        self._records = sorted(load_records(self.store), key=lambda r: r.timestamp, reverse=True)

        logger.info(f"Registry loaded: {len(self._identities)} identities, "
                    f"{len(self._records)} records")

    # === OBSERVERS ===
    def subscribe(self, callback: Callable):
        """callback(event: str, payload) after every mutation."""
        with self._lock:
            if callback not in self._observers:
                self._observers.append(callback)

    def unsubscribe(self, callback: Callable):
        with self._lock:
            if callback in self._observers:
                self._observers.remove(callback)

    def _notify(self, event: str, payload):
        with self._lock:
            observers = list(self._observers)
        for callback in observers:
            try:
                callback(event, payload)
            except Exception:
                logger.exception(f"Registry observer failed on {event}")

    # === IDENTITIES ===
    def add(
        self,
        name: str,
        department: str,
        descriptor: Optional[np.ndarray] = None,
        photo: str = ""
    ) -> Identity:
        """Enroll a new identity. A None descriptor is allowed but never matched."""
        if descriptor is not None:
            descriptor = np.asarray(descriptor, dtype=np.float32)

        identity = Identity(
            id=uuid.uuid4().hex,
            name=name,
            department=department,
            descriptor=descriptor,
            photo=photo,
            registered_at=utc_now(),
        )
        with self._lock:
            self._identities[identity.id] = identity
            save_identities(self.store, list(self._identities.values()))

        logger.info(f"Enrolled {name} ({department})"
                    f"{'' if identity.has_descriptor else ' without descriptor'}")
        self._notify("identity_added", identity)
        return identity

    def remove(self, identity_id: str) -> bool:
        """Remove an identity and every record referencing it."""
        with self._lock:
            identity = self._identities.pop(identity_id, None)
            if identity is None:
                return False
            before = len(self._records)
            self._records = [r for r in self._records if r.employee_id != identity_id]
            removed_records = before - len(self._records)
            save_identities(self.store, list(self._identities.values()))
            save_records(self.store, self._records)

        logger.info(f"Removed {identity.name} and {removed_records} record(s)")
        self._notify("identity_removed", identity)
        return True

    def get(self, identity_id: str) -> Optional[Identity]:
        with self._lock:
            return self._identities.get(identity_id)

    def list(self) -> List[Identity]:
        """Snapshot for the matcher."""
        with self._lock:
            return list(self._identities.values())

    def __len__(self):
        with self._lock:
            return len(self._identities)

    def __contains__(self, identity_id):
        with self._lock:
            return identity_id in self._identities

    # === ATTENDANCE RECORDS ===
    def record_attendance(
        self,
        identity: Identity,
        confidence: float,
        event_type: EventType = EventType.CHECK_IN,
        timestamp: Optional[datetime] = None
    ) -> Optional[AttendanceRecord]:
        """
        Prepend a record for `identity`.

        Returns:
            The record, or None if the identity was removed meanwhile
        """
        record = AttendanceRecord(
            id=uuid.uuid4().hex,
            employee_id=identity.id,
            employee_name=identity.name,
            timestamp=timestamp or utc_now(),
            type=event_type,
            confidence=confidence,
        )
        with self._lock:
            if identity.id not in self._identities:
                logger.warning(f"{identity.name}: no longer registered, record dropped")
                return None
            self._records.insert(0, record)
            save_records(self.store, self._records)

        self._notify("record_added", record)
        return record

    def records(self) -> List[AttendanceRecord]:
        """All records, most recent first."""
        with self._lock:
            return list(self._records)

    def last_record(self, identity_id: str) -> Optional[AttendanceRecord]:
        with self._lock:
            for record in self._records:
                if record.employee_id == identity_id:
                    return record
        return None

    def today_records(self, now: Optional[datetime] = None) -> List[AttendanceRecord]:
        """Records since local midnight."""
        now = (now or utc_now()).astimezone()
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        with self._lock:
            return [r for r in self._records if r.timestamp >= start]

    def clear_records(self):
        with self._lock:
            self._records = []
            save_records(self.store, self._records)

        logger.info("Attendance history cleared")
        self._notify("records_cleared", None)

    def stats(self, now: Optional[datetime] = None) -> dict:
        with self._lock:
            identities = list(self._identities.values())
            total = len(self._records)
        return {
            'registered': len(identities),
            'enrolled_biometric': sum(1 for i in identities if i.has_descriptor),
            'records_total': total,
            'records_today': len(self.today_records(now)),
        }
