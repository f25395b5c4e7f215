# faceattend/processing/attendance.py
"""
Attendance deduplication.

A recognized face becomes a check-in only when both cool-downs pass:
- per identity: the person's last record (persisted history) is at
  least `identity_cooldown_ms` old
- global: no check-in was notified for anyone in the last
  `notification_cooldown_ms`

Usage:
    dedup = AttendanceDeduplicator(registry)

    record = dedup.on_match(result)
    if record is not None:
        notify(record)
"""
import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..data.models import AttendanceRecord, EventType, MatchResult, utc_now

logger = logging.getLogger(__name__)

IDENTITY_COOLDOWN_MS = 30000
NOTIFICATION_COOLDOWN_MS = 5000


class AttendanceDeduplicator:
    """Decides whether a match produces a new attendance record."""

    def __init__(
        self,
        registry,
        identity_cooldown_ms: int = IDENTITY_COOLDOWN_MS,
        notification_cooldown_ms: int = NOTIFICATION_COOLDOWN_MS,
        clock: Callable[[], datetime] = utc_now
    ):
        """
        Args:
            registry: Registry holding identities and attendance history
            identity_cooldown_ms: same-person suppression window
            notification_cooldown_ms: any-person suppression window
            clock: returns the current aware datetime
        """
        self.registry = registry
        self.identity_cooldown = timedelta(milliseconds=identity_cooldown_ms)
        self.notification_cooldown = timedelta(milliseconds=notification_cooldown_ms)
        self.clock = clock

        self._lock = threading.Lock()
        self._last_notification: Optional[datetime] = None

    @property
    def last_notification(self) -> Optional[datetime]:
        return self._last_notification

    def _in_identity_cooldown(self, employee_id: str, now: datetime) -> bool:
        last = self.registry.last_record(employee_id)
        return last is not None and now - last.timestamp < self.identity_cooldown

    def _in_notification_cooldown(self, now: datetime) -> bool:
        return (
            self._last_notification is not None
            and now - self._last_notification < self.notification_cooldown
        )

    def on_match(self, result: MatchResult) -> Optional[AttendanceRecord]:
        """Record a check-in for `result` unless a cool-down suppresses it."""
        if not result.detected or result.employee is None:
            return None

        employee = result.employee
        with self._lock:
            now = self.clock()

            if self._in_identity_cooldown(employee.id, now):
                logger.debug(f"{employee.name}: within identity cool-down, skipped")
                return None

            if self._in_notification_cooldown(now):
                logger.debug(f"{employee.name}: within notification cool-down, skipped")
                return None

            record = self.registry.record_attendance(
                employee,
                confidence=result.confidence,
                event_type=EventType.CHECK_IN,
                timestamp=now
            )
            if record is None:
                return None
            self._last_notification = now

        logger.info(f"🟢 {employee.name} - CHECK-IN ({result.confidence_percent}%)")
        return record

    def remaining_cooldown(self, employee_id: str) -> float:
        """Seconds until `employee_id` may check in again (0 if free)."""
        last = self.registry.last_record(employee_id)
        if last is None:
            return 0.0
        elapsed = self.clock() - last.timestamp
        return max(0.0, (self.identity_cooldown - elapsed).total_seconds())

    def reset(self):
        """Forget the notification timestamp (history is kept in the registry)."""
        with self._lock:
            self._last_notification = None
