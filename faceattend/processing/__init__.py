# faceattend/processing/__init__.py
"""
Processing modules - sampling, deduplication, enrollment.

- sampling: interval-gated recognition loop
- attendance: check-in deduplication (cool-downs)
- enrollment: capture + register flow
"""

from .attendance import AttendanceDeduplicator
from .sampling import SamplingLoop
from .enrollment import Enrollment, EnrollmentCapture, EnrollmentError

__all__ = [
    'AttendanceDeduplicator',
    'SamplingLoop',
    'Enrollment',
    'EnrollmentCapture',
    'EnrollmentError',
]
