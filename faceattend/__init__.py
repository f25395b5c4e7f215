# faceattend package
"""
faceattend - face recognition attendance tracker.

Structure:
    faceattend/
    ├── core/                     # Infrastructure
    │   ├── settings.py           # Configuration
    │   ├── camera.py             # Camera frame source
    │   ├── tflite_helper.py      # TFLite interpreter loader
    │   └── model_factory.py      # Factory for the extractor
    ├── data/                     # Data layer
    │   ├── models.py             # Identity, AttendanceRecord, MatchResult
    │   ├── storage.py            # Key-value persistence (SQLite)
    │   └── registry.py           # Enrolled identities + attendance history
    ├── recognition/              # Face recognition
    │   ├── extractor.py          # Frame -> descriptor
    │   └── matcher.py            # Descriptor -> identity
    ├── processing/               # Runtime logic
    │   ├── sampling.py           # Sampling loop
    │   ├── attendance.py         # Check-in deduplication
    │   └── enrollment.py         # Enrollment flow
    ├── web/                      # Management API (Flask)
    └── main.py                   # Main application

Usage:
    from faceattend import Registry, match

    registry = Registry()
    registry.add("Alice", "R&D", descriptor)
    result = match(probe, registry.list(), threshold=0.6)
"""

from .core.settings import settings
from .data import AttendanceRecord, EventType, Identity, MatchResult, Registry
from .recognition.matcher import match
from .processing import AttendanceDeduplicator, Enrollment, EnrollmentError, SamplingLoop

__all__ = [
    'settings',
    'AttendanceRecord',
    'EventType',
    'Identity',
    'MatchResult',
    'Registry',
    'match',
    'AttendanceDeduplicator',
    'Enrollment',
    'EnrollmentError',
    'SamplingLoop',
]
