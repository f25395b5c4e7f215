from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from faceattend.data import MemoryKeyValueStore, Registry
from faceattend.recognition.extractor import DescriptorExtractor

DIM = 128


def unit(index, scale=1.0, dim=DIM):
    """Descriptor with a single non-zero component."""
    v = np.zeros(dim, dtype=np.float32)
    v[index] = scale
    return v


class StubExtractor(DescriptorExtractor):
    """Returns fixed descriptors for fixed frames.

    String frames are looked up in `table`; any other frame gets `default`.
    """

    def __init__(self, table=None, default=None):
        self.table = dict(table or {})
        self.default = default
        self.calls = 0

    def extract(self, frame):
        self.calls += 1
        if isinstance(frame, str):
            return self.table.get(frame)
        return self.default


class FrameSource:
    """Hands out queued frames, then repeats the last one."""

    def __init__(self, *frames):
        self.frames = list(frames)
        self.reads = 0

    def read(self):
        self.reads += 1
        if len(self.frames) > 1:
            return self.frames.pop(0)
        return self.frames[0] if self.frames else None


class FakeClock:
    """Manually advanced clock for wall-time (datetime) or monotonic (seconds) use."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 3, 4, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now = self.now + timedelta(milliseconds=ms)


class MonotonicClock:
    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms / 1000.0


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def registry(store):
    return Registry(store)


@pytest.fixture
def clock():
    return FakeClock()
