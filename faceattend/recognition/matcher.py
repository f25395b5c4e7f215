# faceattend/recognition/matcher.py
"""
Nearest-neighbour matching of a probe descriptor against enrolled identities.

- Distance: Euclidean (L2)
- A match requires distance < threshold
- Ties: the first candidate at the minimum distance wins
- Confidence: 1 - distance, not clamped
"""
from typing import Iterable, Optional

import numpy as np

from ..data.models import BoundingBox, Identity, MatchResult

DEFAULT_THRESHOLD = 0.6


def euclidean_distance(a, b) -> float:
    a = np.asarray(a, dtype=np.float32)
    b = np.asarray(b, dtype=np.float32)
    if a.shape != b.shape:
        raise ValueError(f"Descriptor shape mismatch: {a.shape} vs {b.shape}")
    return float(np.linalg.norm(a - b))


def match(
    probe,
    identities: Iterable[Identity],
    threshold: float = DEFAULT_THRESHOLD,
    box: Optional[BoundingBox] = None
) -> MatchResult:
    """
    Find the enrolled identity closest to `probe`.

    Args:
        probe: descriptor of the face seen in the frame
        identities: registry snapshot; entries without descriptor are skipped
        threshold: maximum distance (exclusive) to accept a match
        box: face location, passed through to the result

    Returns:
        MatchResult with detected=True. employee is None when nothing is
        enrolled (confidence 0) or the best candidate is too far away.
    """
    candidates = [i for i in identities if i.descriptor is not None]
    if not candidates:
        return MatchResult(detected=True, employee=None, confidence=0.0, box=box)

    probe = np.asarray(probe, dtype=np.float32).ravel()
    vectors = [np.asarray(c.descriptor, dtype=np.float32).ravel() for c in candidates]
    for candidate, vector in zip(candidates, vectors):
        if vector.shape != probe.shape:
            raise ValueError(
                f"Descriptor length mismatch: probe has {probe.shape[0]}, "
                f"{candidate.name} has {vector.shape[0]}"
            )

    stack = np.stack(vectors)
    distances = np.linalg.norm(stack - probe, axis=1)
    best_idx = int(np.argmin(distances))   # first occurrence on ties
    best_distance = float(distances[best_idx])
    confidence = 1.0 - best_distance

    if best_distance < threshold:
        return MatchResult(detected=True, employee=candidates[best_idx],
                           confidence=confidence, box=box)
    return MatchResult(detected=True, employee=None, confidence=confidence, box=box)
