# faceattend/recognition/__init__.py
"""
Face recognition - descriptor extraction and matching.

- extractor: frame -> descriptor (MobileFaceNet TFLite + Haar cascade)
- matcher: descriptor -> closest enrolled identity
"""

from .matcher import DEFAULT_THRESHOLD, euclidean_distance, match
from .extractor import DescriptorExtractor, FaceDetection, MobileFaceNetExtractor

__all__ = [
    'DEFAULT_THRESHOLD',
    'euclidean_distance',
    'match',
    'DescriptorExtractor',
    'FaceDetection',
    'MobileFaceNetExtractor',
]
