# faceattend/core/model_factory.py
"""
Factory for the descriptor extractor.

Usage:
    from faceattend.core.model_factory import create_extractor

    extractor = create_extractor()
"""
import logging

from .settings import settings

logger = logging.getLogger(__name__)


def create_extractor(model_path=None, num_threads=None, min_face_size=None):
    """
    Build the MobileFaceNet extractor.

    Args:
        model_path: TFLite model (None = settings.RECOGNITION_MODEL)
        num_threads: interpreter threads (None = settings.TFLITE_NUM_THREADS)
        min_face_size: smallest face in pixels (None = settings.MIN_FACE_SIZE)

    Returns:
        MobileFaceNetExtractor instance
    """
    from ..recognition.extractor import MobileFaceNetExtractor

    if model_path is None:
        model_path = settings.RECOGNITION_MODEL
    if num_threads is None:
        num_threads = settings.TFLITE_NUM_THREADS
    if min_face_size is None:
        min_face_size = settings.MIN_FACE_SIZE

    logger.info(f"[Extractor] Loading {model_path}")
    return MobileFaceNetExtractor(
        model_path=model_path,
        num_threads=num_threads,
        min_face_size=min_face_size
    )
