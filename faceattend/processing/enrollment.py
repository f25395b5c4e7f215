# faceattend/processing/enrollment.py
"""
Enrollment: the only write path for descriptors.

capture() runs the same extractor as recognition on one frame and
refuses to continue without a face. submit() writes the identity.
register_without_capture() is the manual path for people enrolled
without biometrics; they are kept but never matched.
"""
import base64
import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from ..data.models import Identity

logger = logging.getLogger(__name__)

NO_FACE_MESSAGE = "No face detected. Please ensure your face is clearly visible."
MISSING_FIELDS_MESSAGE = "Please fill in all fields"
MISSING_CAPTURE_MESSAGE = "Please capture your face first"


class EnrollmentError(ValueError):
    """Enrollment step failed; the message is meant for the user."""


@dataclass
class EnrollmentCapture:
    descriptor: Optional[np.ndarray]
    photo: str = ""


def encode_photo(frame, quality: int = 80) -> str:
    """JPEG data URL of a frame, empty string if encoding fails."""
    ok, buf = cv2.imencode('.jpg', frame, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not ok:
        return ""
    return "data:image/jpeg;base64," + base64.b64encode(buf.tobytes()).decode('ascii')


class Enrollment:
    """Capture + submit flow on top of an extractor and a registry."""

    def __init__(self, extractor, registry):
        self.extractor = extractor
        self.registry = registry

    def capture(self, frame) -> EnrollmentCapture:
        """
        Extract a descriptor from one frame.

        Raises:
            EnrollmentError: no frame or no face in it
        """
        if frame is None:
            raise EnrollmentError(NO_FACE_MESSAGE)

        descriptor = self.extractor.extract(frame)
        if descriptor is None:
            logger.info("Enrollment capture: no face found")
            raise EnrollmentError(NO_FACE_MESSAGE)

        return EnrollmentCapture(
            descriptor=np.asarray(descriptor, dtype=np.float32),
            photo=encode_photo(frame)
        )

    def submit(self, name: str, department: str, capture: Optional[EnrollmentCapture]) -> Identity:
        """
        Register an identity from a successful capture.

        Raises:
            EnrollmentError: empty name/department or no usable capture
        """
        name = (name or "").strip()
        department = (department or "").strip()
        if not name or not department:
            raise EnrollmentError(MISSING_FIELDS_MESSAGE)
        if capture is None or capture.descriptor is None:
            raise EnrollmentError(MISSING_CAPTURE_MESSAGE)

        return self.registry.add(name, department, capture.descriptor, capture.photo)

    def enroll(self, name: str, department: str, frame) -> Identity:
        """capture() then submit()."""
        name = (name or "").strip()
        department = (department or "").strip()
        if not name or not department:
            raise EnrollmentError(MISSING_FIELDS_MESSAGE)
        return self.submit(name, department, self.capture(frame))

    def register_without_capture(self, name: str, department: str, photo: str = "") -> Identity:
        """Manual enrollment: stored with a null descriptor, never matched."""
        name = (name or "").strip()
        department = (department or "").strip()
        if not name or not department:
            raise EnrollmentError(MISSING_FIELDS_MESSAGE)
        return self.registry.add(name, department, None, photo)
