# faceattend/core/camera.py
"""
Camera frame source.

Opens an OpenCV capture device with retry logic and hands out the
current frame on demand. `read()` returns None while the camera is
unavailable; callers decide when to `open()` again.

Usage:
    with CameraManager(device_id=0) as camera:
        frame = camera.read()
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2

logger = logging.getLogger(__name__)


@dataclass
class CameraConfig:
    width: int = 640
    height: int = 480
    fps: int = 30
    buffer_size: int = 1
    warmup_frames: int = 5
    max_retries: int = 3
    retry_delay: float = 2.0


class CameraManager:
    """Frame source over cv2.VideoCapture."""

    def __init__(self, device_id=0, config: Optional[CameraConfig] = None):
        """
        Args:
            device_id: camera index or stream URL
            config: CameraConfig
        """
        self.device_id = device_id
        self.config = config or CameraConfig()
        self._cap: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()
        self.last_error: Optional[str] = None

    def open(self) -> bool:
        """Open the device, retrying `max_retries` times. True on success."""
        for attempt in range(self.config.max_retries):
            with self._lock:
                self._release_unlocked()
                try:
                    cap = cv2.VideoCapture(self.device_id)
                    if cap.isOpened():
                        self._configure(cap)
                        for _ in range(self.config.warmup_frames):
                            cap.grab()
                        self._cap = cap
                        self.last_error = None
                        w, h = self._resolution_unlocked()
                        logger.info(f"Camera {self.device_id} opened: {w}x{h}")
                        return True
                    cap.release()
                except cv2.error as e:
                    logger.warning(f"Camera error: {e}")

            if attempt < self.config.max_retries - 1:
                logger.warning(f"Camera not ready, retrying ({attempt + 1}/{self.config.max_retries})...")
                time.sleep(self.config.retry_delay)

        self.last_error = "Unable to access camera. Please check the device and permissions."
        logger.error(f"Cannot open camera {self.device_id}")
        return False

    def _configure(self, cap):
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, self.config.buffer_size)
        cap.set(cv2.CAP_PROP_FPS, self.config.fps)

    def read(self):
        """Current frame (BGR numpy array) or None."""
        with self._lock:
            if self._cap is None:
                return None
            ok, frame = self._cap.read()
        if not ok:
            logger.warning("Failed to read frame")
            return None
        return frame

    def _resolution_unlocked(self) -> Tuple[int, int]:
        if self._cap is None:
            return (0, 0)
        return (
            int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        )

    def get_resolution(self) -> Tuple[int, int]:
        with self._lock:
            return self._resolution_unlocked()

    def _release_unlocked(self):
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def release(self):
        with self._lock:
            self._release_unlocked()
        logger.info("Camera released")

    def is_opened(self) -> bool:
        with self._lock:
            return self._cap is not None and self._cap.isOpened()

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


def create_camera(device_id=0, width=640, height=480, retry_delay=2.0, is_pi=False) -> CameraManager:
    """CameraManager with platform-appropriate defaults."""
    config = CameraConfig(
        width=width,
        height=height,
        fps=15 if is_pi else 30,
        retry_delay=retry_delay
    )
    return CameraManager(device_id=device_id, config=config)
