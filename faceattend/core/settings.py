# faceattend/core/settings.py
"""
Configuration for the face attendance engine.
Only keeps the settings the engine actually consults.
"""
import os
import json
import platform
from dataclasses import dataclass, field


# === PLATFORM DETECTION ===
IS_WINDOWS = platform.system() == "Windows"
IS_PI = platform.system() == "Linux" and os.path.exists("/proc/device-tree/model")

# === PATHS ===
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
CONFIG_PATH = os.path.join(BASE_DIR, 'config', 'config.json')


def _load_json_config(path: str) -> dict:
    """Load config from a JSON file, {} on any error."""
    if not os.path.exists(path):
        return {}
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


@dataclass
class Settings:
    """Runtime settings, overridable from config/config.json and the CLI."""

    # === PLATFORM (read-only) ===
    IS_WINDOWS: bool = field(default_factory=lambda: IS_WINDOWS)
    IS_PI: bool = field(default_factory=lambda: IS_PI)
    BASE_DIR: str = field(default_factory=lambda: BASE_DIR)

    # === RECOGNITION ===
    RECOGNITION_THRESHOLD: float = 0.6   # Euclidean distance
    SAMPLE_INTERVAL_MS: int = 1000       # at most one extraction per interval
    MIN_FACE_SIZE: int = 60

    # === ATTENDANCE ===
    IDENTITY_COOLDOWN_MS: int = 30000      # same person, repeat check-in
    NOTIFICATION_COOLDOWN_MS: int = 5000   # any person, repeat notification

    # === STORAGE ===
    DB_PATH: str = "attendance.db"

    # === WEB SERVER ===
    ENABLE_WEB_SERVER: bool = True
    WEB_PORT: int = 5000

    # === CAMERA ===
    CAMERA_WIDTH: int = 640
    CAMERA_HEIGHT: int = 480
    CAMERA_RETRY_DELAY: float = 2.0

    # === MODEL ===
    RECOGNITION_MODEL: str = "models/recognition/MobileFaceNet.tflite"
    TFLITE_NUM_THREADS: int = 4

    config_path: str = field(default=CONFIG_PATH, repr=False)

    def __post_init__(self):
        self._load_from_json()
        self._compute_defaults()

    def _load_from_json(self):
        """Apply values from config.json for known keys."""
        config = _load_json_config(self.config_path)
        for key, value in config.items():
            if key.isupper() and hasattr(self, key) and value is not None:
                setattr(self, key, value)

    def _compute_defaults(self):
        # Smaller capture and fewer threads on the Pi
        if self.IS_PI:
            self.CAMERA_WIDTH = min(self.CAMERA_WIDTH, 320)
            self.CAMERA_HEIGHT = min(self.CAMERA_HEIGHT, 240)
            self.TFLITE_NUM_THREADS = min(self.TFLITE_NUM_THREADS, 2)

    # === PROPERTY ALIASES ===
    @property
    def recognition_threshold(self) -> float:
        return self.RECOGNITION_THRESHOLD

    @property
    def sample_interval_ms(self) -> int:
        return self.SAMPLE_INTERVAL_MS

    @property
    def identity_cooldown_ms(self) -> int:
        return self.IDENTITY_COOLDOWN_MS

    @property
    def notification_cooldown_ms(self) -> int:
        return self.NOTIFICATION_COOLDOWN_MS

    @property
    def db_path(self) -> str:
        return self.DB_PATH

    @property
    def web_port(self) -> int:
        return self.WEB_PORT

    @property
    def enable_web_server(self) -> bool:
        return self.ENABLE_WEB_SERVER

    @property
    def camera_width(self) -> int:
        return self.CAMERA_WIDTH

    @property
    def camera_height(self) -> int:
        return self.CAMERA_HEIGHT

    @property
    def tflite_num_threads(self) -> int:
        return self.TFLITE_NUM_THREADS


# === SINGLETON ===
settings = Settings()
