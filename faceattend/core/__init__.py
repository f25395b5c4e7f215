# faceattend/core/__init__.py
"""
Core modules - infrastructure & configuration.

- settings: unified configuration
- camera: camera frame source
- tflite_helper: TFLite interpreter loader
- model_factory: factory for the descriptor extractor
"""

from .settings import settings, Settings
from .camera import CameraManager, CameraConfig, create_camera
from .tflite_helper import get_interpreter
from .model_factory import create_extractor

__all__ = [
    'settings',
    'Settings',
    'CameraManager',
    'CameraConfig',
    'create_camera',
    'get_interpreter',
    'create_extractor',
]
