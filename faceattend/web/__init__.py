# faceattend/web/__init__.py
"""
Web module - Flask server and management API.
"""
from .server import create_app, run_server
from .management import management_bp

__all__ = [
    'create_app',
    'run_server',
    'management_bp',
]
