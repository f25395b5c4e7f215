# faceattend/web/server.py
"""
Flask server for remote management over WiFi.
Access: http://<device_ip>:5000
"""
import logging
import socket

from flask import Flask

from .management import management_bp

logger = logging.getLogger(__name__)


def create_app(registry, enrollment=None, loop=None) -> Flask:
    """
    Args:
        registry: Registry
        enrollment: Enrollment, None disables POST /api/employees
        loop: SamplingLoop, for /api/status
    """
    app = Flask(__name__)
    app.extensions['faceattend'] = {
        'registry': registry,
        'enrollment': enrollment,
        'loop': loop,
    }
    app.register_blueprint(management_bp)
    return app


def get_local_ip() -> str:
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            s.connect(("8.8.8.8", 80))
            return s.getsockname()[0]
        finally:
            s.close()
    except OSError:
        return "localhost"


def run_server(app: Flask, host='0.0.0.0', port=5000):
    logger.info(f"🌐 Web: http://{get_local_ip()}:{port}")
    app.run(host=host, port=port, debug=False, threaded=True, use_reloader=False)
