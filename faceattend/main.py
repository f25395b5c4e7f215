# faceattend/main.py
"""
Face attendance - main entry point.

Wires the modules together:
- core/: settings, camera, model factory
- data/: registry + SQLite storage
- processing/: sampling loop, deduplicator, enrollment
- web/: management API (background thread)

Usage:
    python -m faceattend.main                    # Run with defaults
    python -m faceattend.main --threshold 0.5    # Stricter matching
    python -m faceattend.main --no-web --camera 1
"""
import argparse
import logging
import threading

from .core import settings, create_camera, create_extractor
from .data import Registry, SqliteKeyValueStore
from .processing import AttendanceDeduplicator, Enrollment, SamplingLoop

# === LOGGING SETUP ===
_handlers = [logging.StreamHandler()]
if settings.IS_PI:
    _handlers.append(logging.FileHandler('attendance.log', encoding='utf-8'))
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=_handlers
)

logger = logging.getLogger(__name__)


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Face recognition attendance tracker',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m faceattend.main                    # Run with defaults
  python -m faceattend.main --threshold 0.5    # Custom threshold
  python -m faceattend.main --no-web --verbose
        """
    )

    parser.add_argument('--threshold', '-t', type=float, metavar='VALUE',
                        help=f'Match distance threshold (default: {settings.RECOGNITION_THRESHOLD})')
    parser.add_argument('--interval', type=int, metavar='MS',
                        help=f'Sampling interval (default: {settings.SAMPLE_INTERVAL_MS}ms)')
    parser.add_argument('--cooldown', type=int, metavar='MS',
                        help=f'Per-person check-in cool-down (default: {settings.IDENTITY_COOLDOWN_MS}ms)')
    parser.add_argument('--notify-cooldown', type=int, metavar='MS',
                        help=f'Global notification cool-down (default: {settings.NOTIFICATION_COOLDOWN_MS}ms)')

    parser.add_argument('--camera', '-c', type=int, default=0, metavar='ID',
                        help='Camera device ID (default: 0)')
    parser.add_argument('--resolution', '-r', type=str, metavar='WxH',
                        help=f'Camera resolution (default: {settings.CAMERA_WIDTH}x{settings.CAMERA_HEIGHT})')
    parser.add_argument('--model', type=str, metavar='PATH',
                        help=f'Recognition model (default: {settings.RECOGNITION_MODEL})')
    parser.add_argument('--db', type=str, metavar='PATH',
                        help=f'Storage file (default: {settings.DB_PATH})')

    parser.add_argument('--no-web', action='store_true', help='Disable web server')
    parser.add_argument('--port', '-p', type=int, metavar='PORT',
                        help=f'Web server port (default: {settings.WEB_PORT})')

    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose logging')

    return parser.parse_args(argv)


def apply_arguments(args):
    """Apply command line arguments to settings. Returns a list of changes."""
    changes = []

    if args.threshold is not None:
        settings.RECOGNITION_THRESHOLD = args.threshold
        changes.append(f"Threshold: {args.threshold}")
    if args.interval:
        settings.SAMPLE_INTERVAL_MS = args.interval
        changes.append(f"Interval: {args.interval}ms")
    if args.cooldown is not None:
        settings.IDENTITY_COOLDOWN_MS = args.cooldown
        changes.append(f"Cooldown: {args.cooldown}ms")
    if args.notify_cooldown is not None:
        settings.NOTIFICATION_COOLDOWN_MS = args.notify_cooldown
        changes.append(f"Notify cooldown: {args.notify_cooldown}ms")

    if args.resolution:
        try:
            w, h = map(int, args.resolution.lower().split('x'))
            settings.CAMERA_WIDTH = w
            settings.CAMERA_HEIGHT = h
            changes.append(f"Resolution: {w}x{h}")
        except ValueError:
            logger.warning(f"Invalid resolution format: {args.resolution} (use WxH, e.g., 640x480)")
    if args.model:
        settings.RECOGNITION_MODEL = args.model
        changes.append(f"Model: {args.model}")
    if args.db:
        settings.DB_PATH = args.db
        changes.append(f"DB: {args.db}")

    if args.no_web:
        settings.ENABLE_WEB_SERVER = False
        changes.append("Web: disabled")
    if args.port:
        settings.WEB_PORT = args.port
        changes.append(f"Port: {args.port}")

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        changes.append("Verbose: ON")

    return changes


def start_web_server(registry, enrollment, loop):
    """Run the management API in its own thread."""
    from .web import create_app, run_server

    try:
        run_server(create_app(registry, enrollment, loop), port=settings.WEB_PORT)
    except Exception:
        logger.exception("Web server error")


def main(argv=None):
    """Main entry point."""
    args = parse_arguments(argv)
    for change in apply_arguments(args):
        logger.info(f"Override: {change}")

    # === 1. STORAGE ===
    registry = Registry(SqliteKeyValueStore(settings.DB_PATH))

    # === 2. MODEL ===
    try:
        extractor = create_extractor()
    except (ImportError, RuntimeError, ValueError) as e:
        logger.error(f"Cannot load recognition model: {e}")
        return 1

    # === 3. CAMERA ===
    camera = create_camera(
        device_id=args.camera,
        width=settings.CAMERA_WIDTH,
        height=settings.CAMERA_HEIGHT,
        retry_delay=settings.CAMERA_RETRY_DELAY,
        is_pi=settings.IS_PI
    )
    if not camera.open():
        logger.warning("Camera unavailable, will keep retrying")

    # === 4. COMPONENTS ===
    dedup = AttendanceDeduplicator(
        registry,
        identity_cooldown_ms=settings.IDENTITY_COOLDOWN_MS,
        notification_cooldown_ms=settings.NOTIFICATION_COOLDOWN_MS
    )
    enrollment = Enrollment(extractor, registry)

    def on_attendance(record):
        logger.info(f"Welcome, {record.employee_name}! ({record.timestamp.astimezone():%H:%M:%S})")

    def on_source_error(message):
        logger.error(f"{message} - retrying every {settings.CAMERA_RETRY_DELAY}s")

    loop = SamplingLoop(
        camera,
        extractor,
        registry,
        dedup,
        interval_ms=settings.SAMPLE_INTERVAL_MS,
        threshold=settings.RECOGNITION_THRESHOLD,
        on_attendance=on_attendance,
        on_source_error=on_source_error,
        on_source_retry=camera.open,
        retry_delay=settings.CAMERA_RETRY_DELAY
    )

    stats = registry.stats()
    logger.info(f"👥 Registry: {stats['registered']} employees "
                f"({stats['enrolled_biometric']} with face), {stats['records_today']} check-ins today")
    logger.info(f"CONFIG: THRESHOLD={settings.RECOGNITION_THRESHOLD}, "
                f"INTERVAL={settings.SAMPLE_INTERVAL_MS}ms, "
                f"COOLDOWN={settings.IDENTITY_COOLDOWN_MS}/{settings.NOTIFICATION_COOLDOWN_MS}ms")

    # === 5. WEB SERVER (background) ===
    if settings.ENABLE_WEB_SERVER:
        threading.Thread(
            target=start_web_server,
            args=(registry, enrollment, loop),
            daemon=True
        ).start()

    # === 6. MAIN LOOP ===
    try:
        loop.run()
    except KeyboardInterrupt:
        logger.info("Stopped (Ctrl+C)")
    finally:
        loop.stop()
        camera.release()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
