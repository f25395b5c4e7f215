import json

from faceattend.core.settings import Settings, settings
from faceattend import main as app_main


def test_defaults(tmp_path):
    s = Settings(IS_PI=False, config_path=str(tmp_path / "missing.json"))
    assert s.recognition_threshold == 0.6
    assert s.sample_interval_ms == 1000
    assert s.identity_cooldown_ms == 30000
    assert s.notification_cooldown_ms == 5000
    assert (s.camera_width, s.camera_height) == (640, 480)


def test_json_overrides_known_keys(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "RECOGNITION_THRESHOLD": 0.45,
        "IDENTITY_COOLDOWN_MS": 60000,
        "WEB_PORT": None,
        "UNKNOWN_KEY": 1,
    }), encoding='utf-8')

    s = Settings(IS_PI=False, config_path=str(path))

    assert s.RECOGNITION_THRESHOLD == 0.45
    assert s.IDENTITY_COOLDOWN_MS == 60000
    assert s.WEB_PORT == 5000
    assert not hasattr(s, "UNKNOWN_KEY")


def test_invalid_json_is_ignored(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{broken", encoding='utf-8')
    s = Settings(IS_PI=False, config_path=str(path))
    assert s.RECOGNITION_THRESHOLD == 0.6


def test_pi_caps_camera_and_threads(tmp_path):
    s = Settings(IS_PI=True, config_path=str(tmp_path / "missing.json"))
    assert (s.CAMERA_WIDTH, s.CAMERA_HEIGHT) == (320, 240)
    assert s.TFLITE_NUM_THREADS == 2


def test_cli_arguments_override_settings(monkeypatch):
    for key in ("RECOGNITION_THRESHOLD", "SAMPLE_INTERVAL_MS", "IDENTITY_COOLDOWN_MS",
                "NOTIFICATION_COOLDOWN_MS", "CAMERA_WIDTH", "CAMERA_HEIGHT",
                "ENABLE_WEB_SERVER", "WEB_PORT", "DB_PATH"):
        monkeypatch.setattr(settings, key, getattr(settings, key))

    args = app_main.parse_arguments([
        "--threshold", "0.5", "--interval", "500", "--cooldown", "10000",
        "--notify-cooldown", "0", "--resolution", "320x240", "--no-web",
        "--port", "8080", "--db", "x.db",
    ])
    changes = app_main.apply_arguments(args)

    assert settings.RECOGNITION_THRESHOLD == 0.5
    assert settings.SAMPLE_INTERVAL_MS == 500
    assert settings.IDENTITY_COOLDOWN_MS == 10000
    assert settings.NOTIFICATION_COOLDOWN_MS == 0
    assert (settings.CAMERA_WIDTH, settings.CAMERA_HEIGHT) == (320, 240)
    assert settings.ENABLE_WEB_SERVER is False
    assert settings.WEB_PORT == 8080
    assert settings.DB_PATH == "x.db"
    assert "Threshold: 0.5" in changes


def test_bad_resolution_is_ignored(monkeypatch):
    monkeypatch.setattr(settings, "CAMERA_WIDTH", 640)
    args = app_main.parse_arguments(["--resolution", "wide"])
    app_main.apply_arguments(args)
    assert settings.CAMERA_WIDTH == 640
