from xray_trace.cli import build_parser, build_xray, main
from xray_trace.config import Settings


def test_defaults(monkeypatch):
    names = ("XRAY_HOST", "XRAY_PORT", "XRAY_SERVICE_NAME", "XRAY_CORS_ORIGINS", "XRAY_LOG_LEVEL")
    for name in names:
        monkeypatch.delenv(name, raising=False)
    assert Settings.load() == Settings()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("XRAY_HOST", "0.0.0.0")
    monkeypatch.setenv("XRAY_PORT", "8080")
    monkeypatch.setenv("XRAY_SERVICE_NAME", "competitor-selection-demo")
    monkeypatch.setenv("XRAY_CORS_ORIGINS", "http://localhost:5173, http://localhost:3000")
    monkeypatch.setenv("XRAY_LOG_LEVEL", "debug")
    settings = Settings.load()
    assert settings.host == "0.0.0.0"
    assert settings.port == 8080
    assert settings.service_name == "competitor-selection-demo"
    assert settings.cors_origins == ("http://localhost:5173", "http://localhost:3000")
    assert settings.log_level == "DEBUG"


def test_invalid_port_falls_back(monkeypatch):
    monkeypatch.setenv("XRAY_PORT", "not-a-port")
    assert Settings.load().port == 3001


def test_cli_flags_override_settings():
    settings = Settings(port=9000, service_name="from-env")
    args = build_parser(settings).parse_args(["serve", "--port", "4000", "--log-level", "debug"])
    assert args.port == 4000
    assert args.service == "from-env"
    assert args.log_level == "DEBUG"


def test_build_xray_service_metadata():
    assert build_xray("demo").default_metadata == {"service": "demo"}
    assert build_xray(None).default_metadata == {}


def test_unknown_log_level_falls_back(monkeypatch):
    monkeypatch.setenv("XRAY_LOG_LEVEL", "verbose")
    assert Settings.load().log_level == "INFO"


def test_cli_help_survives_bad_log_level(monkeypatch, capsys):
    monkeypatch.setenv("XRAY_LOG_LEVEL", "verbose")
    main([])
    assert "serve" in capsys.readouterr().out
