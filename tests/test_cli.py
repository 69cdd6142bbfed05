import logging

import pytest

from page_feeds import cli
from page_feeds.config import AppConfig, LoggingConfig, ServerConfig


def _restore_handlers(original_handlers, original_level=logging.WARNING):
    logging.getLogger().setLevel(original_level)
    logging.getLogger(cli.ACCESS_LOGGER).setLevel(logging.NOTSET)
    for handler in logging.getLogger().handlers[:]:
        logging.getLogger().removeHandler(handler)
        handler.close()
    for handler in original_handlers:
        logging.getLogger().addHandler(handler)


def test_configure_logging_defaults_to_console_only():
    original_handlers = list(logging.getLogger().handlers)

    try:
        cli.configure_logging("INFO")

        handlers = logging.getLogger().handlers
        assert any(isinstance(handler, logging.StreamHandler) for handler in handlers)
        assert not any(isinstance(handler, logging.FileHandler) for handler in handlers)
    finally:
        _restore_handlers(original_handlers)


def test_configure_logging_with_log_file_creates_file_handler(tmp_path):
    original_handlers = list(logging.getLogger().handlers)

    try:
        log_path = tmp_path / "logs" / "service.log"
        cli.configure_logging("DEBUG", str(log_path))

        assert log_path.exists()
        handlers = logging.getLogger().handlers
        assert any(isinstance(handler, logging.FileHandler) for handler in handlers)
    finally:
        _restore_handlers(original_handlers)


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        cli.configure_logging("LOUD")


def test_configure_logging_quiets_access_log_unless_debugging():
    original_handlers = list(logging.getLogger().handlers)
    original_level = logging.getLogger().level

    try:
        cli.configure_logging("INFO")
        assert logging.getLogger(cli.ACCESS_LOGGER).level == logging.WARNING

        cli.configure_logging("DEBUG")
        assert logging.getLogger(cli.ACCESS_LOGGER).level == logging.DEBUG
    finally:
        _restore_handlers(original_handlers, original_level)


class FakeScheduler:
    def __init__(self, cache, site_ids, interval, concurrency):
        self.site_ids = set(site_ids)
        self.interval = interval
        self.started = False
        self.stopped = False

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True


def _patch_wiring(monkeypatch, app_config, registry):
    captured = {}
    monkeypatch.setattr(
        cli,
        "configure_logging",
        lambda level, log_file=None: captured.update(level=level, log_file=log_file),
    )
    monkeypatch.setattr(cli, "parse_app_config", lambda path: app_config)
    monkeypatch.setattr(cli, "load_registry", lambda path: registry)

    def fake_scheduler(*args, **kwargs):
        captured["scheduler"] = FakeScheduler(*args, **kwargs)
        return captured["scheduler"]

    def fake_run(app, host, port, log_config):
        captured.update(app=app, host=host, port=port, log_config=log_config)
        captured["started_before_serving"] = captured["scheduler"].started

    monkeypatch.setattr(cli, "RefreshScheduler", fake_scheduler)
    monkeypatch.setattr(cli.uvicorn, "run", fake_run)
    return captured


def test_main_wires_service_and_shuts_down(monkeypatch, registry):
    app_config = AppConfig(
        sites_file="sites.xml",
        ttl_minutes=5,
        server=ServerConfig(host="127.0.0.1", port=9000),
        logging=LoggingConfig(level="WARNING"),
    )
    captured = _patch_wiring(monkeypatch, app_config, registry)

    exit_code = cli.main(["--config", "configs/test.xml", "--port", "9100"])

    assert exit_code == 0
    assert captured["level"] == "WARNING"
    assert captured["host"] == "127.0.0.1"
    assert captured["port"] == 9100
    assert captured["log_config"] is None
    assert captured["app"].state.cache is not None
    scheduler = captured["scheduler"]
    assert scheduler.site_ids == {"example"}
    assert scheduler.interval.total_seconds() == 300
    assert captured["started_before_serving"]
    assert scheduler.stopped


def test_main_stops_scheduler_when_server_fails(monkeypatch, registry):
    captured = _patch_wiring(monkeypatch, AppConfig(sites_file="sites.xml"), registry)

    def failing_run(app, host, port, log_config):
        raise OSError("address in use")

    monkeypatch.setattr(cli.uvicorn, "run", failing_run)

    with pytest.raises(OSError):
        cli.main([])

    assert captured["scheduler"].stopped


def test_main_cli_overrides_logging(monkeypatch, registry):
    app_config = AppConfig(
        sites_file="sites.xml", logging=LoggingConfig(level="INFO", file="config.log")
    )
    captured = _patch_wiring(monkeypatch, app_config, registry)

    cli.main(["--log-level", "DEBUG", "--log-file", "cli.log"])

    assert captured["level"] == "DEBUG"
    assert captured["log_file"] == "cli.log"


def test_main_fails_without_sites(monkeypatch):
    app_config = AppConfig(sites_file="sites.xml")
    _patch_wiring(monkeypatch, app_config, [])

    assert cli.main([]) == 1


def test_main_missing_config_returns_error(monkeypatch):
    def missing(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    monkeypatch.setattr(cli, "parse_app_config", missing)

    assert cli.main(["--config", "nope.xml"]) == 1
