# tests/test_config.py

import pytest

from powerwall_exporter.config import AppConfig, Config, FieldMapping

CONF = """
[server]
listen_address = 127.0.0.1
port = 9871

[device]
timeout = 4.5
field_mapping = legacy   # match old dashboards

[logging]
console_level = WARNING
debug_modules = urllib3, powerwall.http
"""


def test_full_config(tmp_path):
    conf_path = tmp_path / "powerwall.conf"
    conf_path.write_text(CONF)

    cfg = Config.load(str(conf_path))

    assert cfg.server.listen_address == "127.0.0.1"
    assert cfg.server.port == 9871
    assert cfg.device.timeout == 4.5
    assert cfg.device.field_mapping is FieldMapping.LEGACY
    assert cfg.device.verify is False
    assert cfg.logging.console_level == "WARNING"
    assert cfg.logging.debug_modules == ["urllib3", "powerwall.http"]


def test_defaults_without_file():
    cfg = Config.load(None)

    assert cfg == AppConfig()
    assert cfg.server.port == 8080
    assert cfg.device.field_mapping is FieldMapping.STRICT


def test_ca_bundle_takes_precedence_over_verify_flag(tmp_path):
    conf_path = tmp_path / "powerwall.conf"
    conf_path.write_text("[device]\nverify_tls = false\nca_bundle = /etc/powerwall/gateway.pem\n")

    cfg = Config.load(str(conf_path))

    assert cfg.device.verify == "/etc/powerwall/gateway.pem"


def test_verify_tls_true(tmp_path):
    conf_path = tmp_path / "powerwall.conf"
    conf_path.write_text("[device]\nverify_tls = true\n")

    assert Config.load(str(conf_path)).device.verify is True


def test_unknown_field_mapping_is_rejected(tmp_path):
    conf_path = tmp_path / "powerwall.conf"
    conf_path.write_text("[device]\nfield_mapping = creative\n")

    with pytest.raises(ValueError, match="field_mapping"):
        Config.load(str(conf_path))


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config.load(str(tmp_path / "absent.conf"))
