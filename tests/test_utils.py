import json
import logging
import os
from logging.handlers import RotatingFileHandler

from asnscan.core.utils import (
    DATASET_URL, build_settings, cache_home, load_config, setup_logging,
)


def test_cache_home_honours_xdg(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
    assert cache_home() == str(tmp_path)

    monkeypatch.delenv("XDG_CACHE_HOME")
    assert cache_home() == os.path.join(os.path.expanduser("~"), ".cache")


def test_default_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
    settings = build_settings()

    assert settings.cache_dir == str(tmp_path / "asn_scanner_db")
    assert settings.dataset_url == DATASET_URL
    assert settings.timeout == 30.0


def test_config_file_then_cli_overrides(tmp_path):
    config_path = tmp_path / "settings.json"
    config_path.write_text(json.dumps({"cache_dir": str(tmp_path / "from-file"), "timeout": "5", "bogus": 1}))

    settings = build_settings(load_config(str(config_path)), {"cache_dir": str(tmp_path / "from-cli")})

    assert settings.cache_dir == str(tmp_path / "from-cli")
    assert settings.timeout == 5.0


def test_cli_none_does_not_override_file(tmp_path):
    settings = build_settings({"cache_dir": str(tmp_path / "from-file")}, {"cache_dir": None})
    assert settings.cache_dir == str(tmp_path / "from-file")


def test_load_config_missing_or_malformed(tmp_path):
    assert load_config(str(tmp_path / "nope.json")) == {}

    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    assert load_config(str(bad)) == {}

    not_object = tmp_path / "list.json"
    not_object.write_text("[1, 2]")
    assert load_config(str(not_object)) == {}


def test_setup_logging_replaces_file_handler(tmp_path):
    log_file = tmp_path / "logs" / "asnscan.log"
    logger = setup_logging(str(log_file), verbose=True)
    setup_logging(str(log_file), verbose=True)

    handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
    assert len(handlers) == 1
    assert logger.level == logging.DEBUG

    logging.getLogger("asnscan.test").debug("hello from the test")
    handlers[0].flush()
    assert "hello from the test" in log_file.read_text()

    logger.removeHandler(handlers[0])
    handlers[0].close()
