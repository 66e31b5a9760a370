import json
import os
import logging
from dataclasses import dataclass, fields
from logging.handlers import RotatingFileHandler

DATASET_URL = "https://github.com/ipverse/asn-ip/archive/refs/heads/master.zip"
API_URL = "https://api.hackertarget.com/aslookup/"
DB_DIRNAME = "asn_scanner_db"

logger = logging.getLogger("asnscan.config")


def cache_home():
    """$XDG_CACHE_HOME, or ~/.cache when unset."""
    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg:
        return xdg
    return os.path.join(os.path.expanduser("~"), ".cache")


def default_config_path():
    xdg = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return os.path.join(xdg, "asnscan", "settings.json")


@dataclass
class Settings:
    cache_dir: str
    log_file: str
    dataset_url: str = DATASET_URL
    api_url: str = API_URL
    timeout: float = 30.0
    user_agent: str = "asnscan/1.0"


def load_config(config_path=None):
    """Loads configuration from JSON file."""
    config_path = config_path or default_config_path()
    if not os.path.exists(config_path):
        return {}
    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Config Load Error ({config_path}): {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring {config_path}: top level is not an object")
        return {}
    return data


def build_settings(config=None, overrides=None):
    """Merges defaults < config file < command line into a Settings object."""
    known = {f.name for f in fields(Settings)}
    values = {
        "cache_dir": os.path.join(cache_home(), DB_DIRNAME),
        "log_file": os.path.join(cache_home(), "asnscan.log"),
    }
    for source in (config or {}, overrides or {}):
        for key, value in source.items():
            if key in known and value is not None:
                values[key] = value
            elif key not in known:
                logger.debug(f"Unknown setting ignored: {key}")

    values["cache_dir"] = os.path.abspath(os.path.expanduser(str(values["cache_dir"])))
    values["log_file"] = os.path.expanduser(str(values["log_file"]))
    try:
        values["timeout"] = float(values.get("timeout", Settings.timeout))
    except (TypeError, ValueError):
        logger.warning(f"Invalid timeout {values['timeout']!r}, using {Settings.timeout}")
        values["timeout"] = Settings.timeout
    return Settings(**values)


def setup_logging(log_file="asnscan.log", verbose=False):
    """
    Attaches a rotating file handler to the 'asnscan' logger.
    Console output is handled by Rich (asnscan.core.display).
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger("asnscan")
    logger.setLevel(level)

    # Drop handlers from a previous call
    for handler in list(logger.handlers):
        if isinstance(handler, RotatingFileHandler):
            logger.removeHandler(handler)
            handler.close()

    log_dir = os.path.dirname(log_file)
    try:
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=10*1024*1024, backupCount=5)
    except OSError as e:
        # A read-only home must not stop lookups
        logger.warning(f"File logging disabled ({log_file}): {e}")
        return logger

    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    file_handler.setLevel(level)
    logger.addHandler(file_handler)
    return logger
