import json
import logging
import os
import socket
import tempfile
from dataclasses import asdict, dataclass

from .errors import ConfigError

logger = logging.getLogger(__name__)

# --- CONSTANTS ---
HTTP_TIMEOUT_SECONDS = 10
MAX_RESPONSE_BODY_SIZE = 10 << 20  # 10 MiB
USER_AGENT = "piphos/1.0"
PIPHOS_STAMP = "_piphos_"  # gist description and well-known filename
DEFAULT_TENDER = "gh"
DEFAULT_INTERVAL_SECONDS = 300

CONFIG_KEYS = ("hostname", "token", "beacon", "tender", "gist_id")


def default_config_path(environ=os.environ):
    base = environ.get("XDG_CONFIG_HOME") or environ.get("APPDATA")
    if not base:
        base = os.path.join(os.path.expanduser("~"), ".config")
    return os.path.join(base, "piphos", "config.json")


@dataclass
class Settings:
    hostname: str = ""
    token: str = ""
    beacon: str = ""
    tender: str = DEFAULT_TENDER
    gist_id: str = ""
    config_path: str = ""
    timeout: float = HTTP_TIMEOUT_SECONDS
    interval: int = DEFAULT_INTERVAL_SECONDS


# --- LOADING ---
def read_config_file(path):
    """Return the stored options, or an empty dict when the file is absent."""
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        raise ConfigError(f"unable to read configuration file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"configuration file {path} must hold a JSON object")
    return {k: str(v) for k, v in data.items() if k in CONFIG_KEYS and v is not None}


def _number(environ, name, default, cast):
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings(environ=os.environ):
    """Build settings from the config file, then the environment on top of it.

    Command-line flags are applied by the caller afterwards.
    """
    path = environ.get("PIPHOS_CONFIG") or default_config_path(environ)
    stored = read_config_file(path)

    settings = Settings(config_path=path)
    for key, value in stored.items():
        setattr(settings, key, value)

    token = environ.get("PIPHOS_GITHUB_TOKEN") or environ.get("GITHUB_TOKEN")
    if token:
        settings.token = token
    settings.beacon = environ.get("PIPHOS_BEACON", settings.beacon)
    settings.tender = environ.get("PIPHOS_TENDER", settings.tender) or DEFAULT_TENDER
    settings.hostname = environ.get("PIPHOS_HOSTNAME", settings.hostname)
    settings.timeout = _number(environ, "PIPHOS_TIMEOUT", HTTP_TIMEOUT_SECONDS, float)
    settings.interval = _number(environ, "PIPHOS_INTERVAL", DEFAULT_INTERVAL_SECONDS, int)

    if not settings.hostname:
        settings.hostname = socket.gethostname()
    if not settings.hostname:
        raise ConfigError("unable to determine hostname, set PIPHOS_HOSTNAME")
    return settings


# --- SAVING ---
def write_config_file(path, options):
    """Atomically replace the config file with ``options``."""
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix="piphos-config-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(options, fh, indent=2, sort_keys=True)
            fh.write("\n")
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def save_gist_id(settings, gist_id):
    """Persist a newly learned gist id, keeping whatever else the file holds.

    Values that came from the environment only (the token in particular) are
    not copied into the file.
    """
    options = read_config_file(settings.config_path)
    options["gist_id"] = gist_id
    write_config_file(settings.config_path, options)
    settings.gist_id = gist_id
    logger.info("saved gist id %s to %s", gist_id, settings.config_path)


def settings_as_dict(settings):
    data = asdict(settings)
    data["token"] = "***" if settings.token else ""
    return data
