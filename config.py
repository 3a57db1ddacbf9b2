# config.py
import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8080
DEFAULT_HOST = "0.0.0.0"
DEFAULT_DATA_DIR = "data"
WORLD_FILE_NAME = "world.json"
DEFAULT_PERSIST_DEBOUNCE = 0.25  # seconds
DEFAULT_PING_INTERVAL = 30.0  # seconds
DEFAULT_ADMIN_PORT = 7000
OUTBOX_LIMIT = 1024  # queued frames per connection
MAX_MESSAGE_SIZE = 1 << 20  # skins can be up to 200k chars


def _number(env, name, default, cast):
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("[CONFIG] Invalid %s=%r, using %s", name, raw, default)
        return default


def _admin_port(env):
    raw = env.get("ADMIN_PORT", "")
    if raw.strip().lower() in ("off", "0"):
        return None
    return _number(env, "ADMIN_PORT", DEFAULT_ADMIN_PORT, int)


class Settings:
    def __init__(self, host=DEFAULT_HOST, port=DEFAULT_PORT, data_dir=DEFAULT_DATA_DIR,
                 persist_debounce=DEFAULT_PERSIST_DEBOUNCE, ping_interval=DEFAULT_PING_INTERVAL,
                 admin_port=DEFAULT_ADMIN_PORT, log_level="INFO"):
        self.host = host
        self.port = port
        self.data_dir = data_dir
        self.persist_debounce = persist_debounce
        self.ping_interval = ping_interval
        self.admin_port = admin_port
        self.log_level = log_level

    @property
    def world_path(self):
        return os.path.join(self.data_dir, WORLD_FILE_NAME)

    @classmethod
    def from_env(cls, env=None):
        env = os.environ if env is None else env
        return cls(
            host=env.get("HOST") or DEFAULT_HOST,
            port=_number(env, "PORT", DEFAULT_PORT, int),
            data_dir=env.get("DATA_DIR") or DEFAULT_DATA_DIR,
            persist_debounce=_number(env, "PERSIST_DEBOUNCE", DEFAULT_PERSIST_DEBOUNCE, float),
            ping_interval=_number(env, "PING_INTERVAL", DEFAULT_PING_INTERVAL, float),
            admin_port=_admin_port(env),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )

    def __repr__(self):
        return (f"Settings(host={self.host!r}, port={self.port}, data_dir={self.data_dir!r}, "
                f"admin_port={self.admin_port})")
