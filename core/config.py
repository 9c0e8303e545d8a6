import os
import yaml
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
CONFIG_FILE = BASE_DIR / "config" / "config.yaml"
SOURCES_FILE = BASE_DIR / "config" / "sources.yaml"

DEFAULT_CONFIG = {
    "openai_model": "gpt-4.1-mini",
    "max_items": 60,
    "headliner_count": 6,
    "fetch_timeout_seconds": 12,
    "classifier_timeout_seconds": 30,
    "database_url": f"sqlite:///{BASE_DIR / 'data' / 'signal_nook.db'}",
    "logs_dir": "logs",
}

# Environment variables win over config.yaml
ENV_OVERRIDES = {
    "openai_model": "OPENAI_MODEL",
    "max_items": "INGESTION_MAX_ITEMS",
    "fetch_timeout_seconds": "FETCH_TIMEOUT_SECONDS",
    "classifier_timeout_seconds": "CLASSIFIER_TIMEOUT_SECONDS",
    "database_url": "DATABASE_URL",
    "logs_dir": "INGESTION_LOGS_DIR",
}

_cached_config = None


def load_config():
    """
    Load centralized configuration from config/config.yaml.
    Missing keys fall back to DEFAULT_CONFIG; env vars override both.
    """
    global _cached_config

    if _cached_config is not None:
        return _cached_config

    config = dict(DEFAULT_CONFIG)

    if CONFIG_FILE.exists():
        with open(CONFIG_FILE) as f:
            config.update(yaml.safe_load(f) or {})

    for key, env_name in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            config[key] = value

    _cached_config = config
    return config


def reload_config():
    """Force reload config from disk (clears cache)."""
    global _cached_config
    _cached_config = None
    return load_config()


def load_source_seeds(path=None):
    """Read seed sources from config/sources.yaml (empty list if absent)."""
    sources_path = Path(path) if path else SOURCES_FILE
    if not sources_path.exists():
        return []

    with open(sources_path) as f:
        data = yaml.safe_load(f) or {}
    return data.get("sources", [])


def get_openai_api_key():
    """OpenAI key from the environment only; never stored in config.yaml."""
    return (os.getenv("OPENAI_API_KEY") or "").strip()


def has_openai_key():
    return bool(get_openai_api_key())


def get_openai_model():
    return load_config()["openai_model"]


def get_max_items():
    """Default per-run item budget."""
    return int(load_config()["max_items"])


def get_headliner_count():
    return int(load_config()["headliner_count"])


def get_fetch_timeout():
    """Seconds before a source fetch is abandoned."""
    return float(load_config()["fetch_timeout_seconds"])


def get_classifier_timeout():
    return float(load_config()["classifier_timeout_seconds"])


def get_database_url():
    return load_config()["database_url"]


def get_logs_dir():
    logs_dir = Path(load_config()["logs_dir"])
    if not logs_dir.is_absolute():
        logs_dir = BASE_DIR / logs_dir
    return logs_dir
