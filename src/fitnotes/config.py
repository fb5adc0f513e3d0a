"""
fitnotes configuration.

Settings come from three layers, later ones winning:
1. Dataclass defaults
2. YAML file (FITNOTES_CONFIG, else config/fitnotes.yaml if present)
3. Environment variables (a .env file in the working directory is loaded first)
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config") / "fitnotes.yaml"

# env var -> Settings field
ENV_OVERRIDES = {
    "NOTES_PATH": "notes_path",
    "OPENAI_API_KEY": "openai_api_key",
    "FITNOTES_LLM_MODEL": "llm_model",
    "FITNOTES_LLM_TIMEOUT": "llm_timeout_seconds",
    "FITNOTES_LOG_FILE": "log_file",
    "FITNOTES_LOG_LEVEL": "log_level",
    "FITNOTES_DEFAULT_DAYS": "default_period_days",
}


@dataclass
class Settings:
    """Runtime settings for the notes store, duration extraction and logging."""

    notes_path: Path = Path("data") / "notes.json"

    # Duration extraction (model strategy is skipped without a key)
    openai_api_key: Optional[str] = None
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.1
    llm_timeout_seconds: float = 15.0

    # Workout hours
    default_period_days: int = 30

    # Logging
    log_file: Optional[Path] = Path("/tmp/fitnotes-mcp.log")
    log_level: str = "INFO"

    @property
    def llm_enabled(self) -> bool:
        return bool(self.openai_api_key)


def load_config_yaml(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the YAML config file, return empty dict if not found."""
    if path is None:
        env_path = os.environ.get("FITNOTES_CONFIG")
        path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH

    if not path.exists():
        return {}

    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(raw).__name__}")
    return raw


def _coerce(name: str, value: Any) -> Any:
    """Convert a raw YAML/env value to the type of the Settings field."""
    if value is None:
        return None
    if name in ("notes_path", "log_file"):
        return Path(value)
    if name in ("llm_temperature", "llm_timeout_seconds"):
        return float(value)
    if name == "default_period_days":
        return int(value)
    return str(value)


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """
    Build Settings from defaults, YAML and environment.

    Args:
        config_path: Explicit YAML path (overrides FITNOTES_CONFIG)

    Returns:
        Populated Settings

    Raises:
        ValueError: If a config value has the wrong type or an unknown key
    """
    load_dotenv(find_dotenv(usecwd=True))

    known = {f.name for f in fields(Settings)}
    values: Dict[str, Any] = {}

    for key, value in load_config_yaml(config_path).items():
        if key not in known:
            raise ValueError(f"Unknown config key: {key}")
        values[key] = _coerce(key, value)

    for env_var, key in ENV_OVERRIDES.items():
        raw = os.environ.get(env_var)
        if raw:
            values[key] = _coerce(key, raw)

    settings = Settings(**values)

    if settings.default_period_days < 1:
        raise ValueError("default_period_days must be at least 1")
    if settings.llm_timeout_seconds <= 0:
        raise ValueError("llm_timeout_seconds must be positive")

    logger.debug(
        f"Settings loaded: notes_path={settings.notes_path}, "
        f"llm_enabled={settings.llm_enabled}, model={settings.llm_model}"
    )
    return settings


def configure_logging(settings: Settings) -> None:
    """Send log records to the log file (if any) and stderr."""
    handlers: list = [logging.StreamHandler()]
    if settings.log_file is not None:
        handlers.insert(0, logging.FileHandler(settings.log_file))

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )
