"""
calnotes Configuration

Loads config.yaml and .env into an immutable settings object that is passed
explicitly to every component.

Usage:
    from calnotes.config import load_settings

    settings = load_settings()
    if settings.blocker:
        ...
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from calnotes.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_HOME = Path.home() / ".calnotes"
CONFIG_FILENAME = "config.yaml"
ENV_PREFIX = "CALNOTES_"
PUBLIC_SUFFIX_URL = "https://publicsuffix.org/list/effective_tld_names.dat"

TRUE_VALUES = ("yes", "true", "1", "on", "y")
FALSE_VALUES = ("no", "false", "0", "off", "n", "")


class CalnotesSettings(BaseModel):
    """Runtime settings for one calnotes process."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    colorize: bool = Field(default=True, description="Color external and 1:1 meetings")
    blocker: bool = Field(default=True, description="Create blockers after external meetings")
    meeting_to_note: bool = Field(default=True, description="Create meeting notes")
    full_sync: bool = Field(default=False, description="Discard the cursor on the next run")
    debug: bool = Field(default=False, description="Log mutations instead of performing them")
    keep_cancelled_notes: bool = Field(
        default=False,
        description="Mark notes of cancelled meetings instead of trashing them",
    )

    label_prefix: str = "Accounts/"
    blacklist_domains: List[str] = Field(
        default_factory=list,
        description="Domains treated as internal (exact match on the address domain)",
    )

    notes_backend: str = Field(default="drive", description="drive | local")
    notes_folder_id: str = ""
    notes_path: Optional[Path] = None

    timezone: str = "CET"
    calendar_id: str = "primary"

    state_path: Path = DEFAULT_HOME / "state.json"
    accounts_path: Path = DEFAULT_HOME / "accounts.yaml"
    credentials_path: Path = DEFAULT_HOME / ".secrets" / "credentials.json"
    token_path: Path = DEFAULT_HOME / ".secrets" / "token.json"
    tld_url: str = PUBLIC_SUFFIX_URL
    tld_cache_path: Optional[Path] = DEFAULT_HOME / "public_suffix_list.dat"

    @field_validator(
        "colorize", "blocker", "meeting_to_note", "full_sync", "debug",
        "keep_cancelled_notes",
        mode="before",
    )
    @classmethod
    def _parse_bool(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in TRUE_VALUES:
                return True
            if lowered in FALSE_VALUES:
                return False
        if value is None:
            return False
        return value

    @field_validator("blacklist_domains", mode="before")
    @classmethod
    def _split_domains(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple)):
            return [str(d).strip().lower() for d in value if str(d).strip()]
        return value

    @field_validator("notes_backend")
    @classmethod
    def _check_backend(cls, value: str) -> str:
        value = value.lower()
        if value not in ("drive", "local"):
            raise ValueError("must be 'drive' or 'local'")
        return value

    @field_validator("notes_path", "state_path", "accounts_path", "credentials_path",
                     "token_path", "tld_cache_path", mode="after")
    @classmethod
    def _expand_path(cls, value: Optional[Path]) -> Optional[Path]:
        if value is None:
            return None
        return value.expanduser()


def find_config_path(explicit: Optional[Path] = None) -> Optional[Path]:
    """Locate config.yaml.

    Resolution order:
    1. Explicit path (from --config)
    2. CALNOTES_HOME environment variable
    3. Current working directory
    4. ~/.calnotes/

    Returns:
        Path to config.yaml, or None if not found.
    """
    if explicit is not None:
        explicit = Path(explicit).expanduser()
        if not explicit.exists():
            raise ConfigError(f"Configuration file not found: {explicit}")
        return explicit

    candidates = []
    if os.getenv("CALNOTES_HOME"):
        candidates.append(Path(os.environ["CALNOTES_HOME"]).expanduser() / CONFIG_FILENAME)
    candidates.append(Path.cwd() / CONFIG_FILENAME)
    candidates.append(DEFAULT_HOME / CONFIG_FILENAME)

    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def _env_overrides() -> Dict[str, str]:
    overrides = {}
    for name in CalnotesSettings.model_fields:
        value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if value is not None:
            overrides[name] = value
    return overrides


def _home_defaults(home: Path) -> Dict[str, Path]:
    return {
        "state_path": home / "state.json",
        "accounts_path": home / "accounts.yaml",
        "credentials_path": home / ".secrets" / "credentials.json",
        "token_path": home / ".secrets" / "token.json",
        "tld_cache_path": home / "public_suffix_list.dat",
    }


def load_settings(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> CalnotesSettings:
    """Load and validate settings.

    The .env next to config.yaml is loaded first so CALNOTES_* variables
    defined there take precedence over the YAML values. Explicit overrides
    (e.g. CLI flags) win over both.

    Args:
        config_path: Explicit config.yaml path
        overrides: Values that replace anything loaded from disk

    Returns:
        Validated CalnotesSettings

    Raises:
        ConfigError: If the file cannot be parsed or a value is invalid
    """
    path = find_config_path(config_path)
    raw: Dict[str, Any] = {}

    if path is not None:
        env_path = path.parent / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            logger.debug("Loaded .env from %s", env_path)
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}", details=str(e))
        except IOError as e:
            raise ConfigError(f"Cannot read {path}", details=str(e))
        if not isinstance(raw, dict):
            raise ConfigError(f"Expected a mapping at the top of {path}")
        logger.debug("Loaded config from %s", path)
        home = path.parent
    else:
        logger.debug("No config.yaml found, using defaults")
        home = DEFAULT_HOME

    for key, value in _home_defaults(home).items():
        raw.setdefault(key, value)
    raw.update(_env_overrides())
    if overrides:
        raw.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return CalnotesSettings(**raw)
    except ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ConfigError(
            f"Invalid configuration value for '{key}': {first.get('msg')}",
            config_key=key,
            details=str(e),
        )
