"""Configuration for nlask.

Runtime settings come from the environment (optionally a .env file); the
only persisted preference is the colour theme, stored as ``key=value`` lines
in ``~/.ask/config``.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .theme import ThemeMode

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

API_KEY_ENV = "OPENROUTER_ASK_API_KEY"
DEFAULT_MODEL = "meta-llama/llama-3.3-70b-instruct"
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_SHELL = "/bin/zsh"
DEFAULT_REQUEST_TIMEOUT = 60.0


def nlask_home() -> Path:
    """Directory holding the config file, history and log."""
    return Path(os.getenv("NLASK_HOME", str(Path.home() / ".ask"))).expanduser()


@dataclass
class AskConfig:
    """Runtime configuration for a session."""
    api_key: str
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    shell: str = DEFAULT_SHELL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    theme: ThemeMode = ThemeMode.DARK
    home_dir: Path = field(default_factory=nlask_home)

    @property
    def history_file(self) -> Path:
        return self.home_dir / "history"

    @property
    def log_file(self) -> Path:
        return self.home_dir / "ask.log"


def get_config(model: str | None = None, theme: ThemeMode | None = None) -> AskConfig:
    """Load configuration from environment.

    Required environment variables:
        OPENROUTER_ASK_API_KEY: OpenRouter API key

    Optional environment variables:
        OPENROUTER_ASK_MODEL: Default model (default: meta-llama/llama-3.3-70b-instruct)
        OPENROUTER_ASK_BASE_URL: API base URL (default: https://openrouter.ai/api/v1)
        NLASK_SHELL: Shell used to run commands (default: $SHELL, then /bin/zsh)
        NLASK_REQUEST_TIMEOUT: Model request timeout in seconds (default: 60)
        NLASK_HOME: Directory for config, history and log (default: ~/.ask)

    Args:
        model: Model override from the command line
        theme: Theme override from the command line

    Returns:
        AskConfig with loaded values

    Raises:
        ConfigurationError: If the API key is missing or a value is malformed
    """
    api_key = os.getenv(API_KEY_ENV)
    if not api_key:
        raise ConfigurationError(
            f"Please set the {API_KEY_ENV} environment variable.",
            missing_key=API_KEY_ENV,
        )

    raw_timeout = os.getenv("NLASK_REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT))
    try:
        request_timeout = float(raw_timeout)
    except ValueError:
        raise ConfigurationError(
            f"NLASK_REQUEST_TIMEOUT must be a number, got {raw_timeout!r}",
            missing_key="NLASK_REQUEST_TIMEOUT",
        )

    home_dir = nlask_home()
    if theme is None:
        theme = load_preferences(home_dir / "config").theme

    return AskConfig(
        api_key=api_key,
        model=model or os.getenv("OPENROUTER_ASK_MODEL", DEFAULT_MODEL),
        base_url=os.getenv("OPENROUTER_ASK_BASE_URL", DEFAULT_BASE_URL),
        shell=os.getenv("NLASK_SHELL", os.getenv("SHELL", DEFAULT_SHELL)),
        request_timeout=request_timeout,
        theme=theme,
        home_dir=home_dir,
    )


# ============================================================================
# Persisted preferences
# ============================================================================

@dataclass
class Preferences:
    """Values persisted in the config file."""
    theme: ThemeMode = ThemeMode.DARK
    extra: dict[str, str] = field(default_factory=dict)


def load_preferences(path: Path | None = None) -> Preferences:
    """Read preferences, falling back to defaults for anything missing or invalid."""
    path = path or nlask_home() / "config"
    prefs = Preferences()
    if not path.exists():
        return prefs

    try:
        lines = path.read_text().splitlines()
    except OSError as e:
        logger.warning(f"Could not read config file {path}: {e}")
        return prefs

    for line in lines:
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        value = value.strip()
        if key == "theme":
            mode = ThemeMode.parse(value)
            if mode is None:
                logger.warning(f"Ignoring invalid theme {value!r} in {path}")
                continue
            prefs.theme = mode
        elif key:
            prefs.extra[key] = value
    return prefs


def save_preferences(prefs: Preferences, path: Path | None = None) -> None:
    """Write preferences, creating the parent directory if needed.

    Raises:
        OSError: If the file cannot be written
    """
    path = path or nlask_home() / "config"
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [f"theme={prefs.theme.value}"]
    lines.extend(f"{key}={value}" for key, value in prefs.extra.items())
    path.write_text("\n".join(lines) + "\n")
    logger.info(f"Saved preferences to {path}")
