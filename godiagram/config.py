"""
Configuration handling for godiagram.

Two kinds of configuration live here:
- The per-diagram option block written under the board (YAML), plus the
  typed accessors diagrams use to read it
- The application settings file (godiagram.yaml) used by the CLI and API
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import yaml

from .errors import ConfigError

ConfigValue = Union[str, bool, List[str], Dict[str, str]]
DiagramConfig = Dict[str, ConfigValue]

CONFIG_SEPARATOR = "---"

TRUE_STRINGS = ("true", "yes", "1")


# ============================================================================
# Diagram Option Block
# ============================================================================

def extract_config_section(lines: Sequence[str], start_index: int) -> str:
    """
    Extract the option block that follows the board rows.

    The block starts after a '---' line if one exists at or after
    start_index; otherwise it starts at start_index itself, which the board
    parser sets to the first 'key: value' line.

    Args:
        lines: Diagram source lines
        start_index: Index of the first line after the board rows

    Returns:
        YAML content (possibly empty)
    """
    for i in range(start_index, len(lines)):
        if lines[i].strip() == CONFIG_SEPARATOR:
            return "\n".join(lines[i + 1:])
    return "\n".join(lines[start_index:])


def _normalize_scalar(value: object) -> str:
    if value is None:
        return ""
    return str(value)


def parse_config(content: str) -> DiagramConfig:
    """
    Parse a YAML option block into normalized values.

    Lists become lists of strings, booleans stay booleans, nested mappings
    become str -> str dictionaries and every other scalar becomes a string.

    Args:
        content: Raw YAML text

    Returns:
        Normalized configuration dictionary

    Raises:
        ConfigError: If the YAML is invalid or not a mapping
    """
    if not content or not content.strip():
        return {}

    # Indentation from embedding (e.g. a Markdown code block) is not significant
    lines = content.splitlines()
    indents = [len(line) - len(line.lstrip()) for line in lines if line.strip()]
    margin = min(indents) if indents else 0
    content = "\n".join(line[margin:] for line in lines)

    try:
        parsed = yaml.safe_load(content)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        line_info = f" at line {mark.line + 1}" if mark is not None else ""
        problem = getattr(e, "problem", None) or str(e)
        raise ConfigError(f"Configuration parsing error{line_info}: {problem}")

    if parsed is None:
        return {}

    if not isinstance(parsed, dict):
        raise ConfigError("Configuration must be a YAML mapping (key: value pairs)")

    normalized: DiagramConfig = {}
    for key, value in parsed.items():
        key = str(key)
        if isinstance(value, list):
            normalized[key] = [_normalize_scalar(v) for v in value]
        elif isinstance(value, bool):
            normalized[key] = value
        elif isinstance(value, dict):
            normalized[key] = {str(k): _normalize_scalar(v) for k, v in value.items()}
        else:
            normalized[key] = _normalize_scalar(value)

    return normalized


def load_diagram_config(lines: Sequence[str], start_index: int) -> DiagramConfig:
    """Extract and parse the option block of a diagram source."""
    return parse_config(extract_config_section(lines, start_index))


# ============================================================================
# Typed Option Access
# ============================================================================

def get_list(config: DiagramConfig, key: str, split_commas: bool = True) -> List[str]:
    """
    Read an array-valued option.

    Accepts a YAML list or a single string; strings are split on commas
    unless split_commas is False.
    """
    value = config.get(key)
    if value is None or isinstance(value, bool):
        return []
    if isinstance(value, dict):
        raise ConfigError(f"Option '{key}' must be a list or a comma-separated string")
    if isinstance(value, list):
        items = value
    elif split_commas:
        items = value.split(",")
    else:
        items = [value]
    return [item.strip() for item in items if item.strip()]


def get_bool(config: DiagramConfig, key: str, default: bool = False) -> bool:
    """Read a boolean option ('true', 'yes' and '1' count as true)."""
    value = config.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, list):
        value = value[0] if value else ""
    if isinstance(value, dict):
        raise ConfigError(f"Option '{key}' must be a boolean")
    return value.strip().lower() in TRUE_STRINGS


def _first_string(config: DiagramConfig, key: str) -> Optional[str]:
    value = config.get(key)
    if value is None:
        return None
    if isinstance(value, list):
        value = value[0] if value else ""
    if isinstance(value, (bool, dict)):
        raise ConfigError(f"Invalid {key} value '{value}'")
    value = value.strip()
    return value or None


def get_choice(
    config: DiagramConfig,
    key: str,
    choices: Sequence[str],
    default: Optional[str] = None,
) -> Optional[str]:
    """
    Read an enumerated option (case-insensitive).

    Raises:
        ConfigError: If the value is not one of choices
    """
    value = _first_string(config, key)
    if value is None:
        return default
    value = value.lower()
    if value not in choices:
        allowed = ", ".join(f"'{c}'" for c in choices)
        raise ConfigError(f"Invalid {key} value '{value}'. Must be one of {allowed}")
    return value


def get_int(config: DiagramConfig, key: str, default: Optional[int] = None) -> Optional[int]:
    """
    Read an integer option.

    Raises:
        ConfigError: If the value is not an integer
    """
    value = _first_string(config, key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"Invalid {key} value '{value}'. Must be an integer")


def get_mapping(config: DiagramConfig, key: str) -> Dict[str, str]:
    """
    Read a nested key: value option.

    Raises:
        ConfigError: If the option is present but not a mapping
    """
    value = config.get(key)
    if value is None or value == "":
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"Option '{key}' must be a nested block of key: value pairs")
    return value


# ============================================================================
# Application Settings
# ============================================================================

@dataclass
class DiagramSettings:
    """Defaults applied to interactive diagrams."""
    reply_delay: float = 0.5


@dataclass
class ApiSettings:
    """HTTP session API settings."""
    max_sessions: int = 256


@dataclass
class LoggingSettings:
    """Logging settings for the CLI and API."""
    level: str = "INFO"


@dataclass
class AppConfig:
    """Main application configuration."""
    diagrams: DiagramSettings = field(default_factory=DiagramSettings)
    api: ApiSettings = field(default_factory=ApiSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load application settings from YAML.

    Args:
        config_path: Path to godiagram.yaml. If None, searches in:
                     1. Current directory
                     2. Project root (relative to this file)
                     and falls back to defaults when neither exists.

    Returns:
        AppConfig instance

    Raises:
        FileNotFoundError: If an explicit config_path does not exist
        ValueError: If the config file is invalid
    """
    if config_path is None:
        search_paths = [
            Path.cwd() / "godiagram.yaml",
            get_project_root() / "godiagram.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break
        else:
            return AppConfig()
    elif not Path(config_path).exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid config file {config_path}: {e}")

    if data is None:
        return AppConfig()
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    diagrams_data = data.get("diagrams") or {}
    api_data = data.get("api") or {}
    logging_data = data.get("logging") or {}

    try:
        reply_delay = float(diagrams_data.get("reply_delay", 0.5))
        max_sessions = int(api_data.get("max_sessions", 256))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value in {config_path}: {e}")

    if reply_delay < 0:
        raise ValueError("diagrams.reply_delay must not be negative")
    if max_sessions < 1:
        raise ValueError("api.max_sessions must be at least 1")

    return AppConfig(
        diagrams=DiagramSettings(reply_delay=reply_delay),
        api=ApiSettings(max_sessions=max_sessions),
        logging=LoggingSettings(level=str(logging_data.get("level", "INFO")).upper()),
    )
