"""Loading of ``config.yaml`` with environment variable placeholders.

Placeholders follow shell parameter expansion:

- ``${NAME}``: the variable must be set
- ``${NAME:-fallback}``: use ``fallback`` when the variable is unset
- ``${NAME:?reason}``: the variable must be set, ``reason`` ends up in the error
"""

import os
import re
from pathlib import Path

import yaml
from loguru import logger
from pydantic import ValidationError

from src.gs1link.runtime.config.config_data import ConfigData

_PLACEHOLDER = re.compile(r"\$\{(?P<name>[^}:]+)(?:(?P<op>:-|:\?)(?P<arg>[^}]*))?\}")


def substitute_env_vars(text: str) -> str:
    """Expand every placeholder in ``text``.

    Raises:
        ValueError: a required variable is not set
    """

    def expand(match: re.Match) -> str:
        name, op, arg = match.group("name", "op", "arg")
        value = os.environ.get(name)
        if value is not None:
            return value
        if op == ":-":
            return arg
        if op == ":?":
            raise ValueError(f"Required environment variable {name}: {arg}")
        raise ValueError(f"Required environment variable {name} not set")

    return _PLACEHOLDER.sub(expand, text)


def apply_environment_overrides(env_mode: str) -> None:
    """Promote ``<ENV>_NAME`` variables to ``NAME`` for the active environment.

    ``PRODUCTION_DATABASE_URL`` becomes ``DATABASE_URL`` when running with
    ``APP_ENVIRONMENT=production``.
    """
    prefix = f"{env_mode.upper()}_"
    promoted = {
        name[len(prefix):]: value
        for name, value in os.environ.items()
        if name.startswith(prefix) and len(name) > len(prefix)
    }
    if promoted:
        logger.info("Applying {} overrides: {}", prefix, sorted(promoted))
    os.environ.update(promoted)


def load_templated_yaml(file_path: Path) -> ConfigData:
    """Read ``file_path``, expand placeholders and validate the ``config`` section.

    Raises:
        ValueError: missing variables, malformed YAML or invalid settings
        FileNotFoundError: the file does not exist
    """
    raw = Path(file_path).read_text()

    env_mode = os.getenv("APP_ENVIRONMENT", "development")
    logger.info("Loading configuration {} for environment {}", file_path, env_mode)
    apply_environment_overrides(env_mode)

    try:
        document = yaml.safe_load(substitute_env_vars(raw))
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e
    if not isinstance(document, dict):
        raise ValueError(f"{file_path} does not contain a YAML mapping")

    try:
        config = ConfigData.model_validate(document.get("config") or {})
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e

    assets = config.assets
    if assets.backend == "supabase" and not (assets.supabase_url and assets.supabase_key):
        raise ValueError(
            "Invalid configuration: the supabase asset backend needs "
            "assets.supabase_url and assets.supabase_key"
        )
    return config


def load_config(file_path: Path | None = None) -> ConfigData:
    """Load the file named by ``APP_CONFIG_FILE`` (default ``config.yaml``).

    Falls back to built-in defaults when the file does not exist.
    """
    path = Path(file_path or os.getenv("APP_CONFIG_FILE", "config.yaml"))
    if not path.exists():
        logger.warning("Configuration file {} not found; using defaults", path)
        return ConfigData()
    return load_templated_yaml(path)
