"""Process-wide access to the active configuration.

The configuration is loaded from ``config.yaml`` the first time it is asked
for and can be overridden for a block of code with :func:`with_context`. The
override lives in a ``ContextVar``, so it follows the current thread or task
and does not leak into concurrent requests.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from src.gs1link.runtime.config.config_data import ConfigData
from src.gs1link.runtime.config.config_template import load_config


@dataclass(frozen=True)
class AppContext:
    config: ConfigData


_loaded: AppContext | None = None
_current: ContextVar[AppContext | None] = ContextVar("gs1link_context", default=None)


def get_context() -> AppContext:
    """Return the overriding context if one is active, else the loaded one."""
    global _loaded
    context = _current.get()
    if context is not None:
        return context
    if _loaded is None:
        _loaded = AppContext(config=load_config())
    return _loaded


def get_config() -> ConfigData:
    return get_context().config


def _explicit_values(model: BaseModel) -> dict[str, Any]:
    # Nested sections are descended into; a section counts as set when any
    # field below it was passed to its constructor.
    values: dict[str, Any] = {}
    for name in type(model).model_fields:
        value = getattr(model, name)
        if isinstance(value, BaseModel):
            nested = _explicit_values(value)
            if nested:
                values[name] = nested
            elif name in model.model_fields_set:
                values[name] = value.model_dump()
        elif name in model.model_fields_set:
            values[name] = value
    return values


def _deep_update(target: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    merged = dict(target)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_update(merged[key], value)
        else:
            merged[key] = value
    return merged


def merge_config(base: ConfigData, override: ConfigData) -> ConfigData:
    """Apply the explicitly set fields of ``override`` on top of ``base``."""
    merged = _deep_update(base.model_dump(), _explicit_values(override))
    return ConfigData.model_validate(merged)


@contextmanager
def with_context(override: ConfigData | None = None):
    """Run a block with ``override`` layered over the active configuration.

    Example:
        with with_context(ConfigData(gtin=GtinConfig(enforce_check_digit=True))):
            assert get_config().gtin.enforce_check_digit
    """
    if override is None:
        yield get_config()
        return
    if not isinstance(override, ConfigData):
        raise TypeError(f"expected ConfigData, got {type(override).__name__}")

    token = _current.set(AppContext(config=merge_config(get_config(), override)))
    try:
        yield get_config()
    finally:
        _current.reset(token)
