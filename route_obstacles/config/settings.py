"""Runtime settings: defaults, then a YAML file, then environment, then CLI."""

import logging
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from route_obstacles.domain.providers.permissions import Permission

ENV_PREFIX = 'ROUTE_OBSTACLES_'
DEFAULT_DATA_DIRECTORY = os.path.join(os.path.expanduser('~'), '.route-obstacles')

_FLOAT_FIELDS = {'location_max_age', 'static_latitude', 'static_longitude'}
_BOOL_FIELDS = {'prompt_permissions'}
_OPTIONAL_FIELDS = {
    'image_directory', 'location_fix_file', 'location_max_age',
    'static_latitude', 'static_longitude',
}


class SettingsError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    data_directory: str = DEFAULT_DATA_DIRECTORY
    # Defaults to <data_directory>/images
    image_directory: Optional[str] = None
    location_fix_file: Optional[str] = None
    location_max_age: Optional[float] = 30.0
    static_latitude: Optional[float] = None
    static_longitude: Optional[float] = None
    granted_permissions: Tuple[Permission, ...] = field(default_factory=tuple)
    prompt_permissions: bool = True
    log_level: str = 'WARNING'

    @property
    def resolved_image_directory(self) -> str:
        return self.image_directory or os.path.join(self.data_directory, 'images')

    def with_updates(self, overrides: Mapping[str, Any]) -> 'Settings':
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise SettingsError(f"Unknown settings: {', '.join(sorted(unknown))}")

        values = {name: _normalize(name, value) for name, value in overrides.items()}
        updated = replace(self, **values)
        _validate(updated)
        return updated


def _normalize_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {'1', 'true', 'yes', 'on'}:
        return True
    if text in {'0', 'false', 'no', 'off'}:
        return False
    raise SettingsError(f"Invalid boolean value: {value!r}")


def _normalize_permissions(value: Any) -> Tuple[Permission, ...]:
    if isinstance(value, str):
        value = [part for part in value.replace(',', ' ').split() if part]
    try:
        return tuple(Permission(str(item).strip().lower()) for item in value or ())
    except ValueError as e:
        raise SettingsError(f"Unknown permission in {value!r}") from e


def _normalize(name: str, value: Any) -> Any:
    if value is None or value == '':
        if name in _OPTIONAL_FIELDS:
            return None
        if name == 'granted_permissions':
            return ()
        raise SettingsError(f"Setting '{name}' cannot be empty")
    if name in _FLOAT_FIELDS:
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise SettingsError(f"Setting '{name}' must be a number, got {value!r}") from e
    if name in _BOOL_FIELDS:
        return _normalize_bool(value)
    if name == 'granted_permissions':
        return _normalize_permissions(value)
    if name == 'log_level':
        return str(value).upper()
    return os.path.expanduser(str(value))


def _validate(settings: Settings) -> None:
    if (settings.static_latitude is None) != (settings.static_longitude is None):
        raise SettingsError("static_latitude and static_longitude must be set together")
    if settings.static_latitude is not None and not (
        -90.0 <= settings.static_latitude <= 90.0
        and -180.0 <= settings.static_longitude <= 180.0
    ):
        raise SettingsError("static position is out of range")
    if settings.location_max_age is not None and settings.location_max_age <= 0:
        raise SettingsError("location_max_age must be positive")
    if not isinstance(logging.getLevelName(settings.log_level), int):
        raise SettingsError(f"Unknown log level: {settings.log_level}")


def _load_config_overrides(path: str) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as handle:
            data = yaml.safe_load(handle) or {}
    except OSError as e:
        raise SettingsError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise SettingsError(f"Config file {path} must contain a mapping")
    return {str(key).replace('-', '_').lower(): value for key, value in data.items()}


def _collect_env_overrides(env: Mapping[str, str]) -> Dict[str, Any]:
    known = {f.name for f in fields(Settings)}
    overrides = {}
    for key, value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        name = key[len(ENV_PREFIX):].lower()
        if name in known:
            overrides[name] = value
    return overrides


def load_settings(
    config_path: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Settings:
    """
    Build settings from every source, later sources winning.

    Args:
        config_path (Optional[str]): YAML file; falls back to the
            ROUTE_OBSTACLES_CONFIG environment variable
        env (Optional[Mapping[str, str]]): Environment, defaults to os.environ
        overrides (Optional[Mapping[str, Any]]): Values from the command line;
            None entries are ignored

    Returns:
        Settings: The merged settings

    Raises:
        SettingsError: If any source holds an invalid value
    """
    env_mapping = os.environ if env is None else env
    merged: Dict[str, Any] = {}

    config_path = config_path or env_mapping.get(f'{ENV_PREFIX}CONFIG')
    if config_path:
        merged.update(_load_config_overrides(config_path))
    merged.update(_collect_env_overrides(env_mapping))
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})

    return Settings().with_updates(merged)
