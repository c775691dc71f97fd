"""Persistent tm1ctl configuration and lookups of hosts, users, instances and databases."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

DEFAULT_SERVICE_ROOT_URL = "http://localhost:4444"
CONFIG_FILE_NAME = ".tm1ctl.json"


class ConfigError(Exception):
    """Raised when the configuration is missing, invalid or cannot be read or saved."""


def _defaults() -> dict[str, Any]:
    return {
        "hosts": {"local": {"service_root_url": DEFAULT_SERVICE_ROOT_URL}},
        "host": "local",
        "output-format": "table",
    }


def _normalise(values: dict[str, Any]) -> dict[str, Any]:
    return {str(key).lower(): value for key, value in values.items()}


class Settings:
    """Layered configuration: explicit values, flag overrides, the config file, then defaults."""

    def __init__(self, path, values=None):
        self.path = Path(path) if path is not None else None
        self._defaults = _defaults()
        self._values = _normalise(values or {})
        self._overrides: dict[str, Any] = {}
        self._explicit: dict[str, Any] = {}

    def _layers(self):
        return (self._explicit, self._overrides, self._values, self._defaults)

    def _all_settings(self) -> dict[str, Any]:
        merged: dict[str, Any] = {}
        for layer in reversed(self._layers()):
            merged.update(copy.deepcopy(layer))
        return merged

    def get(self, key):
        """Return the value for a key (case-insensitive), or None when unset."""
        key = key.lower()
        for layer in self._layers():
            if key in layer:
                return copy.deepcopy(layer[key])
        return None

    def get_string(self, key):
        """Return the value for a key as a string, empty when unset."""
        value = self.get(key)
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        return value if isinstance(value, str) else str(value)

    def get_map(self, key):
        """Return a copy of the mapping stored under a key, empty when it is not a mapping."""
        value = self.get(key)
        if not isinstance(value, dict):
            return {}
        return {str(k): v for k, v in value.items()}

    def set(self, key, value):
        """Set a value that takes precedence over everything else."""
        self._explicit[key.lower()] = copy.deepcopy(value)

    def override(self, key, value):
        """Set a value supplied on the command line, above the config file and defaults."""
        self._overrides[key.lower()] = copy.deepcopy(value)

    def save(self):
        """Write all settings to the configuration file."""
        if self.path is None:
            raise ConfigError("failed to update configuration: no configuration file")
        text = json.dumps(self._all_settings(), indent=2, sort_keys=True)
        try:
            self.path.write_text(text + "\n", encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"failed to update configuration: {exc}") from exc

    def host_name(self, name):
        """Return the given host name, falling back to the active host."""
        if not name:
            name = self.get_string("host")
        if not name:
            raise ConfigError("no host specified")
        return name

    def host_configuration(self, name):
        """Return the configuration mapping of the given (or active) host."""
        name = self.host_name(name)
        raw = self.get_map("hosts").get(name)
        if raw is None:
            raise ConfigError(f"no configuration specified for host '{name}'")
        if not isinstance(raw, dict):
            raise ConfigError(f"invalid configuration for host '{name}', format invalid")
        return raw

    def user_name(self, name):
        """Return the given user name, falling back to the active user."""
        if not name:
            name = self.get_string("user")
        if not name:
            raise ConfigError("no user specified")
        return name

    def user_configuration(self, name):
        """Return the configuration mapping of the given (or active) user."""
        name = self.user_name(name)
        raw = self.get_map("users").get(name)
        if raw is None:
            raise ConfigError(f"no configuration specified for user '{name}'")
        if not isinstance(raw, dict):
            raise ConfigError(f"invalid configuration for user '{name}', format invalid")
        return raw

    def service_root_url(self, host):
        """Return the service root URL of the given (or active) host."""
        config = self.host_configuration(host)
        return service_root_url_from_host_config(host, config)

    def instance_name(self, host, instance):
        """Return the given instance name, falling back to the host's active instance."""
        config = self.host_configuration(host)
        return instance_name_from_host_config(instance, config)

    def instance_root_url(self, host, instance):
        """Return the API root URL of an instance on a host."""
        config = self.host_configuration(host)
        instance = instance_name_from_host_config(instance, config)
        root = service_root_url_from_host_config(host, config)
        return f"{root}/{instance}/api/v1"

    def database_root_url(self, host, instance, database):
        """Return the API root URL of a database on an instance."""
        instance_root = self.instance_root_url(host, instance)
        if not database:
            raise ConfigError("no database specified")
        return f"{instance_root}/Databases('{database}')"


def _string_from_host_config(name, config, prop_name):
    raw = config.get(prop_name)
    if raw is not None and not isinstance(raw, str):
        raise ConfigError(f"invalid {prop_name} format for host '{name}'")
    if not raw:
        raise ConfigError(f"invalid configuration, no {prop_name} specified for host '{name}'")
    return raw


def service_root_url_from_host_config(name, config):
    """Return the host's service root URL."""
    return _string_from_host_config(name, config, "service_root_url")


def root_client_id_from_host_config(name, config):
    """Return the host's root client id."""
    return _string_from_host_config(name, config, "root_client_id")


def root_client_secret_from_host_config(name, config):
    """Return the host's root client secret."""
    return _string_from_host_config(name, config, "root_client_secret")


def instance_name_from_host_config(instance, config):
    """Return the instance name, using the host's active instance when none is given."""
    if instance:
        return instance
    raw = config.get("instance")
    if raw is not None and not isinstance(raw, str):
        raise ConfigError("invalid configuration, 'instance' property is not a string")
    if not raw:
        raise ConfigError("no instance specified")
    return raw


def default_config_path():
    """Return the default configuration file location in the user's home directory."""
    try:
        home = Path.home()
    except RuntimeError as exc:
        raise ConfigError(str(exc)) from exc
    return home / CONFIG_FILE_NAME


def _read(path: Path) -> dict[str, Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("configuration is not a JSON object")
    return data


def load_settings(path=None):
    """Load settings from an explicit file, or from the default file, creating it if absent."""
    if path:
        path = Path(path)
        try:
            values = _read(path)
        except (OSError, ValueError) as exc:
            raise ConfigError(f"Error loading config: {exc}") from exc
        return Settings(path, values)

    path = default_config_path()
    try:
        values = _read(path)
    except (OSError, ValueError):
        settings = Settings(path, {})
        if not path.exists():
            try:
                settings.save()
            except ConfigError:
                pass
        return settings
    return Settings(path, values)