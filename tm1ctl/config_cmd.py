"""The ``config`` command: inspect and change global tm1ctl settings."""

from __future__ import annotations

from contextlib import contextmanager

import click

from tm1ctl.output import OutputError, stringify
from tm1ctl.settings import ConfigError, Settings, load_settings

ALLOWED_CONFIG_KEYS = ("output-format",)
LIST_CONFIG_KEYS = ("host", "instance", "database", "user", "output-format")
ALLOWED_OUTPUT_FORMATS = ("json", "table")


def _has_value(value) -> bool:
    return value is not None and value != ""


def config_value(settings, key):
    """Return the effective value of a configuration key, or None when unset."""
    if key == "instance":
        host = config_value(settings, "host")
        if not _has_value(host):
            return None
        try:
            return settings.instance_name(host, "") or None
        except ConfigError:
            return None
    if key == "database":
        # Active databases are not tracked per instance yet.
        return None
    return settings.get(key)


def _listed_values(settings):
    for key in LIST_CONFIG_KEYS:
        value = config_value(settings, key)
        if _has_value(value):
            yield f"{key} = {stringify(value)}\n"


def list_config(settings, key=None):
    """Return the text listing one configuration key, or all keys that have a value."""
    if not key:
        return "".join(_listed_values(settings))
    if key not in LIST_CONFIG_KEYS:
        raise ConfigError(f"'{key}' is not a recognized configuration key")
    value = config_value(settings, key)
    if _has_value(value):
        return f"{key} = {stringify(value)}\n"
    return f"No value set for key '{key}'"


def _choices(heading: str, values) -> str:
    return heading + "".join(f"\n - {value}" for value in values)


def set_config(settings, key, value):
    """Set and save a configuration value, returning the confirmation text."""
    if key not in ALLOWED_CONFIG_KEYS:
        raise ConfigError(
            f"'{key}' is not a recognized configuration key.\n"
            + _choices("Allowed keys are:", ALLOWED_CONFIG_KEYS)
        )
    if key == "output-format" and value not in ALLOWED_OUTPUT_FORMATS:
        raise ConfigError(
            f"'{value}' is not a recognized output format.\n"
            + _choices("Supported output formats are:", ALLOWED_OUTPUT_FORMATS)
        )
    settings.set(key, value)
    settings.save()
    return f"{key} set to {value}\n"


def _settings(ctx: click.Context) -> Settings:
    settings = ctx.find_object(Settings)
    if settings is None:
        settings = load_settings(None)
        ctx.obj = settings
    return settings


@contextmanager
def _reporting():
    try:
        yield
    except (ConfigError, OutputError) as exc:
        raise click.ClickException(str(exc)) from exc


def build_command():
    """Return the ``config`` command group."""

    @click.group(name="config", help="Manage global tm1ctl configuration")
    @click.pass_context
    def config(ctx):
        with _reporting():
            _settings(ctx)

    @config.command(name="list", help="List all configuration values")
    @click.argument("key", required=False, default="")
    @click.pass_context
    def list_command(ctx, key):
        with _reporting():
            click.echo(list_config(_settings(ctx), key), nl=False)

    @config.command(name="set", help="Set and save a configuration value")
    @click.argument("key")
    @click.argument("value")
    @click.pass_context
    def set_command(ctx, key, value):
        with _reporting():
            click.echo(set_config(_settings(ctx), key, value), nl=False)

    return config