"""The ``host`` command: manage the configured TM1 service hosts."""

from __future__ import annotations

from contextlib import contextmanager

import click

from tm1ctl.output import OutputError, format_map
from tm1ctl.settings import ConfigError, Settings, load_settings

_HOST_FIELDS = ("service_root_url", "root_client_id", "root_client_secret")


def list_hosts(settings, name=None):
    """Return all configured hosts, or the one named, as text."""
    hosts = settings.get_map("hosts")
    if not hosts:
        return "No hosts configured.\n"
    if not name:
        return format_map(hosts, "Name")
    host = hosts.get(name)
    if host is None:
        return f"no configuration specified for host '{name}'\n"
    if not isinstance(host, dict):
        raise ConfigError(f"invalid configuration for host '{name}', format invalid")
    return format_map(host, "Name")


def set_host(settings, name, service_root_url=None, root_client_id=None, root_client_secret=None):
    """Update a host's settings.

    A value of None leaves a field alone, an empty string removes it.
    """
    hosts = settings.get_map("hosts")
    raw = hosts.get(name)
    if raw is None:
        host_map = {}
    elif isinstance(raw, dict):
        host_map = raw
    else:
        raise ConfigError(f"Invalid host format for '{name}'")

    values = dict(zip(_HOST_FIELDS, (service_root_url, root_client_id, root_client_secret)))
    changed = False
    for field, value in values.items():
        if value:
            host_map[field] = value
            changed = True
        elif value is not None:
            host_map.pop(field, None)
            changed = True

    if not changed:
        return (
            "No values provided to set. "
            "Use --service_root_url, --root_client_id or --root_client_secret.\n"
        )

    hosts[name] = host_map
    settings.set("hosts", hosts)
    settings.save()
    return f"Updated host '{name}'\n"


def use_host(settings, name=None):
    """Make a configured host the active one, or clear the active host when no name is given."""
    if not name:
        settings.set("host", "")
        settings.save()
        return "Reset active host.\n"
    if name not in settings.get_map("hosts"):
        raise ConfigError(
            f"Host '{name}' is not defined. "
            "Please configure a host before making it the active host."
        )
    settings.set("host", name)
    settings.save()
    return f"Set active host to '{name}'.\n"


def delete_host(settings, name):
    """Remove a host from the configuration, clearing it as active host if needed."""
    hosts = settings.get_map("hosts")
    if name not in hosts:
        raise ConfigError(f"Host '{name}' does not exist.")
    if settings.get_string("host") == name:
        settings.set("host", "")
    del hosts[name]
    settings.set("hosts", hosts)
    settings.save()
    return f"Deleted host '{name}'.\n"


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
    """Return the ``host`` command group."""

    @click.group(name="host", help="Manage host configuration")
    @click.pass_context
    def host(ctx):
        with _reporting():
            _settings(ctx)

    @host.command(name="list", help="List all configured hosts")
    @click.argument("name", required=False, default="")
    @click.pass_context
    def list_command(ctx, name):
        with _reporting():
            click.echo(list_hosts(_settings(ctx), name), nl=False)

    @host.command(name="set", help="Set one or more configuration values for the specified host")
    @click.argument("name")
    @click.option("--service_root_url", "service_root_url", default=None,
                  help="Set the service root URL for this host")
    @click.option("--root_client_id", "root_client_id", default=None,
                  help="Set the root user's client ID for this host")
    @click.option("--root_client_secret", "root_client_secret", default=None,
                  help="Set the root user's client secret for this host")
    @click.pass_context
    def set_command(ctx, name, service_root_url, root_client_id, root_client_secret):
        with _reporting():
            text = set_host(
                _settings(ctx), name, service_root_url, root_client_id, root_client_secret
            )
            click.echo(text, nl=False)

    @host.command(name="use", help="Switch to using the specified host, or unset if no name given")
    @click.argument("name", required=False, default="")
    @click.pass_context
    def use_command(ctx, name):
        with _reporting():
            click.echo(use_host(_settings(ctx), name), nl=False)

    @host.command(name="delete", help="Delete host from the list of, configured, hosts")
    @click.argument("name")
    @click.pass_context
    def delete_command(ctx, name):
        with _reporting():
            click.echo(delete_host(_settings(ctx), name), nl=False)

    return host