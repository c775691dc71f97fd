"""The ``instance`` command: manage the instances of a TM1 service."""

from __future__ import annotations

from contextlib import contextmanager

import click

from tm1ctl.http_client import ApiClient, ApiError
from tm1ctl.output import OutputError, format_collection, format_entity
from tm1ctl.settings import ConfigError, Settings, load_settings


def list_instances(client, host, name, output_format):
    """Return the instances on a host, or the one named, rendered as text."""
    path = f"Instances('{name}')" if name else "Instances"
    return format_collection(client.manage_get(host, path), output_format)


def create_instance(client, host, name, output_format):
    """Create an instance and return the created entity rendered as text."""
    data = client.manage_post(host, "Instances", {"Name": name})
    return format_entity(data, output_format)


def delete_instance(client, host, name):
    """Delete an instance with all its databases and return the confirmation text."""
    client.manage_delete(host, f"Instances('{name}')")
    return f"Instance '{name}' has been deleted!\n"


def use_instance(settings, host, name=None):
    """Make an instance the active one on a host, or clear it when no name is given."""
    host = settings.host_name(host)
    host_map = settings.host_configuration(host)
    hosts = settings.get_map("hosts")

    if name:
        host_map["instance"] = name
        message = f"Set active instance on host '{host}' to '{name}'.\n"
    else:
        host_map.pop("instance", None)
        message = f"Reset active instance on host '{host}'.\n"

    hosts[host] = host_map
    settings.set("hosts", hosts)
    settings.save()
    return message


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
    except (ConfigError, ApiError, OutputError) as exc:
        raise click.ClickException(str(exc)) from exc


_HOST_HELP = "The host to list the instance from, if not specified the active host will be used"


def build_command():
    """Return the ``instance`` command group."""
    instance = click.Group(name="instance", help="Manage the instances of a TM1 v12 service")

    @instance.command(name="list", help="Get the list of TM1 service instances")
    @click.argument("name", required=False, default="")
    @click.option("--host", default="", help=_HOST_HELP)
    @click.pass_context
    def list_command(ctx, name, host):
        with _reporting():
            settings = _settings(ctx)
            text = list_instances(
                ApiClient(settings), host, name, settings.get_string("output-format")
            )
            click.echo(text, nl=False)

    @instance.command(name="create", help="Creates a new TM1 service instance with the name specified")
    @click.argument("name")
    @click.option("--host", default="", help=_HOST_HELP)
    @click.pass_context
    def create_command(ctx, name, host):
        with _reporting():
            settings = _settings(ctx)
            text = create_instance(
                ApiClient(settings), host, name, settings.get_string("output-format")
            )
            click.echo(text, nl=False)

    @instance.command(
        name="delete",
        help="Deletes the TM1 service instance and all its associated databases and artifacts",
    )
    @click.argument("name")
    @click.option("--host", default="", help=_HOST_HELP)
    @click.pass_context
    def delete_command(ctx, name, host):
        with _reporting():
            click.echo(delete_instance(ApiClient(_settings(ctx)), host, name), nl=False)

    @instance.command(
        name="use", help="Switch to using the specified instance, or unset if no name given"
    )
    @click.argument("name", required=False, default="")
    @click.option("--host", default="", help=_HOST_HELP)
    @click.pass_context
    def use_command(ctx, name, host):
        with _reporting():
            click.echo(use_instance(_settings(ctx), host, name), nl=False)

    return instance