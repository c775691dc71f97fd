"""The ``database`` command: manage the databases of a TM1 service instance."""

from __future__ import annotations

from contextlib import contextmanager

import click

from tm1ctl.http_client import ApiClient, ApiError
from tm1ctl.output import OutputError, format_collection, format_entity
from tm1ctl.settings import ConfigError, Settings, load_settings


def list_databases(client, host, instance, user, password, name, output_format):
    """Return the databases of an instance, or the one named, rendered as text."""
    path = f"Databases('{name}')" if name else "Databases"
    data = client.instance_get(host, instance, user, password, path)
    return format_collection(data, output_format)


def create_database(client, host, instance, user, password, name, output_format):
    """Create a database and return the created entity rendered as text."""
    data = client.instance_post(host, instance, user, password, "Databases", {"Name": name})
    return format_entity(data, output_format)


def delete_database(client, host, instance, user, password, name):
    """Delete a database with all its artifacts and return the confirmation text."""
    client.instance_delete(host, instance, user, password, f"Databases('{name}')")
    return f"Database '{name}' has been deleted!\n"


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


def _connection_options(func):
    options = (
        click.option("--host", default="",
                     help="The host on which the instance is running, if not specified the active host will be used"),
        click.option("--instance", default="",
                     help="The instance to be used, if not specified the active instance will be used"),
        click.option("--user", default="",
                     help="The user name needed to authenticate with the TM1 instance"),
        click.option("--password", default="",
                     help="The password needed to authenticate with the TM1 instance"),
    )
    for option in reversed(options):
        func = option(func)
    return func


def build_command():
    """Return the ``database`` command group."""
    database = click.Group(
        name="database", help="Manage the databases of your TM1 v12 service instance"
    )

    @database.command(name="list", help="Get the list of TM1 databases")
    @click.argument("name", required=False, default="")
    @_connection_options
    @click.pass_context
    def list_command(ctx, name, host, instance, user, password):
        with _reporting():
            settings = _settings(ctx)
            text = list_databases(
                ApiClient(settings), host, instance, user, password, name,
                settings.get_string("output-format"),
            )
            click.echo(text, nl=False)

    @database.command(name="create", help="Creates a new TM1 database with the specified name")
    @click.argument("name")
    @_connection_options
    @click.pass_context
    def create_command(ctx, name, host, instance, user, password):
        with _reporting():
            settings = _settings(ctx)
            text = create_database(
                ApiClient(settings), host, instance, user, password, name,
                settings.get_string("output-format"),
            )
            click.echo(text, nl=False)

    @database.command(name="delete", help="Deletes the TM1 database specified with all its artifacts")
    @click.argument("name")
    @_connection_options
    @click.pass_context
    def delete_command(ctx, name, host, instance, user, password):
        with _reporting():
            text = delete_database(ApiClient(_settings(ctx)), host, instance, user, password, name)
            click.echo(text, nl=False)

    return database