"""The ``restore`` command: restore a database from a local backup set."""

from __future__ import annotations

import os
import uuid
from contextlib import contextmanager
from pathlib import Path

import click

from tm1ctl.http_client import ApiClient, ApiError
from tm1ctl.output import OutputError
from tm1ctl.settings import ConfigError, Settings, load_settings

FOLDER_TYPE = "#ibm.tm1.api.v1.Folder"
DOCUMENT_TYPE = "#ibm.tm1.api.v1.Document"
_FILES = "Contents('Files')"
_BACKUPSETS = f"{_FILES}/Contents('.backupsets')"


def _discard(client, target, entry, temp_name):
    """Delete the uploaded temporary backup set, returning a warning if that fails."""
    try:
        client.database_delete(*target, entry)
    except (ApiError, ConfigError) as exc:
        return (
            f"Warning: temporary backupset '{temp_name}', stored in '.backupsets' "
            f"under files, could not be delete due to: {exc}"
        )
    return None


def restore(client, backupset, host=None, instance=None, database=None, user=None, password=None):
    """Restore a database from a backup set file, yielding progress messages.

    The backup set is uploaded under a unique temporary name into the
    database's '.backupsets' folder, restored from, and removed again.
    """
    if not database:
        raise ConfigError("no database specified")

    instance = client.settings.instance_name(host, instance)
    yield (
        f"Restore initiated on database '{database}' running on instance "
        f"'{instance}' using backupset: {backupset}"
    )

    target = (host, instance, database, user, password)

    try:
        client.database_get(*target, _BACKUPSETS)
    except ApiError:
        client.database_post(
            *target, f"{_FILES}/Contents", {"@odata.type": FOLDER_TYPE, "Name": ".backupsets"}
        )

    os.stat(backupset)

    temp_name = f"{uuid.uuid4()}-{Path(backupset).name}"
    client.database_post(
        *target, f"{_BACKUPSETS}/Contents", {"@odata.type": DOCUMENT_TYPE, "Name": temp_name}
    )

    entry = f"{_BACKUPSETS}/Contents('{temp_name}')"
    try:
        client.database_put_file(*target, f"{entry}/Content", backupset)
        client.database_post(*target, "tm1s.Restore", {"URL": temp_name})
    except (ApiError, ConfigError):
        _discard(client, target, entry, temp_name)
        raise

    warning = _discard(client, target, entry, temp_name)
    if warning:
        yield warning


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
    except (ConfigError, ApiError, OutputError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc


def build_command():
    """Return the ``restore`` command."""

    @click.command(name="restore", help="Performs a database restore using the specified backup-set")
    @click.argument("backupset", metavar="<backup-set>")
    @click.option("--host", default="",
                  help="The host on which the instance is running, if not specified the active host will be used")
    @click.option("--instance", default="",
                  help="The instance to be used, if not specified the active instance will be used")
    @click.option("--database", default="", help="The database you want to restore")
    @click.option("--user", default="",
                  help="The user name needed to authenticate with the TM1 instance")
    @click.option("--password", default="",
                  help="The password needed to authenticate with the TM1 instance")
    @click.pass_context
    def restore_command(ctx, backupset, host, instance, database, user, password):
        with _reporting():
            client = ApiClient(_settings(ctx))
            for message in restore(client, backupset, host, instance, database, user, password):
                click.echo(message)

    return restore_command