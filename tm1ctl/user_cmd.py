"""The ``user`` command: manage user credentials and session variables."""

from __future__ import annotations

import json
from contextlib import contextmanager

import click

from tm1ctl.output import OutputError, format_map, stringify
from tm1ctl.settings import ConfigError, Settings, load_settings


def _has_value(value) -> bool:
    return value is not None and value != ""


def _user_map(users, name):
    raw = users.get(name)
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Invalid user format for '{name}'")
    return raw


def list_users(settings, name=None):
    """Return all configured users, or the one named, as text."""
    users = settings.get_map("users")
    if not users:
        return "No users specified.\n"
    if not name:
        return format_map(users, "Name")
    user = users.get(name)
    if user is None:
        return f"no details specified for user '{name}'\n"
    if not isinstance(user, dict):
        raise ConfigError(f"invalid configuration for user '{name}', format invalid")
    return format_map(user, "Name")


def set_user(settings, name, user_name=None, password=None, variables=None):
    """Update a user's credentials or session variables.

    A value of None leaves a field alone, an empty string removes it. Variables
    are given as the text of a JSON object.
    """
    users = settings.get_map("users")
    user_map = _user_map(users, name)
    changed = False

    for field, value in (("name", user_name), ("password", password)):
        if value:
            user_map[field] = value
            changed = True
        elif value is not None:
            user_map.pop(field, None)
            changed = True

    if variables:
        try:
            parsed = json.loads(variables)
        except ValueError:
            parsed = None
        if not isinstance(parsed, dict):
            raise ConfigError("Value specified for variables is not a valid map")
        user_map["variables"] = parsed
        changed = True
    elif variables is not None:
        user_map.pop("variables", None)
        changed = True

    if not changed:
        return "No values provided to set. Use --name, --password or --variables.\n"

    users[name] = user_map
    settings.set("users", users)
    settings.save()
    return f"Updated user '{name}'\n"


def list_variables(settings, user=None, key=None):
    """Return one session variable of the given (or active) user, or all that are set."""
    user = settings.user_name(user)
    raw = settings.get_map("users").get(user)
    if raw is not None:
        if not isinstance(raw, dict):
            raise ConfigError(f"Invalid user format for '{user}'")
        raw = raw.get("variables")

    if raw is None:
        variables = {}
    elif isinstance(raw, dict):
        variables = raw
    else:
        raise ConfigError(f"Invalid user variables format for '{user}'")

    if key:
        value = variables.get(key)
        if _has_value(value):
            return f"{key} = {stringify(value)}\n"
        return f"No value set for variable '{key}'"

    return "".join(
        f"{name} = {stringify(value)}\n"
        for name, value in variables.items()
        if _has_value(value)
    )


def set_variable(settings, user, key, value):
    """Set a session variable for the given (or active) user.

    The value is read as JSON when it parses as such, otherwise kept as text.
    """
    user = settings.user_name(user)
    users = settings.get_map("users")
    user_map = _user_map(users, user)

    raw = user_map.get("variables")
    if raw is None:
        variables = {}
    elif isinstance(raw, dict):
        variables = raw
    else:
        raise ConfigError(f"Invalid user variables format for '{user}'")

    try:
        parsed = json.loads(value)
    except ValueError:
        parsed = value

    variables[key] = parsed
    user_map["variables"] = variables
    users[user] = user_map
    settings.set("users", users)
    settings.save()
    return f"Set variable {key} to {stringify(parsed)} for user {user}\n"


def use_user(settings, name=None):
    """Make a configured user the active one, or clear the active user when no name is given."""
    if not name:
        settings.set("user", "")
        settings.save()
        return "Reset active user.\n"
    if name not in settings.get_map("users"):
        raise ConfigError(
            f"User '{name}' is not defined. "
            "Please configure a user before making it the active user."
        )
    settings.set("user", name)
    settings.save()
    return f"Set active user to '{name}'.\n"


def delete_user(settings, name):
    """Remove a user from the configuration, clearing it as active user if needed."""
    users = settings.get_map("users")
    if name not in users:
        raise ConfigError(f"User '{name}' does not exist.")
    if settings.get_string("user") == name:
        settings.set("user", "")
    del users[name]
    settings.set("users", users)
    settings.save()
    return f"Deleted user '{name}'.\n"


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
    """Return the ``user`` command group."""

    @click.group(name="user", help="Manage user's credentials and session variables")
    @click.pass_context
    def user(ctx):
        with _reporting():
            _settings(ctx)

    @user.command(name="list", help="List all specified users")
    @click.argument("name", required=False, default="")
    @click.pass_context
    def list_command(ctx, name):
        with _reporting():
            click.echo(list_users(_settings(ctx), name), nl=False)

    @user.command(name="set", help="Set credential or session variables for the specified user")
    @click.argument("name")
    @click.option("--name", "user_name", default=None, help="Set the user name for this user")
    @click.option("--password", "password", default=None, help="Set the password for this user")
    @click.option("--variables", "variables", default=None,
                  help="Set the session variables for this user")
    @click.pass_context
    def set_command(ctx, name, user_name, password, variables):
        with _reporting():
            text = set_user(_settings(ctx), name, user_name, password, variables)
            click.echo(text, nl=False)

    @user.group(name="variable", help="Manage user's session variables")
    @click.pass_context
    def variable(ctx):
        with _reporting():
            _settings(ctx)

    @variable.command(name="list", help="List all the user's session variables specified")
    @click.argument("key", required=False, default="")
    @click.option("--user", "user_name", default="",
                  help="The user to list the variables from, if not specified the active user will be used")
    @click.pass_context
    def variable_list_command(ctx, key, user_name):
        with _reporting():
            click.echo(list_variables(_settings(ctx), user_name, key), nl=False)

    @variable.command(name="set", help="Set a user's session variable to the specified value")
    @click.argument("key")
    @click.argument("value")
    @click.option("--user", "user_name", default="",
                  help="The user to set the variable for, if not specified the active user will be used")
    @click.pass_context
    def variable_set_command(ctx, key, value, user_name):
        with _reporting():
            click.echo(set_variable(_settings(ctx), user_name, key, value), nl=False)

    @user.command(name="use", help="Switch to using the specified user, or unset if no name given")
    @click.argument("name", required=False, default="")
    @click.pass_context
    def use_command(ctx, name):
        with _reporting():
            click.echo(use_user(_settings(ctx), name), nl=False)

    @user.command(name="delete", help="Delete user from the list of, configured, users")
    @click.argument("name")
    @click.pass_context
    def delete_command(ctx, name):
        with _reporting():
            click.echo(delete_user(_settings(ctx), name), nl=False)

    return user