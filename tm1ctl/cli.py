"""The tm1ctl command line entry point."""

from __future__ import annotations

import sys

import click

from tm1ctl import config_cmd, database_cmd, host_cmd, instance_cmd, restore_cmd, user_cmd
from tm1ctl.settings import ConfigError, load_settings

_LONG_HELP = (
    "The TM1 v12 control utility allows you to manage your TM1 v12 service "
    "from the command line."
)


def build_cli():
    """Return the root ``tm1ctl`` command group with all sub-commands."""

    @click.group(name="tm1ctl", help=_LONG_HELP, short_help="TM1 v12 control utility")
    @click.option("--config", "config_file", default="",
                  help="config file (default is $HOME/.tm1ctl.json)")
    @click.option("--output", "output_format", default="",
                  help="set the output format for this request, either 'table' or 'json' "
                       "(defaults to output_format config)")
    @click.pass_context
    def cli(ctx, config_file, output_format):
        try:
            settings = load_settings(config_file or None)
        except ConfigError as exc:
            click.echo(str(exc))
            ctx.exit(1)
        if output_format:
            settings.override("output-format", output_format)
        ctx.obj = settings

    for module in (config_cmd, database_cmd, host_cmd, instance_cmd, restore_cmd, user_cmd):
        cli.add_command(module.build_command())
    return cli


def main(argv=None):
    """Run tm1ctl with the given arguments and return the exit status."""
    cli = build_cli()
    try:
        result = cli.main(args=argv, prog_name="tm1ctl", standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
        return 1
    except click.Abort:
        click.echo("Aborted!", err=True)
        return 1
    return result if isinstance(result, int) else 0


if __name__ == "__main__":
    sys.exit(main())