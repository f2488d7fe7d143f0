"""CLI module for File Size Compressor."""

import logging
import sys
from pathlib import Path

import click

from fsc.cli.exit_codes import ExitCode
from fsc.config import TomlParseError, configure_logging_from_cli, get_config

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(package_name="filesize-compressor")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to configuration file (default: ~/.fsc/config.toml).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """File Size Compressor - shrink images, video and audio over HTTP."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path

    try:
        config = get_config(config_path=config_path, strict=config_path is not None)
    except (TomlParseError, ValueError) as e:
        click.echo(f"Error: invalid configuration: {e}", err=True)
        sys.exit(ExitCode.CONFIG_ERROR)
    ctx.obj["config"] = config

    configure_logging_from_cli(
        config.logging,
        level=log_level.lower() if log_level else None,
        file=log_file,
        format="json" if log_json else None,
    )


def _register_commands() -> None:
    from fsc.cli.doctor import doctor_command
    from fsc.cli.serve import serve_command

    main.add_command(doctor_command)
    main.add_command(serve_command)


_register_commands()
