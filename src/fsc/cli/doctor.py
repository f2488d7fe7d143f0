"""fsc doctor: report ffmpeg, its encoders and the plans they produce."""

from __future__ import annotations

import json
import sys

import click

from fsc.cli.exit_codes import ExitCode
from fsc.compress.plans import TranscodePlans, select_plans
from fsc.config import get_config
from fsc.tools.detection import detect_ffmpeg, resolve_capabilities
from fsc.tools.models import FFmpegInfo


def _format_status(available: bool) -> str:
    return "✓" if available else "✗"


def _build_report(info: FFmpegInfo, plans: TranscodePlans) -> dict:
    return {
        "ffmpeg": {
            "status": info.status.value,
            "path": str(info.path) if info.path else None,
            "version": info.version,
            "message": info.status_message,
        },
        "encoders": plans.capabilities.summary(),
        "plans": plans.describe(),
    }


def _print_report(info: FFmpegInfo, plans: TranscodePlans) -> None:
    click.echo("File Size Compressor Health Check")
    click.echo("=" * 40)
    click.echo()

    status = _format_status(info.is_available())
    version = info.version or "not found"
    path_info = f" ({info.path})" if info.path else ""
    click.echo(f"  {status} ffmpeg: {version}{path_info}")
    if not info.is_available():
        click.echo(f"    └─ {info.status_message}")
        click.echo("    └─ Install ffmpeg: https://ffmpeg.org/download.html")
    click.echo()

    click.echo("Encoders:")
    for codec, available in plans.capabilities.summary().items():
        click.echo(f"  {_format_status(available)} {codec}")
    if not plans.capabilities.probed:
        click.echo("  (probe failed; the server would assume the baseline set)")
    click.echo()

    click.echo("Plans:")
    video = plans.video
    click.echo(
        f"  video: {video.video_codec} + {video.audio_codec} -> {video.extension}"
    )
    if plans.audio is None:
        click.echo("  audio: none (requests answer 501)")
    else:
        audio = plans.audio
        click.echo(
            f"  audio: {audio.audio_codec} {audio.bitrate} -> {audio.extension}"
        )


@click.command("doctor")
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output results as JSON",
)
@click.pass_context
def doctor_command(ctx: click.Context, json_output: bool) -> None:
    """Check ffmpeg and the encoders the service would use.

    Exit codes:
      0  - ffmpeg answered the encoder probe
      30 - ffmpeg missing or the probe failed
    """
    config = ctx.obj.get("config") if ctx.obj else None
    if config is None:
        config = get_config()

    info = detect_ffmpeg(config.tools.ffmpeg)
    capabilities = resolve_capabilities(config.tools.ffmpeg)
    plans = select_plans(capabilities, config.compression)

    if json_output:
        click.echo(json.dumps(_build_report(info, plans), indent=2))
    else:
        _print_report(info, plans)

    if not capabilities.probed:
        sys.exit(ExitCode.TOOL_NOT_AVAILABLE)
