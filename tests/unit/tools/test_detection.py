"""Tests for ffmpeg detection and encoder probing."""

from pathlib import Path
from unittest.mock import patch

import pytest

from fsc.compress.errors import ProbeFailure
from fsc.tools.detection import (
    _parse_codec_list,
    detect_ffmpeg,
    probe_encoders,
    resolve_capabilities,
)
from fsc.tools.models import BASELINE_CODECS, EncoderCapabilities, ToolStatus

ENCODERS_SAMPLE = """Encoders:
 V..... = Video
 A..... = Audio
 ------
 V....D libx264              libx264 H.264 / AVC (codec h264)
 V....D libx265              libx265 H.265 / HEVC (codec hevc)
 A....D aac                  AAC (Advanced Audio Coding)
 A....D libopus              libopus Opus (codec opus)
"""

VERSION_SAMPLE = "ffmpeg version 6.1.1-3ubuntu5 Copyright (c) 2000-2023\n"


class TestParseCodecList:
    """Tests for _parse_codec_list."""

    def test_extracts_encoder_names(self) -> None:
        names = _parse_codec_list(ENCODERS_SAMPLE)
        assert {"libx264", "libx265", "aac", "libopus"} <= names

    def test_ignores_separator(self) -> None:
        assert "------" not in _parse_codec_list(ENCODERS_SAMPLE)


class TestDetectFfmpeg:
    """Tests for detect_ffmpeg."""

    def test_missing_binary(self) -> None:
        with patch("fsc.tools.detection.find_ffmpeg", return_value=None):
            info = detect_ffmpeg()
        assert info.status == ToolStatus.MISSING
        assert not info.is_available()

    def test_version_detected(self) -> None:
        with (
            patch(
                "fsc.tools.detection.find_ffmpeg",
                return_value=Path("/usr/bin/ffmpeg"),
            ),
            patch(
                "fsc.tools.detection._run_command",
                return_value=(VERSION_SAMPLE, "", 0),
            ),
        ):
            info = detect_ffmpeg()
        assert info.is_available()
        assert info.version == "6.1.1-3ubuntu5"

    def test_version_command_fails(self) -> None:
        with (
            patch(
                "fsc.tools.detection.find_ffmpeg",
                return_value=Path("/usr/bin/ffmpeg"),
            ),
            patch(
                "fsc.tools.detection._run_command",
                return_value=("", "boom", 1),
            ),
        ):
            info = detect_ffmpeg()
        assert info.status == ToolStatus.ERROR


class TestProbeEncoders:
    """Tests for probe_encoders and resolve_capabilities."""

    def _patched(self, encoders_result):
        def fake_run(args, timeout=10):
            if "-version" in args:
                return VERSION_SAMPLE, "", 0
            return encoders_result

        return patch("fsc.tools.detection._run_command", side_effect=fake_run)

    def test_only_codecs_of_interest_recorded(self) -> None:
        with (
            patch(
                "fsc.tools.detection.find_ffmpeg",
                return_value=Path("/usr/bin/ffmpeg"),
            ),
            self._patched((ENCODERS_SAMPLE, "", 0)),
        ):
            caps = probe_encoders()

        assert caps.probed
        assert caps.encoders == frozenset({"libx264", "aac", "libopus"})
        assert caps.ffmpeg_version == "6.1.1-3ubuntu5"
        assert not caps.can_encode("libx265")

    def test_runs_encoders_query_once(self) -> None:
        with (
            patch(
                "fsc.tools.detection.find_ffmpeg",
                return_value=Path("/usr/bin/ffmpeg"),
            ),
            self._patched((ENCODERS_SAMPLE, "", 0)) as run,
        ):
            probe_encoders()

        encoder_calls = [c for c in run.call_args_list if "-encoders" in c.args[0]]
        assert len(encoder_calls) == 1
        assert encoder_calls[0].args[0] == [
            "/usr/bin/ffmpeg",
            "-hide_banner",
            "-encoders",
        ]

    def test_missing_ffmpeg_raises(self) -> None:
        with patch("fsc.tools.detection.find_ffmpeg", return_value=None):
            with pytest.raises(ProbeFailure):
                probe_encoders()

    def test_nonzero_exit_raises(self) -> None:
        with (
            patch(
                "fsc.tools.detection.find_ffmpeg",
                return_value=Path("/usr/bin/ffmpeg"),
            ),
            self._patched(("", "bad option", 1)),
        ):
            with pytest.raises(ProbeFailure, match="bad option"):
                probe_encoders()

    def test_resolve_falls_back_to_baseline(self) -> None:
        with patch("fsc.tools.detection.find_ffmpeg", return_value=None):
            caps = resolve_capabilities()

        assert not caps.probed
        assert caps.encoders == BASELINE_CODECS

    def test_probe_with_fake_binary(self, make_fake_ffmpeg) -> None:
        """A real subprocess round trip against a stand-in binary."""
        caps = probe_encoders(make_fake_ffmpeg())

        assert caps.probed
        assert caps.can_encode("libx264")
        assert caps.can_encode("libmp3lame")
        assert not caps.can_encode("libopus")


class TestEncoderCapabilities:
    """Tests for EncoderCapabilities."""

    def test_summary_covers_every_codec_of_interest(self) -> None:
        caps = EncoderCapabilities(encoders=frozenset({"aac"}))
        assert caps.summary() == {
            "libx264": False,
            "mpeg4": False,
            "libmp3lame": False,
            "aac": True,
            "libopus": False,
        }

    def test_is_immutable(self) -> None:
        caps = EncoderCapabilities()
        with pytest.raises(AttributeError):
            caps.encoders = frozenset({"aac"})  # type: ignore[misc]
