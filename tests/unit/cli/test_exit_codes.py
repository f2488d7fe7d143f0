"""Tests for cli/exit_codes.py module."""

from fsc.cli.exit_codes import ExitCode


class TestExitCode:
    """Tests for ExitCode enum."""

    def test_success_is_zero(self) -> None:
        assert ExitCode.SUCCESS == 0

    def test_exit_codes_are_unique(self) -> None:
        values = [int(code) for code in ExitCode]
        assert len(values) == len(set(values))

    def test_ranges(self) -> None:
        assert 1 <= ExitCode.GENERAL_ERROR <= 9
        assert 10 <= ExitCode.CONFIG_ERROR <= 19
        assert 30 <= ExitCode.TOOL_NOT_AVAILABLE <= 39
