"""Exit codes for all CLI commands.

Exit code ranges:
    0: Success
    1-9: General errors
    10-19: Configuration errors
    30-39: Tool/dependency errors
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for fsc CLI commands."""

    SUCCESS = 0

    GENERAL_ERROR = 1
    INTERRUPTED = 2

    CONFIG_ERROR = 11

    TOOL_NOT_AVAILABLE = 30
