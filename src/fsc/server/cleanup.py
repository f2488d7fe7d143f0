"""Startup cleanup of temp artifacts left by a previous process.

Artifacts are normally released by their job. A process killed with
SIGKILL or by the OOM killer leaves its fsc_* files behind; they are
removed at the next start once they are old enough that no live job can
own them.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from fsc.compress.artifacts import ARTIFACT_PREFIX

logger = logging.getLogger(__name__)


def cleanup_orphaned_artifacts(temp_dir: Path, max_age_hours: float = 1.0) -> int:
    """Delete fsc_* files in temp_dir older than max_age_hours.

    Only the top level of temp_dir is scanned; it is usually the shared
    system temp directory.

    Returns:
        Number of files removed.
    """
    if not temp_dir.is_dir():
        return 0

    cutoff_time = time.time() - (max_age_hours * 3600)
    cleaned = 0

    for candidate in temp_dir.glob(f"{ARTIFACT_PREFIX}*"):
        try:
            if candidate.is_symlink() or not candidate.is_file():
                continue
            if candidate.stat().st_mtime >= cutoff_time:
                continue
            candidate.unlink()
        except OSError as e:
            logger.warning("Could not clean temp file %s: %s", candidate, e)
            continue
        logger.info("Cleaned orphaned temp file: %s", candidate)
        cleaned += 1

    return cleaned
