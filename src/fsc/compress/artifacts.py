"""Temporary artifact lifecycle.

Every video/audio job writes its upload to an input file and lets ffmpeg
write an output file next to it. Both live in one shared temp directory,
so names come from a random token and never from the client.

ArtifactScope is the one place that deletes them:

    with manager.scope() as scope:
        source = scope.allocate(".mov", "input")
        target = scope.allocate(".mp4", "output")
        ...
    # both deleted here, whatever happened inside the block
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType

from fsc.compress.errors import CleanupError

logger = logging.getLogger(__name__)

ARTIFACT_PREFIX = "fsc_"
_VALID_EXTENSION = re.compile(r"^\.[a-z0-9]{1,10}$")
_VALID_ROLES = frozenset({"input", "output"})


@dataclass(eq=False)
class ArtifactHandle:
    """A temp file path owned by exactly one job."""

    path: Path
    role: str
    released: bool = field(default=False)

    @property
    def name(self) -> str:
        return self.path.name


class ArtifactManager:
    """Allocates and deletes per-job temp artifacts."""

    def __init__(self, temp_dir: Path) -> None:
        self._temp_dir = Path(temp_dir).resolve()

    @property
    def temp_dir(self) -> Path:
        return self._temp_dir

    def allocate(self, extension: str, role: str) -> ArtifactHandle:
        """Reserve a unique path. The file itself is not created.

        Raises:
            ValueError: On a role other than input/output or an extension
                that is not a short lowercase alphanumeric suffix.
        """
        if role not in _VALID_ROLES:
            raise ValueError(f"Invalid artifact role: {role!r}")
        if not _VALID_EXTENSION.match(extension):
            raise ValueError(f"Invalid artifact extension: {extension!r}")

        token = uuid.uuid4().hex
        path = self._temp_dir / f"{ARTIFACT_PREFIX}{token}_{role}{extension}"
        return ArtifactHandle(path=path, role=role)

    def release(self, *handles: ArtifactHandle) -> None:
        """Delete each handle's file, attempting each handle once.

        A file that does not exist counts as released. Other failures are
        logged and swallowed so cleanup never masks the job's outcome.
        """
        for handle in handles:
            if handle.released:
                continue
            handle.released = True
            try:
                handle.path.unlink(missing_ok=True)
            except OSError as e:
                error = CleanupError(handle.path, e)
                logger.warning("%s", error)
            else:
                logger.debug("Released %s artifact %s", handle.role, handle.name)

    def scope(self) -> ArtifactScope:
        return ArtifactScope(self)


class ArtifactScope:
    """Context manager that releases every handle it allocated."""

    def __init__(self, manager: ArtifactManager) -> None:
        self._manager = manager
        self._handles: list[ArtifactHandle] = []

    @property
    def handles(self) -> tuple[ArtifactHandle, ...]:
        return tuple(self._handles)

    def allocate(self, extension: str, role: str) -> ArtifactHandle:
        handle = self._manager.allocate(extension, role)
        self._handles.append(handle)
        return handle

    def __enter__(self) -> ArtifactScope:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._manager.release(*self._handles)
