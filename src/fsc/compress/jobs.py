"""Job descriptors for compression requests.

A JobDescriptor is built once per request after the upload has been read.
Building it is the only validation step: any ValidationError raised here
happens before a temp file is written or a process is spawned.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from enum import Enum

from fsc.compress.errors import ValidationError, ValidationReason
from fsc.compress.plans import AudioPlan, TranscodePlans, VideoPlan

# Characters kept in the download filename; everything else becomes "_".
_UNSAFE_STEM_CHARS = re.compile(r"[^A-Za-z0-9._ -]")
_SAFE_EXTENSION = re.compile(r"^\.[a-z0-9]{1,10}$")
_MAX_STEM_LENGTH = 120

DEFAULT_STEM = "file"
DEFAULT_INPUT_EXTENSION = ".bin"
IMAGE_OUTPUT_EXTENSION = ".jpg"
IMAGE_MIME_TYPE = "image/jpeg"


class MediaKind(Enum):
    """Which compression route a job came from."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


@dataclass(frozen=True)
class UploadedFile:
    """A file received in the multipart ``file`` field."""

    filename: str
    content_type: str | None
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class JobDescriptor:
    """Immutable description of one compression request."""

    kind: MediaKind
    upload: UploadedFile
    plan: VideoPlan | AudioPlan | None
    """Transcode plan; None for images, which never touch ffmpeg."""
    job_id: str
    output_stem: str

    @property
    def output_extension(self) -> str:
        if self.plan is None:
            return IMAGE_OUTPUT_EXTENSION
        return self.plan.extension

    @property
    def mime_type(self) -> str:
        if self.plan is None:
            return IMAGE_MIME_TYPE
        return self.plan.mime_type

    @property
    def output_filename(self) -> str:
        """Download name shown to the client, e.g. compressed_clip.mp4."""
        return f"compressed_{self.output_stem}{self.output_extension}"

    @property
    def input_extension(self) -> str:
        return guess_input_extension(self.upload.filename)


def _basename(filename: str) -> str:
    # Browsers may send a full client-side path; both separators occur.
    return re.split(r"[\\/]", filename)[-1]


def derive_output_stem(filename: str | None) -> str:
    """Derive a header-safe stem from a client-declared filename.

    Directory components and the extension are dropped, characters that
    could break the Content-Disposition header are replaced, and leading
    dots are removed.

    Examples:
        >>> derive_output_stem("../../etc/passwd")
        'passwd'
        >>> derive_output_stem('C:\\\\Users\\\\me\\\\my "clip".mov')
        'my _clip_'
    """
    if not filename:
        return DEFAULT_STEM

    name = _basename(filename)
    stem, dot, _ = name.rpartition(".")
    if not dot or not stem:
        stem = name

    stem = _UNSAFE_STEM_CHARS.sub("_", stem).lstrip(". ").rstrip()
    stem = stem[:_MAX_STEM_LENGTH]
    return stem or DEFAULT_STEM


def guess_input_extension(filename: str | None) -> str:
    """Return a safe extension for the input temp file.

    ffmpeg probes the actual content, so the extension is only a hint.
    """
    if not filename:
        return DEFAULT_INPUT_EXTENSION
    name = _basename(filename)
    _, dot, suffix = name.rpartition(".")
    if not dot:
        return DEFAULT_INPUT_EXTENSION
    extension = f".{suffix.lower()}"
    if _SAFE_EXTENSION.match(extension):
        return extension
    return DEFAULT_INPUT_EXTENSION


def build_job(
    kind: MediaKind,
    upload: UploadedFile | None,
    plans: TranscodePlans | None = None,
) -> JobDescriptor:
    """Validate a request and build its JobDescriptor.

    Args:
        kind: Media kind of the route that received the request.
        upload: The uploaded file, or None if the request had none.
        plans: Plans in effect. Required for video and audio.

    Returns:
        JobDescriptor with a fresh job id.

    Raises:
        ValidationError: NO_FILE_UPLOADED when upload is None;
            NO_ENCODER_AVAILABLE when an audio job has no plan.
    """
    if upload is None:
        raise ValidationError(ValidationReason.NO_FILE_UPLOADED)

    plan: VideoPlan | AudioPlan | None = None
    if kind is not MediaKind.IMAGE:
        if plans is None:
            raise ValueError(f"{kind.value} jobs require transcode plans")
        if kind is MediaKind.VIDEO:
            plan = plans.video
        else:
            plan = plans.audio
            if plan is None:
                raise ValidationError(ValidationReason.NO_ENCODER_AVAILABLE)

    return JobDescriptor(
        kind=kind,
        upload=upload,
        plan=plan,
        job_id=uuid.uuid4().hex,
        output_stem=derive_output_stem(upload.filename),
    )
