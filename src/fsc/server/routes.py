"""Compression endpoints.

    POST /compress/image   multipart "file" -> image/jpeg
    POST /compress/video   multipart "file" -> attachment compressed_<name>.mp4
    POST /compress/audio   multipart "file" -> attachment compressed_<name><ext>
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from aiohttp import BodyPartReader, web

from fsc.compress.errors import (
    ExecutionError,
    ImageProcessingError,
    ValidationError,
    ValidationReason,
)
from fsc.compress.image import compress_image
from fsc.compress.jobs import JobDescriptor, MediaKind, UploadedFile, build_job
from fsc.logging import JobOutcome, job_context, log_job_outcome
from fsc.server.api.errors import (
    COMPRESSION_FAILED,
    SERVICE_UNAVAILABLE,
    api_error,
    validation_error_response,
)
from fsc.server.streaming import stream_artifact

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "file"
READ_CHUNK_SIZE = 64 * 1024

_FAILURE_MESSAGES = {
    MediaKind.IMAGE: "Image compression failed",
    MediaKind.VIDEO: "Video compression failed",
    MediaKind.AUDIO: "Audio compression failed",
}


async def read_upload(request: web.Request, max_bytes: int) -> UploadedFile | None:
    """Read the multipart "file" field into memory.

    Returns None when the request is not multipart, its body cannot be
    parsed as multipart, or it carries no "file" part with a filename.
    Other parts are skipped.

    Raises:
        ValidationError: UPLOAD_TOO_LARGE once more than max_bytes arrive.
    """
    if not request.content_type.startswith("multipart/"):
        return None

    try:
        return await _read_file_part(request, max_bytes)
    except (ValueError, AssertionError) as e:
        # Missing boundary or a body that is not multipart at all
        logger.warning("Malformed multipart upload: %s", e)
        return None


async def _read_file_part(request: web.Request, max_bytes: int) -> UploadedFile | None:
    reader = await request.multipart()
    while True:
        part = await reader.next()
        if part is None:
            return None
        if not isinstance(part, BodyPartReader):
            # Nested multipart; never used for uploads
            continue
        if part.name != UPLOAD_FIELD or not part.filename:
            await part.release()
            continue

        chunks: list[bytes] = []
        received = 0
        while chunk := await part.read_chunk(READ_CHUNK_SIZE):
            received += len(chunk)
            if received > max_bytes:
                raise ValidationError(ValidationReason.UPLOAD_TOO_LARGE)
            chunks.append(chunk)

        return UploadedFile(
            filename=part.filename,
            content_type=part.headers.get("Content-Type"),
            data=b"".join(chunks),
        )


async def _receive(request: web.Request) -> UploadedFile | None:
    config = request.app["config"]
    return await read_upload(request, config.server.max_upload_bytes)


async def _run_job(
    job: JobDescriptor, work: Callable[[], Awaitable[web.StreamResponse]]
) -> web.StreamResponse:
    """Run work under the job's log context and log how the job ended."""
    started = time.monotonic()
    bytes_in = job.upload.size
    with job_context(job.job_id, job.kind.value):
        logger.info(
            "%s upload %r (%d bytes) -> %s",
            job.kind.value.capitalize(),
            job.upload.filename,
            bytes_in,
            job.output_filename,
        )
        try:
            response = await work()
        except asyncio.CancelledError:
            log_job_outcome(
                logger, JobOutcome.CANCELLED, bytes_in=bytes_in, started=started
            )
            raise
        except Exception:
            log_job_outcome(
                logger, JobOutcome.FAILED, bytes_in=bytes_in, started=started
            )
            raise

        if response.status == 200:
            log_job_outcome(
                logger,
                JobOutcome.COMPLETED,
                bytes_in=bytes_in,
                bytes_out=response.content_length,
                started=started,
            )
        else:
            log_job_outcome(
                logger, JobOutcome.FAILED, bytes_in=bytes_in, started=started
            )
        return response


async def compress_image_handler(request: web.Request) -> web.StreamResponse:
    """Handle POST /compress/image."""
    try:
        upload = await _receive(request)
        job = build_job(MediaKind.IMAGE, upload)
    except ValidationError as e:
        return validation_error_response(e)

    compression = request.app["config"].compression

    async def work() -> web.StreamResponse:
        try:
            data = await compress_image(job.upload.data, compression)
        except ImageProcessingError as e:
            logger.error("%s", e)
            return api_error(
                _FAILURE_MESSAGES[job.kind], code=COMPRESSION_FAILED, status=500
            )
        return web.Response(body=data, content_type=job.mime_type)

    return await _run_job(job, work)


async def _transcode(request: web.Request, kind: MediaKind) -> web.StreamResponse:
    registry = request.app["plan_registry"]
    if not registry.is_ready:
        return api_error(
            "Encoders not probed yet", code=SERVICE_UNAVAILABLE, status=503
        )
    plans = registry.current

    try:
        upload = await _receive(request)
        job = build_job(kind, upload, plans)
    except ValidationError as e:
        return validation_error_response(e)

    manager = request.app["artifact_manager"]
    executor = request.app["executor"]
    failure = _FAILURE_MESSAGES[kind]

    async def work() -> web.StreamResponse:
        with manager.scope() as scope:
            source = scope.allocate(job.input_extension, "input")
            target = scope.allocate(job.output_extension, "output")

            try:
                await asyncio.to_thread(source.path.write_bytes, job.upload.data)
            except OSError as e:
                logger.error("Could not write upload to %s: %s", source.path, e)
                return api_error(failure, code=COMPRESSION_FAILED, status=500)

            try:
                await executor.run(job.plan, source, target)
            except ExecutionError as e:
                logger.error("%s", e)
                if e.diagnostics:
                    logger.error("ffmpeg output:\n%s", e.diagnostics)
                return api_error(failure, code=COMPRESSION_FAILED, status=500)

            return await stream_artifact(
                request, target, job.mime_type, job.output_filename
            )

    return await _run_job(job, work)


async def compress_video_handler(request: web.Request) -> web.StreamResponse:
    """Handle POST /compress/video."""
    return await _transcode(request, MediaKind.VIDEO)


async def compress_audio_handler(request: web.Request) -> web.StreamResponse:
    """Handle POST /compress/audio."""
    return await _transcode(request, MediaKind.AUDIO)


def setup_compress_routes(app: web.Application) -> None:
    app.router.add_post("/compress/image", compress_image_handler)
    app.router.add_post("/compress/video", compress_video_handler)
    app.router.add_post("/compress/audio", compress_audio_handler)
