"""Streaming a finished artifact back to the client."""

from __future__ import annotations

import asyncio
import logging

from aiohttp import hdrs, web

from fsc.compress.artifacts import ArtifactHandle

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def attachment_disposition(filename: str) -> str:
    """Content-Disposition value for a download.

    filename must already be sanitized (see derive_output_stem); it is
    quoted but not escaped.
    """
    return f'attachment; filename="{filename}"'


async def stream_artifact(
    request: web.Request,
    handle: ArtifactHandle,
    mime_type: str,
    filename: str,
) -> web.StreamResponse:
    """Send handle's file as an attachment in fixed-size chunks.

    Only call this after the encoder completed: headers go out as soon as
    the response is prepared, so there is no way to turn a later failure
    into an error status. A client that disconnects simply ends the
    transfer; a read error after the headers drops the connection.
    """
    size = handle.path.stat().st_size

    response = web.StreamResponse(
        status=200,
        headers={
            hdrs.CONTENT_TYPE: mime_type,
            hdrs.CONTENT_DISPOSITION: attachment_disposition(filename),
        },
    )
    response.content_length = size
    await response.prepare(request)

    sent = 0
    try:
        with handle.path.open("rb") as f:
            while chunk := await asyncio.to_thread(f.read, CHUNK_SIZE):
                await response.write(chunk)
                sent += len(chunk)
        await response.write_eof()
    except ConnectionResetError:
        logger.info("Client disconnected after %d of %d bytes", sent, size)
    except OSError as e:
        logger.error("Streaming %s failed after %d bytes: %s", filename, sent, e)
        response.force_close()
        if request.transport is not None:
            request.transport.close()
    else:
        logger.info("Sent %s (%d bytes)", filename, sent)

    return response
