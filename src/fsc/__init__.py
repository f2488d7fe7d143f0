"""File Size Compressor.

Accepts uploaded images, video and audio over HTTP and returns smaller
re-encoded versions, using Pillow for images and ffmpeg for everything else.
"""

__version__ = "0.1.0"
