"""Adaptive media compression pipeline.

Plans are chosen from the encoders ffmpeg reports (plans), requests are
validated into JobDescriptors (jobs), encodes run under TranscodeExecutor
(executor, command), images are re-encoded in memory (image), and every
temp file is owned by an ArtifactScope (artifacts).

Import from the submodules directly; fsc.tools depends on
fsc.compress.errors, so this package does not re-export anything.
"""
