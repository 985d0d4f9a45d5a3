"""Typed failures raised by the extraction and serialization pipelines.

Client-class errors (``is_client_error``) mean the caller asked for something
the service does not support; everything else is a server-side fault. The
HTTP layer maps ``status_code`` straight onto the response.
"""

from __future__ import annotations


class ContentPipelineError(Exception):
    """Base class for all pipeline failures."""

    status_code: int = 500
    error_code: str = "pipeline_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


# -- Client errors ------------------------------------------------------------


class UnsupportedFormatError(ContentPipelineError):
    status_code = 415
    error_code = "unsupported_format"

    def __init__(self, media_type: str, message: str | None = None) -> None:
        super().__init__(message or f"Unsupported media type: {media_type!r}")
        self.media_type = media_type


class UnsupportedCombinationError(ContentPipelineError):
    status_code = 400
    error_code = "unsupported_combination"

    def __init__(self, kind: str, target_format: str) -> None:
        super().__init__(f"Cannot export {kind!r} artifacts as {target_format!r}")
        self.kind = kind
        self.target_format = target_format


class DocumentNotFoundError(ContentPipelineError):
    status_code = 404
    error_code = "document_not_found"


class ArtifactNotFoundError(ContentPipelineError):
    status_code = 404
    error_code = "artifact_not_found"


class MediaTypeConflictError(ContentPipelineError):
    """The remote reference is already registered under a different document type."""

    status_code = 409
    error_code = "media_type_conflict"

    def __init__(self, remote_ref: str, stored: str, declared: str) -> None:
        super().__init__(
            f"{remote_ref} is registered as {stored!r}; cannot ingest it as {declared!r}"
        )
        self.stored = stored
        self.declared = declared


# -- Server errors ------------------------------------------------------------


class FetchFailedError(ContentPipelineError):
    status_code = 502
    error_code = "fetch_failed"


class CorruptArchiveError(ContentPipelineError):
    error_code = "corrupt_archive"


class ExtractionFailedError(ContentPipelineError):
    error_code = "extraction_failed"


class InvalidArtifactContentError(ContentPipelineError):
    error_code = "invalid_artifact_content"
