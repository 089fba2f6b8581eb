"""
Error taxonomy for queue admission, assembly and publishing.

Every error carries a stable ``code`` and a user-facing ``message``; the HTTP
layer maps each class to its own status code so no failure is reported as a
generic error.
"""

from __future__ import annotations

from typing import Optional


class EverythingPDFError(Exception):
    code = "everythingpdf_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ClassificationRejected(EverythingPDFError):
    code = "unsupported_input"

    def __init__(self, display_name: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Unsupported: {display_name}")
        self.display_name = display_name


class AdmissionCapped(EverythingPDFError):
    code = "free_plan_limit"

    def __init__(self, limit: int, message: Optional[str] = None) -> None:
        super().__init__(
            message
            or f'Free plan allows only {limit} uploads. Click "Upgrade to Pro" to add more.'
        )
        self.limit = limit


class QueueIndexError(IndexError):
    """Raised for a queue position that does not exist."""

    code = "queue_index_out_of_range"

    def __init__(self, index: int, length: int) -> None:
        super().__init__(f"Queue position {index} is out of range for a queue of {length} item(s).")
        self.index = index
        self.length = length
        self.message = str(self)


class InvalidBaseDocumentError(EverythingPDFError):
    code = "invalid_base_document"


class AssemblyError(EverythingPDFError):
    """
    A build attempt failed while opening, decoding or serializing.

    ``item_name``/``item_position`` identify the queued input that caused the
    failure; both are ``None`` when the base document or serialization failed.
    """

    code = "assembly_failed"

    def __init__(
        self,
        message: str,
        *,
        item_name: Optional[str] = None,
        item_position: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.item_name = item_name
        self.item_position = item_position


class BuildInProgressError(EverythingPDFError):
    code = "build_in_progress"

    def __init__(self, message: str = "A build is already running; wait for it to finish.") -> None:
        super().__init__(message)


class ArtifactUnavailableError(EverythingPDFError):
    code = "artifact_unavailable"

    def __init__(self, message: str = "No built PDF is available. Build the PDF first.") -> None:
        super().__init__(message)


class PublishError(EverythingPDFError):
    code = "publish_failed"


class PublisherNotConfiguredError(PublishError):
    code = "publish_not_configured"

    def __init__(
        self,
        message: str = "Sharing not configured yet. Set S3_BUCKET_NAME and storage credentials.",
    ) -> None:
        super().__init__(message)


class PublishInProgressError(PublishError):
    code = "publish_in_progress"

    def __init__(self, message: str = "An upload is already in progress.") -> None:
        super().__init__(message)
