"""
Input classification.

Tags each incoming file as a PDF document or a PNG/JPEG image using only its
declared media type and name. Classification never raises: unsupported files
come back as ``RejectedInput`` so the caller can report them and keep going
with the rest of the batch.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Tuple, Union

from .models import ImageSubkind, IncomingFile, InputKind, QueuedInput, RejectedInput

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
PDF_EXTENSION = ".pdf"

IMAGE_SUBKINDS = {
    "image/png": ImageSubkind.PNG,
    "image/jpeg": ImageSubkind.JPEG,
    "image/jpg": ImageSubkind.JPEG,
    "image/pjpeg": ImageSubkind.JPEG,
}

UNSUPPORTED_TYPE = "unsupported_type"
UNSUPPORTED_IMAGE_TYPE = "unsupported_image_type"

Classified = Union[QueuedInput, RejectedInput]


def _normalize_media_type(media_type: str) -> str:
    # Drop parameters such as "; charset=binary".
    return (media_type or "").split(";", 1)[0].strip().lower()


def classify(file: IncomingFile) -> Classified:
    media_type = _normalize_media_type(file.media_type)
    name = file.name or ""

    if media_type == PDF_MEDIA_TYPE or name.lower().endswith(PDF_EXTENSION):
        return QueuedInput(
            payload=file,
            display_name=name,
            byte_size=file.size,
            kind=InputKind.DOCUMENT,
        )

    if media_type.startswith("image/"):
        subkind = IMAGE_SUBKINDS.get(media_type)
        if subkind is None:
            return RejectedInput(
                display_name=name,
                reason=UNSUPPORTED_IMAGE_TYPE,
                message=f"Unsupported image type ({media_type}): {name}. Only PNG and JPEG images can be added.",
            )
        return QueuedInput(
            payload=file,
            display_name=name,
            byte_size=file.size,
            kind=InputKind.IMAGE,
            image_subkind=subkind,
        )

    return RejectedInput(
        display_name=name,
        reason=UNSUPPORTED_TYPE,
        message=f"Unsupported: {name}. Tip: export/print documents to PDF first, then upload.",
    )


def classify_batch(files: Iterable[IncomingFile]) -> Tuple[List[QueuedInput], List[RejectedInput]]:
    """Split a batch into classified and rejected inputs, keeping batch order."""
    accepted: List[QueuedInput] = []
    rejected: List[RejectedInput] = []
    for file in files:
        result = classify(file)
        if isinstance(result, RejectedInput):
            logger.warning("Rejected %s (%s)", result.display_name, result.reason)
            rejected.append(result)
        else:
            accepted.append(result)
    return accepted, rejected
