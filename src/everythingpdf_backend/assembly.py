"""
PDF assembly engine.

Builds one output PDF from an optional base document followed by the queued
inputs, in queue order:

- PDF inputs contribute all of their pages, in their own order.
- PNG/JPEG inputs each become one new page sized to the image's pixel
  dimensions (one pixel = one point) with the image covering the whole page.

Assembly is all-or-nothing: the first input that cannot be opened or decoded
aborts the build with an ``AssemblyError`` naming that input, and no partial
document is returned.

Libraries:
- PyMuPDF (``fitz``): open, merge and serialize PDF documents
- Pillow: format-specific PNG/JPEG decoding and pixel dimensions
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import fitz
from PIL import Image

from .errors import AssemblyError
from .models import ImageSubkind, InputKind, QueuedInput

logger = logging.getLogger(__name__)

_PIL_FORMATS = {
    ImageSubkind.PNG: "PNG",
    ImageSubkind.JPEG: "JPEG",
}


@dataclass(frozen=True)
class AssembledDocument:
    data: bytes
    page_count: int


def open_pdf(data: bytes, label: str) -> "fitz.Document":
    """Open ``data`` as a PDF, rejecting empty, unreadable and encrypted files."""
    if not data:
        raise AssemblyError(f"{label} is empty.")
    try:
        document = fitz.open(stream=data, filetype="pdf")
    except Exception as exc:  # noqa: BLE001 - PyMuPDF raises several unrelated types
        raise AssemblyError(f"{label} could not be opened as a PDF: {exc}") from exc

    if not document.is_pdf:
        document.close()
        raise AssemblyError(f"{label} is not a PDF document.")
    if document.needs_pass or document.is_encrypted:
        document.close()
        raise AssemblyError(f"{label} is encrypted and cannot be merged.")
    if document.page_count < 1:
        document.close()
        raise AssemblyError(f"{label} has no readable pages.")
    return document


def count_pdf_pages(data: bytes, label: str = "Document") -> int:
    document = open_pdf(data, label)
    try:
        return document.page_count
    finally:
        document.close()


def decode_image(data: bytes, subkind: ImageSubkind) -> Tuple[int, int]:
    """
    Decode ``data`` strictly as ``subkind`` and return its pixel size.

    PNG bytes declared as JPEG (and the reverse) fail here instead of being
    sniffed into the other decoder.
    """
    pil_format = _PIL_FORMATS[subkind]
    try:
        with Image.open(io.BytesIO(data), formats=[pil_format]) as image:
            image.load()
            width, height = image.size
    except Exception as exc:  # noqa: BLE001 - Pillow raises OSError, ValueError, SyntaxError...
        raise AssemblyError(f"Could not decode {pil_format} image: {exc}") from exc

    if width <= 0 or height <= 0:
        raise AssemblyError(f"{pil_format} image has no pixels.")
    return width, height


class AssemblyEngine:
    """Stateless merger of a base document and a queue snapshot into PDF bytes."""

    def assemble(self, base: Optional[bytes], snapshot: Sequence[QueuedInput]) -> AssembledDocument:
        output = self._open_output(base)
        try:
            for position, item in enumerate(snapshot):
                try:
                    if item.kind is InputKind.DOCUMENT:
                        self._append_document(output, item)
                    else:
                        self._append_image(output, item)
                except AssemblyError as exc:
                    raise AssemblyError(
                        f"Build failed at item {position + 1} ({item.display_name}): {exc.message}",
                        item_name=item.display_name,
                        item_position=position,
                    ) from exc

            if output.page_count == 0:
                raise AssemblyError("Nothing to build: add files or load a base PDF first.")
            try:
                data = output.tobytes()
            except Exception as exc:  # noqa: BLE001
                raise AssemblyError(f"Could not serialize the output PDF: {exc}") from exc
            page_count = output.page_count
        finally:
            output.close()

        logger.info("Assembled %d page(s) from %d queued input(s)", page_count, len(snapshot))
        return AssembledDocument(data=data, page_count=page_count)

    @staticmethod
    def _open_output(base: Optional[bytes]) -> "fitz.Document":
        if base is None:
            return fitz.open()
        return open_pdf(base, "Base PDF")

    @staticmethod
    def _read(item: QueuedInput) -> bytes:
        try:
            return item.read()
        except OSError as exc:
            raise AssemblyError(f"Could not read file: {exc}") from exc

    def _append_document(self, output: "fitz.Document", item: QueuedInput) -> None:
        donor = open_pdf(self._read(item), "Document")
        try:
            output.insert_pdf(donor)
        except Exception as exc:  # noqa: BLE001
            raise AssemblyError(f"Could not copy pages: {exc}") from exc
        finally:
            donor.close()

    def _append_image(self, output: "fitz.Document", item: QueuedInput) -> None:
        if item.image_subkind is None:
            raise AssemblyError("Image input has no PNG/JPEG subtype.")
        data = self._read(item)
        width, height = decode_image(data, item.image_subkind)

        page = output.new_page(width=width, height=height)
        try:
            page.insert_image(page.rect, stream=data, keep_proportion=False)
        except Exception as exc:  # noqa: BLE001
            raise AssemblyError(f"Could not place image on its page: {exc}") from exc
