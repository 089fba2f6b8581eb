from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class Tier(str, Enum):
    FREE = "free"
    PRO = "pro"


class InputKind(str, Enum):
    DOCUMENT = "pdf"
    IMAGE = "image"


class ImageSubkind(str, Enum):
    PNG = "png"
    JPEG = "jpeg"


class BuildState(str, Enum):
    IDLE = "idle"
    BUILDING = "building"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class IncomingFile:
    """
    A raw file handed over by a picker, a drop zone or an upload form.

    Only ``name``, ``media_type`` and ``size`` are inspected during
    classification; the bytes are read when a build consumes the file.
    """

    name: str
    media_type: str
    size: int
    data: bytes

    @classmethod
    def from_bytes(cls, name: str, data: bytes, media_type: str = "") -> "IncomingFile":
        return cls(name=name, media_type=media_type or "", size=len(data), data=data)

    def read(self) -> bytes:
        return self.data


@dataclass(frozen=True)
class QueuedInput:
    """A classified input ready to be queued. Identity is its queue position."""

    payload: IncomingFile
    display_name: str
    byte_size: int
    kind: InputKind
    image_subkind: Optional[ImageSubkind] = None

    def read(self) -> bytes:
        return self.payload.read()

    def to_entry(self, position: int) -> "QueueEntry":
        return QueueEntry(
            position=position,
            name=self.display_name,
            kind=self.kind,
            image_subkind=self.image_subkind,
            size_bytes=self.byte_size,
            size_kb=round(self.byte_size / 1024, 1),
        )


@dataclass(frozen=True)
class RejectedInput:
    display_name: str
    reason: str
    message: str


class QueueEntry(BaseModel):
    position: int
    name: str
    kind: InputKind
    image_subkind: Optional[ImageSubkind] = None
    size_bytes: int
    size_kb: float


class QueueView(BaseModel):
    tier: Tier
    limit: Optional[int] = None
    length: int
    entries: List[QueueEntry]
    message: str = ""


class PlanStatus(BaseModel):
    tier: Tier
    limit: Optional[int] = None
    note: str
    message: str = ""


class AdmissionReport(BaseModel):
    added: int
    rejected_count: int
    cap_exceeded: bool
    unsupported: List[str]
    messages: List[str]
    queue: QueueView
    message: str


class BuildEvent(BaseModel):
    timestamp: datetime
    message: str


class BuildStatus(BaseModel):
    state: BuildState
    error: Optional[str] = None
    failed_item: Optional[str] = None
    page_count: Optional[int] = None
    artifact_bytes: Optional[int] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    can_download: bool = False
    can_share: bool = False
    events: List[BuildEvent]
    message: str = ""


class ShareLink(BaseModel):
    url: str
    key: str
    message: str


class MoveRequest(BaseModel):
    from_index: int
    to_index: int
