"""
The user's workspace: one queue, one optional base PDF, one plan, one build.

Workspace is the explicit session object the HTTP layer talks to. It runs the
add-files flow (classify, then gate by plan, then queue), applies plan
changes, forwards queue edits and invalidates the build whenever the inputs
change, and hands finished artifacts to download or to the publisher.

Every command returns a model carrying a ``message`` suitable for a status
line, and every failure raises an error from ``errors`` with its own message.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Tuple

from omegaconf import DictConfig

from .admission import AdmissionDecision, admit, tier_cap
from .assembly import AssemblyEngine, count_pdf_pages
from .classifier import classify_batch
from .configuration import get_settings
from .errors import (
    AdmissionCapped,
    AssemblyError,
    InvalidBaseDocumentError,
    PublisherNotConfiguredError,
    PublishInProgressError,
)
from .models import (
    AdmissionReport,
    BuildState,
    BuildStatus,
    IncomingFile,
    PlanStatus,
    QueueView,
    ShareLink,
    Tier,
)
from .plan_store import MemoryPlanStore, PlanStore, SQLitePlanStore
from .publisher import S3Publisher, publisher_from_settings
from .session import BuildSession
from .utils import pdf_filename

logger = logging.getLogger(__name__)

PRO_FLAG = "1"
FREE_FLAG = "0"


class Workspace:
    def __init__(
        self,
        plan_store: Optional[PlanStore] = None,
        publisher: Optional[S3Publisher] = None,
        engine: Optional[AssemblyEngine] = None,
        settings: Optional[DictConfig] = None,
    ) -> None:
        settings = settings or get_settings()
        self.free_limit = int(settings.limits.free_uploads)
        self.storage_key = str(settings.plan.storage_key)
        self.default_filename = str(settings.output.default_filename)
        self.plan_store = plan_store if plan_store is not None else MemoryPlanStore()
        self.publisher = publisher
        self.session = BuildSession(engine=engine)
        self._publishing = False
        self._tier = Tier.PRO if self.plan_store.get(self.storage_key) == PRO_FLAG else Tier.FREE

    @classmethod
    def from_settings(cls, settings: Optional[DictConfig] = None) -> "Workspace":
        settings = settings or get_settings()
        return cls(
            plan_store=SQLitePlanStore(settings.plan.db_path),
            publisher=publisher_from_settings(settings),
            settings=settings,
        )

    # Plan

    @property
    def tier(self) -> Tier:
        return self._tier

    @property
    def limit(self) -> Optional[int]:
        return tier_cap(self._tier, self.free_limit)

    def plan_status(self, message: str = "") -> PlanStatus:
        if self._tier is Tier.PRO:
            note = "Pro enabled: unlimited uploads."
        else:
            note = f"Free enabled: max {self.free_limit} uploads per build."
        return PlanStatus(tier=self._tier, limit=self.limit, note=note, message=message)

    def upgrade(self) -> PlanStatus:
        self._tier = Tier.PRO
        self.plan_store.set(self.storage_key, PRO_FLAG)
        logger.info("Plan set to Pro")
        return self.plan_status("Pro enabled. Upload limit removed.")

    def downgrade(self) -> PlanStatus:
        """Switch to Free, keeping only the first ``free_limit`` queued inputs."""
        self._tier = Tier.FREE
        self.plan_store.set(self.storage_key, FREE_FLAG)
        dropped = self.session.queue.truncate(self.free_limit) if len(self.session.queue) > self.free_limit else ()
        if dropped:
            logger.info("Plan set to Free; dropped %d queued input(s)", len(dropped))
            self.session.invalidate()
        else:
            logger.info("Plan set to Free")
        message = f"Switched to Free. Max uploads: {self.free_limit}."
        if dropped:
            message += f" Removed {len(dropped)} file(s) from the end of the queue."
        return self.plan_status(message)

    # Queue

    def queue_view(self, message: str = "") -> QueueView:
        snapshot = self.session.queue.snapshot()
        return QueueView(
            tier=self._tier,
            limit=self.limit,
            length=len(snapshot),
            entries=[item.to_entry(position) for position, item in enumerate(snapshot)],
            message=message,
        )

    def add_files(self, files: Iterable[IncomingFile]) -> AdmissionReport:
        classified, rejected = classify_batch(files)
        messages: List[str] = [item.message for item in rejected]

        if classified:
            decision = admit(classified, len(self.session.queue), self._tier, self.free_limit)
        else:
            decision = AdmissionDecision(accepted=(), rejected_count=0, cap_exceeded=False)

        capped = decision.message(self.free_limit)
        if capped:
            logger.warning("Free plan cap: %d file(s) not added", decision.rejected_count)
            messages.append(capped)

        added = self.session.queue.append(decision.accepted)
        if added:
            self.session.invalidate()
            logger.info("Added %d file(s) to queue (length %d)", added, len(self.session.queue))

        summary = f"Added {added} file(s) to queue."
        return AdmissionReport(
            added=added,
            rejected_count=decision.rejected_count,
            cap_exceeded=decision.cap_exceeded,
            unsupported=[item.display_name for item in rejected],
            messages=messages,
            queue=self.queue_view(summary),
            message=summary,
        )

    def add_files_strict(self, files: Iterable[IncomingFile]) -> AdmissionReport:
        """Like ``add_files`` but raises ``AdmissionCapped`` when the queue is already full."""
        report = self.add_files(files)
        if report.cap_exceeded:
            raise AdmissionCapped(self.free_limit)
        return report

    def remove(self, index: int) -> QueueView:
        removed = self.session.queue.remove_at(index)
        self.session.invalidate()
        logger.info("Removed %s from queue", removed.display_name)
        return self.queue_view("Removed from queue.")

    def move(self, src: int, dst: int) -> QueueView:
        self.session.queue.move(src, dst)
        if src != dst:
            self.session.invalidate()
        return self.queue_view("Reordered queue.")

    # Base document

    def load_base(self, file: IncomingFile) -> QueueView:
        data = file.read()
        try:
            page_count = count_pdf_pages(data, "Base PDF")
        except AssemblyError as exc:
            raise InvalidBaseDocumentError(f"{file.name}: {exc.message}") from exc
        self.session.set_base(data)
        logger.info("Loaded base PDF %s (%d page(s))", file.name, page_count)
        return self.queue_view(f"Loaded base PDF: {file.name}")

    def new_document(self) -> QueueView:
        self.session.reset()
        logger.info("Workspace reset")
        return self.queue_view("Started a new empty PDF.")

    # Build

    def build_status(self, message: str = "") -> BuildStatus:
        status = self.session.status(publisher_configured=self.publisher is not None)
        status.message = message
        return status

    async def build(self) -> BuildStatus:
        count = len(self.session.queue)
        status = await self.session.trigger()
        if status.state is BuildState.SUCCEEDED:
            message = f"Done. Built PDF from {count} upload(s)."
        elif status.state is BuildState.FAILED:
            message = f"Build failed. {status.error}"
        else:
            message = "Inputs changed while building; build again."
        return self.build_status(message)

    def download(self, filename: Optional[str] = None) -> Tuple[bytes, str]:
        return self.session.artifact(), pdf_filename(filename, self.default_filename)

    async def share(self, filename: Optional[str] = None) -> ShareLink:
        if self.publisher is None:
            raise PublisherNotConfiguredError()
        if self._publishing:
            raise PublishInProgressError()
        data = self.session.artifact()
        name = pdf_filename(filename, self.default_filename)

        self._publishing = True
        try:
            loop = asyncio.get_running_loop()
            url, key = await loop.run_in_executor(None, self.publisher.publish_with_key, data, name)
        finally:
            self._publishing = False
        return ShareLink(url=url, key=key, message="Uploaded. Share link ready.")

    def close(self) -> None:
        self.session.shutdown()
