"""
Build state machine.

BuildSession owns the queue, the optional base document and the single
artifact slot, and moves between four states:

    IDLE -> BUILDING -> SUCCEEDED | FAILED -> BUILDING -> ...

A build works on a snapshot of the base document and queue taken when it is
triggered and runs the assembly engine on a one-worker thread pool, so the
event loop stays responsive while pages are merged. Only one build may be in
flight: triggering again while BUILDING raises ``BuildInProgressError``.

Any change to the inputs calls ``invalidate()``, which drops a finished
artifact or error. If the inputs change while a build is running, that
build's result is discarded when it completes and the session returns to
IDLE, so an artifact is never offered for inputs it was not built from.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import List, Optional

from .assembly import AssembledDocument, AssemblyEngine
from .errors import ArtifactUnavailableError, AssemblyError, BuildInProgressError
from .input_queue import InputQueue
from .models import BuildEvent, BuildState, BuildStatus

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BuildSession:
    def __init__(
        self,
        engine: Optional[AssemblyEngine] = None,
        queue: Optional[InputQueue] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self.engine = engine or AssemblyEngine()
        self.queue = queue if queue is not None else InputQueue()
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="pdf-build")
        self._base: Optional[bytes] = None
        self._state = BuildState.IDLE
        self._artifact: Optional[AssembledDocument] = None
        self._error: Optional[AssemblyError] = None
        self._started_at: Optional[datetime] = None
        self._finished_at: Optional[datetime] = None
        self._events: List[BuildEvent] = []
        # Bumped whenever inputs change or the session resets; a build whose
        # generation no longer matches finishes into IDLE.
        self._generation = 0
        self._build_count = 0

    @property
    def state(self) -> BuildState:
        return self._state

    @property
    def base(self) -> Optional[bytes]:
        return self._base

    @property
    def error(self) -> Optional[AssemblyError]:
        return self._error

    def set_base(self, data: Optional[bytes]) -> None:
        self._base = bytes(data) if data is not None else None
        self.invalidate()

    def _append_event(self, message: str) -> None:
        self._events.append(BuildEvent(timestamp=_utcnow(), message=message))

    def _discard_result(self) -> None:
        self._artifact = None
        self._error = None
        self._finished_at = None

    async def trigger(self) -> BuildStatus:
        """Run one build to completion and return the resulting status."""
        if self._state is BuildState.BUILDING:
            raise BuildInProgressError()

        base = self._base
        snapshot = self.queue.snapshot()
        generation = self._generation
        self._build_count += 1
        build_id = self._build_count

        self._discard_result()
        self._state = BuildState.BUILDING
        self._started_at = _utcnow()
        self._append_event(f"Build started with {len(snapshot)} queued input(s).")
        logger.info("Build started (base=%s, inputs=%d)", base is not None, len(snapshot))

        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(self._executor, self.engine.assemble, base, snapshot)
        except AssemblyError as exc:
            self._finish(build_id, generation, error=exc)
        except Exception as exc:  # noqa: BLE001 - any engine failure fails the build
            logger.exception("Unexpected error during assembly")
            wrapped = AssemblyError(f"Build failed: {exc}")
            wrapped.__cause__ = exc
            self._finish(build_id, generation, error=wrapped)
        else:
            self._finish(build_id, generation, artifact=result)
        return self.status()

    def _finish(
        self,
        build_id: int,
        generation: int,
        artifact: Optional[AssembledDocument] = None,
        error: Optional[AssemblyError] = None,
    ) -> None:
        if build_id != self._build_count:
            # A newer build started after a reset; it owns the state now.
            return
        if generation != self._generation:
            logger.info("Discarding build result; inputs changed while building")
            self._state = BuildState.IDLE
            self._discard_result()
            self._append_event("Build finished but inputs changed meanwhile; result discarded.")
            return

        self._finished_at = _utcnow()
        if error is not None:
            self._state = BuildState.FAILED
            self._artifact = None
            self._error = error
            logger.error("Build failed: %s", error.message)
            self._append_event(f"Build failed: {error.message}")
        else:
            self._state = BuildState.SUCCEEDED
            self._artifact = artifact
            self._error = None
            logger.info("Build succeeded: %d page(s)", artifact.page_count)
            self._append_event(f"Build succeeded: {artifact.page_count} page(s).")

    def invalidate(self) -> None:
        """Drop any artifact or error built from inputs that have since changed."""
        if self._state is BuildState.BUILDING:
            self._generation += 1
            return
        if self._state in (BuildState.SUCCEEDED, BuildState.FAILED):
            self._state = BuildState.IDLE
            self._discard_result()
            self._append_event("Inputs changed; previous build discarded.")

    def reset(self) -> None:
        self._generation += 1
        self._state = BuildState.IDLE
        self._discard_result()
        self._base = None
        self.queue.reset()
        self._started_at = None
        self._events = []

    def can_download(self) -> bool:
        return self._state is BuildState.SUCCEEDED

    def can_share(self, publisher_configured: bool) -> bool:
        return self.can_download() and publisher_configured

    def artifact(self) -> bytes:
        if not self.can_download() or self._artifact is None:
            raise ArtifactUnavailableError()
        return self._artifact.data

    def status(self, publisher_configured: bool = False) -> BuildStatus:
        return BuildStatus(
            state=self._state,
            error=self._error.message if self._error else None,
            failed_item=self._error.item_name if self._error else None,
            page_count=self._artifact.page_count if self._artifact else None,
            artifact_bytes=len(self._artifact.data) if self._artifact else None,
            started_at=self._started_at,
            finished_at=self._finished_at,
            can_download=self.can_download(),
            can_share=self.can_share(publisher_configured),
            events=list(self._events),
        )

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
