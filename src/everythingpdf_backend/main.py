from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .configuration import configure_logging
from .errors import (
    AdmissionCapped,
    ArtifactUnavailableError,
    BuildInProgressError,
    InvalidBaseDocumentError,
    PublisherNotConfiguredError,
    PublishError,
    PublishInProgressError,
    QueueIndexError,
)
from .models import (
    AdmissionReport,
    BuildState,
    BuildStatus,
    IncomingFile,
    MoveRequest,
    PlanStatus,
    QueueView,
    ShareLink,
)
from .workspace import Workspace

configure_logging()

app = FastAPI(title="EverythingPDF API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

workspace = Workspace.from_settings()


def get_workspace() -> Workspace:
    return workspace


async def _incoming(upload: UploadFile) -> IncomingFile:
    data = await upload.read()
    await upload.close()
    return IncomingFile(
        name=upload.filename or "",
        media_type=upload.content_type or "",
        size=len(data),
        data=data,
    )


@app.get("/healthz")
def healthcheck() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/plan", response_model=PlanStatus)
def get_plan(ws: Workspace = Depends(get_workspace)) -> PlanStatus:
    return ws.plan_status()


@app.post("/plan/upgrade", response_model=PlanStatus)
def upgrade_plan(ws: Workspace = Depends(get_workspace)) -> PlanStatus:
    return ws.upgrade()


@app.post("/plan/downgrade", response_model=PlanStatus)
def downgrade_plan(ws: Workspace = Depends(get_workspace)) -> PlanStatus:
    return ws.downgrade()


@app.post("/base", response_model=QueueView)
async def load_base(pdf: UploadFile = File(...), ws: Workspace = Depends(get_workspace)) -> QueueView:
    incoming = await _incoming(pdf)
    try:
        return ws.load_base(incoming)
    except InvalidBaseDocumentError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc


@app.post("/new", response_model=QueueView)
def new_document(ws: Workspace = Depends(get_workspace)) -> QueueView:
    return ws.new_document()


@app.get("/queue", response_model=QueueView)
def get_queue(ws: Workspace = Depends(get_workspace)) -> QueueView:
    return ws.queue_view()


@app.post("/queue", response_model=AdmissionReport)
async def add_to_queue(
    files: List[UploadFile] = File(...),
    ws: Workspace = Depends(get_workspace),
) -> AdmissionReport:
    incoming = [await _incoming(upload) for upload in files]
    try:
        return ws.add_files_strict(incoming)
    except AdmissionCapped as exc:
        raise HTTPException(status_code=409, detail=exc.message) from exc


@app.delete("/queue/{index}", response_model=QueueView)
def remove_from_queue(index: int, ws: Workspace = Depends(get_workspace)) -> QueueView:
    try:
        return ws.remove(index)
    except QueueIndexError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc


@app.post("/queue/move", response_model=QueueView)
def move_in_queue(request: MoveRequest, ws: Workspace = Depends(get_workspace)) -> QueueView:
    try:
        return ws.move(request.from_index, request.to_index)
    except QueueIndexError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc


@app.get("/build", response_model=BuildStatus)
def get_build(ws: Workspace = Depends(get_workspace)) -> BuildStatus:
    return ws.build_status()


@app.post("/build", response_model=BuildStatus)
async def build(ws: Workspace = Depends(get_workspace)):
    try:
        status = await ws.build()
    except BuildInProgressError as exc:
        raise HTTPException(status_code=409, detail=exc.message) from exc
    if status.state is BuildState.FAILED:
        return JSONResponse(status_code=422, content=status.model_dump(mode="json"))
    return status


@app.get("/download")
def download(filename: Optional[str] = None, ws: Workspace = Depends(get_workspace)) -> Response:
    try:
        data, name = ws.download(filename)
    except ArtifactUnavailableError as exc:
        raise HTTPException(status_code=409, detail=exc.message) from exc
    return Response(
        content=data,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{name}"'},
    )


@app.post("/share", response_model=ShareLink)
async def share(filename: Optional[str] = None, ws: Workspace = Depends(get_workspace)) -> ShareLink:
    try:
        return await ws.share(filename)
    except PublisherNotConfiguredError as exc:
        raise HTTPException(status_code=503, detail=exc.message) from exc
    except (ArtifactUnavailableError, PublishInProgressError) as exc:
        raise HTTPException(status_code=409, detail=exc.message) from exc
    except PublishError as exc:
        raise HTTPException(status_code=502, detail=exc.message) from exc
