"""
EverythingPDF Backend - build one PDF from a queue of PDFs and images

This package assembles a single PDF document from an ordered queue of
user-supplied PDFs and PNG/JPEG images, optionally appended to an existing
base PDF, and exposes the result for download or for sharing through an
S3-compatible object store.

- Classification of incoming files into documents and images
- Free/Pro plan gate on how many files the queue may hold
- Reorderable queue whose order is the page order of the output
- All-or-nothing assembly with PyMuPDF and Pillow
- Build state machine that never offers a stale artifact

Key Components:
    - classifier: tags incoming files as PDF documents or PNG/JPEG images
    - admission: Free/Pro admission decision for a batch of files
    - input_queue: ordered queue of classified inputs
    - assembly: merges the base document and queue into one PDF
    - session: build state machine and artifact slot
    - workspace: the user session tying queue, plan, build and sharing together
    - plan_store: persisted plan flag (memory or SQLite)
    - publisher: S3 upload and share links
    - main: FastAPI application and HTTP endpoint definitions

Usage:
    Run the local API server with:
        uvicorn everythingpdf_backend.main:app --reload --host 127.0.0.1 --port 8000
"""
