"""
Pytest configuration and fixtures for EverythingPDF Backend tests.
"""

import io
import os
import tempfile

import fitz
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Set test environment variables before importing the app
os.environ["EVERYTHINGPDF_DB_PATH"] = os.path.join(
    tempfile.mkdtemp(prefix="everythingpdf_test_"), "everythingpdf.db"
)
os.environ.pop("S3_BUCKET_NAME", None)
os.environ.pop("EVERYTHINGPDF_FREE_LIMIT", None)

from everythingpdf_backend.configuration import make_runtime_config
from everythingpdf_backend.main import app, get_workspace
from everythingpdf_backend.models import IncomingFile
from everythingpdf_backend.plan_store import MemoryPlanStore
from everythingpdf_backend.workspace import Workspace


@pytest.fixture
def make_pdf():
    """Factory for PDF bytes with ``page_count`` pages of the given size."""

    def _make(page_count=1, width=612, height=792):
        document = fitz.open()
        for page_index in range(page_count):
            page = document.new_page(width=width, height=height)
            page.insert_text((36, 36), f"page {page_index + 1}")
        payload = document.tobytes()
        document.close()
        return payload

    return _make


@pytest.fixture
def make_image():
    """Factory for PNG or JPEG bytes of the given pixel size."""

    def _make(width=800, height=600, fmt="PNG", color=(200, 40, 40)):
        buffer = io.BytesIO()
        Image.new("RGB", (width, height), color).save(buffer, format=fmt)
        return buffer.getvalue()

    return _make


@pytest.fixture
def encrypted_pdf():
    document = fitz.open()
    document.new_page()
    payload = document.tobytes(
        encryption=fitz.PDF_ENCRYPT_AES_256,
        owner_pw="owner-secret",
        user_pw="user-secret",
    )
    document.close()
    return payload


@pytest.fixture
def incoming():
    """Build an ``IncomingFile`` from a name, bytes and media type."""

    def _make(name, data=b"", media_type=""):
        return IncomingFile.from_bytes(name, data, media_type)

    return _make


@pytest.fixture
def settings():
    return make_runtime_config()


@pytest.fixture
def plan_store():
    return MemoryPlanStore()


@pytest.fixture
def workspace(plan_store, settings):
    ws = Workspace(plan_store=plan_store, settings=settings)
    yield ws
    ws.close()


@pytest.fixture
def client(workspace):
    """Test client bound to a fresh workspace."""
    app.dependency_overrides[get_workspace] = lambda: workspace
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
