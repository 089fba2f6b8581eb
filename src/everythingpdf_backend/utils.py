"""
Filesystem and filename helpers.

- Sanitizing user-provided names for download and object-store keys
- Ensuring directory creation
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

# Characters allowed in generated filenames and object keys.
SANITIZE_PATTERN = re.compile(r"[^a-zA-Z0-9._-]+")


def sanitize_label(label: str, fallback: str) -> str:
    """
    Generate a filesystem-safe label from user input.

    Example:
        >>> sanitize_label("My Document!", "everythingpdf")
        'my-document'
        >>> sanitize_label("@#$", "everythingpdf")
        'everythingpdf'
    """
    cleaned = SANITIZE_PATTERN.sub("-", label.strip())
    cleaned = cleaned.strip("-_.").lower()
    return cleaned or fallback


def pdf_filename(name: Optional[str], default: str) -> str:
    """
    Turn a requested download name into a safe ``.pdf`` filename.

    Example:
        >>> pdf_filename("Trip receipts", "everythingpdf.pdf")
        'trip-receipts.pdf'
        >>> pdf_filename(None, "everythingpdf.pdf")
        'everythingpdf.pdf'
    """
    if not name or not name.strip():
        return default
    stem = Path(name.strip()).stem if name.lower().endswith(".pdf") else name.strip()
    fallback = Path(default).stem or "document"
    return f"{sanitize_label(stem, fallback)}.pdf"


def ensure_directory(path: Path) -> Path:
    """Create ``path`` and its parents if missing; return it for chaining."""
    path.mkdir(parents=True, exist_ok=True)
    return path
