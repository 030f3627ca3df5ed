"""Floor plan file storage under the configured upload directory."""

from __future__ import annotations

import logging
import os
import re
import tempfile
import time
from pathlib import Path

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/floor-plans/"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def safe_filename(name: str) -> str:
    """Replace every character outside ``[A-Za-z0-9.-]`` with an underscore."""
    return _UNSAFE_CHARS.sub("_", name)


def floor_plan_dir(upload_dir: Path) -> Path:
    return Path(upload_dir) / "floor-plans"


def save_floor_plan(upload_dir: Path, filename: str, data: bytes) -> tuple[str, str]:
    """Persist an uploaded floor plan.

    The file lands as ``<ms timestamp>_<safe name>`` inside
    ``<upload_dir>/floor-plans``. It is written to a temporary file in the
    same directory first and renamed into place, so readers never see a
    partial file.

    Args:
        upload_dir: Upload root
        filename: Client supplied file name
        data: File contents

    Returns:
        tuple: (stored file name, public path served under /floor-plans)

    Raises:
        ValueError: If the upload is empty or has no name
    """
    if not data:
        raise ValueError("Uploaded file is empty")
    if not filename or not filename.strip():
        raise ValueError("Uploaded file has no name")

    target_dir = floor_plan_dir(upload_dir)
    target_dir.mkdir(parents=True, exist_ok=True)

    stored_name = f"{int(time.time() * 1000)}_{safe_filename(filename.strip())}"
    target = target_dir / stored_name

    fd, tmp_path = tempfile.mkstemp(dir=target_dir, prefix=".upload-")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_path, target)
    except OSError:
        logger.exception("Failed to store floor plan %s", stored_name)
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    logger.info("Stored floor plan %s (%d bytes)", stored_name, len(data))
    return stored_name, f"{PUBLIC_PREFIX}{stored_name}"


def resolve_public_path(upload_dir: Path, public_path: str | None) -> Path | None:
    """Map a stored ``/floor-plans/<name>`` path back to the file on disk.

    Returns None for empty paths and for anything that would resolve outside
    the floor plan directory.
    """
    if not public_path:
        return None

    name = public_path
    if name.startswith(PUBLIC_PREFIX):
        name = name[len(PUBLIC_PREFIX):]

    base = floor_plan_dir(upload_dir).resolve()
    candidate = (base / name).resolve()
    if candidate.parent != base:
        logger.warning("Rejected floor plan path outside upload dir: %s", public_path)
        return None
    return candidate
