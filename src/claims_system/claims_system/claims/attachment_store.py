"""Blob storage for claim attachments."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import BinaryIO, Protocol

from ..core.constants import DEFAULT_UPLOAD_URL_PREFIX

logger = logging.getLogger(__name__)


class AttachmentStore(Protocol):
    def save(self, stream: BinaryIO, stored_name: str) -> str:
        """Persist ``stream`` under ``stored_name`` and return its public reference."""

        raise NotImplementedError


class LocalAttachmentStore(AttachmentStore):
    """Writes attachments into a public static directory.

    A file saved as ``<name>.<ext>`` is referenced as ``<url_prefix>/<name>.<ext>``.
    """

    def __init__(self, upload_dir: str | Path, *, url_prefix: str = DEFAULT_UPLOAD_URL_PREFIX):
        self.upload_dir = Path(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")

    def save(self, stream: BinaryIO, stored_name: str) -> str:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        target = self.upload_dir / stored_name

        with target.open("wb") as fh:
            shutil.copyfileobj(stream, fh)

        logger.debug("Stored attachment %s (%d bytes)", target, target.stat().st_size)
        return f"{self.url_prefix}/{stored_name}"
