"""
Turns whatever the caller passed as an image (URL, file token, local path)
into the single FileDescriptor shape the task endpoint accepts.
"""

import re
from enum import Enum
from pathlib import Path

import structlog

from ..core.exceptions import InputNotFoundError
from ..core.files import file_format_for
from ..domain.interfaces import FileUploader
from ..domain.models import DEFAULT_FILE_FORMAT, FileDescriptor

logger = structlog.get_logger()

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


class InputKind(str, Enum):
    URL = "url"
    FILE_TOKEN = "file_token"
    LOCAL_PATH = "local_path"


def classify(value: str) -> InputKind:
    """
    Order matters: URL prefix, then token shape, then filesystem.
    A UUID-shaped string is a token even if a file with that name exists.
    """
    if value.startswith(("http://", "https://")):
        return InputKind.URL
    if UUID_RE.match(value):
        return InputKind.FILE_TOKEN
    return InputKind.LOCAL_PATH


class InputResolver:
    def __init__(self, uploader: FileUploader):
        self.uploader = uploader

    async def resolve(self, value: str) -> FileDescriptor:
        kind = classify(value)

        if kind is InputKind.URL:
            return FileDescriptor.from_url(value, DEFAULT_FILE_FORMAT)

        if kind is InputKind.FILE_TOKEN:
            # Not validated here; an unknown token fails server-side
            return FileDescriptor.from_token(value, DEFAULT_FILE_FORMAT)

        path = Path(value)
        if not path.exists():
            raise InputNotFoundError(value)

        logger.info("resolving_local_input", path=str(path), uploader=self.uploader.__class__.__name__)
        descriptor = await self.uploader.upload(path)
        return descriptor.with_format(file_format_for(path))
