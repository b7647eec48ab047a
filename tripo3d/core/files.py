import mimetypes
from pathlib import Path

from ..domain.models import DEFAULT_FILE_FORMAT

SUPPORTED_IMAGE_FORMATS = frozenset({"jpg", "jpeg", "png", "webp"})


def guess_mime_type(path: Path) -> str:
    mime, _ = mimetypes.guess_type(path.name)
    return mime or "application/octet-stream"


def file_format_for(path: Path) -> str:
    """Declared file type for a task input, taken from the extension."""
    extension = path.suffix.lstrip(".").lower()
    if extension in SUPPORTED_IMAGE_FORMATS:
        return extension
    return DEFAULT_FILE_FORMAT
