from pathlib import Path
from typing import Union

import structlog

from ..core.exceptions import InputNotFoundError, TransportError, UploadError
from ..core.files import file_format_for, guess_mime_type
from ..domain.interfaces import FileUploader
from ..domain.models import FileDescriptor, StandardUploadData
from .tripo_connection import TripoConnection, parse_data

logger = structlog.get_logger()


class DirectUploader(FileUploader):
    """
    Streams the file to the service as multipart/form-data and gets back
    an opaque file token.
    """

    def __init__(self, connection: TripoConnection):
        self.connection = connection

    async def upload_token(self, path: Union[str, Path]) -> str:
        path = Path(path)
        if not path.is_file():
            raise InputNotFoundError(str(path))

        mime_type = guess_mime_type(path)
        logger.info("uploading_file", strategy="direct", filename=path.name, mime_type=mime_type)

        try:
            with path.open("rb") as f:
                response = await self.connection.send(
                    "POST",
                    self.connection.url("upload/sts"),
                    files={"file": (path.name, f, mime_type)},
                )
        except TransportError as e:
            raise UploadError(f"Upload of {path.name} failed: {e}", e) from e

        if not response.is_success:
            logger.error("direct_upload_failed", filename=path.name, status_code=response.status_code)
            raise UploadError(
                f"Upload of {path.name} failed with status {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        return parse_data(response.content, StandardUploadData).image_token

    async def upload(self, path: Path) -> FileDescriptor:
        token = await self.upload_token(path)
        return FileDescriptor.from_token(token, file_format_for(Path(path)))
