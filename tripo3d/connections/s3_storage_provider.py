import asyncio
from functools import partial
from pathlib import Path
from typing import Any, Callable, Optional, Union

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..core.exceptions import InputNotFoundError, TripoError, UploadError
from ..core.files import file_format_for, guess_mime_type
from ..domain.interfaces import FileUploader
from ..domain.models import DEFAULT_FILE_FORMAT, FileDescriptor, StsToken
from .tripo_connection import TripoConnection

logger = structlog.get_logger()


class S3Uploader(FileUploader):
    """
    Asks the service for temporary STS credentials and a target bucket/key,
    then puts the file straight into object storage.
    Credentials are used for exactly one upload and never stored.
    """

    def __init__(
        self,
        connection: TripoConnection,
        endpoint_url: Optional[str] = None,
        region_name: Optional[str] = None,
        session_factory: Callable[..., Any] = boto3.session.Session,
    ):
        self.connection = connection
        # endpoint_url allows usage with Minio, LocalStack or a test double
        self.endpoint_url = endpoint_url
        self.region_name = region_name
        self._session_factory = session_factory

    async def request_credentials(self) -> StsToken:
        try:
            return await self.connection.call(
                "POST", "upload/sts/token", StsToken, json={"format": DEFAULT_FILE_FORMAT}
            )
        except TripoError as e:
            logger.error("sts_token_request_failed", error=str(e))
            raise UploadError(
                f"Could not obtain storage credentials: {e}", e, status_code=getattr(e, "status_code", None)
            ) from e

    def _put_object(self, token: StsToken, path: Path, content_type: str) -> None:
        session = self._session_factory(
            aws_access_key_id=token.sts_ak,
            aws_secret_access_key=token.sts_sk,
            aws_session_token=token.session_token,
        )
        config = Config(s3={"addressing_style": "path"}) if self.endpoint_url else None
        s3_client = session.client(
            "s3",
            endpoint_url=self.endpoint_url,
            region_name=self.region_name,
            config=config,
        )
        with path.open("rb") as f:
            s3_client.put_object(
                Bucket=token.resource_bucket,
                Key=token.resource_uri,
                Body=f,
                ContentType=content_type,
            )

    async def upload(self, path: Union[str, Path]) -> FileDescriptor:
        path = Path(path)
        if not path.is_file():
            raise InputNotFoundError(str(path))

        token = await self.request_credentials()
        logger.info(
            "uploading_file",
            strategy="s3",
            filename=path.name,
            bucket=token.resource_bucket,
            key=token.resource_uri,
        )

        # boto3 is synchronous, keep it off the event loop
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, partial(self._put_object, token, path, guess_mime_type(path)))
        except (BotoCoreError, ClientError, OSError) as e:
            logger.error("s3_upload_failed", bucket=token.resource_bucket, error=str(e))
            raise UploadError(f"S3 upload failed: {e}", e) from e

        return FileDescriptor.from_storage(token.resource_bucket, token.resource_uri, file_format_for(path))
