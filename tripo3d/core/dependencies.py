from enum import Enum
from typing import Optional

from ..connections.direct_upload_provider import DirectUploader
from ..connections.s3_storage_provider import S3Uploader
from ..connections.tripo_connection import TripoConnection
from ..domain.interfaces import FileUploader


class UploadStrategy(str, Enum):
    DIRECT = "direct"  # multipart to upload/sts, returns a file token
    S3 = "s3"  # STS credentials + object-storage put, returns bucket/key


def build_uploader(
    strategy: UploadStrategy,
    connection: TripoConnection,
    s3_endpoint_url: Optional[str] = None,
    s3_region: Optional[str] = None,
) -> FileUploader:
    """
    Factory: Returns the uploader for the strategy the caller picked.
    Nothing is inferred from the file or the environment.
    """
    strategy = UploadStrategy(strategy)
    if strategy is UploadStrategy.S3:
        return S3Uploader(connection, endpoint_url=s3_endpoint_url, region_name=s3_region)

    return DirectUploader(connection)
