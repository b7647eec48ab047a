import uuid
from pathlib import Path
from typing import List, Union

import aiofiles
import aiofiles.os
import structlog

from ..connections.tripo_connection import TripoConnection, error_body
from ..core.exceptions import ApiError
from ..domain.models import ResultFile, TaskStatus

logger = structlog.get_logger()


class ModelDownloader:
    def __init__(self, connection: TripoConnection):
        self.connection = connection

    async def download_model(self, model_file: ResultFile, dest_dir: Union[str, Path]) -> Path:
        """
        Saves one result file under `dest_dir`, named after the URL's last
        path segment. Existing files are overwritten.
        """
        dest_dir = Path(dest_dir)
        file_path = dest_dir / model_file.file_name

        # Result URLs are signed asset links, the bearer key is not sent
        response = await self.connection.send("GET", model_file.url, authenticated=False)
        if not response.is_success:
            logger.error("model_download_failed", url=model_file.url, status_code=response.status_code)
            raise ApiError(
                f"Failed to download file: status {response.status_code}",
                status_code=response.status_code,
                body=error_body(response),
            )

        await aiofiles.os.makedirs(dest_dir, exist_ok=True)

        # Write next to the target then swap it in, so readers never see a partial file
        tmp_path = dest_dir / f".{file_path.name}.{uuid.uuid4().hex}.part"
        try:
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(response.content)
            await aiofiles.os.replace(tmp_path, file_path)
        finally:
            if await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.remove(tmp_path)

        logger.info("model_downloaded", path=str(file_path), size=len(response.content))
        return file_path

    async def download_all_models(self, task_status: TaskStatus, dest_dir: Union[str, Path]) -> List[Path]:
        """
        Downloads every result file, pbr first then glb. Stops at the first
        failure; files already written are left in place.
        """
        downloaded = []
        for name, model_file in task_status.result.files().items():
            logger.info("downloading_model", task_id=task_status.task_id, model=name, url=model_file.url)
            downloaded.append(await self.download_model(model_file, dest_dir))
        return downloaded
