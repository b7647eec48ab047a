from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, List, Optional, Union

import httpx
import structlog

from .connections.tripo_connection import TripoConnection
from .connections.websocket_connection import WebSocketConnector, open_websocket
from .core.config import Settings
from .core.dependencies import UploadStrategy, build_uploader
from .core.exceptions import MissingCredentialError
from .domain.models import Balance, FileDescriptor, ResultFile, TaskResponse, TaskStatus, WatchEvent
from .services.downloader import ModelDownloader
from .services.input_resolver import InputResolver
from .services.task_submitter import TaskSubmitter
from .services.task_tracker import StatusObserver, TaskTracker

logger = structlog.get_logger()


class TripoClient:
    """
    Async client for the Tripo3D API.

    The API key and base URL are fixed at construction. The instance holds
    no per-call state and can be shared between concurrent coroutines;
    use it as an async context manager (or call ``aclose``) to release the
    HTTP connection pool.

    The key comes from ``api_key`` or the ``TRIPO_API_KEY`` environment
    variable; without either, construction fails before any request.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        *,
        upload_strategy: UploadStrategy = UploadStrategy.DIRECT,
        polling_interval: Optional[float] = None,
        s3_endpoint_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        ws_connector: WebSocketConnector = open_websocket,
        settings: Optional[Settings] = None,
    ):
        settings = settings or Settings()

        if not api_key and settings.TRIPO_API_KEY is not None:
            api_key = settings.TRIPO_API_KEY.get_secret_value()
        if not api_key:
            raise MissingCredentialError()

        self.connection = TripoConnection(
            api_key,
            base_url or settings.TRIPO_BASE_URL,
            http_client=http_client,
            timeout=settings.HTTP_TIMEOUT,
        )
        self.upload_strategy = UploadStrategy(upload_strategy)
        s3_endpoint_url = s3_endpoint_url or settings.S3_ENDPOINT_URL

        # One uploader per strategy, shared by the resolver and upload_file*
        self._uploaders = {
            strategy: build_uploader(strategy, self.connection, s3_endpoint_url, settings.S3_REGION)
            for strategy in UploadStrategy
        }
        self._direct_uploader = self._uploaders[UploadStrategy.DIRECT]
        self._s3_uploader = self._uploaders[UploadStrategy.S3]
        self._resolver = InputResolver(self._uploaders[self.upload_strategy])
        self._submitter = TaskSubmitter(self.connection)
        self._tracker = TaskTracker(
            self.connection,
            polling_interval=settings.POLLING_INTERVAL if polling_interval is None else polling_interval,
            connector=ws_connector,
        )
        self._downloader = ModelDownloader(self.connection)

        logger.debug(
            "tripo_client_created",
            base_url=str(self.connection.base_url),
            upload_strategy=self.upload_strategy.value,
        )

    @property
    def base_url(self) -> str:
        return str(self.connection.base_url)

    @property
    def ws_base_url(self) -> str:
        return self.connection.ws_base_url

    async def __aenter__(self) -> "TripoClient":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.connection.aclose()

    # --- Task Creation ---

    async def text_to_model(self, prompt: str) -> TaskResponse:
        """Submits a text-to-model task."""
        return await self._submitter.text_to_model(prompt)

    async def image_to_model(self, image: str) -> TaskResponse:
        """
        Submits an image-to-model task. `image` may be an http(s) URL,
        a file token from a previous upload, or a local path (uploaded
        first with the client's upload strategy).
        """
        file = await self._resolver.resolve(image)
        return await self._submitter.image_to_model(file)

    async def image_to_model_direct(self, image_path: Union[str, Path]) -> TaskResponse:
        """Submits an image-to-model task with the image sent inline as multipart."""
        return await self._submitter.image_to_model_direct(image_path)

    async def resolve_input(self, image: str) -> FileDescriptor:
        return await self._resolver.resolve(image)

    # --- Uploads ---

    async def upload_file(self, image_path: Union[str, Path]) -> str:
        """Multipart upload; returns the file token."""
        return await self._direct_uploader.upload_token(image_path)

    async def upload_file_s3(self, image_path: Union[str, Path]) -> FileDescriptor:
        """STS + object-storage upload; returns a bucket/key descriptor."""
        return await self._s3_uploader.upload(image_path)

    # --- Task Status ---

    async def get_task(self, task_id: str) -> TaskStatus:
        return await self._tracker.get_task(task_id)

    async def wait_for_task(
        self,
        task_id: str,
        verbose: bool = False,
        on_update: Optional[StatusObserver] = None,
        timeout: Optional[float] = None,
    ) -> TaskStatus:
        return await self._tracker.wait_for_task(task_id, verbose=verbose, on_update=on_update, timeout=timeout)

    def watch_task(self, task_id: str) -> AsyncIterator[WatchEvent]:
        return self._tracker.watch_task(task_id)

    def watch_all_tasks(self, since: Optional[datetime] = None) -> AsyncIterator[WatchEvent]:
        return self._tracker.watch_all_tasks(since)

    # --- Account ---

    async def get_balance(self) -> Balance:
        return await self.connection.call("GET", "user/balance", Balance)

    # --- Downloads ---

    async def download_model(self, model_file: ResultFile, dest_dir: Union[str, Path]) -> Path:
        return await self._downloader.download_model(model_file, dest_dir)

    async def download_all_models(self, task_status: TaskStatus, dest_dir: Union[str, Path]) -> List[Path]:
        return await self._downloader.download_all_models(task_status, dest_dir)
