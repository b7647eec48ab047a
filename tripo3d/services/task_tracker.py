"""
Task lifecycle tracking.

Two independent producers of TaskStatus snapshots for the same task:

* pull: ``wait_for_task`` polls ``GET task/{id}`` on a fixed interval and
  returns the first terminal snapshot;
* push: ``watch_task`` / ``watch_all_tasks`` subscribe over a WebSocket and
  yield every snapshot the server sends.

They share nothing but ``is_terminal`` from the domain layer. A polling
failure aborts the wait; a malformed WebSocket frame becomes one error item
and the stream carries on.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Optional

import structlog
from websockets.exceptions import ConnectionClosedError, InvalidStatus, WebSocketException

from ..connections.tripo_connection import TripoConnection, parse_data
from ..connections.websocket_connection import WebSocketConnector, open_websocket
from ..core.exceptions import ApiError, ResponseShapeError, TaskTimeoutError, TransportError
from ..domain.models import TaskState, TaskStatus, WatchEvent, is_terminal

logger = structlog.get_logger()

DEFAULT_POLLING_INTERVAL = 2.0  # seconds

StatusObserver = Callable[[TaskStatus], None]


class TaskTracker:
    def __init__(
        self,
        connection: TripoConnection,
        polling_interval: float = DEFAULT_POLLING_INTERVAL,
        connector: WebSocketConnector = open_websocket,
    ):
        self.connection = connection
        self.polling_interval = polling_interval
        self._connect = connector

    async def get_task(self, task_id: str) -> TaskStatus:
        status = await self.connection.call("GET", f"task/{task_id}", TaskStatus)
        if status.status is TaskState.UNKNOWN:
            logger.warning("unrecognised_task_state", task_id=task_id)
        return status

    # --- Pull ---

    async def wait_for_task(
        self,
        task_id: str,
        verbose: bool = False,
        on_update: Optional[StatusObserver] = None,
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
    ) -> TaskStatus:
        """
        Polls until the task succeeds or fails and returns that snapshot.

        Without `timeout` this waits for as long as the task keeps running.
        Any request or parse failure is raised immediately, not retried.
        """
        interval = self.polling_interval if interval is None else interval
        deadline = None if timeout is None else time.monotonic() + timeout
        polls = 0

        while True:
            status = await self.get_task(task_id)
            polls += 1

            if is_terminal(status.status):
                logger.info(
                    "task_finished", task_id=task_id, status=status.status.value, polls=polls
                )
                return status

            if verbose:
                logger.info(
                    "task_progress", task_id=task_id, status=status.status.value, progress=status.progress
                )
            if on_update is not None:
                on_update(status)

            if deadline is not None and time.monotonic() + interval > deadline:
                raise TaskTimeoutError(task_id, timeout)  # type: ignore[arg-type]

            await asyncio.sleep(interval)

    # --- Push ---

    def watch_task(self, task_id: str) -> AsyncIterator[WatchEvent]:
        """Live updates for one task. The server closes the stream when it is done."""
        return self._watch(f"task/watch/{task_id}")

    def watch_all_tasks(self, since: Optional[datetime] = None) -> AsyncIterator[WatchEvent]:
        """
        Live updates for every task on the account. With `since`, the server
        replays updates from that instant; otherwise only new ones arrive.
        """
        if since is None:
            return self._watch("task/watch/all")
        if since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        return self._watch(f"task/watch/all/{since.isoformat()}")

    async def _watch(self, path: str) -> AsyncIterator[WatchEvent]:
        url = self.connection.ws_url(path)
        log = logger.bind(url=url)
        log.info("watch_connecting")

        try:
            async with self._connect(url, self.connection.auth_headers()) as frames:
                log.info("watch_connected")
                try:
                    async for frame in frames:
                        if not isinstance(frame, str):
                            continue
                        try:
                            status = parse_data(frame, TaskStatus)
                        except ResponseShapeError as e:
                            log.warning("watch_bad_frame", error=str(e))
                            yield WatchEvent(error=e)
                            continue
                        yield WatchEvent(status=status)
                except ConnectionClosedError as e:
                    log.warning("watch_connection_lost", error=str(e))
                    yield WatchEvent(error=TransportError(f"WebSocket connection lost: {e}", e))
                    return
        except InvalidStatus as e:
            status_code = e.response.status_code
            raise ApiError(
                f"WebSocket upgrade rejected with status {status_code}",
                status_code=status_code,
                body=e.response.body.decode("utf-8", "replace") if e.response.body else {},
            ) from e
        except (WebSocketException, OSError, asyncio.TimeoutError) as e:
            raise TransportError(f"WebSocket connection to {url} failed: {e}", e) from e

        log.info("watch_closed")
