from typing import AsyncContextManager, AsyncIterable, Callable, Dict, Union

from websockets.asyncio.client import connect

Frame = Union[str, bytes]

# (url, headers) -> async context manager yielding an iterable of inbound frames.
# Ping/pong and close frames are handled by the connection itself.
WebSocketConnector = Callable[[str, Dict[str, str]], AsyncContextManager[AsyncIterable[Frame]]]


def open_websocket(url: str, headers: Dict[str, str]) -> AsyncContextManager[AsyncIterable[Frame]]:
    """
    Opens a subscription. Headers (the bearer credential) travel on the
    upgrade request, never in the URL.
    """
    return connect(url, additional_headers=headers, open_timeout=30, max_size=None)
