from typing import Any, Dict, Optional, Type, TypeVar, Union
from urllib.parse import urlsplit, urlunsplit

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from ..core.exceptions import ApiError, InvalidAddressError, ResponseShapeError, TransportError
from ..domain.models import ApiResponse

logger = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)


def normalise_base_url(base_url: str) -> httpx.URL:
    """
    Parses the service base URL. A trailing slash is added so relative
    joins ("task", "user/balance") keep the path prefix.
    """
    if not base_url.endswith("/"):
        base_url = base_url + "/"
    try:
        url = httpx.URL(base_url)
    except (httpx.InvalidURL, TypeError) as e:
        raise InvalidAddressError(f"Invalid base URL {base_url!r}: {e}", e) from e

    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidAddressError(f"Base URL must be an absolute http(s) URL, got {base_url!r}")
    return url


def to_websocket_url(base_url: httpx.URL) -> str:
    """https -> wss, http -> ws. Host, port and path prefix are preserved."""
    parts = urlsplit(str(base_url))
    scheme = "wss" if parts.scheme == "https" else "ws"
    return urlunsplit(parts._replace(scheme=scheme))


def error_body(response: httpx.Response) -> Any:
    """Decoded JSON error payload, the raw text if it is not JSON, {} if empty."""
    text = response.text
    if not text.strip():
        return {}
    try:
        return response.json()
    except ValueError:
        return text


def parse_data(raw: Union[str, bytes], model: Type[M]) -> M:
    """Validates a `{"data": ...}` envelope and returns the inner model."""
    try:
        return ApiResponse[model].model_validate_json(raw).data  # type: ignore[valid-type]
    except ValidationError as e:
        raise ResponseShapeError(f"Unexpected response shape for {model.__name__}: {e}", e) from e


class TripoConnection:
    """
    Holds the bearer credential, the base address and the shared httpx
    client. Owns no per-call state, so one instance can serve any number
    of concurrent requests.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.base_url = normalise_base_url(base_url)
        self.ws_base_url = to_websocket_url(self.base_url)
        self._owns_client = http_client is None
        self.http = http_client or httpx.AsyncClient(timeout=timeout)

    def url(self, path: str) -> str:
        return str(self.base_url.join(path))

    def ws_url(self, path: str) -> str:
        return self.ws_base_url + path

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def send(self, method: str, url: str, authenticated: bool = True, **kwargs: Any) -> httpx.Response:
        """Sends one request; network failures surface as TransportError."""
        headers = kwargs.pop("headers", {}) or {}
        if authenticated:
            headers = {**self.auth_headers(), **headers}
        try:
            return await self.http.request(method, url, headers=headers, **kwargs)
        except httpx.InvalidURL as e:
            raise InvalidAddressError(f"Invalid request URL {url!r}: {e}", e) from e
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}", e) from e

    async def call(self, method: str, path: str, model: Type[M], **kwargs: Any) -> M:
        """
        Calls a service endpoint and unwraps the success envelope.
        Non-2xx answers become ApiError carrying the server's payload.
        """
        response = await self.send(method, self.url(path), **kwargs)

        if not response.is_success:
            body = error_body(response)
            logger.warning("tripo_api_error", method=method, path=path, status_code=response.status_code)
            raise ApiError(
                f"API request failed with status {response.status_code}: {body}",
                status_code=response.status_code,
                body=body,
            )

        return parse_data(response.content, model)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http.aclose()
