from typing import Any, Optional


class TripoError(Exception):
    """
    Base class for all SDK exceptions.
    Captures the original exception for debugging if needed.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


# --- Construction Failures ---


class MissingCredentialError(TripoError):
    """
    Raised when no API key is passed and TRIPO_API_KEY is not set.
    The client is never built, so no request has been sent.
    """

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "API key is missing. Pass api_key or set the TRIPO_API_KEY environment variable."
        )


class InvalidAddressError(TripoError):
    """
    Raised when the base URL (or a URL derived from it) cannot be parsed
    or does not use an http/https scheme.
    """

    pass


# --- Transport / Protocol Failures ---


class TransportError(TripoError):
    """
    Raised when the connection itself fails (DNS, refused, reset, TLS,
    WebSocket dropped). Never retried by the SDK.
    """

    pass


class ResponseShapeError(TripoError):
    """
    Raised when a response body is not JSON or does not match the
    expected envelope. No partial data is returned.
    """

    pass


class ApiError(TripoError):
    """
    Raised when the service answers with a non-2xx status.
    `body` is the decoded JSON payload when possible, otherwise the raw text.
    """

    def __init__(self, message: str, status_code: int, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500


# --- Input / Upload Failures ---


class InputNotFoundError(TripoError, FileNotFoundError):
    """
    Raised when a local path given as task input does not exist.
    """

    def __init__(self, path: str):
        TripoError.__init__(self, f"Image file not found: {path}")
        self.path = path


class UploadError(TripoError):
    """
    Raised when either upload strategy fails: multipart send,
    STS credential issuance or the object-storage put.
    """

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, original_error)
        self.status_code = status_code


class TaskTimeoutError(TripoError):
    """
    Raised by wait_for_task when a caller-supplied deadline passes before
    the task reaches a terminal state.
    """

    def __init__(self, task_id: str, timeout: float):
        super().__init__(f"Task {task_id} did not finish within {timeout} seconds")
        self.task_id = task_id
        self.timeout = timeout
