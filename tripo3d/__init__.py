"""Async client for the Tripo3D 3D-model generation API."""

from .client import TripoClient
from .core.config import Settings
from .core.dependencies import UploadStrategy
from .core.exceptions import (
    ApiError,
    InputNotFoundError,
    InvalidAddressError,
    MissingCredentialError,
    ResponseShapeError,
    TaskTimeoutError,
    TransportError,
    TripoError,
    UploadError,
)
from .core.logging import configure_logging
from .domain.models import (
    Balance,
    FileDescriptor,
    ResultFile,
    StorageObject,
    TaskOutput,
    TaskResponse,
    TaskResult,
    TaskState,
    TaskStatus,
    WatchEvent,
    is_terminal,
)

__version__ = "0.4.0"

__all__ = [
    "ApiError",
    "Balance",
    "FileDescriptor",
    "InputNotFoundError",
    "InvalidAddressError",
    "MissingCredentialError",
    "ResponseShapeError",
    "ResultFile",
    "Settings",
    "StorageObject",
    "TaskOutput",
    "TaskResponse",
    "TaskResult",
    "TaskState",
    "TaskStatus",
    "TaskTimeoutError",
    "TransportError",
    "TripoClient",
    "TripoError",
    "UploadError",
    "UploadStrategy",
    "WatchEvent",
    "configure_logging",
    "is_terminal",
]
