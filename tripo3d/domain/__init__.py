from .interfaces import FileUploader
from .models import (
    ApiResponse,
    Balance,
    FileDescriptor,
    ResultFile,
    StorageObject,
    StsToken,
    TaskOutput,
    TaskResponse,
    TaskResult,
    TaskState,
    TaskStatus,
    WatchEvent,
    is_terminal,
)

__all__ = [
    "ApiResponse",
    "Balance",
    "FileDescriptor",
    "FileUploader",
    "ResultFile",
    "StorageObject",
    "StsToken",
    "TaskOutput",
    "TaskResponse",
    "TaskResult",
    "TaskState",
    "TaskStatus",
    "WatchEvent",
    "is_terminal",
]
