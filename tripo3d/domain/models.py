from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Dict, Generic, Optional, TypeVar
from urllib.parse import unquote, urlsplit

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

T = TypeVar("T")

DEFAULT_FILE_FORMAT = "jpeg"
FALLBACK_DOWNLOAD_NAME = "downloaded_model.bin"


# Standard Envelope
class ApiResponse(BaseModel, Generic[T]):
    """Every success body from the service nests its payload under `data`."""

    data: T


# --- Task State ---


class TaskState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"
    # Anything the service sends that we do not recognise. Never terminal.
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> "TaskState":
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return cls.UNKNOWN


def is_terminal(state: TaskState) -> bool:
    """Success and Failure are the only states a task never leaves."""
    return state in (TaskState.SUCCESS, TaskState.FAILURE)


# --- Task Results ---


class ResultFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str

    @property
    def file_name(self) -> str:
        """
        Last path segment of the URL, used as the local file name. Encoded
        separators are stripped so the name never leaves the destination.
        """
        segments = [s for s in urlsplit(self.url).path.split("/") if s]
        if not segments:
            return FALLBACK_DOWNLOAD_NAME
        name = PurePosixPath(unquote(segments[-1]).replace("\\", "/")).name
        if name in ("", ".", ".."):
            return FALLBACK_DOWNLOAD_NAME
        return name


class TaskResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    pbr_model: Optional[ResultFile] = None
    glb_model: Optional[ResultFile] = None

    def files(self) -> Dict[str, ResultFile]:
        """Present result files, pbr before glb."""
        ordered = {"pbr_model": self.pbr_model, "glb_model": self.glb_model}
        return {name: f for name, f in ordered.items() if f is not None}


class TaskOutput(BaseModel):
    model_config = ConfigDict(frozen=True)

    generated_image: Optional[str] = None
    rendered_image: Optional[str] = None


class TaskStatus(BaseModel):
    """One immutable observation of a task."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    task_id: str
    status: TaskState
    progress: int = Field(default=0, ge=0, le=100)
    task_type: Optional[str] = Field(default=None, alias="type")
    created_at: Optional[Any] = Field(
        default=None, validation_alias=AliasChoices("create_time", "created_at")
    )
    result: TaskResult = Field(default_factory=TaskResult)
    output: Optional[TaskOutput] = None

    @model_validator(mode="before")
    @classmethod
    def _null_result_is_empty(cls, data: Any) -> Any:
        # Pending tasks come back with "result": null
        if isinstance(data, dict) and "result" in data and data["result"] is None:
            data = {k: v for k, v in data.items() if k != "result"}
        return data

    @field_validator("status", mode="before")
    @classmethod
    def _normalise_status(cls, value: Any) -> TaskState:
        if isinstance(value, TaskState):
            return value
        return TaskState(value)

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    @property
    def is_success(self) -> bool:
        return self.status is TaskState.SUCCESS


class TaskResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    task_id: str


class Balance(BaseModel):
    """Available and frozen credit. No total is derived from the two."""

    model_config = ConfigDict(frozen=True)

    balance: float = Field(..., ge=0)
    frozen: float = Field(..., ge=0)


# --- File Descriptors ---


class StorageObject(BaseModel):
    model_config = ConfigDict(frozen=True)

    bucket: str
    key: str


class FileDescriptor(BaseModel):
    """
    A task input file. Exactly one of url, file_token or storage_object
    is set; `format` is the declared file type (wire field `type`).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    format: str = Field(default=DEFAULT_FILE_FORMAT, alias="type")
    url: Optional[str] = None
    file_token: Optional[str] = None
    storage_object: Optional[StorageObject] = Field(default=None, alias="object")

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "FileDescriptor":
        populated = [v for v in (self.url, self.file_token, self.storage_object) if v is not None]
        if len(populated) != 1:
            raise ValueError("FileDescriptor needs exactly one of url, file_token or object")
        return self

    @classmethod
    def from_url(cls, url: str, format: str = DEFAULT_FILE_FORMAT) -> "FileDescriptor":
        return cls(format=format, url=url)

    @classmethod
    def from_token(cls, file_token: str, format: str = DEFAULT_FILE_FORMAT) -> "FileDescriptor":
        return cls(format=format, file_token=file_token)

    @classmethod
    def from_storage(
        cls, bucket: str, key: str, format: str = DEFAULT_FILE_FORMAT
    ) -> "FileDescriptor":
        return cls(format=format, storage_object=StorageObject(bucket=bucket, key=key))

    def with_format(self, format: str) -> "FileDescriptor":
        return self.model_copy(update={"format": format})

    def to_wire(self) -> Dict[str, Any]:
        """JSON body for the `file` field. Absent variants are omitted, not null."""
        return self.model_dump(by_alias=True, exclude_none=True)


# --- Upload Payloads ---


class StandardUploadData(BaseModel):
    image_token: str


class StsToken(BaseModel):
    """Short-lived object-storage credentials for a single upload."""

    model_config = ConfigDict(frozen=True)

    sts_ak: str
    sts_sk: str
    session_token: str
    resource_bucket: str
    resource_uri: str


# --- Push Sequence Items ---


@dataclass(frozen=True)
class WatchEvent:
    """
    One item of a watch sequence: either a snapshot or the error that
    replaced it. A parse error does not end the sequence; a transport
    error is always the last item.
    """

    status: Optional[TaskStatus] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
