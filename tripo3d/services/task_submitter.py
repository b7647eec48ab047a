import json
from pathlib import Path
from typing import Union

import structlog

from ..connections.tripo_connection import TripoConnection
from ..core.exceptions import InputNotFoundError
from ..core.files import guess_mime_type
from ..domain.models import FileDescriptor, TaskResponse

logger = structlog.get_logger()

TEXT_TO_MODEL = "text_to_model"
IMAGE_TO_MODEL = "image_to_model"


class TaskSubmitter:
    """
    Builds the job-creation requests. All of them go to `POST task` and
    come back as `{"data": {"task_id": ...}}`.
    """

    def __init__(self, connection: TripoConnection):
        self.connection = connection

    async def text_to_model(self, prompt: str) -> TaskResponse:
        logger.info("submitting_generation_task", type=TEXT_TO_MODEL, prompt=prompt)
        payload = {"type": TEXT_TO_MODEL, "prompt": prompt}
        response = await self.connection.call("POST", "task", TaskResponse, json=payload)
        logger.info("task_created", task_id=response.task_id)
        return response

    async def image_to_model(self, file: FileDescriptor) -> TaskResponse:
        logger.info("submitting_generation_task", type=IMAGE_TO_MODEL, file_type=file.format)
        payload = {"type": IMAGE_TO_MODEL, "file": file.to_wire()}
        response = await self.connection.call("POST", "task", TaskResponse, json=payload)
        logger.info("task_created", task_id=response.task_id)
        return response

    async def image_to_model_direct(self, image_path: Union[str, Path]) -> TaskResponse:
        """
        Quick variant: sends the image inline with the job request,
        skipping the upload/descriptor step.
        """
        path = Path(image_path)
        if not path.is_file():
            raise InputNotFoundError(str(path))

        logger.info("submitting_generation_task", type=IMAGE_TO_MODEL, filename=path.name, inline=True)
        with path.open("rb") as f:
            files = {
                "data": (None, json.dumps({"type": IMAGE_TO_MODEL}), "application/json"),
                "file": (path.name, f, guess_mime_type(path)),
            }
            response = await self.connection.call("POST", "task", TaskResponse, files=files)

        logger.info("task_created", task_id=response.task_id)
        return response
