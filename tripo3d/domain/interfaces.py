from abc import ABC, abstractmethod
from pathlib import Path

from .models import FileDescriptor


class FileUploader(ABC):
    @abstractmethod
    async def upload(self, path: Path) -> FileDescriptor:
        """Uploads a local file and returns the descriptor to reference it in a task"""
        pass
