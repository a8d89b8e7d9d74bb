"""File uploads (product images, documents)"""

import mimetypes
from pathlib import Path
from typing import Optional

from ..marketplace_backend_client import MarketplaceBackendClient, unwrap_data
from ..models.profile import UploadedFile
from ..models.result import Err, Ok, Result
from ..protocol.errors import ErrorHandler, MarketplaceError, ValidationError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class FileService:

    def __init__(self, backend: MarketplaceBackendClient):
        self.backend = backend

    async def upload(self, filename: str, content: bytes, mime_type: Optional[str] = None) -> Result:
        if not content:
            return Err("File is empty", ValidationError("File is empty"))

        mime_type = mime_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        try:
            response = await self.backend.upload_file(filename, content, mime_type)
        except MarketplaceError as e:
            logger.error(f"[Upload] {filename} failed: {e}")
            return Err(ErrorHandler.user_message(e, "Failed to upload file"), e)

        uploaded = UploadedFile.from_dict(unwrap_data(response, {}))
        logger.info(f"[Upload] {filename} -> {uploaded.url}")
        return Ok(uploaded)

    async def upload_path(self, path: str) -> Result:
        file_path = Path(path)
        if not file_path.is_file():
            return Err(f"File not found: {path}", ValidationError(f"File not found: {path}"))
        return await self.upload(file_path.name, file_path.read_bytes())
