import io
import os
import uuid
from typing import Optional

import aiofiles
import docx
import fitz  # PyMuPDF

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger()

PDF_TYPE = "application/pdf"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_TYPE = "text/plain"


class FileService:
    """Local storage and text extraction for uploaded documents"""

    def __init__(self, upload_dir: Optional[str] = None):
        self.upload_dir = upload_dir or settings.UPLOAD_DIR

    def generate_file_key(self, user_id: uuid.UUID, original_name: str) -> str:
        _, ext = os.path.splitext(original_name)
        return f"resumes/{user_id}/{uuid.uuid4().hex}{ext.lower()}"

    def path_for(self, file_key: str) -> str:
        return os.path.join(self.upload_dir, file_key)

    async def save(self, file_key: str, data: bytes) -> str:
        path = self.path_for(file_key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)
        return path

    async def read(self, file_key: str) -> bytes:
        async with aiofiles.open(self.path_for(file_key), "rb") as f:
            return await f.read()

    def delete(self, file_key: str) -> None:
        path = self.path_for(file_key)
        if os.path.exists(path):
            os.remove(path)

    def extract_text(self, data: bytes, mime_type: str) -> str:
        """Extract plain text; unreadable documents yield an empty string"""
        try:
            if mime_type == PDF_TYPE:
                with fitz.open(stream=data, filetype="pdf") as doc:
                    return "\n".join(page.get_text() for page in doc).strip()
            if mime_type == DOCX_TYPE:
                document = docx.Document(io.BytesIO(data))
                return "\n".join(p.text for p in document.paragraphs).strip()
            if mime_type == TEXT_TYPE:
                return data.decode("utf-8", errors="replace").strip()
        except Exception as e:
            logger.error(f"Text extraction failed for {mime_type}: {e}")
        return ""

    @staticmethod
    def looks_like(data: bytes, mime_type: str) -> bool:
        """Check the leading bytes agree with the declared type"""
        if mime_type == PDF_TYPE:
            return data.startswith(b"%PDF")
        if mime_type == DOCX_TYPE:
            return data.startswith(b"PK")
        return True


file_service = FileService()
