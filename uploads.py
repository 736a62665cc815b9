import logging
import os
import uuid
from typing import List

from fastapi import UploadFile

from errors import ValidationFailed

logger = logging.getLogger(__name__)


class ImageStorage:
    """Writes uploaded product images to disk and returns their public URIs."""

    def __init__(self, directory: str, max_bytes: int, max_files: int, url_prefix: str = "/uploads"):
        self.directory = directory
        self.max_bytes = max_bytes
        self.max_files = max_files
        self.url_prefix = url_prefix
        os.makedirs(directory, exist_ok=True)

    async def save_all(self, files: List[UploadFile]) -> List[str]:
        files = [f for f in files if f.filename]
        if len(files) > self.max_files:
            raise ValidationFailed(f"At most {self.max_files} images are allowed")

        payloads = []
        for f in files:
            if not (f.content_type or "").startswith("image/"):
                raise ValidationFailed("Only image files are allowed")
            data = await f.read()
            if len(data) > self.max_bytes:
                raise ValidationFailed(f"Image {f.filename} exceeds {self.max_bytes} bytes")
            payloads.append((f.filename, data))

        urls = []
        for filename, data in payloads:
            ext = os.path.splitext(filename)[1].lower()
            name = f"images-{uuid.uuid4().hex}{ext}"
            with open(os.path.join(self.directory, name), "wb") as out:
                out.write(data)
            urls.append(f"{self.url_prefix}/{name}")
        logger.info("Stored %d image(s)", len(urls))
        return urls
