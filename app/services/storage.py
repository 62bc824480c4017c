# app/services/storage.py
import logging
import uuid
from typing import List, Optional

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings
from fastapi import UploadFile

from app.core.config import settings
from app.core.errors import NotFoundError
from app.services.files import UploadedFile

logger = logging.getLogger(__name__)


class BlobStorage:
    """Azure blob container holding note attachments and profile images."""

    def __init__(self, connection_string: str, container: str):
        self.connection_string = connection_string
        self.container = container
        self._client: Optional[BlobServiceClient] = None

    @property
    def client(self) -> BlobServiceClient:
        if self._client is None:
            if not self.connection_string:
                raise RuntimeError("AZURE_STORAGE_CONNECTION_STRING is missing")
            if not self.container:
                raise RuntimeError("AZURE_CONTAINER_NAME is missing")
            self._client = BlobServiceClient.from_connection_string(self.connection_string)
            try:
                self._client.create_container(self.container)
            except ResourceExistsError:
                pass
        return self._client

    def upload(self, data: bytes, folder: str, filename: str, content_type: Optional[str] = None) -> UploadedFile:
        blob_filename = f"{uuid.uuid4().hex}-{filename}"
        blob_client = self.client.get_blob_client(container=self.container, blob=f"{folder}/{blob_filename}")
        content_settings = ContentSettings(content_type=content_type) if content_type else None
        blob_client.upload_blob(data, overwrite=True, content_settings=content_settings)
        return UploadedFile(
            destination=folder,
            filename=blob_filename,
            mimetype=content_type or "application/octet-stream",
            size=len(data),
        )

    def url_for(self, path: str) -> str:
        return self.client.get_blob_client(container=self.container, blob=path).url

    def download(self, path: str) -> bytes:
        blob_client = self.client.get_blob_client(container=self.container, blob=path)
        try:
            return blob_client.download_blob().readall()
        except ResourceNotFoundError:
            raise NotFoundError("File not found")

    def remove(self, public_id: Optional[str]) -> None:
        if not public_id:
            return
        try:
            self.client.delete_blob(self.container, public_id)
        except ResourceNotFoundError:
            logger.info("blob %s already gone", public_id)


_storage = BlobStorage(settings.AZURE_STORAGE_CONNECTION_STRING, settings.AZURE_CONTAINER_NAME)


def get_storage() -> BlobStorage:
    return _storage


def save_uploads(storage: BlobStorage, files: Optional[List[UploadFile]], folder: str) -> List[UploadedFile]:
    """Upload pipeline run by routers before the handler logic sees the request.

    Blocking; only called from sync routes.
    """
    saved: List[UploadedFile] = []
    for f in files or []:
        if not f.filename:
            continue
        data = f.file.read()
        saved.append(storage.upload(data, folder=folder, filename=f.filename, content_type=f.content_type))
    return saved
