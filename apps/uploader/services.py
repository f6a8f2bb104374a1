import base64
import binascii
import os
import re
import time
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

import structlog
from azure.core.exceptions import AzureError
from azure.storage.blob import ContainerClient, ContentSettings

from config.blob import get_container_client

logger = structlog.get_logger(__name__)

_WHITESPACE = re.compile(r'\s+')


class BlobUploadError(IOError):
    """Raised when the backend rejects or fails an upload."""


def sanitize_blob_name(name: str) -> str:
    return _WHITESPACE.sub('-', name)


def generate_blob_name() -> str:
    return f"uploaded-{int(time.time() * 1000)}"


def decode_base64_content(value: str) -> bytes:
    # unpadded input is accepted; a length of 1 mod 4 is never valid base64
    if len(value) % 4 in (2, 3):
        value += '=' * (-len(value) % 4)
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(str(e)) from e


class BlobService:
    """Blob operations against a single container.

    Uploads raise on failure so callers can report the reason. Listing,
    deleting, downloading and reading are best effort: backend errors are
    logged and reported as an empty, False or None result.
    """

    def __init__(self, container_client: ContainerClient):
        self.container_client = container_client

    def upload_file(self, local_path: str, blob_name: Optional[str] = None) -> str:
        logger.info("upload_file", local_path=local_path)

        if not local_path or not local_path.strip():
            raise ValueError('Local file path cannot be empty')

        path = Path(local_path)
        if not path.exists():
            raise ValueError(f'File does not exist: {local_path}')
        if not path.is_file() or not os.access(path, os.R_OK):
            raise ValueError(f'Cannot read file: {local_path}')

        if not blob_name or not blob_name.strip():
            blob_name = path.name

        blob_client = self.container_client.get_blob_client(blob_name)
        try:
            with open(path, 'rb') as data:
                blob_client.upload_blob(data, overwrite=True)
        except (AzureError, OSError) as e:
            logger.error("upload_file_failed", blob_name=blob_name, error=str(e), exc_info=True)
            raise BlobUploadError(f'Failed to upload file to Azure Blob Storage: {e}') from e

        logger.info("upload_file_complete", blob_name=blob_name)
        return blob_client.url

    def upload_stream(self, data: Union[bytes, BinaryIO], blob_name: str,
                      content_type: Optional[str] = None) -> str:
        logger.info("upload_stream", blob_name=blob_name, content_type=content_type)

        if not blob_name or not blob_name.strip():
            raise ValueError('Blob name cannot be empty for stream upload.')

        content_settings = None
        if content_type and content_type.strip():
            content_settings = ContentSettings(content_type=content_type)

        blob_client = self.container_client.get_blob_client(blob_name)
        try:
            blob_client.upload_blob(data, overwrite=True, content_settings=content_settings)
        except AzureError as e:
            logger.error("upload_stream_failed", blob_name=blob_name, error=str(e), exc_info=True)
            raise BlobUploadError(f'Failed to upload stream to Azure Blob Storage: {e}') from e

        logger.info("upload_stream_complete", blob_name=blob_name)
        return blob_client.url

    def list_blobs(self) -> List[str]:
        container = self.container_client.container_name
        logger.info("list_blobs", container=container)
        try:
            names = [blob.name for blob in self.container_client.list_blobs()]
        except AzureError as e:
            # TODO: surface backend failures separately from an empty container
            logger.error("list_blobs_failed", container=container, error=str(e), exc_info=True)
            return []
        logger.info("list_blobs_complete", container=container, count=len(names))
        return names

    def delete_blob(self, blob_name: Optional[str]) -> bool:
        logger.info("delete_blob", blob_name=blob_name)
        if not blob_name or not blob_name.strip():
            logger.error("delete_blob_invalid", reason="Blob name cannot be empty")
            return False

        try:
            blob_client = self.container_client.get_blob_client(blob_name)
            if not blob_client.exists():
                logger.warning("blob_not_found", blob_name=blob_name)
                return False
            blob_client.delete_blob()
        except AzureError as e:
            logger.error("delete_blob_failed", blob_name=blob_name, error=str(e), exc_info=True)
            return False

        logger.info("delete_blob_complete", blob_name=blob_name)
        return True

    def download_blob(self, blob_name: Optional[str], destination_path: Optional[str]) -> bool:
        logger.info("download_blob", blob_name=blob_name, destination_path=destination_path)
        if not blob_name or not blob_name.strip() or not destination_path or not destination_path.strip():
            logger.error("download_blob_invalid", reason="Blob name and destination path cannot be empty")
            return False

        try:
            blob_client = self.container_client.get_blob_client(blob_name)
            if not blob_client.exists():
                logger.warning("blob_not_found", blob_name=blob_name)
                return False

            destination = Path(destination_path)
            destination.parent.mkdir(parents=True, exist_ok=True)
            with open(destination, 'wb') as f:
                try:
                    blob_client.download_blob().readinto(f)
                except AzureError:
                    f.close()
                    # drop the truncated file
                    destination.unlink(missing_ok=True)
                    raise
        except (AzureError, OSError) as e:
            logger.error("download_blob_failed", blob_name=blob_name, error=str(e), exc_info=True)
            return False

        logger.info("download_blob_complete", blob_name=blob_name, destination_path=destination_path)
        return True

    def get_blob_content(self, blob_name: Optional[str]) -> Optional[str]:
        logger.info("get_blob_content", blob_name=blob_name)
        if not blob_name or not blob_name.strip():
            logger.error("get_blob_content_invalid", reason="Blob name cannot be empty")
            return None

        try:
            blob_client = self.container_client.get_blob_client(blob_name)
            if not blob_client.exists():
                logger.warning("blob_not_found", blob_name=blob_name)
                return None
            data = blob_client.download_blob().readall()
        except AzureError as e:
            logger.error("get_blob_content_failed", blob_name=blob_name, error=str(e), exc_info=True)
            return None

        return data.decode('utf-8', errors='replace')


def get_blob_service() -> BlobService:
    """FastAPI dependency bound to the process-wide container client."""
    return BlobService(get_container_client())
