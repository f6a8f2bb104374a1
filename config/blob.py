"""Azure Blob Storage client bootstrap.

The container client is built once at startup and shared by every request.
Startup is aborted when the account cannot be reached or the container
cannot be created.
"""
from typing import Optional

import structlog
from azure.core.exceptions import AzureError, ResourceExistsError
from azure.storage.blob import BlobServiceClient, ContainerClient

from config.settings import AZURE_STORAGE_CONNECTION_STRING, AZURE_STORAGE_CONTAINER_NAME

logger = structlog.get_logger(__name__)

_container_client: Optional[ContainerClient] = None


class StorageInitError(RuntimeError):
    """Raised when the storage account or container cannot be initialized."""


def build_container_client(connection_string: str, container_name: str) -> ContainerClient:
    if not connection_string:
        raise StorageInitError('AZURE_STORAGE_CONNECTION_STRING is not set')
    if not container_name:
        raise StorageInitError('AZURE_STORAGE_CONTAINER_NAME is not set')

    try:
        service_client = BlobServiceClient.from_connection_string(connection_string)
        container_client = service_client.get_container_client(container_name)
        if not container_client.exists():
            logger.info("container_create", container=container_name)
            try:
                container_client.create_container()
            except ResourceExistsError:
                # created by another process between exists() and create
                pass
    except (AzureError, ValueError) as e:
        logger.error("container_init_failed", container=container_name, error=str(e))
        raise StorageInitError(f"Unable to initialize container '{container_name}': {e}") from e

    logger.info("container_ready", container=container_name)
    return container_client


def init_container_client(connection_string: str = AZURE_STORAGE_CONNECTION_STRING,
                          container_name: str = AZURE_STORAGE_CONTAINER_NAME) -> ContainerClient:
    global _container_client
    if _container_client is None:
        _container_client = build_container_client(connection_string, container_name)
    return _container_client


def get_container_client() -> ContainerClient:
    if _container_client is None:
        raise StorageInitError('Container client has not been initialized')
    return _container_client


def close_container_client() -> None:
    global _container_client
    if _container_client is not None:
        _container_client.close()
        _container_client = None
