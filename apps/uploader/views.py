from typing import Optional

import structlog
from fastapi import Depends, File, Form, Query, UploadFile

from apps.uploader.schema import Base64UploadRequest
from apps.uploader.services import (BlobService, BlobUploadError, decode_base64_content, generate_blob_name,
                                    get_blob_service, sanitize_blob_name)
from config.settings import DEFAULT_CONTENT_TYPE
from utils.response_wrapper import ApiError

logger = structlog.get_logger(__name__)


def _upload_succeeded(blob_url: str, blob_name: str, content_type: Optional[str], size: int) -> dict:
    return {
        'success': True,
        'message': 'File uploaded successfully.',
        'blobUrl': blob_url,
        'blobName': blob_name,
        'contentType': content_type,
        'size': size,
    }


def upload_file(file: UploadFile = File(...),
                blob_name: Optional[str] = Form(None, alias='blobName'),
                service: BlobService = Depends(get_blob_service)):
    content = file.file.read()
    logger.info("upload_request", filename=file.filename, size=len(content))

    if not content:
        logger.warning("upload_empty_file", filename=file.filename)
        raise ApiError(400, 'File cannot be empty.')

    effective_name = blob_name.strip() if blob_name and blob_name.strip() else (file.filename or '')
    effective_name = sanitize_blob_name(effective_name)

    try:
        blob_url = service.upload_stream(content, effective_name, file.content_type)
    except ValueError as e:
        logger.error("upload_invalid", filename=file.filename, error=str(e))
        raise ApiError(400, str(e))
    except BlobUploadError as e:
        raise ApiError(500, f'Failed to upload file: {e}')

    logger.info("upload_complete", blob_name=effective_name, blob_url=blob_url)
    return 200, _upload_succeeded(blob_url, effective_name, file.content_type, len(content))


def upload_base64(data: Base64UploadRequest, service: BlobService = Depends(get_blob_service)):
    logger.info("upload_base64_request", file_name=data.file_name)

    if not data.base64_content or not data.base64_content.strip():
        logger.warning("upload_base64_empty", file_name=data.file_name)
        raise ApiError(400, 'Base64 content cannot be empty.')

    try:
        content = decode_base64_content(data.base64_content)
    except ValueError as e:
        logger.error("upload_base64_invalid", file_name=data.file_name, error=str(e))
        raise ApiError(400, f'Invalid base64 content: {e}')

    effective_name = data.file_name if data.file_name and data.file_name.strip() else generate_blob_name()
    effective_name = sanitize_blob_name(effective_name)
    content_type = data.content_type if data.content_type and data.content_type.strip() else DEFAULT_CONTENT_TYPE

    try:
        blob_url = service.upload_stream(content, effective_name, content_type)
    except ValueError as e:
        raise ApiError(400, str(e))
    except BlobUploadError as e:
        raise ApiError(500, f'Failed to upload file: {e}')

    logger.info("upload_base64_complete", blob_name=effective_name, size=len(content))
    return 200, _upload_succeeded(blob_url, effective_name, content_type, len(content))


def list_blobs(service: BlobService = Depends(get_blob_service)):
    blobs = service.list_blobs()
    return 200, {'success': True, 'blobs': blobs, 'count': len(blobs)}


def delete_blob(blob_name: str, service: BlobService = Depends(get_blob_service)):
    if not service.delete_blob(blob_name):
        raise ApiError(404, 'Failed to delete blob or blob does not exist')
    return 200, {'success': True, 'message': 'Blob deleted successfully'}


def download_blob(blob_name: Optional[str] = Query(None, alias='blobName'),
                  destination_path: Optional[str] = Query(None, alias='destinationPath'),
                  service: BlobService = Depends(get_blob_service)):
    if not service.download_blob(blob_name, destination_path):
        raise ApiError(404, 'Failed to download blob or blob does not exist')
    return 200, {
        'success': True,
        'message': 'Blob downloaded successfully',
        'destinationPath': destination_path,
    }


def get_blob_content(blob_name: str, service: BlobService = Depends(get_blob_service)):
    content = service.get_blob_content(blob_name)
    if content is None:
        raise ApiError(404, 'Failed to get blob content or blob does not exist')
    return 200, {'success': True, 'blobName': blob_name, 'content': content}
