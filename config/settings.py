import os

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


AZURE_STORAGE_CONNECTION_STRING = os.getenv('AZURE_STORAGE_CONNECTION_STRING', '')
AZURE_STORAGE_CONTAINER_NAME = os.getenv('AZURE_STORAGE_CONTAINER_NAME', 'uploads')

SERVER_HOST = os.getenv('SERVER_HOST', '0.0.0.0')
SERVER_PORT = _int_env('SERVER_PORT', 8080)

# upper bound on request bodies, enforced by MaxUploadSizeMiddleware
MAX_UPLOAD_SIZE = _int_env('MAX_UPLOAD_SIZE', 10 * 1024 * 1024)

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_JSON = os.getenv('LOG_JSON', 'false').lower() in ('1', 'true', 'yes')

DEFAULT_CONTENT_TYPE = 'application/octet-stream'
