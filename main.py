from contextlib import asynccontextmanager
from pathlib import Path

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles

from apps.uploader.routers import router as uploader_router
from config.blob import StorageInitError, close_container_client, init_container_client
from config.logging import configure_logging
from config.middleware import MaxUploadSizeMiddleware, RequestLoggingMiddleware
from config.settings import AZURE_STORAGE_CONTAINER_NAME, MAX_UPLOAD_SIZE, SERVER_HOST, SERVER_PORT
from utils.response_wrapper import error_response

STATIC_DIR = Path(__file__).resolve().parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger = structlog.get_logger()
    # raises StorageInitError and aborts startup when the account is unreachable
    init_container_client()
    logger.info("application_startup", container=AZURE_STORAGE_CONTAINER_NAME)

    yield

    close_container_client()
    logger.info("application_shutdown")


app = FastAPI(title="Blob Gateway", version="1.0.0", lifespan=lifespan)

app.add_middleware(MaxUploadSizeMiddleware, max_size=MAX_UPLOAD_SIZE)
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return error_response(400, f"Invalid request: {errors}")


# raised while resolving the service dependency, outside response_wrapper
@app.exception_handler(StorageInitError)
async def storage_init_exception_handler(request: Request, exc: StorageInitError):
    structlog.get_logger().error("storage_unavailable", path=request.url.path, error=str(exc))
    return error_response(500, f"Storage is not available: {exc}")


@app.get("/health", tags=["health"])
async def health_check():
    return {"status": "ok"}


app.include_router(uploader_router)

# last, so the API routes above take precedence
app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")


if __name__ == "__main__":
    uvicorn.run("main:app", host=SERVER_HOST, port=SERVER_PORT)
