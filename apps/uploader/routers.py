
# uploader/routers.py
from fastapi import APIRouter
from utils.response_wrapper import response_wrapper
from .views import upload_file, upload_base64, list_blobs, delete_blob, download_blob, get_blob_content

router = APIRouter(prefix="/api/files", tags=["files"])

router.post("/upload")(response_wrapper(upload_file))
router.post("/upload/base64")(response_wrapper(upload_base64))
router.get("/list")(response_wrapper(list_blobs))
router.get("/download")(response_wrapper(download_blob))
router.get("/content/{blob_name}")(response_wrapper(get_blob_content))
router.delete("/{blob_name}")(response_wrapper(delete_blob))
