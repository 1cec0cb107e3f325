"""Editor image upload endpoint."""

from fastapi import APIRouter, File, UploadFile

from ..core.config import settings
from ..schemas.document import ImageUploadResponse
from ..services.uploads import UploadedFile, UploadStorage

router = APIRouter(prefix="/api/upload", tags=["uploads"])


@router.post("/image", response_model=ImageUploadResponse, status_code=201)
def upload_image(file: UploadFile = File(...)):
    """Store one image and return the URL it is served from."""
    upload = UploadedFile(filename=file.filename, content_type=file.content_type, data=file.file.read())
    url = UploadStorage(settings.upload_dir).save_editor_image(upload)
    return ImageUploadResponse(url=url)
