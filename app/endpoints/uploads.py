from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse

from app.core.config import settings
from app.schemas.response import ImageUploadResponse
from app.schemas.user import UserContext
from app.services.upload import upload_service
from app.utils import deps

api_router = APIRouter()
router = APIRouter()


@api_router.post("/uploads/images", response_model=ImageUploadResponse)
async def upload_image(
    image: UploadFile = File(...),
    context: UserContext = Depends(deps.require_instructor),
):
    # Read one byte past the limit so oversized files are detected without loading all of them
    data = await image.read(settings.MAX_UPLOAD_SIZE + 1)
    filename = upload_service.save_image(data, original_name=image.filename or "")
    return ImageUploadResponse(
        url=upload_service.public_url(filename),
        message="Image uploaded successfully",
    )


@router.get("/uploads/images/{filename}")
def serve_image(filename: str):
    path, media_type = upload_service.resolve_image(filename)
    return FileResponse(path, media_type=media_type)
