from typing import List

from fastapi import APIRouter, Depends, File, UploadFile

from app.features.auth.models.user import User
from app.features.auth.routes.auth import get_current_user
from app.features.upload.schemas.upload import DeleteImageRequest
from app.features.upload.services.upload_service import UploadedFile, UploadService
from app.platform.config import Settings, get_settings
from app.platform.response import api_response
from app.platform.storage.object_storage import ObjectStorage, get_object_storage

router = APIRouter(prefix="/upload", tags=["Upload"])


def get_upload_service(
    storage: ObjectStorage = Depends(get_object_storage),
    settings: Settings = Depends(get_settings),
) -> UploadService:
    return UploadService(storage, settings)


async def read_upload(file: UploadFile) -> UploadedFile:
    data = await file.read()
    return UploadedFile(
        filename=file.filename or "",
        content_type=file.content_type or "",
        data=data,
    )


@router.post("/image", response_model=dict, summary="Upload one image")
async def upload_image(
    image: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    upload_service: UploadService = Depends(get_upload_service),
):
    upload = await read_upload(image)
    result = await upload_service.upload_image(upload.filename, upload.content_type, upload.data)
    return api_response(data=result, message="上传成功")


@router.post("/images", response_model=dict, summary="Upload several images")
async def upload_images(
    images: List[UploadFile] = File(...),
    current_user: User = Depends(get_current_user),
    upload_service: UploadService = Depends(get_upload_service),
):
    uploads = [await read_upload(image) for image in images]
    results = await upload_service.upload_images(uploads)
    return api_response(data=results, message="上传成功")


@router.delete("/image", response_model=dict, summary="Delete an uploaded image")
async def delete_image(
    request: DeleteImageRequest,
    current_user: User = Depends(get_current_user),
    upload_service: UploadService = Depends(get_upload_service),
):
    await upload_service.delete_image(request.image_url)
    return api_response(message="删除成功")
