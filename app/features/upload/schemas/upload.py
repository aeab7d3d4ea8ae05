from pydantic import BaseModel


class ImageUploadResult(BaseModel):
    image_url: str
    thumbnail_url: str
    size: int
    width: int
    height: int


class DeleteImageRequest(BaseModel):
    image_url: str
