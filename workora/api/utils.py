import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..services.media import MediaStore, get_media_store
from ..utils.error_handlers import UpstreamError, ValidationError
from ..utils.validation import clean_optional

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/utils", tags=["Utils"])


class UploadRequest(BaseModel):
    buffer: str | None = None  # data URI produced by the calling service
    public_id: str | None = None  # previous asset to delete first


@router.post("/upload")
def upload_file(
    payload: UploadRequest,
    media: MediaStore = Depends(get_media_store),
):
    if not payload.buffer:
        raise ValidationError("File buffer is required")

    try:
        result = media.replace(payload.buffer, public_id=clean_optional(payload.public_id))
    except Exception as e:
        logger.error("Media host upload failed: %s", e)
        raise UpstreamError(str(e) or "Upload failed") from None

    return {"url": result["url"], "public_id": result["public_id"]}
