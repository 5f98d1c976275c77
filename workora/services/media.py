import logging

import cloudinary
import cloudinary.uploader
from fastapi import Request

logger = logging.getLogger(__name__)


class MediaStore:
    """Cloudinary-backed asset storage used by the upload relay."""

    def __init__(self, *, cloud_name: str, api_key: str, api_secret: str):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret

    def connect(self) -> None:
        missing = [
            k for k, v in {
                "CLOUDINARY_CLOUD_NAME": self.cloud_name,
                "CLOUDINARY_API_KEY": self.api_key,
                "CLOUDINARY_API_SECRET": self.api_secret,
            }.items() if not v
        ]
        if missing:
            logger.warning("Cloudinary config missing vars: %s. Uploads will likely fail.", missing)

        cloudinary.config(
            cloud_name=self.cloud_name,
            api_key=self.api_key,
            api_secret=self.api_secret,
            secure=True,
        )

    def close(self) -> None:
        pass

    def replace(self, buffer: str, public_id: str | None = None) -> dict:
        """Delete `public_id` (if given), store `buffer`, return `{url, public_id}`."""
        if public_id:
            cloudinary.uploader.destroy(public_id)
            logger.info("Deleted previous asset %s", public_id)

        result = cloudinary.uploader.upload(buffer, resource_type="auto")
        return {"url": result["secure_url"], "public_id": result["public_id"]}


def get_media_store(request: Request) -> MediaStore:
    return request.app.state.media
