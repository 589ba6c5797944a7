"""
Cloudinary image provider implementation
"""
import cloudinary
import cloudinary.uploader
import httpx
import logging
import os
from typing import Optional
from storefront.services.image_providers.base import ImageProvider
from storefront.config import settings

logger = logging.getLogger(__name__)


class CloudinaryImageProvider(ImageProvider):
    """Cloudinary implementation of ImageProvider"""

    def __init__(self):
        self.cloud_name = settings.cloudinary_cloud_name
        self.api_key = settings.cloudinary_api_key
        self.api_secret = settings.cloudinary_api_secret

        if not self.is_configured:
            logger.warning("Cloudinary not fully configured (missing cloud_name, api_key, or api_secret)")
        else:
            cloudinary.config(
                cloud_name=self.cloud_name,
                api_key=self.api_key,
                api_secret=self.api_secret,
                secure=True
            )

    @property
    def is_configured(self) -> bool:
        return all([self.cloud_name, self.api_key, self.api_secret])

    def upload_image(self, image_data: bytes, metadata: Optional[dict] = None) -> Optional[str]:
        """
        Upload an image to Cloudinary.
        Returns the public_id if successful, None otherwise.
        """
        if not self.is_configured:
            logger.warning("Cloudinary not configured")
            return None

        metadata = metadata or {}
        upload_options = {"resource_type": "image"}
        if "public_id" in metadata:
            # Cloudinary stores the format separately from the public_id
            upload_options["public_id"] = os.path.splitext(metadata["public_id"])[0]
        elif "folder" in metadata:
            upload_options["folder"] = metadata["folder"]
        if "tags" in metadata:
            upload_options["tags"] = metadata["tags"]

        try:
            result = cloudinary.uploader.upload(image_data, **upload_options)
        except Exception as e:
            logger.error(f"Failed to upload image to Cloudinary: {e}", exc_info=True)
            return None

        public_id = result.get("public_id")
        if not public_id:
            logger.error(f"Cloudinary upload succeeded but no public_id returned: {result}")
            return None

        logger.info(f"Successfully uploaded image to Cloudinary: {public_id}")
        return public_id

    def delete_image(self, image_id: str) -> bool:
        if not self.is_configured:
            logger.warning("Cloudinary not configured")
            return False

        try:
            result = cloudinary.uploader.destroy(image_id, resource_type="image")
        except Exception as e:
            logger.error(f"Failed to delete image from Cloudinary: {e}", exc_info=True)
            return False

        if result.get("result") == "ok":
            logger.info(f"Successfully deleted image from Cloudinary: {image_id}")
            return True
        logger.error(f"Cloudinary delete failed for {image_id}: {result}")
        return False

    def get_image_url(self, image_id: str, variant: Optional[str] = None) -> str:
        """
        Get Cloudinary CDN URL for an image.
        variant can be a named transformation.
        """
        try:
            if variant:
                return cloudinary.CloudinaryImage(image_id).build_url(transformation=variant)
            return cloudinary.CloudinaryImage(image_id).build_url()
        except Exception as e:
            logger.error(f"Failed to generate Cloudinary URL for {image_id}: {e}")
            return f"https://res.cloudinary.com/{self.cloud_name}/image/upload/{image_id}"

    def download_image(self, image_id: str) -> Optional[bytes]:
        url = self.get_image_url(image_id)
        try:
            response = httpx.get(url, timeout=30.0, follow_redirects=True)
            if response.status_code == 404:
                return None
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to download {image_id} from Cloudinary: {e}", exc_info=True)
            raise RuntimeError(f"Failed to download {image_id}")
        return response.content
