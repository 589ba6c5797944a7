"""
Local filesystem image provider, used for development and tests.

Files are written under ``settings.local_storage_dir`` and served by the
application's ``/media`` static mount.
"""
import logging
import os
import uuid
from pathlib import Path
from typing import Optional
from storefront.services.image_providers.base import ImageProvider
from storefront.config import settings

logger = logging.getLogger(__name__)


class LocalImageProvider(ImageProvider):

    def __init__(self, root: Optional[str] = None, base_url: Optional[str] = None):
        self.root = Path(root or settings.local_storage_dir).resolve()
        self.base_url = (base_url or settings.public_base_url).rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, image_id: str) -> Path:
        path = (self.root / image_id.lstrip("/")).resolve()
        if self.root not in path.parents:
            raise ValueError(f"Invalid storage path: {image_id}")
        return path

    def upload_image(self, image_data: bytes, metadata: Optional[dict] = None) -> Optional[str]:
        metadata = metadata or {}
        key = metadata.get("public_id")
        if not key:
            key = f"{metadata.get('folder', 'uploads')}/{uuid.uuid4().hex}"

        try:
            path = self._resolve(key)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(image_data)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to store image {key}: {e}", exc_info=True)
            return None

        logger.info(f"Stored image at {path}")
        return key

    def delete_image(self, image_id: str) -> bool:
        try:
            path = self._resolve(image_id)
            os.remove(path)
        except FileNotFoundError:
            logger.warning(f"Image not found for delete: {image_id}")
            return False
        except (OSError, ValueError) as e:
            logger.error(f"Failed to delete image {image_id}: {e}", exc_info=True)
            return False
        logger.info(f"Deleted image {image_id}")
        return True

    def get_image_url(self, image_id: str, variant: Optional[str] = None) -> str:
        # Variants are not supported locally; the original is always served
        return f"{self.base_url}/media/{image_id.lstrip('/')}"

    def download_image(self, image_id: str) -> Optional[bytes]:
        path = self._resolve(image_id)
        if not path.is_file():
            return None
        return path.read_bytes()
