"""
Abstract base class for image providers
"""
from abc import ABC, abstractmethod
from typing import Optional


class ImageProvider(ABC):
    """Abstract interface for image storage providers

    Images are addressed by a storage key (a Cloudinary public_id or a path
    relative to the local media root).
    """

    @abstractmethod
    def upload_image(self, image_data: bytes, metadata: Optional[dict] = None) -> Optional[str]:
        """
        Upload an image to the provider.

        Args:
            image_data: Image bytes
            metadata: Optional metadata. Recognised keys: ``public_id`` (full
                storage key), ``folder``, ``tags``, ``content_type``

        Returns:
            Storage key if successful, None otherwise
        """
        pass

    @abstractmethod
    def delete_image(self, image_id: str) -> bool:
        """
        Delete an image from the provider.

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    def get_image_url(self, image_id: str, variant: Optional[str] = None) -> str:
        """
        Get the public URL for an image.

        Args:
            image_id: Storage key
            variant: Optional variant/transformation name
        """
        pass

    @abstractmethod
    def download_image(self, image_id: str) -> Optional[bytes]:
        """
        Fetch the stored bytes for an image.

        Returns:
            Image bytes, or None when the image does not exist
        """
        pass

