from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import List, Optional, Tuple
from uuid import UUID
from datetime import datetime, timezone
import logging
import secrets
import string
import time

from storefront.config import settings
from storefront.models.order import Order, OrderItem, OrderPhoto
from storefront.services import get_image_provider

logger = logging.getLogger(__name__)

_KEY_ALPHABET = string.ascii_lowercase + string.digits


def is_absolute_url(path: str) -> bool:
    return path.startswith(("http://", "https://"))


def validate_file(content_type: Optional[str], size: int, name: str, max_size: Optional[int] = None) -> None:
    """Reject anything that is not an image or exceeds the size limit

    Raises:
        ValueError: with a message naming the offending file
    """
    max_size = max_size or settings.max_photo_size_bytes
    if not content_type or not content_type.startswith("image/"):
        raise ValueError(f"File {name} is not a valid image file")
    if size > max_size:
        max_size_mb = round(max_size / (1024 * 1024))
        raise ValueError(f"File {name} is too large. Maximum {max_size_mb}MB")


def object_name(file_name: str, now_ms: Optional[int] = None) -> str:
    """``{epoch_ms}-{random}.{ext}``, keeping the uploaded file's extension"""
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    ext = file_name.rsplit(".", 1)[-1]
    random_part = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(11))
    return f"{now_ms}-{random_part}.{ext}"


def user_prefix(user_id) -> str:
    return f"{settings.photo_folder}/{user_id}/"


def is_owned_key(user_id, file_path: str) -> bool:
    """True when ``file_path`` is a plain key under the user's photo prefix"""
    if not file_path.startswith(user_prefix(user_id)):
        return False
    segments = file_path.split("/")
    return "" not in segments and "." not in segments and ".." not in segments


def build_storage_key(user_id: UUID, file_name: str, folder: str = "", now_ms: Optional[int] = None) -> str:
    """``{photo_folder}/{user_id}[/{folder}]/{epoch_ms}-{random}.{ext}``

    Raises:
        ValueError: when ``folder`` has empty, ``.`` or ``..`` segments
    """
    parts = [settings.photo_folder, str(user_id)]
    folder = folder.strip("/")
    if folder:
        segments = folder.split("/")
        if any(segment in ("", ".", "..") for segment in segments):
            raise ValueError(f"Invalid folder: {folder}")
        parts.extend(segments)
    parts.append(object_name(file_name, now_ms))
    return "/".join(parts)


class PhotoService:
    """Customer photo storage and order photo records"""

    def __init__(self, db: Session):
        self.db = db
        self.image_provider = get_image_provider()

    def upload_photo(
        self,
        user_id: UUID,
        file_name: str,
        content: bytes,
        content_type: Optional[str],
        folder: str = ""
    ) -> dict:
        validate_file(content_type, len(content), file_name)

        key = build_storage_key(user_id, file_name, folder)
        stored_key = self.image_provider.upload_image(
            content,
            metadata={"public_id": key, "tags": ["order-photo"], "content_type": content_type}
        )
        if not stored_key:
            raise RuntimeError(f"Failed to upload {file_name}")

        logger.info(f"Uploaded photo {file_name} for user {user_id} to {stored_key}")
        return {
            "file_name": file_name,
            "file_path": stored_key,
            "public_url": self.image_provider.get_image_url(stored_key),
            "file_size": len(content),
            "mime_type": content_type,
        }

    def upload_order_item_photos(
        self,
        user_id: UUID,
        order_item_id: UUID,
        files: List[Tuple[str, bytes, Optional[str]]]
    ) -> List[OrderPhoto]:
        """Upload files and attach them to an existing order item owned by the user

        ``files`` holds ``(file_name, content, content_type)`` tuples.
        """
        item = self.db.query(OrderItem).join(Order, OrderItem.order_id == Order.id).filter(
            OrderItem.id == order_item_id,
            Order.user_id == user_id
        ).first()
        if not item:
            raise LookupError("Order item not found")

        for file_name, content, content_type in files:
            validate_file(content_type, len(content), file_name)

        next_sort = self.db.query(func.max(OrderPhoto.sort_order)).filter(
            OrderPhoto.order_item_id == item.id
        ).scalar()
        next_sort = 0 if next_sort is None else next_sort + 1

        photos = []
        for index, (file_name, content, content_type) in enumerate(files):
            uploaded = self.upload_photo(user_id, file_name, content, content_type, folder=str(item.order_id))
            photo = OrderPhoto(
                order_item_id=item.id,
                file_name=uploaded["file_name"],
                file_path=uploaded["file_path"],
                file_size=uploaded["file_size"],
                mime_type=uploaded["mime_type"],
                upload_status="completed",
                sort_order=next_sort + index,
                photo_metadata={
                    "uploaded_at": datetime.now(timezone.utc).isoformat(),
                    "original_file_name": file_name,
                }
            )
            self.db.add(photo)
            photos.append(photo)

        self.db.commit()
        for photo in photos:
            self.db.refresh(photo)

        logger.info(f"Attached {len(photos)} photo(s) to order item {order_item_id}")
        return photos

    def delete_photo(self, user_id: UUID, file_path: str) -> None:
        """Delete one of the caller's own uploads"""
        if not is_owned_key(user_id, file_path):
            raise PermissionError("You can only delete your own photos")

        if not self.image_provider.delete_image(file_path):
            raise LookupError("Photo not found")

    def get_url(self, file_path: Optional[str]) -> Optional[str]:
        if not file_path:
            return None
        if is_absolute_url(file_path):
            return file_path
        return self.image_provider.get_image_url(file_path)

    def download(self, file_path: str) -> bytes:
        content = self.image_provider.download_image(file_path)
        if content is None:
            raise LookupError("Photo not found")
        return content

    def upload_product_image(self, file_name: str, content: bytes, content_type: Optional[str]) -> dict:
        """Store a catalog image under ``products/``"""
        validate_file(content_type, len(content), file_name)

        key = f"products/{object_name(file_name)}"
        stored_key = self.image_provider.upload_image(
            content,
            metadata={"public_id": key, "tags": ["product"], "content_type": content_type}
        )
        if not stored_key:
            raise RuntimeError(f"Failed to upload {file_name}")

        logger.info(f"Uploaded product image {file_name} to {stored_key}")
        return {"public_id": stored_key, "url": self.image_provider.get_image_url(stored_key)}
