from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional, Dict
from uuid import UUID
from datetime import datetime, timezone
import logging

from storefront.config import settings
from storefront.models.cart import CartItem
from storefront.models.order import Order, OrderItem, OrderPhoto
from storefront.schemas.order import CheckoutRequest, UploadedPhoto
from storefront.services.cart_service import CartService, summarize
from storefront.services.photo_service import is_absolute_url, is_owned_key
from storefront.kafka.producer import event_producer

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "customer_name", "customer_email", "customer_phone",
    "address", "city", "province", "postal_code",
)

# Products whose name contains one of these are printed from customer photos
PHOTO_KEYWORDS = ("photobox", "cetak", "foto")


def requires_photos(product_name: str) -> bool:
    name = product_name.lower()
    return any(keyword in name for keyword in PHOTO_KEYWORDS)


def missing_required_fields(form: CheckoutRequest) -> List[str]:
    return [field for field in REQUIRED_FIELDS if not getattr(form, field).strip()]


def generate_order_number(now: Optional[datetime] = None) -> str:
    """``PB-YYYYMMDD-<last 6 digits of epoch milliseconds>``"""
    now = now or datetime.now(timezone.utc)
    epoch_ms = int(now.timestamp() * 1000)
    return f"PB-{now.strftime('%Y%m%d')}-{str(epoch_ms)[-6:]}"


def validate_photos(items: List[CartItem], photo_uploads: Dict[UUID, List[UploadedPhoto]], per_quantity: int) -> None:
    """Check photo uploads against the cart lines

    Raises:
        ValueError: when a photo product has no photos, when a line has more
            photos than its quantity allows, or when photos reference a line
            that is not in the cart
    """
    item_ids = {item.id for item in items}
    unknown = [str(item_id) for item_id in photo_uploads if item_id not in item_ids]
    if unknown:
        raise ValueError(f"Photos submitted for items not in the cart: {', '.join(unknown)}")

    missing = [
        item.product.name for item in items
        if requires_photos(item.product.name) and not photo_uploads.get(item.id)
    ]
    if missing:
        raise ValueError(f"Please upload photos for: {', '.join(missing)}")

    for item in items:
        limit = item.quantity * per_quantity
        count = len(photo_uploads.get(item.id, []))
        if count > limit:
            raise ValueError(
                f"Too many photos for {item.product.name}: {count} uploaded, at most {limit} allowed"
            )


class CheckoutService:
    """Turns a user's cart into an order"""

    def __init__(self, db: Session):
        self.db = db
        self.cart_service = CartService(db)

    def _unique_order_number(self) -> str:
        now = datetime.now(timezone.utc)
        order_number = generate_order_number(now)
        while self.db.query(Order.id).filter(Order.order_number == order_number).first():
            now = datetime.fromtimestamp(now.timestamp() + 0.001, tz=timezone.utc)
            order_number = generate_order_number(now)
        return order_number

    def _check_photo_ownership(self, user_id: UUID, photo_uploads: Dict[UUID, List[UploadedPhoto]]):
        for photos in photo_uploads.values():
            for photo in photos:
                if not is_absolute_url(photo.file_path) and not is_owned_key(user_id, photo.file_path):
                    raise PermissionError(f"Photo {photo.file_name} was not uploaded by you")

    def place_order(self, user_id: UUID, form: CheckoutRequest, user_agent: Optional[str] = None) -> Order:
        """Validate the checkout form and write the order in one transaction

        Writes the order, its items (with a snapshot of name, variant, images
        and sku) and the photo references, then clears the cart.
        """
        items = self.cart_service.get_items(user_id)
        if not items:
            raise ValueError("Your cart is empty")

        if missing_required_fields(form):
            raise ValueError("Please complete all required fields")

        validate_photos(items, form.photo_uploads, settings.photos_per_quantity)
        self._check_photo_ownership(user_id, form.photo_uploads)

        subtotal = summarize(items)["total_price"]
        shipping_fee = settings.shipping_fee

        order = Order(
            user_id=user_id,
            order_number=self._unique_order_number(),
            status="pending",
            customer_name=form.customer_name.strip(),
            customer_email=form.customer_email.strip(),
            customer_phone=form.customer_phone.strip(),
            shipping_address={
                "address": form.address.strip(),
                "city": form.city.strip(),
                "province": form.province.strip(),
                "postal_code": form.postal_code.strip(),
            },
            subtotal=subtotal,
            shipping_fee=shipping_fee,
            tax_amount=0,
            discount_amount=0,
            total_amount=subtotal + shipping_fee,
            payment_method=form.payment_method,
            payment_status="pending",
            notes=form.notes or None,
            order_metadata={
                "created_from": "api",
                "user_agent": user_agent,
                "photo_uploads": {
                    str(item_id): [photo.model_dump() for photo in photos]
                    for item_id, photos in form.photo_uploads.items()
                },
            }
        )

        try:
            self.db.add(order)
            self.db.flush()

            for cart_item in items:
                order_item = OrderItem(
                    order_id=order.id,
                    product_id=cart_item.product_id,
                    variant_id=cart_item.variant_id,
                    product_name=cart_item.product.name,
                    variant_name=cart_item.variant.name if cart_item.variant else None,
                    price=cart_item.price,
                    quantity=cart_item.quantity,
                    subtotal=cart_item.subtotal,
                    product_data={
                        "images": cart_item.product.images or [],
                        "sku": cart_item.product.sku,
                    }
                )
                self.db.add(order_item)
                self.db.flush()

                for index, photo in enumerate(form.photo_uploads.get(cart_item.id, [])):
                    self.db.add(OrderPhoto(
                        order_item_id=order_item.id,
                        file_name=photo.file_name,
                        file_path=photo.file_path,
                        file_size=photo.file_size,
                        mime_type=photo.mime_type,
                        upload_status="completed",
                        sort_order=index,
                        photo_metadata={
                            "uploaded_at_checkout": True,
                            "original_file_name": photo.file_name,
                        }
                    ))

            self.cart_service.clear_cart(user_id, commit=False)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create order for user {user_id}: {e}", exc_info=True)
            raise

        self.db.refresh(order)
        logger.info(f"Created order {order.order_number} ({order.id}) for user {user_id}, total {order.total_amount}")

        event_producer.publish_order_created(
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=str(user_id),
            total_amount=order.total_amount,
            item_count=len(items)
        )
        event_producer.flush()

        return order
